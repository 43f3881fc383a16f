"""Comment errors.

Every error carries a machine-readable ``code``; the router maps codes to
HTTP statuses.
"""


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidInputError(CommentError):
    """Submission rejected before touching the store."""

    def __init__(self, message: str = "invalid input", code: str = "invalid_input"):
        super().__init__(message, code)


class InvalidURLError(InvalidInputError):
    """URL could not be parsed."""

    def __init__(self, message: str = "bad URL"):
        super().__init__(message, "invalid_url")


class MissingHostError(InvalidInputError):
    """URL parsed but has no host, so it cannot name a thread."""

    def __init__(self, message: str = "bad url value"):
        super().__init__(message, "missing_host")


class CommentsNotEnabledError(CommentError):
    """Thread does not accept comments."""

    def __init__(self, message: str = "comments not enabled"):
        super().__init__(message, "comments_not_enabled")


class CommentNotFoundError(CommentError):
    """Comment id is not part of the thread."""

    def __init__(self, message: str = "comment not found"):
        super().__init__(message, "comment_not_found")


class BackendUnavailableError(CommentError):
    """Redis is unreachable or answered with an error."""

    def __init__(
        self, message: str = "backend error", code: str = "backend_unavailable"
    ):
        super().__init__(message, code)


class CorruptIndexError(BackendUnavailableError):
    """An index references a comment record that does not exist."""

    def __init__(self, message: str = "index references a missing comment"):
        super().__init__(message, "corrupt_index")


class AllocationContentionError(CommentError):
    """No free identifier could be allocated within the attempt bound."""

    def __init__(self, message: str = "too many concurrent comments, try again"):
        super().__init__(message, "allocation_contention")


class ClassifierError(CommentError):
    """Spam classification could not produce a verdict."""

    def __init__(
        self, message: str = "classifier error", code: str = "classifier_error"
    ):
        super().__init__(message, code)


class ClassifierUnavailableError(ClassifierError):
    """Network failure, timeout or non-2xx status from the classifier."""

    def __init__(self, message: str = "classifier unavailable"):
        super().__init__(message, "classifier_unavailable")


class ClassifierProtocolError(ClassifierError):
    """Classifier answered with something other than a boolean literal."""

    def __init__(self, message: str = "unexpected classifier response"):
        super().__init__(message, "classifier_protocol_error")
