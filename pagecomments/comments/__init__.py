"""Comment threads module.

Provides:
- Thread addressing from page URLs
- Enablement with a host allow-list fallback
- Time-based id allocation
- Akismet moderation and approved-comment listing

Note: Router is not exported here to avoid circular imports.
Import directly from pagecomments.comments.router when needed.
"""

from .akismet import AkismetClient
from .exceptions import (
    AllocationContentionError,
    BackendUnavailableError,
    ClassifierError,
    ClassifierProtocolError,
    ClassifierUnavailableError,
    CommentError,
    CommentNotFoundError,
    CommentsNotEnabledError,
    CorruptIndexError,
    InvalidInputError,
    InvalidURLError,
    MissingHostError,
)
from .models import (
    CommentRecord,
    PublishedComment,
    Submission,
    SubmissionResult,
    Thread,
    create_submission,
)
from .service import CommentService


__all__ = [
    "AkismetClient",
    "AllocationContentionError",
    "BackendUnavailableError",
    "ClassifierError",
    "ClassifierProtocolError",
    "ClassifierUnavailableError",
    "CommentError",
    "CommentNotFoundError",
    "CommentRecord",
    "CommentService",
    "CommentsNotEnabledError",
    "CorruptIndexError",
    "InvalidInputError",
    "InvalidURLError",
    "MissingHostError",
    "PublishedComment",
    "Submission",
    "SubmissionResult",
    "Thread",
    "create_submission",
]
