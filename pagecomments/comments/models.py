"""Comment storage models.

A thread is addressed by the (host, path) pair of the page URL it is
embedded in. It is never stored as a record of its own: it only scopes the
Redis keys of its enablement flag, its two id indexes and its comments.
"""

import re
from dataclasses import asdict, dataclass, field
from urllib.parse import unquote, urlsplit

from .exceptions import InvalidInputError, InvalidURLError, MissingHostError


TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_bool(value: str) -> bool:
    """Parse a boolean literal as stored in Redis or returned by Akismet.

    Raises:
        ValueError: If the value is not one of the accepted literals.
    """
    if value in TRUE_LITERALS:
        return True
    if value in FALSE_LITERALS:
        return False
    msg = f"invalid boolean literal: {value!r}"
    raise ValueError(msg)


@dataclass(frozen=True)
class Thread:
    """Comment thread of one page."""

    host: str
    path: str

    @classmethod
    def from_url(cls, raw_url: str) -> "Thread":
        """Derive the thread of a page URL.

        No normalization happens: ``Example.com/post`` and
        ``example.com/post/`` are different threads.

        Raises:
            InvalidURLError: If the URL cannot be parsed or its path
                holds a malformed percent-escape.
            MissingHostError: If the URL has no host.
        """
        if any(ord(char) < 0x20 or char == "\x7f" for char in raw_url):
            raise InvalidURLError("bad URL: control character")
        try:
            parts = urlsplit(raw_url)
            # Raises on a non-numeric or out of range port
            parts.port  # noqa: B018
        except ValueError as e:
            raise InvalidURLError(f"bad URL: {e}") from e

        if BAD_ESCAPE.search(parts.path):
            raise InvalidURLError("bad URL: invalid escape in path")

        host = parts.netloc.rpartition("@")[2]
        if not host:
            raise MissingHostError
        return cls(host=host, path=unquote(parts.path))

    def __str__(self) -> str:
        return f"{self.host}{self.path}"


@dataclass
class CommentRecord:
    """Stored comment.

    Field names double as the Redis hash fields and as Akismet's
    comment-check parameters, so the hash can be forwarded as is.
    """

    permalink: str
    comment_author: str
    comment_content: str
    user_ip: str = ""
    user_agent: str = ""
    referrer: str = ""
    comment_author_email: str = ""
    comment_author_url: str = ""

    @classmethod
    def from_hash(cls, values: dict[str, str]) -> "CommentRecord":
        """Build a record from HGETALL output, ignoring unknown fields."""
        return cls(
            permalink=values.get("permalink", ""),
            comment_author=values.get("comment_author", ""),
            comment_content=values.get("comment_content", ""),
            user_ip=values.get("user_ip", ""),
            user_agent=values.get("user_agent", ""),
            referrer=values.get("referrer", ""),
            comment_author_email=values.get("comment_author_email", ""),
            comment_author_url=values.get("comment_author_url", ""),
        )

    def to_hash(self) -> dict[str, str]:
        """Convert to an HSET mapping."""
        return asdict(self)


@dataclass
class PublishedComment:
    """Approved comment as returned to embedding pages, already escaped."""

    id: str
    author: str
    content: str


@dataclass
class Submission:
    """Validated comment submission bound to its thread."""

    thread: Thread
    record: CommentRecord


@dataclass
class SubmissionResult:
    """Outcome of storing a new comment."""

    thread: Thread
    comment_id: int
    approved: bool


@dataclass
class ReclassifyReport:
    """Outcome of re-running moderation over a thread's pending comments."""

    thread: Thread
    approved: list[int] = field(default_factory=list)
    still_pending: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


def create_submission(
    url: str,
    comment_author: str,
    comment_content: str,
    *,
    comment_author_email: str = "",
    comment_author_url: str = "",
    user_ip: str = "",
    user_agent: str = "",
    referrer: str = "",
) -> Submission:
    """Validate a submission and bind it to the thread of ``url``.

    The URL is kept verbatim as the permalink. Author and content are stored
    unescaped; escaping happens when comments are listed.

    Raises:
        InvalidInputError: If the URL, author or content is unusable.
    """
    if not url:
        raise MissingHostError
    try:
        thread = Thread.from_url(url)
    except InvalidURLError as e:
        raise InvalidInputError("bad url value", "invalid_url") from e
    if not comment_author:
        raise InvalidInputError("bad comment_author value")
    if not comment_content:
        raise InvalidInputError("bad comment_content value")

    return Submission(
        thread=thread,
        record=CommentRecord(
            permalink=url,
            comment_author=comment_author,
            comment_content=comment_content,
            user_ip=user_ip or "",
            user_agent=user_agent or "",
            referrer=referrer or "",
            comment_author_email=comment_author_email or "",
            comment_author_url=comment_author_url or "",
        ),
    )
