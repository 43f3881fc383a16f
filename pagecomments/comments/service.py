"""Comment system service layer.

Business logic for:
- Per-thread enablement with host allow-list fallback
- Time-based comment id allocation
- Akismet moderation and the approved index
- Listing approved comments
- Out-of-band moderation (pending list, manual approve, retract)

All coordination between processes happens through single atomic Redis
commands (ZADD NX, SET NX, ZREM); nothing here holds state between calls.
"""

import asyncio
import html
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from redis.exceptions import RedisError

from pagecomments.core.context import set_thread

from .akismet import AkismetClient
from .exceptions import (
    AllocationContentionError,
    BackendUnavailableError,
    ClassifierError,
    CommentNotFoundError,
    CommentsNotEnabledError,
    CorruptIndexError,
    InvalidInputError,
)
from .keys import KeySchema
from .models import (
    CommentRecord,
    PublishedComment,
    ReclassifyReport,
    Submission,
    SubmissionResult,
    Thread,
    parse_bool,
)


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from pagecomments.config import Settings


logger = structlog.get_logger(__name__)


@contextmanager
def backend_errors(operation: str) -> Iterator[None]:
    """Translate Redis failures into BackendUnavailableError."""
    try:
        yield
    except RedisError as e:
        logger.error("redis_error", operation=operation, error=str(e))
        raise BackendUnavailableError from e


def _check_limit(limit: int | None) -> None:
    if limit is not None and limit < 1:
        raise InvalidInputError("limit must be at least 1")


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comment storage and moderation."""

    # Wait between two allocation attempts; ids have one-second resolution
    ALLOCATION_RETRY_DELAY = 1.0

    def __init__(
        self,
        redis: "Redis",
        classifier: AkismetClient,
        *,
        namespace: str = "pagecomments",
        page_size: int = 10,
        max_allocation_attempts: int | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.redis = redis
        self.classifier = classifier
        self.keys = KeySchema(namespace)
        self.page_size = page_size
        self.max_allocation_attempts = max_allocation_attempts
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        redis: "Redis",
        settings: "Settings",
        classifier: AkismetClient | None = None,
    ) -> "CommentService":
        """Build a service wired the way the settings describe."""
        if classifier is None:
            classifier = AkismetClient(
                api_key=settings.akismet_key,
                blog_url=settings.akismet_blog_url,
                endpoint=settings.akismet_endpoint,
                timeout=settings.akismet_timeout,
            )
        return cls(
            redis,
            classifier,
            namespace=settings.comments_key_namespace,
            page_size=settings.comments_page_size,
            max_allocation_attempts=settings.comments_allocation_max_attempts,
        )

    async def aclose(self) -> None:
        """Release the classifier's HTTP connections."""
        await self.classifier.aclose()

    # ==========================================================================
    # Enablement
    # ==========================================================================

    async def is_enabled(self, thread: Thread) -> bool:
        """Check whether a thread accepts new comments.

        An explicit per-path flag wins. Without one, threads on hosts in the
        auto-enable set are enabled and the decision is cached as a flag.
        A missing flag is never written as false, so adding a host later
        still enables its existing pages.
        """
        with backend_errors("is_enabled"):
            flag = await self.redis.get(self.keys.enabled(thread))
        if flag is not None:
            try:
                return parse_bool(flag)
            except ValueError as e:
                logger.error("invalid_enabled_flag", value=flag)
                raise BackendUnavailableError("invalid enablement flag") from e

        with backend_errors("is_enabled"):
            auto = await self.redis.sismember(self.keys.auto_enable, thread.host)
        if not auto:
            return False

        # Best effort; NX keeps an explicit flag set meanwhile
        try:
            await self.redis.set(self.keys.enabled(thread), "true", nx=True)
        except RedisError as e:
            logger.warning("enabled_flag_cache_failed", error=str(e))
        return True

    async def set_enabled(self, thread: Thread, enabled: bool) -> None:
        """Set an explicit per-path flag; false overrides the host allow-list."""
        with backend_errors("set_enabled"):
            await self.redis.set(
                self.keys.enabled(thread), "true" if enabled else "false"
            )
        logger.info("enabled_flag_set", thread=str(thread), enabled=enabled)

    async def clear_enabled(self, thread: Thread) -> bool:
        """Remove the per-path flag so the host allow-list applies again."""
        with backend_errors("clear_enabled"):
            removed = await self.redis.delete(self.keys.enabled(thread))
        return bool(removed)

    async def add_auto_enable_host(self, host: str) -> bool:
        """Add a host to the auto-enable set. Returns False if already there."""
        with backend_errors("add_auto_enable_host"):
            added = await self.redis.sadd(self.keys.auto_enable, host)
        return bool(added)

    async def remove_auto_enable_host(self, host: str) -> bool:
        """Remove a host from the auto-enable set.

        Threads that already cached an enabled flag stay enabled.
        """
        with backend_errors("remove_auto_enable_host"):
            removed = await self.redis.srem(self.keys.auto_enable, host)
        return bool(removed)

    async def list_auto_enable_hosts(self) -> list[str]:
        with backend_errors("list_auto_enable_hosts"):
            hosts = await self.redis.smembers(self.keys.auto_enable)
        return sorted(hosts)

    # ==========================================================================
    # Id allocation and storage
    # ==========================================================================

    async def allocate_id(self, thread: Thread) -> int:
        """Allocate a new comment id for a thread.

        The id is the current Unix time in seconds, claimed with ZADD NX on
        the thread's index of all comments. When another comment took that
        second, wait a second and try again. Retries are unbounded unless
        ``max_allocation_attempts`` is set.

        Raises:
            AllocationContentionError: If the attempt bound is exhausted.
            BackendUnavailableError: If Redis fails.
        """
        key = self.keys.all(thread)
        attempts = 0
        while True:
            attempts += 1
            candidate = int(self._clock())
            with backend_errors("allocate_id"):
                added = await self.redis.zadd(key, {str(candidate): candidate}, nx=True)
            if added:
                return candidate

            logger.info("comment_id_collision", candidate=candidate, attempt=attempts)
            if (
                self.max_allocation_attempts is not None
                and attempts >= self.max_allocation_attempts
            ):
                logger.warning("comment_id_allocation_exhausted", attempts=attempts)
                raise AllocationContentionError
            await self._sleep(self.ALLOCATION_RETRY_DELAY)

    async def save_comment(self, submission: Submission) -> int:
        """Allocate an id and store the comment record under it."""
        thread = submission.thread
        comment_id = await self.allocate_id(thread)
        with backend_errors("save_comment"):
            await self.redis.hset(
                self.keys.comment(thread, comment_id),
                mapping=submission.record.to_hash(),
            )
        return comment_id

    async def get_comment(self, thread: Thread, comment_id: int) -> CommentRecord:
        """Fetch a stored comment, approved or not."""
        with backend_errors("get_comment"):
            values = await self.redis.hgetall(self.keys.comment(thread, comment_id))
        if not values:
            raise CommentNotFoundError
        return CommentRecord.from_hash(values)

    async def submit(self, submission: Submission) -> SubmissionResult:
        """Store a new comment and run it through moderation.

        Performs:
        - Enablement check
        - Id allocation and record write
        - Akismet classification

        Classification failures leave the comment stored and pending; they
        are logged, never raised.

        Raises:
            CommentsNotEnabledError: If the thread does not accept comments.
            AllocationContentionError: If no id could be allocated.
            BackendUnavailableError: If Redis fails before the record is stored.
        """
        thread = submission.thread
        set_thread(str(thread))

        if not await self.is_enabled(thread):
            raise CommentsNotEnabledError

        comment_id = await self.save_comment(submission)

        try:
            approved = await self.classify(thread, comment_id)
        except (ClassifierError, BackendUnavailableError, CommentNotFoundError) as e:
            logger.warning(
                "comment_classification_failed",
                comment_id=comment_id,
                error=e.message,
                code=e.code,
            )
            approved = False

        if approved:
            logger.info("comment_approved", comment_id=comment_id)
        else:
            logger.info("comment_pending", comment_id=comment_id)

        return SubmissionResult(thread=thread, comment_id=comment_id, approved=approved)

    # ==========================================================================
    # Moderation
    # ==========================================================================

    async def classify(self, thread: Thread, comment_id: int) -> bool:
        """Run a stored comment through Akismet and approve it if it is ham.

        Without an Akismet key nothing is sent and the comment stays
        pending.

        Returns:
            True if this call added the comment to the approved index.

        Raises:
            CommentNotFoundError: If no record is stored under the id.
            ClassifierError: If Akismet gives no usable verdict.
            BackendUnavailableError: If Redis fails.
        """
        if not self.classifier.configured:
            return False

        record = await self.get_comment(thread, comment_id)

        if await self.classifier.is_spam(record.to_hash()):
            logger.info("comment_classified_spam", comment_id=comment_id)
            return False

        with backend_errors("classify"):
            added = await self.redis.zadd(
                self.keys.approved(thread), {str(comment_id): comment_id}, nx=True
            )
        return bool(added)

    async def list_pending(self, thread: Thread, limit: int | None = None) -> list[int]:
        """Ids stored for a thread but not approved, oldest first."""
        _check_limit(limit)
        async with self.redis.pipeline(transaction=False) as pipe:
            pipe.zrangebyscore(self.keys.all(thread), "-inf", "+inf")
            pipe.zrangebyscore(self.keys.approved(thread), "-inf", "+inf")
            with backend_errors("list_pending"):
                all_ids, approved_ids = await pipe.execute()

        approved = set(approved_ids)
        pending = [int(i) for i in all_ids if i not in approved]
        if limit is not None:
            pending = pending[:limit]
        return pending

    async def approve(self, thread: Thread, comment_id: int) -> bool:
        """Approve a comment by hand, skipping Akismet.

        Only ids present in the index of all comments and backed by a stored
        record can be approved. Neither is ever removed, so the checks cannot
        go stale before the add. An id whose record write failed stays
        pending.

        Returns:
            True if the comment was not approved before.
        """
        async with self.redis.pipeline(transaction=False) as pipe:
            pipe.zscore(self.keys.all(thread), str(comment_id))
            pipe.exists(self.keys.comment(thread, comment_id))
            with backend_errors("approve"):
                score, has_record = await pipe.execute()
        if score is None or not has_record:
            raise CommentNotFoundError

        with backend_errors("approve"):
            added = await self.redis.zadd(
                self.keys.approved(thread), {str(comment_id): comment_id}, nx=True
            )
        logger.info("comment_manually_approved", comment_id=comment_id, added=added)
        return bool(added)

    async def retract(self, thread: Thread, comment_id: int) -> bool:
        """Mark an approved comment as spam.

        Removes it from the approved index only; the record and its slot in
        the index of all comments stay.

        Returns:
            True if the comment was approved before.
        """
        with backend_errors("retract"):
            removed = await self.redis.zrem(
                self.keys.approved(thread), str(comment_id)
            )
        logger.info("comment_retracted", comment_id=comment_id, removed=removed)
        return bool(removed)

    async def reclassify(self, thread: Thread) -> ReclassifyReport:
        """Retry Akismet for every pending comment of a thread."""
        report = ReclassifyReport(thread=thread)
        for comment_id in await self.list_pending(thread):
            try:
                approved = await self.classify(thread, comment_id)
            except (ClassifierError, CommentNotFoundError) as e:
                logger.warning(
                    "comment_reclassification_failed",
                    comment_id=comment_id,
                    error=e.message,
                )
                report.failed.append(comment_id)
                continue

            if approved:
                report.approved.append(comment_id)
            else:
                report.still_pending.append(comment_id)

        logger.info(
            "thread_reclassified",
            thread=str(thread),
            approved=len(report.approved),
            still_pending=len(report.still_pending),
            failed=len(report.failed),
        )
        return report

    # ==========================================================================
    # Listing
    # ==========================================================================

    async def list_comments(
        self, thread: Thread, limit: int | None = None
    ) -> list[PublishedComment]:
        """Approved comments of a thread, oldest first.

        Author and content are HTML-escaped for embedding.

        Raises:
            InvalidInputError: If limit is below 1.
            CorruptIndexError: If an approved id has no stored record.
            BackendUnavailableError: If Redis fails.
        """
        _check_limit(limit)
        with backend_errors("list_comments"):
            ids = await self.redis.zrangebyscore(
                self.keys.approved(thread),
                "-inf",
                "+inf",
                start=0,
                num=self.page_size if limit is None else limit,
            )
        if not ids:
            return []

        try:
            numeric_ids = [int(i) for i in ids]
        except ValueError as e:
            logger.error("corrupt_approved_index", ids=ids)
            raise CorruptIndexError from e

        async with self.redis.pipeline(transaction=False) as pipe:
            for comment_id in numeric_ids:
                pipe.hgetall(self.keys.comment(thread, comment_id))
            with backend_errors("list_comments"):
                records = await pipe.execute()

        comments = []
        for comment_id, values in zip(ids, records, strict=True):
            if not values:
                logger.error("corrupt_approved_index", comment_id=comment_id)
                raise CorruptIndexError
            record = CommentRecord.from_hash(values)
            comments.append(
                PublishedComment(
                    id=comment_id,
                    author=html.escape(record.comment_author),
                    content=html.escape(record.comment_content),
                )
            )
        return comments
