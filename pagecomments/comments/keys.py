"""Redis key schema.

key {ns}:auto_enable
    set of hostnames; SISMEMBER decides whether a thread without an explicit
    flag may be enabled.

key {ns://host/path}:enabled
    "true"/"false"; absent means "not resolved yet", not false.

key {ns://host/path}:all
    zset, member and score are the comment id; ZADD NX allocates ids.

key {ns://host/path}:approved
    zset, same scheme, subset of :all; ZREM marks a comment as spam.

key {ns://host/path}:comment:<id>
    hash with the comment fields.

The braces are Redis Cluster hash tags: all keys of a thread share a slot.
"""

from .models import Thread


class KeySchema:
    """Builds Redis keys under a namespace."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def _thread_tag(self, thread: Thread) -> str:
        return f"{{{self.namespace}://{thread.host}{thread.path}}}"

    @property
    def auto_enable(self) -> str:
        return f"{{{self.namespace}}}:auto_enable"

    def enabled(self, thread: Thread) -> str:
        return f"{self._thread_tag(thread)}:enabled"

    def all(self, thread: Thread) -> str:
        return f"{self._thread_tag(thread)}:all"

    def approved(self, thread: Thread) -> str:
        return f"{self._thread_tag(thread)}:approved"

    def comment(self, thread: Thread, comment_id: int) -> str:
        return f"{self._thread_tag(thread)}:comment:{comment_id}"
