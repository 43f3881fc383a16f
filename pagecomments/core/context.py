"""Request context management using contextvars.

Each request (or admin command) gets a unique ID and optional trace and
thread information that can be read anywhere in the call stack without
passing parameters explicitly. The logging setup injects these values into
every log entry.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
thread_var: ContextVar[str | None] = ContextVar("thread", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID for the current context."""
    trace_id_var.set(trace_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def get_thread() -> str | None:
    """Get the comment thread ("host/path") being handled."""
    return thread_var.get()


def set_thread(thread: str | None) -> None:
    """Set the comment thread being handled."""
    thread_var.set(thread)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    thread = get_thread()
    if thread:
        context["thread"] = thread

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request to prevent context leakage
    between requests.
    """
    request_id_var.set("")
    trace_id_var.set(None)
    correlation_id_var.set(None)
    thread_var.set(None)


class RequestContext:
    """Context manager for a unit of work outside the HTTP stack.

    Usage:
        with RequestContext(correlation_id="reclassify"):
            log.info("doing something")  # Will include request_id, correlation_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        trace_id: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.request_id = request_id
        self.trace_id = trace_id
        self.correlation_id = correlation_id
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "RequestContext":
        """Enter context and set variables."""
        self._tokens["request_id"] = request_id_var.set(
            self.request_id or generate_request_id()
        )

        if self.trace_id is not None:
            self._tokens["trace_id"] = trace_id_var.set(self.trace_id)

        if self.correlation_id is not None:
            self._tokens["correlation_id"] = correlation_id_var.set(self.correlation_id)

        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var_name, token in self._tokens.items():
            if var_name == "request_id":
                request_id_var.reset(token)
            elif var_name == "trace_id":
                trace_id_var.reset(token)
            elif var_name == "correlation_id":
                correlation_id_var.reset(token)
