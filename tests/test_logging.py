"""Tests for log processors and request context."""

from pagecomments.core.context import (
    RequestContext,
    clear_context,
    get_context,
    get_request_id,
    set_thread,
)
from pagecomments.core.logging import (
    add_context_processor,
    filter_sensitive_data,
    redact_secret_values,
)


class TestFilterSensitiveData:
    def test_masks_credential_keys(self):
        event = filter_sensitive_data(
            None, "info", {"event": "x", "akismet_key": "abcdef123", "host": "h"}
        )
        assert event["akismet_key"] == "ab*****23"
        assert event["host"] == "h"

    def test_short_values_fully_masked(self):
        event = filter_sensitive_data(None, "info", {"token": "abc"})
        assert event["token"] == "***"

    def test_nested_dicts(self):
        event = filter_sensitive_data(None, "info", {"data": {"password": "hunter22"}})
        assert event["data"]["password"] == "hu****22"


class TestRedactSecretValues:
    def test_scrubs_secret_from_free_text(self):
        processor = redact_secret_values(["s3cr3t", None])
        event = processor(
            None,
            "error",
            {"error": "POST https://s3cr3t.rest.akismet.com failed", "count": 3},
        )
        assert event["error"] == "POST https://***.rest.akismet.com failed"
        assert event["count"] == 3

    def test_no_secrets_is_noop(self):
        processor = redact_secret_values([None, ""])
        event = {"error": "anything"}
        assert processor(None, "error", dict(event)) == event


class TestRequestContext:
    def test_context_is_injected_and_restored(self):
        clear_context()
        with RequestContext(request_id="req-1", correlation_id="admin:pending"):
            set_thread("example.com/post")
            event = add_context_processor(None, "info", {"event": "x"})
            assert event["request_id"] == "req-1"
            assert event["correlation_id"] == "admin:pending"
            assert event["thread"] == "example.com/post"

        assert get_request_id() == ""
        clear_context()
        assert get_context() == {}

    def test_generates_request_id(self):
        with RequestContext():
            assert get_request_id()
