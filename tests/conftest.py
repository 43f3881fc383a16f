"""Shared fixtures.

Redis is replaced by fakeredis, Akismet by an httpx mock transport, and
time by a clock that only moves when the code under test sleeps.
"""

import os


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.pop("AKISMET_KEY", None)

from collections.abc import Callable  # noqa: E402
from urllib.parse import parse_qs  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import fakeredis  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from pagecomments.comments.akismet import AkismetClient  # noqa: E402
from pagecomments.comments.models import Thread  # noqa: E402
from pagecomments.comments.service import CommentService  # noqa: E402
from pagecomments.config import Settings  # noqa: E402
from pagecomments.main import create_app  # noqa: E402


START_TIME = 1_700_000_000


class FakeClock:
    """Wall clock that advances only through its own sleep."""

    def __init__(self, now: float = START_TIME):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class AkismetStub:
    """Records comment-check calls and answers with a fixed body."""

    def __init__(self, body: str = "false", status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.requests: list[dict[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode(), keep_blank_values=True)
        self.requests.append({k: v[0] for k, v in form.items()})
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture
def settings() -> Settings:
    """Test settings, no files, no Akismet."""
    return Settings(
        environment="testing",
        log_to_file=False,
        log_requests=False,
        akismet_key=None,
        comments_key_namespace="test",
    )


@pytest.fixture
def redis_client() -> fakeredis.FakeAsyncRedis:
    """Fresh in-memory Redis per test."""
    return fakeredis.FakeAsyncRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def akismet_stub() -> AkismetStub:
    return AkismetStub()


@pytest.fixture
def make_akismet() -> Callable[..., AkismetClient]:
    """Build an Akismet client whose HTTP traffic goes to a handler."""

    def factory(handler, api_key: str | None = "test-key") -> AkismetClient:
        return AkismetClient(
            api_key=api_key,
            blog_url="https://example.com/",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return factory


@pytest.fixture
def make_service(redis_client, clock, make_akismet) -> Callable[..., CommentService]:
    """Build a CommentService on fakeredis with the fake clock."""

    def factory(
        handler=None,
        api_key: str | None = "test-key",
        **kwargs,
    ) -> CommentService:
        if handler is None:
            handler = AkismetStub()
            api_key = None
        return CommentService(
            redis_client,
            make_akismet(handler, api_key=api_key),
            namespace="test",
            clock=clock,
            sleep=clock.sleep,
            **kwargs,
        )

    return factory


@pytest.fixture
def service(make_service, akismet_stub) -> CommentService:
    """Service with Akismet configured and answering "not spam"."""
    return make_service(akismet_stub)


@pytest.fixture
def unmoderated_service(make_service) -> CommentService:
    """Service without an Akismet key."""
    return make_service()


@pytest.fixture
def thread() -> Thread:
    return Thread(host="example.com", path="/post")


@pytest.fixture
def app(settings, service, redis_client):
    """Application with the test service injected; lifespan does not run."""
    application = create_app(settings)
    application.state.redis = redis_client
    application.state.comment_service = service
    return application


@pytest.fixture
def client(settings) -> TestClient:
    """Sync client for endpoints that do not touch fakeredis."""
    application = create_app(settings)
    application.state.redis = AsyncMock(ping=AsyncMock(return_value=True))
    return TestClient(application)
