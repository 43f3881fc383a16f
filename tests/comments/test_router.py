"""Tests for the comment HTTP endpoints."""

import httpx
import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def http(app):
    """Async client on the app; shares the event loop with fakeredis."""
    transport = httpx.ASGITransport(app=app, client=("203.0.113.9", 1234))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


FORM = {
    "url": "https://example.com/post",
    "comment_author": "a",
    "comment_content": "hello",
}


class TestSubmitEndpoint:
    """Tests for POST /comments/."""

    @pytest.mark.asyncio
    async def test_redirects_to_permalink(self, http, service, akismet_stub):
        await service.add_auto_enable_host("example.com")

        response = await http.post(
            "/comments/",
            data=FORM,
            headers={"User-Agent": "pytest", "Referer": "https://example.com/"},
        )

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/post"

        sent = akismet_stub.requests[0]
        assert sent["user_ip"] == "203.0.113.9"
        assert sent["user_agent"] == "pytest"
        assert sent["referrer"] == "https://example.com/"

    @pytest.mark.asyncio
    async def test_forwarded_for_wins(self, http, service, akismet_stub):
        await service.add_auto_enable_host("example.com")

        await http.post(
            "/comments/",
            data=FORM,
            headers={"X-Forwarded-For": "198.51.100.7, 10.0.0.1"},
        )

        assert akismet_stub.requests[0]["user_ip"] == "198.51.100.7"

    @pytest.mark.asyncio
    async def test_not_enabled(self, http):
        response = await http.post("/comments/", data=FORM)

        assert response.status_code == 400
        assert response.json()["message"] == "comments not enabled"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("url", "", "bad url value"),
            ("url", "/post", "bad url value"),
            ("comment_author", "", "bad comment_author value"),
            ("comment_content", "", "bad comment_content value"),
        ],
    )
    async def test_invalid_input(
        self, http, service, thread, field, value, message
    ):
        await service.add_auto_enable_host("example.com")

        response = await http.post("/comments/", data={**FORM, field: value})

        assert response.status_code == 400
        assert response.json()["message"] == message
        assert await service.redis.zcard(service.keys.all(thread)) == 0


class TestListEndpoint:
    """Tests for GET /comments/."""

    @pytest.mark.asyncio
    async def test_empty_list(self, http):
        response = await http.get("/comments/", params={"url": FORM["url"]})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_scenario(self, http, service):
        await service.add_auto_enable_host("example.com")
        await http.post("/comments/", data={**FORM, "comment_content": "<b>hi</b>"})

        response = await http.get("/comments/", params={"url": FORM["url"]})

        assert response.status_code == 200
        [comment] = response.json()
        assert comment["author"] == "a"
        assert comment["content"] == "&lt;b&gt;hi&lt;/b&gt;"
        assert comment["id"].isdigit()

    @pytest.mark.asyncio
    async def test_bad_url(self, http):
        response = await http.get("/comments/", params={"url": "http://[::1/"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_host(self, http):
        response = await http.get("/comments/", params={"url": "/post"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_corrupt_index_is_server_error(self, http, service, thread):
        await service.redis.zadd(service.keys.approved(thread), {"42": 42})

        response = await http.get("/comments/", params={"url": FORM["url"]})

        assert response.status_code == 500
        assert response.json()["message"] == "backend error"


class TestStatusEndpoint:
    @pytest.mark.asyncio
    async def test_status(self, http, service):
        response = await http.get("/comments/status", params={"url": FORM["url"]})
        assert response.json() == {
            "host": "example.com",
            "path": "/post",
            "enabled": False,
        }

        await service.add_auto_enable_host("example.com")

        response = await http.get("/comments/status", params={"url": FORM["url"]})
        assert response.json()["enabled"] is True
