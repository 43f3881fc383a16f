"""Tests for thread enablement resolution."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pagecomments.comments.exceptions import BackendUnavailableError
from pagecomments.comments.models import Thread
from pagecomments.comments.service import CommentService


class TestIsEnabled:
    """Tests for is_enabled."""

    @pytest.mark.asyncio
    async def test_unknown_host_is_disabled(self, service, redis_client, thread):
        assert await service.is_enabled(thread) is False
        # No false flag is cached
        assert await redis_client.get(service.keys.enabled(thread)) is None

    @pytest.mark.asyncio
    async def test_auto_enable_host_enables_and_caches(
        self, service, redis_client, thread
    ):
        await redis_client.sadd(service.keys.auto_enable, "example.com")

        assert await service.is_enabled(thread) is True
        assert await redis_client.get(service.keys.enabled(thread)) == "true"

    @pytest.mark.asyncio
    async def test_cached_flag_survives_host_removal(
        self, service, redis_client, thread
    ):
        await service.add_auto_enable_host("example.com")
        assert await service.is_enabled(thread) is True

        await service.remove_auto_enable_host("example.com")

        assert await service.is_enabled(thread) is True
        assert await service.is_enabled(Thread("example.com", "/other")) is False

    @pytest.mark.asyncio
    async def test_explicit_false_overrides_host(self, service, thread):
        await service.add_auto_enable_host("example.com")
        await service.set_enabled(thread, False)

        assert await service.is_enabled(thread) is False

    @pytest.mark.asyncio
    async def test_explicit_true_without_host(self, service, thread):
        await service.set_enabled(thread, True)
        assert await service.is_enabled(thread) is True

    @pytest.mark.asyncio
    async def test_host_added_later_enables_page(self, service, thread):
        assert await service.is_enabled(thread) is False
        await service.add_auto_enable_host("example.com")
        assert await service.is_enabled(thread) is True

    @pytest.mark.asyncio
    async def test_clear_restores_fallback(self, service, redis_client, thread):
        await service.set_enabled(thread, False)
        assert await service.clear_enabled(thread) is True
        assert await service.clear_enabled(thread) is False
        assert await redis_client.get(service.keys.enabled(thread)) is None

    @pytest.mark.asyncio
    async def test_invalid_flag_is_backend_error(self, service, redis_client, thread):
        await redis_client.set(service.keys.enabled(thread), "maybe")
        with pytest.raises(BackendUnavailableError):
            await service.is_enabled(thread)

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, thread, make_akismet, akismet_stub):
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("down")
        service = CommentService(redis, make_akismet(akismet_stub))

        with pytest.raises(BackendUnavailableError):
            await service.is_enabled(thread)

    @pytest.mark.asyncio
    async def test_cache_write_failure_is_not_fatal(
        self, thread, make_akismet, akismet_stub
    ):
        redis = AsyncMock()
        redis.get.return_value = None
        redis.sismember.return_value = True
        redis.set.side_effect = RedisConnectionError("read only replica")
        service = CommentService(redis, make_akismet(akismet_stub))

        assert await service.is_enabled(thread) is True
        redis.set.assert_awaited_once()


class TestAutoEnableHosts:
    @pytest.mark.asyncio
    async def test_add_list_remove(self, service):
        assert await service.add_auto_enable_host("b.example") is True
        assert await service.add_auto_enable_host("a.example") is True
        assert await service.add_auto_enable_host("a.example") is False

        assert await service.list_auto_enable_hosts() == ["a.example", "b.example"]

        assert await service.remove_auto_enable_host("a.example") is True
        assert await service.remove_auto_enable_host("a.example") is False
        assert await service.list_auto_enable_hosts() == ["b.example"]
