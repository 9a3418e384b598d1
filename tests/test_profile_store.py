import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from digitalme.services.redis_service import RedisService


class TestProfileStore:
    """Profile and learning-flag persistence."""

    @pytest.mark.asyncio
    async def test_round_trip(self, store, kv_store, profile):
        assert await store.save_profile(profile.user_id, profile) is True

        raw = json.loads(kv_store.data[f"digitalme:profile:{profile.user_id}"])
        assert raw["writing"]["sentenceLength"] == "medium"
        assert raw["userId"] == profile.user_id

        loaded = await store.get_profile(profile.user_id)
        assert loaded == profile

    @pytest.mark.asyncio
    async def test_missing_profile(self, store):
        assert await store.get_profile("nobody") is None

    @pytest.mark.asyncio
    async def test_corrupt_profile(self, store, kv_store):
        kv_store.data["digitalme:profile:u1"] = "{not json"
        assert await store.get_profile("u1") is None

    @pytest.mark.asyncio
    async def test_legacy_profile_is_migrated(self, store, kv_store):
        kv_store.data["digitalme:profile:u1"] = json.dumps(
            {"userId": "u1", "writingStyle": {"tone": "professional"}, "confidence": 0.65}
        )
        loaded = await store.get_profile("u1")

        assert loaded.writing.tone == "professional"
        assert loaded.attribute_confidence.tone == 0.65
        assert loaded.learning_metadata.enabled is True

    @pytest.mark.asyncio
    async def test_learning_flag(self, store):
        assert await store.is_learning_enabled("u1") is True
        await store.set_learning_enabled("u1", False)
        assert await store.is_learning_enabled("u1") is False
        await store.set_learning_enabled("u1", True)
        assert await store.is_learning_enabled("u1") is True

    @pytest.mark.asyncio
    async def test_write_failure(self, store, kv_store, profile):
        kv_store.fail_writes = True
        assert await store.save_profile(profile.user_id, profile) is False

    @pytest.mark.asyncio
    async def test_delete(self, store, profile):
        await store.save_profile(profile.user_id, profile)
        assert await store.delete_profile(profile.user_id) is True
        assert await store.get_profile(profile.user_id) is None


class TestRedisService:
    """Redis errors are logged and reported, never raised."""

    @pytest.fixture
    def broken_service(self):
        client = AsyncMock()
        error = redis.ConnectionError("redis is down")
        client.get.side_effect = error
        client.set.side_effect = error
        client.delete.side_effect = error
        client.ping.side_effect = error
        service = RedisService(redis_url="redis://localhost:6379/0")
        service._client = client
        return service

    @pytest.mark.asyncio
    async def test_errors_become_falsy_results(self, broken_service):
        assert await broken_service.get("k") is None
        assert await broken_service.set("k", "v") is False
        assert await broken_service.delete("k") is False
        assert await broken_service.ping() is False

    @pytest.mark.asyncio
    async def test_set_with_ttl(self):
        client = AsyncMock()
        client.set.return_value = True
        service = RedisService(redis_url="redis://localhost:6379/0")
        service._client = client

        assert await service.set("k", 1, ttl=60) is True
        client.set.assert_awaited_once_with("k", "1", ex=60)

    @pytest.mark.asyncio
    async def test_close(self):
        client = AsyncMock()
        service = RedisService(redis_url="redis://localhost:6379/0")
        service._client = client

        await service.close()

        client.aclose.assert_awaited_once()
        assert service._client is None
