import pytest

from core.config import RedisSettings
from infrastructure.preferences import (
    InMemoryPreferenceStore,
    RedisPreferenceStore,
    create_preference_store,
)


class DictRedis:
    """Minimal async stand-in for the three redis commands the store uses."""

    def __init__(self):
        self.data = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def delete(self, key):
        return int(self.data.pop(key, None) is not None)

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_in_memory_store_round_trip():
    store = InMemoryPreferenceStore()
    assert await store.get("k") is None
    await store.set("k", "v")
    assert await store.get("k") == "v"
    await store.delete("k")
    await store.delete("k")
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_redis_store_namespaces_keys():
    client = DictRedis()
    store = RedisPreferenceStore(client, namespace="media-libraries:")

    await store.set("media_libraries:api_keys:r2", "acc:key:secret:bucket")

    assert client.data == {"media-libraries:media_libraries:api_keys:r2": "acc:key:secret:bucket"}
    assert await store.get("media_libraries:api_keys:r2") == "acc:key:secret:bucket"
    await store.delete("media_libraries:api_keys:r2")
    assert client.data == {}
    await store.close()
    assert client.closed


@pytest.mark.asyncio
async def test_redis_store_decodes_bytes():
    client = DictRedis()
    client.data["k"] = b"value"
    assert await RedisPreferenceStore(client).get("k") == "value"


def test_factory_selects_backend():
    assert isinstance(create_preference_store(RedisSettings()), InMemoryPreferenceStore)
    store = create_preference_store(RedisSettings(url="redis://localhost:6379/0", namespace="ml"))
    assert isinstance(store, RedisPreferenceStore)
