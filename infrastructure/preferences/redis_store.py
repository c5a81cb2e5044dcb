"""基于Redis的偏好存储实现"""
from __future__ import annotations

from typing import Optional

from redis import asyncio as aioredis


class RedisPreferenceStore:
    """``PreferenceStore`` backed by Redis string keys.

    Values never expire; remembered keys live until they are replaced or
    deleted.
    """

    def __init__(self, client: aioredis.Redis, namespace: str = "") -> None:
        self._client = client
        self._namespace = namespace.strip(":")

    def _format_key(self, key: str) -> str:
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(self._format_key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self._client.set(self._format_key(key), value)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._format_key(key))

    async def close(self) -> None:
        await self._client.aclose()
