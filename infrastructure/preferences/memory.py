"""进程内偏好存储（默认实现，测试与单实例部署使用）"""
from typing import Optional


class InMemoryPreferenceStore:
    """Dictionary-backed ``PreferenceStore``."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        self._data.clear()
