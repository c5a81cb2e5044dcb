"""Preference store factory."""
from typing import Optional

from redis import asyncio as aioredis

from application.ports.media_library import PreferenceStore
from core.config import RedisSettings, settings
from core.logging_config import get_logger
from .memory import InMemoryPreferenceStore
from .redis_store import RedisPreferenceStore

logger = get_logger(__name__)


def create_preference_store(redis_settings: Optional[RedisSettings] = None) -> PreferenceStore:
    """Redis when ``REDIS__URL`` is configured, otherwise in-process memory."""
    redis_settings = redis_settings or settings.redis
    if not redis_settings.url:
        logger.info("preference_store_created", backend="memory")
        return InMemoryPreferenceStore()

    client = aioredis.from_url(redis_settings.url, decode_responses=True)
    logger.info("preference_store_created", backend="redis", namespace=redis_settings.namespace)
    return RedisPreferenceStore(client, namespace=redis_settings.namespace)
