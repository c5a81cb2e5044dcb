"""Preference store implementations (remembered API keys and logins)."""
from .memory import InMemoryPreferenceStore
from .redis_store import RedisPreferenceStore
from .factory import create_preference_store

__all__ = ["InMemoryPreferenceStore", "RedisPreferenceStore", "create_preference_store"]
