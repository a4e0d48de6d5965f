"""Key-value session stores with a fixed expiry on every write."""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Protocol, Tuple

import redis
from redis import Redis
from redis.exceptions import RedisError

from config.settings import Settings
from observability import log_event

logger = logging.getLogger(__name__)

TEAM_PREFIX = "team"
DIAGNOSTIC_PREFIX = "diagnostic"


class SessionStoreError(RuntimeError):
    pass


class SessionStore(Protocol):
    """``get`` returns ``None`` for an absent key and raises ``SessionStoreError`` when the backend cannot be read."""

    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None: ...


def session_key(prefix: str, session_id: str) -> str:
    return f"{prefix}:{session_id}"


class NullSessionStore:
    """Development mode: nothing survives the current request."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return None

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        logger.info("[DEV] Would save session %s (ttl=%ss)", key, ttl_seconds)


class InMemorySessionStore:
    """Process-local store honoring expiry, for tests and single-process runs."""

    def __init__(self, clock=time.time) -> None:
        self._clock = clock
        self._items: Dict[str, Tuple[float, str]] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._guard:
            entry = self._items.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if self._clock() >= expires_at:
                del self._items[key]
                return None
        return json.loads(raw)

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        raw = json.dumps(value, ensure_ascii=False)
        with self._guard:
            self._items[key] = (self._clock() + ttl_seconds, raw)


class RedisSessionStore:
    """JSON values in Redis; backend failures degrade instead of failing the request."""

    def __init__(self, redis_url: Optional[str] = None, *, client: Optional[Redis] = None) -> None:
        self._redis_url = redis_url
        self._redis: Optional[Redis] = client

    def _get_redis(self) -> Optional[Redis]:
        if self._redis is None and self._redis_url:
            try:
                self._redis = redis.from_url(self._redis_url, decode_responses=True)  # type: ignore[call-overload]
            except RedisError as exc:  # pragma: no cover - network guarded
                logger.warning("Redis connection failed: %s", exc)
                self._redis = None
        return self._redis

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        client = self._get_redis()
        if client is None:
            return None
        try:
            raw = client.get(key)
        except RedisError as exc:
            logger.warning("Redis get failed for %s: %s", key, exc)
            log_event("store_degraded", key, reason="get")
            raise SessionStoreError(f"session store unavailable for {key}") from exc
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable session %s: %s", key, exc)
            return None
        return data if isinstance(data, dict) else None

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        client = self._get_redis()
        if client is None:
            logger.info("[DEV] Would save session %s (ttl=%ss)", key, ttl_seconds)
            return
        try:
            client.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("Redis set failed for %s: %s", key, exc)
            log_event("store_degraded", key, reason="set")


def build_session_store(cfg: Settings) -> SessionStore:
    backend = cfg.SESSION_BACKEND
    if backend == "auto":
        backend = "redis" if cfg.REDIS_URL else "none"
    if backend == "redis":
        if not cfg.REDIS_URL:
            raise SessionStoreError("SESSION_BACKEND=redis requires REDIS_URL")
        return RedisSessionStore(cfg.REDIS_URL)
    if backend == "memory":
        return InMemorySessionStore()
    return NullSessionStore()


__all__ = [
    "DIAGNOSTIC_PREFIX",
    "InMemorySessionStore",
    "NullSessionStore",
    "RedisSessionStore",
    "SessionStore",
    "SessionStoreError",
    "TEAM_PREFIX",
    "build_session_store",
    "session_key",
]
