"""
Key-value store backends for the status registry.

The registry only needs a handful of Redis verbs over three keys. The
``StatusStore`` protocol names exactly those verbs so the registry can run
against a real Redis server or against an in-process stand-in.

Manifesto:
    The store is the sole owner of worker state. Backends translate verbs
    and failures, nothing else: no caching, no retries, no fallbacks.

    - **Protocol-based:** StatusStore defines the contract
    - **Tier-aware:** InMemoryStatusStore for tests and dry runs, RedisStatusStore for clusters
    - **Typed failures:** Every driver error becomes StoreUnavailableError
    - **Atomic where Redis is:** Multi-key DEL and compare-and-delete are single requests

Architecture:
    ::

        StatusStore (Protocol)
        ├── InMemoryStatusStore  — single process, lock-guarded dicts
        └── RedisStatusStore     — redis-py client, shared by every host

        hash:   hset / hgetall / hkeys / hdel
        string: set / get
        set:    sadd / srem / smembers
        any:    delete(*keys) → count
                delete_if_equals(key, value) → bool

Examples:
    >>> from resque_status.store import InMemoryStatusStore
    >>> store = InMemoryStatusStore()
    >>> store.hset("ResqueWorker", "30677", "{}")
    >>> store.hkeys("ResqueWorker")
    ['30677']
    >>> store.delete("ResqueWorker")
    1

Guardrails:
    ❌ DON'T: Use InMemoryStatusStore across processes (nothing is shared)
    ✅ DO: Point every process of a cluster at the same Redis database

Tags:
    redis, key-value, store, protocol, in-memory, resque-status

Doc-Types:
    - API Reference
    - Infrastructure Guide
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Protocol, TypeVar

import redis

from .errors import StoreUnavailableError
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# GET, compare, DEL in one server-side step
_DELETE_IF_EQUALS_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class StatusStore(Protocol):
    """Protocol for the key-value store behind a StatusRegistry.

    Values are opaque strings. Every method is a single store request and
    raises :class:`~resque_status.errors.StoreUnavailableError` when the
    request fails.
    """

    def hset(self, key: str, field: str, value: str) -> None:
        """Write or overwrite one hash field."""
        ...

    def hgetall(self, key: str) -> dict[str, str]:
        """Return every field of a hash (``{}`` when missing)."""
        ...

    def hkeys(self, key: str) -> list[str]:
        """Return the field names of a hash (``[]`` when missing)."""
        ...

    def hdel(self, key: str, field: str) -> int:
        """Delete one hash field; returns the number removed."""
        ...

    def set(self, key: str, value: str) -> None:
        """Write or overwrite a string key."""
        ...

    def get(self, key: str) -> str | None:
        """Read a string key (``None`` when missing)."""
        ...

    def delete(self, *keys: str) -> int:
        """Delete whole keys in one request; returns how many existed."""
        ...

    def delete_if_equals(self, key: str, value: str) -> bool:
        """Delete a string key only if it still holds *value*."""
        ...

    def sadd(self, key: str, member: str) -> int:
        """Add a set member; returns 1 if it was new."""
        ...

    def srem(self, key: str, member: str) -> int:
        """Remove a set member; returns 1 if it was present."""
        ...

    def smembers(self, key: str) -> set[str]:
        """Return every member of a set (empty when missing)."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Store (Tier 1)
# ------------------------------------------------------------------ #


class InMemoryStatusStore:
    """Lock-guarded in-process store with Redis key semantics.

    A key holds one type at a time, and hashes or sets that lose their last
    field/member disappear, as they do in Redis.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hashes: dict[str, dict[str, str]] = {}
        self._strings: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}

    def _drop(self, key: str) -> bool:
        found = False
        for table in (self._hashes, self._strings, self._sets):
            if table.pop(key, None) is not None:
                found = True
        return found

    # ── hash ─────────────────────────────────────────────────────

    def hset(self, key: str, field: str, value: str) -> None:
        with self._lock:
            if key not in self._hashes:
                self._drop(key)
            self._hashes.setdefault(key, {})[field] = value

    def hgetall(self, key: str) -> dict[str, str]:
        with self._lock:
            return dict(self._hashes.get(key, {}))

    def hkeys(self, key: str) -> list[str]:
        with self._lock:
            return list(self._hashes.get(key, {}))

    def hdel(self, key: str, field: str) -> int:
        with self._lock:
            table = self._hashes.get(key)
            if table is None or field not in table:
                return 0
            del table[field]
            if not table:
                del self._hashes[key]
            return 1

    # ── string ───────────────────────────────────────────────────

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._drop(key)
            self._strings[key] = value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._strings.get(key)

    # ── any ──────────────────────────────────────────────────────

    def delete(self, *keys: str) -> int:
        with self._lock:
            return sum(1 for key in keys if self._drop(key))

    def delete_if_equals(self, key: str, value: str) -> bool:
        with self._lock:
            if self._strings.get(key) != value:
                return False
            del self._strings[key]
            return True

    # ── set ──────────────────────────────────────────────────────

    def sadd(self, key: str, member: str) -> int:
        with self._lock:
            if key not in self._sets:
                self._drop(key)
            members = self._sets.setdefault(key, set())
            if member in members:
                return 0
            members.add(member)
            return 1

    def srem(self, key: str, member: str) -> int:
        with self._lock:
            members = self._sets.get(key)
            if members is None or member not in members:
                return 0
            members.discard(member)
            if not members:
                del self._sets[key]
            return 1

    def smembers(self, key: str) -> set[str]:
        with self._lock:
            return set(self._sets.get(key, set()))


# ------------------------------------------------------------------ #
# Redis Store (Tier 2/3)
# ------------------------------------------------------------------ #


class RedisStatusStore:
    """Redis-backed store shared by every process of a cluster.

    The client must return ``str`` values (``decode_responses=True``);
    :meth:`from_url` builds one that does.

    Example:
        store = RedisStatusStore.from_url("redis://localhost:6379/0")
        registry = StatusRegistry(store)

    Raises:
        StoreUnavailableError: From every method, when Redis cannot be
            reached or answers with an error.
    """

    def __init__(self, client: redis.Redis):
        self._client = client
        self._delete_if_equals = client.register_script(_DELETE_IF_EQUALS_LUA)

    @classmethod
    def from_url(
        cls,
        url: str = "redis://localhost:6379/0",
        *,
        socket_timeout: float | None = 5.0,
        **kwargs: Any,
    ) -> RedisStatusStore:
        """Connect to the Redis server at *url*.

        Args:
            url: Redis connection URL (``redis://host:port/db``).
            socket_timeout: Seconds before a request is abandoned.
            **kwargs: Passed through to :func:`redis.from_url`.
        """
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            **kwargs,
        )
        return cls(client)

    @property
    def client(self) -> redis.Redis:
        return self._client

    def _request(self, command: str, key: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except redis.RedisError as exc:
            logger.error(
                "store_request_failed",
                command=command,
                key=key,
                error=str(exc),
            )
            raise StoreUnavailableError(
                f"Redis {command} {key} failed: {exc}", cause=exc
            ).with_context(key=key, command=command) from exc

    # ── hash ─────────────────────────────────────────────────────

    def hset(self, key: str, field: str, value: str) -> None:
        self._request("HSET", key, lambda: self._client.hset(key, field, value))

    def hgetall(self, key: str) -> dict[str, str]:
        return dict(self._request("HGETALL", key, lambda: self._client.hgetall(key)))

    def hkeys(self, key: str) -> list[str]:
        return list(self._request("HKEYS", key, lambda: self._client.hkeys(key)))

    def hdel(self, key: str, field: str) -> int:
        return int(self._request("HDEL", key, lambda: self._client.hdel(key, field)))

    # ── string ───────────────────────────────────────────────────

    def set(self, key: str, value: str) -> None:
        self._request("SET", key, lambda: self._client.set(key, value))

    def get(self, key: str) -> str | None:
        return self._request("GET", key, lambda: self._client.get(key))

    # ── any ──────────────────────────────────────────────────────

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._request("DEL", " ".join(keys), lambda: self._client.delete(*keys)))

    def delete_if_equals(self, key: str, value: str) -> bool:
        removed = self._request(
            "EVALSHA",
            key,
            lambda: self._delete_if_equals(keys=[key], args=[value]),
        )
        return int(removed) > 0

    # ── set ──────────────────────────────────────────────────────

    def sadd(self, key: str, member: str) -> int:
        return int(self._request("SADD", key, lambda: self._client.sadd(key, member)))

    def srem(self, key: str, member: str) -> int:
        return int(self._request("SREM", key, lambda: self._client.srem(key, member)))

    def smembers(self, key: str) -> set[str]:
        return set(self._request("SMEMBERS", key, lambda: self._client.smembers(key)))


__all__ = [
    "StatusStore",
    "InMemoryStatusStore",
    "RedisStatusStore",
]
