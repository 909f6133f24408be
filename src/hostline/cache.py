"""Content-addressed TTL caches for synthesized audio and FAQ answers.

Entries live in process memory or, when configured, in Redis.  A cache never
fails the request that consults it: backend errors are logged and treated as
a miss (or a dropped write).
"""

import hashlib
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from redis.asyncio import Redis

from hostline.intent import normalize_text

logger = logging.getLogger(__name__)


def fingerprint(namespace: str, business_id: str, text: str, params: Optional[dict] = None) -> str:
    """Deterministic cache key over business, text and parameters.

    Parameters are encoded with sorted keys so dict ordering never changes
    the key, while any differing value does.
    """
    payload = json.dumps(
        {
            "ns": namespace,
            "business": str(business_id),
            "text": text,
            "params": params or {},
        },
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{namespace}:{digest}"


@dataclass
class CacheEntry:
    key: str
    value: Any
    created_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[CacheEntry]: ...

    async def set(self, entry: CacheEntry) -> None: ...


class MemoryCacheBackend:
    """In-process backend. Per-key writes are atomic on the event loop."""

    def __init__(self, max_entries: int = 10_000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry

    async def set(self, entry: CacheEntry) -> None:
        if len(self._entries) >= self.max_entries and entry.key not in self._entries:
            self._evict()
        self._entries[entry.key] = entry

    def _evict(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.expired(now)]:
            del self._entries[key]
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries.values(), key=lambda e: e.created_at)
            del self._entries[oldest.key]

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheBackend:
    """Backend shared by every worker process.

    Entries are stored as JSON with ``SET ... EX ttl`` so Redis expires them;
    cached values must be JSON-serializable.  Connection errors propagate to
    TTLCache, which treats them as a miss.
    """

    def __init__(self, client: Redis, prefix: str = "hostline"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 0.5, prefix: str = "hostline") -> "RedisCacheBackend":
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client, prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[CacheEntry]:
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        data = json.loads(raw)
        return CacheEntry(key=key, value=data["value"], created_at=data["created_at"], ttl=data["ttl"])

    async def set(self, entry: CacheEntry) -> None:
        payload = json.dumps(
            {"value": entry.value, "created_at": entry.created_at, "ttl": entry.ttl},
            ensure_ascii=False,
        )
        await self.client.set(self._key(entry.key), payload, ex=max(1, math.ceil(entry.ttl)))


class TTLCache:
    """Failure-tolerant wrapper around a backend with a default TTL."""

    namespace = "cache"

    def __init__(
        self,
        default_ttl: float,
        backend: Optional[CacheBackend] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self.backend = backend if backend is not None else MemoryCacheBackend(clock=clock)

    async def get(self, key: str) -> Any:
        try:
            entry = await self.backend.get(key)
        except Exception as e:
            logger.warning("%s cache read failed for %s: %s", self.namespace, key[:24], e)
            return None
        return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=ttl if ttl is not None else self.default_ttl,
        )
        try:
            await self.backend.set(entry)
        except Exception as e:
            logger.warning("%s cache write failed for %s: %s", self.namespace, key[:24], e)


class AudioCache(TTLCache):
    namespace = "audio"

    def key_for(self, business_id: str, text: str, voice_params: dict) -> str:
        return fingerprint(self.namespace, business_id, text, voice_params)


class FAQCache(TTLCache):
    namespace = "faq"

    def key_for(self, business_id: str, utterance: str) -> str:
        return fingerprint(self.namespace, business_id, normalize_text(utterance))
