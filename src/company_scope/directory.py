"""Keyed, concurrency-safe cache in front of the authoritative company store."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from threading import Lock

import structlog

from company_scope.errors import TenantNotFoundError, TenantStoreError
from company_scope.models import DEFAULT_COMPANY_KEY, Tenant, TenantKey
from company_scope.store import TenantStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class _CacheEntry:
    # tenant=None is the cached not-found marker
    tenant: Tenant | None
    resolved_at: float


@dataclass
class _FillLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


@dataclass(frozen=True)
class DirectoryStats:
    hits: int
    misses: int
    size: int


class TenantDirectory:
    """Maps a TenantKey to a Tenant, caching the authoritative store.

    The cache is indexed by key, so concurrent requests for different
    companies never share a slot. Found entries live for ``ttl_seconds``,
    not-found entries for ``not_found_ttl_seconds``; a TTL of 0 disables
    caching for that kind of entry. Expired entries are swept on the miss
    path at most once per the shorter TTL, so the map stays bounded by
    the keys seen within one freshness window even without
    purge_expired().

    The entry map is guarded by a threading Lock that is never held
    across an await. Concurrent misses for the same key are coalesced
    through a per-key asyncio.Lock, so at most one store query per key is
    in flight; misses for different keys never wait on each other. A
    per-key lock is dropped as soon as no request holds or awaits it.

    The reserved default key is served from a dedicated slot with the
    found-entry TTL, independent of the keyed cache.
    """

    def __init__(
        self,
        store: TenantStore,
        *,
        ttl_seconds: float = 300.0,
        not_found_ttl_seconds: float = 60.0,
        default_key: TenantKey = DEFAULT_COMPANY_KEY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0 or not_found_ttl_seconds < 0:
            raise ValueError("Cache TTLs must be non-negative")
        self._store = store
        self._ttl = ttl_seconds
        self._not_found_ttl = not_found_ttl_seconds
        self._default_key = default_key
        self._clock = clock

        self._entries: dict[TenantKey, _CacheEntry] = {}
        self._fill_locks: dict[TenantKey, _FillLock] = {}
        self._default: _CacheEntry | None = None
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        # Bumped by invalidate()/clear(); fills started before are not stored.
        self._generation = 0
        self._sweep_interval = min(ttl_seconds, not_found_ttl_seconds)
        self._next_sweep = clock() + self._sweep_interval

    @property
    def default_key(self) -> TenantKey:
        return self._default_key

    @property
    def stats(self) -> DirectoryStats:
        with self._lock:
            return DirectoryStats(
                hits=self._hits, misses=self._misses, size=len(self._entries)
            )

    async def resolve(self, key: TenantKey) -> Tenant | None:
        """Return the company for ``key``, or None if it does not exist.

        Raises:
            TenantStoreError: the store failed; nothing is cached.
        """
        entry = self._live_entry(key)
        if entry is not None:
            return entry.tenant

        async with self._fill_lock(key):
            # Filled by a concurrent request while we waited.
            entry = self._live_entry(key)
            if entry is not None:
                return entry.tenant

            generation = self._generation
            tenant = await self._query_store(key)
            now = self._clock()
            with self._lock:
                if generation == self._generation:
                    self._entries[key] = _CacheEntry(tenant, now)
                if now >= self._next_sweep:
                    self._sweep_locked(now)
            return tenant

    async def get(self, key: TenantKey) -> Tenant:
        """Like resolve(), but raise TenantNotFoundError instead of None."""
        tenant = await self.resolve(key)
        if tenant is None:
            raise TenantNotFoundError(key)
        return tenant

    async def resolve_default(self) -> Tenant | None:
        """Return the default company, reloading it once its entry expires."""
        now = self._clock()
        with self._lock:
            entry = self._default
            if entry is not None and now - entry.resolved_at < self._ttl:
                self._hits += 1
                return entry.tenant
        return await self.load_default()

    async def load_default(self) -> Tenant | None:
        """Query the store for the default company.

        A missing default is not remembered, so a store populated after
        startup is picked up on the next call.
        """
        generation = self._generation
        tenant = await self._query_store(self._default_key)
        now = self._clock()
        with self._lock:
            if tenant is None:
                self._default = None
            elif generation == self._generation:
                self._default = _CacheEntry(tenant, now)

        if tenant is None:
            logger.warning("default_company_missing", company_key=self._default_key)
        else:
            logger.info(
                "default_company_loaded",
                company_key=self._default_key,
                company_id=str(tenant.id),
            )
        return tenant

    def invalidate(self, key: TenantKey) -> None:
        """Drop a single key, e.g. after a company was renamed.

        A lookup for any key already in flight returns its result but does
        not store it.
        """
        with self._lock:
            self._generation += 1
            self._entries.pop(key, None)
            if key == self._default_key:
                self._default = None

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
            self._default = None

    def purge_expired(self) -> int:
        """Remove expired entries now.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [
            key
            for key, entry in self._entries.items()
            if not self._is_live(entry, now)
        ]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("company_cache_swept", entries_removed=len(expired))
        return len(expired)

    def _is_live(self, entry: _CacheEntry, now: float) -> bool:
        ttl = self._ttl if entry.tenant is not None else self._not_found_ttl
        return now - entry.resolved_at < ttl

    def _live_entry(self, key: TenantKey) -> _CacheEntry | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not self._is_live(entry, now):
                return None
            self._hits += 1
            return entry

    @asynccontextmanager
    async def _fill_lock(self, key: TenantKey) -> AsyncIterator[None]:
        with self._lock:
            slot = self._fill_locks.get(key)
            if slot is None:
                slot = self._fill_locks[key] = _FillLock()
            slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            with self._lock:
                slot.users -= 1
                if slot.users == 0:
                    del self._fill_locks[key]

    async def _query_store(self, key: TenantKey) -> Tenant | None:
        with self._lock:
            self._misses += 1
        try:
            tenant = await self._store.find_by_key(key)
        except TenantStoreError:
            raise
        except Exception as exc:
            logger.warning(
                "company_store_error",
                company_key=key,
                error=type(exc).__name__,
            )
            raise TenantStoreError(key, type(exc).__name__) from exc

        logger.debug(
            "company_store_queried",
            company_key=key,
            found=tenant is not None,
        )
        return tenant
