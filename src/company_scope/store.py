"""Authoritative company store contract and an in-memory implementation."""

from __future__ import annotations

import uuid
from threading import Lock
from typing import Protocol

from company_scope.models import Tenant, TenantId, TenantKey, normalize_key


class TenantStore(Protocol):
    """System of record for company existence.

    Supplied by the integrator at construction time. Implementations
    return None for an unknown key and raise for infrastructure failures.
    """

    async def find_by_key(self, key: TenantKey) -> Tenant | None: ...


class InMemoryTenantStore:
    """Dict-backed store for bootstrap environments and tests.

    Thread-safe via Lock. ``queries`` counts lookups so callers can
    verify cache behaviour.
    """

    def __init__(self, tenants: list[Tenant] | None = None) -> None:
        self._tenants: dict[TenantKey, Tenant] = {}
        self._lock = Lock()
        self.queries = 0
        for tenant in tenants or []:
            self._tenants[tenant.key] = tenant

    def add(
        self,
        name: str,
        *,
        tenant_id: uuid.UUID | None = None,
    ) -> Tenant:
        """Register a company under its normalized key and return it."""
        key = normalize_key(name)
        tenant = Tenant(id=TenantId(tenant_id or uuid.uuid4()), key=key, name=name)
        with self._lock:
            self._tenants[key] = tenant
        return tenant

    def remove(self, name: str) -> None:
        with self._lock:
            self._tenants.pop(normalize_key(name), None)

    async def find_by_key(self, key: TenantKey) -> Tenant | None:
        with self._lock:
            self.queries += 1
            return self._tenants.get(key)
