"""Unit test fixtures: an in-memory store and a directory in front of it."""

import pytest
from fakes import ACME_ID, DEFAULT_ID, GLOBEX_ID, FakeClock

from company_scope.directory import TenantDirectory
from company_scope.store import InMemoryTenantStore


@pytest.fixture()
def store() -> InMemoryTenantStore:
    s = InMemoryTenantStore()
    s.add("ACME", tenant_id=ACME_ID)
    s.add("GLOBEX", tenant_id=GLOBEX_ID)
    return s


@pytest.fixture()
def store_with_default(store: InMemoryTenantStore) -> InMemoryTenantStore:
    store.add("DEFAULT", tenant_id=DEFAULT_ID)
    return store


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def directory(store: InMemoryTenantStore, clock: FakeClock) -> TenantDirectory:
    return TenantDirectory(
        store, ttl_seconds=300.0, not_found_ttl_seconds=60.0, clock=clock
    )
