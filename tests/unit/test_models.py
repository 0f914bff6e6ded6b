"""Tests for company-scope value objects."""

import dataclasses
import uuid

import pytest

from company_scope.models import (
    RequestMetadata,
    Resolution,
    ResolutionFailure,
    Tenant,
    TenantId,
    TenantKey,
    normalize_key,
)

TENANT = Tenant(id=TenantId(uuid.uuid4()), key=TenantKey("ACME"))


class TestNormalizeKey:
    @pytest.mark.parametrize("raw", ["acme", "Acme", "ACME", " acme "])
    def test_case_insensitive(self, raw: str) -> None:
        assert normalize_key(raw) == "ACME"


class TestTenant:
    def test_is_immutable(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            TENANT.key = TenantKey("GLOBEX")  # type: ignore[misc]

    def test_equality_by_value(self) -> None:
        assert Tenant(id=TENANT.id, key=TenantKey("ACME")) == TENANT


class TestResolution:
    def test_success(self) -> None:
        resolution = Resolution.success(TENANT, raw_key="acme")
        assert resolution.resolved
        assert resolution.failure is None
        assert resolution.source == "matcher"

    def test_failed(self) -> None:
        resolution = Resolution.failed(ResolutionFailure.NO_KEY, raw_key=None)
        assert not resolution.resolved
        assert resolution.tenant is None

    def test_requires_exactly_one_outcome(self) -> None:
        with pytest.raises(ValueError):
            Resolution()
        with pytest.raises(ValueError):
            Resolution(tenant=TENANT, failure=ResolutionFailure.NO_KEY)

    def test_failures_are_distinguishable(self) -> None:
        assert len({f.value for f in ResolutionFailure}) == 3


class TestRequestMetadata:
    def test_header_lookup_is_case_insensitive(self) -> None:
        meta = RequestMetadata(host="a.example.com", headers={"X-Company": "acme"})
        assert meta.header("x-company") == "acme"
        assert meta.header("X-Missing") is None

    def test_defaults(self) -> None:
        meta = RequestMetadata(host="a.example.com")
        assert meta.path == "/"
        assert dict(meta.headers) == {}
