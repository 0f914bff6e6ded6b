"""Value objects shared by every company-scope component."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, NewType

if TYPE_CHECKING:
    from starlette.requests import Request

TenantKey = NewType("TenantKey", str)
TenantId = NewType("TenantId", uuid.UUID)

DEFAULT_COMPANY_KEY = TenantKey("DEFAULT")


def normalize_key(raw: str) -> TenantKey:
    """Canonicalize a candidate company name for cache lookup.

    Keys compare case-insensitively, so ``"acme"``, ``"Acme"`` and
    ``"ACME"`` all map to ``TenantKey("ACME")``.
    """
    return TenantKey(raw.strip().upper())


@dataclass(frozen=True)
class Tenant:
    """Resolved company record.

    A read-only copy of what the authoritative store returned; the
    directory caches it, it never owns it.

    Attributes:
        id: Opaque identifier used to filter tenant-owned rows.
        key: Normalized key the record was resolved from.
        name: Optional display name.
    """

    id: TenantId
    key: TenantKey
    name: str | None = None


class ResolutionFailure(StrEnum):
    NO_KEY = "no_key"
    INVALID_KEY_FORMAT = "invalid_key_format"
    TENANT_NOT_FOUND = "tenant_not_found"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a single request.

    Exactly one of ``tenant`` and ``failure`` is set.
    """

    tenant: Tenant | None = None
    failure: ResolutionFailure | None = None
    raw_key: str | None = None
    source: Literal["matcher", "bootstrap"] | None = None

    def __post_init__(self) -> None:
        if (self.tenant is None) == (self.failure is None):
            raise ValueError("Resolution needs exactly one of tenant or failure")

    @property
    def resolved(self) -> bool:
        return self.tenant is not None

    @classmethod
    def success(
        cls,
        tenant: Tenant,
        *,
        raw_key: str | None,
        source: Literal["matcher", "bootstrap"] = "matcher",
    ) -> Resolution:
        return cls(tenant=tenant, raw_key=raw_key, source=source)

    @classmethod
    def failed(cls, failure: ResolutionFailure, *, raw_key: str | None) -> Resolution:
        return cls(failure=failure, raw_key=raw_key)


@dataclass(frozen=True)
class RequestMetadata:
    """The parts of an inbound request a matcher may inspect."""

    host: str
    path: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @classmethod
    def from_request(cls, request: Request) -> RequestMetadata:
        host = request.headers.get("host") or request.url.hostname or ""
        return cls(
            host=host,
            path=request.url.path,
            headers=dict(request.headers),
        )
