"""Domain-specific exceptions for company-scope."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from company_scope.models import ResolutionFailure, TenantKey


class CompanyScopeError(Exception):
    """Base class for all company-scope errors."""


class InvalidKeyFormatError(CompanyScopeError):
    """Candidate company name contains characters outside [A-Za-z0-9]."""

    def __init__(self, raw_key: str) -> None:
        self.raw_key = raw_key
        super().__init__(f"Invalid company key format: {raw_key!r}")


class TenantNotFoundError(CompanyScopeError):
    """Well-formed key with no matching company."""

    def __init__(self, key: TenantKey) -> None:
        self.key = key
        super().__init__(f"Company not found: {key}")


class TenantStoreError(CompanyScopeError):
    """Authoritative store failed while resolving a key.

    Transient by nature. Never cached and never reported as not-found,
    so an outage cannot masquerade as a missing company.
    """

    def __init__(self, key: TenantKey, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Company store unavailable for {key}: {reason}")


class CompanyAccessViolationError(CompanyScopeError):
    """Company-scoped access attempted with no company bound.

    ``failure`` is the resolution failure recorded for the request, or
    None when scoped code ran outside any bound request.
    """

    def __init__(self, failure: ResolutionFailure | None = None) -> None:
        self._failure = failure
        reason = failure.value if failure is not None else "no_request_scope"
        super().__init__(f"No company bound to the current request ({reason})")

    @property
    def failure(self) -> ResolutionFailure | None:
        return self._failure


class ScopeStateError(CompanyScopeError):
    """RequestScope used out of order (double bind, bind after clear)."""
