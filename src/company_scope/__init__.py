"""Request-scoped company (tenant) resolution for multi-company applications."""

from company_scope.directory import DirectoryStats, TenantDirectory
from company_scope.errors import (
    CompanyAccessViolationError,
    CompanyScopeError,
    InvalidKeyFormatError,
    ScopeStateError,
    TenantNotFoundError,
    TenantStoreError,
)
from company_scope.guard import (
    company_filter,
    current_company,
    current_tenant,
    scoped_select,
)
from company_scope.logging_config import configure_logging
from company_scope.matchers import DomainMatcher, HeaderMatcher, SubdomainMatcher
from company_scope.models import (
    DEFAULT_COMPANY_KEY,
    RequestMetadata,
    Resolution,
    ResolutionFailure,
    Tenant,
    TenantId,
    TenantKey,
    normalize_key,
)
from company_scope.resolver import TenantResolver, validate_key
from company_scope.scope import (
    RequestScope,
    ScopeState,
    awith_scope,
    bind,
    bound,
    unbind,
    with_scope,
)
from company_scope.store import InMemoryTenantStore, TenantStore

__all__ = [
    "DEFAULT_COMPANY_KEY",
    "CompanyAccessViolationError",
    "CompanyScopeError",
    "DirectoryStats",
    "DomainMatcher",
    "HeaderMatcher",
    "InMemoryTenantStore",
    "InvalidKeyFormatError",
    "RequestMetadata",
    "RequestScope",
    "Resolution",
    "ResolutionFailure",
    "ScopeState",
    "ScopeStateError",
    "SubdomainMatcher",
    "Tenant",
    "TenantDirectory",
    "TenantId",
    "TenantKey",
    "TenantNotFoundError",
    "TenantResolver",
    "TenantStore",
    "TenantStoreError",
    "awith_scope",
    "bind",
    "bound",
    "company_filter",
    "configure_logging",
    "current_company",
    "current_tenant",
    "normalize_key",
    "scoped_select",
    "unbind",
    "validate_key",
    "with_scope",
]
