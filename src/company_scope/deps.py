"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Depends, Request

from company_scope.guard import current_company, current_tenant
from company_scope.models import Tenant, TenantId
from company_scope.scope import RequestScope, unbind

__all__ = ["get_company_scope", "get_current_company", "get_current_company_id"]


async def get_company_scope(request: Request) -> RequestScope:
    """Return the RequestScope bound by CompanyScopeMiddleware.

    A request that bypassed the middleware gets a cleared scope, so any
    guard check fails closed instead of running unscoped.
    """
    scope = getattr(request.state, "company_scope", None)
    if isinstance(scope, RequestScope):
        return scope
    scope = RequestScope()
    unbind(scope)
    return scope


_scope_dep = Depends(get_company_scope)


async def get_current_company_id(scope: RequestScope = _scope_dep) -> TenantId:
    """Bound company id for the request.

    Raises:
        CompanyAccessViolationError: no company bound.
    """
    return current_tenant(scope)


async def get_current_company(scope: RequestScope = _scope_dep) -> Tenant:
    """Bound company record for the request."""
    return current_company(scope)
