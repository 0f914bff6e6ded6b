"""Fail-closed access checks for company-scoped data.

Every data-access path that must be filtered by company goes through
current_tenant() or one of the query helpers built on it. None of these
functions perform I/O; they only read the already-bound RequestScope.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.sql.elements import ColumnElement

from company_scope.errors import CompanyAccessViolationError
from company_scope.models import Tenant, TenantId
from company_scope.scope import RequestScope


def current_company(scope: RequestScope) -> Tenant:
    """Return the bound company record.

    Raises:
        CompanyAccessViolationError: no company is bound to ``scope``.
    """
    tenant = scope.tenant
    if tenant is None or not scope.is_bound:
        raise CompanyAccessViolationError(scope.failure)
    return tenant


def current_tenant(scope: RequestScope) -> TenantId:
    """Return the bound company id or raise CompanyAccessViolationError."""
    return current_company(scope).id


def company_filter(scope: RequestScope, column: Any) -> ColumnElement[bool]:
    """SQLAlchemy criterion restricting ``column`` to the bound company."""
    criterion: ColumnElement[bool] = column == current_tenant(scope)
    return criterion


def scoped_select(model: Any, scope: RequestScope) -> Select[Any]:
    """``select(model)`` filtered by ``model.company_id``.

    Usage::

        stmt = scoped_select(Invoice, scope).where(Invoice.paid.is_(False))
        rows = (await session.execute(stmt)).scalars().all()
    """
    return select(model).where(company_filter(scope, model.company_id))
