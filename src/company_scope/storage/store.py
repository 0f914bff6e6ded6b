"""Authoritative company store backed by SQLAlchemy."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from company_scope.models import Tenant, TenantId, TenantKey
from company_scope.storage.orm import Company


class SqlAlchemyTenantStore:
    """Look up active companies by normalized name.

    Each lookup opens its own short-lived session. Database errors
    propagate; TenantDirectory reports them as TenantStoreError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_key(self, key: TenantKey) -> Tenant | None:
        stmt = select(Company).where(
            Company.company_name == key,
            Company.is_active.is_(True),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            company = result.scalar_one_or_none()

        if company is None:
            return None
        return Tenant(
            id=TenantId(company.id),
            key=TenantKey(company.company_name),
            name=company.display_name,
        )
