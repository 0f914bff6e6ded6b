"""SQLAlchemy-backed company store and models."""

from company_scope.storage.orm import Base, Company, CompanyOwnedMixin
from company_scope.storage.store import SqlAlchemyTenantStore

__all__ = ["Base", "Company", "CompanyOwnedMixin", "SqlAlchemyTenantStore"]
