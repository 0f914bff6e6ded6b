"""Shared fixtures for integration tests requiring a live PostgreSQL."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker

from company_scope.config import get_settings
from company_scope.storage.database import create_engine
from company_scope.storage.orm import Base


@pytest.fixture()
async def db_connection() -> AsyncGenerator[AsyncConnection]:
    """Connection inside a transaction that is rolled back after the test.

    The schema is created inside the same transaction, so nothing
    survives the test.
    """
    engine = create_engine(get_settings())
    async with engine.connect() as conn:
        trans = await conn.begin()
        await conn.run_sync(Base.metadata.create_all)

        yield conn

        await trans.rollback()
    await engine.dispose()


@pytest.fixture()
def session_factory(
    db_connection: AsyncConnection,
) -> async_sessionmaker[AsyncSession]:
    """Session factory whose sessions join the test transaction."""
    return async_sessionmaker(
        bind=db_connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
