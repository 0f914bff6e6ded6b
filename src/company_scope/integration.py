"""Wiring company scoping into a FastAPI/Starlette application."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from starlette.applications import Starlette

from company_scope.config import Settings, get_settings
from company_scope.directory import TenantDirectory
from company_scope.errors import CompanyAccessViolationError, TenantStoreError
from company_scope.matchers import DomainMatcher, build_matcher
from company_scope.middleware import CompanyScopeMiddleware, StoreErrorHandler
from company_scope.models import normalize_key
from company_scope.resolver import TenantResolver
from company_scope.store import TenantStore
from company_scope.violations import (
    RedirectViolationHandler,
    ViolationHandler,
    store_unavailable_response,
)

logger = structlog.get_logger()


def install_company_scope(
    app: Starlette,
    *,
    store: TenantStore,
    settings: Settings | None = None,
    matcher: DomainMatcher | None = None,
    violation_handler: ViolationHandler | None = None,
    on_store_error: StoreErrorHandler = store_unavailable_response,
) -> TenantDirectory | None:
    """Add the middleware and violation handler to ``app``.

    Does nothing when ``settings.enabled`` is false; scoped endpoints
    then fail closed because no company is ever bound.

    The directory sweeps expired entries on its own miss path, so
    company_scope_lifespan is optional: it only preloads the default
    company and sweeps idle caches on a timer.

    Returns:
        The TenantDirectory shared by all requests, or None if disabled.
    """
    settings = settings or get_settings()
    if not settings.enabled:
        logger.info("company_scope_disabled")
        return None

    directory = TenantDirectory(
        store,
        ttl_seconds=settings.cache_ttl_seconds,
        not_found_ttl_seconds=settings.not_found_ttl_seconds,
        default_key=normalize_key(settings.default_company_key),
    )
    resolver = TenantResolver(
        directory,
        matcher or build_matcher(settings),
        bootstrap_mode=settings.bootstrap_mode,
    )

    app.add_middleware(
        CompanyScopeMiddleware,
        resolver=resolver,
        exempt_paths=settings.exempt_paths,
        on_store_error=on_store_error,
    )
    handler = violation_handler or RedirectViolationHandler(settings.wrong_company_path)
    app.add_exception_handler(
        CompanyAccessViolationError,
        handler,  # type: ignore[arg-type]
    )

    app.state.company_settings = settings
    app.state.company_directory = directory
    app.state.company_resolver = resolver
    logger.info(
        "company_scope_installed",
        matcher=type(resolver.matcher).__name__,
        bootstrap_mode=settings.bootstrap_mode,
    )
    return directory


async def _purge_loop(directory: TenantDirectory, interval: float) -> None:
    """Periodic removal of expired directory entries."""
    while True:
        await asyncio.sleep(interval)
        try:
            purged = directory.purge_expired()
            if purged:
                logger.debug("company_cache_purged", entries_removed=purged)
        except Exception:
            logger.exception("company_cache_purge_error")


@asynccontextmanager
async def company_scope_lifespan(app: Starlette) -> AsyncGenerator[None]:
    """Preload the default company and run the cache purge loop.

    Startup:
        - In bootstrap mode, load the default company. A store failure
          is logged; the default is then loaded on first use.
        - Start the expired-entry purge loop.
    Shutdown:
        - Cancel the purge loop.
    """
    directory: TenantDirectory | None = getattr(app.state, "company_directory", None)
    if directory is None:
        yield
        return

    settings: Settings = app.state.company_settings
    if settings.bootstrap_mode:
        try:
            await directory.load_default()
        except TenantStoreError as exc:
            logger.warning("default_company_preload_failed", error=exc.reason)

    purge_task = asyncio.create_task(
        _purge_loop(directory, settings.cache_purge_interval_seconds)
    )
    try:
        yield
    finally:
        purge_task.cancel()
