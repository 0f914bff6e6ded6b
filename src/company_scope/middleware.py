"""HTTP middleware that resolves and binds the company for each request."""

from collections.abc import Callable, Iterable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from company_scope.errors import TenantStoreError
from company_scope.models import RequestMetadata
from company_scope.resolver import TenantResolver
from company_scope.scope import RequestScope, bound
from company_scope.violations import store_unavailable_response

logger = structlog.get_logger()

StoreErrorHandler = Callable[[Request, TenantStoreError], Response]


class CompanyScopeMiddleware(BaseHTTPMiddleware):
    """Resolve the company, bind it for the request, always clear it.

    A fresh RequestScope is stored on ``request.state.company_scope`` for
    every request. Exempt paths get an empty scope without a directory
    lookup. The scope is cleared once the downstream handler has produced
    its response, whether it returned or raised.
    """

    SKIP_PATHS: frozenset[str] = frozenset(
        {"/health", "/docs", "/openapi.json", "/redoc"}
    )

    def __init__(
        self,
        app: ASGIApp,
        resolver: TenantResolver,
        *,
        exempt_paths: Iterable[str] | None = None,
        on_store_error: StoreErrorHandler = store_unavailable_response,
    ) -> None:
        super().__init__(app)
        self.resolver = resolver
        self.exempt_paths = (
            frozenset(exempt_paths) if exempt_paths is not None else self.SKIP_PATHS
        )
        self.on_store_error = on_store_error

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Resolve, bind, run the handler, unbind."""
        scope = RequestScope()
        request.state.company_scope = scope

        if request.url.path in self.exempt_paths:
            with bound(scope, None):
                return await call_next(request)

        try:
            resolution = await self.resolver.resolve(
                RequestMetadata.from_request(request)
            )
        except TenantStoreError as exc:
            with bound(scope, None):
                return self.on_store_error(request, exc)

        log_context: dict[str, str] = {}
        if resolution.tenant is not None:
            log_context["company_key"] = resolution.tenant.key
            log_context["company_id"] = str(resolution.tenant.id)
        elif resolution.failure is not None:
            log_context["company_failure"] = resolution.failure.value

        with bound(scope, resolution), structlog.contextvars.bound_contextvars(
            **log_context
        ):
            return await call_next(request)
