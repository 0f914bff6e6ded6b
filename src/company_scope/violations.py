"""Turning access violations and store failures into HTTP responses."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from company_scope.errors import CompanyAccessViolationError, TenantStoreError

logger = structlog.get_logger()

ViolationHandler = Callable[
    [Request, CompanyAccessViolationError], Response | Awaitable[Response]
]


def _reason(exc: CompanyAccessViolationError) -> str:
    return exc.failure.value if exc.failure is not None else "no_request_scope"


class RedirectViolationHandler:
    """Redirect to a fixed "unknown company" page."""

    def __init__(
        self, location: str = "/wrong-company", status_code: int = 303
    ) -> None:
        self.location = location
        self.status_code = status_code

    def __call__(
        self, request: Request, exc: CompanyAccessViolationError
    ) -> Response:
        logger.info(
            "company_access_violation",
            path=request.url.path,
            reason=_reason(exc),
            redirect_to=self.location,
        )
        return RedirectResponse(self.location, status_code=self.status_code)


class JSONViolationHandler:
    """Respond with a JSON error body; 404 hides whether the company exists."""

    def __init__(self, status_code: int = 404) -> None:
        self.status_code = status_code

    def __call__(
        self, request: Request, exc: CompanyAccessViolationError
    ) -> Response:
        logger.info(
            "company_access_violation",
            path=request.url.path,
            reason=_reason(exc),
        )
        return JSONResponse(
            status_code=self.status_code,
            content={"detail": "Unknown company", "reason": _reason(exc)},
        )


def store_unavailable_response(request: Request, exc: TenantStoreError) -> Response:
    """Default response when the company store cannot be reached."""
    logger.error(
        "company_store_unavailable",
        path=request.url.path,
        company_key=exc.key,
        error=exc.reason,
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Company directory temporarily unavailable"},
        headers={"Retry-After": "5"},
    )
