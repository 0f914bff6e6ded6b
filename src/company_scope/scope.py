"""Request-scoped company binding.

A RequestScope is created empty for each request, bound at most once
after successful resolution and cleared unconditionally when the request
ends. It is never shared between requests; every component that needs
the current company receives the scope explicitly.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from enum import StrEnum
from typing import TypeVar

from company_scope.errors import ScopeStateError
from company_scope.models import Resolution, ResolutionFailure, Tenant, TenantId

T = TypeVar("T")


class ScopeState(StrEnum):
    UNRESOLVED = "unresolved"
    BOUND = "bound"
    CLEARED = "cleared"


class RequestScope:
    """Holds at most one bound company for a single request."""

    __slots__ = ("_tenant", "_failure", "_state")

    def __init__(self) -> None:
        self._tenant: Tenant | None = None
        self._failure: ResolutionFailure | None = None
        self._state = ScopeState.UNRESOLVED

    @property
    def state(self) -> ScopeState:
        return self._state

    @property
    def tenant(self) -> Tenant | None:
        return self._tenant

    @property
    def tenant_id(self) -> TenantId | None:
        return self._tenant.id if self._tenant is not None else None

    @property
    def failure(self) -> ResolutionFailure | None:
        """Resolution failure recorded for this request, if any."""
        return self._failure

    @property
    def is_bound(self) -> bool:
        return self._state is ScopeState.BOUND

    def __repr__(self) -> str:
        return (
            f"RequestScope(state={self._state.value}, "
            f"tenant_id={self.tenant_id}, failure={self._failure})"
        )


def bind(scope: RequestScope, tenant: Tenant) -> None:
    """Attach ``tenant`` to an unresolved scope.

    Raises:
        ScopeStateError: the scope was already bound or cleared.
    """
    if scope._state is not ScopeState.UNRESOLVED:
        raise ScopeStateError(f"Cannot bind a scope in state {scope._state.value}")
    scope._tenant = tenant
    scope._state = ScopeState.BOUND


def record_failure(scope: RequestScope, failure: ResolutionFailure) -> None:
    """Remember why no company was bound, for the violation handler."""
    if scope._state is not ScopeState.UNRESOLVED:
        raise ScopeStateError(
            f"Cannot record a failure on a scope in state {scope._state.value}"
        )
    scope._failure = failure


def unbind(scope: RequestScope) -> None:
    """Clear the binding. Safe to call more than once."""
    scope._tenant = None
    scope._state = ScopeState.CLEARED


@contextmanager
def bound(
    scope: RequestScope, target: Tenant | Resolution | None
) -> Iterator[RequestScope]:
    """Bind ``target`` for the duration of the block, then always unbind.

    ``target`` may be a Tenant, a Resolution or None. A failed Resolution
    (or None) binds nothing; the scope stays empty so every guard check
    inside the block fails closed. The unbind runs on every exit path,
    including exceptions and task cancellation.
    """
    tenant = target.tenant if isinstance(target, Resolution) else target
    try:
        if tenant is not None:
            bind(scope, tenant)
        elif isinstance(target, Resolution) and target.failure is not None:
            record_failure(scope, target.failure)
        yield scope
    finally:
        unbind(scope)


def with_scope(
    scope: RequestScope,
    target: Tenant | Resolution | None,
    body: Callable[[], T],
) -> T:
    """Run ``body`` with ``target`` bound to ``scope`` and return its result."""
    with bound(scope, target):
        return body()


async def awith_scope(
    scope: RequestScope,
    target: Tenant | Resolution | None,
    body: Callable[[], Awaitable[T]],
) -> T:
    """Async variant of with_scope() for coroutine bodies."""
    with bound(scope, target):
        return await body()
