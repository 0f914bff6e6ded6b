"""Tests for the request scope binding protocol."""

import asyncio
import uuid

import pytest

from company_scope.errors import CompanyAccessViolationError, ScopeStateError
from company_scope.guard import current_tenant
from company_scope.models import (
    Resolution,
    ResolutionFailure,
    Tenant,
    TenantId,
    TenantKey,
)
from company_scope.scope import (
    RequestScope,
    ScopeState,
    awith_scope,
    bind,
    bound,
    unbind,
    with_scope,
)


def _tenant(name: str = "ACME") -> Tenant:
    return Tenant(id=TenantId(uuid.uuid4()), key=TenantKey(name))


class TestRequestScope:
    def test_starts_unresolved(self) -> None:
        scope = RequestScope()
        assert scope.state is ScopeState.UNRESOLVED
        assert scope.tenant is None
        assert scope.tenant_id is None
        assert scope.failure is None
        assert not scope.is_bound

    def test_bind_sets_tenant(self) -> None:
        scope = RequestScope()
        tenant = _tenant()
        bind(scope, tenant)
        assert scope.is_bound
        assert scope.tenant_id == tenant.id

    def test_bind_twice_rejected(self) -> None:
        scope = RequestScope()
        bind(scope, _tenant())
        with pytest.raises(ScopeStateError):
            bind(scope, _tenant("GLOBEX"))

    def test_bind_after_clear_rejected(self) -> None:
        """There is no transition back from CLEARED."""
        scope = RequestScope()
        unbind(scope)
        with pytest.raises(ScopeStateError):
            bind(scope, _tenant())

    def test_unbind_is_idempotent(self) -> None:
        scope = RequestScope()
        bind(scope, _tenant())
        unbind(scope)
        unbind(scope)
        assert scope.state is ScopeState.CLEARED
        assert scope.tenant is None

    def test_scope_has_no_instance_dict(self) -> None:
        with pytest.raises(AttributeError):
            RequestScope().extra = 1  # type: ignore[attr-defined]


class TestWithScope:
    def test_returns_body_result(self) -> None:
        scope = RequestScope()
        tenant = _tenant()
        assert with_scope(scope, tenant, lambda: current_tenant(scope)) == tenant.id

    def test_binding_cleared_after_return(self) -> None:
        scope = RequestScope()
        with_scope(scope, _tenant(), lambda: None)

        assert scope.state is ScopeState.CLEARED
        with pytest.raises(CompanyAccessViolationError):
            current_tenant(scope)

    def test_binding_cleared_after_exception(self) -> None:
        scope = RequestScope()

        def body() -> None:
            assert scope.is_bound
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError):
            with_scope(scope, _tenant(), body)

        assert scope.state is ScopeState.CLEARED
        with pytest.raises(CompanyAccessViolationError):
            current_tenant(scope)

    def test_failed_resolution_binds_nothing(self) -> None:
        scope = RequestScope()
        resolution = Resolution.failed(
            ResolutionFailure.INVALID_KEY_FORMAT, raw_key="acme!"
        )

        def body() -> ResolutionFailure | None:
            with pytest.raises(CompanyAccessViolationError) as exc_info:
                current_tenant(scope)
            return exc_info.value.failure

        failure = with_scope(scope, resolution, body)
        assert failure is ResolutionFailure.INVALID_KEY_FORMAT

    def test_none_binds_nothing(self) -> None:
        scope = RequestScope()
        with bound(scope, None):
            assert scope.state is ScopeState.UNRESOLVED
            assert scope.failure is None
        assert scope.state is ScopeState.CLEARED

    def test_successful_resolution_binds_tenant(self) -> None:
        scope = RequestScope()
        tenant = _tenant()
        with bound(scope, Resolution.success(tenant, raw_key="acme")):
            assert current_tenant(scope) == tenant.id


class TestAsyncWithScope:
    async def test_returns_awaited_result(self) -> None:
        scope = RequestScope()
        tenant = _tenant()

        async def body() -> TenantId:
            await asyncio.sleep(0)
            return current_tenant(scope)

        assert await awith_scope(scope, tenant, body) == tenant.id
        assert scope.state is ScopeState.CLEARED

    async def test_cleared_on_cancellation(self) -> None:
        scope = RequestScope()
        started = asyncio.Event()

        async def body() -> None:
            started.set()
            await asyncio.sleep(3600)

        task = asyncio.create_task(awith_scope(scope, _tenant(), body))
        await started.wait()
        assert scope.is_bound

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert scope.state is ScopeState.CLEARED
        with pytest.raises(CompanyAccessViolationError):
            current_tenant(scope)

    async def test_concurrent_scopes_are_isolated(self) -> None:
        """Interleaved requests each see only their own company."""
        tenants = [_tenant(f"CO{i}") for i in range(10)]
        barrier = asyncio.Barrier(len(tenants))

        async def request(tenant: Tenant) -> TenantId:
            scope = RequestScope()

            async def body() -> TenantId:
                await barrier.wait()
                return current_tenant(scope)

            return await awith_scope(scope, tenant, body)

        seen = await asyncio.gather(*(request(t) for t in tenants))
        assert seen == [t.id for t in tenants]
