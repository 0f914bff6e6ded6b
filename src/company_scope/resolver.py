"""Per-request company resolution: matcher → validation → directory."""

from __future__ import annotations

import re

import structlog

from company_scope.directory import TenantDirectory
from company_scope.errors import InvalidKeyFormatError
from company_scope.matchers import DomainMatcher
from company_scope.models import (
    RequestMetadata,
    Resolution,
    ResolutionFailure,
    TenantKey,
    normalize_key,
)

logger = structlog.get_logger()

SAFE_KEY_PATTERN = re.compile(r"\A[A-Za-z0-9]+\Z")


def validate_key(raw: str) -> TenantKey:
    """Validate a candidate company name and normalize it.

    Raises:
        InvalidKeyFormatError: any character outside letters and digits.
    """
    if not SAFE_KEY_PATTERN.match(raw):
        raise InvalidKeyFormatError(raw)
    return normalize_key(raw)


class TenantResolver:
    """Resolve the company a request belongs to.

    Failures are reported once, never retried and never masked:
    ``NO_KEY`` when the matcher produced nothing, ``INVALID_KEY_FORMAT``
    for disallowed characters and ``TENANT_NOT_FOUND`` for a well-formed
    but unknown company. Store failures propagate as TenantStoreError.

    With ``bootstrap_mode`` enabled, a request with no derivable key
    (empty or invalid) falls back to the directory's default company.
    An unknown but well-formed key still fails in bootstrap mode.
    """

    def __init__(
        self,
        directory: TenantDirectory,
        matcher: DomainMatcher,
        *,
        bootstrap_mode: bool = False,
    ) -> None:
        self.directory = directory
        self.matcher = matcher
        self.bootstrap_mode = bootstrap_mode

    async def resolve(self, metadata: RequestMetadata) -> Resolution:
        raw_key = self.matcher.to_key(metadata)

        if not raw_key:
            logger.info("company_key_missing", host=metadata.host)
            return await self._fallback(ResolutionFailure.NO_KEY, raw_key)

        try:
            key = validate_key(raw_key)
        except InvalidKeyFormatError:
            logger.warning(
                "company_key_invalid_format",
                raw_key=raw_key,
                host=metadata.host,
            )
            return await self._fallback(ResolutionFailure.INVALID_KEY_FORMAT, raw_key)

        tenant = await self.directory.resolve(key)
        if tenant is None:
            logger.info("company_not_found", company_key=key)
            return Resolution.failed(
                ResolutionFailure.TENANT_NOT_FOUND, raw_key=raw_key
            )

        logger.debug("company_resolved", company_key=key, company_id=str(tenant.id))
        return Resolution.success(tenant, raw_key=raw_key)

    async def _fallback(
        self, failure: ResolutionFailure, raw_key: str | None
    ) -> Resolution:
        if not self.bootstrap_mode:
            return Resolution.failed(failure, raw_key=raw_key)

        tenant = await self.directory.resolve_default()
        if tenant is None:
            return Resolution.failed(failure, raw_key=raw_key)

        logger.debug(
            "company_resolved_from_default",
            company_key=tenant.key,
            company_id=str(tenant.id),
            reason=failure.value,
        )
        return Resolution.success(tenant, raw_key=raw_key, source="bootstrap")
