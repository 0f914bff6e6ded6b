"""Pluggable strategies that derive a candidate company name from a request."""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING, Protocol

from company_scope.models import RequestMetadata

if TYPE_CHECKING:
    from company_scope.config import Settings


class DomainMatcher(Protocol):
    """Maps request metadata to a raw, unvalidated company name.

    Returns None (or an empty string) when no candidate can be derived.
    Validation and normalization are the resolver's job.
    """

    def to_key(self, metadata: RequestMetadata) -> str | None: ...


def _strip_port(host: str) -> str:
    if host.startswith("["):
        # IPv6 literal: [::1]:8000
        return host[1 : host.find("]")] if "]" in host else host
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


class SubdomainMatcher:
    """Use the first label of the host: ``acme.example.com`` → ``acme``.

    Single-label hosts (``localhost``) and IP addresses carry no
    subdomain and yield None.
    """

    def to_key(self, metadata: RequestMetadata) -> str | None:
        host = _strip_port(metadata.host.strip().rstrip("."))
        if not host or _is_ip_address(host):
            return None
        labels = host.split(".")
        if len(labels) < 2:
            return None
        return labels[0]


class HeaderMatcher:
    """Read the company name from a custom header (default ``X-Company``)."""

    def __init__(self, header: str = "X-Company") -> None:
        self.header = header

    def to_key(self, metadata: RequestMetadata) -> str | None:
        return metadata.header(self.header)


def build_matcher(settings: Settings) -> DomainMatcher:
    """Create the matcher selected by ``settings.matcher``."""
    if settings.matcher == "header":
        return HeaderMatcher(settings.company_header)
    return SubdomainMatcher()
