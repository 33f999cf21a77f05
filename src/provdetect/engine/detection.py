"""Category detectors: wire one signal shape to the context builder and evaluator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import tldextract

from provdetect.engine.context import build_context, normalize_hostname, normalize_signal
from provdetect.engine.evaluator import evaluate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from provdetect.engine.catalog import Provider
    from provdetect.engine.context import DetectionContext, HeaderInput

logger = logging.getLogger(__name__)

# Bundled public-suffix snapshot only: no network fetch, no cache directory.
_extract = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())


@dataclass(frozen=True)
class ProviderRef:
    """Persistence-facing reference to a provider; both fields None when unknown."""

    name: str | None = None
    domain: str | None = None


# ---------------------------------------------------------------------------
# Core matching
# ---------------------------------------------------------------------------


def _first_match(providers: Sequence[Provider], ctx: DetectionContext) -> Provider | None:
    """Return the first provider (in input order) whose rule holds."""
    for provider in providers:
        if evaluate(provider.rule, ctx):
            return provider
    return None


def detect_hosting_provider(
    headers: HeaderInput, providers: Sequence[Provider]
) -> Provider | None:
    """Detect the hosting provider from HTTP response headers."""
    return _first_match(providers, build_context(headers=headers))


def detect_email_provider(
    mx_hosts: Sequence[str], providers: Sequence[Provider]
) -> Provider | None:
    """Detect the email provider from MX hostnames."""
    return _first_match(providers, build_context(mx=mx_hosts))


def detect_dns_provider(ns_hosts: Sequence[str], providers: Sequence[Provider]) -> Provider | None:
    """Detect the DNS provider from NS hostnames."""
    return _first_match(providers, build_context(ns=ns_hosts))


def detect_registrar(registrar_name: str | None, providers: Sequence[Provider]) -> Provider | None:
    """Detect the registrar from a WHOIS/RDAP registrar name.

    A blank name returns None without evaluating any rule, so a rule such as
    ``registrarIncludes: ""`` cannot match a missing signal.
    """
    name = normalize_signal(registrar_name)
    if name is None:
        return None
    return _first_match(providers, build_context(registrar=name))


def detect_certificate_authority(
    issuer: str | None, providers: Sequence[Provider]
) -> Provider | None:
    """Detect the certificate authority from a certificate issuer string.

    Same empty-signal guard as :func:`detect_registrar`.
    """
    name = normalize_signal(issuer)
    if name is None:
        return None
    return _first_match(providers, build_context(issuer=name))


# ---------------------------------------------------------------------------
# Provider references
# ---------------------------------------------------------------------------


def to_provider_ref(provider: Provider | None) -> ProviderRef:
    if provider is None:
        return ProviderRef()
    return ProviderRef(name=provider.name, domain=provider.domain)


def registrable_domain(host: str) -> str | None:
    """Return the registrable domain of *host* (``example.co.uk``), or None."""
    extracted = _extract(normalize_hostname(host))
    if extracted.domain and extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}"
    return None


def host_fallback_ref(hosts: Sequence[str]) -> ProviderRef:
    """Derive a reference from the first host when the catalog has no match."""
    if not hosts:
        return ProviderRef()
    first = normalize_hostname(hosts[0])
    if not first:
        return ProviderRef()
    root = registrable_domain(first)
    logger.debug("No catalog match; falling back to %s for host %s", root or first, first)
    return ProviderRef(name=root or first, domain=root)


def detect_hosting_provider_ref(
    headers: HeaderInput, providers: Sequence[Provider]
) -> ProviderRef:
    return to_provider_ref(detect_hosting_provider(headers, providers))


def detect_email_provider_ref(
    mx_hosts: Sequence[str], providers: Sequence[Provider]
) -> ProviderRef:
    """Like :func:`detect_email_provider`, falling back to the first MX host's domain."""
    found = detect_email_provider(mx_hosts, providers)
    if found is not None:
        return to_provider_ref(found)
    return host_fallback_ref(mx_hosts)


def detect_dns_provider_ref(ns_hosts: Sequence[str], providers: Sequence[Provider]) -> ProviderRef:
    """Like :func:`detect_dns_provider`, falling back to the first NS host's domain."""
    found = detect_dns_provider(ns_hosts, providers)
    if found is not None:
        return to_provider_ref(found)
    return host_fallback_ref(ns_hosts)


def detect_registrar_ref(registrar_name: str | None, providers: Sequence[Provider]) -> ProviderRef:
    return to_provider_ref(detect_registrar(registrar_name, providers))


def detect_certificate_authority_ref(
    issuer: str | None, providers: Sequence[Provider]
) -> ProviderRef:
    return to_provider_ref(detect_certificate_authority(issuer, providers))
