"""Built-in provider catalog.

A small set of well-known providers per category, enough for local use and
tests.  Production deployments point ``catalog_path`` at a maintained
catalog instead.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from provdetect.engine.catalog import parse_provider_catalog

if TYPE_CHECKING:
    from provdetect.engine.catalog import ProviderCatalog

# ---------------------------------------------------------------------------
# Certificate authorities
# ---------------------------------------------------------------------------

_CA: list[dict[str, object]] = [
    {
        "name": "Let's Encrypt",
        "domain": "letsencrypt.org",
        "rule": {
            "any": [
                {"kind": "issuerIncludes", "substr": "let's encrypt"},
                {"kind": "issuerIncludes", "substr": "lets encrypt"},
                {"kind": "issuerIncludes", "substr": "isrg"},
                # Intermediate names show up as bare issuer CNs.
                {"kind": "issuerEquals", "value": "r3"},
                {"kind": "issuerEquals", "value": "r10"},
                {"kind": "issuerEquals", "value": "r11"},
                {"kind": "issuerEquals", "value": "e1"},
                {"kind": "issuerEquals", "value": "e5"},
                {"kind": "issuerEquals", "value": "e6"},
            ]
        },
    },
    {
        "name": "DigiCert",
        "domain": "digicert.com",
        "rule": {"kind": "issuerIncludes", "substr": "digicert"},
    },
    {
        "name": "Sectigo",
        "domain": "sectigo.com",
        "rule": {
            "any": [
                {"kind": "issuerIncludes", "substr": "sectigo"},
                {"kind": "issuerIncludes", "substr": "comodo"},
            ]
        },
    },
    {
        "name": "GlobalSign",
        "domain": "globalsign.com",
        "rule": {"kind": "issuerIncludes", "substr": "globalsign"},
    },
    {
        "name": "GoDaddy",
        "domain": "godaddy.com",
        "rule": {
            "any": [
                {"kind": "issuerIncludes", "substr": "godaddy"},
                {"kind": "issuerIncludes", "substr": "go daddy"},
                {"kind": "issuerIncludes", "substr": "starfield"},
            ]
        },
    },
]

# ---------------------------------------------------------------------------
# DNS operators
# ---------------------------------------------------------------------------

_DNS: list[dict[str, object]] = [
    {
        "name": "Cloudflare",
        "domain": "cloudflare.com",
        "rule": {"kind": "nsSuffix", "suffix": "cloudflare.com"},
    },
    {
        "name": "Amazon Route 53",
        "domain": "aws.amazon.com",
        "rule": {
            "any": [
                {
                    "kind": "nsRegex",
                    "pattern": r"^ns-\d+\.awsdns-\d+\.(com|net|org|co\.uk)$",
                    "flags": "i",
                },
                {
                    "kind": "nsRegex",
                    "pattern": r"^ns\d+\.amzndns\.(com|net|org|co\.uk)$",
                    "flags": "i",
                },
            ]
        },
    },
    {
        "name": "Google Cloud DNS",
        "domain": "cloud.google.com",
        "rule": {"kind": "nsSuffix", "suffix": "googledomains.com"},
    },
    {
        "name": "Vercel",
        "domain": "vercel.com",
        "rule": {"kind": "nsSuffix", "suffix": "vercel-dns.com"},
    },
    {
        "name": "DNSimple",
        "domain": "dnsimple.com",
        "rule": {"kind": "nsSuffix", "suffix": "dnsimple.com"},
    },
]

# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------

_EMAIL: list[dict[str, object]] = [
    {
        "name": "Google Workspace",
        "domain": "google.com",
        "rule": {
            "any": [
                {"kind": "mxSuffix", "suffix": "smtp.google.com"},
                {"kind": "mxSuffix", "suffix": "aspmx.l.google.com"},
                {"kind": "mxSuffix", "suffix": "googlemail.com"},
                {"kind": "mxRegex", "pattern": r"^alt\d+\.aspmx\.l\.google\.com$"},
                {"kind": "mxRegex", "pattern": r"^aspmx\d*\.googlemail\.com$", "flags": "i"},
            ]
        },
    },
    {
        "name": "Microsoft 365",
        "domain": "microsoft.com",
        "rule": {
            "any": [
                {"kind": "mxSuffix", "suffix": "mail.protection.outlook.com"},
                {"kind": "mxSuffix", "suffix": "outlook.com"},
            ]
        },
    },
    {
        "name": "Fastmail",
        "domain": "fastmail.com",
        "rule": {
            "any": [
                {"kind": "mxSuffix", "suffix": "fastmail.com"},
                {"kind": "mxSuffix", "suffix": "messagingengine.com"},
            ]
        },
    },
    {
        "name": "Proton Mail",
        "domain": "proton.me",
        "rule": {
            "any": [
                {"kind": "mxSuffix", "suffix": "protonmail.ch"},
                {"kind": "mxSuffix", "suffix": "proton.me"},
            ]
        },
    },
    {
        "name": "Zoho Mail",
        "domain": "zoho.com",
        "rule": {"kind": "mxSuffix", "suffix": "zoho.com"},
    },
]

# ---------------------------------------------------------------------------
# Hosting
# ---------------------------------------------------------------------------

_HOSTING: list[dict[str, object]] = [
    {
        "name": "Vercel",
        "domain": "vercel.com",
        "rule": {
            "any": [
                {"kind": "headerEquals", "name": "server", "value": "vercel"},
                {"kind": "headerPresent", "name": "x-vercel-id"},
            ]
        },
    },
    {
        "name": "Cloudflare",
        "domain": "cloudflare.com",
        "rule": {
            "any": [
                {"kind": "headerEquals", "name": "server", "value": "cloudflare"},
                {"kind": "headerPresent", "name": "cf-ray"},
            ]
        },
    },
    {
        "name": "Netlify",
        "domain": "netlify.com",
        "rule": {
            "any": [
                {"kind": "headerEquals", "name": "server", "value": "netlify"},
                {"kind": "headerPresent", "name": "x-nf-request-id"},
            ]
        },
    },
    {
        "name": "AWS CloudFront",
        "domain": "aws.amazon.com",
        "rule": {
            "any": [
                {"kind": "headerEquals", "name": "server", "value": "cloudfront"},
                {"kind": "headerPresent", "name": "x-amz-cf-id"},
                {"kind": "headerPresent", "name": "x-amz-cf-pop"},
            ]
        },
    },
    {
        "name": "Fastly",
        "domain": "fastly.com",
        "rule": {
            "any": [
                {"kind": "headerPresent", "name": "x-served-by"},
                {"kind": "headerPresent", "name": "x-fastly-request-id"},
            ]
        },
    },
]

# ---------------------------------------------------------------------------
# Registrars
# ---------------------------------------------------------------------------

_REGISTRAR: list[dict[str, object]] = [
    {
        "name": "GoDaddy",
        "domain": "godaddy.com",
        "rule": {
            "any": [
                {"kind": "registrarIncludes", "substr": "godaddy"},
                {"kind": "registrarIncludes", "substr": "go daddy"},
                {"kind": "registrarIncludes", "substr": "wild west domains"},
            ]
        },
    },
    {
        "name": "Namecheap",
        "domain": "namecheap.com",
        "rule": {"kind": "registrarIncludes", "substr": "namecheap"},
    },
    {
        "name": "Cloudflare Registrar",
        "domain": "cloudflare.com",
        "rule": {"kind": "registrarIncludes", "substr": "cloudflare"},
    },
    {
        "name": "Google Domains",
        "domain": "domains.google",
        "rule": {
            "any": [
                {"kind": "registrarIncludes", "substr": "google domains"},
                {"kind": "registrarIncludes", "substr": "google llc"},
            ]
        },
    },
    {
        "name": "Amazon Registrar",
        "domain": "aws.amazon.com",
        "rule": {
            "any": [
                {"kind": "registrarIncludes", "substr": "amazon registrar"},
                {"kind": "registrarIncludes", "substr": "amazon.com"},
            ]
        },
    },
]

DEFAULT_CATALOG_DATA: dict[str, object] = {
    "version": 1,
    "ca": _CA,
    "dns": _DNS,
    "email": _EMAIL,
    "hosting": _HOSTING,
    "registrar": _REGISTRAR,
}


@functools.lru_cache(maxsize=1)
def get_default_catalog() -> ProviderCatalog:
    """Return the built-in catalog, validated once."""
    return parse_provider_catalog(DEFAULT_CATALOG_DATA)
