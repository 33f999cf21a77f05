"""Detection engine: rule grammar, catalog validation, context builder, evaluator, detectors."""

from provdetect.engine.catalog import (
    CATEGORIES,
    CatalogEntry,
    CatalogIssue,
    CatalogParseResult,
    CatalogValidationError,
    Provider,
    ProviderCatalog,
    ProviderCategory,
    catalog_to_dict,
    get_providers_from_catalog,
    load_catalog,
    parse_provider_catalog,
    safe_parse_provider_catalog,
    to_provider,
)
from provdetect.engine.context import (
    DetectionContext,
    build_context,
    normalize_headers,
    normalize_hostname,
    normalize_hostnames,
    normalize_signal,
)
from provdetect.engine.detection import (
    ProviderRef,
    detect_certificate_authority,
    detect_certificate_authority_ref,
    detect_dns_provider,
    detect_dns_provider_ref,
    detect_email_provider,
    detect_email_provider_ref,
    detect_hosting_provider,
    detect_hosting_provider_ref,
    detect_registrar,
    detect_registrar_ref,
    host_fallback_ref,
    registrable_domain,
    to_provider_ref,
)
from provdetect.engine.evaluator import evaluate
from provdetect.engine.rules import (
    MAX_RULE_DEPTH,
    AllRule,
    AnyRule,
    HeaderEquals,
    HeaderIncludes,
    HeaderPresent,
    IssuerEquals,
    IssuerIncludes,
    MxRegex,
    MxSuffix,
    NotRule,
    NsRegex,
    NsSuffix,
    RegistrarEquals,
    RegistrarIncludes,
    Rule,
    RuleSyntaxError,
    parse_rule,
    parse_rule_collecting,
    rule_to_dict,
    translate_pattern,
)

__all__ = [
    "CATEGORIES",
    "MAX_RULE_DEPTH",
    "AllRule",
    "AnyRule",
    "CatalogEntry",
    "CatalogIssue",
    "CatalogParseResult",
    "CatalogValidationError",
    "DetectionContext",
    "HeaderEquals",
    "HeaderIncludes",
    "HeaderPresent",
    "IssuerEquals",
    "IssuerIncludes",
    "MxRegex",
    "MxSuffix",
    "NotRule",
    "NsRegex",
    "NsSuffix",
    "Provider",
    "ProviderCatalog",
    "ProviderCategory",
    "ProviderRef",
    "RegistrarEquals",
    "RegistrarIncludes",
    "Rule",
    "RuleSyntaxError",
    "build_context",
    "catalog_to_dict",
    "detect_certificate_authority",
    "detect_certificate_authority_ref",
    "detect_dns_provider",
    "detect_dns_provider_ref",
    "detect_email_provider",
    "detect_email_provider_ref",
    "detect_hosting_provider",
    "detect_hosting_provider_ref",
    "detect_registrar",
    "detect_registrar_ref",
    "evaluate",
    "get_providers_from_catalog",
    "host_fallback_ref",
    "load_catalog",
    "normalize_headers",
    "normalize_hostname",
    "normalize_hostnames",
    "normalize_signal",
    "parse_provider_catalog",
    "parse_rule",
    "parse_rule_collecting",
    "registrable_domain",
    "rule_to_dict",
    "safe_parse_provider_catalog",
    "to_provider",
    "to_provider_ref",
    "translate_pattern",
]
