"""Provider catalog: schema, eager validation, and category slicing."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import yaml

from provdetect.engine.rules import Rule, parse_rule_collecting, rule_to_dict

if TYPE_CHECKING:
    from pathlib import Path

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ProviderCategory = Literal["ca", "dns", "email", "hosting", "registrar"]

CATEGORIES: tuple[ProviderCategory, ...] = ("ca", "dns", "email", "hosting", "registrar")

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogEntry:
    """A provider as stored in the catalog; the category is implied by its slot."""

    name: str
    domain: str
    rule: Rule


@dataclass(frozen=True)
class Provider:
    """A catalog entry with its category attached."""

    name: str
    domain: str
    category: ProviderCategory
    rule: Rule


@dataclass(frozen=True)
class ProviderCatalog:
    """Validated, immutable provider catalog.

    Entry order within each category is match priority: detectors report the
    first entry whose rule holds.
    """

    version: int | None = None
    ca: tuple[CatalogEntry, ...] = ()
    dns: tuple[CatalogEntry, ...] = ()
    email: tuple[CatalogEntry, ...] = ()
    hosting: tuple[CatalogEntry, ...] = ()
    registrar: tuple[CatalogEntry, ...] = ()

    def entries(self, category: ProviderCategory) -> tuple[CatalogEntry, ...]:
        """Return the entries for *category* in catalog order."""
        if category not in CATEGORIES:
            msg = f"Unknown provider category '{category}', must be one of {list(CATEGORIES)}"
            raise ValueError(msg)
        entries: tuple[CatalogEntry, ...] = getattr(self, category)
        return entries

    def is_empty(self) -> bool:
        return not any(self.entries(c) for c in CATEGORIES)


@dataclass(frozen=True)
class CatalogIssue:
    """A single validation problem, located precisely enough to fix it."""

    message: str
    category: str | None = None
    index: int | None = None
    provider: str | None = None
    path: str | None = None

    def location(self) -> str:
        parts: list[str] = []
        if self.category is not None:
            parts.append(self.category if self.index is None else f"{self.category}[{self.index}]")
        if self.provider is not None:
            parts.append(f"'{self.provider}'")
        if self.path is not None:
            parts.append(self.path)
        return " ".join(parts)

    def __str__(self) -> str:
        where = self.location()
        return f"{where}: {self.message}" if where else self.message


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CatalogValidationError(ValueError):
    """Raised when a catalog document is invalid.  Carries every issue found."""

    def __init__(self, issues: list[CatalogIssue] | tuple[CatalogIssue, ...]) -> None:
        self.issues: tuple[CatalogIssue, ...] = tuple(issues)
        count = len(self.issues)
        lines = [f"Invalid provider catalog ({count} issue{'s' if count != 1 else ''}):"]
        lines.extend(f"  - {issue}" for issue in self.issues)
        super().__init__("\n".join(lines))


@dataclass(frozen=True)
class CatalogParseResult:
    """Outcome of :func:`safe_parse_provider_catalog`."""

    success: bool
    catalog: ProviderCatalog | None = None
    error: CatalogValidationError | None = None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_entry(
    category: str, idx: int, entry_data: object, issues: list[CatalogIssue]
) -> CatalogEntry | None:
    """Parse one provider entry, appending problems to *issues*."""
    if not isinstance(entry_data, dict):
        issues.append(CatalogIssue("provider entry must be a mapping", category, idx))
        return None

    name = entry_data.get("name")
    provider_name = name if isinstance(name, str) and name.strip() else None
    ok = True

    if provider_name is None:
        issues.append(
            CatalogIssue("missing required non-empty 'name' field", category, idx, path="name")
        )
        ok = False

    domain = entry_data.get("domain")
    if not isinstance(domain, str) or not domain.strip():
        issues.append(
            CatalogIssue(
                "missing required non-empty 'domain' field",
                category,
                idx,
                provider_name,
                path="domain",
            )
        )
        ok = False

    if "rule" not in entry_data:
        issues.append(
            CatalogIssue("missing required 'rule' field", category, idx, provider_name, path="rule")
        )
        return None

    rule, rule_errors = parse_rule_collecting(entry_data["rule"], "rule")
    for err in rule_errors:
        issues.append(CatalogIssue(err.message, category, idx, provider_name, path=err.path))

    if not ok or rule is None:
        return None
    assert provider_name is not None
    assert isinstance(domain, str)
    return CatalogEntry(name=provider_name, domain=domain, rule=rule)


def _parse_version(raw: object, issues: list[CatalogIssue]) -> int | None:
    if raw is None:
        return None
    # bool is an int subclass; ``version: true`` is still a mistake.
    if isinstance(raw, bool) or not isinstance(raw, int):
        issues.append(CatalogIssue("'version' must be a non-negative integer", path="version"))
        return None
    if raw < 0:
        issues.append(CatalogIssue("'version' must be a non-negative integer", path="version"))
        return None
    return raw


def parse_provider_catalog(raw: object) -> ProviderCatalog:
    """Validate an untyped catalog document and return a :class:`ProviderCatalog`.

    Missing categories default to empty.  Every structural problem and every
    regex that fails to compile is collected before raising, so a catalog
    author can fix them all in one pass.

    Raises
    ------
    CatalogValidationError
        When anything in the document is invalid.  No partial catalog is
        ever returned.
    """
    if not isinstance(raw, dict):
        kind = "null" if raw is None else type(raw).__name__
        raise CatalogValidationError([CatalogIssue(f"catalog must be a mapping, got {kind}")])

    issues: list[CatalogIssue] = []
    version = _parse_version(raw.get("version"), issues)

    slices: dict[str, tuple[CatalogEntry, ...]] = {}
    for category in CATEGORIES:
        entries_raw = raw.get(category)
        if entries_raw is None:
            slices[category] = ()
            continue
        if not isinstance(entries_raw, list):
            issues.append(CatalogIssue(f"'{category}' must be a list", category))
            slices[category] = ()
            continue

        entries: list[CatalogEntry] = []
        for idx, entry_data in enumerate(entries_raw):
            entry = _parse_entry(category, idx, entry_data, issues)
            if entry is not None:
                entries.append(entry)
        slices[category] = tuple(entries)

    if issues:
        raise CatalogValidationError(issues)

    return ProviderCatalog(version=version, **slices)


def safe_parse_provider_catalog(raw: object) -> CatalogParseResult:
    """Like :func:`parse_provider_catalog` but reports failure in the result."""
    try:
        catalog = parse_provider_catalog(raw)
    except CatalogValidationError as exc:
        return CatalogParseResult(success=False, error=exc)
    return CatalogParseResult(success=True, catalog=catalog)


def load_catalog(catalog_path: Path) -> ProviderCatalog:
    """Read a YAML or JSON catalog file and validate it.

    Files ending in ``.json`` are parsed as JSON; anything else as YAML.
    Unreadable or unparsable files raise :class:`CatalogValidationError`
    with a single file-level issue.
    """
    try:
        with catalog_path.open("r", encoding="utf-8") as fh:
            if catalog_path.suffix.lower() == ".json":
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"cannot read catalog file {catalog_path}: {exc}"
        raise CatalogValidationError([CatalogIssue(msg)]) from exc

    return parse_provider_catalog(data)


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def to_provider(entry: CatalogEntry, category: ProviderCategory) -> Provider:
    """Attach *category* to a catalog entry."""
    return Provider(name=entry.name, domain=entry.domain, category=category, rule=entry.rule)


def get_providers_from_catalog(
    catalog: ProviderCatalog, category: ProviderCategory
) -> list[Provider]:
    """Return the providers of one category, in catalog order."""
    return [to_provider(entry, category) for entry in catalog.entries(category)]


def catalog_to_dict(catalog: ProviderCatalog) -> dict[str, object]:
    """Convert a catalog back to its document form."""
    data: dict[str, object] = {}
    if catalog.version is not None:
        data["version"] = catalog.version
    for category in CATEGORIES:
        data[category] = [
            {"name": e.name, "domain": e.domain, "rule": rule_to_dict(e.rule)}
            for e in catalog.entries(category)
        ]
    return data
