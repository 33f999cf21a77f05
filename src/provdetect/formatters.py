"""Output formatters for catalog validation and detection results."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from provdetect.engine.catalog import CATEGORIES

if TYPE_CHECKING:
    from provdetect.engine.catalog import CatalogIssue, Provider, ProviderCatalog
    from provdetect.engine.detection import ProviderRef

# ---------------------------------------------------------------------------
# Catalog validation
# ---------------------------------------------------------------------------


def _catalog_counts(catalog: ProviderCatalog) -> dict[str, int]:
    return {c: len(catalog.entries(c)) for c in CATEGORIES}


def format_issues_rich(
    source: str, catalog: ProviderCatalog | None, issues: tuple[CatalogIssue, ...]
) -> str:
    """Format a validation outcome as human-readable text.

    Example output with issues::

        Catalog: providers.yml

        x email[0] 'Bad Regex' rule.any[1]
          Invalid regex pattern '[invalid(': unterminated character set at position 0

        1 issue found

    Example output for a valid catalog::

        Catalog: providers.yml (version 3)

        ca: 5  dns: 5  email: 5  hosting: 5  registrar: 5

        No issues found (25 providers)
    """
    lines: list[str] = []

    header = f"Catalog: {source}"
    if catalog is not None and catalog.version is not None:
        header += f" (version {catalog.version})"
    lines.append(header)
    lines.append("")

    if issues:
        for issue in issues:
            where = issue.location() or "catalog"
            lines.append(f"\u2717 {where}")
            lines.append(f"  {issue.message}")
            lines.append("")
        count = len(issues)
        lines.append(f"{count} issue{'s' if count != 1 else ''} found")
        return "\n".join(lines)

    counts = _catalog_counts(catalog) if catalog is not None else {}
    lines.append("  ".join(f"{category}: {n}" for category, n in counts.items()))
    lines.append("")
    lines.append(f"\u2713 No issues found ({sum(counts.values())} providers)")
    return "\n".join(lines)


def format_issues_json(
    source: str, catalog: ProviderCatalog | None, issues: tuple[CatalogIssue, ...]
) -> str:
    """Format a validation outcome as structured JSON."""
    output: dict[str, object] = {
        "source": source,
        "valid": not issues,
        "version": catalog.version if catalog is not None else None,
        "providers": _catalog_counts(catalog) if catalog is not None else {},
        "issues": [
            {
                "category": i.category,
                "index": i.index,
                "provider": i.provider,
                "path": i.path,
                "message": i.message,
            }
            for i in issues
        ],
    }
    return json.dumps(output, indent=2)


def format_issues_porcelain(issues: tuple[CatalogIssue, ...]) -> str:
    """One ``category:index:provider:path:message`` line per issue.

    Missing fields are empty strings.  Returns an empty string when there
    are no issues.
    """
    lines: list[str] = []
    for i in issues:
        category = i.category or ""
        index = str(i.index) if i.index is not None else ""
        provider = i.provider or ""
        path = i.path or ""
        lines.append(f"{category}:{index}:{provider}:{path}:{i.message}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def format_detection_text(provider: Provider | None, ref: ProviderRef) -> str:
    if provider is not None:
        return f"{provider.name} ({provider.domain})"
    if ref.name is not None:
        return f"unknown (fallback: {ref.domain or ref.name})"
    return "unknown"


def format_detection_json(category: str, provider: Provider | None, ref: ProviderRef) -> str:
    output: dict[str, object] = {
        "category": category,
        "provider": (
            {"name": provider.name, "domain": provider.domain} if provider is not None else None
        ),
        "ref": {"name": ref.name, "domain": ref.domain},
    }
    return json.dumps(output, indent=2)
