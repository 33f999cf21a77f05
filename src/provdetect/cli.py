"""provdetect CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from provdetect import __version__
from provdetect.engine.catalog import (
    CATEGORIES,
    CatalogValidationError,
    catalog_to_dict,
    get_providers_from_catalog,
    load_catalog,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from provdetect.engine.catalog import (
        CatalogIssue,
        Provider,
        ProviderCatalog,
        ProviderCategory,
    )
    from provdetect.engine.detection import ProviderRef


@click.group()
@click.version_option(version=__version__, prog_name="provdetect")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """provdetect - classify domain infrastructure against a provider catalog."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("provdetect").setLevel(level)


_catalog_option = click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Catalog file (default: from config.yml / PROVDETECT_CATALOG, else built-in).",
)


def _resolve_catalog(catalog_path: Path | None) -> ProviderCatalog:
    """Load the catalog to use, exiting with code 2 if it is invalid."""
    if catalog_path is None:
        from provdetect.config import load_settings

        catalog_path = load_settings(Path.cwd()).catalog_path

    if catalog_path is None:
        from provdetect.defaults import get_default_catalog

        return get_default_catalog()

    try:
        return load_catalog(catalog_path)
    except CatalogValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@main.command()
@click.argument("catalog_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich for TTY, porcelain otherwise).",
)
def validate(*, catalog_file: Path, fmt: str | None) -> None:
    """Validate a catalog file and report every issue found.

    Exit codes: 0 = valid, 1 = invalid.
    """
    from provdetect.formatters import (
        format_issues_json,
        format_issues_porcelain,
        format_issues_rich,
    )

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    catalog: ProviderCatalog | None = None
    issues: tuple[CatalogIssue, ...] = ()
    try:
        catalog = load_catalog(catalog_file)
    except CatalogValidationError as exc:
        issues = exc.issues

    source = str(catalog_file)
    if fmt == "json":
        output = format_issues_json(source, catalog, issues)
    elif fmt == "porcelain":
        output = format_issues_porcelain(issues)
    else:
        output = format_issues_rich(source, catalog, issues)
    if output:
        click.echo(output)

    if issues:
        sys.exit(1)


# ---------------------------------------------------------------------------
# catalog
# ---------------------------------------------------------------------------


@main.command("catalog")
@_catalog_option
@click.option(
    "--category",
    type=click.Choice(list(CATEGORIES)),
    default=None,
    help="Only list one category.",
)
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def catalog_cmd(*, catalog_path: Path | None, category: str | None, as_json: bool) -> None:
    """List the providers of the active catalog in match order."""
    from provdetect.engine.rules import iter_leaves

    catalog = _resolve_catalog(catalog_path)
    categories: tuple[ProviderCategory, ...] = (
        (category,) if category is not None else CATEGORIES  # type: ignore[assignment]
    )

    if as_json:
        data = catalog_to_dict(catalog)
        if category is not None:
            data = {key: value for key, value in data.items() if key in ("version", category)}
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    console = Console()
    title = "Provider catalog"
    if catalog.version is not None:
        title += f" v{catalog.version}"
    table = Table(title=title)
    table.add_column("category", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("provider", style="bold")
    table.add_column("domain")
    table.add_column("signals")

    for cat in categories:
        for idx, provider in enumerate(get_providers_from_catalog(catalog, cat)):
            kinds = sorted({leaf.kind for leaf in iter_leaves(provider.rule)})
            table.add_row(cat, str(idx), provider.name, provider.domain, ", ".join(kinds))

    console.print(table)


# ---------------------------------------------------------------------------
# detect
# ---------------------------------------------------------------------------


def _emit_detection(
    category: ProviderCategory,
    provider: Provider | None,
    ref: ProviderRef,
    *,
    as_json: bool,
) -> None:
    from provdetect.formatters import format_detection_json, format_detection_text

    if as_json:
        click.echo(format_detection_json(category, provider, ref))
    else:
        click.echo(format_detection_text(provider, ref))


def _run_detection(
    category: ProviderCategory,
    signal: object,
    detector: Callable[[object, Sequence[Provider]], Provider | None],
    *,
    catalog_path: Path | None,
    as_json: bool,
    fallback_hosts: Sequence[str] | None = None,
) -> None:
    """Run *detector* once; email and DNS misses fall back to *fallback_hosts*."""
    from provdetect.engine.detection import host_fallback_ref, to_provider_ref

    catalog = _resolve_catalog(catalog_path)
    providers = get_providers_from_catalog(catalog, category)
    provider = detector(signal, providers)
    if provider is None and fallback_hosts is not None:
        ref = host_fallback_ref(fallback_hosts)
    else:
        ref = to_provider_ref(provider)
    _emit_detection(category, provider, ref, as_json=as_json)


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        msg = f"expected 'Name: value', got {raw!r}"
        raise click.BadParameter(msg, param_hint="--header")
    return name.strip(), value.strip()


@main.group()
def detect() -> None:
    """Classify raw signals against the catalog.

    No match prints "unknown" and still exits 0; an invalid catalog exits 2.
    """


@detect.command("hosting")
@click.option("--header", "-H", "headers", multiple=True, help="Response header 'Name: value'.")
@_catalog_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def detect_hosting(*, headers: tuple[str, ...], catalog_path: Path | None, as_json: bool) -> None:
    """Detect the hosting provider from HTTP response headers."""
    from provdetect.engine.detection import detect_hosting_provider

    pairs = [_parse_header(h) for h in headers]
    _run_detection(
        "hosting",
        pairs,
        detect_hosting_provider,  # type: ignore[arg-type]
        catalog_path=catalog_path,
        as_json=as_json,
    )


@detect.command("email")
@click.option("--mx", "mx_hosts", multiple=True, help="MX hostname (repeatable).")
@_catalog_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def detect_email(*, mx_hosts: tuple[str, ...], catalog_path: Path | None, as_json: bool) -> None:
    """Detect the email provider from MX hostnames."""
    from provdetect.engine.detection import detect_email_provider

    hosts = list(mx_hosts)
    _run_detection(
        "email",
        hosts,
        detect_email_provider,  # type: ignore[arg-type]
        catalog_path=catalog_path,
        as_json=as_json,
        fallback_hosts=hosts,
    )


@detect.command("dns")
@click.option("--ns", "ns_hosts", multiple=True, help="NS hostname (repeatable).")
@_catalog_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def detect_dns(*, ns_hosts: tuple[str, ...], catalog_path: Path | None, as_json: bool) -> None:
    """Detect the DNS provider from NS hostnames."""
    from provdetect.engine.detection import detect_dns_provider

    hosts = list(ns_hosts)
    _run_detection(
        "dns",
        hosts,
        detect_dns_provider,  # type: ignore[arg-type]
        catalog_path=catalog_path,
        as_json=as_json,
        fallback_hosts=hosts,
    )


@detect.command("registrar")
@click.argument("registrar_name")
@_catalog_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def detect_registrar_cmd(*, registrar_name: str, catalog_path: Path | None, as_json: bool) -> None:
    """Detect the registrar from a WHOIS/RDAP registrar name."""
    from provdetect.engine.detection import detect_registrar

    _run_detection(
        "registrar",
        registrar_name,
        detect_registrar,  # type: ignore[arg-type]
        catalog_path=catalog_path,
        as_json=as_json,
    )


@detect.command("ca")
@click.argument("issuer")
@_catalog_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def detect_ca(*, issuer: str, catalog_path: Path | None, as_json: bool) -> None:
    """Detect the certificate authority from a certificate issuer string."""
    from provdetect.engine.detection import detect_certificate_authority

    _run_detection(
        "ca",
        issuer,
        detect_certificate_authority,  # type: ignore[arg-type]
        catalog_path=catalog_path,
        as_json=as_json,
    )
