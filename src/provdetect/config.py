"""Settings: ``config.yml`` ``provdetect`` section, overridden by environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS: float = 7 * 24 * 60 * 60  # catalogs refresh about weekly

ENV_CATALOG_PATH = "PROVDETECT_CATALOG"
ENV_CACHE_TTL = "PROVDETECT_CACHE_TTL"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration.

    ``catalog_path`` of ``None`` means "use the built-in catalog".
    """

    catalog_path: Path | None = None
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS


def _parse_ttl(raw: object, source: str) -> float | None:
    if isinstance(raw, bool):
        logger.warning("Ignoring non-numeric cache TTL from %s: %r", source, raw)
        return None
    try:
        ttl = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric cache TTL from %s: %r", source, raw)
        return None
    if ttl < 0:
        logger.warning("Ignoring negative cache TTL from %s: %r", source, raw)
        return None
    return ttl


def _read_config_section(config_path: Path) -> dict[str, object]:
    """Return the ``provdetect`` mapping from *config_path*, or ``{}``."""
    if not config_path.is_file():
        return {}

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return {}

    if not isinstance(data, dict):
        return {}

    section = data.get("provdetect")
    if not isinstance(section, dict):
        return {}
    return section


def load_settings(
    project_root: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from ``<project_root>/config.yml`` and the environment.

    Relative ``catalog_path`` values in ``config.yml`` resolve against
    *project_root*.  Environment variables win over the file.  Invalid
    values are logged and replaced by defaults.
    """
    root = project_root or Path.cwd()
    env = os.environ if environ is None else environ
    section = _read_config_section(root / "config.yml")

    catalog_path: Path | None = None
    raw_path = section.get("catalog_path")
    if isinstance(raw_path, str) and raw_path.strip():
        catalog_path = Path(raw_path)
        if not catalog_path.is_absolute():
            catalog_path = root / catalog_path
    elif raw_path is not None:
        logger.warning("Ignoring invalid catalog_path in config.yml: %r", raw_path)

    ttl = DEFAULT_CACHE_TTL_SECONDS
    if "cache_ttl_seconds" in section:
        parsed = _parse_ttl(section["cache_ttl_seconds"], "config.yml")
        if parsed is not None:
            ttl = parsed

    env_path = env.get(ENV_CATALOG_PATH, "").strip()
    if env_path:
        catalog_path = Path(env_path)

    env_ttl = env.get(ENV_CACHE_TTL, "").strip()
    if env_ttl:
        parsed = _parse_ttl(env_ttl, ENV_CACHE_TTL)
        if parsed is not None:
            ttl = parsed

    return Settings(catalog_path=catalog_path, cache_ttl_seconds=ttl)
