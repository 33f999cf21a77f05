"""Catalog cache held by the calling layer.

The detection engine never caches anything itself.  Request-handling code
keeps one :class:`CatalogCache`, asks it for the current catalog, and hands
the category slice to the detectors.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from provdetect.engine.catalog import (
    CatalogValidationError,
    ProviderCatalog,
    get_providers_from_catalog,
    load_catalog,
    safe_parse_provider_catalog,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from provdetect.engine.catalog import CatalogParseResult, Provider, ProviderCategory

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A validated catalog and the clock reading when it was loaded."""

    catalog: ProviderCatalog
    loaded_at: float


class CatalogCache:
    """Time-bounded, fail-closed cache around a catalog loader.

    The loader returns a raw catalog document, an already-validated
    :class:`ProviderCatalog`, or ``None`` when the source has nothing.
    ``get()`` reloads when the entry is missing or older than *ttl_seconds*.
    Reloads run under a lock, so concurrent callers share one load.  Any
    loader failure or invalid document yields ``None`` (callers then treat
    every provider as unknown) and clears the cached entry; the next call
    retries.
    """

    def __init__(
        self,
        loader: Callable[[], object],
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            msg = "ttl_seconds must be non-negative"
            raise ValueError(msg)
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: CacheEntry | None = None
        self._loads = 0
        self._hits = 0
        self._failures = 0

    def get(self) -> ProviderCatalog | None:
        """Return the current catalog, loading it if needed; None if unavailable."""
        with self._lock:
            now = self._clock()
            entry = self._entry
            if entry is not None and now - entry.loaded_at < self._ttl:
                self._hits += 1
                return entry.catalog

            self._entry = None
            catalog = self._load()
            if catalog is not None:
                self._entry = CacheEntry(catalog=catalog, loaded_at=now)
            return catalog

    def providers(self, category: ProviderCategory) -> list[Provider]:
        """Providers for *category*, or ``[]`` when no catalog is available."""
        catalog = self.get()
        if catalog is None:
            return []
        return get_providers_from_catalog(catalog, category)

    def invalidate(self) -> None:
        """Drop the cached catalog so the next ``get()`` reloads."""
        with self._lock:
            self._entry = None

    def stats(self) -> dict[str, int]:
        """Return cache statistics."""
        with self._lock:
            return {
                "loads": self._loads,
                "hits": self._hits,
                "failures": self._failures,
                "cached": int(self._entry is not None),
            }

    def _load(self) -> ProviderCatalog | None:
        self._loads += 1
        result: CatalogParseResult | None = None
        try:
            raw = self._loader()
            if raw is not None and not isinstance(raw, ProviderCatalog):
                result = safe_parse_provider_catalog(raw)
        except CatalogValidationError as exc:
            self._failures += 1
            logger.error("Failed to parse provider catalog: %s", exc)
            return None
        except Exception:  # loader I/O or parsing; any failure means "no catalog"
            self._failures += 1
            logger.exception("Failed to load provider catalog")
            return None

        if raw is None:
            self._failures += 1
            logger.warning("Provider catalog source returned nothing")
            return None

        if isinstance(raw, ProviderCatalog):
            catalog = raw
        else:
            assert result is not None
            if result.catalog is None:
                self._failures += 1
                logger.error("Failed to parse provider catalog: %s", result.error)
                return None
            catalog = result.catalog

        if catalog.is_empty():
            logger.warning("Provider catalog is empty; all providers will be unknown")
        logger.debug("Loaded provider catalog (version=%s)", catalog.version)
        return catalog


def file_loader(catalog_path: Path) -> Callable[[], ProviderCatalog]:
    """Build a loader that reads and validates *catalog_path* on every call."""

    def _load() -> ProviderCatalog:
        return load_catalog(catalog_path)

    return _load
