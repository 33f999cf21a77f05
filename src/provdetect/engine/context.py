"""Detection context: the normalized view of one domain's raw signals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

# Headers arrive as a mapping, as (name, value) pairs, or as
# {"name": ..., "value": ...} records straight from an HTTP prober.
HeaderInput = Union[
    Mapping[str, str],
    Iterable[tuple[str, str]],
    Iterable[Mapping[str, str]],
]


@dataclass(frozen=True)
class DetectionContext:
    """Normalized signals handed to the rule evaluator.

    All strings are lower-cased; hostnames have their root-zone dot removed;
    ``issuer`` and ``registrar`` are ``None`` when the signal is absent or empty.
    """

    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    mx: tuple[str, ...] = ()
    ns: tuple[str, ...] = ()
    issuer: str | None = None
    registrar: str | None = None


def _header_pairs(headers: HeaderInput) -> Iterable[tuple[object, object]]:
    if isinstance(headers, Mapping):
        return headers.items()
    pairs: list[tuple[object, object]] = []
    for item in headers:
        if isinstance(item, Mapping):
            pairs.append((item.get("name"), item.get("value")))
        else:
            name, value = item
            pairs.append((name, value))
    return pairs


def normalize_headers(headers: HeaderInput | None) -> Mapping[str, str]:
    """Build a read-only, case-insensitive header lookup.

    Names and values are lower-cased and values trimmed.  A name repeated
    with different casing keeps the last value seen.  Entries without a
    name are skipped.
    """
    result: dict[str, str] = {}
    if headers is None:
        return MappingProxyType(result)
    for name, value in _header_pairs(headers):
        if name is None:
            continue
        key = str(name).strip().lower()
        if not key:
            continue
        result[key] = "" if value is None else str(value).strip().lower()
    return MappingProxyType(result)


def normalize_hostname(host: str) -> str:
    """Lower-case *host* and strip exactly one trailing (root-zone) dot."""
    normalized = host.strip().lower()
    if normalized.endswith("."):
        normalized = normalized[:-1]
    return normalized


def normalize_hostnames(hosts: Iterable[str] | None) -> tuple[str, ...]:
    if hosts is None:
        return ()
    return tuple(normalize_hostname(h) for h in hosts if h is not None)


def normalize_signal(value: str | None) -> str | None:
    """Lower-case and trim a free-text signal; empty means absent."""
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


def build_context(
    *,
    headers: HeaderInput | None = None,
    mx: Iterable[str] | None = None,
    ns: Iterable[str] | None = None,
    issuer: str | None = None,
    registrar: str | None = None,
) -> DetectionContext:
    """Normalize any subset of raw signals into a :class:`DetectionContext`."""
    return DetectionContext(
        headers=normalize_headers(headers),
        mx=normalize_hostnames(mx),
        ns=normalize_hostnames(ns),
        issuer=normalize_signal(issuer),
        registrar=normalize_signal(registrar),
    )
