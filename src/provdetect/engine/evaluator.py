"""Rule evaluator: structural recursion over a rule tree against a detection context."""

from __future__ import annotations

import functools
import logging
import re
from typing import TYPE_CHECKING

from provdetect.engine.rules import (
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
    compile_rule_pattern,
)

if TYPE_CHECKING:
    from provdetect.engine.context import DetectionContext
    from provdetect.engine.rules import Rule

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=512)
def _compiled(pattern: str, flags: str | None) -> re.Pattern[str] | None:
    """Compile and memoize a regex leaf; ``None`` if it does not compile."""
    try:
        return compile_rule_pattern(pattern, flags)
    except (re.error, ValueError) as exc:
        logger.debug("Regex rule %r (flags=%r) does not compile: %s", pattern, flags, exc)
        return None


def _any_host_has_suffix(hosts: tuple[str, ...], suffix: str) -> bool:
    suffix = suffix.lower()
    dotted = f".{suffix}"
    return any(h == suffix or h.endswith(dotted) for h in hosts)


def _any_host_matches(hosts: tuple[str, ...], pattern: str, flags: str | None) -> bool:
    regex = _compiled(pattern, flags)
    if regex is None:
        return False
    return any(regex.search(h) is not None for h in hosts)


def evaluate(rule: Rule, ctx: DetectionContext) -> bool:
    """Return True if *rule* holds for *ctx*.

    Pure and deterministic.  Never raises for a rule tree built by the
    parser; a regex leaf that cannot be compiled simply does not match.
    """
    if isinstance(rule, AllRule):
        return all(evaluate(r, ctx) for r in rule.rules)
    if isinstance(rule, AnyRule):
        return any(evaluate(r, ctx) for r in rule.rules)
    if isinstance(rule, NotRule):
        return not evaluate(rule.rule, ctx)

    # Header checks all go through the same normalized map.
    if isinstance(rule, HeaderEquals):
        value = ctx.headers.get(rule.name.lower())
        return value is not None and value.lower() == rule.value.lower()
    if isinstance(rule, HeaderIncludes):
        value = ctx.headers.get(rule.name.lower())
        return value is not None and rule.substr.lower() in value.lower()
    if isinstance(rule, HeaderPresent):
        return rule.name.lower() in ctx.headers

    if isinstance(rule, MxSuffix):
        return _any_host_has_suffix(ctx.mx, rule.suffix)
    if isinstance(rule, MxRegex):
        return _any_host_matches(ctx.mx, rule.pattern, rule.flags)
    if isinstance(rule, NsSuffix):
        return _any_host_has_suffix(ctx.ns, rule.suffix)
    if isinstance(rule, NsRegex):
        return _any_host_matches(ctx.ns, rule.pattern, rule.flags)

    if isinstance(rule, IssuerEquals):
        return ctx.issuer is not None and ctx.issuer == rule.value.lower()
    if isinstance(rule, IssuerIncludes):
        return ctx.issuer is not None and rule.substr.lower() in ctx.issuer
    if isinstance(rule, RegistrarEquals):
        return ctx.registrar is not None and ctx.registrar == rule.value.lower()
    if isinstance(rule, RegistrarIncludes):
        return ctx.registrar is not None and rule.substr.lower() in ctx.registrar

    logger.debug("Unsupported rule type %s treated as non-matching", type(rule).__name__)
    return False
