"""Detection rule grammar: leaf predicates, boolean combinators, and their wire format."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

COMBINATOR_KEYS: tuple[str, ...] = ("all", "any", "not")

# Catalog flags use JavaScript RegExp letters.  Letters that only change
# global/sticky iteration state have no effect on a boolean search.
_REGEX_FLAGS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "y": 0,
    "d": 0,
}

DEFAULT_REGEX_FLAGS: int = re.IGNORECASE

# An unescaped "(?<" not followed by "=" or "!" opens a JS named group.
_JS_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?![=!])")
_JS_BACKREF = re.compile(r"\\k<([A-Za-z_]\w*)>")

MAX_RULE_DEPTH = 64


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RuleSyntaxError(ValueError):
    """Raised when a rule document is malformed.

    ``path`` locates the offending node inside the rule tree, e.g.
    ``rule.any[2].not``.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


# ---------------------------------------------------------------------------
# Leaf predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderEquals:
    """HTTP header *name* exists and equals *value* (case-insensitive)."""

    kind: ClassVar[str] = "headerEquals"

    name: str
    value: str


@dataclass(frozen=True)
class HeaderIncludes:
    """HTTP header *name* exists and contains *substr* (case-insensitive)."""

    kind: ClassVar[str] = "headerIncludes"

    name: str
    substr: str


@dataclass(frozen=True)
class HeaderPresent:
    """HTTP header *name* exists, whatever its value."""

    kind: ClassVar[str] = "headerPresent"

    name: str


@dataclass(frozen=True)
class MxSuffix:
    """Some MX host is *suffix* or a subdomain of it."""

    kind: ClassVar[str] = "mxSuffix"

    suffix: str


@dataclass(frozen=True)
class MxRegex:
    """Some MX host matches *pattern*."""

    kind: ClassVar[str] = "mxRegex"

    pattern: str
    flags: str | None = None  # None -> case-insensitive


@dataclass(frozen=True)
class NsSuffix:
    """Some NS host is *suffix* or a subdomain of it."""

    kind: ClassVar[str] = "nsSuffix"

    suffix: str


@dataclass(frozen=True)
class NsRegex:
    """Some NS host matches *pattern*."""

    kind: ClassVar[str] = "nsRegex"

    pattern: str
    flags: str | None = None  # None -> case-insensitive


@dataclass(frozen=True)
class IssuerEquals:
    kind: ClassVar[str] = "issuerEquals"

    value: str


@dataclass(frozen=True)
class IssuerIncludes:
    kind: ClassVar[str] = "issuerIncludes"

    substr: str


@dataclass(frozen=True)
class RegistrarEquals:
    kind: ClassVar[str] = "registrarEquals"

    value: str


@dataclass(frozen=True)
class RegistrarIncludes:
    kind: ClassVar[str] = "registrarIncludes"

    substr: str


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AllRule:
    """Every sub-rule must hold.  An empty ``all`` holds trivially."""

    rules: tuple[Rule, ...]


@dataclass(frozen=True)
class AnyRule:
    """At least one sub-rule must hold.  An empty ``any`` never holds."""

    rules: tuple[Rule, ...]


@dataclass(frozen=True)
class NotRule:
    """Negation of the wrapped rule."""

    rule: Rule


LeafRule = (
    HeaderEquals
    | HeaderIncludes
    | HeaderPresent
    | MxSuffix
    | MxRegex
    | NsSuffix
    | NsRegex
    | IssuerEquals
    | IssuerIncludes
    | RegistrarEquals
    | RegistrarIncludes
)

Rule = AllRule | AnyRule | NotRule | LeafRule

RegexRule = MxRegex | NsRegex

# kind -> (class, required string fields, optional string fields)
_LEAF_SPECS: dict[str, tuple[type, tuple[str, ...], tuple[str, ...]]] = {
    "headerEquals": (HeaderEquals, ("name", "value"), ()),
    "headerIncludes": (HeaderIncludes, ("name", "substr"), ()),
    "headerPresent": (HeaderPresent, ("name",), ()),
    "mxSuffix": (MxSuffix, ("suffix",), ()),
    "mxRegex": (MxRegex, ("pattern",), ("flags",)),
    "nsSuffix": (NsSuffix, ("suffix",), ()),
    "nsRegex": (NsRegex, ("pattern",), ("flags",)),
    "issuerEquals": (IssuerEquals, ("value",), ()),
    "issuerIncludes": (IssuerIncludes, ("substr",), ()),
    "registrarEquals": (RegistrarEquals, ("value",), ()),
    "registrarIncludes": (RegistrarIncludes, ("substr",), ()),
}

LEAF_KINDS: frozenset[str] = frozenset(_LEAF_SPECS)


# ---------------------------------------------------------------------------
# Regex flags
# ---------------------------------------------------------------------------


def regex_flags(flags: str | None) -> int:
    """Translate a catalog flags string into ``re`` flags.

    ``None`` means case-insensitive; an explicit empty string means no flags.
    Raises ``ValueError`` for unknown or repeated letters.
    """
    if flags is None:
        return DEFAULT_REGEX_FLAGS

    result = 0
    seen: set[str] = set()
    for letter in flags:
        if letter not in _REGEX_FLAGS or letter in seen:
            msg = f"Invalid regex flags '{flags}'"
            raise ValueError(msg)
        seen.add(letter)
        result |= _REGEX_FLAGS[letter]
    return result


def translate_pattern(pattern: str) -> str:
    """Rewrite JavaScript named-group syntax into its ``re`` spelling.

    ``(?<name>...)`` becomes ``(?P<name>...)`` and ``\\k<name>`` becomes
    ``(?P=name)``.  Lookbehinds ``(?<=`` / ``(?<!`` are left alone.  Any
    other construct is compiled as ``re`` syntax.
    """
    pattern = _JS_NAMED_GROUP.sub("(?P<", pattern)
    return _JS_BACKREF.sub(r"(?P=\1)", pattern)


def compile_rule_pattern(pattern: str, flags: str | None = None) -> re.Pattern[str]:
    """Compile a regex leaf's pattern.

    Raises ``ValueError`` for bad flags and ``re.error`` for a bad pattern.
    """
    return re.compile(translate_pattern(pattern), regex_flags(flags))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_leaf(
    kind: str, data: dict[str, object], path: str, errors: list[RuleSyntaxError]
) -> Rule | None:
    """Parse a ``{kind: ...}`` leaf mapping; regex leaves are compiled eagerly."""
    spec = _LEAF_SPECS.get(kind)
    if spec is None:
        msg = f"unknown rule kind '{kind}', must be one of {sorted(LEAF_KINDS)}"
        errors.append(RuleSyntaxError(path, msg))
        return None

    cls, required, optional = spec
    kwargs: dict[str, str] = {}
    ok = True

    for field_name in required:
        value = data.get(field_name)
        if not isinstance(value, str):
            errors.append(
                RuleSyntaxError(path, f"'{kind}' requires string field '{field_name}'")
            )
            ok = False
            continue
        kwargs[field_name] = value

    for field_name in optional:
        if field_name not in data or data[field_name] is None:
            continue
        value = data[field_name]
        if not isinstance(value, str):
            errors.append(RuleSyntaxError(path, f"'{kind}' field '{field_name}' must be a string"))
            ok = False
            continue
        kwargs[field_name] = value

    if not ok:
        return None

    if cls in (MxRegex, NsRegex):
        pattern = kwargs["pattern"]
        try:
            compile_rule_pattern(pattern, kwargs.get("flags"))
        except re.error as exc:
            errors.append(RuleSyntaxError(path, f"Invalid regex pattern '{pattern}': {exc}"))
            return None
        except ValueError as exc:
            errors.append(RuleSyntaxError(path, str(exc)))
            return None

    rule: Rule = cls(**kwargs)
    return rule


def _parse_node(
    data: object, path: str, errors: list[RuleSyntaxError], depth: int = 0
) -> Rule | None:
    if depth > MAX_RULE_DEPTH:
        errors.append(RuleSyntaxError(path, f"rule nesting exceeds {MAX_RULE_DEPTH} levels"))
        return None
    if not isinstance(data, dict):
        errors.append(RuleSyntaxError(path, "rule must be a mapping"))
        return None

    present = [key for key in COMBINATOR_KEYS if key in data]
    has_kind = "kind" in data

    if len(present) + int(has_kind) != 1:
        errors.append(
            RuleSyntaxError(path, "rule must have exactly one of 'all', 'any', 'not', or 'kind'")
        )
        return None

    if has_kind:
        kind = data["kind"]
        if not isinstance(kind, str):
            errors.append(RuleSyntaxError(path, "'kind' must be a string"))
            return None
        return _parse_leaf(kind, data, path, errors)

    key = present[0]
    if key == "not":
        inner = _parse_node(data["not"], f"{path}.not", errors, depth + 1)
        return NotRule(inner) if inner is not None else None

    children_raw = data[key]
    if not isinstance(children_raw, list):
        errors.append(RuleSyntaxError(f"{path}.{key}", f"'{key}' must be a list"))
        return None

    # Keep going after a bad child so every problem is reported in one pass.
    children: list[Rule] = []
    failed = False
    for idx, child_data in enumerate(children_raw):
        child = _parse_node(child_data, f"{path}.{key}[{idx}]", errors, depth + 1)
        if child is None:
            failed = True
        else:
            children.append(child)

    if failed:
        return None
    if key == "all":
        return AllRule(tuple(children))
    return AnyRule(tuple(children))


def parse_rule_collecting(
    data: object, path: str = "rule"
) -> tuple[Rule | None, list[RuleSyntaxError]]:
    """Parse a rule tree, returning ``(rule, errors)``.

    *rule* is ``None`` whenever *errors* is non-empty.
    """
    errors: list[RuleSyntaxError] = []
    rule = _parse_node(data, path, errors)
    if errors:
        return None, errors
    return rule, errors


def parse_rule(data: object, path: str = "rule") -> Rule:
    """Parse a rule tree, raising the first ``RuleSyntaxError`` found."""
    rule, errors = parse_rule_collecting(data, path)
    if errors:
        raise errors[0]
    assert rule is not None
    return rule


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def rule_to_dict(rule: Rule) -> dict[str, object]:
    """Convert a rule back to its catalog (JSON/YAML) form."""
    if isinstance(rule, AllRule):
        return {"all": [rule_to_dict(r) for r in rule.rules]}
    if isinstance(rule, AnyRule):
        return {"any": [rule_to_dict(r) for r in rule.rules]}
    if isinstance(rule, NotRule):
        return {"not": rule_to_dict(rule.rule)}

    _cls, required, optional = _LEAF_SPECS[rule.kind]
    result: dict[str, object] = {"kind": rule.kind}
    for field_name in required:
        result[field_name] = getattr(rule, field_name)
    for field_name in optional:
        value = getattr(rule, field_name)
        if value is not None:
            result[field_name] = value
    return result


def iter_leaves(rule: Rule) -> list[LeafRule]:
    """Return every leaf of *rule* in depth-first order."""
    if isinstance(rule, (AllRule, AnyRule)):
        leaves: list[LeafRule] = []
        for child in rule.rules:
            leaves.extend(iter_leaves(child))
        return leaves
    if isinstance(rule, NotRule):
        return iter_leaves(rule.rule)
    return [rule]
