"""Tests for provdetect.engine.rules: rule grammar parsing and serialization."""

from __future__ import annotations

import re

import pytest

from provdetect.engine.rules import (
    MAX_RULE_DEPTH,
    AllRule,
    AnyRule,
    HeaderEquals,
    HeaderPresent,
    IssuerEquals,
    MxRegex,
    MxSuffix,
    NotRule,
    NsRegex,
    RegistrarIncludes,
    RuleSyntaxError,
    iter_leaves,
    parse_rule,
    parse_rule_collecting,
    regex_flags,
    rule_to_dict,
    translate_pattern,
)

# ---------------------------------------------------------------------------
# Leaf predicates
# ---------------------------------------------------------------------------


class TestParseLeaves:
    """Tests for parse_rule() on single leaf predicates."""

    def test_header_equals(self) -> None:
        rule = parse_rule({"kind": "headerEquals", "name": "Server", "value": "Vercel"})
        assert rule == HeaderEquals(name="Server", value="Vercel")

    def test_header_present(self) -> None:
        rule = parse_rule({"kind": "headerPresent", "name": "x-vercel-id"})
        assert rule == HeaderPresent(name="x-vercel-id")

    def test_regex_without_flags(self) -> None:
        rule = parse_rule({"kind": "mxRegex", "pattern": r"google\.com$"})
        assert rule == MxRegex(pattern=r"google\.com$", flags=None)

    def test_regex_with_flags(self) -> None:
        rule = parse_rule({"kind": "nsRegex", "pattern": "^ns-", "flags": "i"})
        assert rule == NsRegex(pattern="^ns-", flags="i")

    def test_null_flags_treated_as_absent(self) -> None:
        rule = parse_rule({"kind": "nsRegex", "pattern": "^ns-", "flags": None})
        assert rule == NsRegex(pattern="^ns-")

    def test_unknown_fields_ignored(self) -> None:
        rule = parse_rule({"kind": "mxSuffix", "suffix": "google.com", "note": "primary"})
        assert rule == MxSuffix(suffix="google.com")

    def test_unknown_kind(self) -> None:
        with pytest.raises(RuleSyntaxError, match="unknown rule kind 'ipRange'"):
            parse_rule({"kind": "ipRange", "cidr": "10.0.0.0/8"})

    def test_missing_required_field(self) -> None:
        with pytest.raises(RuleSyntaxError, match="requires string field 'value'"):
            parse_rule({"kind": "issuerEquals"})

    def test_non_string_field(self) -> None:
        with pytest.raises(RuleSyntaxError, match="requires string field 'substr'"):
            parse_rule({"kind": "registrarIncludes", "substr": 42})

    def test_non_string_flags(self) -> None:
        with pytest.raises(RuleSyntaxError, match="'flags' must be a string"):
            parse_rule({"kind": "mxRegex", "pattern": "x", "flags": 1})

    def test_invalid_regex_pattern(self) -> None:
        with pytest.raises(RuleSyntaxError, match="Invalid regex pattern"):
            parse_rule({"kind": "mxRegex", "pattern": "[invalid("})

    def test_invalid_regex_flags(self) -> None:
        with pytest.raises(RuleSyntaxError, match="Invalid regex flags 'x'"):
            parse_rule({"kind": "nsRegex", "pattern": "^ns", "flags": "x"})

    def test_non_mapping_rule(self) -> None:
        with pytest.raises(RuleSyntaxError, match="rule must be a mapping"):
            parse_rule("headerPresent")


# ---------------------------------------------------------------------------
# TestParseCombinators
# ---------------------------------------------------------------------------


class TestParseCombinators:
    """Tests for parse_rule() on all/any/not trees."""

    def test_any_of_leaves(self) -> None:
        rule = parse_rule(
            {
                "any": [
                    {"kind": "headerEquals", "name": "server", "value": "vercel"},
                    {"kind": "headerPresent", "name": "x-vercel-id"},
                ]
            }
        )
        assert rule == AnyRule(
            (HeaderEquals("server", "vercel"), HeaderPresent("x-vercel-id"))
        )

    def test_nested_tree(self) -> None:
        rule = parse_rule(
            {
                "all": [
                    {"kind": "mxSuffix", "suffix": "google.com"},
                    {"not": {"kind": "issuerEquals", "value": "r3"}},
                ]
            }
        )
        assert rule == AllRule((MxSuffix("google.com"), NotRule(IssuerEquals("r3"))))

    def test_empty_combinators_allowed(self) -> None:
        assert parse_rule({"all": []}) == AllRule(())
        assert parse_rule({"any": []}) == AnyRule(())

    def test_combinator_requires_list(self) -> None:
        with pytest.raises(RuleSyntaxError, match="'any' must be a list") as exc_info:
            parse_rule({"any": {"kind": "headerPresent", "name": "x"}})
        assert exc_info.value.path == "rule.any"

    def test_ambiguous_rule(self) -> None:
        with pytest.raises(RuleSyntaxError, match="exactly one of"):
            parse_rule({"any": [], "kind": "headerPresent", "name": "x"})

    def test_empty_mapping(self) -> None:
        with pytest.raises(RuleSyntaxError, match="exactly one of"):
            parse_rule({})

    def test_error_path_points_into_tree(self) -> None:
        with pytest.raises(RuleSyntaxError) as exc_info:
            parse_rule(
                {
                    "any": [
                        {"kind": "headerPresent", "name": "x"},
                        {"not": {"kind": "nsRegex", "pattern": "(unclosed"}},
                    ]
                }
            )
        assert exc_info.value.path == "rule.any[1].not"


class TestParseRuleCollecting:
    """parse_rule_collecting() reports every error in one pass."""

    def test_collects_all_errors(self) -> None:
        rule, errors = parse_rule_collecting(
            {
                "any": [
                    {"kind": "mxRegex", "pattern": "[invalid("},
                    {"kind": "headerPresent", "name": "ok"},
                    {"all": [{"kind": "nsRegex", "pattern": "**invalid**"}]},
                ]
            }
        )
        assert rule is None
        assert [e.path for e in errors] == ["rule.any[0]", "rule.any[2].all[0]"]
        assert all("Invalid regex pattern" in e.message for e in errors)

    def test_valid_rule_has_no_errors(self) -> None:
        rule, errors = parse_rule_collecting({"kind": "registrarIncludes", "substr": "gandi"})
        assert rule == RegistrarIncludes("gandi")
        assert errors == []

    def test_custom_root_path(self) -> None:
        _rule, errors = parse_rule_collecting({"not": "bad"}, path="hosting[0].rule")
        assert errors[0].path == "hosting[0].rule.not"


# ---------------------------------------------------------------------------
# Flags, serialization, traversal
# ---------------------------------------------------------------------------


class TestRegexFlags:
    def test_absent_flags_ignore_case(self) -> None:
        assert regex_flags(None) == re.IGNORECASE

    def test_empty_flags_case_sensitive(self) -> None:
        assert regex_flags("") == 0

    def test_combined_flags(self) -> None:
        assert regex_flags("ims") == re.IGNORECASE | re.MULTILINE | re.DOTALL

    def test_iteration_flags_are_noops(self) -> None:
        assert regex_flags("gu") == 0

    def test_repeated_flag_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid regex flags"):
            regex_flags("ii")


class TestRuleToDict:
    def test_round_trip_nested_document(self) -> None:
        doc = {
            "all": [
                {"kind": "headerIncludes", "name": "server", "substr": "nginx"},
                {
                    "any": [
                        {"kind": "nsRegex", "pattern": "^ns\\d+\\.", "flags": "i"},
                        {"not": {"kind": "registrarEquals", "value": "gandi sas"}},
                    ]
                },
            ]
        }
        assert rule_to_dict(parse_rule(doc)) == doc

    def test_absent_flags_omitted(self) -> None:
        assert rule_to_dict(MxRegex(pattern="x")) == {"kind": "mxRegex", "pattern": "x"}


class TestIterLeaves:
    def test_depth_first_order(self) -> None:
        rule = AnyRule(
            (
                HeaderPresent("a"),
                AllRule((MxSuffix("b"), NotRule(IssuerEquals("c")))),
            )
        )
        assert iter_leaves(rule) == [HeaderPresent("a"), MxSuffix("b"), IssuerEquals("c")]

    def test_single_leaf(self) -> None:
        assert iter_leaves(HeaderPresent("a")) == [HeaderPresent("a")]


def _nest_not(depth: int) -> dict[str, object]:
    rule: dict[str, object] = {"kind": "headerPresent", "name": "x"}
    for _ in range(depth):
        rule = {"not": rule}
    return rule


class TestNestingLimit:
    """Rule trees deeper than MAX_RULE_DEPTH are reported, not recursed into."""

    def test_at_limit_parses(self) -> None:
        rule = parse_rule(_nest_not(MAX_RULE_DEPTH))
        assert iter_leaves(rule) == [HeaderPresent("x")]

    def test_one_past_limit_is_an_error(self) -> None:
        rule, errors = parse_rule_collecting(_nest_not(MAX_RULE_DEPTH + 1))
        assert rule is None
        assert len(errors) == 1
        assert errors[0].path == "rule" + ".not" * (MAX_RULE_DEPTH + 1)
        assert errors[0].message == f"rule nesting exceeds {MAX_RULE_DEPTH} levels"

    def test_very_deep_rule_does_not_overflow(self) -> None:
        with pytest.raises(RuleSyntaxError, match="rule nesting exceeds"):
            parse_rule(_nest_not(5000))

    def test_deep_combinators_count_too(self) -> None:
        rule: dict[str, object] = {"kind": "mxSuffix", "suffix": "example.com"}
        for _ in range(MAX_RULE_DEPTH + 1):
            rule = {"any": [rule]}
        _rule, errors = parse_rule_collecting(rule)
        assert errors[0].path == "rule" + ".any[0]" * (MAX_RULE_DEPTH + 1)


class TestPatternSyntax:
    """Regex leaves accept JavaScript named groups alongside ``re`` syntax."""

    def test_named_group_rewritten(self) -> None:
        assert translate_pattern(r"^(?<p>ns)\d+$") == r"^(?P<p>ns)\d+$"

    def test_named_backreference_rewritten(self) -> None:
        assert translate_pattern(r"(?<a>x)-\k<a>") == r"(?P<a>x)-(?P=a)"

    @pytest.mark.parametrize("pattern", [r"(?<=ns)\d+", r"(?<!mx)\.com$", r"\(?<p>", "(?P<p>x)"])
    def test_other_constructs_untouched(self, pattern: str) -> None:
        assert translate_pattern(pattern) == pattern

    def test_js_named_group_rule_parses(self) -> None:
        doc = {"kind": "nsRegex", "pattern": r"^(?<p>ns)\d+\.example\.com$"}
        rule = parse_rule(doc)
        assert rule == NsRegex(pattern=r"^(?<p>ns)\d+\.example\.com$")
        assert rule_to_dict(rule) == doc
