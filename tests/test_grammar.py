# tests/test_grammar.py
"""
Tests for the rule-text grammar and visitor.
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError

from rulegraph.errors import ErrorCode, RuleDefinitionError, RuleSyntaxError, SourceSpan
from rulegraph.grammar import RULE_GRAMMAR, iter_workflows, load_rules, parse_line, parse_rules
from rulegraph.rules import Comparator, Destination, DestinationKind, Rule


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR ACCEPTANCE
# ═══════════════════════════════════════════════════════════════════

class TestGrammar:

    def test_rule(self):
        tree = RULE_GRAMMAR["rule"].parse("a<2006:qkq")
        assert tree.text == "a<2006:qkq"

    def test_workflow(self):
        RULE_GRAMMAR.parse("px{a<2006:qkq,m>2090:A,rfg}")

    def test_rating(self):
        RULE_GRAMMAR.parse("{x=787,m=2655,a=1222,s=2876}")

    def test_default_named_like_attribute(self):
        # the trailing "rfg" must not be mistaken for a rule
        RULE_GRAMMAR.parse("rfg{s<537:gd,x>2440:R,A}")
        RULE_GRAMMAR.parse("in{s<1351:px,qqz}")

    def test_missing_default(self):
        with pytest.raises(ParseError):
            RULE_GRAMMAR.parse("px{a<2006:qkq}")

    def test_no_rules(self):
        with pytest.raises(ParseError):
            RULE_GRAMMAR.parse("in{R}")

    def test_bad_comparison(self):
        with pytest.raises(ParseError):
            RULE_GRAMMAR.parse("in{x=5:A,R}")

    def test_trailing_garbage(self):
        with pytest.raises(IncompleteParseError):
            RULE_GRAMMAR.parse("in{x<5:A,R}extra")


# ═══════════════════════════════════════════════════════════════════
#  VISITOR OUTPUT
# ═══════════════════════════════════════════════════════════════════

class TestParseLine:

    def test_workflow_fields(self):
        wf = parse_line("px{a<2006:qkq,m>2090:A,rfg}")
        assert wf.name == "px"
        assert wf.rules == (
            Rule("a", Comparator.less_than(2006), Destination.workflow("qkq")),
            Rule("m", Comparator.greater_than(2090), Destination.accept()),
        )
        assert wf.default == Destination.workflow("rfg")

    def test_single_rule(self):
        wf = parse_line("crn{x>2662:A,R}")
        assert len(wf.rules) == 1
        assert wf.default.kind is DestinationKind.REJECT

    def test_round_trip_text(self):
        line = "qqz{s>2770:qs,m<1801:hdj,R}"
        assert str(parse_line(line)) == line

    def test_rating_returns_none(self):
        assert parse_line("{x=787,m=2655,a=1222,s=2876}") is None

    def test_span_is_attached(self):
        wf = parse_line("in{x<5:A,R}", SourceSpan(7, 1, "r.txt"))
        assert wf.span.line == 7

    def test_syntax_error(self):
        with pytest.raises(RuleSyntaxError) as info:
            parse_line("px{a<2006:qkq}", SourceSpan(4, 1, "r.txt"))
        err = info.value
        assert err.code is ErrorCode.INVALID_LINE
        assert err.span.line == 4
        assert err.span.file == "r.txt"
        assert err.span.column >= 1
        assert err.text == "px{a<2006:qkq}"


class TestParseRules:

    def test_sample(self, sample_rules):
        assert len(sample_rules) == 11
        assert sum(len(wf.rules) for wf in sample_rules.values()) == 14
        tested = {rule.attribute for wf in sample_rules.values() for rule in wf.rules}
        assert tested == set("xmas")

    def test_blank_lines_and_ratings_skipped(self):
        rules = parse_rules("\n\nin{x<5:A,R}\n\n{x=1,m=2,a=3,s=4}\n")
        assert list(rules) == ["in"]

    def test_line_numbers_count_blank_lines(self):
        with pytest.raises(RuleSyntaxError) as info:
            parse_rules("in{x<5:A,R}\n\nnot a rule\n", source="r.txt")
        assert info.value.span.line == 3
        assert str(info.value).startswith("r.txt:3:")

    def test_duplicate_workflow(self):
        with pytest.raises(RuleDefinitionError) as info:
            parse_rules("a{x<1:A,R}\na{x<2:A,R}")
        assert info.value.code is ErrorCode.DUPLICATE_WORKFLOW
        assert info.value.span.line == 2

    def test_iter_workflows_is_lazy(self):
        lines = iter(["in{x<5:A,R}", "bad"])
        workflows = iter_workflows(lines)
        assert next(workflows).name == "in"
        with pytest.raises(RuleSyntaxError):
            next(workflows)

    def test_load_rules(self, sample_file):
        rules = load_rules(sample_file)
        assert "in" in rules
        assert rules["in"].span.file == str(sample_file)

    def test_empty_text(self):
        assert len(parse_rules("")) == 0
