# tests/conftest.py
"""
Shared fixtures for the rulegraph test-suite.
"""

from itertools import product
from typing import Dict, Iterable

import pytest

from rulegraph.bounds import Bounds
from rulegraph.grammar import parse_rules
from rulegraph.rules import Comparator, Comparison, DestinationKind, RuleSet


SAMPLE_RULES = """\
px{a<2006:qkq,m>2090:A,rfg}
pv{a>1716:R,A}
lnx{m>1548:A,A}
rfg{s<537:gd,x>2440:R,A}
qs{s>3448:A,lnx}
qkq{x<1416:A,crn}
crn{x>2662:A,R}
in{s<1351:px,qqz}
qqz{s>2770:qs,m<1801:hdj,R}
gd{a>3333:R,R}
hdj{m>838:A,pv}

{x=787,m=2655,a=1222,s=2876}
{x=1679,m=44,a=2067,s=496}
{x=2036,m=264,a=79,s=2244}
{x=2461,m=1339,a=466,s=291}
{x=2127,m=1623,a=2188,s=1013}
"""

SAMPLE_ACCEPTED = 167_409_079_868_000


def box(**ranges) -> Bounds:
    """``box(x=(1, 3), m=(1, 5))`` → :class:`Bounds` in keyword order."""
    return Bounds.from_mapping(ranges)


def _passes(comparator: Comparator, value: int) -> bool:
    if comparator.comparison is Comparison.LESS_THAN:
        return value < comparator.threshold
    return value > comparator.threshold


def routes_to_accept(rules: RuleSet, start: str, point: Dict[str, int]) -> bool:
    """Evaluate *point* through *rules* the slow way (test oracle)."""
    wf = rules[start]
    while True:
        for rule in wf.rules:
            if _passes(rule.comparator, point[rule.attribute]):
                dest = rule.destination
                break
        else:
            dest = wf.default
        if dest.kind is DestinationKind.ACCEPT:
            return True
        if dest.kind is DestinationKind.REJECT:
            return False
        wf = rules[dest.name]


def brute_force_count(rules: RuleSet, attributes: Iterable[str], lo: int, hi: int,
                      start: str = "in") -> int:
    attrs = tuple(attributes)
    return sum(
        routes_to_accept(rules, start, dict(zip(attrs, values)))
        for values in product(range(lo, hi + 1), repeat=len(attrs))
    )


def brute_force_union(regions, lo: int, hi: int) -> int:
    dims = len(regions[0].attributes) if regions else 0
    return sum(
        any(
            all(rng.lo <= v <= rng.hi for rng, v in zip(r.ranges, p))
            for r in regions
        )
        for p in product(range(lo, hi + 1), repeat=dims)
    )


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_RULES


@pytest.fixture
def sample_rules() -> RuleSet:
    return parse_rules(SAMPLE_RULES, source="sample.txt")


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample.txt"
    path.write_text(SAMPLE_RULES, encoding="utf-8")
    return path
