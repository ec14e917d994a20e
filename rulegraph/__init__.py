"""rulegraph - rule-routing compiler and accepted-volume aggregator.

Given named routing workflows over a fixed set of bounded integer
attributes, compute how many attribute combinations end in Accept.

Submodules
----------
rules
    Parsed rule records: ``Rule``, ``Workflow``, ``RuleSet``.
bounds
    ``Range``, ``Bounds`` and the range reducer.
graph
    Arena rule graph and the two-pass ``RuleGraphBuilder``.
walker
    ``PathWalker``: backward DFS from Accept, one region per path.
volume
    ``union_volume``: exact size of a union of boxes.
analysis
    ``count_accepted`` / ``analyze`` end-to-end pipeline.
grammar
    Parsimonious front end for rule text.
config, errors, reporter, main
    Configuration, error taxonomy, terminal rendering, CLI.

Usage
-----
Command-line::

    python -m rulegraph count rules.txt

Programmatic::

    from rulegraph import VolumeConfig, count_accepted, parse_rules

    rules = parse_rules(text)
    count_accepted(rules, VolumeConfig(domain_max=4000))
"""

from __future__ import annotations

__version__: str = "0.1.0"

from .analysis import AnalysisResult, analyze, count_accepted
from .bounds import Bounds, EdgeKind, Range, Region, reduce_range
from .config import VolumeConfig
from .errors import (
    ConfigError,
    CyclicRoutingError,
    GraphInvariantViolation,
    RuleDefinitionError,
    RulegraphError,
    RuleSyntaxError,
    UnknownDestination,
)
from .grammar import load_rules, parse_rules
from .graph import GraphBuild, RuleGraph, RuleGraphBuilder, build_graph
from .rules import Comparator, Comparison, Destination, Rule, RuleSet, Workflow
from .volume import union_volume
from .walker import PathWalker, walk_accepting_regions

__all__: list[str] = [
    "__version__",
    "AnalysisResult",
    "Bounds",
    "Comparator",
    "Comparison",
    "ConfigError",
    "CyclicRoutingError",
    "Destination",
    "EdgeKind",
    "GraphBuild",
    "GraphInvariantViolation",
    "PathWalker",
    "Range",
    "Region",
    "Rule",
    "RuleDefinitionError",
    "RuleGraph",
    "RuleGraphBuilder",
    "RuleSet",
    "RuleSyntaxError",
    "RulegraphError",
    "UnknownDestination",
    "VolumeConfig",
    "Workflow",
    "analyze",
    "build_graph",
    "count_accepted",
    "load_rules",
    "parse_rules",
    "reduce_range",
    "union_volume",
    "walk_accepting_regions",
]
