# tests/test_graph.py
"""
Tests for the rule graph arena and the two-pass builder.
"""

import pytest

from rulegraph.bounds import EdgeKind
from rulegraph.config import VolumeConfig
from rulegraph.errors import (
    ErrorCode,
    GraphInvariantViolation,
    RuleDefinitionError,
    UnknownDestination,
)
from rulegraph.grammar import parse_rules
from rulegraph.graph import GraphNode, NodeKind, RuleGraph, build_graph
from rulegraph.rules import Comparator, Destination, Rule


class TestBuildSample:

    def test_node_count(self, sample_rules):
        build = build_graph(sample_rules)
        # three singletons + one node per rule
        assert len(build.graph) == 3 + 14

    def test_edge_count(self, sample_rules):
        graph = build_graph(sample_rules).graph
        # a pass and a fail edge per rule, plus the entry edge
        assert len(graph.edges) == 2 * 14 + 1

    def test_terminal_fan_out(self, sample_rules):
        graph = build_graph(sample_rules).graph
        assert graph.out_degree(graph.accept) == 9
        assert graph.out_degree(graph.reject) == 6
        assert graph.in_degree(graph.accept) == 0
        assert graph.in_degree(graph.reject) == 0

    def test_start_is_anchor(self, sample_rules):
        graph = build_graph(sample_rules).graph
        assert graph.out_degree(graph.start) == 0
        (edge,) = graph.edges_into(graph.start)
        assert edge.kind is EdgeKind.ENTRY

    def test_entrypoints(self, sample_rules):
        build = build_graph(sample_rules)
        assert set(build.entrypoints) == set(sample_rules)
        entry = build.graph.node(build.entrypoints["in"])
        assert entry.kind is NodeKind.CONDITION
        assert entry.attribute == "s"
        assert entry.comparator == Comparator.less_than(1351)

    def test_entry_edge_leaves_start_workflow(self, sample_rules):
        build = build_graph(sample_rules)
        (edge,) = build.graph.edges_into(build.graph.start)
        assert edge.source == build.entrypoints["in"]

    def test_every_condition_has_one_pass_one_fail(self, sample_rules):
        graph = build_graph(sample_rules).graph
        for index, node in enumerate(graph.nodes):
            if node.kind is not NodeKind.CONDITION:
                continue
            kinds = sorted(e.kind.value for e in graph.edges_into(index))
            assert kinds == ["fail", "pass"]

    def test_fail_chain_within_workflow(self, sample_rules):
        build = build_graph(sample_rules)
        graph = build.graph
        first = build.entrypoints["qqz"]
        fail_sources = [e.source for e in graph.edges_into(first) if e.kind is EdgeKind.FROM_FAIL]
        second = graph.node(fail_sources[0])
        assert second.workflow == "qqz"
        assert second.position == 1
        assert second.comparator == Comparator.less_than(1801)

    def test_shared_workflow_reached_twice(self):
        rules = parse_rules("in{x<10:c,m>5:c,R}\nc{a<3:A,R}")
        build = build_graph(rules)
        passes = [
            e for e in build.graph.edges_from(build.entrypoints["c"])
            if e.kind is EdgeKind.FROM_PASS
        ]
        assert len(passes) == 2

    def test_graph_is_frozen(self, sample_rules):
        graph = build_graph(sample_rules).graph
        assert graph.frozen
        with pytest.raises(GraphInvariantViolation) as info:
            graph.add_node(GraphNode(NodeKind.START))
        assert info.value.code is ErrorCode.GRAPH_FROZEN

    def test_to_dot(self, sample_rules):
        dot = build_graph(sample_rules).graph.to_dot(title="sample")
        assert dot.startswith('digraph "sample" {')
        assert "in#0: s<1351" in dot
        assert dot.rstrip().endswith("}")


class TestBuildErrors:

    def test_unknown_destination(self):
        rules = parse_rules("in{x<5:nowhere,R}")
        with pytest.raises(UnknownDestination) as info:
            build_graph(rules)
        assert info.value.name == "nowhere"
        assert info.value.referenced_from == "in"
        assert info.value.code is ErrorCode.UNKNOWN_DESTINATION

    def test_unknown_default_destination(self):
        rules = parse_rules("in{x<5:A,gone}")
        with pytest.raises(UnknownDestination) as info:
            build_graph(rules)
        assert info.value.name == "gone"

    def test_unknown_destination_carries_span(self):
        rules = parse_rules("in{x<5:a,R}\na{x<2:b,A}", source="r.txt")
        with pytest.raises(UnknownDestination) as info:
            build_graph(rules)
        assert info.value.span.line == 2
        assert info.value.span.file == "r.txt"

    def test_missing_start_workflow(self):
        rules = parse_rules("px{x<5:A,R}")
        with pytest.raises(UnknownDestination) as info:
            build_graph(rules)
        assert info.value.name == "in"

    def test_custom_start_workflow(self):
        rules = parse_rules("px{x<5:A,R}")
        build = build_graph(rules, VolumeConfig(start_workflow="px"))
        (edge,) = build.graph.edges_into(build.graph.start)
        assert edge.source == build.entrypoints["px"]

    def test_unknown_attribute(self):
        rules = parse_rules("in{q<5:A,R}")
        with pytest.raises(RuleDefinitionError) as info:
            build_graph(rules)
        assert info.value.code is ErrorCode.UNKNOWN_ATTRIBUTE

    def test_custom_attributes(self):
        rules = parse_rules("in{q<5:A,R}")
        config = VolumeConfig(attributes=("q",), domain_max=10)
        assert len(build_graph(rules, config).graph) == 4


class TestValidate:

    def _rule_node(self) -> GraphNode:
        rule = Rule("x", Comparator.less_than(5), Destination.accept())
        return GraphNode.condition(rule, "wf", 0)

    def test_double_pass_edge(self):
        graph = RuleGraph()
        n = graph.add_node(self._rule_node())
        graph.add_edge(graph.accept, n, EdgeKind.FROM_PASS)
        graph.add_edge(graph.reject, n, EdgeKind.FROM_PASS)
        graph.add_edge(graph.reject, n, EdgeKind.FROM_FAIL)
        with pytest.raises(GraphInvariantViolation, match="2 pass"):
            graph.validate()

    def test_missing_fail_edge(self):
        graph = RuleGraph()
        n = graph.add_node(self._rule_node())
        graph.add_edge(graph.accept, n, EdgeKind.FROM_PASS)
        with pytest.raises(GraphInvariantViolation):
            graph.validate()

    def test_terminal_as_target(self):
        graph = RuleGraph()
        graph.add_edge(graph.accept, graph.reject, EdgeKind.FROM_FAIL)
        with pytest.raises(GraphInvariantViolation):
            graph.validate()

    def test_start_as_source(self):
        graph = RuleGraph()
        n = graph.add_node(self._rule_node())
        graph.add_edge(graph.accept, n, EdgeKind.FROM_PASS)
        graph.add_edge(graph.start, n, EdgeKind.FROM_FAIL)
        with pytest.raises(GraphInvariantViolation, match="Start"):
            graph.validate()

    def test_well_formed(self):
        graph = RuleGraph()
        n = graph.add_node(self._rule_node())
        graph.add_edge(graph.accept, n, EdgeKind.FROM_PASS)
        graph.add_edge(graph.reject, n, EdgeKind.FROM_FAIL)
        graph.add_edge(n, graph.start, EdgeKind.ENTRY)
        graph.validate()
