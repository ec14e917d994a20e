"""
rulegraph/graph.py
══════════════════

The rule graph and its two-pass builder.

Nodes live in an arena (:class:`RuleGraph.nodes`) and are addressed by
dense integer index; edges are index pairs tagged with an
:class:`~rulegraph.bounds.EdgeKind`.  No node refers to another node
directly.

Edges are stored *reversed* relative to evaluation order: an edge runs
from the node a rule leads to, back to the rule's own node.  Walking
stored edges forward from Accept therefore retraces every accepting
evaluation backwards.  Visually, for ``wf{a<10:A,m>5:other,R}``::

    Accept ──pass──▶ (a<10) ◀──fail── (m>5) ◀──fail── Reject
                                        ▲
    (other's entry rule) ───pass────────┘

    (in's entry rule) ──entry──▶ Start

Construction happens in two passes because a destination may name a
workflow whose node does not exist yet:

1. allocate Reject, Accept, Start, then one node for the entry rule of
   every workflow, recording name → index;
2. wire every workflow's chain; each destination resolves through the
   map built in pass 1.

Once built, the graph is frozen.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .bounds import EdgeKind
from .config import VolumeConfig
from .errors import (
    ErrorCode,
    GraphInvariantViolation,
    RuleDefinitionError,
    UnknownDestination,
)
from .rules import Comparator, Destination, DestinationKind, Rule, RuleSet, Workflow

logger = logging.getLogger(__name__)

NodeIndex = int


class NodeKind(enum.Enum):
    CONDITION = "condition"
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"


@dataclass(frozen=True, slots=True)
class GraphNode:
    """Tagged union: only CONDITION nodes carry an attribute and comparator.

    ``workflow`` and ``position`` record which rule the node came from;
    they are used for labels only.
    """

    kind: NodeKind
    attribute: Optional[str] = None
    comparator: Optional[Comparator] = None
    workflow: Optional[str] = None
    position: Optional[int] = None

    @classmethod
    def condition(cls, rule: Rule, workflow: str, position: int) -> GraphNode:
        return cls(NodeKind.CONDITION, rule.attribute, rule.comparator, workflow, position)

    @property
    def is_terminal(self) -> bool:
        return self.kind in (NodeKind.ACCEPT, NodeKind.REJECT)

    def label(self) -> str:
        if self.kind is NodeKind.CONDITION:
            return f"{self.workflow}#{self.position}: {self.attribute}{self.comparator}"
        return self.kind.value.capitalize()


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """Stored edge ``source → target`` (``target`` is the rule node)."""

    source: NodeIndex
    target: NodeIndex
    kind: EdgeKind


class RuleGraph:
    """Arena of :class:`GraphNode` plus reversed, tagged edges.

    Attributes
    ----------
    nodes : list[GraphNode]
        Every node; the list index is the node's identity.
    edges : list[GraphEdge]
        Every stored edge, in insertion order.
    accept, reject, start : int
        Indices of the three singleton nodes.
    """

    def __init__(self) -> None:
        self.nodes: List[GraphNode] = []
        self.edges: List[GraphEdge] = []
        self._outgoing: List[List[int]] = []
        self._incoming: List[List[int]] = []
        self._frozen = False
        self.reject = self.add_node(GraphNode(NodeKind.REJECT))
        self.accept = self.add_node(GraphNode(NodeKind.ACCEPT))
        self.start = self.add_node(GraphNode(NodeKind.START))

    # ----- mutation ---------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphInvariantViolation(
                "rule graph is frozen", code=ErrorCode.GRAPH_FROZEN
            )

    def add_node(self, node: GraphNode) -> NodeIndex:
        self._check_mutable()
        self.nodes.append(node)
        self._outgoing.append([])
        self._incoming.append([])
        return len(self.nodes) - 1

    def add_edge(self, source: NodeIndex, target: NodeIndex, kind: EdgeKind) -> GraphEdge:
        self._check_mutable()
        edge = GraphEdge(source, target, kind)
        self._outgoing[source].append(len(self.edges))
        self._incoming[target].append(len(self.edges))
        self.edges.append(edge)
        return edge

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ----- queries ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, index: NodeIndex) -> GraphNode:
        return self.nodes[index]

    def edges_from(self, index: NodeIndex) -> Iterator[GraphEdge]:
        """Stored edges leaving *index*: the steps one hop further back."""
        for e in self._outgoing[index]:
            yield self.edges[e]

    def edges_into(self, index: NodeIndex) -> Iterator[GraphEdge]:
        for e in self._incoming[index]:
            yield self.edges[e]

    def out_degree(self, index: NodeIndex) -> int:
        return len(self._outgoing[index])

    def in_degree(self, index: NodeIndex) -> int:
        return len(self._incoming[index])

    def validate(self) -> None:
        """Check the structural invariants; raise on the first violation.

        * every condition node is reached by exactly one FROM_PASS and one
          FROM_FAIL edge;
        * Accept and Reject are never the target of an edge;
        * Start is never the source of an edge and is reached only
          through ENTRY edges.
        """
        for i, node in enumerate(self.nodes):
            kinds = Counter(edge.kind for edge in self.edges_into(i))
            if node.kind is NodeKind.CONDITION:
                if (
                    kinds[EdgeKind.FROM_PASS] != 1
                    or kinds[EdgeKind.FROM_FAIL] != 1
                    or kinds[EdgeKind.ENTRY]
                ):
                    raise GraphInvariantViolation(
                        f"{node.label()} has {kinds[EdgeKind.FROM_PASS]} pass and "
                        f"{kinds[EdgeKind.FROM_FAIL]} fail edges recorded"
                    )
            elif node.is_terminal:
                if self.in_degree(i):
                    raise GraphInvariantViolation(f"{node.label()} is the target of an edge")
            elif node.kind is NodeKind.START:
                if self.out_degree(i):
                    raise GraphInvariantViolation("Start is the source of an edge")
                if set(kinds) - {EdgeKind.ENTRY}:
                    raise GraphInvariantViolation("Start is reached by a non-entry edge")

    def to_dot(self, title: Optional[str] = None) -> str:
        """Graphviz DOT rendering, edges drawn in evaluation direction."""
        lines = [f'digraph "{title or "rules"}" {{', "  rankdir=LR;"]
        shapes = {
            NodeKind.CONDITION: "box",
            NodeKind.ACCEPT: "doublecircle",
            NodeKind.REJECT: "doubleoctagon",
            NodeKind.START: "circle",
        }
        for i, node in enumerate(self.nodes):
            lines.append(f'  n{i} [label="{node.label()}", shape={shapes[node.kind]}];')
        for edge in self.edges:
            # stored reversed; draw as evaluated
            lines.append(f'  n{edge.target} -> n{edge.source} [label="{edge.kind.value}"];')
        lines.append("}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"RuleGraph(nodes={len(self.nodes)}, edges={len(self.edges)})"


@dataclass(frozen=True)
class GraphBuild:
    """Result of :func:`build_graph`."""

    graph: RuleGraph
    entrypoints: Dict[str, NodeIndex]


class RuleGraphBuilder:
    """Two-pass construction of a :class:`RuleGraph` from a :class:`RuleSet`."""

    def __init__(self, rules: RuleSet, config: Optional[VolumeConfig] = None) -> None:
        self.rules = rules
        self.config = config or VolumeConfig()
        self.graph = RuleGraph()
        self.entrypoints: Dict[str, NodeIndex] = {}

    def build(self) -> GraphBuild:
        self.config.check()
        self._check_attributes()
        if self.config.start_workflow not in self.rules:
            raise UnknownDestination(self.config.start_workflow)

        # Pass 1: one node per workflow entry rule.
        for name in sorted(self.rules):
            wf = self.rules[name]
            self.entrypoints[name] = self.graph.add_node(
                GraphNode.condition(wf.entry_rule, name, 0)
            )

        # Pass 2: wire the chains.
        for name in sorted(self.rules):
            self._wire_workflow(self.rules[name])
        self.graph.add_edge(
            self.entrypoints[self.config.start_workflow], self.graph.start, EdgeKind.ENTRY
        )

        self.graph.validate()
        self.graph.freeze()
        logger.debug(
            "built rule graph: %d workflows, %d nodes, %d edges",
            len(self.rules), len(self.graph.nodes), len(self.graph.edges),
        )
        return GraphBuild(self.graph, dict(self.entrypoints))

    def _check_attributes(self) -> None:
        known = set(self.config.attributes)
        for name in sorted(self.rules):
            wf = self.rules[name]
            for rule in wf.rules:
                if rule.attribute not in known:
                    raise RuleDefinitionError(
                        f"workflow '{name}' tests unknown attribute '{rule.attribute}'",
                        code=ErrorCode.UNKNOWN_ATTRIBUTE,
                        span=wf.span,
                        hint=f"configured attributes are {', '.join(self.config.attributes)}",
                    )

    def _resolve(self, destination: Destination, wf: Workflow) -> NodeIndex:
        if destination.kind is DestinationKind.ACCEPT:
            return self.graph.accept
        if destination.kind is DestinationKind.REJECT:
            return self.graph.reject
        try:
            return self.entrypoints[destination.name]
        except KeyError:
            raise UnknownDestination(
                destination.name, referenced_from=wf.name, span=wf.span
            ) from None

    def _wire_workflow(self, wf: Workflow) -> None:
        # (prev) <-fail- (curr) <-fail- … <-fail- (default)
        #   ^              ^
        #  pass           pass
        prev = self.entrypoints[wf.name]
        passed = self._resolve(wf.entry_rule.destination, wf)
        self.graph.add_edge(passed, prev, EdgeKind.FROM_PASS)
        for position, rule in enumerate(wf.rules[1:], start=1):
            node = self.graph.add_node(GraphNode.condition(rule, wf.name, position))
            self.graph.add_edge(node, prev, EdgeKind.FROM_FAIL)
            self.graph.add_edge(self._resolve(rule.destination, wf), node, EdgeKind.FROM_PASS)
            prev = node
        self.graph.add_edge(self._resolve(wf.default, wf), prev, EdgeKind.FROM_FAIL)


def build_graph(rules: RuleSet, config: Optional[VolumeConfig] = None) -> GraphBuild:
    """Build and freeze the rule graph for *rules*."""
    return RuleGraphBuilder(rules, config).build()
