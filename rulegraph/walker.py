"""
rulegraph/walker.py
═══════════════════

Backward path enumeration from Accept to Start.

Every stored edge leaving Accept launches one branch.  A branch carries
its own :class:`~rulegraph.bounds.Bounds` (full domain at launch) and,
on arriving at a condition node through an edge of kind *k*, narrows the
node's attribute with :func:`~rulegraph.bounds.reduce_range`.  It then
forks along every stored edge leaving that node.  Reaching Start emits
the branch's bounds as one region and ends the branch.

* Bounds are immutable, so a fork never shares mutable state.
* A branch whose bounds become empty is pruned silently: it stands for
  zero combinations.
* Arriving at Accept or Reject mid-walk, or at a node already on the
  current path, is a fatal invariant violation.

The DFS keeps an explicit stack, so deep rule chains do not hit the
interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from .bounds import Bounds, EdgeKind, Region
from .config import VolumeConfig
from .errors import CyclicRoutingError, GraphInvariantViolation
from .graph import NodeIndex, NodeKind, RuleGraph

logger = logging.getLogger(__name__)


@dataclass
class WalkStats:
    """Counters collected during one walk."""

    launched: int = 0
    steps: int = 0
    emitted: int = 0
    pruned: int = 0


# (node reached, edge it was reached through, bounds so far, nodes on path)
_Frame = Tuple[NodeIndex, EdgeKind, Bounds, FrozenSet[NodeIndex]]


class PathWalker:
    """Enumerates one region per accepting path of a frozen :class:`RuleGraph`."""

    def __init__(self, graph: RuleGraph, config: Optional[VolumeConfig] = None) -> None:
        self.graph = graph
        self.config = config or VolumeConfig()
        self.stats = WalkStats()

    def initial_bounds(self) -> Bounds:
        return Bounds.full(
            self.config.attributes, self.config.domain_min, self.config.domain_max
        )

    def walk(self) -> List[Region]:
        """Return every region whose path reaches Start. Order is unspecified."""
        self.stats = WalkStats()
        regions: List[Region] = []
        launch = self.initial_bounds()
        origin = frozenset((self.graph.accept,))

        stack: List[_Frame] = []
        for edge in self.graph.edges_from(self.graph.accept):
            stack.append((edge.target, edge.kind, launch, origin))
            self.stats.launched += 1

        while stack:
            index, via, bounds, on_path = stack.pop()
            self.stats.steps += 1
            node = self.graph.node(index)

            if node.kind is NodeKind.START:
                regions.append(bounds)
                self.stats.emitted += 1
                continue
            if node.kind is not NodeKind.CONDITION:
                raise GraphInvariantViolation(
                    f"backward walk reached {node.label()} mid-path"
                )
            if index in on_path:
                raise CyclicRoutingError(node.label())
            if via is EdgeKind.ENTRY:
                raise GraphInvariantViolation(
                    f"entry edge leads to condition node {node.label()}"
                )

            narrowed = bounds.narrow(node.attribute, node.comparator, via)
            if not narrowed.is_feasible():
                self.stats.pruned += 1
                logger.debug("pruned infeasible branch at %s: %s", node.label(), narrowed)
                continue

            path = on_path | {index}
            for edge in self.graph.edges_from(index):
                stack.append((edge.target, edge.kind, narrowed, path))

        logger.debug(
            "walk finished: %d launched, %d steps, %d regions, %d pruned",
            self.stats.launched, self.stats.steps, self.stats.emitted, self.stats.pruned,
        )
        return regions


def walk_accepting_regions(
    graph: RuleGraph, config: Optional[VolumeConfig] = None
) -> List[Region]:
    """Convenience wrapper around :meth:`PathWalker.walk`."""
    return PathWalker(graph, config).walk()
