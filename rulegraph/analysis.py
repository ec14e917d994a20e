"""rulegraph/analysis.py – the end-to-end pipeline.

    RuleSet ──build_graph──▶ RuleGraph ──PathWalker──▶ [Region] ──union_volume──▶ int

:func:`count_accepted` is the single pure entry point; :func:`analyze`
runs the same pipeline and keeps the intermediate products for
reporting.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .bounds import Region
from .config import VolumeConfig
from .graph import RuleGraph, build_graph
from .rules import RuleSet
from .volume import naive_volume, union_volume
from .walker import PathWalker, WalkStats

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything :func:`analyze` computed along the way."""

    volume: int
    regions: List[Region]
    graph: RuleGraph
    walk: WalkStats
    config: VolumeConfig
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def naive_volume(self) -> int:
        """Sum of region volumes, counting overlaps more than once."""
        return naive_volume(self.regions)

    @property
    def overlap(self) -> int:
        return self.naive_volume - self.volume

    @property
    def total_volume(self) -> int:
        """Size of the whole attribute space."""
        return self.config.domain_size ** self.config.dimensions

    def summary(self) -> Dict[str, object]:
        return {
            "accepted": self.volume,
            "regions": len(self.regions),
            "pruned": self.walk.pruned,
            "nodes": len(self.graph.nodes),
            "edges": len(self.graph.edges),
            "overlap": self.overlap,
            "space": self.total_volume,
            "timings_us": {k: round(v * 1e6) for k, v in self.timings.items()},
        }


def analyze(rules: RuleSet, config: Optional[VolumeConfig] = None) -> AnalysisResult:
    """Build, walk and aggregate, timing each phase."""
    config = config or VolumeConfig()
    timings: Dict[str, float] = {}

    t0 = time.perf_counter()
    build = build_graph(rules, config)
    timings["build"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    walker = PathWalker(build.graph, config)
    regions = walker.walk()
    timings["walk"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    volume = union_volume(regions)
    timings["aggregate"] = time.perf_counter() - t0

    logger.info(
        "%d accepting regions (%d pruned), %d accepted combinations",
        len(regions), walker.stats.pruned, volume,
    )
    return AnalysisResult(
        volume=volume,
        regions=regions,
        graph=build.graph,
        walk=walker.stats,
        config=config,
        timings=timings,
    )


def count_accepted(rules: RuleSet, config: Optional[VolumeConfig] = None) -> int:
    """Number of attribute combinations the rules route to Accept."""
    config = config or VolumeConfig()
    build = build_graph(rules, config)
    return union_volume(PathWalker(build.graph, config).walk())
