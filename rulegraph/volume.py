"""
rulegraph/volume.py
═══════════════════

Exact volume of a union of axis-aligned integer boxes.

Regions emitted by the walker may overlap, so summing their volumes
double counts.  The aggregator instead decomposes space one attribute
at a time:

1. Along the current attribute, every region contributes the cut
   points ``lo`` and ``hi + 1``.  Sorted and de-duplicated, consecutive
   cuts bound *elementary intervals*; no region boundary falls inside
   one, so each region either covers an elementary interval completely
   or not at all.
2. Elementary intervals are visited in ascending order while a running
   set of active regions is updated at every cut, so the regions that
   cover an interval are known without rescanning the input.  Recurse
   into the next attribute with that subset.
3. When every attribute has been folded in, a non-empty subset means the
   cell is covered: its contribution is the product of the interval
   lengths along the way.

Cut points are taken from the surviving subset at every level, so the
full cross product of breakpoints is never materialised.  The recursion
depth equals the number of attributes.

Example::

    >>> a = Bounds.from_mapping({"x": (1, 3), "m": (1, 5)})
    >>> b = Bounds.from_mapping({"x": (2, 4), "m": (1, 5)})
    >>> union_volume([a, b])
    20
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterator, List, Sequence

from .bounds import Range, Region

logger = logging.getLogger(__name__)


def region_volume(region: Region) -> int:
    """Number of integer points in one region."""
    return region.volume()


def elementary_intervals(ranges: Sequence[Range]) -> Iterator[Range]:
    """Yield the elementary intervals induced by *ranges* along one axis.

    Gaps between ranges are yielded too; callers filter by coverage.
    """
    cuts = sorted({r.lo for r in ranges} | {r.hi + 1 for r in ranges})
    for lo, nxt in zip(cuts, cuts[1:]):
        yield Range(lo, nxt - 1)


def _fold(regions: List[Region], axis: int, dimensions: int) -> int:
    if axis == dimensions:
        return 1
    opening: Dict[int, List[int]] = defaultdict(list)
    closing: Dict[int, List[int]] = defaultdict(list)
    for i, r in enumerate(regions):
        opening[r.ranges[axis].lo].append(i)
        closing[r.ranges[axis].hi + 1].append(i)

    # regions covering the current cell
    active: Dict[int, Region] = {}
    total = 0
    for cell in elementary_intervals([r.ranges[axis] for r in regions]):
        for i in closing.get(cell.lo, ()):
            del active[i]
        for i in opening.get(cell.lo, ()):
            active[i] = regions[i]
        if active:
            total += cell.size() * _fold(list(active.values()), axis + 1, dimensions)
    return total


def union_volume(regions: Sequence[Region]) -> int:
    """Count the points covered by at least one region.

    All regions must share the same attribute order.  Empty regions
    contribute nothing.
    """
    live = [r for r in regions if r.is_feasible()]
    if not live:
        return 0
    attributes = live[0].attributes
    for r in live[1:]:
        if r.attributes != attributes:
            raise ValueError(
                f"regions disagree on attributes: {attributes!r} vs {r.attributes!r}"
            )
    volume = _fold(live, 0, len(attributes))
    logger.debug("union volume of %d regions: %d", len(live), volume)
    return volume


def naive_volume(regions: Sequence[Region]) -> int:
    """Sum of individual volumes; over-counts wherever regions overlap."""
    return sum(region_volume(r) for r in regions)
