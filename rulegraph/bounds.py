"""
rulegraph/bounds.py
═══════════════════

Closed integer ranges, per-attribute bounds, and the range reducer.

A :class:`Range` is the interval ``[lo, hi]`` over the integers; it is
empty (⊥) when ``lo > hi``.  :class:`Bounds` holds one range per
attribute, in the attribute order of the active
:class:`~rulegraph.config.VolumeConfig`.  A completed :class:`Bounds`
snapshot emitted by the walker is a *region*.

The reducer narrows one range given the rule it was reached through::

    comparator        edge        effect
    ──────────────    ─────────   ──────────────────────────────
    LessThan(t)       FromPass    hi = min(hi, t − 1)
    LessThan(t)       FromFail    lo = max(lo, t)
    GreaterThan(t)    FromPass    lo = max(lo, t + 1)
    GreaterThan(t)    FromFail    hi = min(hi, t)

Tightenings only ever move ``lo`` up and ``hi`` down, so repeated
constraints on the same attribute along one path accumulate.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import reduce
from operator import mul
from typing import Dict, Iterator, Sequence, Tuple

from .rules import Comparator, Comparison


class EdgeKind(enum.Enum):
    """Tag of a reversed graph edge: how the rule node was left."""

    FROM_PASS = "pass"
    FROM_FAIL = "fail"
    ENTRY = "entry"  # entry rule → Start anchor; narrows nothing


@dataclass(frozen=True, slots=True)
class Range:
    """Closed integer interval ``[lo, hi]``."""

    lo: int
    hi: int

    def is_empty(self) -> bool:
        return self.lo > self.hi

    def size(self) -> int:
        """Number of integers in the range (0 when empty)."""
        if self.is_empty():
            return 0
        return self.hi - self.lo + 1

    def at_most(self, value: int) -> Range:
        return Range(self.lo, min(self.hi, value))

    def at_least(self, value: int) -> Range:
        return Range(max(self.lo, value), self.hi)

    def __str__(self) -> str:
        return f"[{self.lo}, {self.hi}]"


def reduce_range(current: Range, comparator: Comparator, edge: EdgeKind) -> Range:
    """Narrow *current* by having taken *edge* out of a rule testing *comparator*."""
    t = comparator.threshold
    if edge is EdgeKind.FROM_PASS:
        if comparator.comparison is Comparison.LESS_THAN:
            return current.at_most(t - 1)
        return current.at_least(t + 1)
    if edge is EdgeKind.FROM_FAIL:
        if comparator.comparison is Comparison.LESS_THAN:
            return current.at_least(t)
        return current.at_most(t)
    raise ValueError(f"edge kind {edge.value!r} does not constrain a rule")


@dataclass(frozen=True, slots=True)
class Bounds:
    """One :class:`Range` per attribute. Immutable; narrowing returns a copy."""

    attributes: Tuple[str, ...]
    ranges: Tuple[Range, ...]

    def __post_init__(self) -> None:
        if len(self.attributes) != len(self.ranges):
            raise ValueError(
                f"{len(self.attributes)} attributes but {len(self.ranges)} ranges"
            )

    @classmethod
    def full(cls, attributes: Sequence[str], lo: int, hi: int) -> Bounds:
        """Every attribute spans the whole domain ``[lo, hi]``."""
        attrs = tuple(attributes)
        return cls(attrs, tuple(Range(lo, hi) for _ in attrs))

    @classmethod
    def from_mapping(cls, ranges: Dict[str, Tuple[int, int]]) -> Bounds:
        """Build from ``{"x": (lo, hi), ...}``; insertion order fixes the axes."""
        return cls(
            tuple(ranges),
            tuple(Range(lo, hi) for lo, hi in ranges.values()),
        )

    def index_of(self, attribute: str) -> int:
        try:
            return self.attributes.index(attribute)
        except ValueError:
            raise KeyError(attribute) from None

    def __getitem__(self, attribute: str) -> Range:
        return self.ranges[self.index_of(attribute)]

    def __iter__(self) -> Iterator[Tuple[str, Range]]:
        return iter(zip(self.attributes, self.ranges))

    def replace(self, attribute: str, new_range: Range) -> Bounds:
        i = self.index_of(attribute)
        ranges = self.ranges[:i] + (new_range,) + self.ranges[i + 1:]
        return Bounds(self.attributes, ranges)

    def narrow(self, attribute: str, comparator: Comparator, edge: EdgeKind) -> Bounds:
        """Apply :func:`reduce_range` to the range of *attribute*."""
        return self.replace(attribute, reduce_range(self[attribute], comparator, edge))

    def is_feasible(self) -> bool:
        return not any(r.is_empty() for r in self.ranges)

    def volume(self) -> int:
        """Product of the range sizes."""
        return reduce(mul, (r.size() for r in self.ranges), 1)

    def as_dict(self) -> Dict[str, Tuple[int, int]]:
        return {attr: (r.lo, r.hi) for attr, r in self}

    def __str__(self) -> str:
        return " ".join(f"{attr}∈{r}" for attr, r in self)


# A completed bounds snapshot for one accepting path.
Region = Bounds
