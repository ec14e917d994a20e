"""rulegraph/config.py – problem-instance constants.

The number of attributes, their names, the shared value domain and the
entry workflow are fixed per problem instance but are never hard-coded
in the core; every stage receives a :class:`VolumeConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .errors import ConfigError

DEFAULT_ATTRIBUTES: Tuple[str, ...] = ("x", "m", "a", "s")
DEFAULT_DOMAIN_MIN: int = 1
DEFAULT_DOMAIN_MAX: int = 4000
DEFAULT_START_WORKFLOW: str = "in"


@dataclass(frozen=True)
class VolumeConfig:
    """Tuning knobs shared by the builder, walker and aggregator."""

    attributes: Tuple[str, ...] = field(default=DEFAULT_ATTRIBUTES)
    domain_min: int = DEFAULT_DOMAIN_MIN
    domain_max: int = DEFAULT_DOMAIN_MAX
    start_workflow: str = DEFAULT_START_WORKFLOW

    @classmethod
    def from_options(
        cls,
        attributes: Optional[Sequence[str]] = None,
        domain_min: Optional[int] = None,
        domain_max: Optional[int] = None,
        start_workflow: Optional[str] = None,
    ) -> VolumeConfig:
        """Build a config, falling back to the defaults for ``None`` values."""
        config = cls(
            attributes=tuple(attributes) if attributes else DEFAULT_ATTRIBUTES,
            domain_min=DEFAULT_DOMAIN_MIN if domain_min is None else domain_min,
            domain_max=DEFAULT_DOMAIN_MAX if domain_max is None else domain_max,
            start_workflow=start_workflow or DEFAULT_START_WORKFLOW,
        )
        config.check()
        return config

    @property
    def dimensions(self) -> int:
        return len(self.attributes)

    @property
    def domain_size(self) -> int:
        return self.domain_max - self.domain_min + 1

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if not self.attributes:
            problems.append("at least one attribute is required")
        if len(set(self.attributes)) != len(self.attributes):
            problems.append(f"duplicate attribute names in {self.attributes!r}")
        if self.domain_min > self.domain_max:
            problems.append(
                f"domain_min ({self.domain_min}) exceeds domain_max ({self.domain_max})"
            )
        if not self.start_workflow:
            problems.append("start_workflow must not be empty")
        return problems

    def check(self) -> None:
        """Raise :class:`ConfigError` if :meth:`validate` reports anything."""
        problems = self.validate()
        if problems:
            raise ConfigError("; ".join(problems))
