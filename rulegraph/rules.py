"""
rulegraph/rules.py
══════════════════

Already-parsed routing rules.

    RuleSet
      └── name → Workflow
                   ├── rules: (Rule, Rule, …)      non-empty, ordered
                   │            └── attribute  comparator  destination
                   └── default: Destination       taken when no rule passes

A :class:`Destination` is a tagged reference to the Accept terminal, the
Reject terminal, or another workflow by name.  Records are immutable:
they are produced once by the parser and only read afterwards.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .errors import ErrorCode, RuleDefinitionError, SourceSpan

ACCEPT_LABEL = "A"
REJECT_LABEL = "R"


class Comparison(enum.Enum):
    """The two comparisons a rule may test."""

    LESS_THAN = "<"
    GREATER_THAN = ">"


@dataclass(frozen=True, slots=True)
class Comparator:
    """``LessThan(threshold)`` or ``GreaterThan(threshold)``."""

    comparison: Comparison
    threshold: int

    @classmethod
    def less_than(cls, threshold: int) -> Comparator:
        return cls(Comparison.LESS_THAN, threshold)

    @classmethod
    def greater_than(cls, threshold: int) -> Comparator:
        return cls(Comparison.GREATER_THAN, threshold)

    def __str__(self) -> str:
        return f"{self.comparison.value}{self.threshold}"


class DestinationKind(enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    WORKFLOW = "workflow"


@dataclass(frozen=True, slots=True)
class Destination:
    """Where evaluation continues: a terminal or a named workflow."""

    kind: DestinationKind
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.kind is DestinationKind.WORKFLOW) != (self.name is not None):
            raise ValueError("only workflow destinations carry a name")

    @classmethod
    def accept(cls) -> Destination:
        return cls(DestinationKind.ACCEPT)

    @classmethod
    def reject(cls) -> Destination:
        return cls(DestinationKind.REJECT)

    @classmethod
    def workflow(cls, name: str) -> Destination:
        return cls(DestinationKind.WORKFLOW, name)

    @classmethod
    def from_label(cls, label: str) -> Destination:
        """``A`` → Accept, ``R`` → Reject, anything else → workflow."""
        if label == ACCEPT_LABEL:
            return cls.accept()
        if label == REJECT_LABEL:
            return cls.reject()
        return cls.workflow(label)

    def __str__(self) -> str:
        if self.kind is DestinationKind.ACCEPT:
            return ACCEPT_LABEL
        if self.kind is DestinationKind.REJECT:
            return REJECT_LABEL
        return self.name or ""


@dataclass(frozen=True, slots=True)
class Rule:
    """Test one attribute; on pass, route to *destination*."""

    attribute: str
    comparator: Comparator
    destination: Destination

    def __str__(self) -> str:
        return f"{self.attribute}{self.comparator}:{self.destination}"


@dataclass(frozen=True, slots=True)
class Workflow:
    """An ordered, non-empty rule chain with a fallback destination."""

    name: str
    rules: Tuple[Rule, ...]
    default: Destination
    span: Optional[SourceSpan] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.rules:
            raise RuleDefinitionError(
                f"workflow '{self.name}' has no rules",
                code=ErrorCode.EMPTY_WORKFLOW,
                span=self.span,
            )

    @property
    def entry_rule(self) -> Rule:
        return self.rules[0]

    def __str__(self) -> str:
        body = ",".join(str(rule) for rule in self.rules)
        return f"{self.name}{{{body},{self.default}}}"


class RuleSet(Mapping[str, Workflow]):
    """Read-only mapping of workflow name → :class:`Workflow`."""

    __slots__ = ("_workflows",)

    def __init__(self, workflows: Optional[Mapping[str, Workflow]] = None) -> None:
        self._workflows: Dict[str, Workflow] = dict(workflows or {})

    @classmethod
    def from_workflows(cls, workflows: Iterable[Workflow]) -> RuleSet:
        """Collect workflows, rejecting duplicate names."""
        collected: Dict[str, Workflow] = {}
        for wf in workflows:
            if wf.name in collected:
                raise RuleDefinitionError(
                    f"workflow '{wf.name}' is defined more than once",
                    code=ErrorCode.DUPLICATE_WORKFLOW,
                    span=wf.span,
                )
            collected[wf.name] = wf
        return cls(collected)

    def __getitem__(self, name: str) -> Workflow:
        return self._workflows[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._workflows)

    def __len__(self) -> int:
        return len(self._workflows)

    def __repr__(self) -> str:
        return f"RuleSet({sorted(self._workflows)!r})"
