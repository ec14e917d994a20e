# rulegraph/errors.py
"""
Error types for the rulegraph pipeline.

Every failure raised by the library derives from :class:`RulegraphError`
and carries a structured :class:`ErrorCode`, an optional
:class:`SourceSpan` pointing into the rule text, and an optional hint.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────┐
│  RulegraphError (base)                                              │
│  ├── RuleSyntaxError          - rule text does not match grammar    │
│  ├── RuleDefinitionError      - well-formed text, bad definitions   │
│  │   └── UnknownDestination   - destination names no workflow       │
│  ├── ConfigError              - invalid VolumeConfig                │
│  └── GraphInvariantViolation  - builder/walker defect (fatal)       │
│      └── CyclicRoutingError   - routing loops back on itself        │
└─────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Codes follow the pattern ``RG-XXXX``:
  - 1000-1999: Syntax errors
  - 2000-2999: Definition errors
  - 3000-3999: Configuration errors
  - 9000-9999: Internal invariant violations

An infeasible region (a range narrowed to ``min > max``) is *not* an
error: the walker prunes that branch and counts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """Stable identifiers for every error the library raises."""

    # Syntax
    INVALID_LINE = "RG-1001"
    UNINTERPRETABLE_LINE = "RG-1002"

    # Definitions
    UNKNOWN_DESTINATION = "RG-2001"
    DUPLICATE_WORKFLOW = "RG-2002"
    EMPTY_WORKFLOW = "RG-2003"
    UNKNOWN_ATTRIBUTE = "RG-2004"
    INVALID_DEFINITION = "RG-2005"

    # Configuration
    INVALID_CONFIG = "RG-3001"

    # Internal
    GRAPH_INVARIANT = "RG-9001"
    GRAPH_FROZEN = "RG-9002"
    ROUTING_CYCLE = "RG-9003"

    @property
    def is_internal(self) -> bool:
        return self.value.startswith("RG-9")


@dataclass(frozen=True)
class SourceSpan:
    """A position in a rule file (1-based line and column)."""

    line: int
    column: int = 1
    file: Optional[str] = None

    def __str__(self) -> str:
        prefix = self.file if self.file else "<input>"
        return f"{prefix}:{self.line}:{self.column}"


class RulegraphError(Exception):
    """Base class for all rulegraph errors."""

    default_code: ErrorCode = ErrorCode.GRAPH_INVARIANT

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.span = span
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        text = f"[{self.code.value}] {self.message}"
        if self.span is not None:
            text = f"{self.span}: {text}"
        return text


class RuleSyntaxError(RulegraphError):
    """A line of rule text could not be parsed."""

    default_code = ErrorCode.INVALID_LINE

    def __init__(
        self,
        message: str,
        *,
        text: str = "",
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: Optional[str] = None,
    ) -> None:
        self.text = text
        super().__init__(message, code=code, span=span, hint=hint)


class RuleDefinitionError(RulegraphError):
    """Rule text parsed but the definitions are unusable."""

    default_code = ErrorCode.INVALID_DEFINITION


class UnknownDestination(RuleDefinitionError):
    """A rule, a default destination, or the start name refers to a
    workflow that does not exist."""

    default_code = ErrorCode.UNKNOWN_DESTINATION

    def __init__(
        self,
        name: str,
        *,
        referenced_from: Optional[str] = None,
        span: Optional[SourceSpan] = None,
    ) -> None:
        self.name = name
        self.referenced_from = referenced_from
        if referenced_from is None:
            message = f"unknown workflow '{name}'"
        else:
            message = f"workflow '{referenced_from}' routes to unknown workflow '{name}'"
        super().__init__(
            message,
            span=span,
            hint="every destination other than A and R must name a workflow",
        )


class ConfigError(RulegraphError):
    """A :class:`~rulegraph.config.VolumeConfig` failed validation."""

    default_code = ErrorCode.INVALID_CONFIG


class GraphInvariantViolation(RulegraphError):
    """The graph is malformed. Indicates a builder defect; never recovered."""

    default_code = ErrorCode.GRAPH_INVARIANT


class CyclicRoutingError(GraphInvariantViolation):
    """Backward traversal reached a node already on the current path."""

    default_code = ErrorCode.ROUTING_CYCLE

    def __init__(self, node_label: str) -> None:
        self.node_label = node_label
        super().__init__(
            f"routing cycle through {node_label}",
            hint="workflows must not route back to a workflow that leads to them",
        )
