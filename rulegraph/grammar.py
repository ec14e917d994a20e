"""
rulegraph/grammar.py
════════════════════

Rule-text front end: a Parsimonious PEG grammar plus a
:class:`~parsimonious.nodes.NodeVisitor` that yields
:class:`~rulegraph.rules.Workflow` records.

Input is line oriented::

    px{a<2006:qkq,m>2090:A,rfg}      workflow
    in{s<1351:px,qqz}                workflow
                                     blank line (ignored)
    {x=787,m=2655,a=1222,s=2876}     rating record (recognised, skipped)

Each line is parsed on its own so that errors carry a line number.

Usage::

    rules = parse_rules(open("rules.txt").read())
    rules = load_rules("rules.txt")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Union

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from .errors import ErrorCode, RulegraphError, RuleSyntaxError, SourceSpan
from .rules import Comparator, Comparison, Destination, Rule, RuleSet, Workflow

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR
# ═══════════════════════════════════════════════════════════════════

RULE_GRAMMAR = Grammar(r'''
    record        = workflow / rating

    workflow      = workflow_name "{" rule_list "," label "}"
    rule_list     = rule ("," rule)*
    rule          = attribute comparison number ":" label
    comparison    = "<" / ">"

    rating        = "{" assignment ("," assignment)* "}"
    assignment    = attribute "=" number

    workflow_name = ~r"[a-z]+"
    attribute     = ~r"[a-z]+"
    label         = ~r"[A-Za-z]+"
    number        = ~r"[0-9]+"
''')


class _Rating:
    """Marker for a rating record; ratings carry nothing the core needs."""


# ═══════════════════════════════════════════════════════════════════
#  VISITOR (Parse Tree → Workflow)
# ═══════════════════════════════════════════════════════════════════

class RuleVisitor(NodeVisitor):
    """Transforms one parsed line into a :class:`Workflow` or a rating marker."""

    grammar = RULE_GRAMMAR
    unwrapped_exceptions = (RulegraphError,)

    def __init__(self, span: Optional[SourceSpan] = None) -> None:
        self.span = span

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    def visit_record(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children[0]

    def visit_workflow(self, node: Node, visited_children: List[Any]) -> Workflow:
        name, _, rules, _, default, _ = visited_children
        return Workflow(name=name, rules=tuple(rules), default=default, span=self.span)

    def visit_rule_list(self, node: Node, visited_children: List[Any]) -> List[Rule]:
        first, rest = visited_children
        rules = [first]
        # an empty repetition visits to the bare node
        if isinstance(rest, list):
            rules.extend(rule for _, rule in rest)
        return rules

    def visit_rule(self, node: Node, visited_children: List[Any]) -> Rule:
        attribute, comparison, threshold, _, destination = visited_children
        return Rule(attribute, Comparator(comparison, threshold), destination)

    def visit_comparison(self, node: Node, visited_children: List[Any]) -> Comparison:
        return Comparison(node.text)

    def visit_rating(self, node: Node, visited_children: List[Any]) -> _Rating:
        return _Rating()

    def visit_workflow_name(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_attribute(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_label(self, node: Node, visited_children: List[Any]) -> Destination:
        return Destination.from_label(node.text)

    def visit_number(self, node: Node, visited_children: List[Any]) -> int:
        return int(node.text)


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_line(line: str, span: Optional[SourceSpan] = None) -> Optional[Workflow]:
    """Parse one non-blank line. Returns ``None`` for rating records."""
    try:
        tree = RULE_GRAMMAR.parse(line)
    except ParseError as exc:
        line_no = span.line if span else 1
        raise RuleSyntaxError(
            f"cannot parse {line!r}",
            text=line,
            span=SourceSpan(line_no, exc.column(), span.file if span else None),
            hint="expected name{attr<N:dest,...,default} or {attr=N,...}",
        ) from exc
    try:
        result = RuleVisitor(span).visit(tree)
    except VisitationError as exc:
        raise RuleSyntaxError(
            f"cannot interpret {line!r}",
            text=line,
            code=ErrorCode.UNINTERPRETABLE_LINE,
            span=span,
        ) from exc
    if isinstance(result, _Rating):
        return None
    return result


def iter_workflows(lines: Iterable[str], source: Optional[str] = None) -> Iterator[Workflow]:
    """Yield the workflows in *lines*, skipping blank lines and ratings."""
    skipped = 0
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        wf = parse_line(line, SourceSpan(lineno, 1, source))
        if wf is None:
            skipped += 1
            continue
        yield wf
    if skipped:
        logger.debug("skipped %d rating records", skipped)


def parse_rules(text: str, *, source: Optional[str] = None) -> RuleSet:
    """Parse rule text into a :class:`RuleSet`."""
    rules = RuleSet.from_workflows(iter_workflows(text.splitlines(), source))
    logger.info("parsed %d workflows from %s", len(rules), source or "<input>")
    return rules


def load_rules(path: Union[str, Path]) -> RuleSet:
    """Read and parse a rule file."""
    p = Path(path)
    return parse_rules(p.read_text(encoding="utf-8"), source=str(p))
