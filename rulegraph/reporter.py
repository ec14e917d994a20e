#!/usr/bin/env python3
"""
rulegraph/reporter.py
═════════════════════

Rust-style colourful rendering of errors and results for the CLI.

    error[RG-2001]: workflow 'px' routes to unknown workflow 'qkq'
      --> rules.txt:3:1
       |
     3 | px{a<2006:qkq,m>2090:A,rfg}
       |
      = help: every destination other than A and R must name a workflow

termcolor decides whether colour is emitted (it honours ``NO_COLOR``
and ``FORCE_COLOR``); ``no_color=True`` turns it off unconditionally.
"""

from __future__ import annotations

import json
import sys
from typing import List, Optional, Sequence, TextIO

from termcolor import colored

from .bounds import Region
from .errors import RulegraphError, RuleSyntaxError


class Reporter:
    """Writes diagnostics to *err* and results to *out*."""

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        no_color: bool = False,
    ) -> None:
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self._no_color = no_color

    def _c(self, text: str, color: Optional[str] = None, attrs: Optional[List[str]] = None) -> str:
        if self._no_color:
            return text
        return colored(text, color, attrs=attrs)

    # ── diagnostics ──────────────────────────────────────────────────

    def error(self, exc: RulegraphError, source_lines: Sequence[str] = ()) -> None:
        """Render *exc*; *source_lines* (optional) supplies the quoted line."""
        lines: List[str] = []
        head = self._c(f"error[{exc.code.value}]", "red", ["bold"])
        lines.append(f"{head}: {self._c(exc.message, attrs=['bold'])}")

        if exc.span is not None:
            arrow = self._c("-->", "blue", ["bold"])
            lines.append(f"  {arrow} {exc.span}")
            quoted = self._source_line(exc, source_lines)
            if quoted is not None:
                gutter = " " * len(str(exc.span.line))
                pipe = self._c("|", "blue", ["bold"])
                lines.append(f" {gutter} {pipe}")
                lines.append(f" {self._c(str(exc.span.line), 'blue', ['bold'])} {pipe} {quoted}")
                caret = " " * (exc.span.column - 1) + self._c("^", "red", ["bold"])
                lines.append(f" {gutter} {pipe} {caret}")

        if exc.hint:
            lines.append(f"  = {self._c('help', 'green', ['bold'])}: {exc.hint}")
        if exc.code.is_internal:
            lines.append(f"  = {self._c('note', 'cyan', ['bold'])}: this is a defect, not bad input")

        lines.append("")
        self._err.write("\n".join(lines) + "\n")
        self._err.flush()

    @staticmethod
    def _source_line(exc: RulegraphError, source_lines: Sequence[str]) -> Optional[str]:
        if isinstance(exc, RuleSyntaxError) and exc.text:
            return exc.text
        if exc.span is not None and 0 < exc.span.line <= len(source_lines):
            return source_lines[exc.span.line - 1].rstrip("\n")
        return None

    # ── results ──────────────────────────────────────────────────────

    def count(self, value: int, elapsed_us: Optional[int] = None) -> None:
        text = f"{self._c('accepted', 'green', ['bold'])}: {value}"
        if elapsed_us is not None:
            text += self._c(f"  (calculated in {elapsed_us} µs)", attrs=["dark"])
        self._out.write(text + "\n")

    def regions(self, regions: Sequence[Region], fmt: str = "text") -> None:
        if fmt == "json":
            payload = [
                {"bounds": r.as_dict(), "volume": r.volume()} for r in regions
            ]
            json.dump(payload, self._out, indent=2)
            self._out.write("\n")
            return
        width = len(str(len(regions)))
        for i, region in enumerate(regions, start=1):
            label = self._c(f"#{i:>{width}}", "cyan")
            self._out.write(f"{label} {region}  volume={region.volume()}\n")

    def text(self, text: str) -> None:
        self._out.write(text.rstrip("\n") + "\n")
