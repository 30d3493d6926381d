"""
strictmemo/reporter.py
══════════════════════

Rendering of run results.

Output formats
──────────────
  • text : RuboCop-style offense listing, coloured on terminals (default)
  • json : one JSON document with files, offenses and a summary

Text output looks like::

    app/models/user.rb:4:5: C: [Correctable] Sorbet/ObsoleteStrictMemoization: This two-stage ...
        @foo = T.let(@foo, T.nilable(Foo))
        ^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

    1 file inspected, 1 offense detected, 1 offense autocorrectable
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, List, Optional, TextIO

from termcolor import colored

from strictmemo.checkers import CheckerRunResults, Diagnostic, DiagnosticSeverity, FileResult

SEVERITY_COLORS: Dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.INFO: "white",
    DiagnosticSeverity.REFACTOR: "yellow",
    DiagnosticSeverity.CONVENTION: "yellow",
    DiagnosticSeverity.WARNING: "magenta",
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.FATAL: "red",
}


class TextReporter:
    """Human-readable output; colour defaults to whether ``stream`` is a tty."""

    def __init__(self, stream: TextIO = sys.stdout, colour: Optional[bool] = None) -> None:
        self._stream = stream
        self.colour = colour if colour is not None else hasattr(stream, "isatty") and stream.isatty()

    def _paint(self, text: str, color: Optional[str] = None, attrs: Optional[List[str]] = None) -> str:
        if not self.colour:
            return text
        return colored(text, color, attrs=attrs, force_color=True)

    def render_offense(self, diag: Diagnostic, source: Optional[str], corrected: bool = False) -> List[str]:
        sev = diag.severity
        if corrected:
            tag = self._paint("[Corrected] ", "green")
        elif diag.correctable:
            tag = self._paint("[Correctable] ", "yellow")
        else:
            tag = ""
        head = (
            f"{self._paint(str(diag.location), 'cyan')}: "
            f"{self._paint(sev.code, SEVERITY_COLORS[sev])}: "
            f"{tag}{diag.error_id}: {diag.message}"
        )
        lines = [head]
        if source is not None:
            source_lines = source.split("\n")
            index = diag.location.line - 1
            if 0 <= index < len(source_lines):
                text = source_lines[index]
                start = diag.location.column - 1
                width = max(1, min(diag.range.length, len(text) - start))
                lines.append(text)
                lines.append(" " * start + self._paint("^" * width, SEVERITY_COLORS[sev], attrs=["bold"]))
        return lines

    def render_file(self, result: FileResult, autocorrect: bool = False) -> List[str]:
        lines: List[str] = []
        if result.error is not None:
            lines.append(self._paint(str(result.error), "red", attrs=["bold"]))
        for diag in result.diagnostics:
            corrected = autocorrect and result.changed and diag.correctable
            lines.extend(self.render_offense(diag, result.text, corrected=corrected))
        return lines

    def report(self, results: CheckerRunResults) -> None:
        body: List[str] = []
        for result in results.files:
            body.extend(self.render_file(result, results.autocorrect))
        out: List[str] = []
        if body:
            out.append("Offenses:" if results.offense_count else "Errors:")
            out.append("")
            out.extend(body)
            out.append("")
        summary = results.summary()
        if results.parse_errors:
            out.append(self._paint(summary, "red", attrs=["bold"]))
        elif results.offense_count:
            out.append(self._paint(summary, "yellow", attrs=["bold"]))
        else:
            out.append(self._paint(summary, "green", attrs=["bold"]))
        self._stream.write("\n".join(out) + "\n")
        self._stream.flush()


class JsonReporter:
    """Machine-readable output in RuboCop's JSON layout."""

    def __init__(self, stream: TextIO = sys.stdout, version: str = "") -> None:
        self._stream = stream
        self.version = version

    def build(self, results: CheckerRunResults) -> Dict[str, Any]:
        files: List[Dict[str, Any]] = []
        for result in results.files:
            offenses = []
            for diag in result.diagnostics:
                entry = diag.to_json_dict()
                entry["corrected"] = results.autocorrect and result.changed and diag.correctable
                offenses.append(entry)
            record: Dict[str, Any] = {"path": result.path, "offenses": offenses}
            if result.error is not None:
                record["error"] = str(result.error)
            files.append(record)
        gate = results.gate
        return {
            "metadata": {
                "strictmemo_version": self.version,
                "gate": None if gate is None else {
                    "active": gate.active,
                    "package": gate.package,
                    "locked_version": gate.locked_version,
                    "minimum_version": gate.minimum_version,
                    "reason": gate.reason,
                },
            },
            "files": files,
            "summary": {
                "offense_count": results.offense_count,
                "correctable_count": results.correctable_count,
                "corrected_count": results.corrected_count,
                "inspected_file_count": results.inspected_count,
                "error_count": len(results.parse_errors),
            },
        }

    def report(self, results: CheckerRunResults) -> None:
        json.dump(self.build(results), self._stream, indent=2)
        self._stream.write("\n")
        self._stream.flush()
