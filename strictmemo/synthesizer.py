"""
strictmemo/synthesizer.py
═════════════════════════

Builds the replacement for a :class:`~strictmemo.matcher.MemoizationCandidate`.

Short results stay on one line::

    @foo ||= T.let(Foo.new, T.nilable(Foo))

Results that would exceed the line-length limit, or whose initializer or
type already spans lines, use the multi-line form::

    @foo ||= T.let(
      multiline_method_call(
        foo,
      ),
      T.nilable(Foo),
    )

Continuation lines of a moved sub-expression are re-indented so that it
keeps its internal layout relative to its new column.  Where that cannot
be done without changing program text (a multi-line string literal, or
lines without enough leading spaces to remove, or indentation made of
tabs) no correction is offered.  The same holds for an initializer
written as a command call without parentheses, and for any replacement
that :mod:`strictmemo.parser` cannot read back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from strictmemo.errors import CorrectionConflictError, RubyParseError
from strictmemo.matcher import MemoizationCandidate
from strictmemo.nodes import Call, Node, StringLiteral, walk
from strictmemo.parser import parse_source
from strictmemo.source import SourceBuffer, SourceRange

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — EDITS AND CORRECTIONS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Edit:
    """Replace the text in ``range`` with ``replacement``."""

    range: SourceRange
    replacement: str


class Correction:
    """
    An ordered set of non-overlapping edits over one source text.

    Edits are kept sorted by position; two edits touching overlapping
    ranges raise :class:`CorrectionConflictError`.
    """

    __slots__ = ("edits",)

    def __init__(self, edits: Iterable[Edit]) -> None:
        ordered = sorted(edits, key=lambda e: (e.range.start, e.range.end))
        for before, after in zip(ordered, ordered[1:]):
            if before.range.end > after.range.start:
                raise CorrectionConflictError(
                    f"edits {before.range} and {after.range} overlap"
                )
        self.edits: Tuple[Edit, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[Edit]:
        return iter(self.edits)

    def __len__(self) -> int:
        return len(self.edits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Correction):
            return NotImplemented
        return self.edits == other.edits

    def __hash__(self) -> int:
        return hash(self.edits)

    def __repr__(self) -> str:
        return f"Correction({list(self.edits)!r})"

    def conflicts_with(self, other: Correction) -> bool:
        return any(
            mine.range.overlaps(theirs.range) or mine.range.start == theirs.range.start
            for mine in self.edits
            for theirs in other.edits
        )

    def apply(self, text: str) -> str:
        """The result of applying every edit to ``text``, first to last."""
        pieces: List[str] = []
        cursor = 0
        for edit in self.edits:
            if edit.range.end > len(text):
                raise ValueError(f"edit {edit.range} outside text of length {len(text)}")
            pieces.append(text[cursor:edit.range.start])
            pieces.append(edit.replacement)
            cursor = edit.range.end
        pieces.append(text[cursor:])
        return "".join(pieces)

    @classmethod
    def merge(cls, corrections: Sequence[Correction]) -> Correction:
        """
        Combine ``corrections`` in order.  A correction that would
        conflict with an already accepted one is left out whole; the next
        autocorrect pass picks it up again.
        """
        accepted: List[Correction] = []
        for correction in corrections:
            if any(correction.conflicts_with(done) for done in accepted):
                logger.debug("deferring conflicting correction %r", correction)
                continue
            accepted.append(correction)
        return cls(edit for correction in accepted for edit in correction.edits)


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — SYNTHESIS
# ═══════════════════════════════════════════════════════════════════

class CorrectionSynthesizer:
    """Turns candidates found in ``buffer`` into corrections of that buffer."""

    def __init__(self, buffer: SourceBuffer) -> None:
        self.buffer = buffer

    def synthesize(
        self,
        candidate: MemoizationCandidate,
        indent_width: int = 2,
        max_line_width: Optional[int] = None,
    ) -> Optional[Correction]:
        buf = self.buffer
        reset = candidate.reset_statement
        or_assign = candidate.or_assign_statement
        if _is_command_call(candidate.init_expr):
            # ``T.let(foo bar, Type)`` would hand ``Type`` to ``foo``
            self._skip(candidate, "initializer is a command call without parentheses")
            return None

        call = candidate.assertion_call
        call_text = f"{buf.slice(call.receiver.span)}.{call.method}"
        init_text = buf.slice(candidate.init_expr.span)
        type_text = buf.slice(candidate.type_expr.span)

        single = f"{candidate.ivar_name} ||= {call_text}({init_text}, {type_text})"
        column = buf.column(reset.span.start)
        if "\n" not in single and (max_line_width is None or column + len(single) <= max_line_width):
            replacement = single
        else:
            replacement = self._multiline(candidate, call_text, indent_width)
            if replacement is None:
                self._skip(candidate, "no safe re-indentation")
                return None
        if not self._reads_back(replacement):
            self._skip(candidate, "replacement would not parse")
            return None
        return Correction([Edit(SourceRange(reset.span.start, or_assign.span.end), replacement)])

    def _skip(self, candidate: MemoizationCandidate, reason: str) -> None:
        line, col = self.buffer.position(candidate.reset_statement.span.start)
        logger.info(
            "%s:%d:%d: %s for %s; leaving it uncorrected",
            self.buffer.path, line, col, reason, candidate.ivar_name,
        )

    def _reads_back(self, replacement: str) -> bool:
        try:
            parse_source(replacement, self.buffer.path)
        except RubyParseError as exc:
            logger.debug("synthesized text rejected: %s", exc)
            return False
        return True

    def _multiline(
        self,
        candidate: MemoizationCandidate,
        call_text: str,
        indent_width: int,
    ) -> Optional[str]:
        buf = self.buffer
        base = buf.line_indent(candidate.reset_statement.span.start)
        init_indent = buf.line_indent(candidate.or_assign_statement.span.start)
        if "\t" in base or "\t" in init_indent:
            return None
        inner = base + " " * indent_width

        init_text = self._reindent(candidate.init_expr, len(inner) - len(init_indent))
        type_text = self._reindent(candidate.type_expr, len(inner) - len(base))
        if init_text is None or type_text is None:
            return None
        return (
            f"{candidate.ivar_name} ||= {call_text}(\n"
            f"{inner}{init_text},\n"
            f"{inner}{type_text},\n"
            f"{base})"
        )

    def _reindent(self, node: Node, shift: int) -> Optional[str]:
        """Text of ``node`` with continuation lines moved ``shift`` columns."""
        text = self.buffer.slice(node.span)
        if shift == 0 or "\n" not in text:
            return text
        if any(isinstance(n, StringLiteral) and n.is_multiline for n in walk(node)):
            return None
        first, *rest = text.split("\n")
        lines = [first]
        for line in rest:
            stripped = line.lstrip()
            if not stripped:
                lines.append("")
            elif "\t" in line[: len(line) - len(stripped)]:
                return None
            elif shift > 0:
                lines.append(" " * shift + line)
            elif line.startswith(" " * -shift):
                lines.append(line[-shift:])
            else:
                return None
        return "\n".join(lines)


def _is_command_call(node: Node) -> bool:
    return isinstance(node, Call) and bool(node.args) and not node.parenthesized
