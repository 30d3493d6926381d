"""
strictmemo/source.py
════════════════════

Source text, offsets and ranges.

Every node produced by :mod:`strictmemo.parser` records a
:class:`SourceRange` of half-open character offsets into the text of
one file.  :class:`SourceBuffer` owns that text and answers the
positional questions the matcher, the synthesizer and the reporter ask:
which line/column an offset is on, what a range contains, and how the
line holding an offset is indented.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True, slots=True)
class SourceRange:
    """Half-open ``[start, end)`` character range into one source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid source range [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: SourceRange) -> bool:
        return self.start < other.end and other.start < self.end

    def join(self, other: SourceRange) -> SourceRange:
        """Smallest range covering both ``self`` and ``other``."""
        return SourceRange(min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


class SourceBuffer:
    """
    The text of one source file plus offset → position bookkeeping.

    Lines and columns are 1-based in :meth:`position`, matching what
    editors and the reporter display.  :meth:`column` is 0-based because
    the synthesizer uses it as a width.
    """

    def __init__(self, text: str, path: str = "<string>") -> None:
        self.text = text
        self.path = path
        self._line_starts: List[int] = [0]
        for idx, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(idx + 1)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def slice(self, rng: SourceRange) -> str:
        return self.text[rng.start:rng.end]

    def line_index(self, offset: int) -> int:
        """0-based index of the line holding ``offset``."""
        if offset < 0 or offset > len(self.text):
            raise IndexError(f"offset {offset} outside source of length {len(self.text)}")
        return bisect.bisect_right(self._line_starts, offset) - 1

    def position(self, offset: int) -> Tuple[int, int]:
        """1-based ``(line, column)`` of ``offset``."""
        idx = self.line_index(offset)
        return idx + 1, offset - self._line_starts[idx] + 1

    def column(self, offset: int) -> int:
        idx = self.line_index(offset)
        return offset - self._line_starts[idx]

    def line_text(self, line: int) -> str:
        """Text of 1-based ``line`` without its newline."""
        if line < 1 or line > len(self._line_starts):
            raise IndexError(f"line {line} outside 1..{len(self._line_starts)}")
        start = self._line_starts[line - 1]
        end = self.text.find("\n", start)
        if end < 0:
            end = len(self.text)
        return self.text[start:end]

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line holding ``offset``."""
        line = self.line_text(self.line_index(offset) + 1)
        return line[: len(line) - len(line.lstrip(" \t"))]

    def __repr__(self) -> str:
        return f"<SourceBuffer {self.path!r} lines={self.line_count}>"
