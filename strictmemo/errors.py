# strictmemo/errors.py
"""
Error types for strictmemo.

Hierarchy
─────────
::

    StrictMemoError (base)
    ├── RubyParseError          - source outside the supported Ruby subset
    ├── SourceReadError         - path missing or file unreadable
    ├── ConfigError             - unreadable or malformed configuration
    ├── LockfileError           - lockfile present but unreadable
    └── CorrectionConflictError - overlapping edits in one correction

Each error carries a stable code (``SMEMO-XXXX``):

  - 1000-1999: reading and parsing sources
  - 2000-2999: configuration
  - 3000-3999: dependency lockfile
  - 4000-4999: corrections

None of these cover the rule simply not applying: an inactive version
gate, a statement pair that does not match, an unparseable version
string and a correction that cannot be synthesized are all normal
outcomes and never raise.
"""

from __future__ import annotations

from typing import ClassVar, Optional


class StrictMemoError(Exception):
    """Base class for every error raised by strictmemo."""

    code: ClassVar[str] = "SMEMO-0000"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class RubyParseError(StrictMemoError):
    """Raised when a source file cannot be read into the node tree."""

    code: ClassVar[str] = "SMEMO-1001"

    def __init__(
        self,
        message: str,
        path: str = "<string>",
        line: int = 0,
        column: int = 0,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line:
            return f"{self.path}:{self.line}:{self.column}: {self.code}: {self.message}"
        return f"{self.path}: {self.code}: {self.message}"


class SourceReadError(StrictMemoError):
    code: ClassVar[str] = "SMEMO-1002"

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return f"{self.path}: {self.code}: {self.message}"


class ConfigError(StrictMemoError):
    code: ClassVar[str] = "SMEMO-2001"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        where = f"{self.path}: " if self.path else ""
        return f"{where}{self.code}: {self.message}"


class LockfileError(StrictMemoError):
    code: ClassVar[str] = "SMEMO-3001"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class CorrectionConflictError(StrictMemoError, ValueError):
    """Two edits of one correction touch overlapping ranges."""

    code: ClassVar[str] = "SMEMO-4001"


__all__ = [
    "StrictMemoError",
    "RubyParseError",
    "SourceReadError",
    "ConfigError",
    "LockfileError",
    "CorrectionConflictError",
]
