"""
strictmemo
══════════

Detects and rewrites the obsolete Sorbet memoization idiom::

    @foo = T.let(@foo, T.nilable(Foo))
    @foo ||= Foo.new

into::

    @foo ||= T.let(Foo.new, T.nilable(Foo))

The rule only applies to projects locking ``sorbet-static`` 0.5.10210 or
newer.

Quick start::

    from strictmemo import CheckerRunner, read_locked_packages

    runner = CheckerRunner(locked_packages=read_locked_packages())
    corrected, result = runner.autocorrect_source(source, "app/models/user.rb")
"""

from __future__ import annotations

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from strictmemo.checkers import (  # noqa: E402
    CheckerRunner,
    CheckerRunResults,
    Diagnostic,
    DiagnosticSeverity,
    FileResult,
    ObsoleteStrictMemoizationChecker,
)
from strictmemo.config import LintConfig, load_config  # noqa: E402
from strictmemo.errors import (  # noqa: E402
    ConfigError,
    CorrectionConflictError,
    LockfileError,
    RubyParseError,
    SourceReadError,
    StrictMemoError,
)
from strictmemo.lockfile import read_locked_packages  # noqa: E402
from strictmemo.matcher import MemoizationCandidate, PatternMatcher  # noqa: E402
from strictmemo.parser import parse_source  # noqa: E402
from strictmemo.synthesizer import Correction, CorrectionSynthesizer, Edit  # noqa: E402
from strictmemo.version_gate import GateDecision, VersionGate  # noqa: E402

__all__ = [
    "__version__",
    "CheckerRunner",
    "CheckerRunResults",
    "ConfigError",
    "Correction",
    "CorrectionConflictError",
    "CorrectionSynthesizer",
    "Diagnostic",
    "DiagnosticSeverity",
    "Edit",
    "FileResult",
    "GateDecision",
    "LintConfig",
    "LockfileError",
    "MemoizationCandidate",
    "ObsoleteStrictMemoizationChecker",
    "PatternMatcher",
    "RubyParseError",
    "SourceReadError",
    "StrictMemoError",
    "VersionGate",
    "load_config",
    "parse_source",
    "read_locked_packages",
]
