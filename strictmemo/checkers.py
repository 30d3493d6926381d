"""
strictmemo/checkers.py
══════════════════════

Checker framework and the obsolete strict memoization checker.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │      VersionGate (resolved once per run, cached)        │
  │                         │                               │
  │  ┌──────────────────────▼────────────────────────────┐  │
  │  │   parse → PatternMatcher → CorrectionSynthesizer  │  │
  │  │          ObsoleteStrictMemoizationChecker         │  │
  │  └──────────────────────┬────────────────────────────┘  │
  │                         │                               │
  │  ┌──────────────────────▼────────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  # rubocop:disable │ file-level  │ global         │  │
  │  └──────────────────────┬────────────────────────────┘  │
  │                         │                               │
  │  ┌──────────────────────▼────────────────────────────┐  │
  │  │   Diagnostics (+ corrections) → reporter / -a     │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read settings from the run configuration
  2. **collect_evidence()** — find suspicious sites in the parsed file
  3. **diagnose()**         — turn evidence into diagnostics
  4. **report()**           — emit diagnostics (filtered by suppressions)
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from fnmatch import fnmatch
from functools import cached_property
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    Union,
)

from strictmemo.config import CHECKER_NAME, LintConfig
from strictmemo.errors import RubyParseError, SourceReadError, StrictMemoError
from strictmemo.matcher import MemoizationCandidate, PatternMatcher
from strictmemo.nodes import Comment, Node, walk
from strictmemo.parser import parse_buffer
from strictmemo.source import SourceBuffer, SourceRange
from strictmemo.synthesizer import Correction, CorrectionSynthesizer
from strictmemo.version_gate import GateDecision, VersionGate

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """RuboCop-compatible severity levels."""
    INFO = "info"
    REFACTOR = "refactor"
    CONVENTION = "convention"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def code(self) -> str:
        """One-letter code shown in text output (``C`` for convention)."""
        return self.value[0].upper()


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single offense.

    Attributes
    ----------
    error_id     : Checker name the offense is reported under
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Start of the offending range (1-based line and column)
    end_location : End of the offending range
    range        : Offending character range in the file
    checker_name : Name of the checker that produced this
    correction   : Replacement edits, when a safe one exists
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    end_location: SourceLocation
    range: SourceRange
    checker_name: str = ""
    correction: Optional[Correction] = None

    @property
    def correctable(self) -> bool:
        return self.correction is not None

    def to_json_dict(self) -> Dict[str, Any]:
        """RuboCop's JSON offense layout."""
        return {
            "severity": self.severity.value,
            "message": self.message,
            "cop_name": self.error_id,
            "correctable": self.correctable,
            "location": {
                "start_line": self.location.line,
                "start_column": self.location.column,
                "last_line": self.end_location.line,
                "last_column": self.end_location.column,
                "length": self.range.length,
                "line": self.location.line,
                "column": self.location.column,
            },
        }

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        return f"{self.location}: {self.severity.value}: {self.message} [{self.error_id}]"


OBSOLETE_MEMOIZATION_MESSAGE = (
    "This two-stage workaround for memoization in `#typed: strict` files is no longer "
    "necessary. See https://sorbet.org/docs/type-assertions#put-type-assertions-behind-memoization."
)


class DiagnosticEmitter:
    """Turns memoization candidates of one file into diagnostics."""

    def __init__(
        self,
        buffer: SourceBuffer,
        severity: DiagnosticSeverity = DiagnosticSeverity.CONVENTION,
        error_id: str = CHECKER_NAME,
    ) -> None:
        self.buffer = buffer
        self.severity = severity
        self.error_id = error_id

    def emit(
        self,
        candidate: MemoizationCandidate,
        correction: Optional[Correction] = None,
    ) -> Diagnostic:
        span = candidate.reset_statement.span
        line, column = self.buffer.position(span.start)
        last_line, last_column = self.buffer.position(span.end)
        return Diagnostic(
            error_id=self.error_id,
            message=OBSOLETE_MEMOIZATION_MESSAGE,
            severity=self.severity,
            location=SourceLocation(self.buffer.path, line, column),
            end_location=SourceLocation(self.buffer.path, last_line, last_column),
            range=span,
            checker_name=self.error_id,
            correction=correction,
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_DIRECTIVE = re.compile(
    r"#\s*rubocop\s*:\s*(?P<action>disable|enable|todo)\s+(?P<names>[^\s,]+(?:\s*,\s*[^\s,]+)*)"
)


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments: ``# rubocop:disable Name`` trailing a statement
         silences that line; on a line of its own it silences everything
         up to ``# rubocop:enable Name`` or the end of the file.
         ``# rubocop:todo`` is a synonym for ``disable`` and ``all`` names
         every checker.
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line or config)
    """

    def __init__(self) -> None:
        # (file, line) → names suppressed on that line
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file → [(name, first_line, last_line)]
        self._ranges: Dict[str, List[Tuple[str, int, int]]] = defaultdict(list)
        # file pattern → names
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        self._global: Set[str] = set()

    def load_inline_suppressions(self, program: Node, buffer: SourceBuffer) -> None:
        """Read directive comments of one file, replacing earlier ones for it."""
        path = buffer.path
        for key in [k for k in self._inline if k[0] == path]:
            del self._inline[key]
        self._ranges.pop(path, None)

        open_since: Dict[str, int] = {}
        for node in walk(program):
            if not isinstance(node, Comment):
                continue
            match = _DIRECTIVE.search(node.text)
            if match is None:
                continue
            names = [n.strip() for n in match.group("names").split(",")]
            line, column = buffer.position(node.span.start)
            own_line = not buffer.line_text(line)[: column - 1].strip()
            if match.group("action") == "enable":
                for name in names:
                    for opened in ([*open_since] if name == "all" else [name]):
                        start = open_since.pop(opened, None)
                        if start is not None:
                            self._ranges[path].append((opened, start, line))
            elif own_line:
                for name in names:
                    open_since.setdefault(name, line)
            else:
                self._inline[(path, line)].update(names)
        for name, start in open_since.items():
            self._ranges[path].append((name, start, buffer.line_count))

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        eid = diag.error_id
        if eid in self._global or "all" in self._global:
            return True

        loc = diag.location
        names = self._inline.get((loc.file, loc.line), set())
        if eid in names or "all" in names:
            return True

        for name, first, last in self._ranges.get(loc.file, ()):
            if (name == eid or name == "all") and first <= loc.line <= last:
                return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "all" in ids:
                if pattern == loc.file or fnmatch(loc.file, pattern):
                    return True
        return False

    def filter_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to every checker for one file.

    Attributes
    ----------
    buffer       : the file's text
    program      : its parsed tree
    config       : run configuration
    gate         : version gate decision, computed once per run
    suppressions : SuppressionManager
    stats        : mutable dict for timing / counting statistics
    """
    buffer: SourceBuffer
    program: Node
    config: LintConfig
    gate: GateDecision
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.buffer.path


class Checker(ABC):
    """
    Abstract base class for all checkers.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.CONVENTION

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """Called before evidence collection.  Default does nothing."""

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Append diagnostics to ``self._diagnostics``."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — OBSOLETE STRICT MEMOIZATION
# ═════════════════════════════════════════════════════════════════════════

class ObsoleteStrictMemoizationChecker(Checker):
    """
    Flags ``@x = T.let(@x, Type)`` directly followed by ``@x ||= init``
    and offers ``@x ||= T.let(init, Type)`` instead.

    Only active when the project locks a Sorbet release that accepts
    ``T.let`` behind ``||=`` in strict files.
    """

    name: ClassVar[str] = CHECKER_NAME
    description: ClassVar[str] = "Obsolete two-statement memoization in strict files"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({CHECKER_NAME})
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.CONVENTION

    def __init__(self) -> None:
        super().__init__()
        self._candidates: List[MemoizationCandidate] = []
        self._severity = self.default_severity
        self._indent_width = 2
        self._max_line_width: Optional[int] = None

    def configure(self, ctx: CheckerContext) -> None:
        self._severity = DiagnosticSeverity(ctx.config.severity)
        self._indent_width = ctx.config.indentation_width
        self._max_line_width = ctx.config.max_line_length

    def collect_evidence(self, ctx: CheckerContext) -> None:
        if not ctx.gate.active:
            return
        self._candidates = PatternMatcher().scan(ctx.program)

    def diagnose(self, ctx: CheckerContext) -> None:
        synthesizer = CorrectionSynthesizer(ctx.buffer)
        emitter = DiagnosticEmitter(ctx.buffer, self._severity, self.name)
        for candidate in self._candidates:
            correction = synthesizer.synthesize(candidate, self._indent_width, self._max_line_width)
            self._diagnostics.append(emitter.emit(candidate, correction))


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers with lookup and enable/disable.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(ObsoleteStrictMemoizationChecker)
    >>> registry.disable("Sorbet/ObsoleteStrictMemoization")
    >>> registry.get_enabled()
    []
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: Set[str] = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def disable(self, name: str) -> None:
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def is_enabled(self, name: str) -> bool:
        return name in self._checkers and name not in self._disabled

    def get_enabled(self) -> List[Type[Checker]]:
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def copy(self) -> CheckerRegistry:
        clone = CheckerRegistry()
        clone._checkers = dict(self._checkers)
        clone._disabled = set(self._disabled)
        return clone

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(ObsoleteStrictMemoizationChecker)


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _drop_corrections(diagnostics: Iterable[Diagnostic], rejected: Set[Correction]) -> List[Diagnostic]:
    """``diagnostics`` with every correction in ``rejected`` removed."""
    return [
        replace(d, correction=None) if d.correction is not None and d.correction in rejected else d
        for d in diagnostics
    ]


@dataclass
class FileResult:
    """
    Outcome for one file.

    ``diagnostics`` are the offenses found in the text as given;
    ``remaining`` are the ones left after autocorrection (the same list
    when nothing was corrected).
    """
    path: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    remaining: Optional[List[Diagnostic]] = None
    error: Optional[StrictMemoError] = None
    corrected_text: Optional[str] = None
    text: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.remaining is None:
            self.remaining = list(self.diagnostics)

    @property
    def changed(self) -> bool:
        return self.corrected_text is not None

    @property
    def corrected_count(self) -> int:
        return max(0, len(self.diagnostics) - len(self.remaining or ()))


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running the checkers over a set of files.

    Attributes
    ----------
    files         : Per-file results in inspection order
    checker_names : Names of checkers that were run
    gate          : Version gate decision used for the run
    autocorrect   : Whether corrections were applied
    stats         : Timing and counting statistics
    """
    files: List[FileResult] = field(default_factory=list)
    checker_names: List[str] = field(default_factory=list)
    gate: Optional[GateDecision] = None
    autocorrect: bool = False
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def inspected_count(self) -> int:
        return len(self.files)

    @property
    def offense_count(self) -> int:
        return sum(len(f.diagnostics) for f in self.files)

    @property
    def correctable_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.correctable)

    @property
    def corrected_count(self) -> int:
        return sum(f.corrected_count for f in self.files)

    @property
    def remaining_count(self) -> int:
        return sum(len(f.remaining or ()) for f in self.files)

    @property
    def parse_errors(self) -> List[StrictMemoError]:
        return [f.error for f in self.files if f.error is not None]

    def summary(self) -> str:
        """``N files inspected, M offenses detected, K offenses autocorrectable``"""
        parts = [
            f"{_plural(self.inspected_count, 'file')} inspected",
            f"{_plural(self.offense_count, 'offense')} detected",
        ]
        if self.autocorrect:
            parts.append(f"{_plural(self.corrected_count, 'offense')} corrected")
            left = self.correctable_count - self.corrected_count
            if left > 0:
                parts.append(f"{_plural(left, 'more offense')} can be corrected with `-a`")
        elif self.correctable_count:
            parts.append(f"{_plural(self.correctable_count, 'offense')} autocorrectable")
        return ", ".join(parts)


class CheckerRunner:
    """
    Runs the registered checkers over Ruby sources.

    Usage
    -----
    >>> runner = CheckerRunner(LintConfig(), {"sorbet-static": "0.5.10210"})
    >>> result = runner.run_source(text, "app/models/user.rb")
    >>> corrected, result = runner.autocorrect_source(text, "app/models/user.rb")
    >>> results = runner.run_paths(["app"])
    >>> print(results.summary())

    Parameters for constructor
    ─────────────────────────
    config          : LintConfig — settings for the run
    locked_packages : mapping of package name → locked version
    registry        : CheckerRegistry — source of checker classes
    suppressions    : SuppressionManager — pre-loaded suppression rules
    version_gate    : VersionGate — which package/version enables the rule
    """

    MAX_AUTOCORRECT_PASSES: ClassVar[int] = 10

    def __init__(
        self,
        config: Optional[LintConfig] = None,
        locked_packages: Optional[Mapping[str, str]] = None,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        version_gate: Optional[VersionGate] = None,
    ) -> None:
        self.config = config or LintConfig()
        self.locked_packages: Dict[str, str] = dict(locked_packages or {})
        self.registry = registry or _DEFAULT_REGISTRY.copy()
        self.suppressions = suppressions or SuppressionManager()
        self.version_gate = version_gate or VersionGate()
        if not self.config.enabled:
            self.registry.disable(CHECKER_NAME)

    @cached_property
    def gate(self) -> GateDecision:
        decision = self.version_gate.evaluate(self.locked_packages)
        if not decision.active:
            logger.info("rule inactive: %s", decision.reason)
        return decision

    # ── single sources ──────────────────────────────────────────────

    def _analyze(self, buffer: SourceBuffer) -> List[Diagnostic]:
        checker_classes = self.registry.get_enabled()
        if not checker_classes or not self.gate.active:
            return []
        program = parse_buffer(buffer)
        self.suppressions.load_inline_suppressions(program, buffer)
        ctx = CheckerContext(
            buffer=buffer,
            program=program,
            config=self.config,
            gate=self.gate,
            suppressions=self.suppressions,
        )
        diagnostics: List[Diagnostic] = []
        for cls in checker_classes:
            checker = cls()
            t0 = time.monotonic()
            checker.configure(ctx)
            checker.collect_evidence(ctx)
            checker.diagnose(ctx)
            diagnostics.extend(checker.report(ctx))
            ctx.stats[f"{cls.name}_elapsed_ms"] = (time.monotonic() - t0) * 1000.0
        diagnostics.sort(key=lambda d: (d.range.start, d.error_id))
        return diagnostics

    def run_source(self, text: str, path: str = "<string>") -> FileResult:
        """Offenses in ``text``; a parse failure is recorded, not raised."""
        try:
            diagnostics = self._analyze(SourceBuffer(text, path))
        except RubyParseError as exc:
            logger.warning("%s", exc)
            return FileResult(path, error=exc, text=text)
        return FileResult(path, diagnostics, text=text)

    def autocorrect_source(self, text: str, path: str = "<string>") -> Tuple[str, FileResult]:
        """
        Apply corrections until none are left, at most
        ``MAX_AUTOCORRECT_PASSES`` times.  Returns the final text and the
        file result (``corrected_text`` is set when the text changed).
        """
        first = self.run_source(text, path)
        if first.error is not None:
            return text, first

        current = text
        remaining = first.diagnostics
        rejected: Set[Correction] = set()
        for pass_no in range(1, self.MAX_AUTOCORRECT_PASSES + 1):
            corrections = [
                d.correction for d in remaining
                if d.correction is not None and d.correction not in rejected
            ]
            if not corrections:
                break
            applied = self._apply_pass(current, path, corrections, rejected)
            if applied is None:
                break
            updated, remaining_next, edits = applied
            logger.info("%s: autocorrect pass %d applied %s", path, pass_no, _plural(edits, "edit"))
            current, remaining = updated, remaining_next
        else:
            logger.warning("%s: still correctable after %d passes", path, self.MAX_AUTOCORRECT_PASSES)

        result = FileResult(
            path,
            _drop_corrections(first.diagnostics, rejected),
            remaining=_drop_corrections(remaining, rejected),
            corrected_text=current if current != text else None,
            text=text,
        )
        return current, result

    def _apply_pass(
        self,
        text: str,
        path: str,
        corrections: List[Correction],
        rejected: Set[Correction],
    ) -> Optional[Tuple[str, List[Diagnostic], int]]:
        """
        Apply ``corrections`` to ``text`` together.  When the result does
        not parse, each correction is tried alone against ``text`` and
        the ones that break it are added to ``rejected``; the rest are
        applied.  Returns ``None`` when nothing could be applied.
        """
        merged = Correction.merge(corrections)
        updated = merged.apply(text)
        if updated == text:
            return None
        try:
            return updated, self._analyze(SourceBuffer(updated, path)), len(merged)
        except RubyParseError as exc:
            logger.warning("%s: corrected text no longer parses (%s); trying corrections one by one",
                           path, exc)

        accepted: List[Correction] = []
        for correction in corrections:
            try:
                self._analyze(SourceBuffer(correction.apply(text), path))
            except RubyParseError:
                logger.warning("%s: dropping correction %r, its result does not parse", path, correction)
                rejected.add(correction)
                continue
            accepted.append(correction)
        if not accepted:
            return None
        merged = Correction.merge(accepted)
        updated = merged.apply(text)
        try:
            return updated, self._analyze(SourceBuffer(updated, path)), len(merged)
        except RubyParseError as exc:
            logger.error("%s: corrected text no longer parses (%s); leaving it unchanged", path, exc)
            rejected.update(accepted)
            return None

    # ── files and directories ───────────────────────────────────────

    def _is_excluded(self, path: Path) -> bool:
        if not self.config.exclude:
            return False
        base = Path(self.config.base_dir) if self.config.base_dir else Path.cwd()
        try:
            relative = path.resolve().relative_to(base.resolve()).as_posix()
        except ValueError:
            relative = path.as_posix()
        return any(fnmatch(relative, pattern) for pattern in self.config.exclude)

    def discover(self, paths: Sequence[Union[str, Path]]) -> Iterator[Path]:
        """
        Ruby files under ``paths``.  Directories are walked recursively
        (skipping hidden directories and excluded files); files named
        explicitly are always inspected.
        """
        for entry in paths:
            path = Path(entry)
            if path.is_dir():
                for candidate in sorted(path.rglob("*.rb")):
                    hidden = any(part.startswith(".") for part in candidate.relative_to(path).parts[:-1])
                    if hidden or not candidate.is_file() or self._is_excluded(candidate):
                        continue
                    yield candidate
            elif path.is_file():
                yield path
            else:
                raise SourceReadError("no such file or directory", str(path))

    def run_paths(
        self,
        paths: Sequence[Union[str, Path]],
        autocorrect: bool = False,
    ) -> CheckerRunResults:
        """
        Inspect every file under ``paths``.  Files are never written here;
        with ``autocorrect`` the corrected text is returned per file.
        """
        results = CheckerRunResults(
            checker_names=[cls.name for cls in self.registry.get_enabled()],
            gate=self.gate,
            autocorrect=autocorrect,
        )
        t0 = time.monotonic()
        for file in self.discover(paths):
            name = str(file)
            try:
                text = file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                error = SourceReadError(f"cannot read source: {exc}", name)
                logger.warning("%s", error)
                results.files.append(FileResult(name, error=error))
                continue
            if autocorrect:
                _, file_result = self.autocorrect_source(text, name)
            else:
                file_result = self.run_source(text, name)
            results.files.append(file_result)
        results.stats["elapsed_ms"] = (time.monotonic() - t0) * 1000.0
        logger.debug("inspected %s", _plural(results.inspected_count, "file"))
        return results


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 — PUBLIC API
# ═════════════════════════════════════════════════════════════════════════

__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticEmitter",
    "DiagnosticSeverity",
    "SourceLocation",
    "OBSOLETE_MEMOIZATION_MESSAGE",
    # Suppression
    "SuppressionManager",
    # Checker framework
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    "ObsoleteStrictMemoizationChecker",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
    "FileResult",
]
