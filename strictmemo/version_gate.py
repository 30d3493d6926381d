"""
strictmemo/version_gate.py
══════════════════════════

Decides whether the memoization rule applies to a project at all.

Before ``sorbet-static`` 0.5.10210 the two-statement idiom was the only way
to memoize in ``# typed: strict`` files, so the rule stays silent for older
(or absent) type checkers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "sorbet-static"
DEFAULT_MINIMUM_VERSION = "0.5.10210"

Version = Tuple[int, ...]


def parse_version(text: str) -> Optional[Version]:
    """
    ``"0.5.10210"`` → ``(0, 5, 10210)``.

    Only dotted non-negative integers are understood.  Anything else,
    pre-release suffixes included, gives ``None``.
    """
    text = text.strip()
    if not text:
        return None
    parts = text.split(".")
    if not all(part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def compare_versions(left: Version, right: Version) -> int:
    """-1, 0 or 1; the shorter version is padded with zeros."""
    width = max(len(left), len(right))
    a = left + (0,) * (width - len(left))
    b = right + (0,) * (width - len(right))
    return (a > b) - (a < b)


@dataclass(frozen=True, slots=True)
class GateDecision:
    active: bool
    package: str
    locked_version: Optional[str]
    minimum_version: str
    reason: str

    def __bool__(self) -> bool:
        return self.active


class VersionGate:
    """Compares the locked version of one package against a minimum."""

    def __init__(
        self,
        package: str = DEFAULT_PACKAGE,
        minimum: str = DEFAULT_MINIMUM_VERSION,
    ) -> None:
        parsed = parse_version(minimum)
        if parsed is None:
            raise ValueError(f"minimum version {minimum!r} is not a dotted version")
        self.package = package
        self.minimum = minimum
        self._minimum = parsed

    def evaluate(self, locked_packages: Mapping[str, str]) -> GateDecision:
        locked = locked_packages.get(self.package)
        if locked is None:
            decision = self._decide(False, None, f"{self.package} is not locked; codebase does not use Sorbet")
        else:
            version = parse_version(locked)
            if version is None:
                logger.warning(
                    "cannot interpret locked %s version %r; rule disabled",
                    self.package,
                    locked,
                )
                decision = self._decide(False, locked, f"unrecognized version {locked!r}")
            elif compare_versions(version, self._minimum) >= 0:
                decision = self._decide(True, locked, f"{self.package} {locked} >= {self.minimum}")
            else:
                decision = self._decide(False, locked, f"{self.package} {locked} < {self.minimum}")
        logger.debug("version gate: %s (%s)", "active" if decision.active else "inactive", decision.reason)
        return decision

    def resolve(self, locked_packages: Mapping[str, str]) -> bool:
        return self.evaluate(locked_packages).active

    def _decide(self, active: bool, locked: Optional[str], reason: str) -> GateDecision:
        return GateDecision(
            active=active,
            package=self.package,
            locked_version=locked,
            minimum_version=self.minimum,
            reason=reason,
        )

    def __repr__(self) -> str:
        return f"VersionGate({self.package!r}, minimum={self.minimum!r})"
