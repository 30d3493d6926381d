"""
strictmemo/lockfile.py
══════════════════════

Reading resolved package versions out of a Bundler lockfile.

Only the ``specs:`` entries of the ``GEM``, ``GIT`` and ``PATH`` sections
matter here::

    GEM
      remote: https://rubygems.org/
      specs:
        sorbet-static (0.5.10210-x86_64-linux)
        sorbet-runtime (0.5.10210)
          some-dependency (>= 1.0)

Four-space entries are resolved packages; six-space entries are their
dependency requirements and are ignored.  A platform suffix is split off
at the first ``-`` the way Bundler splits ``version-platform``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, Optional, Union

from strictmemo.errors import LockfileError

logger = logging.getLogger(__name__)

LOCKFILE_NAMES = ("Gemfile.lock", "gems.locked")

_SECTIONS_WITH_SPECS = frozenset({"GEM", "GIT", "PATH"})
_SPEC_LINE = re.compile(r"^    (?P<name>[^ (]+) \((?P<version>[^)]+)\)\s*$")


def parse_lockfile(text: str) -> Dict[str, str]:
    """Map package name → locked version for every resolved spec."""
    packages: Dict[str, str] = {}
    section: Optional[str] = None
    in_specs = False
    for raw in text.splitlines():
        line = raw.rstrip("\r")
        if not line.strip():
            in_specs = False
            continue
        if not line.startswith(" "):
            section = line.strip()
            in_specs = False
            continue
        if line.strip() == "specs:":
            in_specs = section in _SECTIONS_WITH_SPECS
            continue
        if not in_specs:
            continue
        match = _SPEC_LINE.match(line)
        if match is None:
            continue
        version = match.group("version").split("-", 1)[0]
        packages.setdefault(match.group("name"), version)
    return packages


def find_lockfile(start: Union[str, Path, None] = None) -> Optional[Path]:
    """
    Locate the lockfile governing ``start`` (default: the working directory).

    ``BUNDLE_GEMFILE`` wins when set: its lockfile sits beside it, named
    ``<gemfile>.lock`` (or ``gems.locked`` for ``gems.rb``).  Otherwise the
    directory tree is walked upwards.
    """
    gemfile = os.environ.get("BUNDLE_GEMFILE")
    if gemfile:
        gemfile_path = Path(gemfile)
        if gemfile_path.name == "gems.rb":
            candidate = gemfile_path.with_name("gems.locked")
        else:
            candidate = gemfile_path.with_name(gemfile_path.name + ".lock")
        logger.debug("BUNDLE_GEMFILE set, looking for %s", candidate)
        return candidate if candidate.is_file() else None

    directory = Path(start) if start is not None else Path.cwd()
    directory = directory.resolve()
    if directory.is_file():
        directory = directory.parent
    for folder in (directory, *directory.parents):
        for name in LOCKFILE_NAMES:
            candidate = folder / name
            if candidate.is_file():
                logger.debug("using lockfile %s", candidate)
                return candidate
    return None


def read_locked_packages(
    path: Union[str, Path, None] = None,
    start: Union[str, Path, None] = None,
) -> Dict[str, str]:
    """
    Locked packages of the project at ``start``, or of the lockfile ``path``.

    No lockfile means no locked packages.  A lockfile that exists but
    cannot be read raises :class:`LockfileError`.
    """
    lockfile = Path(path) if path is not None else find_lockfile(start)
    if lockfile is None:
        logger.info("no lockfile found; no packages are locked")
        return {}
    if path is not None and not lockfile.exists():
        raise LockfileError("lockfile does not exist", str(lockfile))
    try:
        text = lockfile.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LockfileError(f"cannot read lockfile: {exc}", str(lockfile)) from exc
    packages = parse_lockfile(text)
    logger.debug("%s locks %d packages", lockfile, len(packages))
    return packages
