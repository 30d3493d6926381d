"""
strictmemo/config.py
════════════════════

Settings, read from a RuboCop-style ``.rubocop.yml``.

Only the keys that influence this tool are consulted::

    AllCops:
      Exclude:
        - "vendor/**/*"
    Layout/LineLength:
      Max: 100            # Enabled: false lifts the limit
    Layout/IndentationWidth:
      Width: 2
    Sorbet/ObsoleteStrictMemoization:
      Enabled: true
      Severity: convention

Every other key is ignored, so an existing project configuration can be
pointed at directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from strictmemo.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".rubocop.yml"
CHECKER_NAME = "Sorbet/ObsoleteStrictMemoization"
SEVERITY_NAMES = ("info", "refactor", "convention", "warning", "error", "fatal")


@dataclass(frozen=True)
class LintConfig:
    """Tuning knobs for one run."""
    indentation_width: int = 2
    max_line_length: Optional[int] = 120
    enabled: bool = True
    severity: str = "convention"
    exclude: Tuple[str, ...] = ()
    base_dir: Optional[str] = None
    source: Optional[str] = field(default=None, compare=False)

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.indentation_width <= 0:
            warnings.append("Layout/IndentationWidth Width must be positive")
        if self.max_line_length is not None and self.max_line_length <= 0:
            warnings.append("Layout/LineLength Max must be positive")
        return warnings

    def with_overrides(self, **changes: Any) -> LintConfig:
        return replace(self, **changes)


def _section(data: Mapping[str, Any], name: str, path: Optional[str]) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping, got {type(value).__name__}", path)
    return value


def _int(section: Mapping[str, Any], key: str, owner: str, path: Optional[str]) -> Optional[int]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{owner} {key} must be an integer, got {value!r}", path)
    return value


def _bool(section: Mapping[str, Any], key: str, owner: str, path: Optional[str]) -> Optional[bool]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"{owner} {key} must be true or false, got {value!r}", path)
    return value


def config_from_mapping(
    data: Optional[Mapping[str, Any]],
    path: Optional[str] = None,
) -> LintConfig:
    """Build a :class:`LintConfig` from already-loaded YAML data."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("top level must be a mapping", path)

    all_cops = _section(data, "AllCops", path)
    line_length = _section(data, "Layout/LineLength", path)
    indentation = _section(data, "Layout/IndentationWidth", path)
    checker = _section(data, CHECKER_NAME, path)

    exclude = all_cops.get("Exclude") or []
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ConfigError("AllCops Exclude must be a list of glob strings", path)

    defaults = LintConfig()
    max_line_length: Optional[int] = _int(line_length, "Max", "Layout/LineLength", path)
    if max_line_length is None:
        max_line_length = defaults.max_line_length
    if _bool(line_length, "Enabled", "Layout/LineLength", path) is False:
        max_line_length = None

    width = _int(indentation, "Width", "Layout/IndentationWidth", path)
    enabled = _bool(checker, "Enabled", CHECKER_NAME, path)

    severity = checker.get("Severity", defaults.severity)
    if severity not in SEVERITY_NAMES:
        raise ConfigError(
            f"{CHECKER_NAME} Severity must be one of {', '.join(SEVERITY_NAMES)}, got {severity!r}",
            path,
        )

    return LintConfig(
        indentation_width=width if width is not None else defaults.indentation_width,
        max_line_length=max_line_length,
        enabled=enabled if enabled is not None else defaults.enabled,
        severity=severity,
        exclude=tuple(exclude),
        base_dir=str(Path(path).resolve().parent) if path else None,
        source=path,
    )


def load_config(path: Union[str, Path]) -> LintConfig:
    """Read and validate the YAML file at ``path``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration: {exc}", str(path)) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", str(path)) from exc
    config = config_from_mapping(data, str(path))
    for warning in config.validate():
        logger.warning("%s: %s", path, warning)
    logger.debug("loaded configuration from %s", path)
    return config


def find_config(start: Union[str, Path, None] = None) -> Optional[Path]:
    """``.rubocop.yml`` in ``start`` (default: the working directory), if present."""
    directory = Path(start) if start is not None else Path.cwd()
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.is_file() else None
