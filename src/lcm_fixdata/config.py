"""
YAML configuration for a repair run.

Example file::

    max_iterations: 20
    backup_suffix: .bak
    progress_interval: 1000
    write_report: true
    fixers:
      - original
      - homograph
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigError
from .fixers import FIXER_NAMES

# Upper bound on repair passes in one run.
DEFAULT_MAX_ITERATIONS = 20


@dataclass
class FixerConfig:
    """Settings for :class:`lcm_fixdata.fixer.DataFixer`."""
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    backup_suffix: str = ".bak"
    progress_interval: int = 1000
    write_report: bool = True
    report_suffix: str = ".fixes"
    fixers: List[str] = field(default_factory=lambda: list(FIXER_NAMES))
    source_file: Optional[Path] = None


def load_config(
    source: Union[str, Path, Dict[str, Any], None] = None,
) -> FixerConfig:
    """Load configuration from a YAML file, YAML string or dictionary.

    Args:
        source: Path to a YAML file, a YAML string, a parsed dictionary,
            or None for the defaults

    Returns:
        FixerConfig object

    Raises:
        ConfigError: If the content cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    if source is None:
        return FixerConfig()

    source_path: Optional[Path] = None
    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        with open(source_path, "r", encoding="utf-8") as f:
            data = _safe_load(f)
    else:
        data = _safe_load(source)

    config = _parse_config(data)
    config.source_file = source_path
    return config


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _safe_load(stream: Any) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ConfigError(f"Invalid YAML: {e}", line=mark.line + 1 if mark else None) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")
    return data


def _parse_config(data: Dict[str, Any]) -> FixerConfig:
    """Validate a dictionary and turn it into a FixerConfig."""
    known = {"max_iterations", "backup_suffix", "progress_interval",
             "write_report", "report_suffix", "fixers"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    config = FixerConfig()
    for key in ("max_iterations", "progress_interval"):
        if key in data:
            value = data[key]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"Field '{key}' must be a positive integer")
            setattr(config, key, value)

    for key in ("backup_suffix", "report_suffix"):
        if key in data:
            value = data[key]
            if not isinstance(value, str) or not value.startswith(".") or len(value) < 2:
                raise ConfigError(f"Field '{key}' must be a file suffix such as '.bak'")
            setattr(config, key, value)

    if "write_report" in data:
        if not isinstance(data["write_report"], bool):
            raise ConfigError("Field 'write_report' must be true or false")
        config.write_report = data["write_report"]

    if "fixers" in data:
        fixers = data["fixers"]
        if not isinstance(fixers, list) or not all(isinstance(f, str) for f in fixers):
            raise ConfigError("Field 'fixers' must be a list of fixer names")
        bad = [f for f in fixers if f not in FIXER_NAMES]
        if bad:
            raise ConfigError(
                f"Unknown fixer(s): {', '.join(bad)} "
                f"(expected some of: {', '.join(FIXER_NAMES)})"
            )
        config.fixers = list(fixers)

    return config
