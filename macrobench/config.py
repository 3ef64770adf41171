"""Configuration loading utilities for macrobench."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from .db import DEFAULT_DB_PATH
from .stats import DEFAULT_ALPHA

DEFAULT_PLANNER = "V3"
DEFAULT_BENCHMARK_TYPES = ("oltp", "tpcc")


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Dictionary containing the parsed YAML configuration

    Raises:
        FileNotFoundError: If the config file does not exist
        yaml.YAMLError: If the YAML is malformed
    """
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


@dataclass
class AnalysisConfig:
    """Settings for comparing and summarizing macro benchmarks."""

    db_path: str = DEFAULT_DB_PATH
    planner: str = DEFAULT_PLANNER
    alpha: float = DEFAULT_ALPHA
    last_days: Optional[int] = None
    benchmark_types: List[str] = field(default_factory=lambda: list(DEFAULT_BENCHMARK_TYPES))

    def validate(self) -> None:
        """Raise ValueError if a setting is out of range."""
        if not 0 < self.alpha < 1:
            raise ValueError(f"alpha must be between 0 and 1, got {self.alpha}")
        if self.last_days is not None and self.last_days <= 0:
            raise ValueError(f"last_days must be positive, got {self.last_days}")
        if not self.benchmark_types:
            raise ValueError("benchmark_types must not be empty")


def load_analysis_config(path: Optional[str] = None) -> AnalysisConfig:
    """
    Load analysis settings from a YAML file, falling back to defaults.

    Args:
        path: Path to the YAML file, or None for defaults only

    Returns:
        Validated AnalysisConfig

    Raises:
        ValueError: If the file has unknown keys or invalid values
    """
    config = AnalysisConfig()
    if path is None:
        return config

    try:
        raw = load_yaml_config(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Malformed config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(str(k) for k in set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    try:
        if "db_path" in raw:
            config.db_path = str(raw["db_path"])
        if "planner" in raw:
            config.planner = str(raw["planner"])
        if "alpha" in raw:
            config.alpha = float(raw["alpha"])
        if raw.get("last_days") is not None:
            config.last_days = int(raw["last_days"])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in config {path}: {e}") from e
    if "benchmark_types" in raw:
        config.benchmark_types = _parse_benchmark_types(raw["benchmark_types"], path)

    config.validate()
    return config


def _parse_benchmark_types(types: Any, path: str) -> List[str]:
    """Accept a comma-separated string or a list of strings."""
    if types is None:
        return []
    if isinstance(types, str):
        return [t.strip() for t in types.split(",") if t.strip()]
    if not isinstance(types, (list, tuple)) or not all(isinstance(t, str) for t in types):
        raise ValueError(
            f"benchmark_types in {path} must be a list of strings, got {types!r}"
        )
    return list(types)
