"""
config.py
---------
Settings for the Unified Schema Planner, read from the environment.

A ``.env`` file next to this module is loaded first when python-dotenv is
installed.  Every setting has a default, so the planner runs with no
environment at all.

Design Decision:
    The comparison weights and the migration-complexity ladder live on a
    frozen dataclass instead of inside the comparator.  The calibration is
    in one place, checked once at start-up, and overridable per deployment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    from dotenv import load_dotenv
    _env_path = Path(__file__).parent / ".env"
    if _env_path.exists():
        load_dotenv(dotenv_path=_env_path)
except ImportError:
    pass  # no python-dotenv: real environment only


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class LoggingConfig:
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE") or None  # stderr only when unset
    )


# (minimum compatibility score, maximum breaking changes, complexity value),
# tried top to bottom; below the last rung is "extreme".
DEFAULT_COMPLEXITY_LADDER: tuple[tuple[float, int, str], ...] = (
    (1.0, 0, "none"),
    (0.9, 0, "low"),
    (0.7, 2, "medium"),
    (0.4, 5, "high"),
)


@dataclass(frozen=True)
class ComparisonConfig:
    """Calibration constants for the schema comparison engine."""
    structural_weight: float = field(
        default_factory=lambda: _env_float("COMPARISON_STRUCTURAL_WEIGHT", 0.7)
    )
    enrichment_weight: float = field(
        default_factory=lambda: _env_float("COMPARISON_ENRICHMENT_WEIGHT", 0.3)
    )
    privacy_weight_threshold: float = field(
        default_factory=lambda: _env_float("COMPARISON_PRIVACY_THRESHOLD", 0.7)
    )
    score_tolerance: float = field(
        default_factory=lambda: _env_float("COMPARISON_SCORE_TOLERANCE", 0.1)
    )
    complexity_ladder: tuple[tuple[float, int, str], ...] = DEFAULT_COMPLEXITY_LADDER

    def __post_init__(self) -> None:
        for name in ("structural_weight", "enrichment_weight",
                     "privacy_weight_threshold", "score_tolerance"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if abs(self.structural_weight + self.enrichment_weight - 1.0) > 1e-9:
            raise ValueError(
                "structural_weight and enrichment_weight must sum to 1, got "
                f"{self.structural_weight} + {self.enrichment_weight}"
            )
        scores = [rung[0] for rung in self.complexity_ladder]
        if scores != sorted(scores, reverse=True):
            raise ValueError("complexity_ladder rungs must be ordered by descending score")


@dataclass(frozen=True)
class AppConfig:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    comparison: ComparisonConfig = field(default_factory=ComparisonConfig)
    app_name: str = "Unified Schema Planner"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Read the environment into a frozen :class:`AppConfig`.

    Raises:
        ValueError: A numeric setting is malformed or out of range.
    """
    return AppConfig()


CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """``CONFIG.logging.log_level`` as a :mod:`logging` constant (INFO if unknown)."""
    level = logging.getLevelName(CONFIG.logging.log_level)
    return level if isinstance(level, int) else logging.INFO
