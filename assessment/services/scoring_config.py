"""Scoring policy for one report run.

Built once from the Flask config at the start of a run and passed down
explicitly; nothing in the pipeline reads settings from module globals.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class Band:
    lower: float  # inclusive
    label: str


# highest band first; lower bounds must be strictly decreasing and end at 0
DEFAULT_BANDS: Tuple[Band, ...] = (
    Band(8.0, "Excellent"),
    Band(7.0, "Very Good"),
    Band(5.0, "Good"),
    Band(3.0, "Developing"),
    Band(0.0, "Needs Improvement"),
)


def validate_bands(bands) -> Tuple[Band, ...]:
    bands = tuple(bands)
    if not bands:
        raise ValueError("at least one performance band is required")
    lowers = [b.lower for b in bands]
    if any(a <= b for a, b in zip(lowers, lowers[1:])):
        raise ValueError(f"band lower bounds must be strictly decreasing: {lowers}")
    if lowers[-1] != 0:
        raise ValueError("the last performance band must start at 0")
    return bands


@dataclass(frozen=True)
class Thresholds:
    strength: float = 5.0
    bands: Tuple[Band, ...] = DEFAULT_BANDS


@dataclass(frozen=True)
class ScoringConfig:
    follow_up_penalty_percent: float = 10.0
    thresholds: Thresholds = field(default_factory=Thresholds)
    max_workers: int = 4
    timeout_sec: float = 120.0

    def __post_init__(self):
        if not 0 <= self.follow_up_penalty_percent <= 100:
            raise ValueError(f"follow-up penalty must be within 0-100, got {self.follow_up_penalty_percent}")
        if not 0 <= self.thresholds.strength <= 10:
            raise ValueError(f"strength threshold must be within 0-10, got {self.thresholds.strength}")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        validate_bands(self.thresholds.bands)

    @classmethod
    def from_mapping(cls, conf: Mapping[str, Any]) -> "ScoringConfig":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            follow_up_penalty_percent=float(conf.get("FOLLOW_UP_PENALTY_PERCENT", 10)),
            thresholds=Thresholds(
                strength=float(conf.get("STRENGTH_THRESHOLD", 5.0)),
                bands=tuple(conf.get("PERFORMANCE_BANDS") or DEFAULT_BANDS),
            ),
            max_workers=int(conf.get("EVALUATOR_MAX_WORKERS", 4)),
            timeout_sec=float(conf.get("EVALUATION_TIMEOUT_SEC", 120)),
        )


def performance_level(score: float, bands=DEFAULT_BANDS) -> str:
    """Label for a 0-10 score; out-of-range scores are clamped first."""
    score = max(0.0, min(10.0, score))
    for band in bands:
        if score >= band.lower:
            return band.label
    return bands[-1].label
