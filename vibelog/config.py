"""
Centralized configuration for the scoring engine.

Every tunable constant lives here. Configuration objects are frozen and
validated on construction, then passed explicitly to every stage; nothing
reads a module-level default at call time.
"""

import math
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# ---------------------------------------------------------------------------
# Score parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreConfig:
    """
    Parameters of the day aggregator and trend smoother.

    raw    = clamp(100 * sigmoid((p - loss_aversion * n) / scale))
    S_t    = clamp(ema_alpha * raw_t + (1 - ema_alpha) * S_{t-1})
    """

    # lambda: a unit of negative mass outweighs a unit of positive mass
    loss_aversion: float = 1.8
    # Sensitivity divisor applied before the sigmoid
    scale: float = 6.0
    # Weight of today's raw score in the moving average
    ema_alpha: float = 0.3

    # All scores are clamped to [score_min, score_max]
    score_min: float = 0.0
    score_max: float = 100.0

    def __post_init__(self):
        for name in ("loss_aversion", "scale", "ema_alpha", "score_min", "score_max"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")
        if self.loss_aversion <= 1.0:
            raise ValueError(f"loss_aversion must be > 1, got {self.loss_aversion}")
        if self.scale <= 0.0:
            raise ValueError(f"scale must be > 0, got {self.scale}")
        if not 0.0 <= self.ema_alpha <= 1.0:
            raise ValueError(f"ema_alpha must be in [0, 1], got {self.ema_alpha}")
        if self.score_min >= self.score_max:
            raise ValueError(
                f"score_min must be below score_max, got [{self.score_min}, {self.score_max}]"
            )


# ---------------------------------------------------------------------------
# Note value range
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoteRange:
    """Documented range of a single note's value."""

    value_min: float = -5.0
    value_max: float = 10.0

    def __post_init__(self):
        if self.value_min >= self.value_max:
            raise ValueError(
                f"value_min must be below value_max, got [{self.value_min}, {self.value_max}]"
            )

    def contains(self, value: float) -> bool:
        return self.value_min <= value <= self.value_max


# ---------------------------------------------------------------------------
# Report window
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WindowParams:
    """Trailing window used for trend reports."""

    days: int = 7
    # Maximum notes listed per day in the text report
    report_notes_per_day: int = 6

    def __post_init__(self):
        if self.days < 1:
            raise ValueError(f"Window must cover at least one day, got {self.days}")


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VibelogConfig:
    """Complete engine configuration. Pass to the pipeline to override defaults."""

    score: ScoreConfig = field(default_factory=ScoreConfig)
    notes: NoteRange = field(default_factory=NoteRange)
    window: WindowParams = field(default_factory=WindowParams)
    # IANA zone name used for calendar-day keys; None means the system zone
    timezone: Optional[str] = None

    def __post_init__(self):
        if self.timezone is not None:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        """Resolved zone, or None for the system local zone."""
        if self.timezone is None:
            return None
        return ZoneInfo(self.timezone)

