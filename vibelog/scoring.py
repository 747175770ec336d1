"""
Score math: day aggregation and EMA trend smoothing.

Pure functions over plain numbers. No grouping, no notes, no I/O.
"""

from typing import Iterable, List, Optional

import numpy as np

from vibelog.config import ScoreConfig
from vibelog.models import DayAggregate


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return float(min(hi, max(lo, x)))


def sigmoid(z: float) -> float:
    """Logistic function, evaluated without overflow for large |z|."""
    if z >= 0:
        return float(1.0 / (1.0 + np.exp(-z)))
    e = np.exp(z)
    return float(e / (1.0 + e))


# ---------------------------------------------------------------------------
# Day aggregator
# ---------------------------------------------------------------------------

def score_day_from_values(values: Iterable[float], cfg: ScoreConfig) -> DayAggregate:
    """
    Fold one day's note values into a bounded raw score.

        p   = Σ max(0, v)
        n   = Σ max(0, -v)
        z   = (p - λ·n) / scale
        raw = clamp(100 · sigmoid(z))

    An empty day gives z = 0 and therefore the neutral midpoint 50.
    Non-finite values, or sums too large to score, raise ValueError.
    """
    v = np.asarray(list(values), dtype=np.float64)
    if not np.isfinite(v).all():
        raise ValueError(f"Note values must be finite, got {v[~np.isfinite(v)].tolist()}")

    p = float(np.maximum(v, 0.0).sum())
    n = float(np.maximum(-v, 0.0).sum())

    z = (p - cfg.loss_aversion * n) / cfg.scale
    if not np.isfinite(z):
        raise ValueError(f"Day score overflowed: p={p}, n={n}")
    raw = 100.0 * sigmoid(z)

    return DayAggregate(
        positive_sum=p,
        negative_sum=n,
        raw_score=clamp(raw, cfg.score_min, cfg.score_max),
    )


# ---------------------------------------------------------------------------
# Trend smoother
# ---------------------------------------------------------------------------

def ema_score(
    today_raw: float,
    yesterday_smoothed: Optional[float],
    cfg: ScoreConfig,
) -> float:
    """
    One step of S_t = α·raw_t + (1-α)·S_{t-1}.

    With no previous value (first day of a sequence) the smoothed value is
    the clamped raw score. Precondition: cfg.ema_alpha in [0, 1], which
    ScoreConfig enforces on construction.
    """
    if yesterday_smoothed is None:
        return clamp(today_raw, cfg.score_min, cfg.score_max)
    a = cfg.ema_alpha
    return clamp(a * today_raw + (1.0 - a) * yesterday_smoothed, cfg.score_min, cfg.score_max)


def smooth_series(raw_scores: Iterable[float], cfg: ScoreConfig) -> List[float]:
    """Apply ema_score oldest to newest. Order of the input is the time order."""
    smoothed: List[float] = []
    prev: Optional[float] = None
    for raw in raw_scores:
        prev = ema_score(raw, prev, cfg)
        smoothed.append(prev)
    return smoothed
