"""
Pipeline orchestration: load → valuate → group → aggregate → smooth → report.

This is the only module with I/O (file loading, report formatting).
All scoring logic is delegated to classifier, scoring and dates.

Entry points:
    analyze(filepath)          → CLI mode
    analyze_data(records)      → backend mode, list-of-dict input
    analyze_notes_async(notes) → classification may suspend (model backends)
"""

import asyncio
import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from vibelog.classifier import Classifier, RuleClassifier
from vibelog.config import VibelogConfig
from vibelog.dates import group_by_day, local_today, parse_timestamp, trailing_day_keys
from vibelog.models import Category, DayAggregate, DayScore, Note, ValuedNote
from vibelog.scoring import score_day_from_values, smooth_series

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Note loading (read-only)
# ---------------------------------------------------------------------------

REQUIRED_KEYS = {"id", "text", "createdAt"}


def _note_from_record(record: Dict) -> Note:
    if not isinstance(record, dict):
        raise ValueError(f"Note record must be an object, got {type(record).__name__}")

    missing = REQUIRED_KEYS - set(record)
    if missing:
        raise ValueError(f"Missing required keys: {missing}")

    category = record.get("category")
    if category is not None:
        try:
            category = Category(category)
        except ValueError as exc:
            raise ValueError(f"Unknown category {category!r} on note {record['id']}") from exc

    value = record.get("value")
    if value is not None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Non-numeric value {value!r} on note {record['id']}")
        value = float(value)

    text = record["text"]
    if not isinstance(text, str):
        raise ValueError(f"Non-string text {text!r} on note {record['id']}")

    return Note(
        id=str(record["id"]),
        text=text,
        created_at=parse_timestamp(record["createdAt"]),
        category=category,
        value=value,
    )


def notes_from_records(records: List[Dict]) -> List[Note]:
    """Build notes from list-of-dict data, ordered by creation time."""
    notes = [_note_from_record(r) for r in records]
    return _sort_notes(notes)


def load_notes(filepath: Union[str, Path]) -> List[Note]:
    """Load and validate notes from a JSON file holding an array of records."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Notes file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Notes file must contain a JSON array")

    return notes_from_records(data)


def _sort_notes(notes: List[Note]) -> List[Note]:
    # Mixed naive/aware timestamps cannot be compared; keep input order then
    try:
        return sorted(notes, key=lambda n: n.created_at)
    except TypeError:
        logger.warning("Notes mix naive and aware timestamps; keeping input order")
        return list(notes)


# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------

def _manual_value(note: Note, cfg: VibelogConfig) -> ValuedNote:
    value = note.value
    if not math.isfinite(value):
        raise ValueError(f"Note {note.id} has non-finite value {value}")
    if not cfg.notes.contains(value):
        # Kept verbatim; the score transform bounds the result
        logger.warning(
            "Note %s value %s outside [%s, %s]; using it unclamped",
            note.id, value, cfg.notes.value_min, cfg.notes.value_max,
        )
    return ValuedNote(note=note, category=note.category or Category.OTHER, value=value)


def valuate_note(
    note: Note,
    classifier: Classifier,
    cfg: VibelogConfig,
) -> ValuedNote:
    """
    Give a note its category and value.

    A stored value always wins and the classifier is not called. Otherwise
    the classifier supplies the value; a stored category still wins.
    """
    if note.value is not None:
        return _manual_value(note, cfg)

    result = classifier.classify(note.text)
    return ValuedNote(note=note, category=note.category or result.category, value=result.value)


def valuate_notes(
    notes: Sequence[Note],
    classifier: Classifier,
    cfg: VibelogConfig,
) -> List[ValuedNote]:
    return [valuate_note(n, classifier, cfg) for n in notes]


async def _aclassify(classifier: Classifier, text: str):
    aclassify = getattr(classifier, "aclassify", None)
    if aclassify is not None:
        return await aclassify(text)
    return await asyncio.to_thread(classifier.classify, text)


async def avaluate_notes(
    notes: Sequence[Note],
    classifier: Classifier,
    cfg: VibelogConfig,
) -> List[ValuedNote]:
    """
    Concurrent valuation. Returns only once every note is valued, in input
    order. The first classification failure propagates.
    """
    pending = [n for n in notes if n.value is None]
    results = await asyncio.gather(*(_aclassify(classifier, n.text) for n in pending))
    classified = {id(n): r for n, r in zip(pending, results)}

    valued = []
    for note in notes:
        if note.value is not None:
            valued.append(_manual_value(note, cfg))
        else:
            result = classified[id(note)]
            valued.append(
                ValuedNote(note=note, category=note.category or result.category, value=result.value)
            )
    return valued


# ---------------------------------------------------------------------------
# Day scores and trend (PURE — NO FILE I/O)
# ---------------------------------------------------------------------------

def score_day(valued: Sequence[ValuedNote], cfg: VibelogConfig) -> DayAggregate:
    """Single-day query over already-valued notes."""
    return score_day_from_values([v.value for v in valued], cfg.score)


def build_trend(
    valued: Sequence[ValuedNote],
    cfg: VibelogConfig,
    today: Optional[date] = None,
) -> List[DayScore]:
    """
    One DayScore per day of the trailing window, oldest first.

    Days without notes score the neutral 50. The EMA is folded strictly
    in date order across the window.
    """
    tz = cfg.tzinfo
    if today is None:
        today = local_today(tz)

    by_day = group_by_day([v.note for v in valued], tz)
    lookup = {id(v.note): v for v in valued}

    keys = list(trailing_day_keys(cfg.window.days, today))
    entries_by_key = {key: [lookup[id(n)] for n in by_day.get(key, [])] for key in keys}
    aggregates = [score_day(entries_by_key[key], cfg) for key in keys]
    smoothed = smooth_series([agg.raw_score for agg in aggregates], cfg.score)

    days: List[DayScore] = []
    for key, agg, s in zip(keys, aggregates, smoothed):
        entries = entries_by_key[key]
        logger.debug(
            "%s: %d notes, +%.1f/-%.1f raw=%.2f smoothed=%.2f",
            key, len(entries), agg.positive_sum, agg.negative_sum, agg.raw_score, s,
        )
        days.append(DayScore(
            date_key=key,
            positive_sum=agg.positive_sum,
            negative_sum=agg.negative_sum,
            raw_score=agg.raw_score,
            smoothed_score=s,
            entries=entries,
        ))

    return days


def trend_frame(days: Sequence[DayScore]) -> pd.DataFrame:
    """Tabular view of a trend, indexed by date key."""
    df = pd.DataFrame(
        [
            {
                "date": d.date_key,
                "notes": len(d.entries),
                "positive_sum": d.positive_sum,
                "negative_sum": d.negative_sum,
                "raw_score": d.raw_score,
                "smoothed_score": d.smoothed_score,
            }
            for d in days
        ],
        columns=["date", "notes", "positive_sum", "negative_sum", "raw_score", "smoothed_score"],
    )
    return df.set_index("date")


def _summarize(days: List[DayScore], cfg: VibelogConfig) -> Dict:
    frame = trend_frame(days)
    latest = days[-1]
    return {
        "today": {
            "date": latest.date_key,
            "positive_sum": latest.positive_sum,
            "negative_sum": latest.negative_sum,
            "raw_score": latest.raw_score,
        },
        "days": [d.to_dict() for d in days],
        "average_raw": round(float(np.mean(frame["raw_score"])), 3),
        "average_smoothed": round(float(np.mean(frame["smoothed_score"])), 3),
        "config": {
            "loss_aversion": cfg.score.loss_aversion,
            "scale": cfg.score.scale,
            "ema_alpha": cfg.score.ema_alpha,
            "window_days": cfg.window.days,
            "report_notes_per_day": cfg.window.report_notes_per_day,
        },
    }


def _analyze_notes(
    notes: Sequence[Note],
    cfg: VibelogConfig,
    classifier: Classifier,
    today: Optional[date],
) -> Dict:
    valued = valuate_notes(notes, classifier, cfg)
    return _summarize(build_trend(valued, cfg, today), cfg)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def analyze(
    filepath: Union[str, Path],
    cfg: VibelogConfig | None = None,
    classifier: Classifier | None = None,
    today: date | None = None,
) -> Dict:
    """
    CLI-compatible entry point.
    Reads a JSON notes file and builds the trailing-window report.
    """
    if cfg is None:
        cfg = VibelogConfig()
    if classifier is None:
        classifier = RuleClassifier()

    notes = load_notes(filepath)
    return _analyze_notes(notes, cfg, classifier, today)


def analyze_data(
    records: list[dict],
    cfg: VibelogConfig | None = None,
    classifier: Classifier | None = None,
    today: date | None = None,
) -> Dict:
    """
    Backend integration entry point.

    Accepts list-of-dict note records directly. An empty list is valid
    and yields a window of neutral days.
    """
    if cfg is None:
        cfg = VibelogConfig()
    if classifier is None:
        classifier = RuleClassifier()

    notes = notes_from_records(records)
    return _analyze_notes(notes, cfg, classifier, today)


async def analyze_notes_async(
    notes: Sequence[Note],
    cfg: VibelogConfig | None = None,
    classifier: Classifier | None = None,
    today: date | None = None,
) -> Dict:
    """Same report as analyze_data, with classification run concurrently."""
    if cfg is None:
        cfg = VibelogConfig()
    if classifier is None:
        classifier = RuleClassifier()

    valued = await avaluate_notes(notes, classifier, cfg)
    return _summarize(build_trend(valued, cfg, today), cfg)


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

def _signed(value: float) -> str:
    return f"+{value:g}" if value >= 0 else f"{value:g}"


def generate_report(result: Dict) -> str:
    """Format the analysis result as a human-readable text report."""
    c = result["config"]
    t = result["today"]
    limit = c["report_notes_per_day"]

    lines = [
        "VIBELOG REPORT",
        "=" * 58,
        "",
        f"  Today ({t['date']})       : {t['raw_score']:.0f}/100"
        f"  (+{t['positive_sum']:.1f} / -{t['negative_sum']:.1f})",
        f"  Average raw ({c['window_days']}d)   : {result['average_raw']:.0f}/100",
        f"  Average smoothed    : {result['average_smoothed']:.0f}/100",
        f"  Smoothing           : S_t = {c['ema_alpha']}·score_t + {1 - c['ema_alpha']:g}·S_t-1",
        "",
    ]

    for day in result["days"]:
        lines.append(
            f"  {day['date']}  Raw {day['raw_score']:3.0f} · Smoothed {day['smoothed_score']:3.0f}"
            f"  +{day['positive_sum']:.1f} / -{day['negative_sum']:.1f}"
            f" (λ={c['loss_aversion']}, scale={c['scale']:g}) · {len(day['entries'])} notes"
        )
        if not day["entries"]:
            lines.append("      No notes.")
        for e in day["entries"][:limit]:
            lines.append(f"      - {e['text']} ({e['category']}, {_signed(e['value'])})")

    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)
