"""
Calendar-day helpers: local date keys, trailing windows, day buckets.

Days are the user's local calendar days, not UTC days. Two notes a few
minutes apart can land in different buckets if they straddle local
midnight.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd

from vibelog.models import Note

Timestamp = Union[datetime, str]


def parse_timestamp(ts: Timestamp) -> datetime:
    """Accept a datetime or an ISO-8601 string (a trailing 'Z' included)."""
    if isinstance(ts, datetime):
        return ts
    if not isinstance(ts, str) or not ts.strip():
        raise ValueError(f"Invalid timestamp: {ts!r}")
    try:
        parsed = pd.Timestamp(ts)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Invalid timestamp: {ts!r}") from exc
    if pd.isna(parsed):
        raise ValueError(f"Invalid timestamp: {ts!r}")
    return parsed.to_pydatetime()


def to_local(ts: Timestamp, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert to local wall time.

    Aware timestamps are converted to `tz` (system zone when None).
    Naive timestamps are already local wall time and are returned as is.
    """
    dt = parse_timestamp(ts)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(tz)


def date_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def local_date_key(ts: Timestamp, tz: Optional[tzinfo] = None) -> str:
    """YYYY-MM-DD of the timestamp's local calendar date. Sorts in date order."""
    return date_key(to_local(ts, tz).date())


def local_today(tz: Optional[tzinfo] = None) -> date:
    return datetime.now(tz).date() if tz is not None else datetime.now().date()


def trailing_day_keys(
    n: int,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Iterator[str]:
    """
    Yield the keys of the last `n` calendar days ending at `today`, oldest first.

    Days with no notes are included; callers decide what an empty day means.
    Calling again with the same arguments regenerates the same sequence.
    """
    end = today if today is not None else local_today(tz)
    for offset in range(n - 1, -1, -1):
        yield date_key(end - timedelta(days=offset))


def group_by_day(notes: Sequence[Note], tz: Optional[tzinfo] = None) -> Dict[str, List[Note]]:
    """Bucket notes by local date key, keeping input order inside each day."""
    if not notes:
        return {}

    df = pd.DataFrame({
        "pos": range(len(notes)),
        "date_key": [local_date_key(n.created_at, tz) for n in notes],
    })

    return {
        key: [notes[i] for i in group["pos"]]
        for key, group in df.groupby("date_key", sort=True)
    }
