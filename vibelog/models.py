"""
Data model: notes, categories, and the derived per-day views.

Notes are read-only inputs supplied by whatever stores them. Everything
else here is derived on demand and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class Category(str, Enum):
    """Behavioral domain of a note. Closed: every note resolves to one."""

    PHYSICAL = "Physical"
    SOCIAL = "Social"
    FOCUS = "Focus"
    EMOTION_REGULATION = "EmotionRegulation"
    AVOIDANCE = "Avoidance"
    IMPULSE = "Impulse"
    SLEEP = "Sleep"
    OTHER = "Other"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one note's text."""

    category: Category
    value: float


@dataclass(frozen=True)
class Note:
    """A single timestamped free-text entry."""

    id: str
    text: str
    created_at: datetime
    category: Optional[Category] = None
    value: Optional[float] = None


@dataclass(frozen=True)
class ValuedNote:
    """A note guaranteed to carry a category and a value."""

    note: Note
    category: Category
    value: float

    @property
    def id(self) -> str:
        return self.note.id

    @property
    def text(self) -> str:
        return self.note.text

    @property
    def created_at(self) -> datetime:
        return self.note.created_at

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "text": self.text,
            "createdAt": self.created_at.isoformat(),
            "category": self.category.value,
            "value": self.value,
        }


@dataclass(frozen=True)
class DayAggregate:
    """Single-day result: positive mass, negative mass, bounded raw score."""

    positive_sum: float
    negative_sum: float
    raw_score: float

    def to_dict(self) -> Dict:
        return {
            "positive_sum": self.positive_sum,
            "negative_sum": self.negative_sum,
            "raw_score": self.raw_score,
        }


@dataclass(frozen=True)
class DayScore:
    """One calendar day of a trend report. Identified only by its date key."""

    date_key: str
    positive_sum: float
    negative_sum: float
    raw_score: float
    smoothed_score: float
    entries: List[ValuedNote] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "date": self.date_key,
            "positive_sum": self.positive_sum,
            "negative_sum": self.negative_sum,
            "raw_score": self.raw_score,
            "smoothed_score": self.smoothed_score,
            "entries": [e.to_dict() for e in self.entries],
        }
