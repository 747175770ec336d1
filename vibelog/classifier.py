"""
Note classification: free text -> (category, value).

Callers depend on the Classifier protocol only. Two implementations:

    RuleClassifier   — deterministic keyword table, first match wins
    ModelClassifier  — adapter for a model or remote backend supplied later

The rule table is a placeholder heuristic. Its keywords are not a
contract; "first match over a fixed ordered list" is.
"""

import asyncio
import inspect
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Tuple

from vibelog.config import NoteRange
from vibelog.models import Category, Classification

logger = logging.getLogger(__name__)


class ClassificationError(RuntimeError):
    """A classifier backend failed or returned an unusable result."""


class Classifier(Protocol):
    """Interface every classifier satisfies.

    Implementations may perform I/O and raise ClassificationError. They
    must never fall back to (Other, 0) on failure.
    """

    def classify(self, text: str) -> Classification:
        ...


# ---------------------------------------------------------------------------
# Keyword rules (declarative)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KeywordRule:
    """Fires when any keyword is a substring of the normalized text."""

    keywords: Tuple[str, ...]
    category: Category
    value: float

    def __post_init__(self):
        bounds = NoteRange()
        if not math.isfinite(self.value) or not bounds.contains(self.value):
            raise ValueError(
                f"Rule value {self.value} outside [{bounds.value_min}, {bounds.value_max}]"
            )

    def matches(self, normalized: str) -> Optional[str]:
        for kw in self.keywords:
            if kw in normalized:
                return kw
        return None


DEFAULT_RULES: Tuple[KeywordRule, ...] = (
    # Positive-leaning
    KeywordRule(("walk", "run", "gym", "workout", "yoga", "stretch", "exercise"), Category.PHYSICAL, 4),
    KeywordRule(("cook", "healthy", "salad", "water", "hydrated"), Category.PHYSICAL, 2),
    KeywordRule(("called", "meet", "met", "friend", "family", "talked"), Category.SOCIAL, 3),
    KeywordRule(("focused", "deep work", "finish", "completed", "shipped"), Category.FOCUS, 4),
    KeywordRule(("journal", "meditate", "meditation", "breath", "therapy"), Category.EMOTION_REGULATION, 3),
    KeywordRule(("slept early", "sleep early", "8 hours", "good sleep"), Category.SLEEP, 4),
    # Negative-leaning
    KeywordRule(("doomscroll", "scrolling", "tiktok", "instagram for hours"), Category.AVOIDANCE, -3),
    KeywordRule(("stayed up", "3am", "4am", "no sleep", "insomnia"), Category.SLEEP, -4),
    KeywordRule(("drank", "alcohol", "hangover"), Category.IMPULSE, -3),
    KeywordRule(("argued", "fight", "shouted", "rage"), Category.IMPULSE, -4),
    KeywordRule(("avoided", "procrastinated", "skipped"), Category.AVOIDANCE, -2),
)

UNMATCHED = Classification(Category.OTHER, 0.0)


class RuleClassifier:
    """Deterministic keyword classifier. Pure, stateless, total."""

    def __init__(self, rules: Tuple[KeywordRule, ...] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def classify(self, text: str) -> Classification:
        normalized = text.strip().lower()
        if not normalized:
            return UNMATCHED

        for rule in self.rules:
            kw = rule.matches(normalized)
            if kw is not None:
                logger.debug(
                    "Classified %r as %s (%+g, keyword: %r)",
                    text[:50], rule.category.value, rule.value, kw,
                )
                return Classification(rule.category, float(rule.value))

        logger.debug("No rule matched %r, using %s", text[:50], Category.OTHER.value)
        return UNMATCHED


_DEFAULT_CLASSIFIER = RuleClassifier()


def classify(text: str) -> Classification:
    """Classify with the default rule table."""
    return _DEFAULT_CLASSIFIER.classify(text)


# ---------------------------------------------------------------------------
# Model-backed adapter
# ---------------------------------------------------------------------------

Backend = Callable[[str], Any]


class ModelClassifier:
    """
    Adapter for a model or remote classifier.

    `backend` takes the note text and returns a Classification, a
    (category, value) pair, or a mapping with "category" and "value" keys.
    It may be a plain function or a coroutine function; coroutine backends
    are only usable through aclassify().

    Backend exceptions and malformed results are raised as
    ClassificationError. Retry and timeout policy belong to the backend.
    """

    def __init__(self, backend: Optional[Backend] = None, note_range: NoteRange = NoteRange()):
        self.backend = backend
        self.note_range = note_range

    @property
    def is_async(self) -> bool:
        return self.backend is not None and inspect.iscoroutinefunction(self.backend)

    def classify(self, text: str) -> Classification:
        self._require_backend()
        if self.is_async:
            raise ClassificationError("Backend is a coroutine function; use aclassify()")
        try:
            result = self.backend(text)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"Classifier backend failed: {exc}") from exc
        return self._validate(result)

    async def aclassify(self, text: str) -> Classification:
        self._require_backend()
        if not self.is_async:
            # Blocking backends run off the event loop
            return await asyncio.to_thread(self.classify, text)
        try:
            result = await self.backend(text)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"Classifier backend failed: {exc}") from exc
        return self._validate(result)

    def _require_backend(self) -> None:
        if self.backend is None:
            raise ClassificationError("No model backend configured")

    def _validate(self, result: Any) -> Classification:
        if isinstance(result, Classification):
            category, value = result.category, result.value
        elif isinstance(result, dict):
            category, value = result.get("category"), result.get("value")
        else:
            try:
                category, value = result
            except (TypeError, ValueError) as exc:
                raise ClassificationError(f"Unusable backend result: {result!r}") from exc

        try:
            category = Category(category)
        except ValueError as exc:
            raise ClassificationError(f"Unknown category from backend: {category!r}") from exc

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ClassificationError(f"Non-numeric value from backend: {value!r}")
        value = float(value)
        if not math.isfinite(value) or not self.note_range.contains(value):
            raise ClassificationError(
                f"Backend value {value} outside "
                f"[{self.note_range.value_min}, {self.note_range.value_max}]"
            )
        return Classification(category, value)
