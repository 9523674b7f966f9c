from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .models import (
    CATEGORY_ORDER,
    AlignmentResult,
    AttemptResult,
    DiagnosticSummary,
    FeedbackCategory,
    OrderedEvent,
)

logger = logging.getLogger(__name__)

_CATEGORY_POSITION = {category: idx for idx, category in enumerate(CATEGORY_ORDER)}


def coerce_accuracy(value: Any) -> float:
    """Read an accuracy percentage, clamped to [0, 100].

    Numeric strings are parsed; anything non-numeric (or NaN) counts as 0.
    """
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric accuracy %r", value)
            return 0.0
    if math.isnan(number):
        logger.warning("Ignoring NaN accuracy")
        return 0.0
    return max(0.0, min(100.0, number))


def _parse_category(value: Any) -> Optional[FeedbackCategory]:
    if isinstance(value, FeedbackCategory):
        return value
    try:
        return FeedbackCategory(str(value).strip().lower())
    except ValueError:
        return None


def capped_counts(
    categories: Iterable[Any], cap: int, attempt_id: str = ""
) -> Counter[FeedbackCategory]:
    """Count one attempt's categories, each capped at ``cap``."""
    counts: Counter[FeedbackCategory] = Counter()
    for raw in categories:
        category = _parse_category(raw)
        if category is None:
            logger.warning("Ignoring unknown category %r in attempt %s", raw, attempt_id)
            continue
        counts[category] += 1
    return Counter({category: min(count, cap) for category, count in counts.items()})


def rank_weaknesses(scores: Dict[FeedbackCategory, float]) -> List[FeedbackCategory]:
    """Order categories weakest first; ties keep the enumeration order."""
    return sorted(CATEGORY_ORDER, key=lambda c: (scores[c], _CATEGORY_POSITION[c]))


def aggregate(
    attempts: Sequence[AttemptResult], config: DiagnosticsConfig | None = None
) -> DiagnosticSummary:
    """Fold a batch of attempts into a per-category weakness profile."""
    cfg = config or DEFAULT_CONFIG
    cap = cfg.category_cap_per_attempt

    accuracy_total = 0.0
    totals: Counter[FeedbackCategory] = Counter()
    for attempt in attempts:
        accuracy_total += coerce_accuracy(attempt.accuracy_percent)
        totals.update(capped_counts(attempt.categories, cap, attempt.attempt_id))

    attempt_count = len(attempts)
    avg_accuracy = accuracy_total / attempt_count if attempt_count else 0.0
    total_errors = sum(totals.values())

    category_score: Dict[FeedbackCategory, float] = {}
    for category in CATEGORY_ORDER:
        if total_errors == 0:
            category_score[category] = 1.0
        else:
            share = totals[category] / total_errors
            category_score[category] = max(0.0, min(1.0, 1.0 - share))

    logger.debug(
        "Aggregated %d attempts: avg accuracy %.1f, %d capped errors",
        attempt_count,
        avg_accuracy,
        total_errors,
    )
    return DiagnosticSummary(
        avg_accuracy_percent=avg_accuracy,
        category_score=category_score,
        weakness_rank=rank_weaknesses(category_score),
        attempt_count=attempt_count,
        total_errors=total_errors,
        category_counts={category: totals[category] for category in CATEGORY_ORDER},
    )


def attempt_result_from_alignment(
    attempt_id: str,
    result: AlignmentResult,
    ordered_events: Sequence[OrderedEvent],
) -> AttemptResult:
    """Build the stored record for one attempt from its alignment and chosen events."""
    return AttemptResult(
        attempt_id=attempt_id,
        accuracy_percent=result.accuracy_percent,
        categories=[event.category for event in ordered_events],
    )
