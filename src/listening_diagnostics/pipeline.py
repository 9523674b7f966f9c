from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from .alignment import align
from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .diagnostics import aggregate, attempt_result_from_alignment
from .error_causes import (
    ErrorCause,
    Mistake,
    analyze_errors,
    analyze_mistakes,
    merge_cause_counts,
    rank_causes,
)
from .feedback import OperationSummary, extract_top_events, summarize_operations
from .models import AlignmentResult, AttemptResult, DiagnosticSummary, OrderedEvent

logger = logging.getLogger(__name__)

SessionItem = Union[Mapping[str, Any], Sequence[str]]


def _ranked_causes(counts: Dict[ErrorCause, int]) -> List[Dict[str, Any]]:
    return [{"cause": cause.value, "count": count} for cause, count in rank_causes(counts)]


@dataclass(slots=True)
class ScoredAttempt:
    """Alignment, selected events and stored record for one attempt."""

    attempt_id: str
    reference: str
    hypothesis: str
    alignment: AlignmentResult
    events: List[OrderedEvent]
    operations: OperationSummary
    attempt: AttemptResult
    cause_counts: Counter[ErrorCause] = field(default_factory=Counter)
    mistakes: List[Mistake] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "reference": self.reference,
            "hypothesis": self.hypothesis,
            "accuracy_percent": self.alignment.accuracy_percent,
            "wer": self.alignment.wer,
            "dominant_operation": self.operations.dominant,
            "events": [event.to_dict() for event in self.events],
            "categories": [category.value for category in self.attempt.categories],
            "error_causes": _ranked_causes(self.cause_counts),
            "mistakes": [mistake.to_dict() for mistake in self.mistakes],
        }


@dataclass(slots=True)
class SessionReport:
    """Scored attempts of one session plus their weakness summary."""

    attempts: List[ScoredAttempt] = field(default_factory=list)
    summary: DiagnosticSummary | None = None

    def to_dict(self) -> Dict[str, Any]:
        causes = merge_cause_counts(attempt.cause_counts for attempt in self.attempts)
        return {
            "attempts": [attempt.to_dict() for attempt in self.attempts],
            "summary": self.summary.to_dict() if self.summary is not None else None,
            "error_causes": _ranked_causes(causes),
        }


def score_attempt(
    attempt_id: str,
    reference: str,
    hypothesis: str,
    config: DiagnosticsConfig | None = None,
    max_events: int | None = None,
) -> ScoredAttempt:
    """Align one answer against its reference and categorize the top events."""
    cfg = config or DEFAULT_CONFIG
    result = align(reference, hypothesis, cfg)
    events = extract_top_events(result, max_events, cfg)
    return ScoredAttempt(
        attempt_id=attempt_id,
        reference=reference,
        hypothesis=hypothesis,
        alignment=result,
        events=events,
        operations=summarize_operations(result.operations, cfg),
        attempt=attempt_result_from_alignment(attempt_id, result, events),
        cause_counts=analyze_errors(result.operations),
        mistakes=analyze_mistakes(result.operations),
    )


def _unpack_item(item: SessionItem, position: int) -> Tuple[str, str, str]:
    if isinstance(item, Mapping):
        attempt_id = item.get("attempt_id", item.get("id", f"attempt-{position + 1}"))
        try:
            return str(attempt_id), str(item["reference"]), str(item.get("hypothesis", ""))
        except KeyError as exc:
            raise ValueError(f"Attempt {attempt_id!r} is missing a reference text.") from exc
    if isinstance(item, (str, bytes)) or len(item) != 3:
        raise ValueError(
            "Session items must be mappings or (attempt_id, reference, hypothesis) triples."
        )
    attempt_id, reference, hypothesis = item
    return str(attempt_id), str(reference), str(hypothesis)


def score_session(
    items: Iterable[SessionItem], config: DiagnosticsConfig | None = None
) -> SessionReport:
    """Score every attempt of a session and aggregate the weakness profile."""
    cfg = config or DEFAULT_CONFIG
    report = SessionReport()
    for position, item in enumerate(items):
        attempt_id, reference, hypothesis = _unpack_item(item, position)
        report.attempts.append(score_attempt(attempt_id, reference, hypothesis, cfg))
    report.summary = aggregate([scored.attempt for scored in report.attempts], cfg)
    logger.info(
        "Scored %d attempts; weakest category %s",
        len(report.attempts),
        report.summary.weakness_rank[0].value,
    )
    return report
