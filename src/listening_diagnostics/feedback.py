"""Select and describe the alignment events worth showing to a listener."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from .categorizer import categorize, enforce_weak_form_safety
from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .models import (
    AlignmentEvent,
    AlignmentOperation,
    AlignmentResult,
    EventKind,
    FeedbackCategory,
    OperationKind,
    OrderedEvent,
)
from .patterns import DEFAULT_REGISTRY, PatternRegistry, is_chunk_eligible, synthesize_chunk

logger = logging.getLogger(__name__)

_WIDENABLE = (FeedbackCategory.WEAK_FORM, FeedbackCategory.MISSED)


@dataclass(slots=True)
class OperationSummary:
    """Operation counts plus the kind that dominates the errors."""

    correct: int = 0
    substitution: int = 0
    deletion: int = 0
    insertion: int = 0
    confident_substitutions: int = 0
    dominant: str = "correct"

    @property
    def total(self) -> int:
        return self.correct + self.substitution + self.deletion + self.insertion

    @property
    def errors(self) -> int:
        return self.substitution + self.deletion + self.insertion

    @property
    def mostly_correct(self) -> bool:
        return self.total > 0 and self.correct / self.total > 0.8


def _dominant_kind(summary: OperationSummary) -> str:
    errors = summary.errors
    if errors == 0:
        return OperationKind.CORRECT.value
    for kind, count in (
        (OperationKind.SUBSTITUTION, summary.substitution),
        (OperationKind.DELETION, summary.deletion),
        (OperationKind.INSERTION, summary.insertion),
    ):
        if count / errors > 0.5:
            return kind.value
    return "mixed"


def summarize_operations(
    operations: Sequence[AlignmentOperation], config: DiagnosticsConfig | None = None
) -> OperationSummary:
    """Count operations and report which error kind, if any, is the majority."""
    summary = OperationSummary()
    for op in operations:
        if op.kind is OperationKind.CORRECT:
            summary.correct += 1
        elif op.kind is OperationKind.SUBSTITUTION:
            summary.substitution += 1
            if is_word_level_feedback_safe(op, config):
                summary.confident_substitutions += 1
        elif op.kind is OperationKind.DELETION:
            summary.deletion += 1
        else:
            summary.insertion += 1
    summary.dominant = _dominant_kind(summary)
    return summary


def is_word_level_feedback_safe(
    operation: AlignmentOperation, config: DiagnosticsConfig | None = None
) -> bool:
    """Whether an operation may be narrated word by word.

    Only substitutions make a claim about what the listener heard, so only
    they need a confidence of at least ``narration_confidence_threshold``.
    """
    if operation.kind is not OperationKind.SUBSTITUTION:
        return True
    cfg = config or DEFAULT_CONFIG
    return (
        operation.confidence is not None
        and operation.confidence >= cfg.narration_confidence_threshold
    )


def _has_real_hint(event: AlignmentEvent) -> bool:
    return event.phrase_hint is not None and event.phrase_hint.length > 1


def _widen_to_pattern(
    ref_words: Sequence[str],
    start: int,
    end: int,
    registry: PatternRegistry,
) -> Tuple[int, int, Optional[str]]:
    match = registry.match_covering(ref_words, start)
    if match is None or match.end - match.start <= 1:
        return start, end, None
    return min(start, match.start), max(end, match.end), match.chunk_display


def extract_top_events(
    result: AlignmentResult,
    max_count: int | None = None,
    config: DiagnosticsConfig | None = None,
    registry: PatternRegistry | None = None,
) -> List[OrderedEvent]:
    """Pick the events to teach from, most useful first.

    Missing and substitution events with a multi-word phrase hint come first,
    then the remaining missing and substitution events, in alignment order.
    Weak-form and missed targets are widened to a covering listening pattern
    before the weak-form safety rule runs on the final target.
    """
    cfg = config or DEFAULT_CONFIG
    patterns = registry or DEFAULT_REGISTRY
    limit = cfg.default_max_events if max_count is None else max_count
    if limit <= 0:
        return []

    ref_words = [token.text for token in result.ref_tokens]
    hyp_words = [token.text for token in result.hyp_tokens]
    candidates = [event for event in result.events if event.kind is not EventKind.EXTRA]
    hinted = [event for event in candidates if _has_real_hint(event)]
    others = [event for event in candidates if not _has_real_hint(event)]

    selected: List[OrderedEvent] = []
    seen: Set[Tuple[int, int]] = set()
    for event in hinted + others:
        if len(selected) >= limit:
            break
        hint = event.phrase_hint
        start, end = (hint.ref_start, hint.ref_end) if hint else (event.ref_start, event.ref_end)
        category = categorize(event, ref_words, hyp_words, cfg)

        chunk_display: Optional[str] = None
        if category in _WIDENABLE:
            start, end, chunk_display = _widen_to_pattern(ref_words, start, end, patterns)
        target = " ".join(ref_words[start:end])
        if chunk_display is None and end - start == 1 and is_chunk_eligible(target):
            right1 = ref_words[end] if end < len(ref_words) else None
            right2 = ref_words[end + 1] if end + 1 < len(ref_words) else None
            chunk_display = synthesize_chunk(target, right1, right2)
        category = enforce_weak_form_safety(category, target)

        if (start, end) in seen:
            continue
        seen.add((start, end))
        selected.append(
            OrderedEvent(
                rank=len(selected) + 1,
                event=event,
                category=category,
                target=target,
                target_start=start,
                target_end=end,
                observed=event.observed,
                narrate_sound=category is not FeedbackCategory.SPELLING,
                chunk_display=chunk_display,
            )
        )

    logger.debug(
        "Selected %d of %d candidate events (%d hinted)",
        len(selected),
        len(candidates),
        len(hinted),
    )
    return selected
