from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class OperationKind(str, Enum):
    """Kind of a single aligned token pair."""

    CORRECT = "correct"
    SUBSTITUTION = "substitution"
    DELETION = "deletion"
    INSERTION = "insertion"


class EventKind(str, Enum):
    """Kind of a reportable alignment event."""

    MISSING = "missing"
    SUBSTITUTION = "substitution"
    EXTRA = "extra"


class FeedbackCategory(str, Enum):
    """Why a word or phrase was missed. Declaration order is the tie-break order."""

    WEAK_FORM = "weak_form"
    LINKING = "linking"
    ELISION = "elision"
    CONTRACTION = "contraction"
    SIMILAR_WORDS = "similar_words"
    SPELLING = "spelling"
    SPEED_CHUNKING = "speed_chunking"
    MISSED = "missed"


CATEGORY_ORDER: tuple[FeedbackCategory, ...] = tuple(FeedbackCategory)


@dataclass(frozen=True, slots=True)
class Token:
    """A normalized word and its 0-based position in its sequence."""

    text: str
    index: int


@dataclass(frozen=True, slots=True)
class AlignmentOperation:
    """
    One step of an alignment path.

    Correct and substitution steps carry both indices, deletions only the
    reference index and insertions only the hypothesis index. Use the
    classmethod constructors rather than building instances by hand.
    ``span_id`` names the phrase span the reference token belongs to once
    phrase spans are attached.
    """

    kind: OperationKind
    ref_index: Optional[int] = None
    hyp_index: Optional[int] = None
    ref_word: Optional[str] = None
    hyp_word: Optional[str] = None
    confidence: Optional[float] = None
    span_id: Optional[str] = None

    @classmethod
    def correct(cls, ref_index: int, hyp_index: int, word: str) -> "AlignmentOperation":
        return cls(OperationKind.CORRECT, ref_index, hyp_index, word, word, 1.0)

    @classmethod
    def substitution(
        cls,
        ref_index: int,
        hyp_index: int,
        ref_word: str,
        hyp_word: str,
        confidence: float,
    ) -> "AlignmentOperation":
        return cls(
            OperationKind.SUBSTITUTION, ref_index, hyp_index, ref_word, hyp_word, confidence
        )

    @classmethod
    def deletion(cls, ref_index: int, ref_word: str) -> "AlignmentOperation":
        return cls(OperationKind.DELETION, ref_index=ref_index, ref_word=ref_word)

    @classmethod
    def insertion(cls, hyp_index: int, hyp_word: str) -> "AlignmentOperation":
        return cls(OperationKind.INSERTION, hyp_index=hyp_index, hyp_word=hyp_word)

    @property
    def is_error(self) -> bool:
        return self.kind is not OperationKind.CORRECT

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value}
        if self.ref_index is not None:
            payload["ref_index"] = self.ref_index
            payload["ref_word"] = self.ref_word
        if self.hyp_index is not None:
            payload["hyp_index"] = self.hyp_index
            payload["hyp_word"] = self.hyp_word
        if self.kind is OperationKind.SUBSTITUTION:
            payload["confidence"] = self.confidence
        if self.span_id is not None:
            payload["span_id"] = self.span_id
        return payload


@dataclass(frozen=True, slots=True)
class PhraseHint:
    """A widened reference span covering a recognized multi-word pattern."""

    span_id: str
    text: str
    ref_start: int
    ref_end: int

    @property
    def length(self) -> int:
        return self.ref_end - self.ref_start


@dataclass(frozen=True, slots=True)
class AlignmentEvent:
    """Adjacent non-correct operations grouped into a reportable span.

    Spans are half-open: ``ref_start`` inclusive, ``ref_end`` exclusive. An
    extra event covers no reference token, so ``ref_start == ref_end`` marks
    its anchor position.
    """

    event_id: str
    kind: EventKind
    ref_start: int
    ref_end: int
    expected: str
    hyp_start: Optional[int] = None
    hyp_end: Optional[int] = None
    observed: Optional[str] = None
    confidence: Optional[float] = None
    context_before: str = ""
    context_after: str = ""
    phrase_hint: Optional[PhraseHint] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "ref_start": self.ref_start,
            "ref_end": self.ref_end,
            "expected": self.expected,
            "hyp_start": self.hyp_start,
            "hyp_end": self.hyp_end,
            "observed": self.observed,
            "context_before": self.context_before,
            "context_after": self.context_after,
        }
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        if self.phrase_hint is not None:
            payload["phrase_hint"] = {
                "span_id": self.phrase_hint.span_id,
                "text": self.phrase_hint.text,
                "ref_start": self.phrase_hint.ref_start,
                "ref_end": self.phrase_hint.ref_end,
            }
        return payload


@dataclass(slots=True)
class AlignmentStats:
    """Operation counts for one alignment."""

    correct: int = 0
    substitution: int = 0
    deletion: int = 0
    insertion: int = 0
    ref_word_count: int = 0

    @property
    def errors(self) -> int:
        return self.substitution + self.deletion + self.insertion


@dataclass(slots=True)
class AlignmentResult:
    """Everything produced by aligning one reference/hypothesis pair."""

    ref_tokens: List[Token]
    hyp_tokens: List[Token]
    operations: List[AlignmentOperation]
    events: List[AlignmentEvent]
    stats: AlignmentStats
    wer: float
    accuracy: float

    @property
    def accuracy_percent(self) -> float:
        return self.accuracy * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": [token.text for token in self.ref_tokens],
            "hypothesis": [token.text for token in self.hyp_tokens],
            "operations": [op.to_dict() for op in self.operations],
            "events": [event.to_dict() for event in self.events],
            "stats": {
                "correct": self.stats.correct,
                "substitution": self.stats.substitution,
                "deletion": self.stats.deletion,
                "insertion": self.stats.insertion,
                "ref_word_count": self.stats.ref_word_count,
            },
            "wer": self.wer,
            "accuracy": self.accuracy,
        }


@dataclass(frozen=True, slots=True)
class OrderedEvent:
    """A categorized event selected for presentation."""

    rank: int
    event: AlignmentEvent
    category: FeedbackCategory
    target: str
    target_start: int
    target_end: int
    observed: Optional[str] = None
    narrate_sound: bool = True
    chunk_display: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "event_id": self.event.event_id,
            "kind": self.event.kind.value,
            "category": self.category.value,
            "target": self.target,
            "target_start": self.target_start,
            "target_end": self.target_end,
            "observed": self.observed,
            "narrate_sound": self.narrate_sound,
            "chunk_display": self.chunk_display,
        }


@dataclass(slots=True)
class AttemptResult:
    """Outcome of one scored attempt."""

    attempt_id: str
    accuracy_percent: float
    categories: List[FeedbackCategory] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "accuracy_percent": self.accuracy_percent,
            "categories": [category.value for category in self.categories],
        }


@dataclass(slots=True)
class DiagnosticSummary:
    """Per-category weakness profile built from a batch of attempts."""

    avg_accuracy_percent: float
    category_score: Dict[FeedbackCategory, float]
    weakness_rank: List[FeedbackCategory]
    attempt_count: int = 0
    total_errors: int = 0
    category_counts: Dict[FeedbackCategory, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg_accuracy_percent": self.avg_accuracy_percent,
            "category_score": {
                category.value: score for category, score in self.category_score.items()
            },
            "weakness_rank": [category.value for category in self.weakness_rank],
            "attempt_count": self.attempt_count,
            "total_errors": self.total_errors,
            "category_counts": {
                category.value: count for category, count in self.category_counts.items()
            },
        }
