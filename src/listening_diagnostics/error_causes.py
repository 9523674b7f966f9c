"""Rule-based perceptual causes and mistake kinds read off alignment operations."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .categorizer import is_function_word
from .models import AlignmentOperation, OperationKind
from .normalization import REDUCED_FORMS, is_contraction
from .similarity import is_known_reduced_form, sounds_similar

logger = logging.getLogger(__name__)

# Distinct words kept as evidence for dropped and extra words.
EVIDENCE_LIMIT = 5


class ErrorCause(str, Enum):
    """Perceptual reason behind one wrong operation. Declaration order breaks ranking ties."""

    CONNECTED_SPEECH = "connected_speech"
    WORD_REDUCTION = "word_reduction"
    FUNCTION_WORD_DROP = "function_word_drop"
    VOWEL_REDUCTION = "vowel_reduction"
    BOUNDARY_MISALIGNMENT = "boundary_misalignment"
    CONTENT_WORD_MISS = "content_word_miss"


class MistakeKind(str, Enum):
    """Learner-facing grouping of wrong operations. Declaration order breaks ranking ties."""

    REDUCED_SPEECH = "reduced speech"
    SIMILAR_SOUNDING = "similar-sounding words"
    WORD_SUBSTITUTIONS = "word substitutions"
    FUNCTION_WORDS_DROPPED = "function words dropped"
    CONTENT_WORDS_MISSED = "content words missed"
    EXTRA_WORDS = "extra words"


@dataclass(slots=True)
class Mistake:
    """One mistake kind with its count and the words that show it."""

    kind: MistakeKind
    count: int = 0
    evidence: List[str] = field(default_factory=list)

    def add(self, evidence: str, limit: Optional[int] = None) -> None:
        self.count += 1
        if evidence not in self.evidence and (limit is None or len(self.evidence) < limit):
            self.evidence.append(evidence)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "count": self.count, "evidence": list(self.evidence)}


_CAUSE_POSITION = {cause: idx for idx, cause in enumerate(ErrorCause)}
_MISTAKE_POSITION = {kind: idx for idx, kind in enumerate(MistakeKind)}


def _deletion_causes(word: str, between_words: bool) -> List[ErrorCause]:
    causes: List[ErrorCause] = []
    function_word = is_function_word(word)
    contraction = is_contraction(word)
    if function_word:
        causes.append(ErrorCause.FUNCTION_WORD_DROP)
    if contraction or word in REDUCED_FORMS:
        causes.append(ErrorCause.WORD_REDUCTION)
    if not function_word and not contraction:
        causes.append(ErrorCause.CONTENT_WORD_MISS)
    if between_words:
        causes.append(ErrorCause.CONNECTED_SPEECH)
    return causes


def _substitution_causes(ref_word: str, hyp_word: str) -> List[ErrorCause]:
    causes: List[ErrorCause] = []
    if is_known_reduced_form(ref_word, hyp_word):
        causes.append(ErrorCause.WORD_REDUCTION)
    if sounds_similar(ref_word, hyp_word):
        causes.append(ErrorCause.VOWEL_REDUCTION)
    causes.append(ErrorCause.BOUNDARY_MISALIGNMENT)
    return causes


def classify_operation(
    operation: AlignmentOperation,
    previous: Optional[AlignmentOperation] = None,
    following: Optional[AlignmentOperation] = None,
) -> List[ErrorCause]:
    """
    List the perceptual causes that explain one operation.

    A deleted word with operations on both sides also counts as connected
    speech. Correct operations have no cause.
    """
    kind = operation.kind
    if kind is OperationKind.DELETION:
        word = (operation.ref_word or "").lower()
        return _deletion_causes(word, previous is not None and following is not None)
    if kind is OperationKind.SUBSTITUTION:
        return _substitution_causes(
            (operation.ref_word or "").lower(), (operation.hyp_word or "").lower()
        )
    if kind is OperationKind.INSERTION:
        return [ErrorCause.BOUNDARY_MISALIGNMENT]
    return []


def analyze_errors(operations: Sequence[AlignmentOperation]) -> Counter[ErrorCause]:
    """Count every cause over an alignment path."""
    counts: Counter[ErrorCause] = Counter()
    last = len(operations) - 1
    for idx, operation in enumerate(operations):
        if not operation.is_error:
            continue
        previous = operations[idx - 1] if idx > 0 else None
        following = operations[idx + 1] if idx < last else None
        counts.update(classify_operation(operation, previous, following))
    logger.debug("Error causes over %d operations: %s", len(operations), dict(counts))
    return counts


def rank_causes(counts: Dict[ErrorCause, int]) -> List[Tuple[ErrorCause, int]]:
    """Causes seen at least once, most frequent first."""
    seen = [(cause, count) for cause, count in counts.items() if count > 0]
    return sorted(seen, key=lambda item: (-item[1], _CAUSE_POSITION[item[0]]))


def merge_cause_counts(batches: Iterable[Dict[ErrorCause, int]]) -> Counter[ErrorCause]:
    total: Counter[ErrorCause] = Counter()
    for counts in batches:
        total.update(counts)
    return total


def _substitution_kind(ref_word: str, hyp_word: str) -> MistakeKind:
    if is_known_reduced_form(ref_word, hyp_word):
        return MistakeKind.REDUCED_SPEECH
    if sounds_similar(ref_word, hyp_word):
        return MistakeKind.SIMILAR_SOUNDING
    return MistakeKind.WORD_SUBSTITUTIONS


def analyze_mistakes(operations: Sequence[AlignmentOperation]) -> List[Mistake]:
    """
    Group wrong operations into mistake kinds, most frequent first.

    Substitutions keep every distinct ``ref->hyp`` pair as evidence; dropped
    and extra words keep the first few distinct words.
    """
    mistakes: Dict[MistakeKind, Mistake] = {}

    def record(kind: MistakeKind, evidence: str, limit: Optional[int] = None) -> None:
        mistakes.setdefault(kind, Mistake(kind)).add(evidence, limit)

    for operation in operations:
        ref_word = (operation.ref_word or "").lower()
        hyp_word = (operation.hyp_word or "").lower()
        if operation.kind is OperationKind.SUBSTITUTION:
            record(_substitution_kind(ref_word, hyp_word), f"{ref_word}->{hyp_word}")
        elif operation.kind is OperationKind.DELETION:
            kind = (
                MistakeKind.FUNCTION_WORDS_DROPPED
                if is_function_word(ref_word)
                else MistakeKind.CONTENT_WORDS_MISSED
            )
            record(kind, ref_word, EVIDENCE_LIMIT)
        elif operation.kind is OperationKind.INSERTION:
            record(MistakeKind.EXTRA_WORDS, hyp_word, EVIDENCE_LIMIT)

    return sorted(
        mistakes.values(), key=lambda mistake: (-mistake.count, _MISTAKE_POSITION[mistake.kind])
    )
