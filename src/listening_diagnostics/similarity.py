"""Confidence gate deciding whether a replaced word is reported as a substitution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Sequence, Tuple

from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .normalization import REDUCED_FORMS

logger = logging.getLogger(__name__)

ReplacementReason = Literal[
    "high_similarity", "known_reduction", "known_confusion", "low_confidence"
]

# Words listeners confuse because they sound alike in connected speech.
CONFUSABLE_GROUPS: Tuple[FrozenSet[str], ...] = (
    frozenset({"a", "the"}),
    frozenset({"an", "a"}),
    frozenset({"an", "and"}),
    frozenset({"is", "it's"}),
    frozenset({"are", "our"}),
    frozenset({"your", "you're"}),
    frozenset({"their", "there", "they're"}),
    frozenset({"to", "too", "two"}),
    frozenset({"hear", "here"}),
    frozenset({"know", "no"}),
    frozenset({"its", "it's"}),
    frozenset({"then", "than"}),
    frozenset({"of", "have"}),
    frozenset({"were", "where", "we're"}),
    frozenset({"for", "four"}),
    frozenset({"write", "right"}),
)

# First word of each canonical phrase mapped to its casual reduction.
_REDUCTION_BY_STEM: Dict[str, str] = {
    full.split()[0]: reduced for reduced, full in REDUCED_FORMS.items()
}


@dataclass(frozen=True, slots=True)
class ReplacementEvaluation:
    """Outcome of gating one raw substitution."""

    is_substitution: bool
    confidence: float
    reason: ReplacementReason


def levenshtein(first: Sequence[str], second: Sequence[str]) -> int:
    """Unit-cost edit distance between two sequences (characters or tokens)."""
    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i] + [0] * len(second)
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
        previous = current
    return previous[-1]


def string_similarity(first: str, second: str) -> float:
    """Return 1 - edit distance / longest length, in [0, 1]."""
    left = first.lower()
    right = second.lower()
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return 1.0 - levenshtein(left, right) / max(len(left), len(right))


def are_confusable(first: str, second: str) -> bool:
    """True when both words belong to one of the sound-alike groups."""
    left = first.lower().strip()
    right = second.lower().strip()
    if left == right:
        return False
    return any(left in group and right in group for group in CONFUSABLE_GROUPS)


def sounds_similar(first: str, second: str) -> bool:
    """Loose sound-alike check: a confusable pair, or a shared onset and mostly shared letters.

    Words starting with the same letter, at most two letters apart in length,
    whose letters agree position by position for at least 60% of the
    shorter word count as similar.
    """
    left = first.lower().strip()
    right = second.lower().strip()
    if are_confusable(left, right):
        return True
    if not left or not right or left[0] != right[0] or abs(len(left) - len(right)) > 2:
        return False
    shorter = min(len(left), len(right))
    agreeing = sum(1 for a, b in zip(left, right) if a == b)
    return agreeing >= shorter * 0.6


def is_known_reduced_form(ref: str, hyp: str) -> bool:
    """True when one side is the casual reduction of the other (``going``/``gonna``)."""
    left = ref.lower().strip()
    right = hyp.lower().strip()
    for full_phrase, reduced in ((left, right), (right, left)):
        if REDUCED_FORMS.get(reduced) == full_phrase:
            return True
        stem = full_phrase.split()[0] if full_phrase else ""
        if _REDUCTION_BY_STEM.get(stem) == reduced:
            return True
    return False


def evaluate_replacement(
    ref: str, hyp: str, config: DiagnosticsConfig | None = None
) -> ReplacementEvaluation:
    """Decide whether ``hyp`` replacing ``ref`` is reported as a substitution.

    Similar spellings pass on their similarity score. Known reductions and
    known sound-alike pairs pass with a fixed confidence. Anything else is
    reported as low confidence so the caller splits it into a deletion and
    an insertion.
    """
    cfg = config or DEFAULT_CONFIG
    similarity = string_similarity(ref, hyp)
    if similarity >= cfg.substitution_confidence_threshold:
        return ReplacementEvaluation(True, similarity, "high_similarity")
    if is_known_reduced_form(ref, hyp):
        return ReplacementEvaluation(True, cfg.known_reduction_confidence, "known_reduction")
    if are_confusable(ref, hyp):
        return ReplacementEvaluation(True, cfg.known_confusion_confidence, "known_confusion")
    logger.debug("Low-confidence replacement %r -> %r (similarity %.2f)", ref, hyp, similarity)
    return ReplacementEvaluation(False, similarity, "low_confidence")
