"""Rule-table categorization of alignment events into feedback categories."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .models import AlignmentEvent, FeedbackCategory, Token
from .normalization import is_contraction
from .similarity import are_confusable, levenshtein

logger = logging.getLogger(__name__)

TokenLike = Union[Token, str]

LINKING_PATTERNS: Tuple[str, ...] = ("want to", "going to", "got to", "have to", "need to")

ELISION_FRAGMENTS: Tuple[str, ...] = ("going to", "want to")

# Closed-class words: articles, prepositions, conjunctions, auxiliaries, pronouns.
FUNCTION_WORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "the",
        "to", "of", "for", "with", "at", "in", "on", "by", "from", "into",
        "onto", "up", "out", "about", "as", "than",
        "and", "or", "but", "so", "if", "that",
        "am", "is", "are", "was", "were", "be", "been", "being",
        "do", "does", "did", "have", "has", "had",
        "will", "would", "can", "could", "shall", "should", "may", "might", "must",
        "i", "you", "he", "she", "it", "we", "they",
        "me", "him", "her", "us", "them",
        "my", "your", "his", "its", "our", "their",
        "this", "these", "those", "some",
    }
)

_LINKING_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(pattern) for pattern in LINKING_PATTERNS) + r")\b"
)


class CategorizationError(ValueError):
    """Raised when an event's spans do not fit the token sequences given."""


@dataclass(frozen=True, slots=True)
class RuleInput:
    """Prepared text handed to every category rule."""

    phrase: str
    words: Tuple[str, ...]
    observed: Optional[str]
    observed_words: Tuple[str, ...]
    short_word_max_length: int


RulePredicate = Callable[[RuleInput], bool]


def is_function_word(word: str) -> bool:
    return word.lower().strip() in FUNCTION_WORDS


def contains_content_word(phrase: str) -> bool:
    """True when any word of ``phrase`` is outside the function-word set."""
    return any(not is_function_word(word) for word in phrase.split())


def _single_short_pair(data: RuleInput) -> Optional[Tuple[str, str]]:
    if len(data.words) != 1 or len(data.observed_words) != 1:
        return None
    expected, observed = data.words[0], data.observed_words[0]
    limit = data.short_word_max_length
    if len(expected) > limit or len(observed) > limit:
        return None
    return expected, observed


def _is_contraction(data: RuleInput) -> bool:
    return any(is_contraction(word) for word in data.words)


def _is_linking(data: RuleInput) -> bool:
    return _LINKING_RE.search(data.phrase) is not None


def _is_elision(data: RuleInput) -> bool:
    return any(fragment in data.phrase for fragment in ELISION_FRAGMENTS)


def _is_weak_form(data: RuleInput) -> bool:
    return bool(data.words) and all(word in FUNCTION_WORDS for word in data.words)


def _is_similar_words(data: RuleInput) -> bool:
    if data.observed is None:
        return False
    if are_confusable(data.phrase, data.observed):
        return True
    pair = _single_short_pair(data)
    if pair is None:
        return False
    expected, observed = pair
    # Same length and onset: a one-letter vowel or coda change that still sounds close.
    return (
        levenshtein(expected, observed) == 1
        and len(expected) == len(observed)
        and expected[0] == observed[0]
    )


def _is_spelling(data: RuleInput) -> bool:
    if data.observed is None:
        return False
    pair = _single_short_pair(data)
    return pair is not None and levenshtein(*pair) == 1


def _is_speed_chunking(data: RuleInput) -> bool:
    return len(data.words) >= 2


# First matching rule wins; MISSED is the fallback.
CATEGORY_RULES: Tuple[Tuple[FeedbackCategory, RulePredicate], ...] = (
    (FeedbackCategory.CONTRACTION, _is_contraction),
    (FeedbackCategory.LINKING, _is_linking),
    (FeedbackCategory.ELISION, _is_elision),
    (FeedbackCategory.WEAK_FORM, _is_weak_form),
    (FeedbackCategory.SIMILAR_WORDS, _is_similar_words),
    (FeedbackCategory.SPELLING, _is_spelling),
    (FeedbackCategory.SPEED_CHUNKING, _is_speed_chunking),
)


def detect_category(
    phrase: str,
    observed: Optional[str] = None,
    config: DiagnosticsConfig | None = None,
) -> FeedbackCategory:
    """Return the first category whose rule matches ``phrase``.

    ``observed`` is what the listener typed in place of the phrase, if
    anything; the similar-words and spelling rules only apply when it is set.
    """
    cfg = config or DEFAULT_CONFIG
    words = tuple(phrase.lower().split())
    observed_words = tuple(observed.lower().split()) if observed is not None else ()
    data = RuleInput(
        phrase=" ".join(words),
        words=words,
        observed=" ".join(observed_words) if observed is not None else None,
        observed_words=observed_words,
        short_word_max_length=cfg.short_word_max_length,
    )
    for category, rule in CATEGORY_RULES:
        if rule(data):
            return category
    return FeedbackCategory.MISSED


def _texts(tokens: Sequence[TokenLike]) -> List[str]:
    return [token.text if isinstance(token, Token) else str(token) for token in tokens]


def _check_span(name: str, start: int, end: int, size: int) -> None:
    if start < 0 or end < start or end > size:
        raise CategorizationError(
            f"{name} span [{start}, {end}) does not fit a sequence of {size} tokens."
        )


def categorize(
    event: AlignmentEvent,
    ref_tokens: Sequence[TokenLike],
    observed_tokens: Sequence[TokenLike],
    config: DiagnosticsConfig | None = None,
) -> FeedbackCategory:
    """Categorize one event against the token sequences it was built from."""
    ref = _texts(ref_tokens)
    observed_words = _texts(observed_tokens)

    _check_span("Reference", event.ref_start, event.ref_end, len(ref))
    if (event.hyp_start is None) != (event.hyp_end is None):
        raise CategorizationError("Hypothesis span must set both bounds or neither.")
    if event.hyp_start is not None and event.hyp_end is not None:
        _check_span("Hypothesis", event.hyp_start, event.hyp_end, len(observed_words))

    hint = event.phrase_hint
    if hint is not None:
        _check_span("Phrase hint", hint.ref_start, hint.ref_end, len(ref))
        phrase = hint.text
    else:
        phrase = " ".join(ref[event.ref_start : event.ref_end])

    observed: Optional[str] = None
    if event.hyp_start is not None and event.hyp_end is not None:
        observed = " ".join(observed_words[event.hyp_start : event.hyp_end])

    category = detect_category(phrase, observed, config)
    logger.debug("Event %s %r -> %s", event.event_id, phrase, category.value)
    return category


def enforce_weak_form_safety(category: FeedbackCategory, phrase: str) -> FeedbackCategory:
    """Relabel ``weak_form`` as ``missed`` when the phrase holds a content word."""
    if category is FeedbackCategory.WEAK_FORM and contains_content_word(phrase):
        logger.debug("Relabeling weak_form phrase %r as missed", phrase)
        return FeedbackCategory.MISSED
    return category
