"""Registry of listening patterns: multi-word chunks that blend in fast speech."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import FeedbackCategory

logger = logging.getLogger(__name__)

# Function words that read better as a chunk with their right-hand neighbours.
CHUNK_ELIGIBLE_WORDS = frozenset(
    {"to", "of", "in", "on", "at", "for", "and", "a", "an", "the"}
)
DETERMINERS = frozenset({"the", "a", "an"})


@dataclass(frozen=True, slots=True)
class PatternVariant:
    """How a written pattern tends to sound, e.g. ``going to go`` -> ``gonna go``."""

    written_form: str
    spoken_form: str


@dataclass(frozen=True, slots=True)
class ListeningPattern:
    """A word sequence listeners tend to hear as one chunk."""

    key: str
    words: Tuple[str, ...]
    category: FeedbackCategory
    priority: int = 0
    parent_key: Optional[str] = None
    variants: Tuple[PatternVariant, ...] = ()

    @property
    def chunk_display(self) -> str:
        return "-".join(self.words)

    @property
    def text(self) -> str:
        return " ".join(self.words)

    def matches_at(self, tokens: Sequence[str], start: int) -> bool:
        if start < 0 or start + len(self.words) > len(tokens):
            return False
        return all(
            tokens[start + offset].lower() == word
            for offset, word in enumerate(self.words)
        )


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """A pattern located in a token sequence (half-open ``[start, end)``)."""

    pattern: ListeningPattern
    start: int
    end: int

    @property
    def chunk_display(self) -> str:
        return self.pattern.chunk_display


def _sort_key(pattern: ListeningPattern) -> Tuple[int, int]:
    return (-len(pattern.words), -pattern.priority)


class PatternRegistry:
    """Listening patterns indexed by key."""

    def __init__(self, patterns: Iterable[ListeningPattern] = ()) -> None:
        self._patterns: Dict[str, ListeningPattern] = {}
        for pattern in patterns:
            self.register(pattern)

    def register(self, pattern: ListeningPattern) -> None:
        if not pattern.words:
            raise ValueError(f"Pattern {pattern.key!r} must have at least one word.")
        if pattern.key in self._patterns:
            raise ValueError(f"Duplicate pattern key {pattern.key!r}.")
        self._patterns[pattern.key] = pattern

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns.values())

    def __contains__(self, key: object) -> bool:
        return key in self._patterns

    def get(self, key: str) -> Optional[ListeningPattern]:
        return self._patterns.get(key)

    def parent_of(self, pattern: ListeningPattern) -> Optional[ListeningPattern]:
        if pattern.parent_key is None:
            return None
        return self._patterns.get(pattern.parent_key)

    def find_by_spoken_form(self, form: str) -> List[ListeningPattern]:
        """Patterns with a variant spoken as ``form``, best first."""
        needle = " ".join(form.lower().split())
        found = [
            pattern
            for pattern in self._patterns.values()
            if any(variant.spoken_form == needle for variant in pattern.variants)
        ]
        return sorted(found, key=_sort_key)

    def match_forward(self, tokens: Sequence[str], index: int) -> Optional[PatternMatch]:
        """Best pattern starting at ``index``: longest first, then highest priority."""
        if not 0 <= index < len(tokens):
            return None
        head = tokens[index].lower()
        candidates = sorted(
            (p for p in self._patterns.values() if p.words[0] == head), key=_sort_key
        )
        for pattern in candidates:
            if pattern.matches_at(tokens, index):
                logger.debug("Forward match %s at %d", pattern.key, index)
                return PatternMatch(pattern, index, index + len(pattern.words))
        return None

    def match_backward(self, tokens: Sequence[str], index: int) -> Optional[PatternMatch]:
        """Best pattern ending at ``index`` (verb chunks such as ``going to go``)."""
        if not 0 <= index < len(tokens):
            return None
        tail = tokens[index].lower()
        candidates = sorted(
            (p for p in self._patterns.values() if p.words[-1] == tail), key=_sort_key
        )
        for pattern in candidates:
            start = index - len(pattern.words) + 1
            if pattern.matches_at(tokens, start):
                logger.debug("Backward match %s ending at %d", pattern.key, index)
                return PatternMatch(pattern, start, index + 1)
        return None

    def match_covering(self, tokens: Sequence[str], index: int) -> Optional[PatternMatch]:
        """Best pattern whose match contains ``index``.

        Longer patterns win, then higher priority, then the earliest start.
        """
        if not 0 <= index < len(tokens):
            return None
        best: Optional[PatternMatch] = None
        best_key: Optional[Tuple[int, int, int]] = None
        for pattern in self._patterns.values():
            length = len(pattern.words)
            for start in range(max(0, index - length + 1), index + 1):
                if not pattern.matches_at(tokens, start):
                    continue
                key = (-length, -pattern.priority, start)
                if best_key is None or key < best_key:
                    best_key = key
                    best = PatternMatch(pattern, start, start + length)
        return best


def is_chunk_eligible(word: str) -> bool:
    return word.lower().strip() in CHUNK_ELIGIBLE_WORDS


def synthesize_chunk(
    target: str, right1: Optional[str], right2: Optional[str] = None
) -> Optional[str]:
    """Build a hyphenated chunk from the words to the right of ``target``.

    ``to the park`` gives ``to-the-park`` because a determiner pulls in the
    following noun; otherwise only one neighbour is used. Without any right
    context there is nothing to synthesize.
    """
    if not right1:
        return None
    if right1.lower() in DETERMINERS and right2:
        return f"{target}-{right1}-{right2}"
    return f"{target}-{right1}"


def _pattern(
    key: str,
    words: str,
    category: FeedbackCategory,
    priority: int,
    parent_key: Optional[str] = None,
    spoken: Sequence[str] = (),
) -> ListeningPattern:
    return ListeningPattern(
        key=key,
        words=tuple(words.split()),
        category=category,
        priority=priority,
        parent_key=parent_key,
        variants=tuple(PatternVariant(words, form) for form in spoken),
    )


BUILTIN_PATTERNS: Tuple[ListeningPattern, ...] = (
    _pattern("went-to-the", "went to the", FeedbackCategory.LINKING, 100, "went-to", ("wento thuh",)),
    _pattern("went-to", "went to", FeedbackCategory.LINKING, 90, spoken=("wento",)),
    _pattern("want-to", "want to", FeedbackCategory.LINKING, 100, spoken=("wanna",)),
    _pattern("going-to", "going to", FeedbackCategory.LINKING, 100, spoken=("gonna",)),
    _pattern("got-to", "got to", FeedbackCategory.LINKING, 95, spoken=("gotta",)),
    _pattern("have-to", "have to", FeedbackCategory.LINKING, 95, spoken=("hafta",)),
    _pattern("need-to", "need to", FeedbackCategory.LINKING, 90, spoken=("needa",)),
    _pattern(
        "going-to-go", "going to go", FeedbackCategory.SPEED_CHUNKING, 100, "going-to", ("gonna go",)
    ),
    _pattern(
        "want-to-go", "want to go", FeedbackCategory.SPEED_CHUNKING, 100, "want-to", ("wanna go",)
    ),
    _pattern("a-lot-of", "a lot of", FeedbackCategory.ELISION, 100, "lot-of", ("a lotta",)),
    _pattern("lot-of", "lot of", FeedbackCategory.ELISION, 90, spoken=("lotta",)),
    _pattern("kind-of", "kind of", FeedbackCategory.ELISION, 90, spoken=("kinda",)),
    _pattern("sort-of", "sort of", FeedbackCategory.ELISION, 90, spoken=("sorta",)),
    _pattern("to-fallback", "to", FeedbackCategory.WEAK_FORM, 80, spoken=("tuh", "ta")),
    _pattern("of-fallback", "of", FeedbackCategory.WEAK_FORM, 80, spoken=("uh",)),
)

DEFAULT_REGISTRY = PatternRegistry(BUILTIN_PATTERNS)
