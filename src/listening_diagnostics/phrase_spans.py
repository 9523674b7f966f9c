from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from typing import Dict, Sequence, Tuple

from .models import AlignmentEvent, AlignmentOperation, AlignmentResult, EventKind, PhraseHint

# Curated word sequences, highest priority first.
PHRASE_PATTERNS: Tuple[Tuple[str, ...], ...] = (
    ("want", "to"),
    ("going", "to"),
    ("got", "to"),
    ("have", "to"),
    ("need", "to"),
    ("it'll", "be"),
    ("catch", "up"),
    ("hang", "out"),
    ("pick", "up"),
    ("grab", "a"),
    ("grab", "some"),
    ("a", "lot", "of"),
    ("kind", "of"),
    ("what", "do", "you", "say"),
)


@dataclass(frozen=True, slots=True)
class SpanMatch:
    """Half-open reference span chosen for one anchor index."""

    start: int
    end: int
    text: str


def match_pattern_at(tokens: Sequence[str], start: int, pattern: Sequence[str]) -> bool:
    if start < 0 or start + len(pattern) > len(tokens):
        return False
    return all(tokens[start + offset] == word for offset, word in enumerate(pattern))


def find_best_span(
    tokens: Sequence[str],
    ref_index: int,
    patterns: Sequence[Sequence[str]] = PHRASE_PATTERNS,
) -> SpanMatch:
    """Widen ``ref_index`` to the first pattern (in priority order) covering it.

    Candidate starts run from ``ref_index - (len - 1)`` up to ``ref_index``.
    Only exact, in-order matches count; otherwise the single token is returned.
    """
    for pattern in patterns:
        for start in range(max(0, ref_index - (len(pattern) - 1)), ref_index + 1):
            if match_pattern_at(tokens, start, pattern):
                end = start + len(pattern)
                return SpanMatch(start, end, " ".join(tokens[start:end]))
    text = tokens[ref_index] if 0 <= ref_index < len(tokens) else ""
    return SpanMatch(ref_index, ref_index + 1, text)


def span_key(start: int, end: int, text: str) -> str:
    return f"{start}:{end}:{text}"


class PhraseSpanRegistry:
    """Hands out one shared PhraseHint per distinct ``(start, end, text)`` span."""

    def __init__(self) -> None:
        self._spans: Dict[str, PhraseHint] = {}

    def get(self, start: int, end: int, text: str) -> PhraseHint:
        key = span_key(start, end, text)
        existing = self._spans.get(key)
        if existing is not None:
            return existing
        span_id = "sp_" + hashlib.sha1(key.encode("utf-8")).hexdigest()[:10]
        hint = PhraseHint(span_id=span_id, text=text, ref_start=start, ref_end=end)
        self._spans[key] = hint
        return hint

    def __len__(self) -> int:
        return len(self._spans)


def hint_for_event(
    event: AlignmentEvent,
    tokens: Sequence[str],
    registry: PhraseSpanRegistry,
) -> PhraseHint | None:
    """Build the phrase hint for a missing or substitution event."""
    if event.kind is EventKind.EXTRA or event.ref_end <= event.ref_start:
        return None
    best = find_best_span(tokens, event.ref_start)
    start = min(best.start, event.ref_start)
    end = max(best.end, event.ref_end)
    return registry.get(start, end, " ".join(tokens[start:end]))


def span_operation(
    operation: AlignmentOperation,
    tokens: Sequence[str],
    registry: PhraseSpanRegistry,
) -> AlignmentOperation:
    if operation.ref_index is None:
        return operation
    best = find_best_span(tokens, operation.ref_index)
    return replace(operation, span_id=registry.get(best.start, best.end, best.text).span_id)


def attach_phrase_spans(
    result: AlignmentResult, registry: PhraseSpanRegistry | None = None
) -> AlignmentResult:
    """Return a copy of ``result`` whose events carry phrase hints.

    Operations with a reference index are tagged with the id of the span
    their token belongs to, drawn from the same registry as the hints.
    """
    spans = registry if registry is not None else PhraseSpanRegistry()
    tokens = [token.text for token in result.ref_tokens]
    events = [
        replace(event, phrase_hint=hint_for_event(event, tokens, spans))
        for event in result.events
    ]
    operations = [span_operation(op, tokens, spans) for op in result.operations]
    return replace(result, operations=operations, events=events)
