"""Token-level edit-distance alignment between a reference and a listener's answer."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONFIG, DiagnosticsConfig
from .models import (
    AlignmentEvent,
    AlignmentOperation,
    AlignmentResult,
    AlignmentStats,
    EventKind,
    OperationKind,
    Token,
)
from .phrase_spans import attach_phrase_spans
from .similarity import evaluate_replacement
from .tokenization import tokenize

logger = logging.getLogger(__name__)

TokenLike = Union[Token, str]

# Raw backtrack step: (kind, ref_index, hyp_index)
RawStep = Tuple[OperationKind, Optional[int], Optional[int]]


def as_tokens(values: Sequence[TokenLike]) -> List[Token]:
    """Accept Token records or bare strings and return positioned Tokens."""
    tokens: List[Token] = []
    for idx, value in enumerate(values):
        text = value.text if isinstance(value, Token) else str(value)
        tokens.append(Token(text=text, index=idx))
    return tokens


def build_cost_matrix(ref: Sequence[str], hyp: Sequence[str]) -> List[List[int]]:
    """Full (M+1) x (N+1) unit-cost edit-distance matrix."""
    m, n = len(ref), len(hyp)
    cost = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        cost[i][0] = i
    for j in range(1, n + 1):
        cost[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if ref[i - 1] == hyp[j - 1]:
                cost[i][j] = cost[i - 1][j - 1]
            else:
                cost[i][j] = min(
                    cost[i - 1][j - 1] + 1,
                    cost[i - 1][j] + 1,
                    cost[i][j - 1] + 1,
                )
    return cost


def backtrack(
    ref: Sequence[str], hyp: Sequence[str], cost: List[List[int]]
) -> List[RawStep]:
    """Walk from (M, N) back to (0, 0) with a fixed tie-break order.

    At every cell: match if the tokens are equal, else substitution, else
    deletion, else insertion. Returned steps are in forward order.
    """
    steps: List[RawStep] = []
    i, j = len(ref), len(hyp)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and ref[i - 1] == hyp[j - 1]:
            steps.append((OperationKind.CORRECT, i - 1, j - 1))
            i -= 1
            j -= 1
        elif i > 0 and j > 0 and cost[i][j] == cost[i - 1][j - 1] + 1:
            steps.append((OperationKind.SUBSTITUTION, i - 1, j - 1))
            i -= 1
            j -= 1
        elif i > 0 and cost[i][j] == cost[i - 1][j] + 1:
            steps.append((OperationKind.DELETION, i - 1, None))
            i -= 1
        else:
            steps.append((OperationKind.INSERTION, None, j - 1))
            j -= 1
    steps.reverse()
    return steps


def _index(value: Optional[int], kind: OperationKind) -> int:
    if value is None:
        raise ValueError(f"{kind.value} step is missing a token index.")
    return value


def gate_substitutions(
    steps: Sequence[RawStep],
    ref: Sequence[str],
    hyp: Sequence[str],
    config: DiagnosticsConfig,
) -> List[AlignmentOperation]:
    """Turn raw steps into operations, splitting low-confidence substitutions."""
    operations: List[AlignmentOperation] = []
    for kind, raw_ri, raw_hj in steps:
        if kind is OperationKind.CORRECT:
            ri, hj = _index(raw_ri, kind), _index(raw_hj, kind)
            operations.append(AlignmentOperation.correct(ri, hj, ref[ri]))
        elif kind is OperationKind.SUBSTITUTION:
            ri, hj = _index(raw_ri, kind), _index(raw_hj, kind)
            evaluation = evaluate_replacement(ref[ri], hyp[hj], config)
            if evaluation.is_substitution:
                operations.append(
                    AlignmentOperation.substitution(
                        ri, hj, ref[ri], hyp[hj], evaluation.confidence
                    )
                )
            else:
                # Unrelated words: report "missed X, added Y" rather than "X became Y".
                operations.append(AlignmentOperation.deletion(ri, ref[ri]))
                operations.append(AlignmentOperation.insertion(hj, hyp[hj]))
        elif kind is OperationKind.DELETION:
            ri = _index(raw_ri, kind)
            operations.append(AlignmentOperation.deletion(ri, ref[ri]))
        else:
            hj = _index(raw_hj, kind)
            operations.append(AlignmentOperation.insertion(hj, hyp[hj]))
    return operations


def compute_stats(
    operations: Sequence[AlignmentOperation], ref_word_count: int
) -> AlignmentStats:
    stats = AlignmentStats(ref_word_count=ref_word_count)
    for op in operations:
        if op.kind is OperationKind.CORRECT:
            stats.correct += 1
        elif op.kind is OperationKind.SUBSTITUTION:
            stats.substitution += 1
        elif op.kind is OperationKind.DELETION:
            stats.deletion += 1
        else:
            stats.insertion += 1
    return stats


def word_error_rate(stats: AlignmentStats) -> float:
    return stats.errors / max(stats.ref_word_count, 1)


def accuracy_from_stats(stats: AlignmentStats) -> float:
    """1 - WER clamped to [0, 1]; an empty reference scores 0."""
    if stats.ref_word_count == 0:
        return 0.0
    return max(0.0, min(1.0, 1.0 - word_error_rate(stats)))


def make_event_id(parts: Dict[str, Any]) -> str:
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]


def build_events(
    operations: Sequence[AlignmentOperation],
    ref: Sequence[str],
    hyp: Sequence[str],
    context_window: int = 3,
) -> List[AlignmentEvent]:
    """Group adjacent non-correct operations of one kind into events.

    Runs of deletions become one ``missing`` event and runs of insertions one
    ``extra`` event; every substitution is its own event.
    """
    events: List[AlignmentEvent] = []
    ref_cursor = 0
    idx = 0
    total = len(operations)

    while idx < total:
        op = operations[idx]
        if op.kind is OperationKind.CORRECT:
            ref_cursor = (op.ref_index or 0) + 1
            idx += 1
            continue

        if op.kind is OperationKind.SUBSTITUTION:
            ri, hj = _index(op.ref_index, op.kind), _index(op.hyp_index, op.kind)
            events.append(
                _make_event(
                    EventKind.SUBSTITUTION,
                    ref,
                    hyp,
                    (ri, ri + 1),
                    (hj, hj + 1),
                    context_window,
                    confidence=op.confidence,
                )
            )
            ref_cursor = ri + 1
            idx += 1
            continue

        run_end = idx
        while run_end < total and operations[run_end].kind is op.kind:
            run_end += 1
        run = operations[idx:run_end]

        if op.kind is OperationKind.DELETION:
            ref_start = run[0].ref_index or 0
            ref_end = (run[-1].ref_index or 0) + 1
            events.append(
                _make_event(EventKind.MISSING, ref, hyp, (ref_start, ref_end), None, context_window)
            )
            ref_cursor = ref_end
        else:
            hyp_start = run[0].hyp_index or 0
            hyp_end = (run[-1].hyp_index or 0) + 1
            events.append(
                _make_event(
                    EventKind.EXTRA,
                    ref,
                    hyp,
                    (ref_cursor, ref_cursor),
                    (hyp_start, hyp_end),
                    context_window,
                )
            )
        idx = run_end

    return events


def _make_event(
    kind: EventKind,
    ref: Sequence[str],
    hyp: Sequence[str],
    ref_span: Tuple[int, int],
    hyp_span: Optional[Tuple[int, int]],
    context_window: int,
    confidence: Optional[float] = None,
) -> AlignmentEvent:
    ref_start, ref_end = ref_span
    expected = " ".join(ref[ref_start:ref_end])
    hyp_start = hyp_end = None
    observed = None
    if hyp_span is not None:
        hyp_start, hyp_end = hyp_span
        observed = " ".join(hyp[hyp_start:hyp_end])
    event_id = make_event_id(
        {
            "kind": kind.value,
            "ref": [ref_start, ref_end],
            "hyp": [hyp_start, hyp_end],
            "expected": expected,
            "observed": observed,
        }
    )
    return AlignmentEvent(
        event_id=event_id,
        kind=kind,
        ref_start=ref_start,
        ref_end=ref_end,
        expected=expected,
        hyp_start=hyp_start,
        hyp_end=hyp_end,
        observed=observed,
        confidence=confidence,
        context_before=" ".join(ref[max(0, ref_start - context_window) : ref_start]),
        context_after=" ".join(ref[ref_end : ref_end + context_window]),
    )


def align_tokens(
    ref_tokens: Sequence[TokenLike],
    hyp_tokens: Sequence[TokenLike],
    config: DiagnosticsConfig | None = None,
) -> AlignmentResult:
    """Align two token sequences without phrase-span widening."""
    cfg = config or DEFAULT_CONFIG
    ref = as_tokens(ref_tokens)
    hyp = as_tokens(hyp_tokens)
    ref_words = [token.text for token in ref]
    hyp_words = [token.text for token in hyp]

    cost = build_cost_matrix(ref_words, hyp_words)
    steps = backtrack(ref_words, hyp_words, cost)
    operations = gate_substitutions(steps, ref_words, hyp_words, cfg)
    stats = compute_stats(operations, len(ref_words))
    events = build_events(operations, ref_words, hyp_words, cfg.context_window)
    wer = word_error_rate(stats)
    accuracy = accuracy_from_stats(stats)

    logger.debug(
        "Aligned %d ref / %d hyp tokens: S=%d D=%d I=%d wer=%.3f",
        len(ref_words),
        len(hyp_words),
        stats.substitution,
        stats.deletion,
        stats.insertion,
        wer,
    )
    return AlignmentResult(
        ref_tokens=ref,
        hyp_tokens=hyp,
        operations=operations,
        events=events,
        stats=stats,
        wer=wer,
        accuracy=accuracy,
    )


def align(
    reference_text: str,
    hypothesis_text: str,
    config: DiagnosticsConfig | None = None,
) -> AlignmentResult:
    """Normalize, tokenize and align two texts, then attach phrase hints."""
    result = align_tokens(tokenize(reference_text), tokenize(hypothesis_text), config)
    return attach_phrase_spans(result)
