import hashlib

from listening_diagnostics.alignment import align, align_tokens
from listening_diagnostics.phrase_spans import (
    PhraseSpanRegistry,
    attach_phrase_spans,
    find_best_span,
)


def test_widens_to_pattern_before_anchor():
    tokens = ["i", "want", "to", "go"]

    assert find_best_span(tokens, 2) == find_best_span(tokens, 1)
    span = find_best_span(tokens, 2)
    assert (span.start, span.end, span.text) == (1, 3, "want to")


def test_three_word_pattern_scans_back_two_positions():
    span = find_best_span(["we", "ate", "a", "lot", "of", "food"], 4)

    assert (span.start, span.end, span.text) == (2, 5, "a lot of")


def test_no_match_degrades_to_single_token():
    span = find_best_span(["i", "walked", "home"], 1)

    assert (span.start, span.end, span.text) == (1, 2, "walked")


def test_partial_or_reordered_patterns_never_match():
    assert find_best_span(["to", "want", "go"], 0).text == "to"
    assert find_best_span(["a", "lot", "more"], 1).text == "lot"


def test_registry_memoizes_spans():
    """Identical spans share one hint and a sha1-derived identifier."""
    registry = PhraseSpanRegistry()
    first = registry.get(1, 3, "want to")
    second = registry.get(1, 3, "want to")

    assert first is second
    assert len(registry) == 1
    expected = "sp_" + hashlib.sha1(b"1:3:want to").hexdigest()[:10]
    assert first.span_id == expected
    assert registry.get(2, 4, "want to").span_id != expected


def test_events_in_one_phrase_share_a_hint():
    result = align("we ate a lot of food", "we ate lot food")
    first, second = result.events

    assert first.expected == "a"
    assert second.expected == "of"
    assert first.phrase_hint is second.phrase_hint
    assert first.phrase_hint.text == "a lot of"


def test_attach_does_not_mutate_input():
    raw = align_tokens(["i", "want", "to", "go"], ["i", "want", "go"])
    hinted = attach_phrase_spans(raw)

    assert raw.events[0].phrase_hint is None
    assert hinted.events[0].phrase_hint.text == "want to"
    assert all(op.span_id is None for op in raw.operations)
    assert [op.kind for op in hinted.operations] == [op.kind for op in raw.operations]


def test_operations_share_span_id_with_event_hint():
    """Tokens of one phrase and the event inside it carry one span identifier."""
    result = align("I want to go", "I want go")
    hint = result.events[0].phrase_hint
    i_op, want_op, to_op, go_op = result.operations

    assert want_op.span_id == to_op.span_id == hint.span_id
    assert i_op.span_id not in (None, hint.span_id)
    assert go_op.span_id not in (None, hint.span_id)
    assert want_op.to_dict()["span_id"] == hint.span_id


def test_inserted_operations_get_no_span_id():
    result = align("I want coffee", "I want like coffee")
    (extra,) = [op for op in result.operations if op.ref_index is None]

    assert extra.span_id is None


def test_multi_token_event_hint_covers_event():
    result = align("I want to go to the store", "I want go store")
    hint = result.events[1].phrase_hint

    assert (hint.ref_start, hint.ref_end, hint.text) == (4, 6, "to the")
