import pytest

from listening_diagnostics.models import FeedbackCategory
from listening_diagnostics.patterns import (
    DEFAULT_REGISTRY,
    ListeningPattern,
    PatternRegistry,
    synthesize_chunk,
)

SENTENCE = ["i", "went", "to", "the", "park"]


def test_parent_is_resolved_by_key():
    pattern = DEFAULT_REGISTRY.get("going-to-go")

    assert pattern.parent_key == "going-to"
    assert DEFAULT_REGISTRY.parent_of(pattern) is DEFAULT_REGISTRY.get("going-to")
    assert DEFAULT_REGISTRY.parent_of(DEFAULT_REGISTRY.get("want-to")) is None


def test_every_builtin_pattern_has_a_category():
    assert len(DEFAULT_REGISTRY) > 0
    assert all(isinstance(p.category, FeedbackCategory) for p in DEFAULT_REGISTRY)
    for pattern in DEFAULT_REGISTRY:
        if pattern.parent_key is not None:
            assert pattern.parent_key in DEFAULT_REGISTRY


def test_find_by_spoken_form():
    found = DEFAULT_REGISTRY.find_by_spoken_form("Gonna  go")

    assert [pattern.key for pattern in found] == ["going-to-go"]
    assert DEFAULT_REGISTRY.find_by_spoken_form("mumble") == []


def test_match_forward_prefers_longest():
    match = DEFAULT_REGISTRY.match_forward(SENTENCE, 1)

    assert match.pattern.key == "went-to-the"
    assert (match.start, match.end) == (1, 4)
    assert match.chunk_display == "went-to-the"


def test_match_forward_falls_back_to_single_word():
    match = DEFAULT_REGISTRY.match_forward(SENTENCE, 2)

    assert match.pattern.key == "to-fallback"
    assert DEFAULT_REGISTRY.match_forward(SENTENCE, 4) is None
    assert DEFAULT_REGISTRY.match_forward(SENTENCE, 9) is None


def test_match_backward_finds_verb_chunk():
    match = DEFAULT_REGISTRY.match_backward(["we", "are", "going", "to", "go"], 4)

    assert match.pattern.key == "going-to-go"
    assert (match.start, match.end) == (2, 5)


def test_match_covering_contains_index():
    match = DEFAULT_REGISTRY.match_covering(SENTENCE, 3)

    assert match.pattern.key == "went-to-the"
    assert match.start <= 3 < match.end


def test_match_covering_prefers_higher_priority():
    registry = PatternRegistry(
        [
            ListeningPattern("low", ("b", "c"), FeedbackCategory.LINKING, priority=1),
            ListeningPattern("high", ("a", "b"), FeedbackCategory.LINKING, priority=5),
            ListeningPattern("tie", ("c", "d"), FeedbackCategory.LINKING, priority=5),
        ]
    )

    assert registry.match_covering(["a", "b", "c", "d"], 1).pattern.key == "high"
    assert registry.match_covering(["a", "b", "c", "d"], 2).pattern.key == "tie"


def test_register_rejects_duplicates_and_empty_patterns():
    registry = PatternRegistry()
    registry.register(ListeningPattern("x", ("to",), FeedbackCategory.WEAK_FORM))

    with pytest.raises(ValueError):
        registry.register(ListeningPattern("x", ("of",), FeedbackCategory.WEAK_FORM))
    with pytest.raises(ValueError):
        registry.register(ListeningPattern("y", (), FeedbackCategory.WEAK_FORM))


@pytest.mark.parametrize(
    "target, right1, right2, expected",
    [
        ("to", "the", "park", "to-the-park"),
        ("to", "school", "today", "to-school"),
        ("of", "the", None, "of-the"),
        ("to", None, None, None),
    ],
)
def test_synthesize_chunk(target, right1, right2, expected):
    assert synthesize_chunk(target, right1, right2) == expected
