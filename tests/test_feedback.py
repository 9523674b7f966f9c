from listening_diagnostics.alignment import align
from listening_diagnostics.config import DiagnosticsConfig
from listening_diagnostics.feedback import (
    extract_top_events,
    is_word_level_feedback_safe,
    summarize_operations,
)
from listening_diagnostics.models import AlignmentOperation, FeedbackCategory


def test_hinted_events_come_first():
    result = align("I want to go to the store", "I want go store")
    events = extract_top_events(result)

    assert [(e.target, e.category) for e in events] == [
        ("want to", FeedbackCategory.LINKING),
        ("to the", FeedbackCategory.WEAK_FORM),
    ]
    assert [e.rank for e in events] == [1, 2]


def test_hinted_events_precede_unhinted_ones():
    result = align("I saw a cat and I want to go", "I saw a cut and I go")
    events = extract_top_events(result)

    assert events[0].target == "want to"
    assert events[1].target == "cat"
    assert events[1].category is FeedbackCategory.SIMILAR_WORDS


def test_widening_to_pattern_triggers_weak_form_safety():
    """A weak-form target widened over a content word is relabeled missed."""
    result = align("I went to the park", "I went the park")
    (event,) = extract_top_events(result)

    assert event.target == "went to the"
    assert (event.target_start, event.target_end) == (1, 4)
    assert event.chunk_display == "went-to-the"
    assert event.category is FeedbackCategory.MISSED


def test_chunk_is_synthesized_for_lone_function_word():
    result = align("I walked to the park", "I walked the park")
    (event,) = extract_top_events(result)

    assert event.target == "to"
    assert event.category is FeedbackCategory.WEAK_FORM
    assert event.chunk_display == "to-the-park"


def test_extra_events_are_never_selected():
    result = align("I want coffee", "I want like coffee please")

    assert extract_top_events(result) == []


def test_spelling_is_not_narrated():
    result = align("I have a cat", "I have a cats")
    (event,) = extract_top_events(result)

    assert event.category is FeedbackCategory.SPELLING
    assert event.narrate_sound is False
    assert event.observed == "cats"


def test_max_count_limits_selection():
    result = align("I want to go to the store", "I want go store")

    assert len(extract_top_events(result, max_count=1)) == 1
    assert extract_top_events(result, max_count=0) == []
    limited = DiagnosticsConfig(default_max_events=1)
    assert len(extract_top_events(result, config=limited)) == 1


def test_duplicate_targets_are_reported_once():
    result = align("we ate a lot of food", "we ate lot food")
    events = extract_top_events(result)

    assert len(result.events) == 2
    assert [e.target for e in events] == ["a lot of"]
    assert events[0].category is FeedbackCategory.SPEED_CHUNKING


def test_summarize_operations_dominant_kind():
    deletions = align("I want to go to the store", "I want go store")
    inserts = align("I want coffee", "I want like coffee please")
    perfect = align("hello there", "hello there")
    mixed = align("I like cats", "I like trains")

    assert summarize_operations(deletions.operations).dominant == "deletion"
    assert summarize_operations(inserts.operations).dominant == "insertion"
    assert summarize_operations(perfect.operations).dominant == "correct"
    assert summarize_operations(perfect.operations).mostly_correct
    assert summarize_operations(mixed.operations).dominant == "mixed"


def test_word_level_feedback_safety_gate():
    confident = AlignmentOperation.substitution(0, 0, "pen", "pan", 0.67)
    shaky = AlignmentOperation.substitution(0, 0, "pen", "pan", 0.4)

    assert is_word_level_feedback_safe(confident)
    assert not is_word_level_feedback_safe(shaky)
    assert is_word_level_feedback_safe(AlignmentOperation.deletion(0, "pen"))
    assert is_word_level_feedback_safe(AlignmentOperation.insertion(0, "pan"))
    strict = DiagnosticsConfig(narration_confidence_threshold=0.9)
    assert not is_word_level_feedback_safe(confident, strict)
