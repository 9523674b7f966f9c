import pytest

from listening_diagnostics.alignment import align
from listening_diagnostics.categorizer import (
    CATEGORY_RULES,
    CategorizationError,
    categorize,
    contains_content_word,
    detect_category,
    enforce_weak_form_safety,
)
from listening_diagnostics.config import DiagnosticsConfig
from listening_diagnostics.models import AlignmentEvent, EventKind, FeedbackCategory


def _event(ref_start, ref_end, hyp_start=None, hyp_end=None, kind=EventKind.MISSING):
    return AlignmentEvent(
        event_id="evt",
        kind=kind,
        ref_start=ref_start,
        ref_end=ref_end,
        expected="",
        hyp_start=hyp_start,
        hyp_end=hyp_end,
    )


def test_rule_order():
    """Rules are evaluated in a fixed order with ``missed`` as the fallback."""
    assert [category for category, _ in CATEGORY_RULES] == [
        FeedbackCategory.CONTRACTION,
        FeedbackCategory.LINKING,
        FeedbackCategory.ELISION,
        FeedbackCategory.WEAK_FORM,
        FeedbackCategory.SIMILAR_WORDS,
        FeedbackCategory.SPELLING,
        FeedbackCategory.SPEED_CHUNKING,
    ]


@pytest.mark.parametrize(
    "phrase, observed, expected",
    [
        ("i'm", None, FeedbackCategory.CONTRACTION),
        ("you're late", None, FeedbackCategory.CONTRACTION),
        ("want to", None, FeedbackCategory.LINKING),
        ("I want to go", None, FeedbackCategory.LINKING),
        ("going together", None, FeedbackCategory.ELISION),
        ("to the", None, FeedbackCategory.WEAK_FORM),
        ("the", "a", FeedbackCategory.WEAK_FORM),
        ("right", "write", FeedbackCategory.SIMILAR_WORDS),
        ("cat", "cut", FeedbackCategory.SIMILAR_WORDS),
        ("cat", "cats", FeedbackCategory.SPELLING),
        ("park", "bark", FeedbackCategory.SPELLING),
        ("the park", None, FeedbackCategory.SPEED_CHUNKING),
        ("cat", None, FeedbackCategory.MISSED),
        ("cat", "dog", FeedbackCategory.MISSED),
        ("elephant", "elephants", FeedbackCategory.MISSED),
        ("", None, FeedbackCategory.MISSED),
    ],
)
def test_detect_category(phrase, observed, expected):
    assert detect_category(phrase, observed) is expected


def test_contraction_outranks_similar_words():
    assert detect_category("it's", "its") is FeedbackCategory.CONTRACTION


def test_weak_form_requires_only_function_words():
    """A content word anywhere in the phrase blocks ``weak_form``."""
    assert detect_category("to the") is FeedbackCategory.WEAK_FORM
    assert detect_category("to the store") is FeedbackCategory.SPEED_CHUNKING
    assert detect_category("store") is FeedbackCategory.MISSED


def test_short_word_limit_is_configurable():
    roomy = DiagnosticsConfig(short_word_max_length=10)

    assert detect_category("elephant", "elephants", roomy) is FeedbackCategory.SPELLING


def test_categorize_uses_hint_and_observed_span():
    result = align("I need a pen", "I need a pan")
    (event,) = result.events

    assert categorize(event, result.ref_tokens, result.hyp_tokens) is FeedbackCategory.SIMILAR_WORDS


def test_categorize_uses_phrase_hint_text():
    result = align("I want to go", "I want go")

    category = categorize(result.events[0], result.ref_tokens, result.hyp_tokens)

    assert category is FeedbackCategory.LINKING


def test_categorize_accepts_plain_strings():
    event = _event(1, 3)

    category = categorize(event, ["i", "to", "the", "store"], ["i", "store"])

    assert category is FeedbackCategory.WEAK_FORM


@pytest.mark.parametrize(
    "event",
    [
        _event(2, 6),
        _event(3, 1),
        _event(-1, 1),
        _event(0, 1, hyp_start=0, hyp_end=5, kind=EventKind.SUBSTITUTION),
        _event(0, 1, hyp_start=0, kind=EventKind.SUBSTITUTION),
    ],
)
def test_categorize_rejects_bad_spans(event):
    with pytest.raises(CategorizationError):
        categorize(event, ["a", "b", "c"], ["x"])


def test_categorization_error_is_value_error():
    assert issubclass(CategorizationError, ValueError)


def test_weak_form_safety_relabels_content_phrases():
    assert (
        enforce_weak_form_safety(FeedbackCategory.WEAK_FORM, "went to the")
        is FeedbackCategory.MISSED
    )
    assert enforce_weak_form_safety(FeedbackCategory.WEAK_FORM, "to the") is FeedbackCategory.WEAK_FORM
    assert enforce_weak_form_safety(FeedbackCategory.LINKING, "went to") is FeedbackCategory.LINKING


def test_contains_content_word():
    assert contains_content_word("to the park")
    assert not contains_content_word("of the")
