"""Text canonicalization shared by the reference and the listener's answer."""

from __future__ import annotations

import re
import unicodedata
from typing import Mapping, Tuple

APOSTROPHE_VARIANTS_RE = re.compile("[‘’ʼ´`]")
NON_TEXT_RE = re.compile(r"[^\w\s']|_", re.UNICODE)
STRAY_APOSTROPHE_RE = re.compile(r"(?<!\w)'|'(?!\w)", re.UNICODE)
WHITESPACE_RE = re.compile(r"\s+")

# (stem, suffix pattern, canonical) for contractions typed with a space.
SPLIT_CONTRACTION_RULES: Tuple[Tuple[str, str, str], ...] = (
    ("i", "'?m", "i'm"),
    ("i", "'?ll", "i'll"),
    ("i", "'?d", "i'd"),
    ("i", "'?ve", "i've"),
    ("you", "'?re", "you're"),
    ("you", "'?ll", "you'll"),
    ("you", "'?d", "you'd"),
    ("you", "'?ve", "you've"),
    ("we", "'?re", "we're"),
    ("we", "'?ll", "we'll"),
    ("we", "'?d", "we'd"),
    ("we", "'?ve", "we've"),
    ("they", "'?re", "they're"),
    ("they", "'?ll", "they'll"),
    ("they", "'?d", "they'd"),
    ("they", "'?ve", "they've"),
    ("it", "'?s", "it's"),
    ("it", "'?ll", "it'll"),
    ("it", "'?d", "it'd"),
    ("that", "'?s", "that's"),
    ("that", "'?ll", "that'll"),
    ("what", "'?s", "what's"),
    ("what", "'?ll", "what'll"),
    ("who", "'?s", "who's"),
    ("who", "'?ll", "who'll"),
    ("he", "'?s", "he's"),
    ("she", "'?s", "she's"),
    ("do", "n'?t", "don't"),
    ("does", "n'?t", "doesn't"),
    ("did", "n'?t", "didn't"),
    ("can", "'?t", "can't"),
    ("will", "n'?t", "won't"),
    ("would", "n'?t", "wouldn't"),
    ("should", "n'?t", "shouldn't"),
    ("could", "n'?t", "couldn't"),
    ("are", "n'?t", "aren't"),
    ("is", "n'?t", "isn't"),
)

# Whole-word repairs for contractions typed without an apostrophe. Words that
# are also ordinary English words (were, well, ill, its, id, wed) are left out.
MISSING_APOSTROPHE_FIXES: Mapping[str, str] = {
    "im": "i'm",
    "ive": "i've",
    "youre": "you're",
    "youll": "you'll",
    "youd": "you'd",
    "youve": "you've",
    "weve": "we've",
    "theyre": "they're",
    "theyll": "they'll",
    "theyd": "they'd",
    "theyve": "they've",
    "itll": "it'll",
    "itd": "it'd",
    "thats": "that's",
    "whats": "what's",
    "whos": "who's",
    "hes": "he's",
    "shes": "she's",
    "dont": "don't",
    "doesnt": "doesn't",
    "didnt": "didn't",
    "cant": "can't",
    "wont": "won't",
    "wouldnt": "wouldn't",
    "shouldnt": "shouldn't",
    "couldnt": "couldn't",
    "arent": "aren't",
    "isnt": "isn't",
    "wasnt": "wasn't",
    "werent": "weren't",
    "hasnt": "hasn't",
    "havent": "haven't",
    "hadnt": "hadn't",
}

# Casual one-word reductions and the multi-word form they are compared as.
REDUCED_FORMS: Mapping[str, str] = {
    "gonna": "going to",
    "wanna": "want to",
    "gotta": "got to",
    "kinda": "kind of",
    "sorta": "sort of",
    "gimme": "give me",
    "lemme": "let me",
}

CONTRACTION_EXPANSIONS: Mapping[str, str] = {
    "i'm": "i am",
    "i'll": "i will",
    "i'd": "i would",
    "i've": "i have",
    "you're": "you are",
    "you'll": "you will",
    "you'd": "you would",
    "you've": "you have",
    "we're": "we are",
    "we'll": "we will",
    "we'd": "we would",
    "we've": "we have",
    "they're": "they are",
    "they'll": "they will",
    "they'd": "they would",
    "they've": "they have",
    "it's": "it is",
    "it'll": "it will",
    "it'd": "it would",
    "that's": "that is",
    "that'll": "that will",
    "what's": "what is",
    "what'll": "what will",
    "who's": "who is",
    "who'll": "who will",
    "he's": "he is",
    "she's": "she is",
    "he'll": "he will",
    "she'll": "she will",
    "he'd": "he would",
    "she'd": "she would",
    "don't": "do not",
    "doesn't": "does not",
    "didn't": "did not",
    "can't": "cannot",
    "won't": "will not",
    "wouldn't": "would not",
    "shouldn't": "should not",
    "couldn't": "could not",
    "aren't": "are not",
    "isn't": "is not",
    "wasn't": "was not",
    "weren't": "were not",
    "hasn't": "has not",
    "haven't": "have not",
    "hadn't": "had not",
}


def _compile_split_rules() -> Tuple[Tuple[re.Pattern[str], str], ...]:
    return tuple(
        (re.compile(rf"\b{stem}\s+{suffix}\b"), canonical)
        for stem, suffix, canonical in SPLIT_CONTRACTION_RULES
    )


def _compile_word_table(table: Mapping[str, str]) -> re.Pattern[str]:
    alternatives = "|".join(sorted((re.escape(key) for key in table), key=len, reverse=True))
    # An apostrophe counts as part of the word so "don't" never matches "don".
    return re.compile(rf"(?<![\w'])(?:{alternatives})(?![\w'])")


_SPLIT_RULES = _compile_split_rules()
_MISSING_APOSTROPHE_RE = _compile_word_table(MISSING_APOSTROPHE_FIXES)
_REDUCED_FORM_RE = _compile_word_table(REDUCED_FORMS)


def clean_text(value: object) -> str:
    """Lowercase, strip punctuation except in-word apostrophes, collapse whitespace."""
    if not isinstance(value, str):
        value = str(value)
    # Unify apostrophes first: NFKC splits the acute accent into a space and a combining mark.
    text = APOSTROPHE_VARIANTS_RE.sub("'", value)
    text = unicodedata.normalize("NFKC", text).lower()
    text = NON_TEXT_RE.sub(" ", text)
    text = STRAY_APOSTROPHE_RE.sub(" ", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def merge_split_contractions(text: str) -> str:
    """Join contractions typed with a space, e.g. ``i m`` -> ``i'm``."""
    for pattern, canonical in _SPLIT_RULES:
        text = pattern.sub(canonical, text)
    return text


def repair_missing_apostrophes(text: str) -> str:
    """Rewrite whole words such as ``dont`` to ``don't`` using a fixed table."""
    return _MISSING_APOSTROPHE_RE.sub(lambda match: MISSING_APOSTROPHE_FIXES[match.group(0)], text)


def expand_reduced_forms(text: str) -> str:
    """Expand casual reductions (``gonna`` -> ``going to``) to their canonical words."""
    return _REDUCED_FORM_RE.sub(lambda match: REDUCED_FORMS[match.group(0)], text)


def normalize_text(value: object) -> str:
    """
    Canonicalize raw text into the comparison space used for alignment.

    Never raises: unknown words pass through after cleanup, and running the
    function on its own output returns it unchanged.
    """
    text = clean_text(value)
    if not text:
        return ""
    text = merge_split_contractions(text)
    text = repair_missing_apostrophes(text)
    text = expand_reduced_forms(text)
    return WHITESPACE_RE.sub(" ", text).strip()


def is_contraction(word: str) -> bool:
    return word.lower().strip() in CONTRACTION_EXPANSIONS
