from __future__ import annotations

from typing import List

from .models import Token
from .normalization import normalize_text


def tokenize(text: str) -> List[Token]:
    """Normalize text and split it into positioned word tokens.

    Contractions such as ``i'm`` stay a single token; apostrophes are never
    split points.
    """
    words = normalize_text(text).split()
    return [Token(text=word, index=idx) for idx, word in enumerate(words)]


def tokenize_words(text: str) -> List[str]:
    """Return only the token strings for ``text``."""
    return [token.text for token in tokenize(text)]
