from __future__ import annotations

import json
from typing import Any, Dict, Optional

import click

from .models import FeedbackCategory
from .patterns import DEFAULT_REGISTRY, ListeningPattern, PatternMatch
from .tokenization import tokenize_words


def _pattern_dict(pattern: ListeningPattern) -> Dict[str, Any]:
    return {
        "key": pattern.key,
        "words": list(pattern.words),
        "category": pattern.category.value,
        "priority": pattern.priority,
        "parent_key": pattern.parent_key,
        "chunk_display": pattern.chunk_display,
        "spoken_forms": [variant.spoken_form for variant in pattern.variants],
    }


def _match_dict(match: Optional[PatternMatch]) -> Optional[Dict[str, Any]]:
    if match is None:
        return None
    return {
        "key": match.pattern.key,
        "start": match.start,
        "end": match.end,
        "chunk_display": match.chunk_display,
    }


@click.group(name="listening-patterns")
def patterns_group() -> None:
    """Inspect the built-in listening pattern registry."""


@patterns_group.command("list")
@click.option(
    "--category",
    type=click.Choice([category.value for category in FeedbackCategory]),
    default=None,
    help="Only show patterns of this category.",
)
def list_patterns(category: str | None) -> None:
    """Print every registered pattern as JSON lines."""
    for pattern in DEFAULT_REGISTRY:
        if category is not None and pattern.category.value != category:
            continue
        click.echo(json.dumps(_pattern_dict(pattern)))


@patterns_group.command("match")
@click.argument("text")
@click.option(
    "--index",
    type=int,
    required=True,
    help="Token index (after normalization) to match around.",
)
def match_patterns(text: str, index: int) -> None:
    """Show forward, backward and covering matches at INDEX in TEXT."""
    tokens = tokenize_words(text)
    if not 0 <= index < len(tokens):
        raise click.BadParameter(
            f"index must be within [0, {len(tokens)}) for {len(tokens)} tokens.",
            param_hint="--index",
        )
    payload = {
        "tokens": tokens,
        "index": index,
        "forward": _match_dict(DEFAULT_REGISTRY.match_forward(tokens, index)),
        "backward": _match_dict(DEFAULT_REGISTRY.match_backward(tokens, index)),
        "covering": _match_dict(DEFAULT_REGISTRY.match_covering(tokens, index)),
    }
    click.echo(json.dumps(payload, indent=2))


def main() -> None:
    patterns_group()


if __name__ == "__main__":
    main()
