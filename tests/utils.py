from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Sequence

import yaml

from listening_diagnostics.models import AttemptResult, FeedbackCategory, OperationKind


def make_attempts(
    category_lists: Iterable[Sequence[Any]], accuracy: float = 80.0
) -> List[AttemptResult]:
    """Build AttemptResults numbered attempt-1, attempt-2, ... from category lists."""
    return [
        AttemptResult(
            attempt_id=f"attempt-{idx}",
            accuracy_percent=accuracy,
            categories=list(categories),
        )
        for idx, categories in enumerate(category_lists, start=1)
    ]


def write_attempts_yaml(path: Path, attempts: List[dict]) -> Path:
    """Write a diagnose-command input file with an ``attempts`` list."""
    path.write_text(yaml.safe_dump({"attempts": attempts}, sort_keys=False), encoding="utf-8")
    return path


def ref_indices(operations) -> List[int]:
    return [op.ref_index for op in operations if op.kind is not OperationKind.INSERTION]


def hyp_indices(operations) -> List[int]:
    return [op.hyp_index for op in operations if op.kind is not OperationKind.DELETION]


ALL_CATEGORIES = list(FeedbackCategory)
