"""
listening_diagnostics package exports the alignment and diagnosis entry points.
"""

from __future__ import annotations

from .alignment import align, align_tokens
from .cache import InMemoryInsightCache, InsightCache, make_cache_key
from .categorizer import CategorizationError, categorize, detect_category
from .config import DiagnosticsConfig, config_from_dict, config_from_yaml, load_config
from .diagnostics import aggregate
from .error_causes import ErrorCause, analyze_errors, analyze_mistakes, rank_causes
from .feedback import extract_top_events, is_word_level_feedback_safe, summarize_operations
from .models import (
    AlignmentEvent,
    AlignmentResult,
    AttemptResult,
    DiagnosticSummary,
    EventKind,
    FeedbackCategory,
    OperationKind,
    OrderedEvent,
)
from .normalization import normalize_text
from .pipeline import score_attempt, score_session
from .tokenization import tokenize

__all__ = [
    "AlignmentEvent",
    "AlignmentResult",
    "AttemptResult",
    "CategorizationError",
    "DiagnosticSummary",
    "DiagnosticsConfig",
    "ErrorCause",
    "EventKind",
    "FeedbackCategory",
    "InMemoryInsightCache",
    "InsightCache",
    "OperationKind",
    "OrderedEvent",
    "aggregate",
    "align",
    "align_tokens",
    "analyze_errors",
    "analyze_mistakes",
    "categorize",
    "config_from_dict",
    "config_from_yaml",
    "detect_category",
    "extract_top_events",
    "is_word_level_feedback_safe",
    "load_config",
    "make_cache_key",
    "normalize_text",
    "rank_causes",
    "score_attempt",
    "score_session",
    "summarize_operations",
    "tokenize",
]

__version__ = "0.1.0"
