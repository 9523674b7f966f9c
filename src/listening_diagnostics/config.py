from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

_UNIT_INTERVAL_FIELDS = (
    "substitution_confidence_threshold",
    "known_reduction_confidence",
    "known_confusion_confidence",
    "narration_confidence_threshold",
)


@dataclass(slots=True)
class DiagnosticsConfig:
    """Tunable thresholds for alignment, categorization and aggregation."""

    substitution_confidence_threshold: float = 0.55
    known_reduction_confidence: float = 0.8
    known_confusion_confidence: float = 0.7
    narration_confidence_threshold: float = 0.55
    category_cap_per_attempt: int = 3
    default_max_events: int = 5
    short_word_max_length: int = 6
    context_window: int = 3
    locale: str = "en-US"

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))

    def validate(self) -> "DiagnosticsConfig":
        """Raise ValueError when a value is outside its meaningful range."""
        for name in _UNIT_INTERVAL_FIELDS:
            value = getattr(self, name)
            if not 0.0 <= float(value) <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value!r}.")
        if self.category_cap_per_attempt < 1:
            raise ValueError("category_cap_per_attempt must be at least 1.")
        if self.default_max_events < 0:
            raise ValueError("default_max_events must not be negative.")
        if self.context_window < 0:
            raise ValueError("context_window must not be negative.")
        return self


DEFAULT_CONFIG = DiagnosticsConfig()


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(DiagnosticsConfig)}
    return {key: data[key] for key in data if key in allowed}


def config_from_dict(data: Mapping[str, Any] | None) -> DiagnosticsConfig:
    """Build a DiagnosticsConfig from a dictionary-like input."""
    if data is None:
        return DiagnosticsConfig()
    return DiagnosticsConfig(**_build_kwargs(data)).validate()


def config_from_yaml(path: str | Path) -> DiagnosticsConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> DiagnosticsConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return DiagnosticsConfig()
    return config_from_yaml(path)
