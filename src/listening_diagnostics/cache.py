from __future__ import annotations

import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


def make_cache_key(
    event_id: str, reference_text: str, hypothesis_text: str, locale: str
) -> str:
    """Deterministic key for an enrichment result about one event."""
    payload = json.dumps(
        [event_id, reference_text, hypothesis_text, locale], ensure_ascii=False
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


class InsightCache(ABC):
    """Abstract store for derived results keyed by event and text."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for ``key`` or None."""
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""
        raise NotImplementedError

    def get_or_compute(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on a miss.

        The base implementation gives no concurrency guarantee; subclasses
        shared between threads should override it.
        """
        value = self.get(key)
        if value is None:
            value = factory()
            self.put(key, value)
        return value


class InMemoryInsightCache(InsightCache):
    """Thread-safe dictionary cache computing each key at most once."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._in_flight: Dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._values.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def get_or_compute(self, key: str, factory: Callable[[], Any]) -> Any:
        while True:
            with self._lock:
                value = self._values.get(key, _MISSING)
                if value is not _MISSING:
                    return value
                pending = self._in_flight.get(key)
                if pending is None:
                    pending = threading.Event()
                    self._in_flight[key] = pending
                    owner = True
                else:
                    owner = False

            if not owner:
                # Another thread is computing; if it fails we retry as owner.
                pending.wait()
                continue

            try:
                logger.debug("Computing cache entry %s", key)
                value = factory()
                with self._lock:
                    self._values[key] = value
                return value
            finally:
                with self._lock:
                    self._in_flight.pop(key, None)
                pending.set()
