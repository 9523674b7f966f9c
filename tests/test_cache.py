import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from listening_diagnostics.cache import InMemoryInsightCache, make_cache_key


def test_cache_key_is_deterministic():
    key = make_cache_key("evt1", "I want to go", "I want go", "en-US")

    assert key == make_cache_key("evt1", "I want to go", "I want go", "en-US")
    assert key != make_cache_key("evt1", "I want to go", "I want go", "en-GB")
    assert key != make_cache_key("evt2", "I want to go", "I want go", "en-US")


def test_get_and_put():
    cache = InMemoryInsightCache()

    assert cache.get("missing") is None
    cache.put("k", {"example": "I want to go."})
    assert cache.get("k") == {"example": "I want to go."}
    assert len(cache) == 1


def test_get_or_compute_runs_factory_once_under_threads():
    """Concurrent callers for one key share a single computation."""
    cache = InMemoryInsightCache()
    calls = []
    lock = threading.Lock()

    def factory():
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return "insight"

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: cache.get_or_compute("k", factory), range(16)))

    assert results == ["insight"] * 16
    assert len(calls) == 1


def test_failed_computation_can_be_retried():
    cache = InMemoryInsightCache()

    def broken():
        raise RuntimeError("enrichment unavailable")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("k", broken)
    assert cache.get_or_compute("k", lambda: "second try") == "second try"
    assert cache.get_or_compute("k", broken) == "second try"
