# entry_scan/runtime/resources.py
import json
import logging
import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Generic, TypeVar

from entry_scan.domain.entities.candidate import DetectionInput
from entry_scan.io.codec import input_from_dict

log = logging.getLogger(__name__)

V = TypeVar("V")


class GraphCache(Generic[V]):
    """
    Fingerprint-keyed cache of built graphs (and anything derived from them).

    Reads take no lock; put/evict/clear are serialized. Oldest entry goes first.
    """

    def __init__(self, max_entries: int = 8):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: dict[str, V] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> V | None:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        with self._lock:
            # re-insert so an overwritten key counts as newest
            self._entries.pop(key, None)
            self._entries[key] = value
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                log.debug("graph cache evict", extra={"extra": {"key": oldest}})

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_build(self, key: str, builder: Callable[[], V]) -> tuple[V, bool]:
        """Return (value, cached). Concurrent misses may both build; last write wins."""
        hit = self._entries.get(key)
        if hit is not None:
            self.hits += 1
            return hit, True
        self.misses += 1
        value = builder()
        self.put(key, value)
        return value, False


@lru_cache(maxsize=8)
def load_bundle_from_path(file: str) -> DetectionInput:
    """Load a JSON detection bundle: {"polygon": ..., "nodes": [...], "ways": [...]}."""
    with open(file, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Unsupported bundle in {file!r}: expected a JSON object")
    return input_from_dict(data)
