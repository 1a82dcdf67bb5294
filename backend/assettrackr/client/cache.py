"""Read cache for the client façade.

Entries are keyed by ``(entity_kind, parent_id, signature)``. Reads go
through ``fetch``, which serves fresh entries from memory and otherwise
calls the loader with bounded exponential back-off. Client errors (4xx)
are never retried.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from assettrackr.client.datasource import ApiError, AssetFilters
from assettrackr.config import get_settings

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str | None, str]


def filter_signature(filters: AssetFilters | dict | None) -> str:
    """Canonical string for a filter set.

    Blank values are dropped and list values are sorted, so equal filters
    always produce the same signature regardless of ordering.
    """
    if filters is None:
        return ""
    if isinstance(filters, AssetFilters):
        filters = {"search": filters.search, "status": filters.status, "type": filters.type}
    canonical = {}
    for name, value in filters.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            value = sorted(str(v) for v in value if v)
        if value in (None, "", []):
            continue
        canonical[name] = value
    return json.dumps(canonical, sort_keys=True, separators=(",", ":")) if canonical else ""


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float
    stale_after: float


class QueryCache:
    def __init__(
        self,
        stale_seconds: float | None = None,
        max_retries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
    ):
        settings = get_settings()
        self.stale_seconds = settings.QUERY_STALE_SECONDS if stale_seconds is None else stale_seconds
        self.max_retries = settings.QUERY_MAX_RETRIES if max_retries is None else max_retries
        self.clock = clock
        self.sleep = sleep
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._entries: dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def key(entity_kind: str, parent_id: str | None = None, filters: AssetFilters | dict | None = None) -> CacheKey:
        return (entity_kind, parent_id, filter_signature(filters))

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set(self, key: CacheKey, value: Any, stale_after: float | None = None) -> None:
        self._entries[key] = CacheEntry(
            value=value,
            fetched_at=self.clock(),
            stale_after=self.stale_seconds if stale_after is None else stale_after,
        )

    def is_stale(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return True
        return self.clock() - entry.fetched_at >= entry.stale_after

    def invalidate(self, entity_kind: str, parent_id: str | None = None) -> int:
        """Drop every entry of *entity_kind* (for *parent_id*, when given).

        Returns the number of entries removed.
        """
        doomed = [
            k for k in self._entries
            if k[0] == entity_kind and (parent_id is None or k[1] == parent_id)
        ]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def fetch(
        self,
        key: CacheKey,
        loader: Callable[[], Any],
        stale_after: float | None = None,
        force: bool = False,
    ) -> Any:
        if not force and not self.is_stale(key):
            return self._entries[key].value
        value = self.load_with_retry(loader)
        self.set(key, value, stale_after)
        return value

    def load_with_retry(self, loader: Callable[[], Any]) -> Any:
        for attempt in range(self.max_retries + 1):
            try:
                return loader()
            except ApiError as exc:
                if exc.is_client_error or attempt >= self.max_retries:
                    raise
                wait = min(self.backoff_base * (2 ** attempt), self.backoff_max)
                logger.warning(
                    "Read failed (%s), retry %d/%d in %.1fs",
                    exc.message, attempt + 1, self.max_retries, wait,
                )
                self.sleep(wait)
