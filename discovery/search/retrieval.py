"""Cached, retrying access to a literature data provider."""

import logging
import time
from typing import Callable

from discovery.core.deadline import Deadline
from discovery.core.errors import (
    DeadlineExceeded,
    NetworkError,
    RateLimitError,
    RetrievalError,
    ServiceUnavailableError,
)
from discovery.search.base import (
    LiteratureProvider,
    NetworkFailure,
    ProviderSignal,
    RateLimited,
    ServiceUnavailable,
)
from discovery.search.cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS, ResponseCache
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

_BASE_DELAY_MS = 2000
_MAX_DELAY_MS = 30000

# Retries allowed per signal type (the first call is not a retry)
_RETRY_LIMITS: dict[type[ProviderSignal], int] = {
    RateLimited: 3,
    ServiceUnavailable: 2,
    NetworkFailure: 3,
}

_EXHAUSTED_ERRORS: dict[type[ProviderSignal], type[RetrievalError]] = {
    RateLimited: RateLimitError,
    ServiceUnavailable: ServiceUnavailableError,
    NetworkFailure: NetworkError,
}


def backoff_delay(retry: int) -> float:
    """Seconds to wait before retry number ``retry`` (1-based): 4, 8, 16 ... capped at 30."""
    return min(_BASE_DELAY_MS * 2**retry, _MAX_DELAY_MS) / 1000


# ── Retriever ────────────────────────────────────────────────────────


class PaperRetriever:
    """Resilience layer in front of one LiteratureProvider.

    Every call type has its own ResponseCache. Misses go to the provider
    through a bounded retry loop; exhausted retries raise a typed
    RetrievalError subclass.
    """

    def __init__(
        self,
        provider: LiteratureProvider,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self._sleep = sleep
        self._caches = {
            name: ResponseCache(name, ttl=ttl, max_entries=max_entries, clock=clock)
            for name in ("paper", "citations", "references", "related", "search")
        }

    # ── Public API ───────────────────────────────────────────

    def fetch_paper(self, paper_id: str, deadline: Deadline | None = None) -> PaperRecord | None:
        cache = self._caches["paper"]
        cached = cache.get(paper_id)
        if cached is not None:
            return cached
        paper = self._call(
            f"get_by_id({paper_id})",
            lambda: self.provider.get_by_id(paper_id),
            deadline,
        )
        # Misses are not cached so a later lookup can still find the paper
        if paper is not None:
            cache.set(paper_id, paper)
        return paper

    def fetch_citations(
        self, paper_id: str, limit: int = 20, deadline: Deadline | None = None
    ) -> list[PaperRecord]:
        return self._cached_list(
            "citations",
            f"{paper_id}:{limit}",
            lambda: self.provider.get_citations(paper_id, limit),
            deadline,
        )

    def fetch_references(
        self, paper_id: str, limit: int = 20, deadline: Deadline | None = None
    ) -> list[PaperRecord]:
        return self._cached_list(
            "references",
            f"{paper_id}:{limit}",
            lambda: self.provider.get_references(paper_id, limit),
            deadline,
        )

    def fetch_related(
        self, paper_id: str, limit: int = 10, deadline: Deadline | None = None
    ) -> list[PaperRecord]:
        return self._cached_list(
            "related",
            f"{paper_id}:{limit}",
            lambda: self.provider.get_related(paper_id, limit),
            deadline,
        )

    def search(
        self, query: str, limit: int = 20, deadline: Deadline | None = None
    ) -> list[PaperRecord]:
        return self._cached_list(
            "search",
            f"{query}:{limit}",
            lambda: self.provider.search(query, limit),
            deadline,
        )

    def clear_cache(self) -> None:
        """Drop every cached response (tests, forced refresh)."""
        for cache in self._caches.values():
            cache.clear()

    def cache_stats(self) -> dict[str, dict]:
        return {name: cache.stats() for name, cache in self._caches.items()}

    # ── Internals ────────────────────────────────────────────

    def _cached_list(self, cache_name, key, fetch, deadline) -> list[PaperRecord]:
        cache = self._caches[cache_name]
        cached = cache.get(key)
        if cached is not None:
            return cached
        records = list(self._call(f"{cache_name}({key})", fetch, deadline) or [])
        cache.set(key, records)
        return records

    def _call(self, description: str, fetch, deadline: Deadline | None):
        """Run one provider call with bounded retry and backoff."""
        attempt = 0
        while True:
            if deadline is not None:
                deadline.check(description)
            try:
                return fetch()
            except ProviderSignal as exc:
                signal_type = _signal_type(exc)
                limit = _RETRY_LIMITS[signal_type]
                if attempt >= limit:
                    logger.error(
                        "%s %s failed after %d attempts: %s",
                        self.provider.name,
                        description,
                        attempt + 1,
                        exc,
                    )
                    raise _EXHAUSTED_ERRORS[signal_type](
                        f"{self.provider.name} {description}: {exc}",
                        call=description,
                        attempts=attempt + 1,
                    ) from exc

                attempt += 1
                wait = backoff_delay(attempt)
                if deadline is not None and wait >= deadline.remaining():
                    raise DeadlineExceeded(
                        f"Deadline would expire during retry backoff of {description}"
                    ) from exc
                logger.warning(
                    "%s %s: %s (retry %d/%d in %.0fs)",
                    self.provider.name,
                    description,
                    exc,
                    attempt,
                    limit,
                    wait,
                )
                self._sleep(wait)


def _signal_type(exc: ProviderSignal) -> type[ProviderSignal]:
    for signal_type in _RETRY_LIMITS:
        if isinstance(exc, signal_type):
            return signal_type
    # Bare ProviderSignal: treat as a network-level failure
    return NetworkFailure
