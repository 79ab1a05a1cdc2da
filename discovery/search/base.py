"""Literature Data Provider interface and the failure signals providers raise."""

from abc import ABC, abstractmethod

from discovery.search.models import PaperRecord


# ── Provider Signals ─────────────────────────────────────────────────


class ProviderSignal(Exception):
    """Transient failure reported by a provider; interpreted by the retriever."""


class RateLimited(ProviderSignal):
    """The provider asked us to slow down (HTTP 429 or equivalent)."""


class ServiceUnavailable(ProviderSignal):
    """The provider is temporarily unavailable (HTTP 502/503/504)."""


class NetworkFailure(ProviderSignal):
    """The provider could not be reached (connection reset, DNS, timeout)."""


def signal_for_status(status: int, message: str) -> ProviderSignal | None:
    """Map an HTTP status code to the matching signal, or None."""
    if status == 429:
        return RateLimited(message)
    if status in (502, 503, 504):
        return ServiceUnavailable(message)
    return None


# ── Provider Interface ───────────────────────────────────────────────


class LiteratureProvider(ABC):
    """A bibliographic data source.

    Implementations convert their own response shapes into PaperRecord and
    raise ProviderSignal subclasses for rate limiting, unavailability and
    network failures. Everything downstream depends only on this interface.
    """

    name: str = "provider"

    @abstractmethod
    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        """Search for papers matching a free-text query."""

    @abstractmethod
    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        """Return the paper with this id, or None if the provider has no match."""

    @abstractmethod
    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        """Papers that cite this paper (forward citations)."""

    @abstractmethod
    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        """Papers this paper cites (backward citations)."""

    @abstractmethod
    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        """Papers the provider considers semantically similar."""
