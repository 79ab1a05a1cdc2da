"""Best-effort wrapper that turns per-call failures into recorded warnings."""

import logging

from discovery.core.deadline import Deadline
from discovery.core.errors import DeadlineExceeded, RetrievalError
from discovery.search.models import PaperRecord
from discovery.search.retrieval import PaperRetriever

logger = logging.getLogger(__name__)


class GuardedRetriever:
    """Issues provider calls on behalf of one operation, never raising.

    A failed call returns an empty result and is recorded in ``failures``.
    Once the deadline passes, ``timed_out`` is set and every later call
    returns its empty result without touching the provider.
    """

    def __init__(self, retriever: PaperRetriever, deadline: Deadline | None = None):
        self.retriever = retriever
        self.deadline = deadline
        self.succeeded = 0
        self.failures: list[str] = []
        self.timed_out = False

    def paper(self, paper_id: str) -> PaperRecord | None:
        return self._guarded(
            f"paper {paper_id}",
            lambda: self.retriever.fetch_paper(paper_id, self.deadline),
            None,
        )

    def citations(self, paper_id: str, limit: int) -> list[PaperRecord]:
        return self._guarded(
            f"citations of {paper_id}",
            lambda: self.retriever.fetch_citations(paper_id, limit, self.deadline),
            [],
        )

    def references(self, paper_id: str, limit: int) -> list[PaperRecord]:
        return self._guarded(
            f"references of {paper_id}",
            lambda: self.retriever.fetch_references(paper_id, limit, self.deadline),
            [],
        )

    def related(self, paper_id: str, limit: int) -> list[PaperRecord]:
        return self._guarded(
            f"related papers of {paper_id}",
            lambda: self.retriever.fetch_related(paper_id, limit, self.deadline),
            [],
        )

    @property
    def all_failed(self) -> bool:
        """True when calls were attempted and every one of them failed."""
        return self.succeeded == 0 and bool(self.failures) and not self.timed_out

    def _guarded(self, what: str, call, default):
        if self.timed_out:
            return default
        try:
            value = call()
        except DeadlineExceeded:
            logger.warning("Deadline reached during %s; keeping partial results", what)
            self.timed_out = True
            return default
        except RetrievalError as exc:
            logger.warning("%s failed, continuing without it: %s", what, exc)
            self.failures.append(f"{what}: {exc}")
            return default
        except Exception as exc:
            logger.exception("Unexpected provider error during %s", what)
            self.failures.append(f"{what}: {exc}")
            return default
        self.succeeded += 1
        return value
