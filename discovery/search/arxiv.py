"""arXiv provider using the arxiv library."""

import logging
import re

import arxiv
import requests

from discovery.search.base import (
    LiteratureProvider,
    NetworkFailure,
    ServiceUnavailable,
    signal_for_status,
)
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

_VERSION_SUFFIX = re.compile(r"v\d+$")


# ── Provider ─────────────────────────────────────────────────────────


class ArxivProvider(LiteratureProvider):
    """Preprint search and lookup on arXiv.

    arXiv exposes no citation graph and no related-paper endpoint, so
    citations, references and related papers are always empty. Records
    still carry an ``arxiv_id`` (and a DOI when the author supplied one),
    which lets them merge with the same paper from other sources.
    """

    name = "arxiv"

    def __init__(self, client: arxiv.Client | None = None):
        # Retrying is the PaperRetriever's job
        self.client = client or arxiv.Client(page_size=100, delay_seconds=3.0, num_retries=0)

    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        search = arxiv.Search(
            query=query,
            max_results=limit,
            sort_by=arxiv.SortCriterion.Relevance,
        )
        return _parse_results(self._request(search))

    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        try:
            results = self._request(arxiv.Search(id_list=[_strip_prefix(paper_id)], max_results=1))
        except arxiv.HTTPError as exc:
            # arXiv answers malformed or unknown ids with 400
            if exc.status in (400, 404):
                return None
            raise
        records = _parse_results(results)
        return records[0] if records else None

    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        return []

    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        return []

    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        return []

    # ── Request Wrapper ──────────────────────────────────────

    def _request(self, search: arxiv.Search) -> list:
        """Run a search to completion, turning transient failures into signals."""
        try:
            return list(self.client.results(search))
        except arxiv.HTTPError as exc:
            signal = signal_for_status(exc.status, f"arXiv HTTP {exc.status}")
            if signal is not None:
                raise signal from exc
            raise
        except arxiv.UnexpectedEmptyPageError as exc:
            raise ServiceUnavailable(f"arXiv returned an empty page: {exc}") from exc
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise NetworkFailure(f"arXiv unreachable: {exc}") from exc


# ── Result → PaperRecord ─────────────────────────────────────────────


def _strip_prefix(paper_id: str) -> str:
    if paper_id.lower().startswith("arxiv:"):
        return paper_id[len("arxiv:"):]
    return paper_id


def _short_id(entry_id: str) -> str:
    """``http://arxiv.org/abs/2101.00001v2`` → ``2101.00001``."""
    return _VERSION_SUFFIX.sub("", entry_id.split("/abs/")[-1])


def _parse_results(results) -> list[PaperRecord]:
    records = []
    for result in results:
        rec = _parse_result(result)
        if rec:
            records.append(rec)
    return records


def _parse_result(result) -> PaperRecord | None:
    """Convert an ``arxiv.Result`` into a PaperRecord."""
    title = " ".join((result.title or "").split())
    if not result.entry_id or not title:
        return None

    arxiv_id = _short_id(result.entry_id)
    published = result.published
    return PaperRecord(
        id=arxiv_id,
        source="arxiv",
        doi=result.doi or None,
        arxiv_id=arxiv_id,
        title=title,
        authors=[a.name for a in result.authors or []],
        year=published.year if published else None,
        venue=result.journal_ref or None,
        abstract=" ".join((result.summary or "").split()) or None,
        open_access=True,
        pdf_url=result.pdf_url or None,
        categories=list(result.categories or []),
        url=f"https://arxiv.org/abs/{arxiv_id}",
    )
