"""Semantic Scholar Graph API provider."""

import logging
import os

import requests

from discovery.search.base import LiteratureProvider, NetworkFailure, signal_for_status
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

API_BASE = "https://api.semanticscholar.org/graph/v1"
RECOMMENDATIONS_URL = "https://api.semanticscholar.org/recommendations/v1/papers/forpaper"
REQUEST_TIMEOUT_SECONDS = 30

PAPER_FIELDS = ",".join(
    [
        "paperId",
        "title",
        "abstract",
        "year",
        "authors",
        "citationCount",
        "isOpenAccess",
        "openAccessPdf",
        "venue",
        "externalIds",
        "fieldsOfStudy",
        "url",
    ]
)


# ── Provider ─────────────────────────────────────────────────────────


class SemanticScholarProvider(LiteratureProvider):
    """Papers, citations, references and recommendations from Semantic Scholar.

    Ids may be Semantic Scholar paper ids or prefixed external ids such as
    ``DOI:10.1000/x``, ``ARXIV:2101.00001`` or ``PMID:123``.
    """

    name = "semantic_scholar"

    def __init__(self, api_key: str | None = None, session: requests.Session | None = None):
        self.session = session or requests.Session()
        api_key = api_key or os.getenv("SEMANTIC_SCHOLAR_API_KEY")
        if api_key:
            self.session.headers["x-api-key"] = api_key

    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        data = self._get(
            f"{API_BASE}/paper/search",
            {"query": query, "limit": min(limit, 100), "fields": PAPER_FIELDS},
        )
        return _parse_papers(data.get("data") if data else [])

    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        data = self._get(f"{API_BASE}/paper/{paper_id}", {"fields": PAPER_FIELDS})
        return _parse_paper(data) if data else None

    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        data = self._get(
            f"{API_BASE}/paper/{paper_id}/citations",
            {"limit": min(limit, 1000), "fields": PAPER_FIELDS},
        )
        return _parse_papers(d.get("citingPaper") for d in (data or {}).get("data") or [])

    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        data = self._get(
            f"{API_BASE}/paper/{paper_id}/references",
            {"limit": min(limit, 1000), "fields": PAPER_FIELDS},
        )
        return _parse_papers(d.get("citedPaper") for d in (data or {}).get("data") or [])

    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        data = self._get(
            f"{RECOMMENDATIONS_URL}/{paper_id}",
            {"limit": min(limit, 500), "fields": PAPER_FIELDS},
        )
        return _parse_papers((data or {}).get("recommendedPapers") or [])

    # ── HTTP ─────────────────────────────────────────────────

    def _get(self, url: str, params: dict) -> dict | None:
        """GET a JSON document; None on 404, provider signals on transient errors."""
        try:
            response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise NetworkFailure(f"Semantic Scholar unreachable: {exc}") from exc

        if response.status_code == 404:
            return None
        signal = signal_for_status(
            response.status_code, f"Semantic Scholar HTTP {response.status_code}"
        )
        if signal is not None:
            raise signal
        response.raise_for_status()
        return response.json()


# ── Paper → PaperRecord ──────────────────────────────────────────────


def _parse_papers(papers) -> list[PaperRecord]:
    records = []
    for paper in papers:
        rec = _parse_paper(paper) if paper else None
        if rec:
            records.append(rec)
    return records


def _parse_paper(paper: dict) -> PaperRecord | None:
    """Convert a Semantic Scholar paper dict into a PaperRecord."""
    paper_id = paper.get("paperId")
    title = paper.get("title")
    if not paper_id or not title:
        return None

    external = paper.get("externalIds") or {}
    pdf = paper.get("openAccessPdf") or {}
    pmid = external.get("PubMed")

    return PaperRecord(
        id=paper_id,
        source="semantic_scholar",
        doi=external.get("DOI"),
        pmid=str(pmid) if pmid else None,
        arxiv_id=external.get("ArXiv"),
        title=title,
        authors=[a["name"] for a in paper.get("authors") or [] if a.get("name")],
        year=paper.get("year"),
        venue=paper.get("venue") or None,
        abstract=paper.get("abstract"),
        citation_count=paper.get("citationCount") or 0,
        open_access=bool(paper.get("isOpenAccess")),
        pdf_url=pdf.get("url") or None,
        url=paper.get("url") or f"https://www.semanticscholar.org/paper/{paper_id}",
        categories=paper.get("fieldsOfStudy") or [],
    )
