"""OpenAlex provider using the pyalex library."""

import logging
import os

import pyalex
import requests
from pyalex import Works, invert_abstract

from discovery.search.base import (
    LiteratureProvider,
    NetworkFailure,
    ServiceUnavailable,
    signal_for_status,
)
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

_OPENALEX_PREFIX = "https://openalex.org/"
_BATCH_SIZE = 50


# ── Provider ─────────────────────────────────────────────────────────


class OpenAlexProvider(LiteratureProvider):
    """Citation graph access through the OpenAlex Works API."""

    name = "openalex"

    def __init__(self, email: str | None = None):
        pyalex.config.email = email or os.getenv("OPENALEX_EMAIL")
        # Retrying is the PaperRetriever's job
        pyalex.config.max_retries = 0
        pyalex.config.retry_http_codes = []

    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        works = _request(lambda: Works().search(query).get(per_page=min(limit, 200)))
        return _parse_works(works)

    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        work = self._get_work(paper_id)
        return _parse_work(work) if work else None

    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        wid = _short_id(paper_id)
        works = _request(lambda: Works().filter(cites=wid).get(per_page=min(limit, 200)))
        return _parse_works(works)[:limit]

    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        work = self._get_work(paper_id)
        if not work:
            return []
        return self._fetch_many(work.get("referenced_works") or [], limit)

    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        work = self._get_work(paper_id)
        if not work:
            return []
        return self._fetch_many(work.get("related_works") or [], limit)

    # ── Helpers ──────────────────────────────────────────────

    def _get_work(self, paper_id: str) -> dict | None:
        key = paper_id
        if paper_id.lower().startswith("10."):
            key = f"https://doi.org/{paper_id}"
        try:
            return _request(lambda: Works()[key])
        except requests.HTTPError as exc:
            if exc.response is not None and exc.response.status_code == 404:
                return None
            raise

    def _fetch_many(self, work_urls: list[str], limit: int) -> list[PaperRecord]:
        """Fetch works by id in batches, preserving the given order."""
        ids = [_short_id(u) for u in work_urls[:limit]]
        found: dict[str, PaperRecord] = {}
        for start in range(0, len(ids), _BATCH_SIZE):
            batch = ids[start : start + _BATCH_SIZE]
            works = _request(
                lambda: Works().filter(openalex="|".join(batch)).get(per_page=len(batch))
            )
            for rec in _parse_works(works):
                found[rec.id] = rec
        return [found[i] for i in ids if i in found]


# ── Request Wrapper ──────────────────────────────────────────────────


def _request(call):
    """Run a pyalex call, turning transient HTTP failures into provider signals."""
    try:
        return call()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else 0
        signal = signal_for_status(status, f"OpenAlex HTTP {status}")
        if signal is not None:
            raise signal from exc
        raise
    except requests.exceptions.RetryError as exc:
        raise ServiceUnavailable(f"OpenAlex retry error: {exc}") from exc
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise NetworkFailure(f"OpenAlex unreachable: {exc}") from exc


# ── Abstract Reconstruction ──────────────────────────────────────────


def reconstruct_abstract(inverted_index: dict | None) -> str | None:
    """Reassemble full abstract text from an OpenAlex inverted index.

    OpenAlex stores abstracts as {word: [position, ...]} dicts.
    Returns None if the inverted index is empty or None.
    """
    if not inverted_index:
        return None
    return invert_abstract(inverted_index)


# ── Work → PaperRecord ───────────────────────────────────────────────


def _short_id(work_id: str) -> str:
    return work_id.replace(_OPENALEX_PREFIX, "")


def _parse_works(works) -> list[PaperRecord]:
    records = []
    for work in works or []:
        rec = _parse_work(work)
        if rec:
            records.append(rec)
    return records


def _parse_work(work: dict) -> PaperRecord | None:
    """Convert an OpenAlex Work dict into a PaperRecord."""
    title = work.get("title") or work.get("display_name")
    if not title or not work.get("id"):
        return None

    # Extract PMID from ids dict (e.g. "https://pubmed.ncbi.nlm.nih.gov/12345678")
    ids = work.get("ids") or {}
    pmid = (ids.get("pmid") or "").replace("https://pubmed.ncbi.nlm.nih.gov/", "") or None

    authors = []
    for authorship in work.get("authorships") or []:
        author = authorship.get("author") or {}
        name = author.get("display_name")
        if name:
            authors.append(name)

    primary = work.get("primary_location") or {}
    source = primary.get("source") or {}
    best_oa = work.get("best_oa_location") or {}
    open_access = work.get("open_access") or {}

    return PaperRecord(
        id=_short_id(work["id"]),
        source="openalex",
        doi=work.get("doi"),
        pmid=pmid,
        title=title,
        authors=authors,
        year=work.get("publication_year"),
        venue=source.get("display_name"),
        abstract=reconstruct_abstract(work.get("abstract_inverted_index")),
        citation_count=work.get("cited_by_count") or 0,
        open_access=bool(open_access.get("is_oa")),
        pdf_url=best_oa.get("pdf_url"),
        url=work["id"],
        keywords=[k["display_name"] for k in work.get("keywords") or [] if k.get("display_name")],
        categories=[t["display_name"] for t in work.get("topics") or [] if t.get("display_name")],
    )
