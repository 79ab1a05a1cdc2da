"""PubMed provider using Biopython's Entrez module."""

import logging
import os
import threading
import time
from urllib.error import HTTPError, URLError

from Bio import Entrez, Medline

from discovery.search.base import LiteratureProvider, NetworkFailure, signal_for_status
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

_RATE_LIMIT_DELAY = 0.34  # seconds between requests (NCBI < 3 req/s)

_LINK_CITED_IN = "pubmed_pubmed_citedin"
_LINK_REFS = "pubmed_pubmed_refs"
_LINK_SIMILAR = "pubmed_pubmed"


# ── Provider ─────────────────────────────────────────────────────────


class PubMedProvider(LiteratureProvider):
    """Citation links from NCBI ELink, records from EFetch MEDLINE.

    PubMed carries no citation counts, so records report zero and rely on
    merging with other sources for ranking.
    """

    name = "pubmed"

    def __init__(self, email: str | None = None, api_key: str | None = None):
        Entrez.email = email or os.getenv("NCBI_EMAIL")
        Entrez.api_key = api_key or os.getenv("NCBI_API_KEY")
        self._lock = threading.Lock()
        self._last_call = 0.0

    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        result = self._read(Entrez.esearch, db="pubmed", term=query, retmax=limit)
        return self._efetch(list(result["IdList"]))

    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        pmid = _strip_prefix(paper_id)
        records = self._efetch([pmid])
        return records[0] if records else None

    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        return self._efetch(self._elink(paper_id, _LINK_CITED_IN)[:limit])

    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        return self._efetch(self._elink(paper_id, _LINK_REFS)[:limit])

    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        pmid = _strip_prefix(paper_id)
        # The similarity link set lists the query paper itself first
        ids = [i for i in self._elink(paper_id, _LINK_SIMILAR) if i != pmid]
        return self._efetch(ids[:limit])

    # ── Entrez Wrappers ──────────────────────────────────────

    def _elink(self, paper_id: str, linkname: str) -> list[str]:
        result = self._read(
            Entrez.elink,
            dbfrom="pubmed",
            db="pubmed",
            id=_strip_prefix(paper_id),
            linkname=linkname,
        )
        ids: list[str] = []
        for linkset in result:
            for linkdb in linkset.get("LinkSetDb", []):
                if linkdb.get("LinkName") == linkname:
                    ids.extend(link["Id"] for link in linkdb.get("Link", []))
        return ids

    def _efetch(self, pmids: list[str]) -> list[PaperRecord]:
        """Fetch MEDLINE records for a batch of PMIDs, in the given order."""
        if not pmids:
            return []
        handle = self._entrez_call(
            Entrez.efetch,
            db="pubmed",
            id=",".join(pmids),
            rettype="medline",
            retmode="text",
        )
        try:
            records = [_parse_record(rec) for rec in Medline.parse(handle)]
        finally:
            handle.close()
        by_pmid = {r.pmid: r for r in records if r}
        return [by_pmid[p] for p in pmids if p in by_pmid]

    def _read(self, func, **kwargs):
        handle = self._entrez_call(func, **kwargs)
        try:
            return Entrez.read(handle)
        finally:
            handle.close()

    def _entrez_call(self, func, **kwargs):
        """Call an Entrez function under NCBI's rate limit.

        HTTP 429/5xx and connection errors become provider signals so the
        PaperRetriever can apply its retry policy.
        """
        with self._lock:
            wait = _RATE_LIMIT_DELAY - (time.monotonic() - self._last_call)
            if wait > 0:
                time.sleep(wait)
            self._last_call = time.monotonic()
        try:
            return func(**kwargs)
        except HTTPError as exc:
            signal = signal_for_status(exc.code, f"Entrez HTTP {exc.code}")
            if signal is not None:
                raise signal from exc
            raise
        except URLError as exc:
            raise NetworkFailure(f"Entrez unreachable: {exc.reason}") from exc


# ── Record Parser ────────────────────────────────────────────────────


def _strip_prefix(paper_id: str) -> str:
    """Accept "PMID:123" as well as bare "123"."""
    if paper_id.upper().startswith("PMID:"):
        return paper_id[5:]
    return paper_id


def _parse_record(rec: dict) -> PaperRecord | None:
    """Convert a MEDLINE record dict into a PaperRecord."""
    title = rec.get("TI")
    pmid = rec.get("PMID")
    if not title or not pmid:
        return None

    # Extract year from Date of Publication (DP) field, e.g. "2023 Jan"
    year = None
    dp = rec.get("DP", "")
    if dp:
        try:
            year = int(dp[:4])
        except (ValueError, IndexError):
            pass

    # DOI is in Article Identifier (AID) field, tagged with [doi]
    doi = None
    for aid in rec.get("AID", []):
        if aid.endswith("[doi]"):
            doi = aid.replace(" [doi]", "")
            break

    # PMC articles are free full text
    pmc = rec.get("PMC")

    return PaperRecord(
        id=pmid,
        source="pubmed",
        pmid=pmid,
        doi=doi,
        title=title,
        abstract=rec.get("AB"),
        authors=rec.get("AU", []),
        venue=rec.get("JT"),
        year=year,
        open_access=bool(pmc),
        url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
        keywords=rec.get("OT", []),
        categories=rec.get("MH", []),
    )
