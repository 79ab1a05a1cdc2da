"""In-memory literature provider backed by an explicit citation graph."""

import logging
from pathlib import Path

import yaml

from discovery.search.base import LiteratureProvider
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)


class InMemoryProvider(LiteratureProvider):
    """Serves papers and citation links held in memory.

    ``references`` maps a paper id to the ids it cites, in provider order;
    citations are derived from it. ``related`` maps a paper id to ids the
    provider deems similar.
    """

    name = "memory"

    def __init__(
        self,
        papers: list[PaperRecord] | None = None,
        references: dict[str, list[str]] | None = None,
        related: dict[str, list[str]] | None = None,
    ):
        self.papers: dict[str, PaperRecord] = {p.id: p for p in papers or []}
        self.references: dict[str, list[str]] = {k: list(v) for k, v in (references or {}).items()}
        self.related: dict[str, list[str]] = {k: list(v) for k, v in (related or {}).items()}

    # ── Corpus Building ──────────────────────────────────────

    def add_paper(self, paper: PaperRecord) -> None:
        self.papers[paper.id] = paper

    def add_citation(self, citing_id: str, cited_id: str) -> None:
        """Record that ``citing_id`` cites ``cited_id``."""
        refs = self.references.setdefault(citing_id, [])
        if cited_id not in refs:
            refs.append(cited_id)

    # ── LiteratureProvider ───────────────────────────────────

    def search(self, query: str, limit: int = 20) -> list[PaperRecord]:
        terms = query.lower().split()
        hits = [
            p for p in self.papers.values()
            if all(t in p.normalized_title for t in terms)
        ]
        return hits[:limit]

    def get_by_id(self, paper_id: str) -> PaperRecord | None:
        return self.papers.get(paper_id)

    def get_citations(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        citing = [pid for pid, refs in self.references.items() if paper_id in refs]
        return self._resolve(citing)[:limit]

    def get_references(self, paper_id: str, limit: int = 20) -> list[PaperRecord]:
        return self._resolve(self.references.get(paper_id, []))[:limit]

    def get_related(self, paper_id: str, limit: int = 10) -> list[PaperRecord]:
        return self._resolve(self.related.get(paper_id, []))[:limit]

    def _resolve(self, ids: list[str]) -> list[PaperRecord]:
        return [self.papers[i] for i in ids if i in self.papers]


def load_corpus(path: str | Path) -> InMemoryProvider:
    """Load an InMemoryProvider from a YAML corpus file.

    Expected layout::

        papers:
          - {id: P1, title: ..., year: 2020, citation_count: 50}
        references:
          P2: [P1]
        related:
          P1: [P4]
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    papers = [
        PaperRecord.model_validate({"source": "memory", **p})
        for p in raw.get("papers") or []
    ]
    provider = InMemoryProvider(
        papers=papers,
        references=raw.get("references") or {},
        related=raw.get("related") or {},
    )
    logger.info("Loaded corpus of %d papers from %s", len(papers), path)
    return provider
