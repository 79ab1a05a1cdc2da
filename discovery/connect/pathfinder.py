"""Connection pathfinder: how are two (or more) papers related?

Four strategies are tried for a pair of papers:

  1. citation BFS over citations and references
  2. co-citation bridge (a paper citing both)
  3. bibliographic-coupling bridge (a reference shared by both)
  4. direct semantic similarity

Each strategy is best-effort. Provider failures are logged, recorded as
warnings on the result, and never abort the search.
"""

import logging
from collections import Counter, deque
from datetime import datetime, timezone

from discovery.connect.models import (
    CommonGround,
    ConnectionPath,
    LiteratureConnection,
    MultiPaperConnection,
    PaperRelationship,
    PathEdge,
    YearWindow,
)
from discovery.core.deadline import Deadline
from discovery.core.errors import ProviderUnreachableError
from discovery.search.guarded import GuardedRetriever
from discovery.search.models import PaperRecord
from discovery.search.retrieval import PaperRetriever

logger = logging.getLogger(__name__)

MAX_PATHS = 5
BFS_FANOUT = 10
BRIDGE_CITER_LIMIT = 50
BRIDGE_REFERENCE_LIMIT = 100
SEMANTIC_LIMIT = 20
COMMON_REFERENCE_LIMIT = 50

CITATION_WEIGHT = 1.0
CO_CITATION_WEIGHT = 0.8
COUPLING_WEIGHT = 0.7
SEMANTIC_WEIGHT = 0.9
SIMILAR_STRENGTH = 0.7
MIN_COMMON_CITERS = 3

TITLE_CHARS = 40


# ── Pair Paths ───────────────────────────────────────────────────────


def find_paths(
    retriever: PaperRetriever,
    source_id: str,
    target_id: str,
    max_depth: int = 3,
    *,
    deadline: Deadline | None = None,
) -> LiteratureConnection:
    """Find up to a handful of paths between two papers, best first.

    When nothing connects the papers, ``shortest_path`` is the degenerate
    two-paper path with no edges and zero weight.
    """
    if max_depth < 1:
        raise ValueError("max_depth must be >= 1")

    calls = GuardedRetriever(retriever, deadline)
    paths = _citation_paths(calls, source_id, target_id, max_depth)
    for strategy in (_co_citation_path, _coupling_path, _semantic_path):
        path = strategy(calls, source_id, target_id)
        if path is not None:
            paths.append(path)

    if calls.all_failed:
        raise ProviderUnreachableError(
            f"All {len(calls.failures)} provider calls failed connecting {source_id} to {target_id}",
            calls.failures,
        )

    paths.sort(key=lambda p: (len(p.papers), -p.total_weight))
    shortest = paths[0] if paths else _empty_path(source_id, target_id)

    logger.info(
        "Found %d paths between %s and %s (shortest: %d papers)",
        len(paths),
        source_id,
        target_id,
        len(shortest.papers),
    )
    return LiteratureConnection(
        source_paper_id=source_id,
        target_paper_id=target_id,
        paths=paths,
        shortest_path=shortest,
        partial=calls.timed_out,
        warnings=calls.failures,
        created_at=datetime.now(timezone.utc),
    )


def find_shortest_path(
    retriever: PaperRetriever,
    source_id: str,
    target_id: str,
    max_depth: int = 3,
    *,
    deadline: Deadline | None = None,
) -> ConnectionPath | None:
    """Shortest pure citation path, or None if BFS finds nothing."""
    calls = GuardedRetriever(retriever, deadline)
    paths = _citation_paths(calls, source_id, target_id, max_depth)
    return paths[0] if paths else None


def explain_connection(retriever: PaperRetriever, path: ConnectionPath) -> str:
    """Render a path as a chain of short sentences joined by arrows."""
    if path.is_empty:
        return "No connection found between these papers."

    calls = GuardedRetriever(retriever)
    titles: dict[str, str] = {}

    def title(paper_id: str) -> str:
        if paper_id not in titles:
            paper = calls.paper(paper_id)
            titles[paper_id] = _truncate(paper.title if paper and paper.title else paper_id)
        return titles[paper_id]

    sentences = []
    previous = None
    for edge in path.edges:
        a, b = title(edge.source), title(edge.target)
        if edge.type == "cites":
            sentences.append(f'"{a}" cites "{b}"')
        elif edge.type == "cited_by":
            sentences.append(f'"{a}" is cited by "{b}"')
        elif edge.type == "co_citation":
            # Co-citation edges run from the citing paper to each co-cited paper
            if previous is not None and previous.type == "co_citation" and previous.source == edge.source:
                sentences.append(f'"{a}" also cites "{b}", so the two are co-cited')
            else:
                sentences.append(f'"{a}" cites "{b}"')
        elif edge.type == "bibliographic_coupling":
            sentences.append(f'"{a}" and "{b}" share references')
        elif edge.type == "semantic":
            sentences.append(f'"{a}" is semantically similar to "{b}"')
        previous = edge
    return " → ".join(sentences)


def _truncate(title: str) -> str:
    if len(title) <= TITLE_CHARS:
        return title
    return title[:TITLE_CHARS] + "..."


def _empty_path(source_id: str, target_id: str) -> ConnectionPath:
    return ConnectionPath(
        id="path-empty",
        papers=[source_id, target_id],
        edges=[],
        total_weight=0.0,
        type="citation",
    )


# ── Strategies ───────────────────────────────────────────────────────


def _citation_paths(
    calls: GuardedRetriever, source_id: str, target_id: str, max_depth: int
) -> list[ConnectionPath]:
    """Breadth-first search over citation links in both directions.

    The target is never marked visited, so several distinct simple paths
    can reach it. Papers at ``max_depth`` hops are not expanded.
    """
    paths: list[ConnectionPath] = []
    queue = deque([(source_id, [source_id], [])])
    visited: set[str] = set()

    while queue and len(paths) < MAX_PATHS:
        paper_id, trail, edges = queue.popleft()

        if paper_id == target_id:
            paths.append(
                ConnectionPath(
                    id=f"path-{len(paths)}",
                    papers=trail,
                    edges=edges,
                    total_weight=sum(e.weight for e in edges),
                    type="citation",
                )
            )
            continue
        if paper_id in visited or len(trail) - 1 >= max_depth:
            continue
        visited.add(paper_id)

        for citer in calls.citations(paper_id, BFS_FANOUT):
            if citer.id not in trail:
                edge = PathEdge(
                    source=citer.id,
                    target=paper_id,
                    type="cites",
                    weight=CITATION_WEIGHT,
                    explanation=f"{_truncate(citer.title)} cites this work",
                )
                queue.append((citer.id, trail + [citer.id], edges + [edge]))
        for ref in calls.references(paper_id, BFS_FANOUT):
            if ref.id not in trail:
                edge = PathEdge(
                    source=paper_id,
                    target=ref.id,
                    type="cites",
                    weight=CITATION_WEIGHT,
                    explanation=f"This work cites {_truncate(ref.title)}",
                )
                queue.append((ref.id, trail + [ref.id], edges + [edge]))

    return paths


def _most_cited(candidates: list[PaperRecord]) -> PaperRecord:
    return max(candidates, key=lambda p: p.citation_count)


def _co_citation_path(
    calls: GuardedRetriever, source_id: str, target_id: str
) -> ConnectionPath | None:
    source_citers = {p.id for p in calls.citations(source_id, BRIDGE_CITER_LIMIT)}
    common = [
        p for p in calls.citations(target_id, BRIDGE_CITER_LIMIT) if p.id in source_citers
    ]
    if not common:
        return None

    bridge = _most_cited(common)
    edges = [
        PathEdge(
            source=bridge.id,
            target=end,
            type="co_citation",
            weight=CO_CITATION_WEIGHT,
            explanation="Co-cited in the same work",
        )
        for end in (source_id, target_id)
    ]
    return ConnectionPath(
        id="path-cocitation",
        papers=[source_id, bridge.id, target_id],
        edges=edges,
        total_weight=2 * CO_CITATION_WEIGHT,
        type="co_citation",
    )


def _coupling_path(
    calls: GuardedRetriever, source_id: str, target_id: str
) -> ConnectionPath | None:
    source_refs = {p.id for p in calls.references(source_id, BRIDGE_REFERENCE_LIMIT)}
    shared = [
        p for p in calls.references(target_id, BRIDGE_REFERENCE_LIMIT) if p.id in source_refs
    ]
    if not shared:
        return None

    bridge = _most_cited(shared)
    edges = [
        PathEdge(
            source=end,
            target=bridge.id,
            type="cites",
            weight=COUPLING_WEIGHT,
            explanation="Both papers cite this foundational work",
        )
        for end in (source_id, target_id)
    ]
    return ConnectionPath(
        id="path-coupling",
        papers=[source_id, bridge.id, target_id],
        edges=edges,
        total_weight=2 * COUPLING_WEIGHT,
        type="bibliographic_coupling",
    )


def _semantic_path(
    calls: GuardedRetriever, source_id: str, target_id: str
) -> ConnectionPath | None:
    related = calls.related(source_id, SEMANTIC_LIMIT)
    if not any(p.id == target_id for p in related):
        return None
    return ConnectionPath(
        id="path-semantic",
        papers=[source_id, target_id],
        edges=[
            PathEdge(
                source=source_id,
                target=target_id,
                type="semantic",
                weight=SEMANTIC_WEIGHT,
                explanation="Semantically similar based on content",
            )
        ],
        total_weight=SEMANTIC_WEIGHT,
        type="semantic",
    )


# ── Multi-paper Common Ground ────────────────────────────────────────


def find_multi_paper_connections(
    retriever: PaperRetriever,
    paper_ids: list[str],
    *,
    deadline: Deadline | None = None,
) -> MultiPaperConnection:
    """Common ground, pairwise relationships and synthesis ideas for a paper set."""
    if len(paper_ids) < 2:
        raise ValueError("At least two paper ids are required")

    calls = GuardedRetriever(retriever, deadline)
    papers = []
    for paper_id in paper_ids:
        paper = calls.paper(paper_id)
        if paper is None:
            logger.info("Paper %s not found, leaving it out", paper_id)
        else:
            papers.append(paper)

    common = _common_ground(calls, papers)

    relationships = []
    for i, first in enumerate(papers):
        for second in papers[i + 1 :]:
            rel = _relationship(calls, first, second)
            if rel is not None:
                relationships.append(rel)

    if calls.all_failed:
        raise ProviderUnreachableError(
            f"All {len(calls.failures)} provider calls failed for papers {paper_ids}",
            calls.failures,
        )

    logger.info(
        "Compared %d papers: %d shared references, %d relationships",
        len(papers),
        len(common.shared_citations),
        len(relationships),
    )
    return MultiPaperConnection(
        papers=papers,
        common_ground=common,
        relationships=relationships,
        synthesis_opportunities=synthesis_opportunities(common, relationships),
        warnings=calls.failures,
    )


def _common_ground(calls: GuardedRetriever, papers: list[PaperRecord]) -> CommonGround:
    reference_lists = [calls.references(p.id, COMMON_REFERENCE_LIMIT) for p in papers]
    shared_citations = _intersection(reference_lists)

    topics = Counter()
    authors = Counter()
    for paper in papers:
        # Count each paper once per topic / author
        topics.update(list(dict.fromkeys(paper.keywords + paper.categories)))
        authors.update(list(dict.fromkeys(paper.authors)))

    years = [p.year for p in papers if p.year is not None]
    overlap = None
    if years and max(years) <= min(years):
        overlap = YearWindow(start=max(years), end=min(years))

    return CommonGround(
        shared_citations=shared_citations,
        shared_topics=[t for t, n in topics.items() if n >= 2],
        shared_authors=[a for a, n in authors.items() if n >= 2],
        time_overlap=overlap,
    )


def _intersection(lists: list[list[PaperRecord]]) -> list[PaperRecord]:
    """Papers present in every list, in first-list order."""
    if not lists:
        return []
    rest = [{p.id for p in lst} for lst in lists[1:]]
    seen = set()
    shared = []
    for paper in lists[0]:
        if paper.id not in seen and all(paper.id in ids for ids in rest):
            seen.add(paper.id)
            shared.append(paper)
    return shared


def _relationship(
    calls: GuardedRetriever, first: PaperRecord, second: PaperRecord
) -> PaperRelationship | None:
    """Strongest single relationship between two papers, checked in order."""
    a, b = _truncate(first.title), _truncate(second.title)

    if any(r.id == second.id for r in calls.references(first.id, BRIDGE_REFERENCE_LIMIT)):
        return PaperRelationship(
            paper1_id=first.id,
            paper2_id=second.id,
            relationship_type="cites",
            strength=1.0,
            description=f'"{a}" cites "{b}"',
        )
    if any(r.id == first.id for r in calls.references(second.id, BRIDGE_REFERENCE_LIMIT)):
        return PaperRelationship(
            paper1_id=first.id,
            paper2_id=second.id,
            relationship_type="cited_by",
            strength=1.0,
            description=f'"{a}" is cited by "{b}"',
        )

    first_citers = {c.id for c in calls.citations(first.id, BRIDGE_CITER_LIMIT)}
    common = [c for c in calls.citations(second.id, BRIDGE_CITER_LIMIT) if c.id in first_citers]
    if len(common) >= MIN_COMMON_CITERS:
        return PaperRelationship(
            paper1_id=first.id,
            paper2_id=second.id,
            relationship_type="co_cited",
            strength=min(1.0, len(common) / 10),
            description=f"Co-cited in {len(common)} works",
        )

    if any(r.id == second.id for r in calls.related(first.id, SEMANTIC_LIMIT)):
        return PaperRelationship(
            paper1_id=first.id,
            paper2_id=second.id,
            relationship_type="similar",
            strength=SIMILAR_STRENGTH,
            description="Semantically similar content",
        )
    return None


def synthesis_opportunities(
    common: CommonGround, relationships: list[PaperRelationship]
) -> list[str]:
    """Rule-based suggestions for how the papers could be synthesised."""
    ideas = []
    if common.shared_topics:
        ideas.append(
            f"These papers share {len(common.shared_topics)} common topics: "
            f"{', '.join(common.shared_topics[:3])}. A synthesis could unify these perspectives."
        )
    if len(common.shared_citations) > 3:
        ideas.append(
            f"All papers build on {len(common.shared_citations)} shared foundational works. "
            "A review could trace the evolution from these foundations."
        )
    direct = sum(1 for r in relationships if r.relationship_type == "cites")
    if direct:
        ideas.append(f"{direct} direct citation(s) indicate an evolution of ideas worth tracing.")
    if not ideas:
        ideas.append(
            "These papers represent distinct but potentially complementary approaches to the topic."
        )
    return ideas
