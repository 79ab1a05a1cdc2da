"""Citation network builder: seeds + config → CitationNetwork."""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from discovery.core.deadline import Deadline
from discovery.core.errors import ProviderUnreachableError
from discovery.core.network_config import NetworkConfig
from discovery.network.analytics import assemble_network, paginate_network
from discovery.network.models import CitationNetwork, NetworkEdge, PaginatedNetwork
from discovery.search.dedup import deduplicate
from discovery.search.guarded import GuardedRetriever
from discovery.search.models import PaperRecord
from discovery.search.retrieval import PaperRetriever

logger = logging.getLogger(__name__)

DIRECT_LIMIT = 20
HOP_EXPANSION = 5  # most-cited papers expanded per extra direct hop
CITER_LIMIT = 50
REFERENCE_LIMIT = 100
BRIDGE_SAMPLE = 10  # citers / references walked per seed
TOP_N = 10
SEMANTIC_LIMIT = 10

DIRECT_WEIGHT = 1.0
COUPLING_WEIGHT = 0.5


# ── Public API ───────────────────────────────────────────────────────


def build_network(
    retriever: PaperRetriever,
    seed_ids: list[str],
    config: NetworkConfig | None = None,
    *,
    deadline: Deadline | None = None,
    max_workers: int = 4,
) -> CitationNetwork:
    """Build a citation network around the seed papers.

    Provider failures for one seed or algorithm only remove that call's
    contribution. If the deadline passes, the network built so far is
    returned with ``partial=True``.
    """
    config = config or NetworkConfig()
    pool = _collect(retriever, seed_ids, config, deadline, max_workers)
    return assemble_network(
        pool.papers[: config.max_papers],
        pool.edges,
        seed_ids,
        pool.resolved_seed_ids,
        config,
        partial=pool.partial,
        warnings=pool.warnings,
    )


def build_network_page(
    retriever: PaperRetriever,
    seed_ids: list[str],
    config: NetworkConfig | None = None,
    *,
    page: int = 1,
    page_size: int = 100,
    deadline: Deadline | None = None,
    max_workers: int = 4,
) -> PaginatedNetwork:
    """Build the capped node pool and return one page of it."""
    config = config or NetworkConfig()
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    pool = _collect(retriever, seed_ids, config, deadline, max_workers)
    return paginate_network(
        pool.papers[: config.max_papers],
        pool.edges,
        seed_ids,
        pool.resolved_seed_ids,
        config,
        page=page,
        page_size=page_size,
        partial=pool.partial,
        warnings=pool.warnings,
    )


# ── Collection ───────────────────────────────────────────────────────


@dataclass
class _SeedResult:
    """Everything discovered from one seed."""

    requested_id: str
    calls: GuardedRetriever
    seed: PaperRecord | None = None
    papers: list[PaperRecord] = field(default_factory=list)
    edges: list[NetworkEdge] = field(default_factory=list)


@dataclass
class _Pool:
    papers: list[PaperRecord]  # filtered, ranked by citation count
    edges: list[NetworkEdge]
    resolved_seed_ids: list[str]
    partial: bool
    warnings: list[str]


def _collect(
    retriever: PaperRetriever,
    seed_ids: list[str],
    config: NetworkConfig,
    deadline: Deadline | None,
    max_workers: int,
) -> _Pool:
    if not seed_ids:
        raise ValueError("At least one seed paper id is required")

    logger.info(
        "Building network from %d seeds with %s", len(seed_ids), ", ".join(config.algorithms)
    )

    workers = max(1, min(max_workers, len(seed_ids)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(
            executor.map(lambda sid: _explore_seed(retriever, sid, config, deadline), seed_ids)
        )

    failures = [f for r in results for f in r.calls.failures]
    timed_out = any(r.calls.timed_out for r in results)
    if all(r.calls.all_failed for r in results):
        raise ProviderUnreachableError(
            f"All {len(failures)} provider calls failed for seeds {seed_ids}", failures
        )

    # Seeds first so a seed keeps its own id when merged with a duplicate
    discovered = [r.seed for r in results if r.seed] + [p for r in results for p in r.papers]
    # The same provider record is often rediscovered; merge each one once
    records: dict[tuple[str, str], PaperRecord] = {}
    for paper in discovered:
        records.setdefault((paper.source, paper.id), paper)
    dedup = deduplicate(list(records.values()))
    aliases = dedup.alias_map()

    resolved = list(dict.fromkeys(aliases[r.seed.id] for r in results if r.seed))
    dropped = [r.requested_id for r in results if r.seed is None]
    if dropped:
        logger.info("Seeds not found by %s: %s", retriever.provider.name, ", ".join(dropped))

    edges = _remap_edges([e for r in results for e in r.edges], aliases)

    kept = [p for p in dedup.deduplicated if _passes_filters(p, config)]
    kept.sort(key=lambda p: p.citation_count, reverse=True)

    logger.info(
        "Collected %d unique papers (%d after filters), %d edges",
        len(dedup.deduplicated),
        len(kept),
        len(edges),
    )
    return _Pool(
        papers=kept,
        edges=edges,
        resolved_seed_ids=resolved,
        partial=timed_out,
        warnings=failures,
    )


def _passes_filters(paper: PaperRecord, config: NetworkConfig) -> bool:
    if paper.citation_count < config.min_citations:
        return False
    if not config.year_range.contains(paper.year):
        return False
    if config.only_open_access and not paper.open_access:
        return False
    return True


def _remap_edges(edges: list[NetworkEdge], aliases: dict[str, str]) -> list[NetworkEdge]:
    """Point edges at canonical ids, dropping self-loops and repeats.

    Overlapping hops rediscover the same link, so only the first edge of a
    given (source, target, type) is kept.
    """
    remapped = []
    seen: set[tuple[str, str, str]] = set()
    for edge in edges:
        source = aliases.get(edge.source, edge.source)
        target = aliases.get(edge.target, edge.target)
        if source == target or (source, target, edge.type) in seen:
            continue
        seen.add((source, target, edge.type))
        if (source, target) != (edge.source, edge.target):
            edge = edge.model_copy(update={"source": source, "target": target})
        remapped.append(edge)
    return remapped


# ── Per-seed Exploration ─────────────────────────────────────────────


def _explore_seed(
    retriever: PaperRetriever,
    requested_id: str,
    config: NetworkConfig,
    deadline: Deadline | None,
) -> _SeedResult:
    result = _SeedResult(requested_id=requested_id, calls=GuardedRetriever(retriever, deadline))

    result.seed = result.calls.paper(requested_id)
    if result.seed is None:
        return result

    if config.uses("direct"):
        _add_direct_citations(result, config.depth)
    if config.uses("co_citation"):
        _add_co_citations(result)
    if config.uses("bibliographic_coupling"):
        _add_bibliographic_coupling(result)
    if config.uses("semantic"):
        _add_semantic(result)

    logger.info(
        "Seed %s: %d papers, %d edges, %d failed calls",
        requested_id,
        len(result.papers),
        len(result.edges),
        len(result.calls.failures),
    )
    return result


def _add_direct_citations(result: _SeedResult, depth: int) -> None:
    calls = result.calls
    frontier = [result.seed]
    seen = {result.seed.id}
    for _ in range(depth):
        discovered: list[PaperRecord] = []
        for paper in frontier:
            for citer in calls.citations(paper.id, DIRECT_LIMIT):
                result.edges.append(
                    NetworkEdge(source=citer.id, target=paper.id, type="cites", weight=DIRECT_WEIGHT)
                )
                discovered.append(citer)
            for ref in calls.references(paper.id, DIRECT_LIMIT):
                result.edges.append(
                    NetworkEdge(source=paper.id, target=ref.id, type="cites", weight=DIRECT_WEIGHT)
                )
                discovered.append(ref)
        result.papers.extend(discovered)

        fresh = []
        for p in discovered:
            if p.id not in seen:
                seen.add(p.id)
                fresh.append(p)
        frontier = sorted(fresh, key=lambda p: p.citation_count, reverse=True)[:HOP_EXPANSION]
        if not frontier:
            break


def _add_co_citations(result: _SeedResult) -> None:
    """Papers cited alongside the seed by the papers that cite it."""
    seed, calls = result.seed, result.calls
    tally: Counter[str] = Counter()
    records: dict[str, PaperRecord] = {}
    for citer in calls.citations(seed.id, CITER_LIMIT)[:BRIDGE_SAMPLE]:
        for ref in calls.references(citer.id, REFERENCE_LIMIT):
            if ref.id != seed.id:
                tally[ref.id] += 1
                records.setdefault(ref.id, ref)
    _add_top(result, tally, records, "co_citation")


def _add_bibliographic_coupling(result: _SeedResult) -> None:
    """Papers that share references with the seed."""
    seed, calls = result.seed, result.calls
    tally: Counter[str] = Counter()
    records: dict[str, PaperRecord] = {}
    for ref in calls.references(seed.id, REFERENCE_LIMIT)[:BRIDGE_SAMPLE]:
        for citer in calls.citations(ref.id, CITER_LIMIT):
            if citer.id != seed.id:
                tally[citer.id] += 1
                records.setdefault(citer.id, citer)
    _add_top(result, tally, records, "bibliographic_coupling")


def _add_top(
    result: _SeedResult,
    tally: Counter,
    records: dict[str, PaperRecord],
    edge_type: str,
) -> None:
    # Stable sort: equal tallies keep provider return order
    ranked = sorted(tally.items(), key=lambda kv: kv[1], reverse=True)[:TOP_N]
    for paper_id, _ in ranked:
        result.papers.append(records[paper_id])
        result.edges.append(
            NetworkEdge(source=result.seed.id, target=paper_id, type=edge_type, weight=COUPLING_WEIGHT)
        )


def _add_semantic(result: _SeedResult) -> None:
    seed = result.seed
    related = [p for p in result.calls.related(seed.id, SEMANTIC_LIMIT) if p.id != seed.id]
    n = len(related)
    for rank, paper in enumerate(related):
        result.papers.append(paper)
        result.edges.append(
            NetworkEdge(source=seed.id, target=paper.id, type="semantic", weight=1 - rank / n)
        )
