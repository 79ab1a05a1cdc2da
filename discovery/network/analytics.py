"""Network analytics: metrics, clustering, layout, quality and pagination."""

import logging
import math
import re
import uuid
from collections import Counter, deque
from datetime import datetime, timezone

from discovery.core.network_config import NetworkConfig
from discovery.network.models import (
    CitationNetwork,
    NetworkCluster,
    NetworkEdge,
    NetworkLayout,
    NetworkMetrics,
    NetworkNode,
    NetworkQuality,
    PaginatedNetwork,
    PaginationInfo,
)
from discovery.search.models import PaperRecord

logger = logging.getLogger(__name__)

SEED_COLOR = "#8b5cf6"

SPARSE_DENSITY = 0.05
SPARSE_AVG_DEGREE = 2.0
MIN_LARGEST_COMPONENT_SHARE = 0.5

_LAYOUT_ITERATIONS = 5
_LAYOUT_RADIUS = 100.0
_REPULSION = 100.0
_ATTRACTION = 0.01
_STEP = 0.1

_WORD_RE = re.compile(r"[^a-z0-9\s]")


# ── Adjacency ────────────────────────────────────────────────────────


def build_adjacency(paper_ids: list[str], edges: list[NetworkEdge]) -> dict[str, set[str]]:
    """Undirected neighbour sets; edges to unknown ids and self-loops are ignored."""
    adj: dict[str, set[str]] = {pid: set() for pid in paper_ids}
    for edge in edges:
        if edge.source == edge.target:
            continue
        if edge.source in adj and edge.target in adj:
            adj[edge.source].add(edge.target)
            adj[edge.target].add(edge.source)
    return adj


def connected_components(adj: dict[str, set[str]]) -> list[list[str]]:
    """Components of the undirected graph, found by breadth-first traversal."""
    visited: set[str] = set()
    components: list[list[str]] = []
    for start in adj:
        if start in visited:
            continue
        component = []
        queue = deque([start])
        visited.add(start)
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in adj[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        components.append(component)
    return components


# ── Metrics ──────────────────────────────────────────────────────────


def compute_metrics(paper_ids: list[str], edges: list[NetworkEdge]) -> NetworkMetrics:
    """Density, average degree, clustering coefficient and components.

    Density counts distinct connected pairs, so several typed edges between
    the same two papers count once.
    """
    adj = build_adjacency(paper_ids, edges)
    n = len(adj)

    pairs = sum(len(neighbors) for neighbors in adj.values()) // 2
    max_pairs = n * (n - 1) / 2
    density = pairs / max_pairs if max_pairs > 0 else 0.0

    avg_degree = sum(len(nb) for nb in adj.values()) / n if n else 0.0

    coefficients = []
    for neighbors in adj.values():
        k = len(neighbors)
        if k < 2:
            continue
        nb = list(neighbors)
        triangles = sum(
            1
            for i in range(k)
            for j in range(i + 1, k)
            if nb[j] in adj[nb[i]]
        )
        coefficients.append(triangles / (k * (k - 1) / 2))
    avg_clustering = sum(coefficients) / len(coefficients) if coefficients else 0.0

    components = connected_components(adj)

    return NetworkMetrics(
        density=density,
        avg_degree=avg_degree,
        avg_clustering=avg_clustering,
        components=len(components),
        largest_component_size=max((len(c) for c in components), default=0),
    )


# ── Clustering ───────────────────────────────────────────────────────


def cluster_network(
    papers: list[PaperRecord],
    positions: dict[str, tuple[float, float]] | None = None,
) -> list[NetworkCluster]:
    """Group papers by publication decade.

    Decades are a cheap stand-in for topical communities. Each cluster gets up
    to five keywords from its members' titles and the centroid of their
    positions.
    """
    positions = positions or {}
    buckets: dict[str, list[PaperRecord]] = {}
    for paper in papers:
        label = f"{paper.year // 10 * 10}s" if paper.year else "Unknown"
        buckets.setdefault(label, []).append(paper)

    clusters = []
    for i, (label, members) in enumerate(buckets.items()):
        placed = [positions[p.id] for p in members if p.id in positions]
        center_x = sum(x for x, _ in placed) / len(placed) if placed else 0.0
        center_y = sum(y for _, y in placed) / len(placed) if placed else 0.0
        clusters.append(
            NetworkCluster(
                id=f"cluster-{i}",
                label=label,
                keywords=extract_keywords(" ".join(p.title for p in members))[:5],
                paper_ids=[p.id for p in members],
                center_x=center_x,
                center_y=center_y,
                color=f"hsl({((i + 1) * 137) % 360}, 70%, 50%)",
            )
        )
    return clusters


def extract_keywords(text: str) -> list[str]:
    """Words longer than four letters, most frequent first."""
    words = [w for w in _WORD_RE.sub("", text.lower()).split() if len(w) > 4]
    return [w for w, _ in Counter(words).most_common()]


# ── Layout ───────────────────────────────────────────────────────────


def layout_positions(
    paper_ids: list[str], edges: list[NetworkEdge]
) -> dict[str, tuple[float, float]]:
    """Force-directed layout: five fixed iterations, no convergence check.

    Nodes start evenly spaced on a circle; every pair repels with 100/d² and
    every edge pulls its endpoints together with 0.01·d.
    """
    n = len(paper_ids)
    pos = {
        pid: [
            math.cos(2 * math.pi * i / n) * _LAYOUT_RADIUS,
            math.sin(2 * math.pi * i / n) * _LAYOUT_RADIUS,
        ]
        for i, pid in enumerate(paper_ids)
    }

    for _ in range(_LAYOUT_ITERATIONS):
        forces = {pid: [0.0, 0.0] for pid in paper_ids}

        for a in paper_ids:
            for b in paper_ids:
                if a == b:
                    continue
                dx = pos[a][0] - pos[b][0]
                dy = pos[a][1] - pos[b][1]
                dist = math.hypot(dx, dy) or 1.0
                force = _REPULSION / (dist * dist)
                forces[a][0] += dx / dist * force
                forces[a][1] += dy / dist * force

        for edge in edges:
            if edge.source not in pos or edge.target not in pos:
                continue
            dx = pos[edge.target][0] - pos[edge.source][0]
            dy = pos[edge.target][1] - pos[edge.source][1]
            dist = math.hypot(dx, dy) or 1.0
            force = dist * _ATTRACTION
            forces[edge.source][0] += dx / dist * force
            forces[edge.source][1] += dy / dist * force
            forces[edge.target][0] -= dx / dist * force
            forces[edge.target][1] -= dy / dist * force

        for pid in paper_ids:
            pos[pid][0] += forces[pid][0] * _STEP
            pos[pid][1] += forces[pid][1] * _STEP

    return {pid: (xy[0], xy[1]) for pid, xy in pos.items()}


def distances_from_seeds(adj: dict[str, set[str]], seed_ids: list[str]) -> dict[str, int]:
    """Multi-source BFS hop counts; unreachable nodes get -1."""
    dist = {pid: -1 for pid in adj}
    queue = deque()
    for seed in seed_ids:
        if seed in adj and dist[seed] == -1:
            dist[seed] = 0
            queue.append(seed)
    while queue:
        current = queue.popleft()
        for neighbor in adj[current]:
            if dist[neighbor] == -1:
                dist[neighbor] = dist[current] + 1
                queue.append(neighbor)
    return dist


# ── Quality ──────────────────────────────────────────────────────────


def assess_quality(
    metrics: NetworkMetrics,
    node_count: int,
    edge_count: int,
    config: NetworkConfig | None = None,
) -> NetworkQuality:
    """Flag empty or sparse networks and suggest how to improve them."""
    is_empty = node_count == 0
    is_sparse = is_empty or (
        metrics.density < SPARSE_DENSITY
        or metrics.avg_degree < SPARSE_AVG_DEGREE
        or metrics.largest_component_size < MIN_LARGEST_COMPONENT_SHARE * node_count
    )

    suggestions: list[str] = []
    if is_sparse:
        suggestions = _improvement_suggestions(is_empty, metrics, node_count, config)

    return NetworkQuality(
        node_count=node_count,
        edge_count=edge_count,
        density=metrics.density,
        avg_degree=metrics.avg_degree,
        largest_component_size=metrics.largest_component_size,
        is_sparse=is_sparse,
        is_empty=is_empty,
        suggestions=suggestions,
    )


def _improvement_suggestions(
    is_empty: bool,
    metrics: NetworkMetrics,
    node_count: int,
    config: NetworkConfig | None,
) -> list[str]:
    suggestions = []
    if is_empty:
        suggestions.append(
            "No papers matched. Check the seed paper ids and add more seed papers."
        )
    else:
        suggestions.append("Add more seed papers from the same research area.")

    if config is None:
        return suggestions

    if not config.uses("semantic"):
        suggestions.append("Enable semantic similarity to connect papers without shared citations.")
    missing = [a for a in ("direct", "co_citation", "bibliographic_coupling") if not config.uses(a)]
    if missing:
        suggestions.append(f"Try additional algorithms: {', '.join(missing)}.")
    if config.min_citations > 0:
        suggestions.append(
            f"Lower the minimum citation count (currently {config.min_citations})."
        )
    if config.only_open_access:
        suggestions.append("Include papers that are not open access.")
    if config.year_range.end - config.year_range.start < 20:
        suggestions.append("Widen the publication year range.")
    if node_count and metrics.components > 1:
        suggestions.append(
            f"The network splits into {metrics.components} disconnected groups; "
            "seeds from a single topic give a more connected graph."
        )
    return suggestions


# ── Assembly ─────────────────────────────────────────────────────────


def assemble_network(
    papers: list[PaperRecord],
    edges: list[NetworkEdge],
    seed_paper_ids: list[str],
    resolved_seed_ids: list[str],
    config: NetworkConfig,
    *,
    partial: bool = False,
    warnings: list[str] | None = None,
) -> CitationNetwork:
    """Lay out, cluster and measure a filtered node/edge set."""
    paper_ids = [p.id for p in papers]
    id_set = set(paper_ids)
    edges = [e for e in edges if e.source in id_set and e.target in id_set]

    positions = layout_positions(paper_ids, edges)
    adj = build_adjacency(paper_ids, edges)
    distances = distances_from_seeds(adj, resolved_seed_ids)
    seeds = set(resolved_seed_ids)
    n = len(papers)

    nodes = [
        NetworkNode(
            paper=paper,
            x=positions[paper.id][0],
            y=positions[paper.id][1],
            size=math.log(paper.citation_count + 1) * 5,
            color=SEED_COLOR if paper.id in seeds else _year_color(paper.year),
            distance_from_seed=distances[paper.id],
            connection_strength=len(adj[paper.id]) / n,
        )
        for paper in papers
    ]

    metrics = compute_metrics(paper_ids, edges)
    quality = assess_quality(metrics, n, len(edges), config)

    return CitationNetwork(
        id=f"network-{uuid.uuid4().hex[:12]}",
        name=f"Network from {len(seed_paper_ids)} papers",
        seed_paper_ids=list(seed_paper_ids),
        resolved_seed_ids=list(resolved_seed_ids),
        nodes=nodes,
        edges=edges,
        clusters=cluster_network(papers, positions),
        metrics=metrics,
        quality=quality,
        layout=NetworkLayout(type="force", parameters={"strength": 0.5}),
        config=config,
        partial=partial,
        warnings=list(warnings or []),
        created_at=datetime.now(timezone.utc),
    )


def _year_color(year: int | None) -> str:
    if year is None:
        return "hsl(0, 0%, 60%)"
    hue = min(max((year - 1900) / 125, 0.0), 1.0) * 240
    return f"hsl({hue:.0f}, 70%, 50%)"


# ── Pagination ───────────────────────────────────────────────────────


def paginate_network(
    papers: list[PaperRecord],
    edges: list[NetworkEdge],
    seed_paper_ids: list[str],
    resolved_seed_ids: list[str],
    config: NetworkConfig,
    page: int = 1,
    page_size: int = 100,
    *,
    partial: bool = False,
    warnings: list[str] | None = None,
) -> PaginatedNetwork:
    """Slice a large node pool into pages ranked by citation count.

    Metrics, clusters and layout are recomputed for the page's own subgraph.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    ranked = sorted(papers, key=lambda p: p.citation_count, reverse=True)
    total = len(ranked)
    total_pages = max(1, math.ceil(total / page_size))
    start = (page - 1) * page_size
    page_papers = ranked[start : start + page_size]

    logger.info(
        "Network page %d/%d: %d of %d papers", page, total_pages, len(page_papers), total
    )

    network = assemble_network(
        page_papers,
        edges,
        seed_paper_ids,
        resolved_seed_ids,
        config,
        partial=partial,
        warnings=warnings,
    )
    pagination = PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        page_size=page_size,
        total_items=total,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
    return PaginatedNetwork(network=network, pagination=pagination)
