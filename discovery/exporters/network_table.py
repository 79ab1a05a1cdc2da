"""Network table exports: node/edge CSV and Excel."""

import csv
import logging

import openpyxl

from discovery.network.models import CitationNetwork

logger = logging.getLogger(__name__)

NODE_HEADERS = [
    "paper_id", "title", "authors", "year", "venue", "doi", "pmid",
    "citation_count", "open_access", "sources", "is_seed",
    "distance_from_seed", "connection_strength", "cluster", "x", "y",
]
EDGE_HEADERS = ["source", "target", "type", "weight"]


# ── Helpers ──────────────────────────────────────────────────────────


def _node_rows(network: CitationNetwork) -> list[list]:
    """One row per node, in network order."""
    cluster_of = {pid: c.label for c in network.clusters for pid in c.paper_ids}
    seeds = set(network.resolved_seed_ids)

    rows = []
    for node in network.nodes:
        paper = node.paper
        rows.append([
            paper.id,
            paper.title,
            "; ".join(paper.authors),
            paper.year,
            paper.venue,
            paper.doi,
            paper.pmid,
            paper.citation_count,
            paper.open_access,
            "; ".join(paper.sources),
            paper.id in seeds,
            node.distance_from_seed,
            round(node.connection_strength, 4),
            cluster_of.get(paper.id, ""),
            round(node.x, 2),
            round(node.y, 2),
        ])
    return rows


def _edge_rows(network: CitationNetwork) -> list[list]:
    return [[e.source, e.target, e.type, e.weight] for e in network.edges]


# ── CSV Export ───────────────────────────────────────────────────────


def export_nodes_csv(network: CitationNetwork, output_path: str) -> None:
    """Export network nodes as CSV."""
    rows = _node_rows(network)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(NODE_HEADERS)
        writer.writerows(rows)

    logger.info("Nodes CSV exported to %s (%d rows)", output_path, len(rows))


def export_edges_csv(network: CitationNetwork, output_path: str) -> None:
    """Export network edges as CSV."""
    rows = _edge_rows(network)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(EDGE_HEADERS)
        writer.writerows(rows)

    logger.info("Edges CSV exported to %s (%d rows)", output_path, len(rows))


# ── Excel Export ─────────────────────────────────────────────────────


def export_network_excel(network: CitationNetwork, output_path: str) -> None:
    """Export the network as Excel with Nodes, Edges and Clusters sheets."""
    wb = openpyxl.Workbook()

    ws1 = wb.active
    ws1.title = "Nodes"
    ws1.append(NODE_HEADERS)
    for row in _node_rows(network):
        ws1.append(row)
    _style_header(ws1)

    ws2 = wb.create_sheet("Edges")
    ws2.append(EDGE_HEADERS)
    for row in _edge_rows(network):
        ws2.append(row)
    _style_header(ws2)

    ws3 = wb.create_sheet("Clusters")
    ws3.append(["cluster_id", "label", "size", "keywords", "color"])
    for cluster in network.clusters:
        ws3.append([
            cluster.id,
            cluster.label,
            len(cluster.paper_ids),
            ", ".join(cluster.keywords),
            cluster.color,
        ])
    _style_header(ws3)

    wb.save(output_path)
    logger.info("Network Excel exported to %s", output_path)


def _style_header(ws) -> None:
    """Bold the header row."""
    from openpyxl.styles import Font
    for cell in ws[1]:
        cell.font = Font(bold=True)
