"""Tests for export modules: JSON, node/edge CSV, Excel, Markdown summary."""

import csv
import json

import openpyxl
import pytest

from discovery.core.network_config import NetworkConfig
from discovery.exporters import export_all
from discovery.exporters.network_json import export_connection_json, export_network_json
from discovery.exporters.network_summary import export_summary_md, generate_network_summary
from discovery.exporters.network_table import (
    EDGE_HEADERS,
    NODE_HEADERS,
    export_edges_csv,
    export_network_excel,
    export_nodes_csv,
)
from discovery.network.analytics import assemble_network
from discovery.network.models import NetworkEdge
from discovery.search.models import PaperRecord


def _paper(pid, citations=10, year=2020):
    return PaperRecord(
        id=pid,
        source="memory",
        title=f"Robotic suturing study {pid}",
        authors=["Smith A", "Lee C"],
        citation_count=citations,
        year=year,
    )


@pytest.fixture()
def network():
    papers = [_paper("P1", 50), _paper("P2", 5, 2012), _paper("P3", 8)]
    edges = [
        NetworkEdge(source="P2", target="P1", type="cites", weight=1.0),
        NetworkEdge(source="P1", target="P3", type="cites", weight=1.0),
    ]
    config = NetworkConfig(algorithms=["direct"], min_citations=0)
    return assemble_network(papers, edges, ["P1", "MISSING"], ["P1"], config)


@pytest.fixture()
def empty_network():
    return assemble_network([], [], ["NOPE"], [], NetworkConfig())


# ── JSON ─────────────────────────────────────────────────────────────


def test_network_json_round_trips(tmp_path, network):
    path = tmp_path / "network.json"
    export_network_json(network, str(path))
    data = json.loads(path.read_text())
    assert data["id"] == network.id
    assert len(data["nodes"]) == 3
    assert data["config"]["algorithms"] == ["direct"]


def test_connection_json(tmp_path):
    from discovery.connect.pathfinder import find_paths
    from discovery.search.memory import InMemoryProvider
    from discovery.search.retrieval import PaperRetriever

    retriever = PaperRetriever(InMemoryProvider(papers=[_paper("A"), _paper("B")]))
    path = tmp_path / "connection.json"
    export_connection_json(find_paths(retriever, "A", "B", 2), str(path))
    data = json.loads(path.read_text())
    assert data["shortest_path"]["id"] == "path-empty"


# ── CSV ──────────────────────────────────────────────────────────────


def test_nodes_csv(tmp_path, network):
    path = tmp_path / "nodes.csv"
    export_nodes_csv(network, str(path))
    with open(path) as f:
        rows = list(csv.reader(f))
    assert rows[0] == NODE_HEADERS
    assert len(rows) == 4
    by_id = {r[0]: dict(zip(NODE_HEADERS, r)) for r in rows[1:]}
    assert by_id["P1"]["is_seed"] == "True"
    assert by_id["P2"]["cluster"] == "2010s"
    assert by_id["P1"]["authors"] == "Smith A; Lee C"


def test_edges_csv(tmp_path, network):
    path = tmp_path / "edges.csv"
    export_edges_csv(network, str(path))
    with open(path) as f:
        rows = list(csv.reader(f))
    assert rows[0] == EDGE_HEADERS
    assert rows[1][:3] == ["P2", "P1", "cites"]


# ── Excel ────────────────────────────────────────────────────────────


def test_network_excel_sheets(tmp_path, network):
    path = tmp_path / "network.xlsx"
    export_network_excel(network, str(path))
    wb = openpyxl.load_workbook(path)
    assert wb.sheetnames == ["Nodes", "Edges", "Clusters"]
    assert wb["Nodes"].max_row == 4
    assert wb["Edges"].max_row == 3
    assert wb["Nodes"]["A1"].font.bold


# ── Markdown Summary ─────────────────────────────────────────────────


def test_summary_mentions_counts_and_dropped_seed(network):
    summary = generate_network_summary(network)
    assert "3 papers and 2 links" in summary
    assert "1 seed(s) could not be found" in summary


def test_summary_for_empty_network(tmp_path, empty_network):
    assert "No papers matched" in generate_network_summary(empty_network)
    path = tmp_path / "summary.md"
    export_summary_md(empty_network, str(path))
    text = path.read_text()
    assert "## Suggestions" in text


# ── export_all ───────────────────────────────────────────────────────


def test_export_all(tmp_path, network):
    paths = export_all(network, str(tmp_path / "exports"))
    assert set(paths) == {"network_json", "nodes_csv", "edges_csv", "network_xlsx", "summary_md"}
    for p in paths.values():
        assert (tmp_path / "exports").joinpath(p.split("/")[-1]).exists()
