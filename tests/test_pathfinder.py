"""Tests for connection pathfinding and multi-paper common ground."""

import pytest

from discovery.connect.models import ConnectionPath, PathEdge
from discovery.connect.pathfinder import (
    explain_connection,
    find_multi_paper_connections,
    find_paths,
    find_shortest_path,
    synthesis_opportunities,
)
from discovery.core.errors import ProviderUnreachableError
from discovery.search.base import NetworkFailure, ServiceUnavailable
from discovery.search.memory import InMemoryProvider
from discovery.search.models import PaperRecord
from discovery.search.retrieval import PaperRetriever

LONG_TITLE = "Autonomous robotic suturing of soft tissue in open surgery"


# ── Factories ────────────────────────────────────────────────────────


def _paper(pid, citations=10, year=2020, **kw):
    return PaperRecord(
        id=pid,
        source="memory",
        title=kw.pop("title", f"Paper {pid}"),
        citation_count=citations,
        year=year,
        **kw,
    )


def _retriever(papers, references=None, related=None, provider_cls=InMemoryProvider):
    provider = provider_cls(papers=papers, references=references, related=related)
    return PaperRetriever(provider, sleep=lambda s: None)


# ── find_paths ───────────────────────────────────────────────────────


def test_unrelated_papers_give_degenerate_path():
    retriever = _retriever([_paper("A"), _paper("B")])
    connection = find_paths(retriever, "A", "B", max_depth=2)

    assert connection.paths == []
    shortest = connection.shortest_path
    assert shortest.papers == ["A", "B"]
    assert shortest.edges == []
    assert shortest.total_weight == 0
    assert shortest.is_empty


def test_direct_citation_path():
    retriever = _retriever([_paper("A"), _paper("B")], references={"A": ["B"]})
    connection = find_paths(retriever, "A", "B")

    shortest = connection.shortest_path
    assert shortest.papers == ["A", "B"]
    assert shortest.type == "citation"
    assert [(e.source, e.target, e.type) for e in shortest.edges] == [("A", "B", "cites")]


def test_co_citation_bridge_when_bfs_too_shallow():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("C", 40)], references={"C": ["A", "B"]}
    )
    connection = find_paths(retriever, "A", "B", max_depth=1)

    assert len(connection.paths) == 1
    path = connection.shortest_path
    assert path.type == "co_citation"
    assert path.papers == ["A", "C", "B"]
    assert path.total_weight == pytest.approx(1.6)


def test_co_citation_bridge_prefers_most_cited_citer():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("C1", 5), _paper("C2", 90)],
        references={"C1": ["A", "B"], "C2": ["A", "B"]},
    )
    connection = find_paths(retriever, "A", "B", max_depth=1)
    assert connection.shortest_path.papers == ["A", "C2", "B"]


def test_ties_on_length_broken_by_weight():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("C", 40)], references={"C": ["A", "B"]}
    )
    connection = find_paths(retriever, "A", "B", max_depth=3)

    assert [p.type for p in connection.paths] == ["citation", "co_citation"]
    assert connection.shortest_path.total_weight == 2.0


def test_coupling_bridge():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("R", 99)], references={"A": ["R"], "B": ["R"]}
    )
    connection = find_paths(retriever, "A", "B", max_depth=1)

    path = connection.shortest_path
    assert path.type == "bibliographic_coupling"
    assert path.papers == ["A", "R", "B"]
    assert all(e.type == "cites" and e.weight == 0.7 for e in path.edges)


def test_semantic_path():
    retriever = _retriever([_paper("A"), _paper("B")], related={"A": ["B"]})
    connection = find_paths(retriever, "A", "B", max_depth=1)

    path = connection.shortest_path
    assert path.type == "semantic"
    assert path.total_weight == pytest.approx(0.9)


def test_max_depth_must_be_positive():
    retriever = _retriever([_paper("A"), _paper("B")])
    with pytest.raises(ValueError):
        find_paths(retriever, "A", "B", max_depth=0)


class FlakyCitations(InMemoryProvider):
    def get_citations(self, paper_id, limit=20):
        raise ServiceUnavailable("503")


class Unreachable(InMemoryProvider):
    def _fail(self, *args, **kwargs):
        raise NetworkFailure("connection refused")

    get_by_id = get_citations = get_references = get_related = _fail


def test_failing_strategy_is_recorded_not_raised():
    retriever = _retriever(
        [_paper("A"), _paper("B")], references={"A": ["B"]}, provider_cls=FlakyCitations
    )
    connection = find_paths(retriever, "A", "B")
    assert connection.shortest_path.papers == ["A", "B"]
    assert connection.warnings


def test_unreachable_provider_raises():
    retriever = _retriever([_paper("A")], provider_cls=Unreachable)
    with pytest.raises(ProviderUnreachableError):
        find_paths(retriever, "A", "B")


def test_find_shortest_path():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("C")], references={"A": ["C"], "C": ["B"]}
    )
    path = find_shortest_path(retriever, "A", "B")
    assert path.papers == ["A", "C", "B"]
    assert find_shortest_path(retriever, "B", "Z", max_depth=1) is None


# ── explain_connection ───────────────────────────────────────────────


def test_explain_truncates_long_titles():
    retriever = _retriever(
        [_paper("A", title=LONG_TITLE), _paper("B", title="Short title")],
        references={"A": ["B"]},
    )
    path = find_paths(retriever, "A", "B").shortest_path
    text = explain_connection(retriever, path)
    assert text == f'"{LONG_TITLE[:40]}..." cites "Short title"'


def test_explain_chains_steps_with_arrows():
    retriever = _retriever([_paper("A"), _paper("B"), _paper("C")])
    path = ConnectionPath(
        id="p",
        papers=["A", "C", "B"],
        edges=[
            PathEdge(source="A", target="C", type="cites", weight=1.0),
            PathEdge(source="C", target="B", type="semantic", weight=0.9),
        ],
        total_weight=1.9,
        type="citation",
    )
    assert explain_connection(retriever, path) == (
        '"Paper A" cites "Paper C" → "Paper C" is semantically similar to "Paper B"'
    )


def test_explain_co_citation_names_the_citing_paper():
    retriever = _retriever(
        [_paper("A"), _paper("B"), _paper("C", 40)], references={"C": ["A", "B"]}
    )
    path = find_paths(retriever, "A", "B", max_depth=1).shortest_path
    assert explain_connection(retriever, path) == (
        '"Paper C" cites "Paper A" → "Paper C" also cites "Paper B", so the two are co-cited'
    )


def test_explain_empty_path():
    retriever = _retriever([_paper("A"), _paper("B")])
    path = find_paths(retriever, "A", "B").shortest_path
    assert explain_connection(retriever, path) == "No connection found between these papers."


# ── Multi-paper Connections ──────────────────────────────────────────


@pytest.fixture()
def trio():
    papers = [
        _paper("X", keywords=["robotics", "surgery"], authors=["Smith A"]),
        _paper("Y", keywords=["robotics"], authors=["Smith A", "Lee C"]),
        _paper("Z", keywords=["vision"], authors=["Lee C"]),
        _paper("R1"),
        _paper("R2"),
    ]
    references = {"X": ["R1", "R2", "Y"], "Y": ["R1", "R2"], "Z": ["R2", "R1"]}
    return _retriever(papers, references=references)


def test_common_ground(trio):
    result = find_multi_paper_connections(trio, ["X", "Y", "Z"])
    common = result.common_ground

    assert [p.id for p in common.shared_citations] == ["R1", "R2"]
    assert common.shared_topics == ["robotics"]
    assert common.shared_authors == ["Smith A", "Lee C"]
    assert common.time_overlap.start == 2020


def test_pairwise_relationships(trio):
    result = find_multi_paper_connections(trio, ["X", "Y", "Z"])
    assert [(r.paper1_id, r.paper2_id, r.relationship_type) for r in result.relationships] == [
        ("X", "Y", "cites")
    ]
    assert any("direct citation" in s for s in result.synthesis_opportunities)


def test_missing_papers_left_out(trio):
    result = find_multi_paper_connections(trio, ["X", "Y", "NOPE"])
    assert [p.id for p in result.papers] == ["X", "Y"]


def test_different_years_have_no_overlap():
    retriever = _retriever([_paper("A", year=2010), _paper("B", year=2020)])
    result = find_multi_paper_connections(retriever, ["A", "B"])
    assert result.common_ground.time_overlap is None


def test_co_cited_relationship_strength():
    citers = {f"C{i}": ["P", "Q"] for i in range(3)}
    papers = [_paper("P"), _paper("Q")] + [_paper(c) for c in citers]
    result = find_multi_paper_connections(_retriever(papers, references=citers), ["P", "Q"])

    rel = result.relationships[0]
    assert rel.relationship_type == "co_cited"
    assert rel.strength == pytest.approx(0.3)


def test_needs_two_papers(trio):
    with pytest.raises(ValueError):
        find_multi_paper_connections(trio, ["X"])


def test_fallback_synthesis_opportunity():
    retriever = _retriever([_paper("A", year=2010), _paper("B", year=2020)])
    result = find_multi_paper_connections(retriever, ["A", "B"])
    assert result.synthesis_opportunities == [
        "These papers represent distinct but potentially complementary approaches to the topic."
    ]
    assert synthesis_opportunities(result.common_ground, []) == result.synthesis_opportunities
