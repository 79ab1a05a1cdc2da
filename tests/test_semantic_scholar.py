"""Tests for the Semantic Scholar provider (mocked HTTP session)."""

from unittest.mock import MagicMock

import pytest
import requests

from discovery.search.base import NetworkFailure, RateLimited, ServiceUnavailable
from discovery.search.semantic_scholar import SemanticScholarProvider, _parse_paper


def _s2(paper_id="abc123", title="Autonomous robotic suturing", **kw):
    paper = {"paperId": paper_id, "title": title, "year": 2022, "citationCount": 7}
    paper.update(kw)
    return paper


def _session(status=200, payload=None):
    session = MagicMock()
    session.headers = {}
    response = MagicMock(status_code=status)
    response.json.return_value = payload
    session.get.return_value = response
    return session


# ── Paper Parsing ────────────────────────────────────────────────────


def test_parse_full_paper():
    rec = _parse_paper(
        _s2(
            externalIds={"DOI": "10.1/XY", "PubMed": 321, "ArXiv": "2101.00001"},
            authors=[{"name": "Lee C"}, {"authorId": "1"}],
            isOpenAccess=True,
            openAccessPdf={"url": "https://example.org/p.pdf"},
            venue="",
            fieldsOfStudy=["Medicine"],
        )
    )
    assert rec.id == "abc123"
    assert rec.source == "semantic_scholar"
    assert rec.doi == "10.1/xy"
    assert rec.pmid == "321"
    assert rec.arxiv_id == "2101.00001"
    assert rec.authors == ["Lee C"]
    assert rec.open_access is True
    assert rec.venue is None
    assert rec.categories == ["Medicine"]
    assert rec.url == "https://www.semanticscholar.org/paper/abc123"


def test_parse_paper_without_title_skipped():
    assert _parse_paper({"paperId": "x"}) is None


# ── HTTP Handling ────────────────────────────────────────────────────


def test_api_key_header():
    session = _session()
    SemanticScholarProvider(api_key="secret", session=session)
    assert session.headers["x-api-key"] == "secret"


def test_get_by_id():
    provider = SemanticScholarProvider(session=_session(payload=_s2()))
    assert provider.get_by_id("abc123").title == "Autonomous robotic suturing"


def test_not_found_is_none():
    provider = SemanticScholarProvider(session=_session(status=404))
    assert provider.get_by_id("missing") is None


def test_429_raises_rate_limited():
    provider = SemanticScholarProvider(session=_session(status=429))
    with pytest.raises(RateLimited):
        provider.get_citations("abc123")


def test_503_raises_unavailable():
    provider = SemanticScholarProvider(session=_session(status=503))
    with pytest.raises(ServiceUnavailable):
        provider.get_references("abc123")


def test_connection_error_raises_network_failure():
    session = _session()
    session.get.side_effect = requests.ConnectionError("reset")
    with pytest.raises(NetworkFailure):
        SemanticScholarProvider(session=session).get_by_id("abc123")


def test_citations_unwrap_citing_paper():
    payload = {"data": [{"citingPaper": _s2("c1")}, {"citingPaper": {"paperId": None}}]}
    session = _session(payload=payload)
    records = SemanticScholarProvider(session=session).get_citations("abc123", limit=5)

    assert [r.id for r in records] == ["c1"]
    url = session.get.call_args[0][0]
    assert url.endswith("/paper/abc123/citations")


def test_references_unwrap_cited_paper():
    payload = {"data": [{"citedPaper": _s2("r1")}, {"citedPaper": _s2("r2")}]}
    records = SemanticScholarProvider(session=_session(payload=payload)).get_references("abc123")
    assert [r.id for r in records] == ["r1", "r2"]


def test_related_uses_recommendations():
    payload = {"recommendedPapers": [_s2("s1")]}
    session = _session(payload=payload)
    records = SemanticScholarProvider(session=session).get_related("abc123")

    assert [r.id for r in records] == ["s1"]
    assert "recommendations" in session.get.call_args[0][0]


# ── Live Queries ─────────────────────────────────────────────────────


@pytest.mark.network
def test_live_search():
    records = SemanticScholarProvider().search("robotic surgery", limit=3)
    assert all(r.source == "semantic_scholar" for r in records)
