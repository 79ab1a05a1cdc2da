"""Tests for the OpenAlex provider (parsing offline, live queries marked)."""

from unittest.mock import patch

import pytest
import requests

from discovery.search.base import NetworkFailure, RateLimited, ServiceUnavailable
from discovery.search.models import PaperRecord
from discovery.search.openalex import (
    OpenAlexProvider,
    _parse_work,
    _request,
    reconstruct_abstract,
)


def _work(wid="W2", title="Robotic suturing", **kw):
    work = {
        "id": f"https://openalex.org/{wid}",
        "title": title,
        "publication_year": 2021,
        "cited_by_count": 12,
    }
    work.update(kw)
    return work


def _raise(exc):
    def call():
        raise exc
    return call


def _http_error(status):
    response = requests.Response()
    response.status_code = status
    return requests.HTTPError(f"HTTP {status}", response=response)


# ── Abstract Reconstruction ──────────────────────────────────────────


def test_reconstruct_abstract_from_inverted_index():
    inv_index = {
        "This": [0],
        "is": [1],
        "a": [2, 5],
        "test": [3],
        "of": [4],
        "function": [6],
    }
    assert reconstruct_abstract(inv_index) == "This is a test of a function"


def test_reconstruct_abstract_none():
    assert reconstruct_abstract(None) is None


def test_reconstruct_abstract_empty():
    assert reconstruct_abstract({}) is None


# ── Work Parsing ─────────────────────────────────────────────────────


def test_parse_full_work():
    work = _work(
        wid="W123",
        doi="https://doi.org/10.1000/ABC",
        ids={"pmid": "https://pubmed.ncbi.nlm.nih.gov/555"},
        authorships=[{"author": {"display_name": "Smith A"}}, {"author": {}}],
        primary_location={"source": {"display_name": "Science Robotics"}},
        open_access={"is_oa": True},
        best_oa_location={"pdf_url": "https://example.org/w.pdf"},
        keywords=[{"display_name": "suturing"}],
        topics=[{"display_name": "Surgical Robotics"}],
        abstract_inverted_index={"Hello": [0], "world": [1]},
    )
    rec = _parse_work(work)

    assert isinstance(rec, PaperRecord)
    assert rec.id == "W123"
    assert rec.source == "openalex"
    assert rec.doi == "10.1000/abc"
    assert rec.pmid == "555"
    assert rec.authors == ["Smith A"]
    assert rec.venue == "Science Robotics"
    assert rec.open_access is True
    assert rec.pdf_url == "https://example.org/w.pdf"
    assert rec.abstract == "Hello world"
    assert rec.citation_count == 12
    assert rec.keywords == ["suturing"]
    assert rec.categories == ["Surgical Robotics"]


def test_parse_work_without_title_skipped():
    assert _parse_work({"id": "https://openalex.org/W1"}) is None


def test_parse_minimal_work():
    rec = _parse_work(_work(cited_by_count=None))
    assert rec.citation_count == 0
    assert rec.open_access is False
    assert rec.pmid is None


# ── Signals ──────────────────────────────────────────────────────────


def test_request_maps_rate_limit():
    with pytest.raises(RateLimited):
        _request(_raise(_http_error(429)))


def test_request_maps_unavailable():
    with pytest.raises(ServiceUnavailable):
        _request(_raise(_http_error(503)))


def test_request_maps_connection_error():
    with pytest.raises(NetworkFailure):
        _request(_raise(requests.ConnectionError("reset")))


def test_request_passes_other_http_errors_through():
    with pytest.raises(requests.HTTPError):
        _request(_raise(_http_error(400)))


# ── Provider (mocked pyalex) ─────────────────────────────────────────


def test_get_citations_filters_by_cites():
    with patch("discovery.search.openalex.Works") as works:
        works.return_value.filter.return_value.get.return_value = [_work("W9")]
        records = OpenAlexProvider().get_citations("https://openalex.org/W1", limit=5)

    works.return_value.filter.assert_called_with(cites="W1")
    assert [r.id for r in records] == ["W9"]


def test_get_references_preserves_order():
    seed = _work("W1", referenced_works=["https://openalex.org/W2", "https://openalex.org/W3"])
    with patch("discovery.search.openalex.Works") as works:
        works.return_value.__getitem__.return_value = seed
        works.return_value.filter.return_value.get.return_value = [_work("W3"), _work("W2")]
        records = OpenAlexProvider().get_references("W1")

    works.return_value.filter.assert_called_with(openalex="W2|W3")
    assert [r.id for r in records] == ["W2", "W3"]


def test_get_by_id_not_found():
    with patch("discovery.search.openalex.Works") as works:
        works.return_value.__getitem__.side_effect = _http_error(404)
        assert OpenAlexProvider().get_by_id("W404") is None


def test_doi_lookup_uses_doi_url():
    with patch("discovery.search.openalex.Works") as works:
        works.return_value.__getitem__.return_value = _work("W5")
        OpenAlexProvider().get_by_id("10.1000/xyz")
    works.return_value.__getitem__.assert_called_with("https://doi.org/10.1000/xyz")


# ── Live Search ──────────────────────────────────────────────────────


@pytest.mark.network
def test_live_search_returns_records():
    records = OpenAlexProvider().search("robotic surgery autonomy", limit=5)
    assert records
    assert all(r.source == "openalex" and r.title for r in records)


@pytest.mark.network
def test_live_citations_of_a_well_cited_work():
    provider = OpenAlexProvider()
    seed = provider.search("attention is all you need", limit=1)[0]
    citers = provider.get_citations(seed.id, limit=5)
    assert len(citers) == 5
