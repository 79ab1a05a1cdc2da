"""Tests for the Network Config parser and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from discovery.core.network_config import (
    DEFAULT_ALGORITHMS,
    NetworkConfig,
    YearRange,
    load_network_config,
)

EXAMPLE_PATH = Path(__file__).resolve().parent.parent / "network_specs" / "example.yaml"


# ── Loading ──────────────────────────────────────────────────────────


def test_load_example_config():
    config = load_network_config(EXAMPLE_PATH)
    assert isinstance(config, NetworkConfig)
    assert config.algorithms == ["co_citation", "bibliographic_coupling", "direct"]
    assert config.year_range.start == 1990


def test_load_from_tmp_path(tmp_path):
    path = tmp_path / "net.yaml"
    path.write_text(yaml.dump({"algorithms": ["semantic"], "max_papers": 10}))
    config = load_network_config(path)
    assert config.algorithms == ["semantic"]
    assert config.max_papers == 10
    assert config.min_citations == 5


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    config = load_network_config(path)
    assert config.algorithms == DEFAULT_ALGORITHMS
    assert config.depth == 2


# ── Validation ───────────────────────────────────────────────────────


def test_inverted_year_range_rejected():
    with pytest.raises(ValidationError):
        NetworkConfig(year_range={"start": 2020, "end": 2010})


def test_empty_algorithms_rejected():
    with pytest.raises(ValidationError):
        NetworkConfig(algorithms=[])


def test_unknown_algorithm_rejected():
    with pytest.raises(ValidationError):
        NetworkConfig(algorithms=["pagerank"])


@pytest.mark.parametrize("field,value", [("depth", 0), ("depth", 4), ("max_papers", 0), ("min_citations", -1)])
def test_out_of_range_values_rejected(field, value):
    with pytest.raises(ValidationError):
        NetworkConfig(**{field: value})


def test_duplicate_algorithms_collapsed():
    config = NetworkConfig(algorithms=["direct", "semantic", "direct"])
    assert config.algorithms == ["direct", "semantic"]
    assert config.uses("semantic")
    assert not config.uses("co_citation")


def test_config_is_immutable():
    config = NetworkConfig()
    with pytest.raises(ValidationError):
        config.max_papers = 5


# ── Year Range ───────────────────────────────────────────────────────


def test_year_range_contains():
    window = YearRange(start=2000, end=2010)
    assert window.contains(2000)
    assert window.contains(2010)
    assert not window.contains(1999)
    assert window.contains(None)
