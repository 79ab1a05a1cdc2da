"""Network Config: YAML parser and Pydantic models for one network build."""

from datetime import date
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Algorithm = Literal["direct", "co_citation", "bibliographic_coupling", "semantic"]

ALGORITHMS: tuple[str, ...] = (
    "direct",
    "co_citation",
    "bibliographic_coupling",
    "semantic",
)

DEFAULT_ALGORITHMS: list[str] = ["co_citation", "bibliographic_coupling", "direct"]


# ── Year Range ───────────────────────────────────────────────────────


class YearRange(BaseModel):
    """Inclusive publication-year window."""

    model_config = ConfigDict(frozen=True)

    start: int = 1900
    end: int = Field(default_factory=lambda: date.today().year)

    @model_validator(mode="after")
    def start_not_after_end(self) -> "YearRange":
        if self.start > self.end:
            raise ValueError(
                f"Start year ({self.start}) must be <= end year ({self.end})"
            )
        return self

    def contains(self, year: int | None) -> bool:
        if year is None:
            return True
        return self.start <= year <= self.end


# ── Network Config (top-level) ───────────────────────────────────────


class NetworkConfig(BaseModel):
    """Immutable parameters for a single citation network build."""

    model_config = ConfigDict(frozen=True)

    algorithms: list[Algorithm] = Field(default_factory=lambda: list(DEFAULT_ALGORITHMS))
    depth: int = Field(default=2, ge=1, le=3, description="Hops from the seeds for direct citations")
    max_papers: int = Field(default=50, ge=1)
    min_citations: int = Field(default=5, ge=0)
    year_range: YearRange = Field(default_factory=YearRange)
    only_open_access: bool = False

    @field_validator("algorithms")
    @classmethod
    def at_least_one_algorithm(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one network algorithm must be enabled")
        # Order-preserving de-duplication
        return list(dict.fromkeys(v))

    def uses(self, algorithm: str) -> bool:
        return algorithm in self.algorithms


# ── Helpers ──────────────────────────────────────────────────────────


def load_network_config(path: str | Path) -> NetworkConfig:
    """Load a YAML Network Config from disk and return a validated model."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return NetworkConfig.model_validate(raw)
