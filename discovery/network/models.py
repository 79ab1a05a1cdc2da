"""Data models for citation networks."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from discovery.core.network_config import NetworkConfig
from discovery.search.models import PaperRecord

EdgeType = Literal["cites", "cited_by", "co_citation", "bibliographic_coupling", "semantic"]


class NetworkEdge(BaseModel):
    """A typed, weighted relation between two papers."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: EdgeType
    weight: float = Field(ge=0.0, le=1.0)


class NetworkNode(BaseModel):
    """A paper placed in the network layout."""

    model_config = ConfigDict(frozen=True)

    paper: PaperRecord
    x: float
    y: float
    size: float
    color: str
    distance_from_seed: int = Field(description="BFS hops to the nearest seed, -1 if unreachable")
    connection_strength: float = Field(ge=0.0, le=1.0)

    @property
    def paper_id(self) -> str:
        return self.paper.id


class NetworkCluster(BaseModel):
    """A group of papers with a label and representative keywords."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    keywords: list[str] = Field(max_length=5)
    paper_ids: list[str]
    center_x: float = 0.0
    center_y: float = 0.0
    color: str


class NetworkMetrics(BaseModel):
    """Structural metrics of the undirected view of a network."""

    model_config = ConfigDict(frozen=True)

    density: float = Field(ge=0.0, le=1.0)
    avg_degree: float = Field(ge=0.0)
    avg_clustering: float = Field(ge=0.0, le=1.0)
    components: int = Field(ge=0)
    largest_component_size: int = Field(ge=0)


class NetworkQuality(BaseModel):
    """Sparse/empty assessment with advisory suggestions."""

    model_config = ConfigDict(frozen=True)

    node_count: int
    edge_count: int
    density: float
    avg_degree: float
    largest_component_size: int
    is_sparse: bool
    is_empty: bool
    suggestions: list[str] = Field(default_factory=list)


class NetworkLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["force", "radial", "hierarchical", "timeline"] = "force"
    parameters: dict[str, float] = Field(default_factory=dict)


class CitationNetwork(BaseModel):
    """Result of one network build; never updated in place."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    seed_paper_ids: list[str]
    resolved_seed_ids: list[str]
    nodes: list[NetworkNode]
    edges: list[NetworkEdge]
    clusters: list[NetworkCluster]
    metrics: NetworkMetrics
    quality: NetworkQuality
    layout: NetworkLayout
    config: NetworkConfig
    partial: bool = False
    warnings: list[str] = Field(default_factory=list)
    created_at: datetime

    def node_ids(self) -> list[str]:
        return [n.paper.id for n in self.nodes]


# ── Pagination ───────────────────────────────────────────────────────


class PaginationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_page: int
    total_pages: int
    page_size: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedNetwork(BaseModel):
    """One page of a large network, with analytics computed for that page only."""

    model_config = ConfigDict(frozen=True)

    network: CitationNetwork
    pagination: PaginationInfo
