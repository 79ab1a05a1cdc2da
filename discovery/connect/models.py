"""Data models for connections between papers."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from discovery.network.models import EdgeType
from discovery.search.models import PaperRecord

PathType = Literal["citation", "co_citation", "bibliographic_coupling", "semantic"]
RelationshipType = Literal["cites", "cited_by", "co_cited", "similar"]


class PathEdge(BaseModel):
    """One step of a connection path with a short explanation."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: EdgeType
    weight: float = Field(ge=0.0, le=1.0)
    explanation: str = ""


class ConnectionPath(BaseModel):
    """Ordered papers linking a source paper to a target paper."""

    model_config = ConfigDict(frozen=True)

    id: str
    papers: list[str]
    edges: list[PathEdge]
    total_weight: float
    type: PathType

    @property
    def is_empty(self) -> bool:
        return not self.edges


class LiteratureConnection(BaseModel):
    """All paths found between two papers, best first."""

    model_config = ConfigDict(frozen=True)

    source_paper_id: str
    target_paper_id: str
    paths: list[ConnectionPath]
    shortest_path: ConnectionPath
    partial: bool = False
    warnings: list[str] = Field(default_factory=list)
    created_at: datetime


class YearWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int


class CommonGround(BaseModel):
    """What a set of papers has in common."""

    model_config = ConfigDict(frozen=True)

    shared_citations: list[PaperRecord]
    shared_topics: list[str]
    shared_authors: list[str]
    time_overlap: Optional[YearWindow] = None


class PaperRelationship(BaseModel):
    model_config = ConfigDict(frozen=True)

    paper1_id: str
    paper2_id: str
    relationship_type: RelationshipType
    strength: float = Field(ge=0.0, le=1.0)
    description: str


class MultiPaperConnection(BaseModel):
    """Common ground and pairwise relationships across several papers."""

    model_config = ConfigDict(frozen=True)

    papers: list[PaperRecord]
    common_ground: CommonGround
    relationships: list[PaperRelationship]
    synthesis_opportunities: list[str]
    warnings: list[str] = Field(default_factory=list)
