"""Shared data models for search modules."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")
_DOI_PREFIXES = ("https://doi.org/", "http://doi.org/", "http://dx.doi.org/", "doi:")

# Normalized titles this short are too generic to merge on
MIN_TITLE_KEY_LENGTH = 20


def normalize_title(title: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    t = title.lower()
    t = _PUNCT_RE.sub("", t)
    t = _SPACE_RE.sub(" ", t).strip()
    return t


class PaperRecord(BaseModel):
    """A single publication as returned by a literature data provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    sources: list[str] = Field(default_factory=list)
    doi: Optional[str] = None
    pmid: Optional[str] = None
    arxiv_id: Optional[str] = None
    title: str = ""
    normalized_title: str = ""
    authors: list[str] = Field(default_factory=list)
    year: Optional[int] = None
    venue: Optional[str] = None
    abstract: Optional[str] = None
    citation_count: int = 0
    open_access: bool = False
    pdf_url: Optional[str] = None
    url: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    @field_validator("doi", "pmid", "arxiv_id")
    @classmethod
    def lowercase_identifier(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        for prefix in _DOI_PREFIXES:
            if v.startswith(prefix):
                v = v[len(prefix):]
        return v or None

    @field_validator("citation_count", mode="before")
    @classmethod
    def missing_count_is_zero(cls, v):
        return v or 0

    @model_validator(mode="after")
    def fill_derived_fields(self) -> "PaperRecord":
        # Frozen model: derived fields are written through __dict__
        if self.title and not self.normalized_title:
            self.__dict__["normalized_title"] = normalize_title(self.title)
        if not self.sources:
            self.__dict__["sources"] = [self.source]
        return self

    def identity_keys(self) -> list[str]:
        """Keys that identify this paper across sources, strongest first.

        DOI, then PMID, then arXiv id, then a long-enough normalized title.
        A record with none of these is unique to its provider and local id.
        """
        keys = []
        if self.doi:
            keys.append(f"doi:{self.doi}")
        if self.pmid:
            keys.append(f"pmid:{self.pmid}")
        if self.arxiv_id:
            keys.append(f"arxiv:{self.arxiv_id}")
        if len(self.normalized_title) > MIN_TITLE_KEY_LENGTH:
            keys.append(f"title:{self.normalized_title}")
        return keys or [f"{self.source}:{self.id}"]

    def dedup_key(self) -> str:
        return self.identity_keys()[0]
