"""Deduplicate and merge paper records arriving from several sources."""

import logging

from pydantic import BaseModel

from discovery.search.models import PaperRecord, normalize_title

logger = logging.getLogger(__name__)

__all__ = ["DedupResult", "deduplicate", "merge_records", "normalize_title"]

# Identifier fields in key precedence order
_IDENTIFIER_FIELDS = ("doi", "pmid", "arxiv_id")
_KEY_RANK = {"doi": 0, "pmid": 1, "arxiv": 2}

_SCALAR_FIELDS = (
    "doi",
    "pmid",
    "arxiv_id",
    "title",
    "normalized_title",
    "year",
    "venue",
    "abstract",
    "pdf_url",
    "url",
)


# ── Result Model ─────────────────────────────────────────────────────


class DedupResult(BaseModel):
    """Result of deduplicating a pool of records."""

    deduplicated: list[PaperRecord]
    duplicate_count: int
    group_map: dict[str, list[str]]  # canonical id -> every original id merged into it

    def alias_map(self) -> dict[str, str]:
        """Map every original record id to the id of its canonical record."""
        return {
            member: canonical
            for canonical, members in self.group_map.items()
            for member in members
        }


# ── Public API ───────────────────────────────────────────────────────


def deduplicate(records: list[PaperRecord]) -> DedupResult:
    """Collapse records that describe the same paper into one canonical record.

    Each record is matched against the records kept so far by DOI, then PMID,
    then arXiv id, then long normalized title; the first hit wins. A weaker key
    never merges records that disagree on a stronger identifier, so two
    records with different DOIs stay apart even when their titles match. The first
    record of a group keeps its id and position, later ones are merged in.
    """
    groups: list[PaperRecord | None] = []
    members: list[list[str]] = []
    key_index: dict[str, int] = {}

    for rec in records:
        idx = _find_match(rec, groups, key_index)
        if idx is None:
            idx = len(groups)
            groups.append(rec)
            members.append([rec.id])
        else:
            groups[idx] = merge_records(groups[idx], rec)
            if rec.id not in members[idx]:
                members[idx].append(rec.id)
        _index_group(idx, groups, members, key_index)

    deduplicated = [g for g in groups if g is not None]
    group_map = {
        g.id: ids for g, ids in zip(groups, members) if g is not None
    }
    duplicate_count = len(records) - len(deduplicated)

    if duplicate_count:
        logger.info(
            "Deduplication: %d records → %d unique (%d duplicates merged)",
            len(records),
            len(deduplicated),
            duplicate_count,
        )

    return DedupResult(
        deduplicated=deduplicated,
        duplicate_count=duplicate_count,
        group_map=group_map,
    )


# ── Matching ─────────────────────────────────────────────────────────


def _find_match(
    rec: PaperRecord, groups: list[PaperRecord | None], key_index: dict[str, int]
) -> int | None:
    """Index of the group sharing the strongest identity key, or None.

    A shared key only counts when no stronger identifier disagrees: a title
    match between records with different DOIs is not a match.
    """
    for key in rec.identity_keys():
        idx = key_index.get(key)
        if idx is not None and not _conflicting(groups[idx], rec, key):
            return idx
    return None


def _conflicting(a: PaperRecord, b: PaperRecord, key: str) -> bool:
    """True when the records disagree on an identifier stronger than ``key``."""
    rank = _KEY_RANK.get(key.split(":", 1)[0], len(_IDENTIFIER_FIELDS))
    return any(
        getattr(a, field) and getattr(b, field) and getattr(a, field) != getattr(b, field)
        for field in _IDENTIFIER_FIELDS[:rank]
    )


def _index_group(
    idx: int,
    groups: list[PaperRecord | None],
    members: list[list[str]],
    key_index: dict[str, int],
) -> None:
    """Register a group's keys, folding in any other group a new key points to.

    A merge can give a record an identifier it lacked (a DOI from the second
    source, say) that an earlier, separate group already holds. Folding keeps
    the output free of records that share an identifier, except where two
    groups disagree on an identifier stronger than the shared key.
    """
    pending = True
    while pending:
        pending = False
        for key in groups[idx].identity_keys():
            other = key_index.get(key)
            if other is None or other == idx:
                key_index[key] = idx
                continue
            if _conflicting(groups[idx], groups[other], key):
                # Shared weak key between distinct papers; first group keeps it
                continue
            # Keep the earlier group's position and id
            keep, drop = min(idx, other), max(idx, other)
            groups[keep] = merge_records(groups[keep], groups[drop])
            members[keep].extend(m for m in members[drop] if m not in members[keep])
            groups[drop] = None
            members[drop] = []
            for k, v in list(key_index.items()):
                if v == drop:
                    key_index[k] = keep
            idx = keep
            pending = True
            break


# ── Merging ──────────────────────────────────────────────────────────


def merge_records(existing: PaperRecord, incoming: PaperRecord) -> PaperRecord:
    """Merge two records of the same paper into a new record.

    Scalars prefer ``existing`` and fall back to ``incoming``; citation count
    takes the maximum; open access is true if either says so; keyword and
    category lists are concatenated as-is.
    """
    data = existing.model_dump()
    for field in _SCALAR_FIELDS:
        data[field] = getattr(existing, field) or getattr(incoming, field)
    data["authors"] = existing.authors or incoming.authors
    data["citation_count"] = max(existing.citation_count, incoming.citation_count)
    data["open_access"] = existing.open_access or incoming.open_access
    data["keywords"] = existing.keywords + incoming.keywords
    data["categories"] = existing.categories + incoming.categories
    data["sources"] = list(dict.fromkeys(existing.sources + incoming.sources))
    return PaperRecord.model_validate(data)
