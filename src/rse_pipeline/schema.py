from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field


@dataclass(slots=True)
class SearchResult:
    """Candidate chunk returned by a search or rerank stage."""

    doc_id: str
    chunk_index: int
    chunk_header: str = ""
    chunk_text: str = ""
    score: float = 0.0


@dataclass(slots=True)
class MetaDocument:
    """Candidate documents laid out back-to-back in one index space.

    `splits[i]` is the end offset of `document_ids[i]`, so the last split is
    the total length of the meta-document.
    """

    splits: list[int] = field(default_factory=list)
    document_offsets: dict[str, int] = field(default_factory=dict)
    document_ids: list[str] = field(default_factory=list)

    @property
    def length(self) -> int:
        return self.splits[-1] if self.splits else 0

    def locate(self, index: int) -> tuple[str, int]:
        """Map a meta-document position to `(doc_id, chunk_index)`."""
        if not 0 <= index < self.length:
            raise IndexError(f"meta-document index {index} out of range [0, {self.length})")
        doc_id = self.document_ids[bisect_right(self.splits, index)]
        return doc_id, index - self.document_offsets[doc_id]


@dataclass(slots=True)
class Segment:
    """Half-open meta-document range selected from one relevance row."""

    start: int
    end: int
    source_list: int
    score: float

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(slots=True)
class DocumentSegment:
    """Selected segment expressed as a chunk range of a single document."""

    doc_id: str
    chunk_start: int
    chunk_end: int
    score: float
    source_list: int


@dataclass(slots=True)
class Excerpt:
    """Document segment with its chunk texts joined for prompting."""

    doc_id: str
    chunk_start: int
    chunk_end: int
    score: float
    text: str
