"""Relevant segment extraction for retrieval-augmented generation."""

from .rse import extract_segments
from .schema import DocumentSegment, Excerpt, MetaDocument, SearchResult, Segment
from .settings import RSEParams

__all__ = [
    "SearchResult",
    "MetaDocument",
    "Segment",
    "DocumentSegment",
    "Excerpt",
    "RSEParams",
    "extract_segments",
]
