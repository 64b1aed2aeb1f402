"""Relevant segment extraction (RSE).

Turns several ranked lists of chunks into a small set of contiguous,
non-overlapping chunk ranges ("segments"):

1. the candidate documents are laid out back-to-back in a meta-document,
2. every ranked list becomes one row of per-position relevance values,
3. rows take turns greedily claiming their best admissible segment until the
   overall length budget is used up or every row has run out of good ones.

Everything here is pure in-memory computation over small arrays.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from .schema import DocumentSegment, MetaDocument, SearchResult, Segment
from .settings import RSEParams

logger = logging.getLogger(__name__)

# Rank assigned to positions a ranked list does not mention.
IRRELEVANT_RANK = 1000


def rank_to_value(rank, irrelevant_chunk_penalty: float, decay_rate: float = 20):
    """Convert a 0-based rank into a decayed relevance value.

    Args:
        rank: Rank as an int/float, or a NumPy array of ranks.
        irrelevant_chunk_penalty: Constant subtracted from the decay term.
        decay_rate: Larger values flatten the decay across ranks.

    Returns:
        `exp(-rank / decay_rate) - irrelevant_chunk_penalty`, as a float for
        scalar input or an array of the same shape for array input.
    """
    values = np.exp(-np.asarray(rank, dtype=float) / decay_rate) - irrelevant_chunk_penalty
    if values.ndim == 0:
        return float(values)
    return values


def build_meta_document(
    ranked_lists: Sequence[Sequence[SearchResult]],
    top_k_for_document_selection: int = 7,
) -> MetaDocument:
    """Lay out the most promising documents in one shared index space.

    Args:
        ranked_lists: One ranked list of search results per query.
        top_k_for_document_selection: Only documents appearing in the first
            `k` entries of some list become candidates.

    Returns:
        `MetaDocument` with one split (end offset) per candidate document.
    """
    document_ids = list(
        dict.fromkeys(
            result.doc_id
            for ranked in ranked_lists
            for result in ranked[:top_k_for_document_selection]
        )
    )

    # Lengths are lower bounds taken from the chunk indices actually observed.
    max_chunk_index: dict[str, int] = {}
    for ranked in ranked_lists:
        for result in ranked:
            if result.doc_id in max_chunk_index:
                max_chunk_index[result.doc_id] = max(max_chunk_index[result.doc_id], result.chunk_index)
            else:
                max_chunk_index[result.doc_id] = result.chunk_index

    splits: list[int] = []
    document_offsets: dict[str, int] = {}
    offset = 0
    for doc_id in document_ids:
        document_offsets[doc_id] = offset
        offset += max_chunk_index[doc_id] + 1
        splits.append(offset)

    return MetaDocument(splits=splits, document_offsets=document_offsets, document_ids=document_ids)


def build_relevance_matrix(
    ranked_lists: Sequence[Sequence[SearchResult]],
    meta_document: MetaDocument,
    irrelevant_chunk_penalty: float,
    decay_rate: float = 20,
) -> np.ndarray:
    """Score every meta-document position once per ranked list.

    Results from documents outside the meta-document are ignored. When a
    list mentions the same chunk twice, the later rank wins.

    Returns:
        Array shaped `(len(ranked_lists), meta_document.length)`; negative
        values mark positions the list ranked poorly or not at all.
    """
    ranks = np.full((len(ranked_lists), meta_document.length), IRRELEVANT_RANK, dtype=float)
    for row, ranked in enumerate(ranked_lists):
        for rank, result in enumerate(ranked):
            offset = meta_document.document_offsets.get(result.doc_id)
            if offset is None:
                continue
            ranks[row, offset + result.chunk_index] = rank
    return rank_to_value(ranks, irrelevant_chunk_penalty, decay_rate)


def _best_segment_for_row(
    values: np.ndarray,
    row: int,
    splits: Sequence[int],
    max_length: int,
    remaining_length: int,
    taken: list[Segment],
) -> Segment | None:
    prefix = np.concatenate(([0.0], np.cumsum(values)))
    longest = min(max_length, remaining_length)
    best: Segment | None = None

    for start in range(len(values)):
        if values[start] < 0:
            continue
        for end in range(start + 1, min(start + longest, len(values)) + 1):
            # Any longer range would also overlap or straddle the same boundary.
            if any(start < segment.end and end > segment.start for segment in taken):
                break
            if any(start < split < end for split in splits):
                break
            if values[end - 1] < 0:
                continue
            value = float(prefix[end] - prefix[start])
            if best is None or value > best.score:
                best = Segment(start=start, end=end, source_list=row, score=value)

    return best


def get_best_segments(
    relevance_matrix,
    splits: Sequence[int],
    max_length: int,
    overall_max_length: int,
    minimum_value: float,
) -> list[Segment]:
    """Greedily pick non-overlapping segments, one row per turn.

    Rows are visited round-robin. On its turn a row claims the highest-value
    range that starts and ends on a non-negative value, is at most
    `max_length` long, overlaps no segment selected so far, crosses no split
    and fits in the remaining budget. A row whose best range is missing or
    worth less than `minimum_value` is retired.

    Args:
        relevance_matrix: One row of relevance values per ranked list.
        splits: Document end offsets in the meta-document.
        max_length: Maximum length of a single segment.
        overall_max_length: Budget for the summed length of all segments.
        minimum_value: Smallest segment value a row may still contribute.

    Returns:
        Segments in the order they were selected.
    """
    rows = [np.asarray(row, dtype=float) for row in relevance_matrix]
    best_segments: list[Segment] = []
    total_length = 0
    exhausted: set[int] = set()
    row = 0

    while total_length < overall_max_length and len(exhausted) < len(rows):
        if row not in exhausted:
            segment = _best_segment_for_row(
                rows[row],
                row,
                splits,
                max_length,
                overall_max_length - total_length,
                best_segments,
            )
            if segment is None or segment.score < minimum_value:
                exhausted.add(row)
            else:
                best_segments.append(segment)
                total_length += segment.length
        row = (row + 1) % len(rows)

    logger.debug(
        "Selected %d segments (total length %d/%d) from %d relevance rows",
        len(best_segments),
        total_length,
        overall_max_length,
        len(rows),
    )
    return best_segments


def segments_to_document_segments(
    segments: Sequence[Segment], meta_document: MetaDocument
) -> list[DocumentSegment]:
    """Translate meta-document ranges back to per-document chunk ranges."""
    document_segments: list[DocumentSegment] = []
    for segment in segments:
        doc_id, chunk_start = meta_document.locate(segment.start)
        document_segments.append(
            DocumentSegment(
                doc_id=doc_id,
                chunk_start=chunk_start,
                chunk_end=chunk_start + segment.length,
                score=segment.score,
                source_list=segment.source_list,
            )
        )
    return document_segments


def extract_segments(
    ranked_lists: Sequence[Sequence[SearchResult]],
    params: RSEParams | None = None,
) -> list[DocumentSegment]:
    """Run the full extraction from ranked lists to document chunk ranges.

    Args:
        ranked_lists: One ranked list of search results per query.
        params: Extraction parameters; defaults to `RSEParams()`.

    Returns:
        Selected segments mapped to `(doc_id, chunk_start, chunk_end)`, in
        selection order.
    """
    params = params or RSEParams()
    meta_document = build_meta_document(ranked_lists, params.top_k_for_document_selection)
    relevance_matrix = build_relevance_matrix(
        ranked_lists,
        meta_document,
        params.irrelevant_chunk_penalty,
        params.decay_rate,
    )
    segments = get_best_segments(
        relevance_matrix,
        meta_document.splits,
        params.max_length,
        params.overall_max_length,
        params.minimum_value,
    )
    return segments_to_document_segments(segments, meta_document)
