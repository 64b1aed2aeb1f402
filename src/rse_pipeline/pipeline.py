from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .reranking import Reranker
from .rse import extract_segments
from .schema import DocumentSegment, Excerpt, SearchResult
from .settings import RSEParams

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], list[SearchResult]]


async def get_ranked_lists(queries: list[str], search_fn: SearchFn, reranker: Reranker) -> list[list[SearchResult]]:
    """Search once per query and rerank every result list against its query.

    Args:
        queries: Query variants to search for.
        search_fn: Blocking callable returning ranked search results for one
            query; each call runs in a worker thread.
        reranker: Strategy applied to each query's results; calls run concurrently.

    Returns:
        One reranked list per query, in query order.
    """
    searches = await asyncio.gather(*(asyncio.to_thread(search_fn, query) for query in queries))
    reranked = await asyncio.gather(
        *(reranker.rerank_search_results(query, results) for query, results in zip(queries, searches, strict=True))
    )
    return list(reranked)


def build_excerpts(document_segments: list[DocumentSegment], ranked_lists: list[list[SearchResult]]) -> list[Excerpt]:
    """Attach chunk text to each segment using the chunks seen in the ranked lists.

    Chunks inside a segment that no list returned contribute no text.
    """
    chunk_texts: dict[tuple[str, int], str] = {}
    for ranked in ranked_lists:
        for result in ranked:
            chunk_texts[(result.doc_id, result.chunk_index)] = result.chunk_text

    excerpts: list[Excerpt] = []
    for segment in document_segments:
        texts = [
            chunk_texts[(segment.doc_id, idx)]
            for idx in range(segment.chunk_start, segment.chunk_end)
            if (segment.doc_id, idx) in chunk_texts
        ]
        excerpts.append(
            Excerpt(
                doc_id=segment.doc_id,
                chunk_start=segment.chunk_start,
                chunk_end=segment.chunk_end,
                score=segment.score,
                text="\n".join(texts),
            )
        )
    return excerpts


async def retrieve_segments(
    queries: list[str],
    search_fn: SearchFn,
    reranker: Reranker,
    params: RSEParams | None = None,
) -> list[DocumentSegment]:
    """Search, rerank and extract the most relevant segments for a set of queries."""
    ranked_lists = await get_ranked_lists(queries, search_fn, reranker)
    return extract_segments(ranked_lists, params)


async def retrieve_excerpts(
    queries: list[str],
    search_fn: SearchFn,
    reranker: Reranker,
    params: RSEParams | None = None,
) -> list[Excerpt]:
    """Like `retrieve_segments`, but returns segments with their text attached."""
    ranked_lists = await get_ranked_lists(queries, search_fn, reranker)
    segments = extract_segments(ranked_lists, params)
    logger.info("Extracted %d segments for %d queries", len(segments), len(queries))
    return build_excerpts(segments, ranked_lists)
