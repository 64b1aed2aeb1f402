from __future__ import annotations

import asyncio
import logging

import httpx
from cohere import AsyncClientV2
from cohere.core.api_error import ApiError
from sentence_transformers import CrossEncoder

from .errors import ProviderUnavailableError, UnknownStrategyError, provider_error_from_status
from .schema import SearchResult

logger = logging.getLogger(__name__)


def format_for_rerank(result: SearchResult) -> str:
    """Render a chunk the way rerankers see it: bracketed header, then text."""
    return f"[{result.chunk_header}]\n{result.chunk_text}"


class Reranker:
    """Base class for strategies that reorder search results for a query."""

    async def rerank_search_results(self, query: str, search_results: list[SearchResult]) -> list[SearchResult]:
        raise NotImplementedError("rerank_search_results must be implemented by subclasses")

    def to_dict(self) -> dict:
        return {"subclass_name": type(self).__name__}


class CohereReranker(Reranker):
    """Hosted reranking through the Cohere v2 rerank endpoint (reads `CO_API_KEY`)."""

    def __init__(self, model: str = "rerank-v3.5"):
        self.model = model
        self.client = AsyncClientV2()

    async def rerank_search_results(self, query: str, search_results: list[SearchResult]) -> list[SearchResult]:
        """Reorder results by Cohere relevance.

        Args:
            query: Query string the results were retrieved for.
            search_results: Candidates to reorder.

        Returns:
            The same `SearchResult` objects in the order Cohere ranked them.

        Raises:
            ProviderError: Translated Cohere status or transport failure.
        """
        if not search_results:
            return []

        try:
            response = await self.client.rerank(
                model=self.model,
                query=query,
                documents=[format_for_rerank(result) for result in search_results],
            )
        except ApiError as exc:
            logger.error("Cohere rerank failed with status %s: %s", exc.status_code, exc)
            raise provider_error_from_status("cohere", exc.status_code, str(exc)) from exc
        except httpx.TransportError as exc:
            logger.error("Cohere connection error: %s", exc)
            raise ProviderUnavailableError("cohere", str(exc)) from exc

        return [search_results[item.index] for item in response.results]

    def to_dict(self) -> dict:
        return {"subclass_name": type(self).__name__, "model": self.model}


class LocalCrossEncoderReranker(Reranker):
    """Second-stage reranker using a local cross-encoder model."""

    def __init__(self, model: str = "cross-encoder/ms-marco-MiniLM-L-6-v2"):
        """Initialize the cross-encoder used for pairwise query-chunk scoring.

        Args:
            model: Sentence-transformers cross-encoder model identifier.
        """
        self.model_name = model
        self.model = CrossEncoder(model)

    async def rerank_search_results(self, query: str, search_results: list[SearchResult]) -> list[SearchResult]:
        if not search_results:
            return []

        pairs = [[query, format_for_rerank(result)] for result in search_results]
        # predict is CPU-bound; keep it off the event loop.
        scores = await asyncio.to_thread(self.model.predict, pairs)

        order = sorted(range(len(search_results)), key=lambda idx: float(scores[idx]), reverse=True)
        return [search_results[idx] for idx in order]

    def to_dict(self) -> dict:
        return {"subclass_name": type(self).__name__, "model": self.model_name}


class NoReranker(Reranker):
    """Pass-through strategy that keeps the incoming order."""

    async def rerank_search_results(self, query: str, search_results: list[SearchResult]) -> list[SearchResult]:
        return list(search_results)


RERANKERS: dict[str, type[Reranker]] = {
    "CohereReranker": CohereReranker,
    "LocalCrossEncoderReranker": LocalCrossEncoderReranker,
    "NoReranker": NoReranker,
}


def create_reranker(subclass_name: str, **options) -> Reranker:
    """Instantiate a registered reranker by name.

    Raises:
        UnknownStrategyError: If `subclass_name` is not registered.
    """
    reranker_cls = RERANKERS.get(subclass_name)
    if reranker_cls is None:
        raise UnknownStrategyError(subclass_name, list(RERANKERS))
    return reranker_cls(**options)


def reranker_from_dict(config: dict) -> Reranker:
    """Rebuild a reranker from the output of `Reranker.to_dict`."""
    options = dict(config)
    return create_reranker(options.pop("subclass_name", ""), **options)
