"""Tests for reranking.py — Cohere, cross-encoder and pass-through rerankers (clients mocked)."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import numpy as np
import pytest
from cohere.core.api_error import ApiError

from rse_pipeline.errors import (
    ProviderAuthenticationError,
    ProviderUnavailableError,
    UnknownStrategyError,
)
from rse_pipeline.reranking import (
    RERANKERS,
    CohereReranker,
    LocalCrossEncoderReranker,
    NoReranker,
    create_reranker,
    format_for_rerank,
    reranker_from_dict,
)
from rse_pipeline.schema import SearchResult


class TestFormatForRerank:
    def test_header_in_brackets_then_text(self):
        result = SearchResult(doc_id="D", chunk_index=0, chunk_header="Intro", chunk_text="Body text")
        assert format_for_rerank(result) == "[Intro]\nBody text"


# ---------------------------------------------------------------------------
# CohereReranker
# ---------------------------------------------------------------------------

class TestCohereReranker:
    @pytest.fixture()
    def reranker(self):
        with patch("rse_pipeline.reranking.AsyncClientV2") as mock_cls:
            mock_client = MagicMock()
            mock_client.rerank = AsyncMock()
            mock_cls.return_value = mock_client
            yield CohereReranker(model="rerank-test")

    def test_reorders_by_result_indices(self, reranker, sample_results):
        reranker.client.rerank.return_value = SimpleNamespace(
            results=[SimpleNamespace(index=2), SimpleNamespace(index=0), SimpleNamespace(index=1)]
        )
        output = asyncio.run(reranker.rerank_search_results("lost laptop", sample_results))
        assert output == [sample_results[2], sample_results[0], sample_results[1]]

    def test_sends_formatted_documents(self, reranker, sample_results):
        reranker.client.rerank.return_value = SimpleNamespace(results=[])
        asyncio.run(reranker.rerank_search_results("q", sample_results))
        kwargs = reranker.client.rerank.call_args.kwargs
        assert kwargs["model"] == "rerank-test"
        assert kwargs["query"] == "q"
        assert kwargs["documents"][0] == "[Remote Work]\nEmployees may work remotely."

    def test_empty_results_skip_api_call(self, reranker):
        assert asyncio.run(reranker.rerank_search_results("q", [])) == []
        reranker.client.rerank.assert_not_called()

    def test_unauthorized_translated(self, reranker, sample_results):
        reranker.client.rerank.side_effect = ApiError(status_code=401, body="invalid api token")
        with pytest.raises(ProviderAuthenticationError) as excinfo:
            asyncio.run(reranker.rerank_search_results("q", sample_results))
        assert excinfo.value.provider == "cohere"
        assert excinfo.value.kind == "unauthenticated"

    def test_transport_error_translated(self, reranker, sample_results):
        reranker.client.rerank.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(ProviderUnavailableError):
            asyncio.run(reranker.rerank_search_results("q", sample_results))

    def test_to_dict(self, reranker):
        assert reranker.to_dict() == {"subclass_name": "CohereReranker", "model": "rerank-test"}


# ---------------------------------------------------------------------------
# LocalCrossEncoderReranker
# ---------------------------------------------------------------------------

class TestLocalCrossEncoderReranker:
    @pytest.fixture()
    def reranker(self):
        with patch("rse_pipeline.reranking.CrossEncoder") as mock_cls:
            mock_cls.return_value = MagicMock()
            yield LocalCrossEncoderReranker(model="cross-encoder/test-model")

    def test_sorts_by_score_descending(self, reranker, sample_results):
        reranker.model.predict.return_value = np.array([0.2, 0.9, 0.5])
        output = asyncio.run(reranker.rerank_search_results("q", sample_results))
        assert [r.doc_id for r in output] == ["DOC-002", "DOC-003", "DOC-001"]

    def test_equal_scores_keep_input_order(self, reranker, sample_results):
        reranker.model.predict.return_value = np.array([0.5, 0.5, 0.5])
        output = asyncio.run(reranker.rerank_search_results("q", sample_results))
        assert output == sample_results

    def test_passes_query_chunk_pairs(self, reranker, sample_results):
        reranker.model.predict.return_value = np.array([0.1, 0.2, 0.3])
        asyncio.run(reranker.rerank_search_results("my query", sample_results))
        pairs = reranker.model.predict.call_args[0][0]
        assert pairs[1] == ["my query", "[Travel]\nTravel is capped at 14 days."]

    def test_empty_results(self, reranker):
        assert asyncio.run(reranker.rerank_search_results("q", [])) == []

    def test_constructor_uses_model_name(self):
        with patch("rse_pipeline.reranking.CrossEncoder") as mock_cls:
            LocalCrossEncoderReranker(model="cross-encoder/custom")
            mock_cls.assert_called_once_with("cross-encoder/custom")


# ---------------------------------------------------------------------------
# NoReranker and registry
# ---------------------------------------------------------------------------

class TestNoReranker:
    def test_returns_same_order(self, sample_results):
        output = asyncio.run(NoReranker().rerank_search_results("q", sample_results))
        assert output == sample_results
        assert output is not sample_results

    def test_to_dict(self):
        assert NoReranker().to_dict() == {"subclass_name": "NoReranker"}


class TestRegistry:
    def test_registered_names(self):
        assert set(RERANKERS) == {"CohereReranker", "LocalCrossEncoderReranker", "NoReranker"}

    def test_create_no_reranker(self):
        assert isinstance(create_reranker("NoReranker"), NoReranker)

    def test_unknown_name_fails_fast(self):
        with pytest.raises(UnknownStrategyError) as excinfo:
            create_reranker("FancyReranker")
        assert excinfo.value.name == "FancyReranker"
        assert "NoReranker" in excinfo.value.available

    def test_from_dict(self):
        with patch("rse_pipeline.reranking.AsyncClientV2"):
            reranker = reranker_from_dict({"subclass_name": "CohereReranker", "model": "rerank-english-v3.0"})
        assert isinstance(reranker, CohereReranker)
        assert reranker.model == "rerank-english-v3.0"
