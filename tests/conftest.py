"""Shared pytest fixtures for rse_pipeline unit tests."""
from __future__ import annotations

import pytest

from rse_pipeline.schema import SearchResult


def _ranked(doc_id: str, chunk_order: list[int]) -> list[SearchResult]:
    return [
        SearchResult(
            doc_id=doc_id,
            chunk_index=idx,
            chunk_header=f"{doc_id} header",
            chunk_text=f"{doc_id} chunk {idx}",
        )
        for idx in chunk_order
    ]


@pytest.fixture()
def single_doc_ranked_lists() -> list[list[SearchResult]]:
    """Two rankings of the five chunks of one document."""
    return [_ranked("docA", [2, 1, 3, 0, 4]), _ranked("docA", [1, 2, 0, 4, 3])]


@pytest.fixture()
def two_doc_ranked_list() -> list[list[SearchResult]]:
    """One ranking that alternates between two short documents."""
    return [
        [
            SearchResult(doc_id="docA", chunk_index=0, chunk_text="A0"),
            SearchResult(doc_id="docA", chunk_index=1, chunk_text="A1"),
            SearchResult(doc_id="docB", chunk_index=0, chunk_text="B0"),
            SearchResult(doc_id="docB", chunk_index=1, chunk_text="B1"),
        ]
    ]


@pytest.fixture()
def sample_results() -> list[SearchResult]:
    return [
        SearchResult(doc_id="DOC-001", chunk_index=0, chunk_header="Remote Work", chunk_text="Employees may work remotely."),
        SearchResult(doc_id="DOC-002", chunk_index=3, chunk_header="Travel", chunk_text="Travel is capped at 14 days."),
        SearchResult(doc_id="DOC-003", chunk_index=1, chunk_header="Security", chunk_text="Report lost devices."),
    ]
