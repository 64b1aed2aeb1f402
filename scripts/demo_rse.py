from rse_pipeline.rse import build_meta_document, build_relevance_matrix, get_best_segments
from rse_pipeline.schema import SearchResult


def _ranked(doc_id: str, chunk_order: list[int]) -> list[SearchResult]:
    return [SearchResult(doc_id=doc_id, chunk_index=idx) for idx in chunk_order]


if __name__ == "__main__":
    ranked_lists = [_ranked("docA", [2, 1, 3, 0, 4]), _ranked("docA", [1, 2, 0, 4, 3])]
    meta_document = build_meta_document(ranked_lists, top_k_for_document_selection=5)
    matrix = build_relevance_matrix(ranked_lists, meta_document, irrelevant_chunk_penalty=0.2, decay_rate=20)
    segments = get_best_segments(matrix, meta_document.splits, max_length=3, overall_max_length=5, minimum_value=0.0)
    print(
        {
            "splits": meta_document.splits,
            "segments": [(segment.start, segment.end, segment.source_list) for segment in segments],
        }
    )
