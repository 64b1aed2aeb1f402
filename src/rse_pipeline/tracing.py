"""OpenTelemetry tracing helpers for segment extraction.

Usage with an OTLP backend such as Arize Phoenix:

    from rse_pipeline.tracing import configure_tracing, get_tracer
    from rse_pipeline.tracing import traced_extraction, traced_rerank

    configure_tracing(
        endpoint="http://localhost:6006/v1/traces",
        service_name="rse-pipeline",
    )
    tracer = get_tracer("rse-pipeline")
    extract = traced_extraction(extract_segments, tracer)
    reranker = traced_rerank(CohereReranker(), tracer)

Without an endpoint, spans are printed to stdout via ``ConsoleSpanExporter``.
"""
from __future__ import annotations

from typing import Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from .reranking import Reranker
from .schema import DocumentSegment, SearchResult

# OpenInference attribute names shared with other RAG tooling.
ATTR_INPUT_VALUE = "input.value"
ATTR_RETRIEVAL_DOCUMENTS = "retrieval.documents"
ATTR_RERANKER_NAME = "reranker.name"

ATTR_RSE_RANKED_LISTS = "rse.ranked_lists"
ATTR_RSE_SEGMENTS = "rse.segments"
ATTR_RSE_TOTAL_LENGTH = "rse.total_length"

_provider: TracerProvider | None = None


def configure_tracing(
    endpoint: str | None = None,
    service_name: str = "rse-pipeline",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create and register a global TracerProvider.

    Args:
        endpoint: OTLP HTTP endpoint URL (e.g. ``http://localhost:6006/v1/traces``).
            Ignored when *exporter* is given; when both are *None*, spans go to
            :class:`~opentelemetry.sdk.trace.export.ConsoleSpanExporter`.
        service_name: Label identifying this application in the backend.
        exporter: Pre-built exporter, e.g. ``InMemorySpanExporter`` in tests.

    Returns:
        The configured provider, also installed as the global OTel provider.
    """
    global _provider

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        chosen_exporter: SpanExporter = exporter
    elif endpoint is not None:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:  # pragma: no cover
            raise ImportError(
                "opentelemetry-exporter-otlp-proto-http is required to export "
                "traces to an OTLP endpoint.  Install the 'otlp' extra:\n"
                "  pip install relevant-segment-extraction[otlp]"
            ) from exc
        chosen_exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        chosen_exporter = ConsoleSpanExporter()

    provider.add_span_processor(SimpleSpanProcessor(chosen_exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the provider set by :func:`configure_tracing`.

    Falls back to the global (possibly no-op) provider when tracing was never
    configured.
    """
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def traced_extraction(
    extract_fn: Callable[..., list[DocumentSegment]],
    tracer: trace.Tracer,
) -> Callable[..., list[DocumentSegment]]:
    """Wrap an extraction callable so every call is recorded as an ``rse.extract`` span.

    The span records how many ranked lists went in, how many segments came
    out and their summed chunk length. Exceptions mark the span as ERROR and
    propagate unchanged.
    """

    def _wrapped(ranked_lists: list[list[SearchResult]], *args, **kwargs) -> list[DocumentSegment]:
        with tracer.start_as_current_span("rse.extract") as span:
            span.set_attribute(ATTR_RSE_RANKED_LISTS, len(ranked_lists))
            try:
                segments = extract_fn(ranked_lists, *args, **kwargs)
                span.set_attribute(ATTR_RSE_SEGMENTS, len(segments))
                span.set_attribute(
                    ATTR_RSE_TOTAL_LENGTH,
                    sum(segment.chunk_end - segment.chunk_start for segment in segments),
                )
                span.set_status(trace.StatusCode.OK)
                return segments
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


class TracedReranker(Reranker):
    """Reranker decorator that records each call as a ``rerank`` span."""

    def __init__(self, reranker: Reranker, tracer: trace.Tracer):
        self.reranker = reranker
        self.tracer = tracer

    async def rerank_search_results(self, query: str, search_results: list[SearchResult]) -> list[SearchResult]:
        with self.tracer.start_as_current_span("rerank") as span:
            span.set_attribute(ATTR_INPUT_VALUE, query)
            span.set_attribute(ATTR_RERANKER_NAME, type(self.reranker).__name__)
            try:
                reranked = await self.reranker.rerank_search_results(query, search_results)
                span.set_attribute(ATTR_RETRIEVAL_DOCUMENTS, len(reranked))
                span.set_status(trace.StatusCode.OK)
                return reranked
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    def to_dict(self) -> dict:
        return self.reranker.to_dict()


def traced_rerank(reranker: Reranker, tracer: trace.Tracer) -> Reranker:
    """Return *reranker* wrapped so each rerank call produces a span."""
    return TracedReranker(reranker, tracer)
