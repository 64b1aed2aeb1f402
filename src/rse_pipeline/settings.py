from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(slots=True)
class RSEParams:
    """Tuning knobs for relevant segment extraction."""

    max_length: int = 15
    overall_max_length: int = 30
    minimum_value: float = 0.5
    irrelevant_chunk_penalty: float = 0.18
    decay_rate: float = 20
    top_k_for_document_selection: int = 7


@dataclass(slots=True)
class LLMSettings:
    """Registry name and generation options for the LLM collaborator."""

    subclass_name: str = "OpenAIChatAPI"
    # None leaves the provider class default in place.
    model: str | None = None
    temperature: float = 0.2
    max_tokens: int = 1000

    def to_dict(self) -> dict:
        config = {
            "subclass_name": self.subclass_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.model is not None:
            config["model"] = self.model
        return config


@dataclass(slots=True)
class RerankerSettings:
    """Registry name and model for the reranking collaborator."""

    subclass_name: str = "NoReranker"
    model: str | None = None

    def to_dict(self) -> dict:
        config = {"subclass_name": self.subclass_name}
        if self.model is not None and self.subclass_name != "NoReranker":
            config["model"] = self.model
        return config


def load_settings() -> tuple[LLMSettings, RerankerSettings, RSEParams]:
    """Load environment-backed settings and return typed config objects.

    Returns:
        Tuple containing LLM settings, reranker settings and RSE parameters.
    """
    load_dotenv()
    defaults = RSEParams()
    return (
        LLMSettings(
            subclass_name=os.getenv("RSE_LLM_PROVIDER", "OpenAIChatAPI"),
            model=os.getenv("RSE_LLM_MODEL"),
            temperature=float(os.getenv("RSE_LLM_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("RSE_LLM_MAX_TOKENS", "1000")),
        ),
        RerankerSettings(
            subclass_name=os.getenv("RSE_RERANKER", "NoReranker"),
            model=os.getenv("RSE_RERANK_MODEL"),
        ),
        RSEParams(
            max_length=int(os.getenv("RSE_MAX_LENGTH", defaults.max_length)),
            overall_max_length=int(os.getenv("RSE_OVERALL_MAX_LENGTH", defaults.overall_max_length)),
            minimum_value=float(os.getenv("RSE_MINIMUM_VALUE", defaults.minimum_value)),
            irrelevant_chunk_penalty=float(
                os.getenv("RSE_IRRELEVANT_CHUNK_PENALTY", defaults.irrelevant_chunk_penalty)
            ),
            decay_rate=float(os.getenv("RSE_DECAY_RATE", defaults.decay_rate)),
            top_k_for_document_selection=int(
                os.getenv("RSE_TOP_K_FOR_DOCUMENT_SELECTION", defaults.top_k_for_document_selection)
            ),
        ),
    )
