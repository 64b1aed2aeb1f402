from __future__ import annotations

from .llm import LLM
from .schema import Excerpt

SYSTEM_MESSAGE = (
    "You are a research assistant. Answer only from the provided excerpts. "
    "If the answer is not present, say you do not have enough context. "
    "Cite the excerpts you used like [Excerpt 1]."
)


def build_context(excerpts: list[Excerpt]) -> str:
    return "\n\n".join(
        f"Excerpt {idx + 1} [{excerpt.doc_id}, chunks {excerpt.chunk_start}-{excerpt.chunk_end - 1}]:\n{excerpt.text}"
        for idx, excerpt in enumerate(excerpts)
    )


async def answer_with_excerpts(question: str, excerpts: list[Excerpt], llm: LLM) -> str:
    prompt = f"Question: {question}\n\nExcerpts:\n{build_context(excerpts)}"
    return await llm.make_llm_call([{"role": "user", "content": prompt}], system_message=SYSTEM_MESSAGE)
