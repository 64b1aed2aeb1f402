"""Chat-completion providers selectable by name.

Each provider exposes one coroutine, `make_llm_call`, so callers can await
it, run several concurrently, or cancel it through their event loop.
"""
from __future__ import annotations

import logging

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from .errors import ProviderUnavailableError, UnknownStrategyError, provider_error_from_status

logger = logging.getLogger(__name__)


class LLM:
    """Base class for chat-completion providers."""

    def __init__(self, model: str, temperature: float = 0.2, max_tokens: int = 1000):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def make_llm_call(self, chat_messages: list[dict], system_message: str | None = None) -> str:
        raise NotImplementedError("make_llm_call must be implemented by subclasses")

    def to_dict(self) -> dict:
        return {
            "subclass_name": type(self).__name__,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


class OpenAIChatAPI(LLM):
    """OpenAI Chat Completions provider (reads `OPENAI_API_KEY`)."""

    def __init__(self, model: str = "gpt-4.1-mini", temperature: float = 0.2, max_tokens: int = 1000):
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens)
        self.client = AsyncOpenAI()

    async def make_llm_call(self, chat_messages: list[dict], system_message: str | None = None) -> str:
        """Generate a reply for the given chat turns.

        Args:
            chat_messages: Chat turns as `{"role": ..., "content": ...}` dicts.
            system_message: Optional instruction sent as a leading system turn.

        Returns:
            The stripped reply text, or an empty string when the model returned none.

        Raises:
            ProviderError: Translated OpenAI status or connection failure.
        """
        messages = list(chat_messages)
        if system_message:
            messages.insert(0, {"role": "system", "content": system_message})

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIStatusError as exc:
            logger.error("OpenAI request failed with status %s: %s", exc.status_code, exc)
            raise provider_error_from_status("openai", exc.status_code, str(exc)) from exc
        except openai.APIConnectionError as exc:
            logger.error("OpenAI connection error: %s", exc)
            raise ProviderUnavailableError("openai", str(exc)) from exc

        if not completion.choices:
            return ""
        content = completion.choices[0].message.content
        return content.strip() if content else ""


class AnthropicChatAPI(LLM):
    """Anthropic Messages provider (reads `ANTHROPIC_API_KEY`)."""

    def __init__(
        self,
        model: str = "claude-3-haiku-20240307",
        temperature: float = 0.2,
        max_tokens: int = 1000,
    ):
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens)
        self.client = AsyncAnthropic()

    async def make_llm_call(self, chat_messages: list[dict], system_message: str | None = None) -> str:
        params = {
            "model": self.model,
            "messages": chat_messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if system_message:
            params["system"] = system_message

        try:
            message = await self.client.messages.create(**params)
        except anthropic.APIStatusError as exc:
            logger.error("Anthropic request failed with status %s: %s", exc.status_code, exc)
            raise provider_error_from_status("anthropic", exc.status_code, str(exc)) from exc
        except anthropic.APIConnectionError as exc:
            logger.error("Anthropic connection error: %s", exc)
            raise ProviderUnavailableError("anthropic", str(exc)) from exc

        for block in message.content:
            if block.type == "text":
                return block.text
        return ""


LLM_PROVIDERS: dict[str, type[LLM]] = {
    "OpenAIChatAPI": OpenAIChatAPI,
    "AnthropicChatAPI": AnthropicChatAPI,
}


def create_llm(subclass_name: str, **options) -> LLM:
    """Instantiate a registered provider by name.

    Raises:
        UnknownStrategyError: If `subclass_name` is not registered.
    """
    provider_cls = LLM_PROVIDERS.get(subclass_name)
    if provider_cls is None:
        raise UnknownStrategyError(subclass_name, list(LLM_PROVIDERS))
    return provider_cls(**options)


def llm_from_dict(config: dict) -> LLM:
    """Rebuild a provider from the output of `LLM.to_dict`."""
    options = dict(config)
    return create_llm(options.pop("subclass_name", ""), **options)
