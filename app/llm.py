"""
LLM Service module for the Study Assistant.
Provides a unified text-generation interface over Gemini, OpenAI and Ollama.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from app.config import Config

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            temperature: Override default temperature.
            max_tokens: Override default max tokens.

        Returns:
            The assistant's response text.
        """

    async def close(self) -> None:
        """Release any network resources held by the provider."""


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider implementation."""

    def __init__(self):
        from google import genai
        from google.genai import types

        self.client = genai.Client(api_key=Config.GEMINI_API_KEY)
        self.types = types
        self.model_name = Config.GEMINI_MODEL
        self.default_temperature = Config.LLM_TEMPERATURE
        self.default_max_tokens = Config.LLM_MAX_TOKENS

    def _to_contents(self, messages: list[dict[str, str]]) -> list:
        # Gemini has no system role; it is folded into the last turn
        system_msg = next((m["content"] for m in messages if m["role"] == "system"), None)
        turns = [m for m in messages if m["role"] != "system"]

        contents = []
        for i, msg in enumerate(turns):
            text = msg["content"]
            if system_msg and i == len(turns) - 1:
                text = f"{system_msg}\n\n{text}"
            role = "user" if msg["role"] == "user" else "model"
            contents.append(self.types.Content(role=role, parts=[self.types.Part(text=text)]))
        return contents

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=self._to_contents(messages),
            config=self.types.GenerateContentConfig(
                temperature=temperature or self.default_temperature,
                max_output_tokens=max_tokens or self.default_max_tokens,
            ),
        )
        return response.text or ""


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation."""

    def __init__(self):
        from openai import AsyncOpenAI

        self.client = AsyncOpenAI(
            api_key=Config.OPENAI_API_KEY,
            base_url=Config.OPENAI_BASE_URL,
        )
        self.model = Config.OPENAI_MODEL
        self.default_temperature = Config.LLM_TEMPERATURE
        self.default_max_tokens = Config.LLM_MAX_TOKENS

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature or self.default_temperature,
            max_tokens=max_tokens or self.default_max_tokens,
        )
        return response.choices[0].message.content or ""


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider implementation."""

    def __init__(self):
        self.base_url = Config.OLLAMA_BASE_URL
        self.model = Config.OLLAMA_MODEL
        self.default_temperature = Config.LLM_TEMPERATURE
        self.default_max_tokens = Config.LLM_MAX_TOKENS
        self.client = httpx.AsyncClient(timeout=120.0)

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        response = await self.client.post(
            f"{self.base_url}/api/chat",
            json={
                "model": self.model,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": temperature or self.default_temperature,
                    "num_predict": max_tokens or self.default_max_tokens,
                },
            },
        )
        response.raise_for_status()
        return response.json().get("message", {}).get("content", "")

    async def close(self) -> None:
        await self.client.aclose()


_providers: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
}

_llm_instance: Optional[LLMProvider] = None


def get_llm_provider() -> LLMProvider:
    """
    Get the configured LLM provider instance (singleton).

    Raises:
        ValueError: If the provider is not supported or not configured.
    """
    global _llm_instance

    if _llm_instance is None:
        provider_name = Config.LLM_PROVIDER.lower()

        if provider_name not in _providers:
            raise ValueError(
                f"Unsupported LLM provider: {provider_name}. "
                f"Supported: {', '.join(_providers.keys())}"
            )

        Config.validate_llm_config()
        _llm_instance = _providers[provider_name]()
        logger.info("Initialized LLM provider: %s", provider_name)

    return _llm_instance


async def close_llm_provider() -> None:
    """Close the provider singleton if one was created."""
    global _llm_instance

    if _llm_instance is not None:
        await _llm_instance.close()
        _llm_instance = None


async def chat(
    messages: list[dict[str, str]],
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """Convenience function for chat completion."""
    return await get_llm_provider().chat(messages, temperature, max_tokens)


async def generate(prompt: str) -> str:
    """Generate text for a single prompt, sent as one user message."""
    return await chat([{"role": "user", "content": prompt}])
