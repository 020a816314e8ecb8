"""Chat completion engine for OpenAI-compatible providers."""

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp

from ..models.settings import ProviderConfig

logger = logging.getLogger(__name__)

PROVIDER_ENDPOINTS = {
    "openai": "https://api.openai.com/v1/chat/completions",
    "groq": "https://api.groq.com/openai/v1/chat/completions",
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
}

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "groq": "llama-3.3-70b-versatile",
    "gemini": "gemini-1.5-flash-latest",
}


class AIProviderError(Exception):
    """The AI provider could not produce a response."""


class CompletionEngine(Protocol):
    """Protocol for engines that turn a prompt into response text."""

    async def send_prompt(self, prompt: str, **kwargs) -> str:
        """Send a prompt to the engine and get response."""
        ...


class ChatCompletionEngine:
    """Simple engine for sending prompts to a chat completion API and getting responses."""

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: Optional[str] = None,
        timeout_seconds: float = 30.0,
    ):
        """Initialize chat completion engine.

        Args:
            provider: One of "openai", "groq", "gemini"
            api_key: Provider API key
            model: Model name; provider default if omitted
            timeout_seconds: Total request timeout
        """
        if provider not in PROVIDER_ENDPOINTS:
            raise ValueError(f"Unsupported AI provider: {provider}")

        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[provider]
        self.base_url = PROVIDER_ENDPOINTS[provider]
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"ChatCompletionEngine initialized: {provider} / {self.model}")

    async def send_prompt(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Send a prompt and get the response text.

        Args:
            prompt: User message
            system_prompt: Optional system message
            temperature: Temperature for response generation (0.0 to 1.0)
            max_tokens: Maximum tokens in response

        Returns:
            Response text

        Raises:
            AIProviderError: If the API call fails or the response is malformed
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        data = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise AIProviderError(f"{self.provider} API error: {response.status} - {error_text}")

                    result = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AIProviderError(f"{self.provider} request failed: {e}") from e

        try:
            return result["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise AIProviderError(f"{self.provider} returned an unexpected response shape") from e


def create_engine(config: ProviderConfig) -> ChatCompletionEngine:
    """Build an engine for a provider config that has a credential."""
    if not config.has_credential:
        raise ValueError("AI provider and API key are required")
    return ChatCompletionEngine(config.provider, config.api_key, config.model)
