"""
LLM client abstraction for diff review.

Each backend implements one capability: send a prompt, get raw text back.
The system prompt and model parameters are fixed at construction time.
Parsing, validation and the repair protocol live in the review layer.
"""

import logging
from abc import ABC, abstractmethod

from safecommit.config import Settings
from safecommit.errors import ConfigurationError, LLMError
from safecommit.llm.prompts import build_system_prompt

logger = logging.getLogger(__name__)


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    provider = "abstract"

    def __init__(
        self,
        system_prompt: str,
        model_name: str,
        max_tokens: int = 8192,
        temperature: float = 0.2,
    ):
        self.system_prompt = system_prompt
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Send ``prompt`` with the configured system instruction.

        Args:
            prompt: User message

        Returns:
            Raw response text, unparsed

        Raises:
            LLMError: If the backend call fails
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model_name!r})"


class GeminiClient(LLMClient):
    """Google Gemini client implementation."""

    provider = "gemini"

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        try:
            from google import genai
            from google.genai import types
        except ImportError:
            raise ConfigurationError("google-genai package not installed. Run: pip install google-genai")
        self._types = types
        self.client = genai.Client(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Generate a JSON response using Gemini."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self._types.GenerateContentConfig(
                    system_instruction=self.system_prompt,
                    response_mime_type="application/json",
                    max_output_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
            )
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise LLMError(f"Gemini generation failed: {e}") from e

        text = response.text or ""
        logger.debug(f"Gemini response: {text[:200]}...")
        return text


class OpenAIClient(LLMClient):
    """OpenAI client implementation."""

    provider = "openai"

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ConfigurationError("openai package not installed. Run: pip install openai")
        self.client = AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Generate a JSON response using OpenAI."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},  # Force JSON mode
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMError(f"OpenAI generation failed: {e}") from e

        text = response.choices[0].message.content or ""
        logger.debug(f"OpenAI response: {text[:200]}...")
        return text


class AnthropicClient(LLMClient):
    """Anthropic (Claude) client implementation."""

    provider = "anthropic"

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ConfigurationError("anthropic package not installed. Run: pip install anthropic")
        self.client = AsyncAnthropic(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Generate a JSON response using Claude."""
        try:
            response = await self.client.messages.create(
                model=self.model_name,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=self.system_prompt,
                messages=[
                    {"role": "user", "content": prompt}
                ],
            )
        except Exception as e:
            logger.error(f"Claude API error: {e}")
            raise LLMError(f"Claude generation failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug(f"Claude response: {text[:200]}...")
        return text


LLM_CLIENTS = {
    "gemini": GeminiClient,
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
}


def get_llm_client(settings: Settings) -> LLMClient:
    """
    Factory function to get the configured LLM client.

    Args:
        settings: Application settings

    Returns:
        Configured LLM client (Gemini, OpenAI or Anthropic)

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    provider = settings.LLM_PROVIDER
    client_cls = LLM_CLIENTS.get(provider)
    if client_cls is None:
        raise ConfigurationError(
            f"Unsupported LLM provider: {provider}. Use one of {sorted(LLM_CLIENTS)}"
        )

    api_key = settings.provider_api_key
    if not api_key:
        raise ConfigurationError(f"{provider.upper()}_API_KEY is required")

    logger.info(f"Initializing {provider} client with model {settings.model_name}")
    return client_cls(
        api_key=api_key,
        system_prompt=build_system_prompt(),
        model_name=settings.model_name,
        max_tokens=settings.LLM_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
    )
