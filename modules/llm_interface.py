"""
LLM Interface Module
-------------------
Provides a unified interface for communicating with different LLM providers.
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import anthropic
import openai

from config.prompts import ENRICHMENT_PROMPT, PromptTemplate
from config.settings import DEFAULT_LLM_PROVIDER, LLM_CONFIG

logger = logging.getLogger(__name__)

MAX_RATE_LIMIT_RETRIES = 3
RATE_LIMIT_BACKOFF_SECONDS = 5


class ProviderError(Exception):
    """Raised when the AI provider cannot produce a reply."""


class AIProvider(Protocol):
    """Anything that turns a scraped question into a model reply."""

    def run(self, content: str) -> str: ...


@dataclass(frozen=True)
class AIConfig:
    """Connection and sampling settings for one provider."""
    provider: str = "openai"
    model: str = "gpt-4"
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.3
    max_tokens: int = 1500
    timeout: float = 120.0

    @classmethod
    def from_settings(cls, provider: str = DEFAULT_LLM_PROVIDER) -> "AIConfig":
        """Build a config from LLM_CONFIG for the named provider."""
        provider = provider.lower()
        if provider not in LLM_CONFIG:
            raise ValueError(f"Unsupported LLM provider: {provider}")
        return cls(provider=provider, **LLM_CONFIG[provider])


class LLMInterface:
    """Interface for communicating with Large Language Models."""

    def __init__(self, config: AIConfig, prompt: PromptTemplate = ENRICHMENT_PROMPT):
        """
        Initialize the LLM interface.

        Args:
            config: Provider settings for this run
            prompt: Instruction template sent as the system prompt
        """
        self.config = config
        self.provider = config.provider.lower()
        self.prompt = prompt

        # Initialize the appropriate client
        if self.provider == "openai":
            self.client = openai.OpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        elif self.provider == "anthropic":
            if not config.api_key:
                raise ValueError("Anthropic API key is required but not provided")
            self.client = anthropic.Anthropic(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

        logger.info(
            f"Initialized LLM interface with provider: {self.provider}, model: {config.model}"
        )

    def _call_openai(self, prompt: str, system_prompt: str) -> str:
        """
        Call the OpenAI chat completions API with the given prompts.

        Args:
            prompt: The user prompt
            system_prompt: The system prompt

        Returns:
            The LLM response as a string
        """
        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError, TypeError) as e:
            raise ProviderError(f"malformed openai response: {e}") from e

    def _call_anthropic(self, prompt: str, system_prompt: str) -> str:
        """
        Call the Anthropic messages API with the given prompts.

        Args:
            prompt: The user prompt
            system_prompt: The system prompt

        Returns:
            The LLM response as a string
        """
        response = self.client.messages.create(
            model=self.config.model,
            system=system_prompt,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        try:
            return "".join(
                block.text for block in response.content if getattr(block, "type", "text") == "text"
            )
        except (AttributeError, TypeError) as e:
            raise ProviderError(f"malformed anthropic response: {e}") from e

    def generate_completion(
        self, prompt: str, system_prompt: str = "You are a helpful assistant."
    ) -> str:
        """
        Generate a completion using the configured LLM provider.

        Rate-limit errors are retried a few times with a fixed backoff; any
        other failure is raised as ProviderError.

        Args:
            prompt: The prompt to send to the LLM
            system_prompt: The system prompt for context

        Returns:
            The LLM response as a string
        """
        logger.debug(f"Generating completion with provider: {self.provider}")

        call = self._call_openai if self.provider == "openai" else self._call_anthropic

        for attempt in range(MAX_RATE_LIMIT_RETRIES + 1):
            try:
                return call(prompt, system_prompt)
            except (openai.RateLimitError, anthropic.RateLimitError) as e:
                if attempt == MAX_RATE_LIMIT_RETRIES:
                    raise ProviderError(f"Rate limited by {self.provider}: {e}") from e
                logger.info("Rate limit hit, backing off and retrying...")
                time.sleep(RATE_LIMIT_BACKOFF_SECONDS)
            except (openai.OpenAIError, anthropic.AnthropicError) as e:
                logger.error(f"Error calling {self.provider} API: {e}")
                raise ProviderError(f"{self.provider} request failed: {e}") from e

    def run(self, content: str) -> str:
        """Send one scraped question with the enrichment instructions."""
        return self.generate_completion(
            prompt=self.prompt.format_user_prompt(content),
            system_prompt=self.prompt.system_prompt,
        )


def create_ai_provider(config: AIConfig | None = None) -> AIProvider:
    """Build the provider for a run. The config lives as long as the provider."""
    return LLMInterface(config or AIConfig.from_settings())
