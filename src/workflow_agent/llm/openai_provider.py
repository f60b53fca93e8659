"""OpenAI LLM provider implementation."""

import logging
from typing import Any

from openai import OpenAI

from workflow_agent.core.config import LLMConfig
from workflow_agent.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat-completions backend (or any OpenAI-compatible endpoint)."""

    def __init__(self, config: LLMConfig) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.

        Raises:
            ValueError: If API key is not provided.
        """
        if not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = OpenAI(api_key=config.openai_api_key, base_url=config.openai_base_url)
        self.model_name = config.openai_model

        logger.info(f"OpenAI provider initialized with model: {self.model_name}")

    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        temp = temperature if temperature is not None else self.config.openai_temperature

        logger.debug(f"Generating chat completion with {len(messages)} messages")

        response = self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,  # type: ignore
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=temp,
            **kwargs,
        )

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} characters")

        return content
