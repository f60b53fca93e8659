"""Factory for creating LLM providers."""

import logging
from collections.abc import Callable

from workflow_agent.core.config import LLMConfig
from workflow_agent.llm.llama_provider import LLaMAProvider
from workflow_agent.llm.openai_provider import OpenAIProvider
from workflow_agent.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

_PROVIDERS: dict[str, Callable[[LLMConfig], LLMProvider]] = {
    "openai": OpenAIProvider,
    "llama": LLaMAProvider,
}


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported.
        """
        builder = _PROVIDERS.get(config.provider)
        if builder is None:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

        logger.info("Creating LLM provider", extra={"provider": config.provider})
        return builder(config)

    @staticmethod
    def supported() -> list[str]:
        return sorted(_PROVIDERS)
