"""Local LLaMA LLM provider implementation."""

import logging
from typing import Any

from workflow_agent.core.config import LLMConfig
from workflow_agent.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class LLaMAProvider(LLMProvider):
    """Local LLaMA model provider implementation.

    Requires llama-cpp-python to be installed:
        pip install dynamic-workflow-agent[llama]
    """

    def __init__(self, config: LLMConfig) -> None:
        """Initialize the LLaMA provider.

        Args:
            config: LLM configuration.

        Raises:
            ValueError: If model path is not provided.
            ImportError: If llama-cpp-python is not installed.
        """
        if not config.llama_model_path:
            raise ValueError("LLaMA model path is required")

        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ImportError(
                "llama-cpp-python is required for LLaMA provider. "
                "Install it with: pip install llama-cpp-python"
            ) from e

        self.config = config
        self.model_name = config.llama_model_path.name

        logger.info(f"Loading LLaMA model from: {config.llama_model_path}")

        self.llm = Llama(
            model_path=str(config.llama_model_path),
            n_ctx=config.llama_n_ctx,
            n_threads=config.llama_n_threads,
            verbose=False,
        )

        logger.info("LLaMA model loaded successfully")

    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        logger.debug(f"Generating chat completion with {len(messages)} messages")

        result = self.llm.create_chat_completion(
            messages=messages,
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=temperature if temperature is not None else 0.7,
            **kwargs,
        )

        content = result["choices"][0]["message"]["content"] or ""
        logger.debug(f"Generated {len(content)} characters")

        return content
