"""Language-model call contract and the base class for pluggable backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class CompletionOptions:
    """Per-call overrides. Unset fields fall back to the provider's config."""

    max_tokens: int | None = None
    temperature: float | None = None
    system_prompt: str | None = None


@dataclass(frozen=True, slots=True)
class Completion:
    content: str
    model: str | None = None


class LanguageModel(Protocol):
    """The only surface the workflow core needs from a model backend."""

    def complete(self, prompt: str, options: CompletionOptions | None = None) -> Completion: ...


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Backends implement `chat`; `complete` turns a single prompt (plus an
    optional system prompt) into a chat request.
    """

    model_name: str | None = None

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate a chat completion from messages.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            **kwargs: Additional provider-specific parameters.

        Returns:
            Generated chat response.
        """

    def complete(self, prompt: str, options: CompletionOptions | None = None) -> Completion:
        """Complete a single prompt.

        Args:
            prompt: The user prompt.
            options: Optional per-call overrides.

        Returns:
            The completion with its text content.
        """
        options = options or CompletionOptions()
        messages: list[dict[str, str]] = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.append({"role": "user", "content": prompt})

        content = self.chat(
            messages,
            max_tokens=options.max_tokens,
            temperature=options.temperature,
        )
        return Completion(content=content, model=self.model_name)
