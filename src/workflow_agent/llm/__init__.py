"""LLM package initialization."""

from workflow_agent.llm.factory import LLMFactory
from workflow_agent.llm.provider import Completion, CompletionOptions, LanguageModel, LLMProvider

__all__ = [
    "Completion",
    "CompletionOptions",
    "LLMFactory",
    "LLMProvider",
    "LanguageModel",
]
