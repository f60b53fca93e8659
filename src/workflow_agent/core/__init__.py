"""Core package initialization."""

from workflow_agent.core.config import AgentConfig, EngineConfig, LLMConfig

__all__ = [
    "AgentConfig",
    "EngineConfig",
    "LLMConfig",
]
