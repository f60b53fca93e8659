"""Core configuration for the workflow agent."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from workflow_agent.logging import configure_logging


class LLMConfig(BaseSettings):
    """Configuration for LLM providers."""

    provider: Literal["openai", "llama"] = Field(
        default="openai",
        description="LLM provider to use",
    )
    max_tokens: int = Field(
        default=1500,
        gt=0,
        description="Default completion budget per call",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4",
        description="OpenAI model to use",
    )
    openai_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for OpenAI model",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Alternative OpenAI-compatible endpoint",
    )

    # LLaMA settings
    llama_model_path: Path | None = Field(
        default=None,
        description="Path to LLaMA model file",
    )
    llama_n_ctx: int = Field(
        default=4096,
        gt=0,
        description="Context window size for LLaMA",
    )
    llama_n_threads: int | None = Field(
        default=None,
        description="Number of threads for LLaMA (None = auto)",
    )

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_AGENT_LLM_",
        env_file=".env",
        extra="ignore",
    )


class EngineConfig(BaseSettings):
    """Limits applied to every workflow run."""

    max_steps: int | None = Field(
        default=None,
        gt=0,
        description="Optional step budget for proposed workflows (None = unlimited)",
    )
    timeout_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Run deadline in seconds (0 disables the deadline)",
    )
    max_child_agents: int = Field(
        default=3,
        ge=0,
        description="Delegate steps allowed per run",
    )
    max_delegation_depth: int = Field(
        default=2,
        ge=0,
        description="How deep sub-agents may spawn further sub-agents",
    )
    parallel_branches: bool = Field(
        default=False,
        description="Dispatch sibling successors on worker threads",
    )
    max_parallel_branches: int = Field(
        default=4,
        gt=0,
        description="Worker threads per fan-out when parallel_branches is on",
    )

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_AGENT_ENGINE_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def deadline_seconds(self) -> float | None:
        return self.timeout_seconds or None


class AgentConfig(BaseSettings):
    """Main configuration for the workflow agent."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Structured JSON logs or plain text",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    catalogue_path: Path | None = Field(
        default=None,
        description="JSON file describing the tool catalogue",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )
    engine: EngineConfig = Field(
        default_factory=EngineConfig,
        description="Engine limits",
    )

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_AGENT_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = "DEBUG" if self.debug else self.log_level
        configure_logging(level, fmt=self.log_format)
