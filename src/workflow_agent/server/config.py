"""Configuration for the REST server.

The server starts without a model configured; submitting a run is what needs
one, so model credentials are checked when the first run is created.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    runs_path: Path = Field(
        default=Path("agent_state/runs.json"),
        validation_alias="WORKFLOW_AGENT_RUNS_PATH",
        description="File where submitted runs and their results are persisted",
    )

    # Dev-friendly CORS. Override via WORKFLOW_AGENT_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="WORKFLOW_AGENT_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
