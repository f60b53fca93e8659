"""Pydantic models for the REST server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from workflow_agent.workflow.models import RunResult

JobStatus = Literal["queued", "running", "completed", "failed"]


class RunRequest(BaseModel):
    task: str = Field(min_length=1)
    timeout_seconds: float | None = Field(default=None, ge=0)


class RunJob(BaseModel):
    run_id: str
    task: str
    status: JobStatus

    created_at: datetime
    updated_at: datetime

    result: RunResult | None = None
    error: str | None = None


class ApiTool(BaseModel):
    name: str
    description: str
    source: str
