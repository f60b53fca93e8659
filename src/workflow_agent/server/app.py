"""FastAPI app factory.

Endpoints are thin wrappers over `Agent.run`: a run is submitted, executed on
a background thread, and polled by id.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import cast

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from workflow_agent import __version__
from workflow_agent.core.agent import Agent
from workflow_agent.server.config import ServerSettings
from workflow_agent.server.models import ApiTool, JobStatus, RunJob, RunRequest
from workflow_agent.server.run_store import RunRecord, RunStore
from workflow_agent.server.runner import start_run

logger = logging.getLogger(__name__)


def _iso_to_dt(value: str) -> datetime:
    # Best-effort parsing; the store always writes ISO format.
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(tz=UTC)


def _to_job(record: RunRecord) -> RunJob:
    return RunJob(
        run_id=record.run_id,
        task=record.task,
        status=cast(JobStatus, record.status),
        created_at=_iso_to_dt(record.created_at),
        updated_at=_iso_to_dt(record.updated_at),
        result=record.result,
        error=record.error,
    )


def create_app(agent_factory: Callable[[], Agent] | None = None) -> FastAPI:
    """Build the app.

    Args:
        agent_factory: Builds the agent that serves runs. Defaults to an
            `Agent` configured from the environment; it is called lazily on
            first use so the server can start without model credentials.
    """
    settings = ServerSettings()
    factory = agent_factory or Agent

    app = FastAPI(
        title="Dynamic Workflow Agent",
        version=__version__,
        description="Submit a task, poll for the executed workflow and its summary.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    run_store = RunStore(settings.runs_path)
    agent_lock = threading.Lock()
    agents: list[Agent] = []

    def get_agent() -> Agent:
        with agent_lock:
            if not agents:
                try:
                    agents.append(factory())
                except ValueError as e:
                    raise HTTPException(status_code=409, detail=str(e)) from e
            return agents[0]

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/v1/tools", response_model=list[ApiTool])
    def list_tools() -> list[ApiTool]:
        return [ApiTool.model_validate(spec.model_dump()) for spec in get_agent().tools.catalogue()]

    @app.post("/api/v1/runs", response_model=RunJob, status_code=202)
    def submit_run(req: RunRequest) -> RunJob:
        run_id = start_run(
            agent=get_agent(),
            task=req.task,
            timeout_seconds=req.timeout_seconds,
            run_store=run_store,
        )
        record = run_store.get(run_id)
        if record is None:
            raise HTTPException(status_code=500, detail="Run creation failed")
        logger.info("Run submitted", extra={"run_id": run_id})
        return _to_job(record)

    @app.get("/api/v1/runs", response_model=list[RunJob])
    def list_runs() -> list[RunJob]:
        return [_to_job(record) for record in run_store.list()]

    @app.get("/api/v1/runs/{run_id}", response_model=RunJob)
    def get_run(run_id: str) -> RunJob:
        record = run_store.get(run_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return _to_job(record)

    return app
