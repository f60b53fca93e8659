"""Background execution of submitted runs."""

from __future__ import annotations

import logging
import threading
import uuid

from workflow_agent.core.agent import Agent
from workflow_agent.server.run_store import RunStore

logger = logging.getLogger(__name__)


def start_run(
    *,
    agent: Agent,
    task: str,
    timeout_seconds: float | None,
    run_store: RunStore,
) -> str:
    run_id = uuid.uuid4().hex
    run_store.create(run_id=run_id, task=task)

    thread = threading.Thread(
        target=_run_job,
        name=f"workflow-run-{run_id}",
        daemon=True,
        kwargs={
            "run_id": run_id,
            "agent": agent,
            "task": task,
            "timeout_seconds": timeout_seconds,
            "run_store": run_store,
        },
    )
    thread.start()
    return run_id


def _run_job(
    *,
    run_id: str,
    agent: Agent,
    task: str,
    timeout_seconds: float | None,
    run_store: RunStore,
) -> None:
    run_store.update(run_id, status="running")
    try:
        result = agent.run(task, timeout_seconds=timeout_seconds)
        run_store.update(
            run_id,
            status="completed" if result.ok else "failed",
            result=result,
            error=result.failure_reason,
        )
    except Exception as e:
        logger.exception("Workflow run crashed", extra={"run_id": run_id})
        run_store.update(run_id, status="failed", error=str(e))
