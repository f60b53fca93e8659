"""Workflow engine: plan, validate, walk the graph, summarize.

A run moves `pending -> in-progress -> completed | failed`. Planning and
validation failures end the run before any step executes; execution failures
keep whatever results were gathered so far.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from workflow_agent.core.config import EngineConfig
from workflow_agent.workflow.conditions import ConditionEvaluator
from workflow_agent.workflow.errors import (
    PlanningError,
    StepExecutionError,
    WorkflowError,
    WorkflowTimeoutError,
    WorkflowValidationError,
)
from workflow_agent.workflow.executor import StepExecutor, SubAgentSpawner, ToolInvoker
from workflow_agent.workflow.models import (
    ExecutionState,
    RunResult,
    RunStatus,
    ToolSpec,
    Workflow,
    WorkflowStep,
)
from workflow_agent.workflow.planner import PlannerGateway
from workflow_agent.workflow.validator import GraphValidator

logger = logging.getLogger(__name__)


@dataclass
class _Run:
    """Everything one in-flight run needs. Never shared between runs."""

    task: str
    arena: dict[str, WorkflowStep]
    state: ExecutionState
    deadline: float | None
    timeout_seconds: float | None
    clock: Callable[[], float]
    aborted: threading.Event = field(default_factory=threading.Event)
    first_error: WorkflowError | None = None

    def __post_init__(self) -> None:
        self._error_lock = threading.Lock()

    def check_deadline(self, step_id: str) -> float | None:
        """Raise once the deadline has passed; otherwise return the seconds left."""

        if self.deadline is None:
            return None
        remaining = self.deadline - self.clock()
        if remaining <= 0:
            raise WorkflowTimeoutError(
                f"Workflow deadline of {self.timeout_seconds}s exceeded before step {step_id}"
            )
        return remaining

    def abort(self, error: WorkflowError) -> None:
        """Stop dispatching new steps. Only the earliest error is kept."""

        with self._error_lock:
            if self.first_error is None:
                self.first_error = error
            self.aborted.set()


class WorkflowEngine:
    """Drive one task from proposal to summary.

    Args:
        planner: Gateway used for proposals, reasoning, conditions and summaries.
        tools: Tool invoker backing tool-call steps.
        spawner: Sub-agent spawner backing delegate steps.
        config: Engine limits; defaults are loaded from the environment.
        clock: Monotonic clock, injectable for deadline tests.
    """

    def __init__(
        self,
        *,
        planner: PlannerGateway,
        tools: ToolInvoker,
        spawner: SubAgentSpawner | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or EngineConfig()
        self._planner = planner
        self._clock = clock
        self._executor = StepExecutor(
            planner=planner,
            tools=tools,
            spawner=spawner,
            max_child_agents=self.config.max_child_agents,
        )
        self._conditions = ConditionEvaluator(planner)

    def run(
        self,
        task: str,
        catalogue: Sequence[ToolSpec],
        *,
        timeout_seconds: float | None = None,
    ) -> RunResult:
        """Plan and execute `task` against `catalogue`.

        Args:
            task: Natural-language task.
            catalogue: Tools the planner may use.
            timeout_seconds: Run deadline; None uses the configured default, 0 disables it.
        """
        logger.info("Starting workflow run", extra={"task": task})
        try:
            workflow = self._planner.propose_workflow(task, catalogue)
        except PlanningError as e:
            logger.error("Planning failed", extra={"task": task, "error": str(e)})
            return self._not_started(task, e)
        return self.execute(task, workflow, catalogue, timeout_seconds=timeout_seconds)

    def execute(
        self,
        task: str,
        workflow: Workflow,
        catalogue: Sequence[ToolSpec],
        *,
        timeout_seconds: float | None = None,
    ) -> RunResult:
        """Validate and execute an already proposed workflow."""

        validator = GraphValidator(catalogue, max_steps=self.config.max_steps)
        report = validator.validate(workflow)
        if not report.ok:
            return self._not_started(
                task, WorkflowValidationError(report.violations), workflow=workflow
            )

        if timeout_seconds is None:
            timeout_seconds = self.config.deadline_seconds
        timeout_seconds = timeout_seconds or None

        state = ExecutionState(status=RunStatus.IN_PROGRESS)
        run = _Run(
            task=task,
            arena=workflow.index(),
            state=state,
            deadline=self._clock() + timeout_seconds if timeout_seconds else None,
            timeout_seconds=timeout_seconds,
            clock=self._clock,
        )

        entry = workflow.steps[0].id
        try:
            self._visit(run, entry)
        except (StepExecutionError, WorkflowTimeoutError) as e:
            state.status = RunStatus.FAILED
            state.failure_reason = str(e)
            logger.error(
                "Workflow run failed",
                extra={"error": str(e), "completed_steps": list(state.completed_step_ids)},
            )
            return self._result(task, workflow, state, error=e)

        state.status = RunStatus.COMPLETED
        logger.info(
            "Workflow run completed", extra={"completed_steps": list(state.completed_step_ids)}
        )
        summary = self._planner.summarize(task, workflow, state)
        return self._result(task, workflow, state, summary=summary)

    def _visit(self, run: _Run, step_id: str) -> None:
        if run.aborted.is_set():
            return
        if run.state.is_completed(step_id):
            logger.debug("Step already completed, skipping", extra={"step_id": step_id})
            return

        step = run.arena[step_id]
        try:
            time_left = run.check_deadline(step_id)
            result = self._executor.execute(
                step, run.state, task=run.task, time_left=time_left
            )
            if result is None:
                return
            successors = self._conditions.select_successors(step, result)
        except WorkflowError as e:
            run.abort(e)
            raise

        self._dispatch(run, successors)

    def _dispatch(self, run: _Run, successors: list[str]) -> None:
        if not self.config.parallel_branches or len(successors) < 2:
            for step_id in successors:
                self._visit(run, step_id)
            return

        workers = min(len(successors), self.config.max_parallel_branches)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="workflow-branch") as pool:
            futures = [pool.submit(self._visit, run, step_id) for step_id in successors]
            wait(futures)

        errors = [error for error in (f.exception() for f in futures) if error is not None]
        if errors:
            raise run.first_error or errors[0]

    @staticmethod
    def _not_started(
        task: str, error: WorkflowError, workflow: Workflow | None = None
    ) -> RunResult:
        violations = error.violations if isinstance(error, WorkflowValidationError) else []
        return RunResult(
            task=task,
            status=RunStatus.FAILED,
            failure_reason=str(error),
            error_type=type(error).__name__,
            violations=violations,
            started=False,
            workflow=workflow,
        )

    @staticmethod
    def _result(
        task: str,
        workflow: Workflow,
        state: ExecutionState,
        *,
        summary: str | None = None,
        error: WorkflowError | None = None,
    ) -> RunResult:
        return RunResult(
            task=task,
            status=state.status,
            step_results=dict(state.step_results),
            completed_step_ids=list(state.completed_step_ids),
            summary=summary,
            failure_reason=state.failure_reason,
            error_type=type(error).__name__ if error is not None else None,
            started=True,
            workflow=workflow,
        )
