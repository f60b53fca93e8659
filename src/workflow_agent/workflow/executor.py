"""Execution of a single workflow step."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from workflow_agent.workflow.errors import (
    DelegationLimitError,
    StepExecutionError,
    ToolNotFoundError,
)
from workflow_agent.workflow.models import (
    ExecutionState,
    StepKind,
    StepResult,
    StepStatus,
    ToolResult,
    WorkflowStep,
)
from workflow_agent.workflow.planner import PlannerGateway

logger = logging.getLogger(__name__)


class ToolInvoker(Protocol):
    """Calls a named tool. Returns None when no such tool is registered."""

    def invoke(self, tool_name: str, parameters: Mapping[str, Any]) -> ToolResult | None: ...


class SubAgentSpawner(Protocol):
    """Runs a whole child agent and returns only its final summarized answer."""

    def spawn(
        self,
        task: str,
        allowed_tool_names: Sequence[str],
        *,
        timeout_seconds: float | None = None,
    ) -> str: ...


class StepExecutor:
    """Execute steps by kind and record their results on the run state.

    Tool-not-found is recorded as a failed step and does not stop the run.
    Every other error is raised as `StepExecutionError`.
    """

    def __init__(
        self,
        *,
        planner: PlannerGateway,
        tools: ToolInvoker,
        spawner: SubAgentSpawner | None = None,
        max_child_agents: int = 3,
    ) -> None:
        self._planner = planner
        self._tools = tools
        self._spawner = spawner
        self._max_child_agents = max_child_agents

    def execute(
        self,
        step: WorkflowStep,
        state: ExecutionState,
        *,
        task: str,
        time_left: float | None = None,
    ) -> StepResult | None:
        """Run `step` once. Returns None if it was already claimed by an earlier visit.

        `time_left` is what remains of the run deadline; a delegated sub-agent
        gets no more than that.
        """

        if not state.claim(step.id):
            logger.debug("Step already completed, skipping", extra={"step_id": step.id})
            return None

        logger.info(
            "Executing step",
            extra={"step_id": step.id, "kind": step.kind.value, "description": step.description},
        )
        try:
            output = self._dispatch(step, state, task, time_left)
        except ToolNotFoundError as e:
            logger.warning("Tool not available", extra={"step_id": step.id, "tool": e.tool_name})
            result = StepResult(step_id=step.id, status=StepStatus.FAILED, error=str(e))
        except StepExecutionError:
            raise
        except Exception as e:
            logger.error("Step failed", extra={"step_id": step.id, "error": str(e)})
            raise StepExecutionError(step.id, str(e)) from e
        else:
            result = StepResult(step_id=step.id, status=StepStatus.COMPLETED, output=output)

        state.record(result)
        return result

    def _dispatch(
        self, step: WorkflowStep, state: ExecutionState, task: str, time_left: float | None
    ) -> Any:
        if step.kind is StepKind.TOOL_CALL:
            return self._call_tool(step)
        if step.kind is StepKind.DELEGATE:
            return self._delegate(step, state, time_left)
        return self._planner.reason(step, task, state.results_in_completion_order())

    def _call_tool(self, step: WorkflowStep) -> ToolResult:
        if not step.tool_name:
            raise StepExecutionError(step.id, "tool-call step names no tool")

        result = self._tools.invoke(step.tool_name, dict(step.tool_parameters))
        if result is None:
            raise ToolNotFoundError(step.tool_name)
        return result

    def _delegate(self, step: WorkflowStep, state: ExecutionState, time_left: float | None) -> str:
        if self._spawner is None:
            raise StepExecutionError(step.id, "no sub-agent spawner is configured")
        if not state.reserve_delegation(self._max_child_agents):
            raise DelegationLimitError(
                f"run already spawned {self._max_child_agents} sub-agent(s)"
            )

        if step.delegation is not None:
            sub_task = step.delegation.task or step.description
            allowed = list(step.delegation.allowed_tools)
        else:
            sub_task, allowed = step.description, []

        logger.info(
            "Spawning sub-agent", extra={"step_id": step.id, "sub_task": sub_task, "tools": allowed}
        )
        return self._spawner.spawn(sub_task, allowed, timeout_seconds=time_left)
