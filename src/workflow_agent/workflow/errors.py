"""Error taxonomy for planning, validation and execution.

Planning and validation errors happen before any step runs, so callers never
see partial state for them. Execution errors carry the step that triggered
them; the engine keeps whatever results were gathered before the failure.
"""

from __future__ import annotations

from collections.abc import Sequence

from workflow_agent.workflow.models import Violation


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class PlanningError(WorkflowError):
    """The planner reply did not contain a usable workflow graph."""


class WorkflowValidationError(WorkflowError):
    """A proposed workflow broke one or more structural invariants."""

    def __init__(self, violations: Sequence[Violation]) -> None:
        self.violations = list(violations)
        details = "; ".join(v.message for v in self.violations)
        super().__init__(f"Workflow failed validation: {details}")


class ToolNotFoundError(WorkflowError):
    """The tool invoker has no tool registered under the requested name.

    Recoverable: the step is recorded as failed and the run continues.
    """

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class StepExecutionError(WorkflowError):
    """A step failed in a way that aborts the whole run."""

    def __init__(self, step_id: str, message: str) -> None:
        self.step_id = step_id
        super().__init__(f"Failed to execute step {step_id}: {message}")


class DelegationLimitError(WorkflowError):
    """A delegation would exceed the sub-agent depth or fan-out budget.

    Raised by spawners and by the executor; the executor reports it as a
    `StepExecutionError` for the delegate step, so it aborts the run.
    """


class WorkflowTimeoutError(WorkflowError, TimeoutError):
    """The run deadline expired before every reachable step was dispatched."""
