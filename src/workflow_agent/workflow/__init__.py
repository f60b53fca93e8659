"""Workflow graph generation, validation and execution.

This package holds the engine proper:
- typed workflow models and run state
- the planner gateway (model text -> workflow data)
- a pure graph validator
- the step executor and condition evaluator
- the engine that walks the graph and requests a summary
"""

from workflow_agent.workflow.engine import WorkflowEngine
from workflow_agent.workflow.errors import (
    DelegationLimitError,
    PlanningError,
    StepExecutionError,
    ToolNotFoundError,
    WorkflowError,
    WorkflowTimeoutError,
    WorkflowValidationError,
)
from workflow_agent.workflow.models import (
    ExecutionState,
    RunResult,
    RunStatus,
    StepKind,
    StepResult,
    ToolResult,
    ToolSpec,
    Workflow,
    WorkflowStep,
)
from workflow_agent.workflow.planner import PlannerGateway
from workflow_agent.workflow.validator import GraphValidator, ValidationReport

__all__ = [
    "DelegationLimitError",
    "ExecutionState",
    "GraphValidator",
    "PlannerGateway",
    "PlanningError",
    "RunResult",
    "RunStatus",
    "StepExecutionError",
    "StepKind",
    "StepResult",
    "ToolNotFoundError",
    "ToolResult",
    "ToolSpec",
    "ValidationReport",
    "Workflow",
    "WorkflowEngine",
    "WorkflowError",
    "WorkflowStep",
    "WorkflowTimeoutError",
    "WorkflowValidationError",
]
