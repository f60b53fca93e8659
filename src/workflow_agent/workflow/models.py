"""Typed workflow graph and run-state models.

Planner replies are parsed into these models once; every other component
works on typed values, never on raw model text. Wire names follow the JSON the
planner is asked to produce (camelCase), with a few aliases accepted for
replies that drift from the requested shape.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class StepKind(str, Enum):
    TOOL_CALL = "tool-call"
    DELEGATE = "delegate"
    DIRECT_REASONING = "direct-reasoning"


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class RunStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Invariant(str, Enum):
    """Structural rules a workflow must satisfy before it may run."""

    NO_STEPS = "no-steps"
    DUPLICATE_ID = "duplicate-id"
    DANGLING_REFERENCE = "dangling-reference"
    CYCLE = "cycle"
    UNREACHABLE = "unreachable"
    NO_TERMINAL = "no-terminal"
    UNKNOWN_TOOL = "unknown-tool"
    TOO_MANY_STEPS = "too-many-steps"


def _ordered_unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Explicit null means "not given": the field default applies.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class BranchSpec(_Frozen):
    """Conditional routing attached to a step."""

    predicate: str = Field(validation_alias=AliasChoices("predicate", "if", "condition"))
    then_steps: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("then_steps", "thenSteps", "then"),
        serialization_alias="thenSteps",
    )
    else_steps: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("else_steps", "elseSteps", "else"),
        serialization_alias="elseSteps",
    )

    @field_validator("then_steps", "else_steps", mode="after")
    @classmethod
    def _dedupe(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _ordered_unique(value)


class DelegationSpec(_Frozen):
    """Sub-task handed to a child agent, scoped to a tool subset."""

    task: str
    allowed_tools: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("allowed_tools", "allowedTools", "tools"),
        serialization_alias="allowedTools",
    )


class WorkflowStep(_Frozen):
    id: str
    description: str = ""
    kind: StepKind
    tool_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tool_name", "toolName", "tool"),
        serialization_alias="toolName",
    )
    tool_parameters: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("tool_parameters", "toolParameters", "input"),
        serialization_alias="toolParameters",
    )
    branch: BranchSpec | None = Field(
        default=None, validation_alias=AliasChoices("branch", "condition")
    )
    delegation: DelegationSpec | None = Field(
        default=None,
        validation_alias=AliasChoices("delegation", "childAgent", "child_agent"),
    )
    next_steps: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("next_steps", "nextSteps"),
        serialization_alias="nextSteps",
    )

    @model_validator(mode="before")
    @classmethod
    def _infer_kind(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("kind"):
            return data
        data = dict(data)
        if any(data.get(key) for key in ("tool_name", "toolName", "tool")):
            data["kind"] = StepKind.TOOL_CALL
        elif any(data.get(key) for key in ("delegation", "childAgent", "child_agent")):
            data["kind"] = StepKind.DELEGATE
        else:
            data["kind"] = StepKind.DIRECT_REASONING
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @field_validator("next_steps", mode="after")
    @classmethod
    def _dedupe(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _ordered_unique(value)

    def branch_targets(self) -> tuple[str, ...]:
        if self.branch is None:
            return ()
        return _ordered_unique((*self.branch.then_steps, *self.branch.else_steps))

    def successors(self) -> tuple[str, ...]:
        """Every id this step may dispatch to, whichever way a branch goes."""

        return _ordered_unique((*self.next_steps, *self.branch_targets()))

    @property
    def is_terminal(self) -> bool:
        return not self.successors()


class Workflow(_Frozen):
    """A proposed graph of steps for one task. The first step is the entry."""

    goal: str = Field(default="", validation_alias=AliasChoices("goal", "task"))
    steps: tuple[WorkflowStep, ...] = ()
    expected_outcome: str = Field(
        default="",
        validation_alias=AliasChoices(
            "expected_outcome", "expectedOutcome", "expectedOutput", "expected_output"
        ),
        serialization_alias="expectedOutcome",
    )

    @property
    def entry_step(self) -> WorkflowStep | None:
        return self.steps[0] if self.steps else None

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def index(self) -> dict[str, WorkflowStep]:
        """Arena of steps keyed by id. The first definition of an id wins."""

        arena: dict[str, WorkflowStep] = {}
        for step in self.steps:
            arena.setdefault(step.id, step)
        return arena

    def step(self, step_id: str) -> WorkflowStep:
        try:
            return self.index()[step_id]
        except KeyError:
            raise KeyError(f"Step {step_id} not found in workflow") from None


class ToolSpec(_Frozen):
    """One entry of the tool catalogue offered to the planner."""

    name: str
    description: str = ""
    source: str = Field(
        default="local", validation_alias=AliasChoices("source", "serverName", "server")
    )


class ToolResult(_Frozen):
    source_name: str
    tool_name: str
    result_value: Any = None


class Violation(_Frozen):
    invariant: Invariant
    message: str
    step_ids: tuple[str, ...] = ()


class StepResult(BaseModel):
    step_id: str
    status: StepStatus
    output: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.COMPLETED

    def as_text(self) -> str:
        if not self.ok:
            return f"FAILED: {self.error or 'no error message'}"
        if isinstance(self.output, ToolResult):
            return str(self.output.result_value)
        return str(self.output) if self.output is not None else "No output"


@dataclass
class ExecutionState:
    """Mutable state of exactly one run.

    `claim` is the idempotent-completion guard: a step id is claimed at most
    once, so a step reachable from several predecessors runs a single time
    even when sibling branches are dispatched in parallel.
    """

    completed_step_ids: list[str] = field(default_factory=list)
    step_results: dict[str, StepResult] = field(default_factory=dict)
    status: RunStatus = RunStatus.PENDING
    failure_reason: str | None = None
    delegations_started: int = 0

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed: set[str] = set(self.completed_step_ids)

    def claim(self, step_id: str) -> bool:
        with self._lock:
            if step_id in self._claimed:
                return False
            self._claimed.add(step_id)
            return True

    def is_completed(self, step_id: str) -> bool:
        with self._lock:
            return step_id in self.step_results

    def record(self, result: StepResult) -> None:
        with self._lock:
            self._claimed.add(result.step_id)
            self.step_results[result.step_id] = result
            if result.step_id not in self.completed_step_ids:
                self.completed_step_ids.append(result.step_id)

    def reserve_delegation(self, limit: int) -> bool:
        with self._lock:
            if self.delegations_started >= limit:
                return False
            self.delegations_started += 1
            return True

    def results_in_completion_order(self) -> list[StepResult]:
        with self._lock:
            return [self.step_results[step_id] for step_id in self.completed_step_ids]


class RunResult(BaseModel):
    """What a caller gets back from one run.

    `started` tells "never started" (planning or validation failure, no
    partial data) apart from "started and partially completed".
    """

    task: str
    status: RunStatus
    step_results: dict[str, StepResult] = Field(default_factory=dict)
    completed_step_ids: list[str] = Field(default_factory=list)
    summary: str | None = None
    failure_reason: str | None = None
    error_type: str | None = None
    violations: list[Violation] = Field(default_factory=list)
    started: bool = False
    workflow: Workflow | None = None

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.COMPLETED
