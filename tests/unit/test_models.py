"""Unit tests for workflow models and run state."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from workflow_agent.workflow.models import (
    ExecutionState,
    StepKind,
    StepResult,
    StepStatus,
    ToolResult,
    Workflow,
    WorkflowStep,
)


def test_camel_case_planner_shape_is_accepted() -> None:
    workflow = Workflow.model_validate(
        {
            "task": "Find the weather",
            "steps": [
                {
                    "id": "step1",
                    "description": "Search",
                    "tool": "web_search",
                    "toolParameters": {"query": "weather"},
                    "nextSteps": ["step2"],
                },
                {
                    "id": "step2",
                    "description": "Ask a helper",
                    "childAgent": {"task": "double-check", "tools": ["web_search"]},
                    "nextSteps": ["step3"],
                },
                {"id": "step3", "description": "Answer", "nextSteps": []},
            ],
            "expectedOutput": "A forecast",
        }
    )

    assert workflow.goal == "Find the weather"
    assert workflow.expected_outcome == "A forecast"
    assert [step.kind for step in workflow.steps] == [
        StepKind.TOOL_CALL,
        StepKind.DELEGATE,
        StepKind.DIRECT_REASONING,
    ]
    assert workflow.steps[0].tool_name == "web_search"
    assert workflow.steps[1].delegation is not None
    assert workflow.steps[1].delegation.allowed_tools == ("web_search",)
    assert workflow.entry_step is workflow.steps[0]


def test_kind_spelling_is_normalised() -> None:
    step = WorkflowStep.model_validate({"id": "a", "kind": "Tool_Call", "toolName": "x"})

    assert step.kind is StepKind.TOOL_CALL


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValidationError):
        WorkflowStep.model_validate({"id": "a", "kind": "teleport"})


def test_next_steps_behave_as_an_ordered_set() -> None:
    step = WorkflowStep.model_validate(
        {
            "id": "a",
            "nextSteps": ["b", "c", "b"],
            "condition": {"if": "ok?", "then": ["c", "d"], "else": ["e"]},
        }
    )

    assert step.next_steps == ("b", "c")
    assert step.branch_targets() == ("c", "d", "e")
    assert step.successors() == ("b", "c", "d", "e")
    assert not step.is_terminal


def test_steps_are_immutable() -> None:
    step = WorkflowStep.model_validate({"id": "a"})

    with pytest.raises(ValidationError):
        step.id = "b"  # type: ignore[misc]


def test_serialization_uses_planner_field_names() -> None:
    step = WorkflowStep.model_validate({"id": "a", "tool": "web_search", "nextSteps": ["b"]})

    dumped = step.model_dump(by_alias=True)

    assert dumped["toolName"] == "web_search"
    assert dumped["nextSteps"] == ("b",)


def test_step_lookup_uses_first_definition() -> None:
    workflow = Workflow.model_validate(
        {"steps": [{"id": "a", "description": "first"}, {"id": "a", "description": "second"}]}
    )

    assert workflow.step("a").description == "first"
    with pytest.raises(KeyError):
        workflow.step("missing")


def test_claim_is_check_and_set() -> None:
    state = ExecutionState()

    assert state.claim("a") is True
    assert state.claim("a") is False


def test_record_keeps_completion_order_and_is_unique() -> None:
    state = ExecutionState()
    state.record(StepResult(step_id="b", status=StepStatus.COMPLETED, output="2"))
    state.record(StepResult(step_id="a", status=StepStatus.FAILED, error="boom"))
    state.record(StepResult(step_id="b", status=StepStatus.COMPLETED, output="2"))

    assert state.completed_step_ids == ["b", "a"]
    assert [r.step_id for r in state.results_in_completion_order()] == ["b", "a"]
    assert state.is_completed("a")
    assert not state.claim("a")


def test_reserve_delegation_respects_limit() -> None:
    state = ExecutionState()

    assert state.reserve_delegation(2)
    assert state.reserve_delegation(2)
    assert not state.reserve_delegation(2)
    assert state.delegations_started == 2


def test_step_result_text() -> None:
    tool_output = ToolResult(source_name="s", tool_name="t", result_value="value")

    assert StepResult(step_id="a", status=StepStatus.COMPLETED, output=tool_output).as_text() == (
        "value"
    )
    assert StepResult(step_id="a", status=StepStatus.FAILED, error="nope").as_text() == (
        "FAILED: nope"
    )
    assert StepResult(step_id="a", status=StepStatus.COMPLETED).as_text() == "No output"


def test_null_optional_fields_take_their_defaults() -> None:
    workflow = Workflow.model_validate(
        {
            "goal": "g",
            "expectedOutcome": None,
            "steps": [
                {
                    "id": "a",
                    "description": None,
                    "kind": None,
                    "toolName": None,
                    "toolParameters": None,
                    "childAgent": None,
                    "condition": {"if": "ok?", "then": ["b"], "else": None},
                    "nextSteps": None,
                },
                {"id": "b", "toolName": "web_search", "toolParameters": {"query": None}},
            ],
        }
    )

    first, second = workflow.steps
    assert first.kind is StepKind.DIRECT_REASONING
    assert first.description == ""
    assert first.tool_parameters == {}
    assert first.delegation is None
    assert first.next_steps == ()
    assert first.branch is not None and first.branch.else_steps == ()
    assert workflow.expected_outcome == ""
    assert second.kind is StepKind.TOOL_CALL
    assert second.tool_parameters == {"query": None}
