"""Unit tests for the workflow graph validator."""

from __future__ import annotations

import pytest
from conftest import make_workflow, reasoning_step, tool_step

from workflow_agent.workflow.errors import WorkflowValidationError
from workflow_agent.workflow.models import Invariant, ToolSpec, Workflow
from workflow_agent.workflow.validator import GraphValidator

CATALOGUE = [
    ToolSpec(name="web_search", description="Search", source="search-server"),
    ToolSpec(name="summarize", description="Summarize", source="text-server"),
]


def _validator(**kwargs: object) -> GraphValidator:
    return GraphValidator(CATALOGUE, **kwargs)  # type: ignore[arg-type]


def test_linear_workflow_is_valid() -> None:
    workflow = make_workflow(
        tool_step("step1", "web_search", ["step2"], query="X"),
        tool_step("step2", "summarize", ["step3"]),
        reasoning_step("step3", []),
    )

    report = _validator().validate(workflow)

    assert report.ok
    assert report.violations == ()


def test_two_step_cycle_is_reported_without_hanging() -> None:
    workflow = make_workflow(
        reasoning_step("A", ["B"]),
        reasoning_step("B", ["A", "END"]),
        reasoning_step("END", []),
    )

    report = _validator().validate(workflow)

    cycles = report.for_invariant(Invariant.CYCLE)
    assert len(cycles) == 1
    assert set(cycles[0].step_ids) == {"A", "B"}
    assert "A -> B -> A" in cycles[0].message


def test_self_loop_is_a_cycle() -> None:
    workflow = make_workflow(reasoning_step("A", ["A", "B"]), reasoning_step("B", []))

    assert Invariant.CYCLE in _validator().validate(workflow).invariants


def test_unreferenced_step_is_named_unreachable() -> None:
    workflow = make_workflow(
        reasoning_step("A", ["B"]),
        reasoning_step("B", []),
        reasoning_step("C", []),
    )

    report = _validator().validate(workflow)

    unreachable = report.for_invariant(Invariant.UNREACHABLE)
    assert [v.step_ids for v in unreachable] == [("C",)]
    assert "C" in unreachable[0].message


def test_missing_terminal_step_is_reported() -> None:
    workflow = make_workflow(
        reasoning_step("A", ["B"]),
        reasoning_step("B", ["C"]),
        reasoning_step("C", ["A"]),
    )

    report = _validator().validate(workflow)

    assert Invariant.NO_TERMINAL in report.invariants
    assert Invariant.CYCLE in report.invariants


def test_unknown_tool_is_named() -> None:
    workflow = make_workflow(
        tool_step("step1", "fetch_url", ["step2"], url="https://example.com"),
        reasoning_step("step2", []),
    )

    report = _validator().validate(workflow)

    assert report.invariants == {Invariant.UNKNOWN_TOOL}
    assert "fetch_url" in report.violations[0].message


def test_tool_call_without_tool_name_is_reported() -> None:
    workflow = make_workflow(
        {"id": "A", "description": "call nothing", "kind": "tool-call", "nextSteps": []}
    )

    assert _validator().validate(workflow).invariants == {Invariant.UNKNOWN_TOOL}


def test_delegate_with_unknown_allowed_tool_is_reported() -> None:
    workflow = make_workflow(
        {
            "id": "A",
            "description": "delegate",
            "kind": "delegate",
            "childAgent": {"task": "dig deeper", "tools": ["web_search", "fetch_url"]},
            "nextSteps": [],
        }
    )

    report = _validator().validate(workflow)

    assert report.invariants == {Invariant.UNKNOWN_TOOL}
    assert "fetch_url" in report.violations[0].message


def test_duplicate_ids_and_dangling_references_are_reported() -> None:
    workflow = make_workflow(
        reasoning_step("A", ["B", "ghost"]),
        reasoning_step("B", []),
        reasoning_step("B", []),
    )

    report = _validator().validate(workflow)

    assert report.for_invariant(Invariant.DUPLICATE_ID)[0].step_ids == ("B",)
    dangling = report.for_invariant(Invariant.DANGLING_REFERENCE)
    assert dangling[0].step_ids == ("ghost", "A")


def test_branch_targets_count_as_edges() -> None:
    workflow = make_workflow(
        reasoning_step("A", [], condition={"if": "good?", "then": ["B"], "else": ["C"]}),
        reasoning_step("B", []),
        reasoning_step("C", ["missing"]),
    )

    report = _validator().validate(workflow)

    assert Invariant.UNREACHABLE not in report.invariants
    assert Invariant.DANGLING_REFERENCE in report.invariants


def test_every_broken_invariant_is_reported() -> None:
    workflow = make_workflow(
        tool_step("A", "fetch_url", ["B"]),
        reasoning_step("B", ["A"]),
        reasoning_step("C", ["nowhere"]),
    )

    report = _validator().validate(workflow)

    assert report.invariants == {
        Invariant.UNKNOWN_TOOL,
        Invariant.CYCLE,
        Invariant.UNREACHABLE,
        Invariant.DANGLING_REFERENCE,
        Invariant.NO_TERMINAL,
    }


def test_validation_is_idempotent() -> None:
    workflow = make_workflow(
        tool_step("A", "fetch_url", ["B"]),
        reasoning_step("B", ["A"]),
        reasoning_step("C", []),
    )
    validator = _validator()

    assert validator.validate(workflow) == validator.validate(workflow)


def test_empty_workflow_has_no_steps_violation() -> None:
    report = _validator().validate(Workflow(goal="nothing"))

    assert report.invariants == {Invariant.NO_STEPS}


def test_step_budget_is_enforced_when_configured() -> None:
    workflow = make_workflow(
        reasoning_step("A", ["B"]), reasoning_step("B", ["C"]), reasoning_step("C", [])
    )

    assert _validator(max_steps=3).validate(workflow).ok
    assert _validator(max_steps=2).validate(workflow).invariants == {Invariant.TOO_MANY_STEPS}


def test_ensure_valid_raises_with_violations() -> None:
    workflow = make_workflow(reasoning_step("A", ["A"]))

    with pytest.raises(WorkflowValidationError) as excinfo:
        _validator().ensure_valid(workflow)

    assert {v.invariant for v in excinfo.value.violations} == {
        Invariant.CYCLE,
        Invariant.NO_TERMINAL,
    }


def test_validator_accepts_bare_tool_names() -> None:
    workflow = make_workflow(tool_step("A", "web_search", []))

    assert GraphValidator(["web_search"]).validate(workflow).ok
