"""Structural validation of proposed workflow graphs.

The validator is pure: it never mutates the workflow and returns the same
report for the same input, so it is safe to re-run after a planner retry.
Every broken invariant is reported, not only the first one found.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from workflow_agent.workflow.errors import WorkflowValidationError
from workflow_agent.workflow.models import (
    Invariant,
    StepKind,
    ToolSpec,
    Violation,
    Workflow,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True, slots=True)
class ValidationReport:
    violations: tuple[Violation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def invariants(self) -> set[Invariant]:
        return {v.invariant for v in self.violations}

    def for_invariant(self, invariant: Invariant) -> list[Violation]:
        return [v for v in self.violations if v.invariant is invariant]


class GraphValidator:
    """Check a workflow against the catalogue it will run with.

    Args:
        catalogue: Tools the run may invoke, as `ToolSpec` entries or bare names.
        max_steps: Optional step budget. None disables the check.
    """

    def __init__(
        self, catalogue: Iterable[ToolSpec | str], *, max_steps: int | None = None
    ) -> None:
        self._tool_names = frozenset(
            entry.name if isinstance(entry, ToolSpec) else entry for entry in catalogue
        )
        self._max_steps = max_steps

    def validate(self, workflow: Workflow) -> ValidationReport:
        if not workflow.steps:
            return ValidationReport(
                (Violation(invariant=Invariant.NO_STEPS, message="Workflow has no steps"),)
            )

        arena = workflow.index()
        adjacency = {
            step_id: [target for target in step.successors() if target in arena]
            for step_id, step in arena.items()
        }

        violations: list[Violation] = []
        violations.extend(self._check_budget(workflow))
        violations.extend(self._check_unique(workflow))
        violations.extend(self._check_references(workflow, arena))
        violations.extend(self._check_acyclic(adjacency))
        violations.extend(self._check_reachable(workflow, adjacency))
        violations.extend(self._check_terminal(arena))
        violations.extend(self._check_tools(workflow))

        if violations:
            logger.info(
                "Workflow failed validation",
                extra={"violations": [v.invariant.value for v in violations]},
            )
        return ValidationReport(tuple(violations))

    def ensure_valid(self, workflow: Workflow) -> Workflow:
        """Return the workflow unchanged, or raise with every violation found."""

        report = self.validate(workflow)
        if not report.ok:
            raise WorkflowValidationError(report.violations)
        return workflow

    def _check_budget(self, workflow: Workflow) -> Iterator[Violation]:
        if self._max_steps is not None and len(workflow.steps) > self._max_steps:
            yield Violation(
                invariant=Invariant.TOO_MANY_STEPS,
                message=(
                    f"Workflow has {len(workflow.steps)} steps, "
                    f"more than the allowed {self._max_steps}"
                ),
            )

    def _check_unique(self, workflow: Workflow) -> Iterator[Violation]:
        seen: set[str] = set()
        duplicates: dict[str, None] = {}
        for step_id in workflow.step_ids:
            if step_id in seen:
                duplicates[step_id] = None
            seen.add(step_id)
        for step_id in duplicates:
            yield Violation(
                invariant=Invariant.DUPLICATE_ID,
                message=f"Step id {step_id} is defined more than once",
                step_ids=(step_id,),
            )

    def _check_references(
        self, workflow: Workflow, arena: dict[str, WorkflowStep]
    ) -> Iterator[Violation]:
        missing: dict[str, list[str]] = {}
        for step in workflow.steps:
            for target in step.successors():
                if target not in arena:
                    missing.setdefault(target, []).append(step.id)
        for target, referrers in missing.items():
            yield Violation(
                invariant=Invariant.DANGLING_REFERENCE,
                message=(
                    f"Step(s) {', '.join(referrers)} reference non-existent step {target}"
                ),
                step_ids=(target, *referrers),
            )

    def _check_acyclic(self, adjacency: dict[str, list[str]]) -> Iterator[Violation]:
        color = dict.fromkeys(adjacency, _WHITE)
        for root in adjacency:
            if color[root] != _WHITE:
                continue
            path = [root]
            stack = [(root, iter(adjacency[root]))]
            color[root] = _GRAY
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    color[node] = _BLACK
                    stack.pop()
                    path.pop()
                    continue
                if color[child] == _GRAY:
                    cycle = (*path[path.index(child) :], child)
                    yield Violation(
                        invariant=Invariant.CYCLE,
                        message=f"Circular reference detected: {' -> '.join(cycle)}",
                        step_ids=cycle[:-1],
                    )
                elif color[child] == _WHITE:
                    color[child] = _GRAY
                    path.append(child)
                    stack.append((child, iter(adjacency[child])))

    def _check_reachable(
        self, workflow: Workflow, adjacency: dict[str, list[str]]
    ) -> Iterator[Violation]:
        entry = workflow.steps[0].id
        reachable = {entry}
        queue = deque([entry])
        while queue:
            for target in adjacency[queue.popleft()]:
                if target not in reachable:
                    reachable.add(target)
                    queue.append(target)
        for step_id in adjacency:
            if step_id not in reachable:
                yield Violation(
                    invariant=Invariant.UNREACHABLE,
                    message=f"Step {step_id} is unreachable from entry step {entry}",
                    step_ids=(step_id,),
                )

    def _check_terminal(self, arena: dict[str, WorkflowStep]) -> Iterator[Violation]:
        if not any(step.is_terminal for step in arena.values()):
            yield Violation(
                invariant=Invariant.NO_TERMINAL,
                message="Workflow must have at least one end step (empty nextSteps)",
            )

    def _check_tools(self, workflow: Workflow) -> Iterator[Violation]:
        for step in workflow.steps:
            if step.kind is StepKind.TOOL_CALL and not step.tool_name:
                yield Violation(
                    invariant=Invariant.UNKNOWN_TOOL,
                    message=f"Step {step.id} is a tool call but names no tool",
                    step_ids=(step.id,),
                )
            if step.tool_name and step.tool_name not in self._tool_names:
                yield Violation(
                    invariant=Invariant.UNKNOWN_TOOL,
                    message=f"Step {step.id} uses an unknown tool: {step.tool_name}",
                    step_ids=(step.id,),
                )
            if step.delegation is not None:
                for name in step.delegation.allowed_tools:
                    if name not in self._tool_names:
                        yield Violation(
                            invariant=Invariant.UNKNOWN_TOOL,
                            message=(
                                f"Step {step.id} delegates with an unknown tool: {name}"
                            ),
                            step_ids=(step.id,),
                        )
