from __future__ import annotations

import logging

from workflow_agent.workflow.errors import StepExecutionError
from workflow_agent.workflow.models import StepResult, WorkflowStep
from workflow_agent.workflow.planner import PlannerGateway

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Pick the successors a step dispatches to.

    A branch replaces the step's plain `next_steps`: `then_steps` when the
    predicate holds for the step's result, `else_steps` otherwise.
    """

    def __init__(self, planner: PlannerGateway) -> None:
        self._planner = planner

    def select_successors(self, step: WorkflowStep, result: StepResult) -> list[str]:
        if step.branch is None:
            return list(step.next_steps)

        try:
            holds = self._planner.evaluate_condition(step.branch.predicate, result)
        except Exception as e:
            raise StepExecutionError(step.id, f"condition evaluation failed: {e}") from e

        chosen = step.branch.then_steps if holds else step.branch.else_steps
        logger.info(
            "Branch evaluated",
            extra={"step_id": step.id, "condition": holds, "next_steps": list(chosen)},
        )
        return list(chosen)
