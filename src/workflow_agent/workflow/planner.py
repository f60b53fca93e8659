"""Planner gateway: the only place that turns model text into workflow data.

Everything downstream depends on typed `Workflow` values. Parsing free text is
fuzzy, so it is confined to `extract_json_payload` and `propose_workflow`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from itertools import groupby
from typing import Any

from pydantic import ValidationError

from workflow_agent.llm.provider import CompletionOptions, LanguageModel
from workflow_agent.workflow.errors import PlanningError
from workflow_agent.workflow.models import (
    ExecutionState,
    StepResult,
    ToolSpec,
    Workflow,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

AFFIRMATIVE_TOKEN = "true"
NEGATIVE_TOKEN = "false"

_PLAN_PROMPT = """\
You are an AI agent tasked with creating a detailed workflow to accomplish the following task:

"{task}"

You have access to the following tools:

{tools}

Create a structured workflow with specific steps to complete this task. Your workflow should be \
formatted as a JSON object with the following structure:

{{
  "goal": "The main task description",
  "steps": [
    {{
      "id": "step1",
      "description": "Detailed description of the first step",
      "kind": "tool-call | delegate | direct-reasoning",
      "toolName": "tool_name",
      "toolParameters": {{}},
      "childAgent": {{"task": "sub-task for a helper agent", "tools": ["tool_name"]}},
      "condition": {{"if": "predicate on this step's result", "then": ["step2"], "else": ["step3"]}},
      "nextSteps": ["step2"]
    }}
  ],
  "expectedOutcome": "Description of the expected output of the workflow"
}}

toolName/toolParameters are only for tool-call steps, childAgent only for delegate steps, and \
condition is optional.

Guidelines:
1. Be specific and detailed in your step descriptions
2. Only include tools that are actually available
3. Ensure steps are in a logical sequence; the first step is the entry point
4. Provide appropriate parameters for each tool
5. Make sure all step IDs are unique
6. Ensure all steps are connected (no orphaned steps) and never loop back to an earlier step
7. The workflow should have a clear end (steps with empty nextSteps)
"""

_REASON_PROMPT = """\
Execute the following step in a workflow:

{description}

Context:
Task: {task}
Completed steps: {completed}

Previous results:
{results}

Provide a concise and direct response that accomplishes this step.
"""

_CONDITION_PROMPT = """\
Evaluate the following condition in the context of a workflow step:

Condition: {predicate}

Step result: {result}

Return ONLY the string "{yes}" if the condition is met, or "{no}" if not.
"""

_SUMMARY_PROMPT = """\
Summarize the results of the following workflow execution:

Task: {task}

Expected output: {expected}

Completed steps:
{steps}

Step results:
{results}

Status: {status}
{error}
Provide a concise summary of what was accomplished, the key findings, and whether the overall \
task was successful.
"""


def extract_json_payload(text: str) -> dict[str, Any]:
    """Return the first complete JSON object embedded in `text`.

    Model replies often wrap the payload in prose or code fences; scanning
    from each opening brace finds the first object that decodes cleanly.

    Raises:
        PlanningError: If no JSON object can be decoded.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            payload, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(payload, dict):
                return payload
        start = text.find("{", start + 1)
    raise PlanningError("Failed to extract a JSON workflow from the model response")


def format_catalogue(catalogue: Sequence[ToolSpec]) -> str:
    if not catalogue:
        return "(no tools available; use direct-reasoning steps only)"

    lines: list[str] = []
    by_source = sorted(catalogue, key=lambda tool: tool.source)
    for source, tools in groupby(by_source, key=lambda tool: tool.source):
        lines.append(f"From {source}:")
        lines.extend(f"- {tool.name}: {tool.description}" for tool in tools)
    return "\n".join(lines)


def _format_results(results: Sequence[StepResult]) -> str:
    if not results:
        return "(none)"
    return "\n".join(f"{result.step_id}: {result.as_text()}" for result in results)


def synthetic_summary(task: str, workflow: Workflow, state: ExecutionState) -> str:
    """Summary assembled from step results alone, used when the model is unavailable."""

    lines = [f"Task: {task}"]
    if workflow.goal:
        lines.append(f"Goal: {workflow.goal}")
    lines.append(f"Status: {state.status.value}")
    for result in state.results_in_completion_order():
        status = "Completed" if result.ok else "Failed"
        lines.append(f"- {result.step_id}: {status}\n  {result.as_text()}")
    if state.failure_reason:
        lines.append(f"Error: {state.failure_reason}")
    return "\n".join(lines)


class PlannerGateway:
    """Stateless adapter over a language model.

    Args:
        llm: Anything with `complete(prompt, options) -> Completion`.
        options: Completion options applied to every call.
    """

    def __init__(self, llm: LanguageModel, options: CompletionOptions | None = None) -> None:
        self._llm = llm
        self._options = options

    def propose_workflow(self, task: str, catalogue: Sequence[ToolSpec]) -> Workflow:
        """Ask the model for a workflow graph for `task`.

        Raises:
            PlanningError: If the model call fails or its reply holds no usable workflow.
        """
        logger.info("Requesting workflow proposal", extra={"tools": len(catalogue)})
        prompt = _PLAN_PROMPT.format(task=task, tools=format_catalogue(catalogue))

        try:
            reply = self._llm.complete(prompt, self._options).content
        except Exception as e:
            raise PlanningError(f"Planner call failed: {e}") from e

        payload = extract_json_payload(reply)
        try:
            workflow = Workflow.model_validate(payload)
        except ValidationError as e:
            raise PlanningError(f"Planner reply is not a valid workflow: {e}") from e

        if not workflow.goal:
            workflow = workflow.model_copy(update={"goal": task})

        logger.info("Workflow proposed", extra={"steps": workflow.step_ids})
        return workflow

    def reason(self, step: WorkflowStep, task: str, prior_results: Sequence[StepResult]) -> str:
        """Answer a direct-reasoning step; prior results arrive in completion order."""

        prompt = _REASON_PROMPT.format(
            description=step.description,
            task=task,
            completed=", ".join(result.step_id for result in prior_results) or "(none)",
            results=_format_results(prior_results),
        )
        return self._llm.complete(prompt, self._options).content

    def evaluate_condition(self, predicate: str, step_result: StepResult) -> bool:
        """Classify a step result against a predicate.

        Any case-insensitive occurrence of the affirmative token counts as a
        yes; model output is not guaranteed to be exactly one word.
        """
        prompt = _CONDITION_PROMPT.format(
            predicate=predicate,
            result=step_result.as_text(),
            yes=AFFIRMATIVE_TOKEN,
            no=NEGATIVE_TOKEN,
        )
        reply = self._llm.complete(prompt, self._options).content
        return AFFIRMATIVE_TOKEN in reply.lower()

    def summarize(self, task: str, workflow: Workflow, state: ExecutionState) -> str:
        """Summarize a finished run. Never raises."""

        arena = workflow.index()
        results = state.results_in_completion_order()
        prompt = _SUMMARY_PROMPT.format(
            task=task,
            expected=workflow.expected_outcome or "(unspecified)",
            steps="\n".join(
                f"- {result.step_id}: {arena[result.step_id].description}"
                if result.step_id in arena
                else f"- {result.step_id}: Unknown step"
                for result in results
            )
            or "(none)",
            results=_format_results(results),
            status=state.status.value,
            error=f"Error: {state.failure_reason}\n" if state.failure_reason else "",
        )

        try:
            content = self._llm.complete(prompt, self._options).content.strip()
        except Exception:
            logger.warning("Summary request failed, using synthetic summary", exc_info=True)
            return synthetic_summary(task, workflow, state)

        if not content:
            logger.warning("Summary reply was empty, using synthetic summary")
            return synthetic_summary(task, workflow, state)
        return content
