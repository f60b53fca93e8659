"""Test configuration and fixtures."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from workflow_agent.core.config import AgentConfig, EngineConfig, LLMConfig
from workflow_agent.llm.provider import Completion, CompletionOptions
from workflow_agent.tools import ToolRegistry
from workflow_agent.workflow.engine import WorkflowEngine
from workflow_agent.workflow.models import ToolSpec, Workflow
from workflow_agent.workflow.planner import PlannerGateway

Reply = str | Exception | Callable[[str], str]

_PROMPT_KINDS = {
    "You are an AI agent tasked": "plan",
    "Execute the following step": "reason",
    "Evaluate the following condition": "condition",
    "Summarize the results": "summary",
}


class ScriptedLLM:
    """Fake language model answering each kind of gateway prompt from a script.

    A reply may be a string, an exception to raise, or a callable taking the
    prompt.
    """

    def __init__(
        self,
        *,
        plan: Reply = "{}",
        reason: Reply = "reasoned answer",
        condition: Reply = "true",
        summary: Reply = "All steps finished.",
    ) -> None:
        self.replies: dict[str, Reply] = {
            "plan": plan,
            "reason": reason,
            "condition": condition,
            "summary": summary,
        }
        self.prompts: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def complete(self, prompt: str, options: CompletionOptions | None = None) -> Completion:
        kind = next(
            (name for prefix, name in _PROMPT_KINDS.items() if prompt.startswith(prefix)),
            "unknown",
        )
        with self._lock:
            self.prompts.append((kind, prompt))

        reply = self.replies.get(kind, "")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        return Completion(content=reply, model="scripted")

    def prompts_of(self, kind: str) -> list[str]:
        return [prompt for name, prompt in self.prompts if name == kind]


class CountingRegistry(ToolRegistry):
    """Registry that records every invocation, including unknown tools."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def invoke(self, tool_name: str, parameters: Any) -> Any:
        self.calls.append(tool_name)
        return super().invoke(tool_name, parameters)


def plan_reply(workflow: dict[str, Any]) -> str:
    """Wrap a workflow in the kind of prose a model tends to add."""

    return "Here is the workflow you asked for:\n```json\n" + json.dumps(workflow) + "\n```\nDone."


def tool_step(step_id: str, tool: str, next_steps: list[str], **params: Any) -> dict[str, Any]:
    return {
        "id": step_id,
        "description": f"Call {tool}",
        "kind": "tool-call",
        "toolName": tool,
        "toolParameters": params,
        "nextSteps": next_steps,
    }


def reasoning_step(step_id: str, next_steps: list[str], **extra: Any) -> dict[str, Any]:
    return {
        "id": step_id,
        "description": f"Think about {step_id}",
        "kind": "direct-reasoning",
        "nextSteps": next_steps,
        **extra,
    }


def make_workflow(*steps: dict[str, Any], goal: str = "test goal") -> Workflow:
    return Workflow.model_validate({"goal": goal, "steps": list(steps)})


@pytest.fixture
def registry() -> CountingRegistry:
    """Registry with the tools used across the engine tests."""
    reg = CountingRegistry()
    reg.register(
        "web_search",
        lambda query="": f"results for {query}",
        description="Search the web for information",
        source="search-server",
    )
    reg.register(
        "summarize",
        lambda text="": f"summary of {text}",
        description="Summarize a text",
        source="text-server",
    )
    return reg


@pytest.fixture
def catalogue(registry: CountingRegistry) -> list[ToolSpec]:
    return registry.catalogue()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(
        max_steps=None,
        timeout_seconds=0,
        max_child_agents=3,
        max_delegation_depth=2,
    )


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def make_engine(
    registry: CountingRegistry, engine_config: EngineConfig
) -> Callable[..., WorkflowEngine]:
    def _make(llm: ScriptedLLM, **overrides: Any) -> WorkflowEngine:
        config = engine_config.model_copy(update=overrides)
        return WorkflowEngine(planner=PlannerGateway(llm), tools=registry, config=config)

    return _make


@pytest.fixture
def agent_config(engine_config: EngineConfig) -> AgentConfig:
    return AgentConfig(
        log_level="DEBUG",
        llm=LLMConfig(provider="openai", openai_api_key="test-key"),
        engine=engine_config,
    )


@pytest.fixture
def catalogue_file(tmp_path: Path) -> Path:
    path = tmp_path / "tools.json"
    path.write_text(
        json.dumps(
            {
                "servers": [
                    {
                        "name": "search-server",
                        "tools": [
                            {"name": "web_search", "description": "Search the web"},
                        ],
                    },
                    {
                        "name": "text-server",
                        "tools": [
                            {"name": "summarize", "description": "Summarize a text"},
                        ],
                    },
                ]
            }
        ),
        encoding="utf-8",
    )
    return path
