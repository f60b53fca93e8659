"""Agent facade wiring a model, a tool registry and the workflow engine."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from workflow_agent.core.config import AgentConfig
from workflow_agent.llm.factory import LLMFactory
from workflow_agent.llm.provider import LanguageModel
from workflow_agent.tools import ToolRegistry, load_catalogue, simulated_registry
from workflow_agent.workflow.engine import WorkflowEngine
from workflow_agent.workflow.errors import DelegationLimitError, WorkflowError
from workflow_agent.workflow.models import RunResult, Workflow
from workflow_agent.workflow.planner import PlannerGateway
from workflow_agent.workflow.validator import GraphValidator

logger = logging.getLogger(__name__)


class Agent:
    """One agent instance: plans a workflow for a task and runs it.

    Sub-agents are further `Agent` instances sharing this agent's model and
    config, scoped to a subset of its tools, one level deeper.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        llm: LanguageModel | None = None,
        tools: ToolRegistry | None = None,
        depth: int = 0,
    ) -> None:
        """Initialize the agent.

        Args:
            config: Configuration object. If None, loads from environment.
            llm: Model to use. If None, one is created from `config.llm`.
            tools: Tool registry. If None, a simulated registry is built from
                `config.catalogue_path` (or left empty).
            depth: Delegation depth; 0 for the top-level agent.
        """
        self.config = config or AgentConfig()
        self.depth = depth
        self.llm: LanguageModel = llm or LLMFactory.create(self.config.llm)
        self.tools = tools if tools is not None else self._default_tools()

        self.planner = PlannerGateway(self.llm)
        self.engine = WorkflowEngine(
            planner=self.planner,
            tools=self.tools,
            spawner=RecursiveAgentSpawner(self),
            config=self.config.engine,
        )

        logger.debug(
            "Agent initialized", extra={"depth": depth, "tools": len(self.tools)}
        )

    def _default_tools(self) -> ToolRegistry:
        if self.config.catalogue_path is None:
            return ToolRegistry()
        return simulated_registry(load_catalogue(self.config.catalogue_path))

    def plan(self, task: str) -> Workflow:
        """Propose and validate a workflow without executing it.

        Raises:
            PlanningError: If the model reply holds no workflow.
            WorkflowValidationError: If the proposal breaks an invariant.
        """
        catalogue = self.tools.catalogue()
        workflow = self.planner.propose_workflow(task, catalogue)
        validator = GraphValidator(catalogue, max_steps=self.config.engine.max_steps)
        return validator.ensure_valid(workflow)

    def run(self, task: str, *, timeout_seconds: float | None = None) -> RunResult:
        return self.engine.run(task, self.tools.catalogue(), timeout_seconds=timeout_seconds)


class RecursiveAgentSpawner:
    """Spawn child agents for delegate steps.

    The parent only ever sees the child's final summary. Depth is bounded by
    `EngineConfig.max_delegation_depth`; fan-out per run is bounded by the
    step executor.
    """

    def __init__(self, parent: Agent) -> None:
        self._parent = parent

    def spawn(
        self,
        task: str,
        allowed_tool_names: Sequence[str],
        *,
        timeout_seconds: float | None = None,
    ) -> str:
        """Run `task` on a child agent within the parent's remaining time, if any."""

        parent = self._parent
        limit = parent.config.engine.max_delegation_depth
        if parent.depth >= limit:
            raise DelegationLimitError(
                f"sub-agent depth limit of {limit} reached at depth {parent.depth}"
            )

        child = Agent(
            parent.config,
            llm=parent.llm,
            tools=parent.tools.subset(allowed_tool_names),
            depth=parent.depth + 1,
        )
        logger.info(
            "Running sub-agent",
            extra={
                "depth": child.depth,
                "task": task,
                "tools": list(allowed_tool_names),
                "timeout_seconds": timeout_seconds,
            },
        )
        result = child.run(task, timeout_seconds=timeout_seconds)
        if not result.ok:
            raise WorkflowError(f"Sub-agent failed: {result.failure_reason}")
        return result.summary or ""
