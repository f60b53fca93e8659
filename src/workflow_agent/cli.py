"""CLI entrypoint for the workflow agent."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from workflow_agent import __version__
from workflow_agent.core.agent import Agent
from workflow_agent.core.config import AgentConfig
from workflow_agent.tools import load_catalogue, simulated_registry
from workflow_agent.workflow.errors import PlanningError, WorkflowValidationError
from workflow_agent.workflow.models import Workflow
from workflow_agent.workflow.validator import GraphValidator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-agent",
        description="Plan, validate and run dynamic tool workflows",
    )
    parser.add_argument(
        "--version", action="version", version=f"dynamic-workflow-agent {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser(
        "validate", help="Check a workflow JSON file against a tool catalogue (offline)"
    )
    validate.add_argument("--workflow", type=Path, required=True, help="Workflow JSON file")
    validate.add_argument("--catalogue", type=Path, required=True, help="Tool catalogue JSON")
    validate.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Reject workflows with more steps than this",
    )

    plan = subparsers.add_parser("plan", help="Ask the model for a workflow and validate it")
    plan.add_argument("task", help="Natural-language task")
    plan.add_argument("--catalogue", type=Path, default=None, help="Tool catalogue JSON")

    run = subparsers.add_parser(
        "run", help="Plan and execute a task (catalogue tools are simulated)"
    )
    run.add_argument("task", help="Natural-language task")
    run.add_argument("--catalogue", type=Path, default=None, help="Tool catalogue JSON")
    run.add_argument(
        "--timeout-seconds",
        type=float,
        default=None,
        help="Run deadline in seconds (0 means no deadline)",
    )

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _validate(args: argparse.Namespace) -> int:
    workflow = Workflow.model_validate_json(args.workflow.read_text(encoding="utf-8"))
    catalogue = load_catalogue(args.catalogue)
    report = GraphValidator(catalogue, max_steps=args.max_steps).validate(workflow)
    if report.ok:
        print(f"Workflow is valid ({len(workflow.steps)} steps)")
        return 0
    for violation in report.violations:
        print(f"[{violation.invariant.value}] {violation.message}")
    return 1


def _build_agent(config: AgentConfig, catalogue_path: Path | None) -> Agent:
    path = catalogue_path or config.catalogue_path
    tools = simulated_registry(load_catalogue(path)) if path else None
    return Agent(config, tools=tools)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = AgentConfig()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    config.setup_logging()

    try:
        if args.command == "validate":
            return _validate(args)

        agent = _build_agent(config, args.catalogue)

        if args.command == "plan":
            workflow = agent.plan(args.task)
            _print_json(workflow.model_dump(mode="json", by_alias=True))
            return 0

        if args.command == "run":
            result = agent.run(args.task, timeout_seconds=args.timeout_seconds)
            _print_json(result.model_dump(mode="json", exclude={"workflow"}))
            return 0 if result.ok else 1

        parser.error(f"Unknown command: {args.command}")
        return 2

    except WorkflowValidationError as e:
        for violation in e.violations:
            print(f"[{violation.invariant.value}] {violation.message}", file=sys.stderr)
        return 1
    except (PlanningError, ValueError, FileNotFoundError) as e:
        logger.error("Command failed", extra={"command": args.command, "error": str(e)})
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
