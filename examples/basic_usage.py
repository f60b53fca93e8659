#!/usr/bin/env python3
"""Programmatic run example.

This demonstrates using the agent components directly:

* load settings from `.env`
* register a couple of in-process tools
* plan, validate and run a task, then print the summary

The model is configured through `WORKFLOW_AGENT_LLM_*` variables.
"""

from __future__ import annotations

import argparse
from datetime import UTC, datetime
from typing import Sequence

from workflow_agent.core.agent import Agent
from workflow_agent.core.config import AgentConfig
from workflow_agent.tools import ToolRegistry


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a task with local tools (programmatic example).")
    parser.add_argument("task", help="Natural-language task")
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=None,
        help="Run deadline in seconds (0 means no deadline)",
    )
    return parser.parse_args(argv)


def _build_tools() -> ToolRegistry:
    tools = ToolRegistry()
    tools.register(
        "current_time",
        lambda: datetime.now(tz=UTC).isoformat(),
        description="Current UTC time in ISO format",
        source="clock",
    )
    tools.register(
        "word_count",
        lambda text="": len(text.split()),
        description="Count the words in `text`",
        source="text",
    )
    return tools


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    config = AgentConfig()
    config.setup_logging()

    agent = Agent(config, tools=_build_tools())
    result = agent.run(args.task, timeout_seconds=args.timeout_seconds)

    for step_id in result.completed_step_ids:
        print(f"{step_id}: {result.step_results[step_id].as_text()}")

    if not result.ok:
        print(f"Run failed ({result.error_type}): {result.failure_reason}")
        for violation in result.violations:
            print(f"  [{violation.invariant.value}] {violation.message}")
        return 1

    print(f"Summary: {result.summary}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
