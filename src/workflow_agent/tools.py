"""In-process tool registry and catalogue loading."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from workflow_agent.workflow.models import ToolResult, ToolSpec

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class _Registered:
    spec: ToolSpec
    handler: ToolHandler


class ToolRegistry:
    """Named tools callable with a parameter mapping.

    `invoke` returns None for unknown names, which the step executor treats
    as a recoverable tool-not-found failure.
    """

    def __init__(self) -> None:
        self._tools: dict[str, _Registered] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(
        self,
        name: str,
        handler: ToolHandler,
        *,
        description: str = "",
        source: str = "local",
    ) -> None:
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        spec = ToolSpec(name=name, description=description, source=source)
        self._tools[name] = _Registered(spec=spec, handler=handler)

    def catalogue(self) -> list[ToolSpec]:
        return [entry.spec for entry in self._tools.values()]

    def subset(self, names: Iterable[str]) -> ToolRegistry:
        """A registry holding only `names`; unknown names are ignored."""

        scoped = ToolRegistry()
        for name in names:
            entry = self._tools.get(name)
            if entry is not None and name not in scoped:
                scoped._tools[name] = entry
        return scoped

    def invoke(self, tool_name: str, parameters: Mapping[str, Any]) -> ToolResult | None:
        entry = self._tools.get(tool_name)
        if entry is None:
            logger.info("Tool not available", extra={"tool": tool_name})
            return None

        logger.info(
            "Calling tool",
            extra={"tool": tool_name, "source": entry.spec.source, "parameters": dict(parameters)},
        )
        value = entry.handler(**parameters)
        return ToolResult(source_name=entry.spec.source, tool_name=tool_name, result_value=value)


def load_catalogue(path: Path) -> list[ToolSpec]:
    """Load a tool catalogue from JSON.

    Two shapes are accepted:
    - ``{"servers": [{"name": "search-server", "tools": [{"name": ..., "description": ...}]}]}``
    - a flat list of ``{"name", "description", "source"}`` objects.
    """

    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, list):
        return [ToolSpec.model_validate(item) for item in raw]
    if not isinstance(raw, dict) or not isinstance(raw.get("servers"), list):
        raise ValueError(f"Unrecognised catalogue format in {path}")

    specs: list[ToolSpec] = []
    for server in raw["servers"]:
        source = str(server.get("name", "local"))
        for tool in server.get("tools", []):
            specs.append(ToolSpec.model_validate({"source": source, **tool}))
    return specs


def _simulated_handler(spec: ToolSpec) -> ToolHandler:
    def handler(**parameters: Any) -> str:
        rendered = ", ".join(f"{key}={value!r}" for key, value in parameters.items())
        return f"Simulated {spec.name} result ({rendered or 'no parameters'})"

    return handler


def simulated_registry(catalogue: Iterable[ToolSpec]) -> ToolRegistry:
    """Registry whose tools echo their parameters. Useful for dry runs."""

    registry = ToolRegistry()
    for spec in catalogue:
        if spec.name not in registry:
            registry.register(
                spec.name,
                _simulated_handler(spec),
                description=spec.description,
                source=spec.source,
            )
    return registry
