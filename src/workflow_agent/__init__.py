"""Dynamic Workflow Agent.

Turns one natural-language task into a validated graph of steps, executes it
against tools and recursively spawned sub-agents, and returns a synthesized
answer.
"""

__version__ = "0.1.0"

from workflow_agent.core.config import AgentConfig

__all__ = ["__version__", "AgentConfig"]
