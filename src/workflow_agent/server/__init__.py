"""FastAPI server adapter for the workflow agent.

Design intent:
- Keep workflow logic in `workflow_agent.workflow.*`
- Keep server-specific concerns (routing, CORS, run tracking) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_agent.server.app import create_app
