"""FastAPI server adapter for the job trigger platform.

Design intent:
- Keep triggering logic in `job_trigger_platform.engine.*`
- Keep server-specific concerns (routing, CORS, caller identity) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from job_trigger_platform.server.app import create_app
