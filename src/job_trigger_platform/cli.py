"""Console script shim.

The CLI is implemented in `job_trigger_platform.engine.main`.
"""

from __future__ import annotations

from job_trigger_platform.engine.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
