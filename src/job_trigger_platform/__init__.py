"""Jenkins Job Trigger Platform.

Provides:
- a trigger engine that submits parameterized Jenkins builds and tracks them
  until they start
- a registry of named jobs with declared parameters and required roles
- a CLI and a small REST API over both
"""

__version__ = "0.1.0"

from job_trigger_platform.engine.config import TriggerSettings

__all__ = ["__version__", "TriggerSettings"]
