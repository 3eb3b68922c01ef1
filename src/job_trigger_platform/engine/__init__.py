"""Trigger engine components.

- Settings loaded from the environment / .env
- Structured logging
- The Jenkins trigger engine (`engine.jenkins`)
- Registered jobs and their parameter contract (`engine.jobs`)
"""
