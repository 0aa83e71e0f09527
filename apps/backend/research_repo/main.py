"""
Name: Backend ASGI Entrypoint (research_repo.main)

Responsibilities:
  - Re-export the FastAPI app for ASGI servers and tooling
  - Keep this module side-effect free beyond importing research_repo.api.main

Notes/Constraints:
  - ASGI servers are configured to import research_repo.main:app
"""

from research_repo.api.main import app

__all__ = ["app"]
