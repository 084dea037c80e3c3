"""
Name: Backend ASGI Entrypoint (bizops.main)

Responsibilities:
  - Re-export the ASGI app for uvicorn and tests
  - Keep this module side-effect free beyond importing bizops.api.main

Notes/Constraints:
  - uvicorn bizops.main:app
"""

from bizops.api.main import app, fastapi_app

__all__ = ["app", "fastapi_app"]
