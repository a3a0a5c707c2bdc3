"""
Name: ASGI Entrypoint (contact_directory.main)

Responsibilities:
  - Re-export the FastAPI app for ASGI servers (uvicorn contact_directory.main:app)

Notes:
  - No configuration or IO here; wiring lives in contact_directory.api.main
"""

from .api.main import app

__all__ = ["app"]
