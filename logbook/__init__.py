"""Top-level import name for the logbook service.

``logbook.app`` is the same ASGI application as ``app.main.app`` so either can
be handed to an ASGI server.
"""

from __future__ import annotations

from app.main import app, create_app

__all__ = ["app", "create_app"]
