"""Logbook service: catalog metadata lookups and collection actions.

``app`` and ``create_app`` are loaded from :mod:`app.main` on first access, so
importing ``app.config`` or a service module does not build the application.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["app", "create_app"]


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(".main", __name__), name)
