"""Buses module: the tracked fleet."""

from bustrack.modules.buses.routes import router


__all__ = ["router"]
