"""Users module: staff accounts and their administration."""

from bustrack.modules.users.routes import router


__all__ = ["router"]
