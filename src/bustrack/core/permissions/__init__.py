"""Role-based access control.

Guards and their FastAPI adapters live in ``bustrack.core.permissions.gate``.
"""

from bustrack.core.permissions.roles import Role


__all__ = ["Role"]
