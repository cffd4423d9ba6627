"""Closed set of staff roles."""

from enum import StrEnum


class Role(StrEnum):
    """Roles a user can hold.

    Authorization checks compare enum members, never raw strings.
    """

    ADMIN = "admin"
    SUPERVISOR = "supervisor"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Parse a claim value into a Role.

        Returns None for a missing or empty value.

        Raises:
            ValueError: If the value is not a known role
        """
        if value is None or value == "":
            return None
        return cls(value)
