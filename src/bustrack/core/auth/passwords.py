"""Password hashing with bcrypt and the password policy."""

import re

from passlib.context import CryptContext

from bustrack.core.constants import (
    BCRYPT_ROUNDS,
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)


class PasswordHasher:
    """One-way password hashing and verification.

    The bcrypt cost factor is injected at construction so tests can use a
    cheap one.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Bcrypt hash of the password
        """
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a password against its hash.

        Args:
            password: Plain text password to verify
            hashed_password: Bcrypt hash to verify against

        Returns:
            True if the password matches. False on mismatch and on
            malformed or unrecognized hashes.
        """
        if not password or not hashed_password:
            return False
        try:
            return self._context.verify(password, hashed_password)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> bool:
        """Run a verification against a throwaway hash and return False.

        Takes as long as ``verify`` does for a real user, for code paths
        that have no hash to check.
        """
        self._context.dummy_verify()
        return False


# ============================================================
# Password Policy
# ============================================================

# Complexity rules: (regex pattern, human-readable name)
PASSWORD_COMPLEXITY_RULES: list[tuple[str, str]] = [
    (r"[A-Z]", "uppercase letter"),
    (r"[a-z]", "lowercase letter"),
    (r"\d", "digit"),
    # Anything that is not an ASCII letter or digit, spaces and non-ASCII included
    (r"[^A-Za-z0-9]", "special character"),
]


def password_policy_violations(password: str) -> list[str]:
    """Check a password against the policy.

    Every violated rule produces its own message, so callers can report
    all of them at once.

    Args:
        password: The password to check

    Returns:
        One message per violated rule, empty if the password is acceptable
    """
    if not password:
        return ["Password is required"]

    messages: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        messages.append(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(password) > MAX_PASSWORD_LENGTH:
        messages.append(f"Password must not exceed {MAX_PASSWORD_LENGTH} characters")

    messages.extend(
        f"Password must contain at least one {name}"
        for pattern, name in PASSWORD_COMPLEXITY_RULES
        if not re.search(pattern, password)
    )
    return messages
