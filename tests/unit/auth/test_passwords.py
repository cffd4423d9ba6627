"""Unit tests for password hashing and the password policy."""

import pytest

from bustrack.core.auth.passwords import PasswordHasher, password_policy_violations


pytestmark = pytest.mark.unit


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    def test_hash_returns_bcrypt_hash(self, hasher):
        hashed = hasher.hash("GoodPass1!")

        assert hashed != "GoodPass1!"
        assert hashed.startswith("$2b$04$")

    def test_hash_different_each_time(self, hasher):
        # Different due to random salt
        assert hasher.hash("GoodPass1!") != hasher.hash("GoodPass1!")

    def test_verify_correct(self, hasher):
        assert hasher.verify("GoodPass1!", hasher.hash("GoodPass1!")) is True

    def test_verify_incorrect(self, hasher):
        assert hasher.verify("WrongPass1!", hasher.hash("GoodPass1!")) is False

    @pytest.mark.parametrize("hashed", ["", "plaintext", "$2b$10$tooshort", "$argon2$x"])
    def test_verify_malformed_hash_returns_false(self, hasher, hashed):
        assert hasher.verify("GoodPass1!", hashed) is False

    def test_verify_empty_password(self, hasher):
        assert hasher.verify("", hasher.hash("GoodPass1!")) is False

    def test_rounds_are_configurable(self):
        assert PasswordHasher(rounds=5).hash("GoodPass1!").startswith("$2b$05$")

    def test_dummy_verify_is_always_false(self, hasher):
        assert hasher.dummy_verify() is False


class TestPasswordPolicy:
    """Tests for password_policy_violations."""

    def test_good_password_passes(self):
        assert password_policy_violations("GoodPass1!") == []

    def test_missing_uppercase(self):
        assert password_policy_violations("alllowercase1!") == [
            "Password must contain at least one uppercase letter"
        ]

    def test_too_short(self):
        assert password_policy_violations("Short1!") == [
            "Password must be at least 8 characters long"
        ]

    def test_too_long(self):
        violations = password_policy_violations("Aa1!" * 33)

        assert violations == ["Password must not exceed 128 characters"]

    def test_reports_every_missing_class(self):
        violations = password_policy_violations("abcdefgh")

        assert violations == [
            "Password must contain at least one uppercase letter",
            "Password must contain at least one digit",
            "Password must contain at least one special character",
        ]

    def test_empty_password(self):
        assert password_policy_violations("") == ["Password is required"]

    @pytest.mark.parametrize("password", ["Good Pass1", "GoodPass1€", "GoodPass1ñ"])
    def test_any_non_alphanumeric_counts_as_special(self, password):
        assert password_policy_violations(password) == []
