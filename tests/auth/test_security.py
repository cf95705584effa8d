"""Tests for auth security functions."""

from datetime import timedelta

import pytest
from jose import JWTError, jwt

from src.auth.security import (
    ADMIN_SESSION_TOKEN_TYPE,
    check_admin_credentials,
    create_admin_session_token,
    decode_admin_session_token,
    hash_password,
    verify_password,
)
from src.config.settings import get_settings


class TestPasswordHashing:
    """Tests for secret hashing functions."""

    def test_hash_password_creates_hash(self) -> None:
        """Hash should be different from the plain mobile number."""
        mobile = "9876543210"
        hashed = hash_password(mobile)
        assert hashed != mobile
        assert len(hashed) > 0

    def test_hash_password_unique_hashes(self) -> None:
        """Same input should produce different hashes (due to salt)."""
        assert hash_password("9876543210") != hash_password("9876543210")

    def test_verify_password_correct(self) -> None:
        hashed = hash_password("9876543210")
        is_valid, new_hash = verify_password("9876543210", hashed)
        assert is_valid is True
        assert new_hash is None  # No rehash needed for fresh hash

    def test_verify_password_incorrect(self) -> None:
        hashed = hash_password("9876543210")
        is_valid, new_hash = verify_password("9876543211", hashed)
        assert is_valid is False
        assert new_hash is None

    def test_verify_password_empty(self) -> None:
        hashed = hash_password("9876543210")
        is_valid, _new_hash = verify_password("", hashed)
        assert is_valid is False

    def test_verify_password_garbage_hash(self) -> None:
        """A corrupt stored hash is a failed login, not an error."""
        is_valid, _new_hash = verify_password("9876543210", "not-a-hash")
        assert is_valid is False

    def test_hash_is_argon2(self) -> None:
        assert hash_password("9876543210").startswith("$argon2")


class TestAdminCredentials:
    def test_configured_credentials_accepted(self) -> None:
        settings = get_settings()
        assert check_admin_credentials(settings.admin_username, settings.admin_password)

    @pytest.mark.parametrize(
        ("username", "password"),
        [("admin", "wrong"), ("root", "change-me-admin-password"), ("", "")],
    )
    def test_wrong_credentials_rejected(self, username: str, password: str) -> None:
        assert check_admin_credentials(username, password) is False


class TestAdminSessionToken:
    """Tests for admin session token creation and decoding."""

    def test_roundtrip(self) -> None:
        token, expires_at = create_admin_session_token("admin")
        payload = decode_admin_session_token(token)

        assert payload["sub"] == "admin"
        assert payload["type"] == ADMIN_SESSION_TOKEN_TYPE
        assert "jti" in payload
        assert payload["exp"] == int(expires_at.timestamp())

    def test_default_lifetime(self) -> None:
        settings = get_settings()
        token, expires_at = create_admin_session_token("admin")
        payload = decode_admin_session_token(token)

        assert payload["exp"] - payload["iat"] == settings.admin_session_expire_hours * 3600

    def test_expired_token(self) -> None:
        token, _ = create_admin_session_token("admin", timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_admin_session_token(token)

    def test_invalid_token(self) -> None:
        with pytest.raises(JWTError):
            decode_admin_session_token("invalid.token.here")

    def test_wrong_signature(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": "admin", "type": ADMIN_SESSION_TOKEN_TYPE},
            "some-other-key-that-is-long-enough-0000",
            algorithm=settings.admin_session_algorithm,
        )
        with pytest.raises(JWTError):
            decode_admin_session_token(token)

    def test_wrong_type(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": "admin", "type": "access"},
            settings.admin_session_secret_key,
            algorithm=settings.admin_session_algorithm,
        )
        with pytest.raises(JWTError, match="expected 'admin_session'"):
            decode_admin_session_token(token)

    def test_missing_subject(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"type": ADMIN_SESSION_TOKEN_TYPE},
            settings.admin_session_secret_key,
            algorithm=settings.admin_session_algorithm,
        )
        with pytest.raises(JWTError):
            decode_admin_session_token(token)
