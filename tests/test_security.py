"""
Tests for security functions including link tokens, passwords and secret encryption.
"""
import re
import pytest
from cryptography.fernet import Fernet

from docshare.core.security import (
    verify_password,
    get_password_hash,
    generate_access_token,
    generate_link_password,
    encrypt_secret,
    decrypt_secret,
)
from docshare.core.logging_utils import (
    MASK,
    mask_headers,
    mask_sensitive_data,
    mask_url_path,
    sanitize_log_message,
)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_get_password_hash_returns_hash(self):
        """Password hashing should return a bcrypt hash."""
        password = "test_password_123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt prefix

    def test_password_hash_different_each_time(self):
        """Same password should produce different hashes (due to salt)."""
        password = "same_password"
        hash1 = get_password_hash(password)
        hash2 = get_password_hash(password)

        assert hash1 != hash2

    def test_verify_password_correct(self):
        """Verification should succeed with correct password."""
        password = "correct_password"
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True

    def test_verify_password_incorrect(self):
        """Verification should fail with incorrect password."""
        password = "correct_password"
        hashed = get_password_hash(password)

        assert verify_password("wrong_password", hashed) is False


class TestLinkCredentials:
    """Tests for access token and link password generation."""

    def test_access_token_is_64_hex_chars(self):
        token = generate_access_token()

        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_access_tokens_are_unique(self):
        tokens = {generate_access_token() for _ in range(50)}

        assert len(tokens) == 50

    def test_link_password_is_8_url_safe_chars(self):
        """Generated passwords are short enough to type from an email."""
        password = generate_link_password()

        assert re.fullmatch(r"[A-Za-z0-9_-]{8}", password)

    def test_link_passwords_differ(self):
        assert generate_link_password() != generate_link_password()


class TestSecretEncryption:
    """Tests for Fernet encryption of secrets stored at rest."""

    def test_encrypt_decrypt_roundtrip(self):
        token = encrypt_secret("smtp-password")

        assert token != "smtp-password"
        assert decrypt_secret(token) == "smtp-password"

    def test_none_passes_through(self):
        assert encrypt_secret(None) is None
        assert decrypt_secret(None) is None
        assert decrypt_secret("") is None

    def test_foreign_key_token_raises_value_error(self):
        """A value encrypted under another key must not decrypt silently."""
        foreign = Fernet(Fernet.generate_key()).encrypt(b"secret").decode("utf-8")

        with pytest.raises(ValueError):
            decrypt_secret(foreign)


class TestLogMasking:
    """Tests for log sanitization helpers."""

    def test_secret_keys_are_masked(self):
        masked = mask_sensitive_data({"password": "Ab3xZ9Qr", "X-API-Key": "abc", "name": "Maria"})

        assert masked["password"] == MASK
        assert masked["X-API-Key"] == MASK
        assert masked["name"] == "Maria"

    def test_email_is_partially_masked(self):
        masked = mask_sensitive_data({"email": "maria.silva@example.com"})

        assert masked["email"] == "mar***@example.com"

    def test_phone_keeps_last_digits(self):
        masked = mask_sensitive_data({"phone": "11988887777"})

        assert masked["phone"] == "*******7777"

    def test_bare_access_token_is_masked(self):
        assert mask_sensitive_data(generate_access_token()) == MASK

    def test_uuid_is_kept(self):
        value = "3f2b8c1e-4d5a-4e6f-9a7b-1c2d3e4f5a6b"

        assert mask_sensitive_data(value) == value

    def test_nested_structures(self):
        masked = mask_sensitive_data({"items": [{"token": "x"}], "meta": {"secret": "y"}})

        assert masked == {"items": [{"token": MASK}], "meta": {"secret": MASK}}

    def test_mask_headers(self):
        masked = mask_headers({"X-API-Key": "key", "Accept": "application/json"})

        assert masked == {"X-API-Key": MASK, "Accept": "application/json"}

    def test_mask_url_path_hides_public_tokens(self):
        token = generate_access_token()

        assert mask_url_path(f"/pq/{token}") == f"/pq/{MASK}"
        assert mask_url_path(f"/lp/{token}/approve") == f"/lp/{MASK}/approve"
        assert mask_url_path("/tq/landing-pages/abc") == "/tq/landing-pages/abc"

    def test_sanitize_log_message_appends_request_id_last(self):
        message = sanitize_log_message("Link opened", LinkID="abc", password="p", RequestID="req-1")

        assert message == f"Link opened | LinkID: abc | password: {MASK} | RequestID: req-1"


class TestSecurityEdgeCases:
    """Tests for edge cases in security functions."""

    def test_password_hash_special_characters(self):
        """Password with special characters should hash correctly."""
        password = "p@$$w0rd!#$%^&*()"
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True

    def test_password_hash_unicode(self):
        """Password with unicode characters should hash correctly."""
        password = "senha_ção_密码"
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True

    def test_encrypt_unicode_secret(self):
        assert decrypt_secret(encrypt_secret("José García")) == "José García"
