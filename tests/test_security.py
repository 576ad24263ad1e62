"""Tests for password hashing and session tokens."""

from datetime import datetime, timedelta

import pytest
from jose import jwt

from common.exceptions import InvalidToken, Unauthenticated
from common.utils.security import TokenService, hash_password, verify_password


class TestPasswords:
    """Test cases for password hashing."""

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)

    def test_wrong_password_rejected(self):
        assert not verify_password("other", hash_password("s3cret!"))

    def test_missing_or_garbage_hash_never_matches(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestTokenService:
    """Test cases for token issue/verify."""

    def test_verify_returns_issued_claims(self, tokens):
        token = tokens.issue("abc123", "doctor")
        claims = tokens.verify(token)
        assert claims.identity_id == "abc123"
        assert claims.role == "doctor"

    def test_default_validity_is_thirty_days(self, tokens):
        now = datetime.utcnow().replace(microsecond=0)
        payload = jwt.get_unverified_claims(tokens.issue("abc123", "patient", now=now))
        assert payload["exp"] - payload["iat"] == int(timedelta(days=30).total_seconds())

    def test_expired_token_is_invalid(self, tokens):
        issued = datetime.utcnow() - timedelta(days=31)
        token = tokens.issue("abc123", "patient", now=issued)
        with pytest.raises(InvalidToken):
            tokens.verify(token)

    def test_tampered_signature_is_invalid(self, tokens):
        token = tokens.issue("abc123", "patient")
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with pytest.raises(InvalidToken):
            tokens.verify(".".join([header, payload, flipped]))

    def test_tampered_payload_is_invalid(self, tokens):
        token = tokens.issue("abc123", "patient")
        forged_payload = jwt.encode({"sub": "abc123", "role": "admin"}, "x").split(".")[1]
        header, _, signature = token.split(".")
        with pytest.raises(InvalidToken):
            tokens.verify(".".join([header, forged_payload, signature]))

    def test_token_from_other_secret_is_invalid(self, tokens):
        other = TokenService("another-secret")
        with pytest.raises(InvalidToken):
            tokens.verify(other.issue("abc123", "patient"))

    def test_garbage_is_invalid(self, tokens):
        with pytest.raises(InvalidToken):
            tokens.verify("not.a.token")

    def test_missing_claims_are_invalid(self, tokens):
        token = jwt.encode({"sub": "abc123"}, tokens.secret, algorithm="HS256")
        with pytest.raises(InvalidToken):
            tokens.verify(token)

    def test_invalid_token_is_an_authentication_failure(self):
        assert issubclass(InvalidToken, Unauthenticated)
        assert InvalidToken().status_code == 401
