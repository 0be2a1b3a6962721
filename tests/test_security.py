"""Password hasher and token issuer."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from utils.errors import TokenExpired, TokenInvalid
from utils.security import PasswordHasher, TokenIssuer, generate_jti


@pytest.fixture
def hasher():
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def token_issuer():
    return TokenIssuer("access-secret", 900, "refresh-secret", 3600)


class TestPasswordHasher:
    def test_compare_matches_only_the_original(self, hasher):
        hashed = hasher.hash("secret12")
        assert hashed != "secret12"
        assert hasher.compare("secret12", hashed) is True
        assert hasher.compare("secret13", hashed) is False

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("secret12") != hasher.hash("secret12")

    def test_malformed_hash_is_a_mismatch(self, hasher):
        assert hasher.compare("secret12", "not-a-hash") is False

    def test_long_token_values_are_compared_in_full(self, hasher, token_issuer):
        # two refresh tokens share their JWT header; the whole value must count
        first = token_issuer.issue_refresh("u1", "alice1")
        second = token_issuer.issue_refresh("u1", "alice1")
        assert hasher.compare(second, hasher.hash(first)) is False


class TestTokenIssuer:
    def test_access_claims(self, token_issuer):
        token = token_issuer.issue_access("u1", "alice1")
        claims = token_issuer.decode_access(token)
        assert claims["sub"] == "u1"
        assert claims["username"] == "alice1"
        assert claims["type"] == "access"
        assert 899 <= claims["exp"] - claims["iat"] <= 900

    def test_refresh_uses_given_jti_and_expiry(self, token_issuer):
        jti = generate_jti()
        expires_at = token_issuer.refresh_expiry()
        token = token_issuer.issue_refresh("u1", "alice1", jti=jti, expires_at=expires_at)
        claims = token_issuer.decode_refresh(token)
        assert claims["jti"] == jti
        assert claims["exp"] == int(expires_at.timestamp())
        assert expires_at.microsecond == 0

    def test_tokens_do_not_cross_verify(self, token_issuer):
        access = token_issuer.issue_access("u1", "alice1")
        refresh = token_issuer.issue_refresh("u1", "alice1")
        with pytest.raises(TokenInvalid):
            token_issuer.decode_refresh(access)
        with pytest.raises(TokenInvalid):
            token_issuer.decode_access(refresh)

    def test_wrong_type_claim_is_rejected(self, token_issuer):
        # signed with the access secret but claiming to be a refresh token
        token = token_issuer._sign(
            "u1", "alice1", "refresh", generate_jti(), "access-secret",
            datetime.now(timezone.utc) + timedelta(minutes=5),
        )
        with pytest.raises(TokenInvalid):
            token_issuer.decode_access(token)

    def test_tampered_token_is_invalid(self, token_issuer):
        token = token_issuer.issue_access("u1", "alice1")
        bad = token[:-1] + ("x" if token[-1] != "x" else "y")
        with pytest.raises(TokenInvalid):
            token_issuer.decode_access(bad)

    def test_expired_token(self, token_issuer):
        now = datetime.now(timezone.utc)
        payload = {
            "sub": "u1",
            "username": "alice1",
            "type": "refresh",
            "jti": generate_jti(),
            "iat": int((now - timedelta(hours=2)).timestamp()),
            "exp": int((now - timedelta(minutes=1)).timestamp()),
        }
        token = jwt.encode(payload, "refresh-secret", algorithm="HS256")
        with pytest.raises(TokenExpired):
            token_issuer.decode_refresh(token)
        # expiry can be left to the caller
        assert token_issuer.decode_refresh(token, verify_exp=False)["sub"] == "u1"

    def test_missing_claims_are_rejected(self, token_issuer):
        token = jwt.encode(
            {"sub": "u1", "exp": int(datetime.now(timezone.utc).timestamp()) + 60},
            "access-secret",
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid):
            token_issuer.decode_access(token)
