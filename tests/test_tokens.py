import uuid
from datetime import timedelta

import jwt
import pytest

from app.services.tokens import TokenClaims, decode_token, hash_token, new_token, sign_token

SECRET = "unit-test-secret-0123456789abcdef"


class TestRandomTokens:
    def test_new_token_is_64_hex_chars(self):
        token = new_token()
        assert len(token) == 64
        int(token, 16)

    def test_new_tokens_differ(self):
        assert new_token() != new_token()

    def test_hash_is_stable(self):
        assert hash_token("abc") == hash_token("abc")
        assert hash_token("abc") != hash_token("abd")


class TestSignedTokens:
    def test_access_claims(self):
        user_id = uuid.uuid4()
        token = sign_token(TokenClaims(user_id=user_id), SECRET, timedelta(minutes=5))

        claims = decode_token(token, SECRET)

        assert claims.user_id == user_id
        assert claims.session_id is None

    def test_refresh_claims(self):
        user_id, session_id = uuid.uuid4(), uuid.uuid4()
        token = sign_token(TokenClaims(user_id=user_id, session_id=session_id), SECRET, timedelta(days=1))

        claims = decode_token(token, SECRET, require_session=True)

        assert claims == TokenClaims(user_id=user_id, session_id=session_id)

    def test_refresh_requires_session_claim(self):
        token = sign_token(TokenClaims(user_id=uuid.uuid4()), SECRET, timedelta(minutes=5))

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token, SECRET, require_session=True)

    def test_expired(self):
        token = sign_token(TokenClaims(user_id=uuid.uuid4()), SECRET, timedelta(seconds=-5))

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token, SECRET)

    def test_wrong_secret(self):
        token = sign_token(TokenClaims(user_id=uuid.uuid4()), SECRET, timedelta(minutes=5))

        with pytest.raises(jwt.InvalidSignatureError):
            decode_token(token, "another-secret-0123456789abcdef")

    def test_non_uuid_subject(self):
        token = jwt.encode({"sub": "not-a-uuid", "exp": 4102444800}, SECRET, algorithm="HS256")

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token, SECRET)

    def test_pairs_minted_together_differ(self):
        claims = TokenClaims(user_id=uuid.uuid4())
        assert sign_token(claims, SECRET, timedelta(minutes=5)) != sign_token(claims, SECRET, timedelta(minutes=5))
