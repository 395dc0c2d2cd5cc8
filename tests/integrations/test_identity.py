from __future__ import annotations

import jwt
import pytest

from qr_attendance.core.exceptions import AuthenticationError
from qr_attendance.integrations.identity import JwtTokenVerifier


def test_issued_token_verifies():
    verifier = JwtTokenVerifier("s3cret-key-for-tests-only-0123456789")
    token = verifier.issue("user-1", email="a@example.edu")

    principal = verifier.verify(token)
    assert principal.uid == "user-1"
    assert principal.email == "a@example.edu"


def test_uid_claim_is_accepted():
    secret = "s3cret-key-for-tests-only-0123456789"
    token = jwt.encode({"uid": "user-2"}, secret, algorithm="HS256")
    assert JwtTokenVerifier(secret).verify(token).uid == "user-2"


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        jwt.encode({"sub": "user-1"}, "another-secret-key-0123456789abcdef", algorithm="HS256"),
        jwt.encode({"email": "a@example.edu"}, "s3cret-key-for-tests-only-0123456789", algorithm="HS256"),
    ],
)
def test_bad_tokens_are_rejected(token):
    with pytest.raises(AuthenticationError):
        JwtTokenVerifier("s3cret-key-for-tests-only-0123456789").verify(token)


def test_expired_token_is_rejected():
    verifier = JwtTokenVerifier("s3cret-key-for-tests-only-0123456789")
    token = verifier.issue("user-1", ttl_seconds=-10)
    with pytest.raises(AuthenticationError):
        verifier.verify(token)
