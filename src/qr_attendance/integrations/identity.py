from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Protocol, Sequence

import jwt
from firebase_admin import auth as firebase_auth

from ..common.datetime_utils import now_utc
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class Principal:
    """Decoded bearer token. Roles are never read from here."""

    uid: str
    email: Optional[str] = None


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Principal:
        raise NotImplementedError


class FirebaseTokenVerifier:
    """Verify Firebase ID tokens issued to the web client."""

    def __init__(self, app: Any = None):
        self._app = app

    def verify(self, token: str) -> Principal:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._app)
        except Exception as e:
            raise AuthenticationError("Invalid or expired token") from e

        uid = decoded.get("uid") or decoded.get("sub")
        if not uid:
            raise AuthenticationError("Invalid or expired token")
        return Principal(uid=str(uid), email=decoded.get("email"))


class JwtTokenVerifier:
    """HS256 tokens for self-hosted deployments without Firebase Auth."""

    def __init__(self, secret: str, *, algorithms: Sequence[str] = ("HS256",)):
        self._secret = secret
        self._algorithms = list(algorithms)

    def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=self._algorithms)
        except jwt.PyJWTError as e:
            raise AuthenticationError("Invalid or expired token") from e

        uid = payload.get("uid") or payload.get("sub")
        if not uid:
            raise AuthenticationError("Invalid or expired token")
        return Principal(uid=str(uid), email=payload.get("email"))

    def issue(self, uid: str, *, email: Optional[str] = None, ttl_seconds: int = 3600) -> str:
        now = now_utc()
        payload = {"sub": uid, "iat": now, "exp": now + timedelta(seconds=ttl_seconds)}
        if email:
            payload["email"] = email
        return jwt.encode(payload, self._secret, algorithm=self._algorithms[0])
