from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..integrations.identity import TokenVerifier
from ..users.model import User
from ..users.repository import UserRepository

BEARER_PREFIX = "Bearer "


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing bearer token")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    return token


def load_current_user(verifier: TokenVerifier, users: UserRepository) -> User:
    """Verify the bearer token and load the caller's own user record.

    Roles are read from the store, never from token claims.
    """

    principal = verifier.verify(bearer_token())
    user = users.get_by_id(principal.uid)
    if not user:
        raise AuthorizationError("Forbidden")
    return user


def current_user() -> User:
    return g.current_user


def auth_required(verifier: TokenVerifier, users: UserRepository, role: Optional[Role] = None):
    """Decorator: authenticate the request and optionally require ``role``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if role == Role.ADMIN:
                g.admin_endpoint = True
            user = load_current_user(verifier, users)
            if role is not None and user.role != role:
                raise AuthorizationError("Forbidden")
            g.current_user = user
            return view(*args, **kwargs)

        return wrapper

    return decorator
