"""
bazaar.api.deps — FastAPI dependency injection
================================================

The bearer token only identifies the caller (``sub``).  Role, name and the
suspension flag are looked up in the ``users`` dataset on every request,
so a role change or suspension takes effect immediately.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from bazaar.config import DEFAULT_CONFIG, BazaarConfig, load_config
from bazaar.database.engine import create_db_engine
from bazaar.database.models import UserRole
from bazaar.database.store import DatasetStore
from bazaar.errors import PersistenceError
from bazaar.services import directory_service

logger = logging.getLogger(__name__)

_WEAK_SECRETS = frozenset({
    "bazaar-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=12)


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


def issue_token(user_id: str, ttl: timedelta = TOKEN_TTL) -> str:
    """Sign a session token that carries nothing but the user id."""
    payload = {"sub": user_id, "exp": datetime.now(UTC) + ttl}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


def get_store(engine: Annotated[Engine, Depends(get_engine)]) -> DatasetStore:
    return DatasetStore(engine)


@lru_cache(maxsize=1)
def get_config() -> BazaarConfig:
    try:
        return load_config(os.getenv("BAZAAR_CONFIG", "config.yaml"))
    except FileNotFoundError:
        logger.warning("config.yaml not found; using built-in defaults")
        return DEFAULT_CONFIG


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CurrentUser:
    id: str
    name: str
    role: UserRole | None
    email: str = ""


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    store: DatasetStore = Depends(get_store),
) -> CurrentUser:
    """Validate the bearer token and resolve the caller's profile.  401/403 on failure."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")

    try:
        profile = directory_service.get_user(store, str(user_id))
    except PersistenceError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "User directory unavailable")
    if profile is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unknown user")
    if profile.is_suspended:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Account suspended")

    return CurrentUser(id=profile.id, name=profile.name, role=profile.role, email=profile.email)


def require_role(*roles: UserRole):
    """Dependency factory: the caller must hold one of *roles*."""

    def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status.HTTP_403_FORBIDDEN, f"Requires role: {', '.join(roles)}")
        return user

    return _check
