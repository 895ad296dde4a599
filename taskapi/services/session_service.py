"""Session helpers: issue bearer tokens and resolve them back to a user id."""
from __future__ import annotations

from fastapi import Request

from taskapi.core.config import get_settings
from taskapi.domain.errors import AuthenticationError
from taskapi.repositories.sql_repository import SQLRepository

_BEARER = "bearer "


def issue_session(repository: SQLRepository, user_id: str) -> str:
    """Create a new session token and persist it through the repository."""
    ttl = max(60, get_settings().session_ttl_seconds)
    return repository.create_session(user_id, ttl)


def resolve_token(repository: SQLRepository, token: str | None) -> str | None:
    """Return the user id bound to token, or None when unknown or expired."""
    if not token:
        return None
    return repository.session_user_id(token)


def delete_session(repository: SQLRepository, token: str) -> None:
    """Remove a session token from the store."""
    if not token:
        return
    repository.delete_session(token)


def token_from_request(request: Request) -> str | None:
    """Accept ``Authorization: Bearer <token>`` as well as a bare token."""
    header = (request.headers.get("authorization") or "").strip()
    if not header:
        return None
    if header.lower().startswith(_BEARER):
        header = header[len(_BEARER) :].strip()
    return header or None


def _get_repository(request: Request) -> SQLRepository:
    repo = getattr(getattr(request.app, "state", None), "repository", None)
    if not repo:
        raise RuntimeError("SQLRepository not configured")
    return repo


def current_user_id(request: Request) -> str:
    """FastAPI dependency resolving the caller; raises AuthenticationError otherwise."""
    token = token_from_request(request)
    if not token:
        raise AuthenticationError(
            "Token not found. Sign up or sign in first, then send the token in the Authorization header."
        )
    user_id = resolve_token(_get_repository(request), token)
    if not user_id:
        raise AuthenticationError("Invalid Token")
    return user_id
