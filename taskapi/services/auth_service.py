"""
Registration and sign-in use cases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from taskapi.core.security import hash_password, verify_password
from taskapi.domain.accounts import SignInBody, SignUpBody
from taskapi.domain.errors import AuthenticationError
from taskapi.domain.validation import coerce
from taskapi.repositories.sql_repository import SQLRepository
from taskapi.services.session_service import delete_session, issue_session

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user_id: str
    token: str


class AuthService:
    """Handles sign up, sign in and sign out."""

    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def sign_up(self, data: Any) -> AuthResult:
        """Create the user and open a session. ConflictError when the email is taken."""
        body = coerce(SignUpBody, data)
        user = self.repository.create_user(
            name=body.name,
            email=self._normalize_email(body.email),
            password_hash=hash_password(body.password),
        )
        logger.info("user registered id=%s", user.id)
        return AuthResult(user_id=user.id, token=issue_session(self.repository, user.id))

    def sign_in(self, data: Any) -> AuthResult:
        body = coerce(SignInBody, data)
        user = self.repository.get_user_by_email(self._normalize_email(body.email))
        if not user or not verify_password(body.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return AuthResult(user_id=user.id, token=issue_session(self.repository, user.id))

    def sign_out(self, token: Optional[str]) -> None:
        if not token:
            return
        delete_session(self.repository, token)
