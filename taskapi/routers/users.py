from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from taskapi.core.config import get_settings
from taskapi.core.rate_limiter import rate_limit_ip
from taskapi.domain.accounts import SignInBody, SignUpBody, TokenOut
from taskapi.domain.tasks import MessageOut
from taskapi.services.auth_service import AuthService
from taskapi.services.session_service import current_user_id, token_from_request

router = APIRouter(prefix="/user", tags=["user"])


def _get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def _throttle(request: Request, scope: str) -> None:
    settings = get_settings()
    rate_limit_ip(request, scope, limit=settings.auth_rate_limit, window_seconds=settings.auth_rate_window_seconds)


@router.post("", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def sign_up(body: SignUpBody, request: Request, svc: AuthService = Depends(_get_auth_service)):
    _throttle(request, "user:signup")
    result = svc.sign_up(body)
    return {"token": result.token}


@router.post("/signin", response_model=TokenOut)
def sign_in(body: SignInBody, request: Request, svc: AuthService = Depends(_get_auth_service)):
    _throttle(request, "user:signin")
    result = svc.sign_in(body)
    return {"token": result.token}


@router.post("/logout", response_model=MessageOut)
def logout(
    request: Request,
    _user_id: str = Depends(current_user_id),
    svc: AuthService = Depends(_get_auth_service),
):
    svc.sign_out(token_from_request(request))
    return {"message": "Signed out"}
