from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from src.app.deps import (
    get_access_token,
    get_account_service,
    get_current_user,
    get_identity_provider,
    get_session_identity_provider,
)
from src.app.domain.models import UserIdentity
from src.app.infra.auth.base import IdentityProvider
from src.app.schemas.auth import (
    LoginRequest,
    PasswordResetRequest,
    ProviderLoginRequest,
    SessionResponse,
    SignUpRequest,
    UserResponse,
)
from src.app.services.accounts import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _session(user: UserIdentity, identity: IdentityProvider) -> SessionResponse:
    return SessionResponse(user=UserResponse.from_domain(user), accessToken=identity.access_token)


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignUpRequest,
    accounts: AccountService = Depends(get_account_service),
    identity: IdentityProvider = Depends(get_session_identity_provider),
):
    user = accounts.sign_up(payload.email, payload.password, payload.displayName)
    return _session(user, identity)


@router.post("/login", response_model=SessionResponse)
def login(
    payload: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
    identity: IdentityProvider = Depends(get_session_identity_provider),
):
    user = accounts.sign_in(payload.email, payload.password)
    return _session(user, identity)


@router.post("/provider", response_model=SessionResponse)
def provider_login(
    payload: ProviderLoginRequest,
    accounts: AccountService = Depends(get_account_service),
    identity: IdentityProvider = Depends(get_session_identity_provider),
):
    user = accounts.sign_in_with_provider(payload.provider, payload.idToken)
    return _session(user, identity)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    user: UserIdentity = Depends(get_current_user),
    token: str = Depends(get_access_token),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Revoke the session behind the bearer token."""
    identity.sign_out(token)
    logger.info("Signed out: uid=%s", user.uid)


@router.post("/reset-password", status_code=status.HTTP_202_ACCEPTED)
def reset_password(
    payload: PasswordResetRequest,
    accounts: AccountService = Depends(get_account_service),
):
    accounts.send_password_reset(payload.email)
    return {"ok": True}


@router.get("/me", response_model=UserResponse)
def me(user: UserIdentity = Depends(get_current_user)):
    return UserResponse.from_domain(user)
