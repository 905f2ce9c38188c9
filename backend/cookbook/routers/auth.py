"""
Authentication API endpoints.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from cookbook import validation
from cookbook.dependencies import (
    get_auth_repository,
    get_auth_session,
    get_current_user,
    limiter,
    unwrap,
)
from cookbook.models.account import Account
from cookbook.repositories import AuthRepository
from cookbook.schemas import (
    AccountResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    Token,
    UserCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    auth: AuthRepository = Depends(get_auth_repository),
) -> Any:
    """
    Register a new user and return an access token for it.
    """
    errors = validation.validate_sign_up(
        user_in.email, user_in.password, user_in.name, user_in.confirm_password
    )
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    unwrap(await auth.sign_up(user_in.email, user_in.password, user_in.name))
    return auth.access_token()


@router.post("/token", response_model=Token)
@limiter.limit("5/minute")
async def login_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth: AuthRepository = Depends(get_auth_repository),
) -> Any:
    """
    OAuth2 compatible token login, get an access token for future requests.
    """
    result = await auth.sign_in(form_data.username, form_data.password)
    if not result.is_success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.message,
        )
    return auth.access_token()


@router.get("/users/me", response_model=AccountResponse)
async def read_users_me(
    current_user: Account = Depends(get_current_user),
) -> Any:
    """
    Get current account.
    """
    return current_user


@router.delete("/users/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_users_me(
    session: AuthRepository = Depends(get_auth_session),
) -> None:
    """
    Delete the current account together with its profile.
    """
    unwrap(await session.delete_account())


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
@limiter.limit("5/minute")
async def request_password_reset(
    request: Request,
    data: PasswordResetRequest,
    auth: AuthRepository = Depends(get_auth_repository),
) -> Any:
    """
    Send a password reset token to the given email.
    """
    unwrap(await auth.reset_password(data.email))
    return {"success": True, "message": "Password reset email sent"}


@router.post("/password-reset/confirm")
async def confirm_password_reset(
    data: PasswordResetConfirm,
    auth: AuthRepository = Depends(get_auth_repository),
) -> Any:
    """
    Set a new password using a reset token.
    """
    error = validation.validate_password(data.new_password)
    if error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error)
    unwrap(await auth.confirm_password_reset(data.token, data.new_password))
    return {"success": True, "message": "Password updated"}
