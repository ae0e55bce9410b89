"""
Authentication endpoints
"""
from fastapi import APIRouter, Depends, status

from app.core.deps import get_identity_provider
from app.schemas.auth import LoginRequest, SignUpRequest, SignUpResponse, TokenResponse
from app.services.identity_service import IdentityProvider

router = APIRouter()


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    signup_data: SignUpRequest,
    identity: IdentityProvider = Depends(get_identity_provider)
):
    """
    Create an identity account and sign it in

    The on-create hook provisions the default user profile, permissions
    and custom claims.
    """
    account = identity.create_user(
        email=signup_data.email,
        password=signup_data.password,
        display_name=signup_data.display_name,
    )
    return SignUpResponse(
        uid=account.uid,
        email=account.email,
        access_token=identity.issue_token(account),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider)
):
    """
    Authenticate with email and password and return a JWT

    Disabled (locked) accounts are rejected.
    """
    return TokenResponse(access_token=identity.sign_in(login_data.email, login_data.password))
