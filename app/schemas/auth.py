"""
Authentication schemas
"""
from typing import Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignUpRequest(BaseModel):
    """Sign-up request schema"""
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN, description="Email address")
    password: str = Field(..., min_length=8, max_length=72, description="Password")
    display_name: Optional[str] = Field(default=None, alias="displayName", max_length=100)

    model_config = {"populate_by_name": True}


class LoginRequest(BaseModel):
    """Login request schema"""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """Token response schema"""
    access_token: str
    token_type: str = "bearer"


class SignUpResponse(TokenResponse):
    uid: str
    email: str
