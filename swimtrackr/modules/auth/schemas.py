from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List

from swimtrackr.core.roles import Role
from swimtrackr.modules.profiles.schemas import CurrentProfile


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class OtpRequest(BaseModel):
    email: EmailStr
    redirect_to: str = "/dashboard"


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class MeResponse(BaseModel):
    profile: CurrentProfile
    navigation: List[dict]
    allowed_roles: List[Role]
