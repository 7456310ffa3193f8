from typing import Optional
from datetime import date
from pydantic import BaseModel, EmailStr, Field

from models.profile import ProfileRead


# -----------------------------------------------------
# REGISTRATION (resident self sign-up)
# -----------------------------------------------------
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    mobile: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None


# -----------------------------------------------------
# LOGIN REQUEST (Supabase email/password)
# -----------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# -----------------------------------------------------
# TOKEN RESPONSE (Supabase session JWT + profile)
# -----------------------------------------------------
class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    profile: Optional[ProfileRead] = None


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Sent with the recovery session's bearer token."""
    new_password: str = Field(..., min_length=6)
    confirm_password: str


class AuthCallbackRequest(BaseModel):
    code: str
    code_verifier: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
