from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from app.schemas.common import StrongPassword
from app.schemas.user import UserResponse

class RegisterRequest(BaseModel):
    email: EmailStr
    password: StrongPassword
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    tenant_id: Optional[int] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class AcceptInvitationRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: Optional[StrongPassword] = None

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class AuthResponse(TokenPair):
    """Token pair plus the authenticated user's profile."""
    user: UserResponse
