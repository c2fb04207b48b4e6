from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from app.models.tenant import TenantRole
from app.schemas.common import StrongPassword

class UserBase(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserResponse(UserBase):
    """Public user profile. The password hash is never part of it."""
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: StrongPassword

class TenantWithRole(BaseModel):
    id: int
    name: str
    slug: str
    created_at: datetime
    role: TenantRole

class UserProfileResponse(UserResponse):
    tenants: List[TenantWithRole] = []

class SwitchTenantRequest(BaseModel):
    tenant_id: int

class SwitchTenantResponse(BaseModel):
    tenant_id: int
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
