from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.tenant import TenantRole
from app.schemas.user import UserResponse

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _reject_owner(role: TenantRole) -> TenantRole:
    # OWNER is only ever assigned when a tenant is created
    if role == TenantRole.OWNER:
        raise ValueError("OWNER role cannot be assigned")
    return role

class TenantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

class TenantCreate(TenantBase):
    slug: Optional[str] = Field(None, min_length=3, max_length=63, pattern=SLUG_PATTERN)

class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=3, max_length=63, pattern=SLUG_PATTERN)

    @field_validator("name", "slug")
    @classmethod
    def not_null(cls, v):
        # Omit a field to leave it unchanged
        if v is None:
            raise ValueError("cannot be null")
        return v

class TenantResponse(TenantBase):
    id: int
    slug: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class MemberResponse(BaseModel):
    user_id: int
    tenant_id: int
    role: TenantRole
    created_at: datetime
    user: UserResponse

    class Config:
        from_attributes = True

class MemberRoleUpdate(BaseModel):
    role: TenantRole

    @field_validator("role")
    @classmethod
    def role_is_assignable(cls, v):
        return _reject_owner(v)

class InvitationCreate(BaseModel):
    email: EmailStr
    role: TenantRole = TenantRole.MEMBER

    @field_validator("role")
    @classmethod
    def role_is_assignable(cls, v):
        return _reject_owner(v)

class InvitationResponse(BaseModel):
    id: int
    email: EmailStr
    token: str
    role: TenantRole
    expires_at: datetime
    accepted: bool
    tenant_id: int
    invited_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
