from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_auth_context, get_user_service
from app.schemas.common import MessageResponse
from app.schemas.user import (
    ChangePasswordRequest,
    SwitchTenantRequest,
    SwitchTenantResponse,
    TenantWithRole,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
)
from app.services.access_control import AuthContext
from app.services.user import UserService
from app.core.logging_config import logger

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
def get_me(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    """
    Get the caller's profile and the tenants they belong to.

    Returns:
        User profile with a role per tenant
    """
    user = users.get_user(db, context.user_id)
    profile = UserResponse.model_validate(user)
    return UserProfileResponse(
        **profile.model_dump(),
        tenants=users.get_tenants(db, context.user_id),
    )


@router.patch("/me", response_model=UserResponse)
def update_me(
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    """
    Update the caller's name or email.

    Raises:
        EmailAlreadyInUse (409)
    """
    return users.update_profile(db, context.user_id, user_data)


@router.delete("/me", response_model=MessageResponse)
def delete_me(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    """
    Delete the caller's account.

    Refused while the caller owns a tenant.
    """
    return users.delete_account(db, context.user_id)


@router.post("/me/change-password", response_model=MessageResponse)
def change_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    """
    Change the caller's password. Every refresh token of the user is revoked.

    Raises:
        IncorrectPassword (401)
    """
    return users.change_password(
        db,
        context.user_id,
        current_password=request.current_password,
        new_password=request.new_password,
    )


@router.get("/me/tenants", response_model=List[TenantWithRole])
def get_my_tenants(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    return users.get_tenants(db, context.user_id)


@router.post("/me/switch-tenant", response_model=SwitchTenantResponse)
def switch_tenant(
    request: SwitchTenantRequest,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service)
):
    """
    Get a token pair for another tenant the caller belongs to.

    Raises:
        NoTenantAccess (403)
    """
    logger.info(f"User {context.user_id} switching from tenant {context.tenant_id} to {request.tenant_id}")
    return users.switch_tenant(db, context.user_id, request.tenant_id)
