from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_auth_context, get_tenant_service, require_permission
from app.core.tenant_context import get_path_tenant_id
from app.schemas.tenant import (
    InvitationCreate,
    InvitationResponse,
    MemberResponse,
    MemberRoleUpdate,
    TenantCreate,
    TenantResponse,
    TenantUpdate,
)
from app.services.access_control import AuthContext
from app.services.tenant import TenantService
from app.core.logging_config import logger

router = APIRouter()


# Every /{tenant_id} route resolves the path through get_path_tenant_id,
# so a token for tenant A can never act on tenant B even if the caller is
# also a member of B.


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    tenant_data: TenantCreate,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Create a new tenant owned by the caller.

    The caller's active tenant does not change; switch to the new tenant
    through /api/users/me/switch-tenant.

    Raises:
        TenantSlugTaken (409)
    """
    try:
        logger.info(f"Creating tenant: name={tenant_data.name}, user_id={context.user_id}")
        return tenants.create_tenant(db, tenant_data, owner_id=context.user_id)
    except Exception as e:
        logger.error(f"Error creating tenant: {type(e).__name__}: {str(e)}")
        raise


@router.get("/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: int = Depends(get_path_tenant_id),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    return tenants.get_tenant(db, tenant_id)


@router.patch("/{tenant_id}", response_model=TenantResponse)
def update_tenant(
    tenant_data: TenantUpdate,
    tenant_id: int = Depends(get_path_tenant_id),
    _context: AuthContext = Depends(require_permission("tenant:update")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Rename the tenant or change its slug. OWNER or ADMIN.

    Raises:
        TenantSlugTaken (409)
    """
    return tenants.update_tenant(db, tenant_id, tenant_data)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tenant(
    tenant_id: int = Depends(get_path_tenant_id),
    context: AuthContext = Depends(require_permission("tenant:delete")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Delete the tenant with all its memberships, invitations and items. OWNER only.
    """
    logger.info(f"User {context.user_id} deleting tenant {tenant_id}")
    tenants.delete_tenant(db, tenant_id)
    return None


# ==================== Members ====================

@router.get("/{tenant_id}/members", response_model=List[MemberResponse])
def list_members(
    tenant_id: int = Depends(get_path_tenant_id),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    return tenants.list_members(db, tenant_id)


@router.patch("/{tenant_id}/members/{user_id}", response_model=MemberResponse)
def update_member_role(
    user_id: int,
    role_data: MemberRoleUpdate,
    tenant_id: int = Depends(get_path_tenant_id),
    _context: AuthContext = Depends(require_permission("members:update_role")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Change a member's role to ADMIN or MEMBER. OWNER or ADMIN.

    Raises:
        MemberNotFound (404), OwnerImmutable (403)
    """
    return tenants.update_member_role(db, tenant_id, user_id, role_data.role)


@router.delete("/{tenant_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    user_id: int,
    tenant_id: int = Depends(get_path_tenant_id),
    _context: AuthContext = Depends(require_permission("members:remove")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Remove a member from the tenant. OWNER or ADMIN.

    Raises:
        MemberNotFound (404), OwnerImmutable (403)
    """
    tenants.remove_member(db, tenant_id, user_id)
    return None


# ==================== Invitations ====================

@router.post(
    "/{tenant_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED
)
def create_invitation(
    invitation_data: InvitationCreate,
    tenant_id: int = Depends(get_path_tenant_id),
    context: AuthContext = Depends(require_permission("invitations:create")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Invite an email address to join the tenant. OWNER or ADMIN.

    Returns:
        The invitation, including the token to accept it

    Raises:
        MemberAlreadyExists (409), InvitationAlreadyPending (409)
    """
    return tenants.create_invitation(
        db,
        tenant_id=tenant_id,
        inviter_id=context.user_id,
        invitation_data=invitation_data,
    )


@router.get("/{tenant_id}/invitations", response_model=List[InvitationResponse])
def list_invitations(
    tenant_id: int = Depends(get_path_tenant_id),
    _context: AuthContext = Depends(require_permission("invitations:list")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """List unaccepted invitations, newest first. OWNER or ADMIN."""
    return tenants.list_invitations(db, tenant_id)


@router.delete("/{tenant_id}/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_invitation(
    invitation_id: int,
    tenant_id: int = Depends(get_path_tenant_id),
    _context: AuthContext = Depends(require_permission("invitations:revoke")),
    db: Session = Depends(get_db),
    tenants: TenantService = Depends(get_tenant_service)
):
    """
    Delete an invitation so its token can no longer be accepted. OWNER or ADMIN.

    Raises:
        InvitationNotFound (404)
    """
    tenants.revoke_invitation(db, tenant_id, invitation_id)
    return None
