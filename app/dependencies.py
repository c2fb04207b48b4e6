from fastapi import Depends, Request
from sqlalchemy.orm import Session
from app.database import get_db
from app.services.access_control import (
    AccessControlService,
    AuthContext,
    access_control_service,
)
from app.services.auth import AuthService, auth_service
from app.services.item import ItemService, item_service
from app.services.rate_limit import RateLimiter, auth_rate_limiter
from app.services.tenant import TenantService, tenant_service
from app.services.user import UserService, user_service


# Service providers. Routes receive services through these so that tests
# can swap in instances wired with other stores, settings or clocks via
# app.dependency_overrides.

def get_access_control_service() -> AccessControlService:
    return access_control_service


def get_auth_service() -> AuthService:
    return auth_service


def get_auth_rate_limiter() -> RateLimiter:
    return auth_rate_limiter


def get_user_service() -> UserService:
    return user_service


def get_tenant_service() -> TenantService:
    return tenant_service


def get_item_service() -> ItemService:
    return item_service


def get_auth_context(
    request: Request,
    db: Session = Depends(get_db),
    access_control: AccessControlService = Depends(get_access_control_service)
) -> AuthContext:
    """
    Authenticate the request from its Authorization Bearer header.

    User and membership are looked up again on every request, so a removed
    member is rejected even while their access token has not expired.

    Args:
        request: FastAPI Request to extract Authorization header
        db: Database session
        access_control: Access control service

    Returns:
        AuthContext with user_id, active tenant_id and role

    Raises:
        Unauthenticated: If the token is missing or invalid, or the user or
            membership no longer exists
    """
    return access_control.authenticate(db, request.headers.get("Authorization"))


def require_permission(operation: str):
    """
    Dependency factory gating a route on the policy table entry for operation.

    Usage:
        context: AuthContext = Depends(require_permission("tenant:delete"))
    """
    def permission_dependency(
        context: AuthContext = Depends(get_auth_context),
        access_control: AccessControlService = Depends(get_access_control_service)
    ) -> AuthContext:
        access_control.authorize(context, operation)
        return context

    return permission_dependency
