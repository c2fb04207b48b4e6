from fastapi import Depends
from app.dependencies import get_access_control_service, get_auth_context
from app.services.access_control import AccessControlService, AuthContext


def get_tenant_id(context: AuthContext = Depends(get_auth_context)) -> int:
    """
    FastAPI dependency that extracts the active tenant_id from the access token.

    This dependency should be added to all routes that need tenant isolation.
    The tenant_id is then passed explicitly through service and CRUD layers;
    a tenant_id supplied by the client is never used for scoping.

    Args:
        context: Authenticated request context

    Returns:
        Tenant ID of the caller's active tenant
    """
    return context.tenant_id


def get_path_tenant_id(
    tenant_id: int,
    context: AuthContext = Depends(get_auth_context),
    access_control: AccessControlService = Depends(get_access_control_service)
) -> int:
    """
    Resolve the `{tenant_id}` path parameter, which must be the active tenant.

    Raises:
        Forbidden: If the path names any other tenant
    """
    access_control.ensure_active_tenant(context, tenant_id)
    return tenant_id
