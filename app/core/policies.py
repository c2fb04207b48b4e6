from typing import Dict, FrozenSet
from app.models.tenant import TenantRole

OWNER_ONLY: FrozenSet[TenantRole] = frozenset({TenantRole.OWNER})
OWNER_OR_ADMIN: FrozenSet[TenantRole] = frozenset({TenantRole.OWNER, TenantRole.ADMIN})
ANY_MEMBER: FrozenSet[TenantRole] = frozenset(TenantRole)

# Operation -> roles allowed to perform it within the active tenant.
# Operations not listed here only require a valid membership.
ROLE_POLICIES: Dict[str, FrozenSet[TenantRole]] = {
    "tenant:update": OWNER_OR_ADMIN,
    "tenant:delete": OWNER_ONLY,
    "members:update_role": OWNER_OR_ADMIN,
    "members:remove": OWNER_OR_ADMIN,
    "invitations:create": OWNER_OR_ADMIN,
    "invitations:list": OWNER_OR_ADMIN,
    "invitations:revoke": OWNER_OR_ADMIN,
}


def allowed_roles(operation: str) -> FrozenSet[TenantRole]:
    return ROLE_POLICIES.get(operation, ANY_MEMBER)
