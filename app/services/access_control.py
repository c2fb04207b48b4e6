from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session
from app.core.exceptions import Forbidden, InvalidTokenError, Unauthenticated
from app.core.policies import allowed_roles
from app.crud.membership import CRUDMembership, membership as membership_crud
from app.crud.user import CRUDUser, user as user_crud
from app.models.tenant import TenantRole
from app.services.token import TokenService, token_service as default_token_service


@dataclass(frozen=True)
class AuthContext:
    """Who is calling, and as which tenant, for the current request."""
    user_id: int
    tenant_id: int
    role: TenantRole


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AccessControlService:
    """
    Per-request authentication and role checks.

    The token alone is not trusted: user and membership are read from the
    store on every request, so removing a membership locks the user out of
    that tenant on their next request even while the access token is still
    cryptographically valid.
    """

    def __init__(
        self,
        token_service: TokenService = default_token_service,
        users: CRUDUser = user_crud,
        memberships: CRUDMembership = membership_crud,
    ):
        self.token_service = token_service
        self.users = users
        self.memberships = memberships

    def authenticate(self, db: Session, authorization: Optional[str]) -> AuthContext:
        """
        Resolve the caller from the Authorization header value.

        Raises:
            Unauthenticated: Missing/invalid token, unknown user, or no
                membership in the token's tenant
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise Unauthenticated()

        try:
            payload = self.token_service.verify_access_token(token)
        except InvalidTokenError:
            raise Unauthenticated()

        if self.users.get(db, payload.user_id) is None:
            raise Unauthenticated()

        membership = self.memberships.get(db, payload.user_id, payload.tenant_id)
        if membership is None:
            raise Unauthenticated()

        return AuthContext(
            user_id=payload.user_id,
            tenant_id=payload.tenant_id,
            role=membership.role,
        )

    def authorize(self, context: AuthContext, operation: str) -> None:
        """
        Check the caller's role against the policy table entry for operation.

        Raises:
            Forbidden: If the role is not allowed
        """
        if context.role not in allowed_roles(operation):
            raise Forbidden()

    def ensure_active_tenant(self, context: AuthContext, tenant_id: int) -> None:
        """
        Reject requests that name a tenant other than the active one.

        Raises:
            Forbidden: If tenant_id is not the caller's active tenant
        """
        if tenant_id != context.tenant_id:
            raise Forbidden("Requests must target your active tenant")


# Create a singleton instance
access_control_service = AccessControlService()
