from typing import List
from sqlalchemy.orm import Session
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    EmailAlreadyInUse,
    IncorrectPassword,
    NoTenantAccess,
    OwnsTenants,
    Unauthenticated,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password
from app.crud.membership import CRUDMembership, membership as membership_crud
from app.crud.user import CRUDUser, user as user_crud
from app.models.user import User
from app.schemas.user import SwitchTenantResponse, TenantWithRole, UserUpdate
from app.services.auth import AuthService, auth_service as default_auth_service
from app.services.token import TokenService, token_service as default_token_service


class UserService:
    """
    Service layer for the calling user's own account.

    Every method acts on the user resolved by access control; there is no
    way to address another user here.
    """

    def __init__(
        self,
        users: CRUDUser = user_crud,
        memberships: CRUDMembership = membership_crud,
        token_service: TokenService = default_token_service,
        auth: AuthService = default_auth_service,
        settings: Settings = default_settings,
    ):
        self.users = users
        self.memberships = memberships
        self.token_service = token_service
        self.auth = auth
        self.settings = settings

    def get_user(self, db: Session, user_id: int) -> User:
        """
        Raises:
            Unauthenticated: If the user vanished after authentication
        """
        user = self.users.get(db, user_id)
        if user is None:
            raise Unauthenticated()
        return user

    def get_tenants(self, db: Session, user_id: int) -> List[TenantWithRole]:
        """Tenants the user belongs to, with the user's role, in join order."""
        return [
            TenantWithRole(
                id=tenant.id,
                name=tenant.name,
                slug=tenant.slug,
                created_at=tenant.created_at,
                role=role,
            )
            for tenant, role in self.memberships.list_for_user(db, user_id)
        ]

    def update_profile(self, db: Session, user_id: int, user_data: UserUpdate) -> User:
        """
        Update name and/or email.

        Raises:
            EmailAlreadyInUse: If the new email belongs to another user
        """
        user = self.get_user(db, user_id)

        if user_data.email and user_data.email.lower() != user.email:
            if self.users.get_by_email(db, user_data.email) is not None:
                raise EmailAlreadyInUse(user_data.email)

        return self.users.update(db, db_obj=user, obj_in=user_data)

    def change_password(
        self,
        db: Session,
        user_id: int,
        current_password: str,
        new_password: str
    ) -> dict:
        """
        Replace the password and revoke every refresh token of the user.

        Both writes commit together: the password never changes while the
        old sessions stay usable.

        Raises:
            IncorrectPassword: If current_password does not match
        """
        user = self.get_user(db, user_id)

        if not verify_password(current_password, user.hashed_password):
            raise IncorrectPassword()

        hashed_password = get_password_hash(new_password, rounds=self.settings.BCRYPT_ROUNDS)
        try:
            self.users.update_password(db, user_id, hashed_password, commit=False)
            self.auth.revoke_all_sessions(db, user_id, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Password changed for user {user_id}")
        return {"message": "Password changed successfully"}

    def switch_tenant(self, db: Session, user_id: int, tenant_id: int) -> SwitchTenantResponse:
        """
        Issue a token pair whose active tenant is tenant_id.

        Raises:
            NoTenantAccess: If the user is not a member of tenant_id
        """
        if self.memberships.get(db, user_id, tenant_id) is None:
            raise NoTenantAccess(tenant_id)

        tokens = self.token_service.issue_token_pair(db, user_id, tenant_id)
        logger.info(f"User {user_id} switched to tenant {tenant_id}")
        return SwitchTenantResponse(
            tenant_id=tenant_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    def delete_account(self, db: Session, user_id: int) -> dict:
        """
        Delete the user; memberships and refresh tokens go with it.

        Raises:
            OwnsTenants: While the user still owns a tenant, since deleting
                the owner would leave that tenant without one
        """
        user = self.get_user(db, user_id)

        if self.memberships.owned_tenant_ids(db, user_id):
            raise OwnsTenants()

        self.users.delete(db, user)
        logger.info(f"User {user_id} deleted their account")
        return {"message": "User deleted successfully"}


# Create a singleton instance
user_service = UserService()
