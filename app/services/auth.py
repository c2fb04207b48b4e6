from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    AppError,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidTokenError,
    InvitationAlreadyAccepted,
    InvitationExpired,
    InvitationNotFound,
    NoTenantAccess,
    PasswordRequired,
    TenantNotFound,
    UserAlreadyExists,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password, burn_password_check
from app.crud.invitation import CRUDInvitation, invitation as invitation_crud
from app.crud.membership import CRUDMembership, membership as membership_crud
from app.crud.refresh_token import CRUDRefreshToken, refresh_token as refresh_token_crud
from app.crud.tenant import CRUDTenant, tenant as tenant_crud
from app.crud.user import CRUDUser, user as user_crud
from app.models.tenant import TenantRole
from app.models.user import User
from app.schemas.auth import TokenPair
from app.services.token import TokenService, token_service as default_token_service
from app.utils.slug import slug_from_email
from app.utils.timeutils import utcnow

LOGOUT_MESSAGE = "Logged out successfully"


@dataclass
class AuthResult:
    """Authenticated user together with a freshly issued token pair."""
    user: User
    tokens: TokenPair


class AuthService:
    """
    Registration, login, refresh, logout and invitation acceptance.

    Each flow is a short transaction against the stores. Multi-row writes
    (user + tenant + membership, or invitation + membership) and the
    refresh token they issue are committed together or not at all.
    """

    def __init__(
        self,
        token_service: TokenService = default_token_service,
        users: CRUDUser = user_crud,
        tenants: CRUDTenant = tenant_crud,
        memberships: CRUDMembership = membership_crud,
        refresh_tokens: CRUDRefreshToken = refresh_token_crud,
        invitations: CRUDInvitation = invitation_crud,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.token_service = token_service
        self.users = users
        self.tenants = tenants
        self.memberships = memberships
        self.refresh_tokens = refresh_tokens
        self.invitations = invitations
        self.settings = settings
        self.clock = clock

    def register(
        self,
        db: Session,
        *,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        tenant_id: Optional[int] = None
    ) -> AuthResult:
        """
        Create a user and give it an active tenant.

        With tenant_id the user joins that tenant as MEMBER; without it a
        new workspace tenant is created and the user becomes its OWNER.

        Raises:
            UserAlreadyExists: If the email is taken
            TenantNotFound: If tenant_id does not exist
        """
        if self.users.get_by_email(db, email) is not None:
            raise UserAlreadyExists(email)

        hashed_password = get_password_hash(password, rounds=self.settings.BCRYPT_ROUNDS)

        try:
            user = self.users.create(
                db,
                email=email,
                hashed_password=hashed_password,
                first_name=first_name,
                last_name=last_name,
                commit=False
            )

            if tenant_id is not None:
                if self.tenants.get(db, tenant_id) is None:
                    raise TenantNotFound(tenant_id)
                role = TenantRole.MEMBER
                active_tenant_id = tenant_id
            else:
                tenant = self.tenants.create(
                    db,
                    name=f"{first_name or 'User'}'s Workspace",
                    slug=slug_from_email(email),
                    commit=False
                )
                role = TenantRole.OWNER
                active_tenant_id = tenant.id

            self.memberships.create(
                db, user_id=user.id, tenant_id=active_tenant_id, role=role, commit=False
            )
            tokens = self.token_service.issue_token_pair(db, user.id, active_tenant_id, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(user)
        logger.info(f"User registered: id={user.id}, tenant_id={active_tenant_id}, role={role.value}")
        return AuthResult(user=user, tokens=tokens)

    def login(self, db: Session, *, email: str, password: str) -> TokenPair:
        """
        Verify credentials and issue tokens for the user's first tenant.

        Unknown email and wrong password raise the same error and both pay
        for one bcrypt comparison.

        Raises:
            InvalidCredentials: If email or password is wrong
            NoTenantAccess: If the user belongs to no tenant
        """
        user = self.users.get_by_email(db, email)

        if user is None:
            burn_password_check(password)
            raise InvalidCredentials()

        if not verify_password(password, user.hashed_password):
            raise InvalidCredentials()

        first_membership = self.memberships.get_first_for_user(db, user.id)
        if first_membership is None:
            raise NoTenantAccess()

        tokens = self.token_service.issue_token_pair(db, user.id, first_membership.tenant_id)
        logger.info(f"User logged in: id={user.id}, tenant_id={first_membership.tenant_id}")
        return tokens

    def refresh(self, db: Session, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair in the same tenant.

        The presented token is consumed (revoked) in the same transaction
        that stores its replacement, and the user's membership in the
        token's tenant is re-checked. Every failure is reported as the same
        InvalidRefreshToken.
        """
        try:
            payload = self.token_service.verify_refresh_token(refresh_token)

            if self.users.get(db, payload.user_id) is None:
                raise InvalidRefreshToken()
            if self.memberships.get(db, payload.user_id, payload.tenant_id) is None:
                raise InvalidRefreshToken()

            if not self.refresh_tokens.consume(db, refresh_token, now=self.clock()):
                raise InvalidRefreshToken()

            tokens = self.token_service.issue_token_pair(
                db, payload.user_id, payload.tenant_id, commit=False
            )
            db.commit()
            return tokens
        except (AppError, InvalidTokenError, SQLAlchemyError) as e:
            db.rollback()
            logger.info(f"Refresh rejected: {type(e).__name__}")
            raise InvalidRefreshToken() from None

    def logout(self, db: Session, refresh_token: str) -> dict:
        """
        Revoke a refresh token.

        Always reports success, whether or not the token existed or the
        revocation worked, so the response reveals nothing about the token.
        """
        try:
            self.refresh_tokens.revoke(db, refresh_token)
        except Exception as e:
            db.rollback()
            logger.warning(f"Logout revocation failed: {type(e).__name__}: {str(e)}")
        return {"message": LOGOUT_MESSAGE}

    def accept_invitation(
        self,
        db: Session,
        *,
        token: str,
        password: Optional[str] = None
    ) -> AuthResult:
        """
        Join the invitation's tenant, creating the user if needed.

        The accepted flag, the membership upsert, a new user (if any) and
        the issued refresh token are committed in one transaction. The
        accepted flag flips through a conditional update, so of two
        concurrent acceptances only one succeeds.

        Raises:
            InvitationNotFound, InvitationAlreadyAccepted, InvitationExpired,
            PasswordRequired
        """
        invitation = self.invitations.get_by_token(db, token)

        if invitation is None:
            raise InvitationNotFound()
        if invitation.accepted:
            raise InvitationAlreadyAccepted()
        if invitation.is_expired(self.clock()):
            raise InvitationExpired()

        user = self.users.get_by_email(db, invitation.email)
        hashed_password = None
        if user is None:
            if not password:
                raise PasswordRequired()
            hashed_password = get_password_hash(password, rounds=self.settings.BCRYPT_ROUNDS)

        invitation_id = invitation.id
        tenant_id = invitation.tenant_id
        role = invitation.role

        try:
            if not self.invitations.mark_accepted(db, invitation_id):
                raise InvitationAlreadyAccepted()

            if user is None:
                user = self.users.create(
                    db,
                    email=invitation.email,
                    hashed_password=hashed_password,
                    commit=False
                )

            self.memberships.upsert(db, user_id=user.id, tenant_id=tenant_id, role=role, commit=False)
            tokens = self.token_service.issue_token_pair(db, user.id, tenant_id, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(user)
        logger.info(f"Invitation {invitation_id} accepted: user_id={user.id}, tenant_id={tenant_id}")
        return AuthResult(user=user, tokens=tokens)

    def revoke_all_sessions(self, db: Session, user_id: int, commit: bool = True) -> int:
        """
        Revoke every refresh token of a user (password change, account events).

        With commit=False the revocation joins the caller's transaction.
        """
        count = self.refresh_tokens.revoke_all_for_user(db, user_id, commit=commit)
        logger.info(f"Revoked {count} refresh tokens for user {user_id}")
        return count

    def purge_expired_refresh_tokens(self, db: Session) -> int:
        count = self.refresh_tokens.delete_expired(db, now=self.clock())
        logger.info(f"Purged {count} expired refresh tokens")
        return count


# Create a singleton instance
auth_service = AuthService()
