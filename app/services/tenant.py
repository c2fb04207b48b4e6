import uuid
from datetime import datetime, timedelta
from typing import Callable, List
from sqlalchemy.orm import Session
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    InvitationAlreadyPending,
    InvitationNotFound,
    MemberAlreadyExists,
    MemberNotFound,
    OwnerImmutable,
    TenantNotFound,
)
from app.core.logging_config import logger
from app.crud.invitation import CRUDInvitation, invitation as invitation_crud
from app.crud.membership import CRUDMembership, membership as membership_crud
from app.crud.tenant import CRUDTenant, tenant as tenant_crud
from app.crud.user import CRUDUser, user as user_crud
from app.models.invitation import Invitation
from app.models.tenant import Tenant, TenantRole, TenantUser
from app.schemas.tenant import InvitationCreate, TenantCreate, TenantUpdate
from app.services.mail import MailService, mail_service as default_mail_service
from app.utils.slug import generate_slug
from app.utils.timeutils import utcnow


class TenantService:
    """
    Service layer for tenants, their members and their invitations.

    Callers pass the tenant_id of the active tenant; the router has already
    checked that any tenant_id in the path equals it and that the caller's
    role passes the operation's policy.
    """

    def __init__(
        self,
        tenants: CRUDTenant = tenant_crud,
        memberships: CRUDMembership = membership_crud,
        invitations: CRUDInvitation = invitation_crud,
        users: CRUDUser = user_crud,
        mail: MailService = default_mail_service,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.tenants = tenants
        self.memberships = memberships
        self.invitations = invitations
        self.users = users
        self.mail = mail
        self.settings = settings
        self.clock = clock

    # ==================== Tenants ====================

    def create_tenant(self, db: Session, tenant_data: TenantCreate, owner_id: int) -> Tenant:
        """
        Create a tenant with the caller as its OWNER.

        Tenant and OWNER membership are committed together. A missing slug
        is generated from the name.

        Raises:
            TenantSlugTaken: If the requested slug exists
        """
        slug = tenant_data.slug or generate_slug(tenant_data.name)

        try:
            tenant = self.tenants.create(db, name=tenant_data.name, slug=slug, commit=False)
            self.memberships.create(
                db, user_id=owner_id, tenant_id=tenant.id, role=TenantRole.OWNER, commit=False
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(tenant)
        logger.info(f"Tenant created: id={tenant.id}, slug={tenant.slug}, owner_id={owner_id}")
        return tenant

    def get_tenant(self, db: Session, tenant_id: int) -> Tenant:
        """
        Raises:
            TenantNotFound: If the tenant does not exist
        """
        tenant = self.tenants.get(db, tenant_id)
        if tenant is None:
            raise TenantNotFound(tenant_id)
        return tenant

    def update_tenant(self, db: Session, tenant_id: int, tenant_data: TenantUpdate) -> Tenant:
        tenant = self.get_tenant(db, tenant_id)
        return self.tenants.update(db, db_obj=tenant, obj_in=tenant_data)

    def delete_tenant(self, db: Session, tenant_id: int) -> None:
        """Delete a tenant together with its memberships, invitations and items."""
        tenant = self.get_tenant(db, tenant_id)
        self.tenants.delete(db, tenant)
        logger.info(f"Tenant {tenant_id} deleted")

    # ==================== Members ====================

    def list_members(self, db: Session, tenant_id: int) -> List[TenantUser]:
        return self.memberships.list_for_tenant(db, tenant_id)

    def _get_mutable_member(self, db: Session, tenant_id: int, user_id: int) -> TenantUser:
        membership = self.memberships.get(db, user_id, tenant_id)
        if membership is None:
            raise MemberNotFound()
        if membership.role == TenantRole.OWNER:
            raise OwnerImmutable()
        return membership

    def update_member_role(
        self,
        db: Session,
        tenant_id: int,
        user_id: int,
        role: TenantRole
    ) -> TenantUser:
        """
        Change a member's role to ADMIN or MEMBER.

        Raises:
            MemberNotFound: If the user is not a member of the tenant
            OwnerImmutable: If the member is the tenant's OWNER
        """
        membership = self._get_mutable_member(db, tenant_id, user_id)
        membership = self.memberships.update_role(db, membership=membership, role=role)
        logger.info(f"Member {user_id} of tenant {tenant_id} is now {role.value}")
        return membership

    def remove_member(self, db: Session, tenant_id: int, user_id: int) -> None:
        """
        Remove a member. Takes effect on the member's next request.

        Raises:
            MemberNotFound: If the user is not a member of the tenant
            OwnerImmutable: If the member is the tenant's OWNER
        """
        self._get_mutable_member(db, tenant_id, user_id)
        self.memberships.delete(db, user_id=user_id, tenant_id=tenant_id)
        logger.info(f"Member {user_id} removed from tenant {tenant_id}")

    # ==================== Invitations ====================

    def create_invitation(
        self,
        db: Session,
        tenant_id: int,
        inviter_id: int,
        invitation_data: InvitationCreate
    ) -> Invitation:
        """
        Invite an email address to join the tenant and mail them the link.

        The invitation is stored even if the e-mail cannot be delivered;
        the token in the response can be shared by other means.

        Args:
            db: Database session
            tenant_id: Active tenant of the inviter
            inviter_id: User creating the invitation
            invitation_data: Target email and role (ADMIN or MEMBER)

        Returns:
            Created Invitation, including its token

        Raises:
            TenantNotFound: If the tenant does not exist
            MemberAlreadyExists: If the email already belongs to a member
            InvitationAlreadyPending: If an unexpired invitation for the
                email is still open
        """
        tenant = self.get_tenant(db, tenant_id)
        email = invitation_data.email.lower()
        now = self.clock()

        existing_user = self.users.get_by_email(db, email)
        if existing_user is not None and self.memberships.get(db, existing_user.id, tenant_id):
            raise MemberAlreadyExists(email)

        if self.invitations.get_pending_for_email(db, email=email, tenant_id=tenant_id, now=now):
            raise InvitationAlreadyPending(email)

        invitation = self.invitations.create(
            db,
            email=email,
            token=str(uuid.uuid4()),
            role=invitation_data.role,
            expires_at=now + timedelta(hours=self.settings.INVITATION_EXPIRE_HOURS),
            tenant_id=tenant_id,
            invited_by=inviter_id,
        )
        logger.info(f"Invitation {invitation.id} created in tenant {tenant_id} by user {inviter_id}")

        inviter = self.users.get(db, inviter_id)
        sent = self.mail.send_invitation_email(
            to_email=email,
            tenant_name=tenant.name,
            inviter_name=inviter.full_name if inviter else "A team member",
            invitation_link=self.settings.invitation_link(invitation.token),
        )
        if not sent:
            logger.warning(f"Invitation {invitation.id} stored but e-mail delivery failed")

        return invitation

    def list_invitations(self, db: Session, tenant_id: int) -> List[Invitation]:
        """Unaccepted invitations of the tenant, newest first."""
        return self.invitations.list_pending(db, tenant_id)

    def revoke_invitation(self, db: Session, tenant_id: int, invitation_id: int) -> None:
        """
        Raises:
            InvitationNotFound: If no such invitation exists in this tenant
        """
        invitation = self.invitations.get(db, invitation_id, tenant_id)
        if invitation is None:
            raise InvitationNotFound()
        self.invitations.delete(db, invitation)
        logger.info(f"Invitation {invitation_id} revoked in tenant {tenant_id}")


# Create a singleton instance
tenant_service = TenantService()
