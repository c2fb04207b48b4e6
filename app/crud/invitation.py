from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update
from app.models.invitation import Invitation
from app.models.tenant import TenantRole


class CRUDInvitation:
    """CRUD operations for Invitation model."""

    def __init__(self):
        self.model = Invitation

    def create(
        self,
        db: Session,
        *,
        email: str,
        token: str,
        role: TenantRole,
        expires_at: datetime,
        tenant_id: int,
        invited_by: int
    ) -> Invitation:
        invitation = Invitation(
            email=email.lower(),
            token=token,
            role=role,
            expires_at=expires_at,
            accepted=False,
            tenant_id=tenant_id,
            invited_by=invited_by,
        )
        db.add(invitation)
        db.commit()
        db.refresh(invitation)
        return invitation

    def get_by_token(self, db: Session, token: str) -> Optional[Invitation]:
        return db.execute(select(Invitation).where(Invitation.token == token)).scalar_one_or_none()

    def get(self, db: Session, invitation_id: int, tenant_id: int) -> Optional[Invitation]:
        """Get an invitation by ID, only if it belongs to the tenant."""
        stmt = select(Invitation).where(
            Invitation.id == invitation_id,
            Invitation.tenant_id == tenant_id
        )
        return db.execute(stmt).scalar_one_or_none()

    def list_pending(self, db: Session, tenant_id: int) -> List[Invitation]:
        """Unaccepted invitations of a tenant, newest first (expired ones included)."""
        stmt = (
            select(Invitation)
            .where(Invitation.tenant_id == tenant_id, Invitation.accepted.is_(False))
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
        )
        return list(db.execute(stmt).scalars().all())

    def get_pending_for_email(
        self,
        db: Session,
        *,
        email: str,
        tenant_id: int,
        now: datetime
    ) -> Optional[Invitation]:
        """Unaccepted, unexpired invitation for an email in a tenant, if any."""
        stmt = (
            select(Invitation)
            .where(
                Invitation.email == email.lower(),
                Invitation.tenant_id == tenant_id,
                Invitation.accepted.is_(False),
                Invitation.expires_at > now,
            )
            .limit(1)
        )
        return db.execute(stmt).scalar_one_or_none()

    def mark_accepted(self, db: Session, invitation_id: int) -> bool:
        """
        Flip accepted from false to true.

        A single conditional UPDATE: when two acceptances race, the second
        one blocks on the row lock and then matches zero rows. Does not
        commit; the caller commits it together with the membership write.

        Returns:
            True if this call accepted the invitation
        """
        result = db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.accepted.is_(False))
            .values(accepted=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete(self, db: Session, invitation: Invitation) -> None:
        db.delete(invitation)
        db.commit()


# Create singleton instance
invitation = CRUDInvitation()
