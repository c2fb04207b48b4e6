from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, delete
from app.models.tenant import Tenant, TenantRole, TenantUser


class CRUDMembership:
    """
    Tenant membership store: the (user, tenant) -> role relation.

    Reads are always fresh queries; the access control check relies on
    that to make membership removal effective on the next request.
    """

    def __init__(self):
        self.model = TenantUser

    def get(self, db: Session, user_id: int, tenant_id: int) -> Optional[TenantUser]:
        """
        Get the membership of a user in a tenant.

        Returns:
            TenantUser or None if the user is not a member
        """
        stmt = select(TenantUser).where(
            TenantUser.user_id == user_id,
            TenantUser.tenant_id == tenant_id
        )
        return db.execute(stmt).scalar_one_or_none()

    def get_first_for_user(self, db: Session, user_id: int) -> Optional[TenantUser]:
        """Earliest-created membership of a user (creation time, then id)."""
        stmt = (
            select(TenantUser)
            .where(TenantUser.user_id == user_id)
            .order_by(TenantUser.created_at.asc(), TenantUser.id.asc())
            .limit(1)
        )
        return db.execute(stmt).scalar_one_or_none()

    def list_for_user(self, db: Session, user_id: int) -> List[Tuple[Tenant, TenantRole]]:
        """All tenants a user belongs to with the user's role, in join order."""
        stmt = (
            select(Tenant, TenantUser.role)
            .join(TenantUser, TenantUser.tenant_id == Tenant.id)
            .where(TenantUser.user_id == user_id)
            .order_by(TenantUser.created_at.asc(), TenantUser.id.asc())
        )
        return [(tenant, role) for tenant, role in db.execute(stmt).all()]

    def list_for_tenant(self, db: Session, tenant_id: int) -> List[TenantUser]:
        """All members of a tenant with their user loaded, in join order."""
        stmt = (
            select(TenantUser)
            .where(TenantUser.tenant_id == tenant_id)
            .options(selectinload(TenantUser.user))
            .order_by(TenantUser.created_at.asc(), TenantUser.id.asc())
        )
        return list(db.execute(stmt).scalars().all())

    def owned_tenant_ids(self, db: Session, user_id: int) -> List[int]:
        stmt = select(TenantUser.tenant_id).where(
            TenantUser.user_id == user_id,
            TenantUser.role == TenantRole.OWNER
        )
        return list(db.execute(stmt).scalars().all())

    def create(
        self,
        db: Session,
        *,
        user_id: int,
        tenant_id: int,
        role: TenantRole,
        commit: bool = True
    ) -> TenantUser:
        """
        Add a user to a tenant with the given role.

        Args:
            db: Database session
            user_id: User ID
            tenant_id: Tenant ID
            role: Role in the tenant
            commit: Whether to commit immediately; False only flushes

        Returns:
            Created TenantUser
        """
        membership = TenantUser(user_id=user_id, tenant_id=tenant_id, role=role)
        db.add(membership)
        if commit:
            db.commit()
            db.refresh(membership)
        else:
            db.flush()
        return membership

    def upsert(
        self,
        db: Session,
        *,
        user_id: int,
        tenant_id: int,
        role: TenantRole,
        commit: bool = True
    ) -> TenantUser:
        """
        Create the membership, or overwrite the role of an existing one.

        An existing OWNER row keeps its role; ownership is never changed
        through this path.
        """
        membership = self.get(db, user_id=user_id, tenant_id=tenant_id)
        if membership is None:
            return self.create(db, user_id=user_id, tenant_id=tenant_id, role=role, commit=commit)

        if membership.role != TenantRole.OWNER:
            membership.role = role
        if commit:
            db.commit()
            db.refresh(membership)
        else:
            db.flush()
        return membership

    def update_role(self, db: Session, *, membership: TenantUser, role: TenantRole) -> TenantUser:
        membership.role = role
        db.commit()
        db.refresh(membership)
        return membership

    def delete(self, db: Session, *, user_id: int, tenant_id: int) -> bool:
        """
        Remove a user from a tenant.

        Returns:
            True if a membership was deleted
        """
        result = db.execute(
            delete(TenantUser).where(
                TenantUser.user_id == user_id,
                TenantUser.tenant_id == tenant_id
            )
        )
        db.commit()
        return result.rowcount > 0


# Create singleton instance
membership = CRUDMembership()
