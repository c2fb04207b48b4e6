from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from app.core.exceptions import TenantSlugTaken
from app.crud.base import is_unique_violation
from app.models.tenant import Tenant
from app.schemas.tenant import TenantUpdate


def _is_slug_conflict(error: IntegrityError) -> bool:
    return is_unique_violation(error, "ix_tenant_slug", "slug")


class CRUDTenant:
    """
    CRUD operations for Tenant model.
    
    Note: Tenant model doesn't have tenant_id (it IS the tenant),
    so we don't inherit from CRUDBase.
    """
    
    def __init__(self):
        self.model = Tenant

    def get(self, db: Session, tenant_id: int) -> Optional[Tenant]:
        return db.execute(select(Tenant).where(Tenant.id == tenant_id)).scalar_one_or_none()

    def get_by_slug(self, db: Session, slug: str) -> Optional[Tenant]:
        return db.execute(select(Tenant).where(Tenant.slug == slug)).scalar_one_or_none()
    
    def create(
        self,
        db: Session,
        *,
        name: str,
        slug: str,
        commit: bool = True
    ) -> Tenant:
        """
        Create a tenant.
        
        Args:
            db: Database session
            name: Display name
            slug: Unique slug
            commit: Whether to commit immediately; False only flushes so the
                tenant can join a larger transaction (e.g. registration)
            
        Returns:
            Created Tenant
            
        Raises:
            TenantSlugTaken: If the slug already exists
        """
        tenant = Tenant(name=name, slug=slug)
        db.add(tenant)
        try:
            if commit:
                db.commit()
                db.refresh(tenant)
            else:
                db.flush()  # Get tenant.id without committing
        except IntegrityError as e:
            db.rollback()
            if _is_slug_conflict(e):
                raise TenantSlugTaken(slug) from e
            raise
        return tenant

    def update(self, db: Session, *, db_obj: Tenant, obj_in: TenantUpdate) -> Tenant:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_slug_conflict(e):
                raise TenantSlugTaken(update_data["slug"]) from e
            raise
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, db_obj: Tenant) -> None:
        """Delete a tenant; memberships, invitations and items cascade."""
        db.delete(db_obj)
        db.commit()


# Create singleton instance
tenant = CRUDTenant()
