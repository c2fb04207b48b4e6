import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin

class TenantRole(str, enum.Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"

class Tenant(Base, TimestampMixin):
    __tablename__ = "tenant"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)

    memberships = relationship(
        "TenantUser",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    invitations = relationship(
        "Invitation",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    items = relationship(
        "Item",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

class TenantUser(Base, TimestampMixin):
    """
    Membership of a user in a tenant, carrying the user's role there.
    At most one row per (user_id, tenant_id).
    """
    __tablename__ = "tenant_user"
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_tenant_user_user_id_tenant_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(TenantRole, name="tenant_role"), nullable=False, default=TenantRole.MEMBER)

    user = relationship("User", back_populates="memberships")
    tenant = relationship("Tenant", back_populates="memberships")
