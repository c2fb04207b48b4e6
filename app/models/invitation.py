from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin
from app.models.tenant import TenantRole
from app.utils.timeutils import utcnow, ensure_utc

class Invitation(Base, TimestampMixin):
    __tablename__ = "invitation"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    token = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(TenantRole, name="tenant_role"), nullable=False, default=TenantRole.MEMBER)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted = Column(Boolean, default=False, nullable=False)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    invited_by = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    tenant = relationship("Tenant", back_populates="invitations")
    inviter = relationship("User")

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) >= ensure_utc(self.expires_at)

    def is_pending(self, now=None) -> bool:
        return not self.accepted and not self.is_expired(now)
