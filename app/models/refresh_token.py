from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin
from app.utils.timeutils import utcnow, ensure_utc

class RefreshToken(Base, TimestampMixin):
    """
    Issued refresh token. Only the SHA-256 hash of the token is stored.
    """
    __tablename__ = "refresh_token"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) >= ensure_utc(self.expires_at)

    def is_valid(self, now=None) -> bool:
        return not self.revoked and not self.is_expired(now)
