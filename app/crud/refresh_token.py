from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete
from app.core.security import hash_token
from app.models.refresh_token import RefreshToken


class CRUDRefreshToken:
    """
    Refresh token store.

    Raw token values never reach the database: every method hashes the
    token with SHA-256 first and works on the hash.
    """

    def __init__(self):
        self.model = RefreshToken

    def create(
        self,
        db: Session,
        *,
        user_id: int,
        token: str,
        expires_at: datetime,
        commit: bool = True
    ) -> RefreshToken:
        """
        Store a newly issued refresh token.

        Args:
            db: Database session
            user_id: Owning user
            token: Raw token value (only its hash is stored)
            expires_at: Expiry matching the token's exp claim
            commit: Whether to commit immediately; False only flushes

        Returns:
            Created RefreshToken record
        """
        record = RefreshToken(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=expires_at,
            revoked=False,
        )
        db.add(record)
        if commit:
            db.commit()
            db.refresh(record)
        else:
            db.flush()
        return record

    def get_by_token(self, db: Session, token: str) -> Optional[RefreshToken]:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == hash_token(token))
        return db.execute(stmt).scalar_one_or_none()

    def revoke(self, db: Session, token: str, commit: bool = True) -> bool:
        """
        Revoke a refresh token.

        Returns:
            True if a stored token matched
        """
        result = db.execute(
            update(RefreshToken)
            .where(RefreshToken.token_hash == hash_token(token))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        if commit:
            db.commit()
        return result.rowcount > 0

    def consume(self, db: Session, token: str, now: datetime) -> bool:
        """
        Revoke a token only if it is currently active (unrevoked, unexpired).

        Runs as a single conditional UPDATE, so of two concurrent uses of
        the same token exactly one sees a matching row. Does not commit.

        Returns:
            True if this call revoked the token
        """
        result = db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == hash_token(token),
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def revoke_all_for_user(self, db: Session, user_id: int, commit: bool = True) -> int:
        result = db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        if commit:
            db.commit()
        return result.rowcount

    def delete_expired(self, db: Session, now: datetime) -> int:
        """
        Delete expired tokens (cleanup job).

        Returns:
            Number of deleted rows
        """
        result = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount


# Create singleton instance
refresh_token = CRUDRefreshToken()
