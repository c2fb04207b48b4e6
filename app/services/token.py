import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from jose import JWTError
from sqlalchemy.orm import Session
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import InvalidTokenError
from app.core.security import encode_token, decode_token
from app.crud.refresh_token import CRUDRefreshToken, refresh_token as refresh_token_crud
from app.schemas.auth import TokenPair
from app.utils.timeutils import utcnow


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims binding a user to an active tenant."""
    user_id: int
    tenant_id: int
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenService:
    """
    Mints and verifies signed access/refresh token pairs.

    Both tokens carry the same claims ({sub, tenantId}) but are signed with
    different secrets and expire at different times. Access tokens are
    stateless; refresh tokens are also recorded (hashed) in the refresh
    token store so they can be revoked.
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        refresh_tokens: CRUDRefreshToken = refresh_token_crud,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.refresh_tokens = refresh_tokens
        self.clock = clock

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def issue_token_pair(
        self,
        db: Session,
        user_id: int,
        tenant_id: int,
        commit: bool = True
    ) -> TokenPair:
        """
        Sign a new access/refresh pair and persist the refresh token hash.

        Args:
            db: Database session
            user_id: Subject of the tokens
            tenant_id: Active tenant embedded in the tokens
            commit: Whether to commit the refresh token record; False
                leaves it in the caller's transaction

        Returns:
            TokenPair

        Raises:
            Any store error from persisting the refresh token. Nothing is
            returned in that case, so no tokens count as issued.
        """
        now = self.clock()
        # iat/exp are whole seconds in the token; keep the stored expiry equal
        now = now.replace(microsecond=0)
        claims = {"sub": str(user_id), "tenantId": tenant_id, "jti": uuid.uuid4().hex}

        access_token = encode_token(
            claims,
            self.settings.SECRET_KEY,
            expires_at=now + self.access_token_ttl,
            issued_at=now,
        )
        refresh_expires_at = now + self.refresh_token_ttl
        refresh_token = encode_token(
            claims,
            self.settings.REFRESH_SECRET_KEY,
            expires_at=refresh_expires_at,
            issued_at=now,
        )

        self.refresh_tokens.create(
            db,
            user_id=user_id,
            token=refresh_token,
            expires_at=refresh_expires_at,
            commit=commit,
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify_access_token(self, token: str) -> TokenPayload:
        return self._verify(token, self.settings.SECRET_KEY)

    def verify_refresh_token(self, token: str) -> TokenPayload:
        return self._verify(token, self.settings.REFRESH_SECRET_KEY)

    def _verify(self, token: str, secret: str) -> TokenPayload:
        """
        Check signature and expiry, then the payload shape.

        Raises:
            InvalidTokenError: On bad signature, expiry or malformed payload
        """
        try:
            claims = decode_token(token, secret)
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        try:
            return TokenPayload(
                user_id=int(claims["sub"]),
                tenant_id=int(claims["tenantId"]),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                jti=str(claims.get("jti", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Malformed token payload") from e


# Create a singleton instance
token_service = TokenService()
