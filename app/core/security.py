import hashlib
import re
from functools import lru_cache
from typing import Optional
from datetime import datetime
from jose import jwt
import bcrypt
from app.core.config import settings

ALGORITHM = settings.ALGORITHM

PASSWORD_MIN_LENGTH = 8
_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[^A-Za-z0-9]"), "one special character"),
)


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')
    hashed_bytes = hashed_password.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Malformed stored hash
        return False


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return get_password_hash("dummy-password-for-timing")


def burn_password_check(plain_password: str) -> None:
    """
    Run one bcrypt comparison against a throwaway hash.

    Used on the unknown-email login path so that it costs about as much as a
    wrong-password attempt.
    """
    verify_password(plain_password, _dummy_password_hash())


def password_policy_violations(password: str) -> list[str]:
    """Return the unmet password strength requirements (empty when strong)."""
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    for pattern, description in _PASSWORD_RULES:
        if not pattern.search(password):
            problems.append(description)
    return problems


def hash_token(token: str) -> str:
    """SHA-256 hex digest of an opaque token; what the refresh token store keeps."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def encode_token(claims: dict, secret: str, expires_at: datetime, issued_at: datetime) -> str:
    """
    Sign a JWT with the given claims and lifetime.

    Args:
        claims: Custom claims (sub, tenantId, jti)
        secret: Signing secret (access and refresh tokens use different ones)
        expires_at: Value of the exp claim
        issued_at: Value of the iat claim

    Returns:
        Encoded JWT token string
    """
    to_encode = claims.copy()
    to_encode.update({"iat": issued_at, "exp": expires_at})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> dict:
    """
    Verify and decode a JWT token.

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(token, secret, algorithms=[ALGORITHM])
