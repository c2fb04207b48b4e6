from typing import Dict, Optional
from fastapi import status


class AppError(Exception):
    """
    Base class for expected, typed failures surfaced to the caller.

    Each subclass carries a stable `code` (the error kind) and the HTTP
    status it maps to. The message is safe to show to clients.
    """

    code: str = "internal_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


# ==================== Kinds ====================

class ConflictError(AppError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


class NotFoundError(AppError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UnauthenticatedError(AppError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have permission to perform this action"


class PreconditionFailedError(AppError):
    code = "precondition_failed"
    status_code = status.HTTP_412_PRECONDITION_FAILED
    message = "Precondition failed"


class RateLimitedError(AppError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


# ==================== Auth ====================

class UserAlreadyExists(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"User with email {email} already exists")


class EmailAlreadyInUse(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"Email {email} is already in use")


class InvalidCredentials(UnauthenticatedError):
    message = "Incorrect email or password"


class InvalidRefreshToken(UnauthenticatedError):
    message = "Invalid or expired refresh token"


class Unauthenticated(UnauthenticatedError):
    pass


class IncorrectPassword(UnauthenticatedError):
    message = "Current password is incorrect"


class NoTenantAccess(ForbiddenError):
    message = "User does not have access to any tenant"

    def __init__(self, tenant_id: Optional[int] = None):
        if tenant_id is not None:
            super().__init__(f"User does not have access to tenant {tenant_id}")
        else:
            super().__init__()


class PasswordRequired(PreconditionFailedError):
    message = "Password is required to create a new account"


class TooManyAuthAttempts(RateLimitedError):
    message = "Too many attempts, try again later"


# ==================== Tenants ====================

class TenantNotFound(NotFoundError):
    def __init__(self, tenant_id: int):
        super().__init__(f"Tenant {tenant_id} not found")


class TenantSlugTaken(ConflictError):
    def __init__(self, slug: str):
        super().__init__(f"Tenant slug {slug} is already taken")


class MemberNotFound(NotFoundError):
    message = "Member not found in this tenant"


class MemberAlreadyExists(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"User {email} is already a member of this tenant")


class OwnerImmutable(ForbiddenError):
    message = "The tenant owner cannot be modified or removed"


class OwnsTenants(ForbiddenError):
    message = "Transfer or delete the tenants you own before deleting your account"


class Forbidden(ForbiddenError):
    pass


# ==================== Invitations ====================

class InvitationNotFound(NotFoundError):
    message = "Invitation not found"


class InvitationAlreadyAccepted(PreconditionFailedError):
    message = "Invitation has already been accepted"


class InvitationExpired(PreconditionFailedError):
    message = "Invitation has expired"


class InvitationAlreadyPending(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"A pending invitation already exists for {email}")


# ==================== Items ====================

class ItemNotFound(NotFoundError):
    message = "Item not found"


# ==================== Tokens ====================

class InvalidTokenError(Exception):
    """Raised by the token service for bad signature, bad payload or expiry."""
