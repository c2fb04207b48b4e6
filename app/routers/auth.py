from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_auth_rate_limiter, get_auth_service
from app.schemas.auth import (
    AcceptInvitationRequest,
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenPair,
)
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse
from app.services.auth import AuthResult, AuthService
from app.services.rate_limit import RateLimiter

router = APIRouter()


def _client_ip(http_request: Request) -> str:
    return http_request.client.host if http_request.client else "unknown"


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_auth_rate_limiter)
):
    """
    Register a new user.

    Without tenant_id a workspace tenant is created with the user as OWNER;
    with tenant_id the user joins that tenant as MEMBER.

    Args:
        request: Email, password, optional names and tenant_id
        db: Database session

    Returns:
        The user's profile and a token pair for the active tenant

    Raises:
        UserAlreadyExists (409), TenantNotFound (404), TooManyAuthAttempts (429)
    """
    limiter.check_auth_attempt("register", _client_ip(http_request), request.email)
    result = auth.register(
        db,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        tenant_id=request.tenant_id,
    )
    return _auth_response(result)


@router.post("/login", response_model=TokenPair)
def login(
    credentials: LoginRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_auth_rate_limiter)
):
    """
    Log in with email and password.

    The active tenant is the user's earliest membership; use
    /api/users/me/switch-tenant to move to another one.

    Raises:
        InvalidCredentials (401), NoTenantAccess (403), TooManyAuthAttempts (429)
    """
    limiter.check_auth_attempt("login", _client_ip(http_request), credentials.email)
    return auth.login(db, email=credentials.email, password=credentials.password)


@router.post("/refresh", response_model=TokenPair)
def refresh(
    request: RefreshTokenRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service)
):
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token is invalidated.

    Raises:
        InvalidRefreshToken (401)
    """
    return auth.refresh(db, request.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: RefreshTokenRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service)
):
    """Revoke a refresh token. Responds the same way for any input."""
    return auth.logout(db, request.refresh_token)


@router.post("/accept-invitation", response_model=AuthResponse)
def accept_invitation(
    request: AcceptInvitationRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service)
):
    """
    Accept an invitation and get tokens for the invitation's tenant.

    A password is required only when no account exists for the invited
    email yet.

    Raises:
        InvitationNotFound (404), InvitationAlreadyAccepted (412),
        InvitationExpired (412), PasswordRequired (412)
    """
    result = auth.accept_invitation(db, token=request.token, password=request.password)
    return _auth_response(result)
