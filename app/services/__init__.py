from app.services.token import token_service
from app.services.auth import auth_service
from app.services.access_control import access_control_service
from .user import user_service
from .tenant import tenant_service
from .item import item_service
from .rate_limit import auth_rate_limiter

__all__ = [
    "token_service",
    "auth_service",
    "access_control_service",
    "user_service",
    "tenant_service",
    "item_service",
    "auth_rate_limiter",
]
