from app.crud.base import CRUDBase
from .user import user
from .tenant import tenant
from .membership import membership
from .refresh_token import refresh_token
from .invitation import invitation
from .item import item

__all__ = ["CRUDBase", "user", "tenant", "membership", "refresh_token", "invitation", "item"]
