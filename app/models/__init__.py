from .invitation import Invitation
from .item import Item
from .refresh_token import RefreshToken
from .tenant import Tenant, TenantRole, TenantUser
from .user import User
