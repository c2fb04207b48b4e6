from app.crud.base import CRUDBase
from app.models.item import Item
from app.schemas.item import ItemCreate, ItemUpdate


class CRUDItem(CRUDBase[Item, ItemCreate, ItemUpdate]):
    """
    CRUD operations for Item model.
    
    Inherits all standard tenant-isolated CRUD operations from CRUDBase.
    """

    search_fields = ("name", "description")


# Create a singleton instance
item = CRUDItem(Item)
