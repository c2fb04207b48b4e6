from sqlalchemy.orm import Session
from app.core.exceptions import ItemNotFound
from app.crud.item import CRUDItem, item as item_crud
from app.models.item import Item
from app.schemas.common import PaginatedResponse, PaginationParams
from app.schemas.item import ItemCreate, ItemResponse, ItemUpdate


class ItemService:
    """
    Service layer for tenant-owned items.

    Every call takes the tenant_id of the caller's active tenant; an item
    of another tenant is indistinguishable from a missing one.
    """

    def __init__(self, items: CRUDItem = item_crud):
        self.crud = items

    def get_item(
        self,
        db: Session,
        item_id: int,
        tenant_id: int
    ) -> Item:
        """
        Get an item by ID with tenant isolation.

        Args:
            db: Database session
            item_id: Item ID
            tenant_id: Tenant ID for isolation

        Returns:
            Item instance

        Raises:
            ItemNotFound: If the item does not exist in this tenant
        """
        item = self.crud.get(db=db, id=item_id, tenant_id=tenant_id)

        if not item:
            raise ItemNotFound()

        return item

    def get_items(
        self,
        db: Session,
        tenant_id: int,
        params: PaginationParams
    ) -> PaginatedResponse[ItemResponse]:
        """
        Get one page of the tenant's items, newest first.

        Args:
            db: Database session
            tenant_id: Tenant ID for isolation
            params: page, limit and optional search term

        Returns:
            Page of items with total/page/limit/total_pages metadata
        """
        items = self.crud.get_multi(
            db=db,
            skip=params.skip,
            limit=params.limit,
            tenant_id=tenant_id,
            search=params.search
        )
        total = self.crud.count(db=db, tenant_id=tenant_id, search=params.search)
        return PaginatedResponse[ItemResponse].build(
            [ItemResponse.model_validate(item) for item in items],
            total,
            params
        )

    def create_item(
        self,
        db: Session,
        item_data: ItemCreate,
        tenant_id: int
    ) -> Item:
        return self.crud.create(db=db, obj_in=item_data, tenant_id=tenant_id)

    def update_item(
        self,
        db: Session,
        item_id: int,
        item_data: ItemUpdate,
        tenant_id: int
    ) -> Item:
        """
        Update an item.

        Raises:
            ItemNotFound: If the item does not exist in this tenant
        """
        item = self.get_item(db=db, item_id=item_id, tenant_id=tenant_id)
        return self.crud.update(db=db, db_obj=item, obj_in=item_data)

    def delete_item(
        self,
        db: Session,
        item_id: int,
        tenant_id: int
    ) -> None:
        """
        Delete an item.

        Raises:
            ItemNotFound: If the item does not exist in this tenant
        """
        deleted = self.crud.delete(db=db, id=item_id, tenant_id=tenant_id)

        if not deleted:
            raise ItemNotFound()


# Create a singleton instance
item_service = ItemService()
