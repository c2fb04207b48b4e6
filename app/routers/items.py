from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_item_service
from app.core.tenant_context import get_tenant_id
from app.schemas.common import MAX_PAGE_SIZE, PaginatedResponse, PaginationParams
from app.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from app.services.item import ItemService
from app.core.logging_config import logger

router = APIRouter()


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item_data: ItemCreate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    items: ItemService = Depends(get_item_service)
):
    """
    Create a new item.

    The tenant is automatically identified from the JWT token.

    Args:
        item_data: Item creation data
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Created item
    """
    try:
        logger.info(f"Creating item: name={item_data.name}, tenant_id={_tenant_id}")
        result = items.create_item(db=db, item_data=item_data, tenant_id=_tenant_id)
        logger.info(f"Item created successfully: id={result.id}")
        return result
    except Exception as e:
        logger.error(f"Error creating item: {type(e).__name__}: {str(e)}")
        raise


@router.get("", response_model=PaginatedResponse[ItemResponse])
def get_items(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    items: ItemService = Depends(get_item_service)
):
    """
    Retrieve one page of your tenant's items, newest first.

    Args:
        page: Page number, starting at 1
        limit: Page size (1-100)
        search: Case-insensitive match on name or description
        db: Database session
        _tenant_id: Tenant context (auto-set from JWT)

    Returns:
        Items plus total/page/limit/total_pages
    """
    params = PaginationParams(page=page, limit=limit, search=search)
    return items.get_items(db=db, tenant_id=_tenant_id, params=params)


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    items: ItemService = Depends(get_item_service)
):
    """
    Retrieve a specific item by ID.

    Raises:
        ItemNotFound (404): Also for items of other tenants
    """
    return items.get_item(db=db, item_id=item_id, tenant_id=_tenant_id)


@router.patch("/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: int,
    item_data: ItemUpdate,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    items: ItemService = Depends(get_item_service)
):
    """Update the fields present in the request body."""
    return items.update_item(db=db, item_id=item_id, item_data=item_data, tenant_id=_tenant_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_tenant_id),
    items: ItemService = Depends(get_item_service)
):
    """
    Delete an item.

    Raises:
        ItemNotFound (404)
    """
    items.delete_item(db=db, item_id=item_id, tenant_id=_tenant_id)
    return None
