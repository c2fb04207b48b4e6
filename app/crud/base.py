from typing import Generic, TypeVar, Type, Optional, List, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel
from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def is_unique_violation(error: IntegrityError, constraint: str, column: str) -> bool:
    """
    Tell whether error violated the unique constraint `constraint` on `column`.

    psycopg2 reports the violated constraint by name; drivers without
    diagnostics (SQLite) only name the column in the message.
    """
    diag = getattr(error.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name:
        return constraint_name == constraint
    message = str(error.orig).lower()
    return "unique" in message and column in message


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Generic CRUD class with tenant isolation via explicit tenant_id.

    Every tenant-owned resource goes through this class. Each read, list,
    count, update and delete is filtered by the tenant_id resolved from the
    caller's access token, which is passed explicitly from the router layer.

    Type Parameters:
        ModelType: SQLAlchemy model class with a tenant_id column
        CreateSchemaType: Pydantic schema for creating records
        UpdateSchemaType: Pydantic schema for partial updates
    """

    # Columns matched case-insensitively by the `search` filter
    search_fields: Sequence[str] = ()

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD object with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    def _tenant_query(self, tenant_id: int, search: Optional[str] = None):
        stmt = select(self.model).where(self.model.tenant_id == tenant_id)
        if search and self.search_fields:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(*[func.lower(getattr(self.model, field)).like(pattern) for field in self.search_fields])
            )
        return stmt

    def get(self, db: Session, id: int, tenant_id: int) -> Optional[ModelType]:
        """
        Retrieve a single record by ID with tenant filtering.

        Args:
            db: Database session
            id: Record ID
            tenant_id: Tenant ID for isolation

        Returns:
            Model instance or None if not found or doesn't belong to tenant
        """
        stmt = select(self.model).where(
            self.model.id == id,
            self.model.tenant_id == tenant_id
        )
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_multi(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        tenant_id: int,
        search: Optional[str] = None
    ) -> List[ModelType]:
        """
        Retrieve multiple records with pagination and tenant filtering.

        Args:
            db: Database session
            skip: Number of records to skip
            limit: Maximum number of records to return
            tenant_id: Tenant ID for isolation
            search: Optional case-insensitive substring filter

        Returns:
            List of model instances belonging to tenant, newest first
        """
        stmt = (
            self._tenant_query(tenant_id, search)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = db.execute(stmt)
        return list(result.scalars().all())

    def count(self, db: Session, *, tenant_id: int, search: Optional[str] = None) -> int:
        """Count records belonging to tenant, with the same filter as get_multi."""
        stmt = select(func.count()).select_from(self._tenant_query(tenant_id, search).subquery())
        return db.execute(stmt).scalar_one()

    def create(
        self,
        db: Session,
        *,
        obj_in: CreateSchemaType,
        tenant_id: int
    ) -> ModelType:
        """
        Create a new record with tenant association.

        Args:
            db: Database session
            obj_in: Pydantic schema with creation data
            tenant_id: Tenant ID for isolation

        Returns:
            Created model instance
        """
        obj_data = obj_in.model_dump()
        db_obj = self.model(tenant_id=tenant_id, **obj_data)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType
    ) -> ModelType:
        """
        Update an existing record with the fields set on obj_in.

        Note: This method assumes the db_obj was already retrieved using
        get() or similar method, which ensures tenant isolation.

        Args:
            db: Database session
            db_obj: Existing model instance to update
            obj_in: Pydantic update schema; unset fields are left untouched

        Returns:
            Updated model instance
        """
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, id: int, tenant_id: int) -> Optional[ModelType]:
        """
        Delete a record by ID with tenant filtering.

        Args:
            db: Database session
            id: Record ID to delete
            tenant_id: Tenant ID for isolation

        Returns:
            Deleted model instance or None if not found
        """
        obj = self.get(db=db, id=id, tenant_id=tenant_id)
        if obj:
            db.delete(obj)
            db.commit()
        return obj
