from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from app.core.exceptions import EmailAlreadyInUse, UserAlreadyExists
from app.crud.base import is_unique_violation
from app.models.user import User
from app.schemas.user import UserUpdate


def _is_email_conflict(error: IntegrityError) -> bool:
    return is_unique_violation(error, "ix_user_email", "email")


class CRUDUser:
    """
    Credential store: user identity and password hash.
    
    Users are global (not tenant-scoped); tenant access goes through
    memberships, so this does not inherit from CRUDBase.
    """
    
    def __init__(self):
        self.model = User
    
    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        """
        Retrieve user by email address (case-insensitive).
        
        Args:
            db: Database session
            email: User email
            
        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(User.email == email.lower())
        result = db.execute(stmt)
        return result.scalar_one_or_none()
    
    def get(self, db: Session, user_id: int) -> Optional[User]:
        """
        Retrieve user by ID.
        
        Args:
            db: Database session
            user_id: User ID
            
        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(User.id == user_id)
        result = db.execute(stmt)
        return result.scalar_one_or_none()
    
    def create(
        self,
        db: Session,
        *,
        email: str,
        hashed_password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        commit: bool = True
    ) -> User:
        """
        Create a new user from an already hashed password.
        
        Args:
            db: Database session
            email: User email, stored lower-cased
            hashed_password: bcrypt hash of the password
            first_name: Optional first name
            last_name: Optional last name
            commit: Whether to commit immediately; False flushes and leaves
                the transaction to the caller
            
        Returns:
            Created User instance
            
        Raises:
            UserAlreadyExists: If the email is already registered
        """
        db_user = User(
            email=email.lower(),
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
        )
        db.add(db_user)
        
        try:
            if commit:
                db.commit()
                db.refresh(db_user)
            else:
                db.flush()  # Get ID without committing
        except IntegrityError as e:
            db.rollback()
            if _is_email_conflict(e):
                raise UserAlreadyExists(email) from e
            raise
        
        return db_user

    def update(self, db: Session, *, db_obj: User, obj_in: UserUpdate) -> User:
        """
        Apply a partial profile update.
        
        Raises:
            EmailAlreadyInUse: If the new email belongs to another user
        """
        update_data = obj_in.model_dump(exclude_unset=True)
        if update_data.get("email"):
            update_data["email"] = update_data["email"].lower()
        else:
            # email is required; an explicit null leaves it unchanged
            update_data.pop("email", None)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_email_conflict(e):
                raise EmailAlreadyInUse(update_data["email"]) from e
            raise
        db.refresh(db_obj)
        return db_obj

    def update_password(self, db: Session, user_id: int, hashed_password: str, commit: bool = True) -> None:
        db.execute(update(User).where(User.id == user_id).values(hashed_password=hashed_password))
        if commit:
            db.commit()

    def delete(self, db: Session, db_obj: User) -> None:
        """Delete a user; memberships and refresh tokens cascade."""
        db.delete(db_obj)
        db.commit()


# Create singleton instance
user = CRUDUser()
