"""
python -m scripts.seed
"""

import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal
from app.core.security import get_password_hash
from app.crud import user as user_crud, tenant as tenant_crud, membership as membership_crud
from app.models.item import Item
from app.models.tenant import TenantRole

DEMO_PASSWORD = "Demo1234!"


def seed():
    """Add a demo tenant with an owner, a member and a few items."""
    db = SessionLocal()

    try:
        if tenant_crud.get_by_slug(db, "demo") is not None:
            print("Demo tenant already exists, nothing to do")
            return

        hashed_password = get_password_hash(DEMO_PASSWORD)
        owner = user_crud.create(
            db,
            email="owner@demo.local",
            hashed_password=hashed_password,
            first_name="Olivia",
            last_name="Owner",
            commit=False,
        )
        member = user_crud.create(
            db,
            email="member@demo.local",
            hashed_password=hashed_password,
            first_name="Max",
            last_name="Member",
            commit=False,
        )
        tenant = tenant_crud.create(db, name="Demo Workspace", slug="demo", commit=False)

        membership_crud.create(db, user_id=owner.id, tenant_id=tenant.id, role=TenantRole.OWNER, commit=False)
        membership_crud.create(db, user_id=member.id, tenant_id=tenant.id, role=TenantRole.MEMBER, commit=False)

        items_data = [
            ("Quarterly report", "Numbers for the board meeting"),
            ("Onboarding checklist", "Steps for new team members"),
            ("Vendor contract", None),
        ]
        for name, description in items_data:
            db.add(Item(tenant_id=tenant.id, name=name, description=description))
            print(f"Added item: {name}")

        db.commit()
        print(f"\nSeeded tenant {tenant.slug} (id={tenant.id})")
        print(f"Log in as {owner.email} or {member.email} with password {DEMO_PASSWORD}")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed()
