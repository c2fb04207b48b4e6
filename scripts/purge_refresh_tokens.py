"""
python -m scripts.purge_refresh_tokens

Meant to run periodically (cron or a scheduled job).
"""

import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal
from app.services.auth import auth_service


def purge_refresh_tokens():
    """Delete refresh tokens whose expiry has passed."""
    db = SessionLocal()

    try:
        count = auth_service.purge_expired_refresh_tokens(db)
        print(f"Deleted {count} expired refresh tokens")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    purge_refresh_tokens()
