"""
Seed script: create tables and default categories.

Run with ``python -m recurwatch.seed``.
"""

import logging
import uuid

from sqlalchemy.orm import Session

from recurwatch.database import Base, SessionLocal, engine
from recurwatch.models import Category

logger = logging.getLogger(__name__)

# Holding categories: splits assigned here are not user spending
SYSTEM_CATEGORIES = ["Income Buffer", "Transfers"]

DEFAULT_CATEGORIES = [
    {"name": "Income", "children": ["Salary", "Interest"]},
    {"name": "Housing", "children": ["Rent/Mortgage", "Utilities", "Insurance"]},
    {"name": "Subscriptions", "children": ["Streaming", "Software", "Memberships"]},
    {"name": "Transportation", "children": ["Fuel", "Public Transit"]},
    {"name": "Food", "children": ["Groceries", "Restaurants"]},
]


def init_db():
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)


def seed_categories(db: Session) -> int:
    """Seed default categories. Returns the number of categories created."""
    existing_count = db.query(Category).count()
    if existing_count > 0:
        logger.info(f"Categories already seeded ({existing_count} categories exist)")
        return 0

    created = 0
    try:
        for name in SYSTEM_CATEGORIES:
            db.add(Category(id=str(uuid.uuid4()), name=name, is_system=True, is_buffer=True))
            created += 1

        for cat_data in DEFAULT_CATEGORIES:
            parent = Category(id=str(uuid.uuid4()), name=cat_data["name"])
            db.add(parent)
            db.flush()  # Get the parent ID
            created += 1

            for child_name in cat_data["children"]:
                db.add(Category(id=str(uuid.uuid4()), name=child_name, parent_id=parent.id))
                created += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Seeded {created} categories")
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_categories(session)
    finally:
        session.close()
