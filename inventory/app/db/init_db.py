"""Database initialization utilities."""

import uuid
from decimal import Decimal

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from inventory.app.core.logging import get_logger
from inventory.app.db.base import Base
from inventory.app.db.models import Item

logger = get_logger(__name__)

SEED_ITEMS = [
    ("Laptop", 10, "999.99"),
    ("Smartphone", 20, "699.99"),
    ("Headphones", 15, "199.99"),
    ("Keyboard", 25, "89.99"),
    ("Mouse", 30, "49.99"),
    ("Monitor", 12, "299.99"),
    ("Webcam", 18, "79.99"),
    ("Printer", 7, "149.99"),
    ("Tablet", 5, "399.99"),
    ("Smartwatch", 14, "249.99"),
    ("External Hard Drive", 8, "119.99"),
    ("USB Flash Drive", 50, "19.99"),
    ("Router", 6, "89.99"),
    ("Projector", 3, "499.99"),
    ("Bluetooth Speaker", 22, "129.99"),
    ("Gaming Console", 11, "499.99"),
    ("Camera", 4, "599.99"),
    ("Fitness Tracker", 16, "99.99"),
    ("Drone", 2, "899.99"),
    ("VR Headset", 9, "399.99"),
]


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_items(session: AsyncSession) -> int:
    """Insert the sample catalogue when the items table is empty.

    Returns:
        Number of items inserted (0 if the table already had data)
    """
    count = await session.scalar(select(func.count(Item.id)))
    if count:
        logger.info("Database already contains data, skipping seeding.")
        return 0

    session.add_all(
        Item(id=str(uuid.uuid4()), name=name, stock=stock, price=Decimal(price))
        for name, stock, price in SEED_ITEMS
    )
    await session.commit()
    logger.info(f"Database seeded with {len(SEED_ITEMS)} sample items.")
    return len(SEED_ITEMS)


async def verify_connection(engine: AsyncEngine) -> bool:
    """Verify database connection is working.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
