"""Script to initialize database tables."""

import asyncio

from src.car_inspection.infrastructure.database.connection import DatabaseManager
from src.car_inspection.infrastructure.database.models import Base
from src.car_inspection.presentation.api.config import get_settings


async def create_tables():
    """Create all database tables."""
    settings = get_settings()
    database_manager = DatabaseManager(settings.database_url, echo=True)
    await database_manager.connect()

    try:
        async with database_manager.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        print("✅ Database tables created successfully!")

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise
    finally:
        await database_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(create_tables())
