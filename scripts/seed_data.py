"""Script to create demo users and a sample car for development."""

import asyncio

from src.car_inspection.infrastructure.database.connection import DatabaseManager
from src.car_inspection.infrastructure.repositories.sql_repositories import (
    SQLAlchemyCarRepository,
    SQLAlchemyUserRepository,
)
from src.car_inspection.infrastructure.seed import DEMO_USERS, seed_demo_data
from src.car_inspection.presentation.api.config import get_settings


async def seed_data():
    """Insert demo records that are not in the database yet."""
    settings = get_settings()
    database_manager = DatabaseManager(settings.database_url)
    await database_manager.connect()

    try:
        async with database_manager.get_session() as session:
            created = await seed_demo_data(
                SQLAlchemyUserRepository(session),
                SQLAlchemyCarRepository(session)
            )

        print(f"✅ {created} demo records created")
        print("\n📋 Demo Credentials:")
        for user in DEMO_USERS:
            print(f"{user['role'].value}: {user['email']} / {user['password']}")

    finally:
        await database_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(seed_data())
