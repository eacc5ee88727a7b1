"""Demo users and cars for development environments."""

from typing import Dict, List
from uuid import UUID

from src.car_inspection.application.ports.repositories import CarRepository, UserRepository
from src.car_inspection.domain.entities.car import Car
from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.value_objects.auth import PasswordHasher, UserRole
from src.car_inspection.infrastructure.logging import get_logger

logger = get_logger(__name__)

ADMIN_ID = UUID("11111111-1111-1111-1111-111111111111")
INSPECTOR_ID = UUID("22222222-2222-2222-2222-222222222222")
OWNER_ID = UUID("33333333-3333-3333-3333-333333333333")
SAMPLE_CAR_ID = UUID("44444444-4444-4444-4444-444444444444")

DEMO_USERS: List[Dict] = [
    {
        "id": ADMIN_ID,
        "email": "admin@example.com",
        "name": "Site Admin",
        "role": UserRole.ADMIN,
        "password": "admin12345",
    },
    {
        "id": INSPECTOR_ID,
        "email": "inspector@example.com",
        "name": "Ali Inspector",
        "phone": "+923001234567",
        "role": UserRole.INSPECTOR,
        "password": "inspector123",
    },
    {
        "id": OWNER_ID,
        "email": "owner@example.com",
        "name": "Sara Owner",
        "role": UserRole.USER,
        "password": "owner12345",
    },
]

DEMO_CARS: List[Dict] = [
    {
        "id": SAMPLE_CAR_ID,
        "registration_no": "LEA-1234",
        "make": "Toyota",
        "model": "Corolla",
        "year": 2019,
        "owner_id": OWNER_ID,
    },
]


async def seed_demo_data(user_repository: UserRepository, car_repository: CarRepository) -> int:
    """Insert demo users and cars that do not exist yet.

    Returns:
        Number of records created
    """
    created = 0
    for data in DEMO_USERS:
        if await user_repository.find_by_email(data["email"]):
            continue
        user = User(
            email=data["email"],
            name=data["name"],
            role=data["role"],
            user_id=data["id"],
            phone=data.get("phone"),
        )
        await user_repository.save(user, PasswordHasher.create_password_hash(data["password"]))
        created += 1

    for data in DEMO_CARS:
        if await car_repository.find_by_registration_no(data["registration_no"]):
            continue
        await car_repository.save(Car(
            registration_no=data["registration_no"],
            make=data["make"],
            model=data["model"],
            year=data["year"],
            car_id=data["id"],
            owner_id=data["owner_id"],
        ))
        created += 1

    logger.info(f"Seeded {created} demo records")
    return created
