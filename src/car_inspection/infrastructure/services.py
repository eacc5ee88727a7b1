"""Dependency injection and service factories."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from src.car_inspection.application.services.access_policy import ReportAccessPolicy
from src.car_inspection.application.services.auth_service import AuthenticationService
from src.car_inspection.application.services.car_part_service import CarPartService
from src.car_inspection.application.services.inspection_report_service import InspectionReportService
from src.car_inspection.domain.entities.car import Car
from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.value_objects.auth import PasswordHasher
from src.car_inspection.infrastructure.database.connection import DatabaseManager
from src.car_inspection.infrastructure.logging import get_logger
from src.car_inspection.infrastructure.repositories.memory_repositories import (
    InMemoryAuthTokenRepository,
    InMemoryCarPartRepository,
    InMemoryCarRepository,
    InMemoryInspectionReportRepository,
    InMemoryUserRepository,
)
from src.car_inspection.infrastructure.repositories.sql_repositories import (
    SQLAlchemyCarPartRepository,
    SQLAlchemyCarRepository,
    SQLAlchemyInspectionReportRepository,
    SQLAlchemyUserRepository,
)
from src.car_inspection.infrastructure.security import JWTTokenIssuer
from src.car_inspection.infrastructure.seed import seed_demo_data

logger = get_logger(__name__)


@dataclass(frozen=True)
class InspectionServices:
    """Report and car part services sharing one unit of work."""
    reports: InspectionReportService
    parts: CarPartService


def _build_inspection_services(report_repo, part_repo, car_repo) -> InspectionServices:
    policy = ReportAccessPolicy(car_repository=car_repo)
    return InspectionServices(
        reports=InspectionReportService(
            report_repository=report_repo,
            car_part_repository=part_repo,
            car_repository=car_repo,
            access_policy=policy
        ),
        parts=CarPartService(
            car_part_repository=part_repo,
            report_repository=report_repo,
            access_policy=policy
        ),
    )


class ServiceFactory:
    """Builds services on top of PostgreSQL, one session per request."""

    def __init__(self, database_manager: DatabaseManager, token_issuer: JWTTokenIssuer):
        self.database_manager = database_manager
        self._token_issuer = token_issuer
        # Token revocation list shared by all requests
        self._token_repository = InMemoryAuthTokenRepository()

    async def initialize(self) -> None:
        if not self.database_manager.is_connected:
            await self.database_manager.connect()

    async def shutdown(self) -> None:
        await self.database_manager.disconnect()

    @asynccontextmanager
    async def get_inspection_services(self) -> AsyncGenerator[InspectionServices, None]:
        """Report and part services bound to one committed-or-rolled-back session."""
        async with self.database_manager.get_session() as session:
            yield _build_inspection_services(
                SQLAlchemyInspectionReportRepository(session),
                SQLAlchemyCarPartRepository(session),
                SQLAlchemyCarRepository(session),
            )

    @asynccontextmanager
    async def get_car_part_service(self) -> AsyncGenerator[CarPartService, None]:
        async with self.get_inspection_services() as services:
            yield services.parts

    @asynccontextmanager
    async def get_auth_service(self) -> AsyncGenerator[AuthenticationService, None]:
        async with self.database_manager.get_session() as session:
            yield AuthenticationService(
                user_repository=SQLAlchemyUserRepository(session),
                token_repository=self._token_repository,
                token_issuer=self._token_issuer
            )


class InMemoryServiceFactory:
    """Same interface as ServiceFactory, backed by process memory.

    Used for local development without PostgreSQL and by the test suite.
    """

    def __init__(self, token_issuer: JWTTokenIssuer, seed_demo_data: bool = False):
        self._token_issuer = token_issuer
        self._seed_demo_data = seed_demo_data
        self.report_repository = InMemoryInspectionReportRepository()
        self.car_part_repository = InMemoryCarPartRepository()
        self.car_repository = InMemoryCarRepository()
        self.user_repository = InMemoryUserRepository()
        self.token_repository = InMemoryAuthTokenRepository()

    async def initialize(self) -> None:
        logger.info("Using in-memory storage backend")
        if self._seed_demo_data:
            await seed_demo_data(self.user_repository, self.car_repository)

    async def shutdown(self) -> None:
        return None

    async def add_user(self, user: User, password: str) -> User:
        """Register a user with a plain password (development and tests)."""
        return await self.user_repository.save(user, PasswordHasher.create_password_hash(password))

    async def add_car(self, car: Car) -> Car:
        return await self.car_repository.save(car)

    @asynccontextmanager
    async def get_inspection_services(self) -> AsyncGenerator[InspectionServices, None]:
        yield _build_inspection_services(
            self.report_repository, self.car_part_repository, self.car_repository
        )

    @asynccontextmanager
    async def get_car_part_service(self) -> AsyncGenerator[CarPartService, None]:
        async with self.get_inspection_services() as services:
            yield services.parts

    @asynccontextmanager
    async def get_auth_service(self) -> AsyncGenerator[AuthenticationService, None]:
        yield AuthenticationService(
            user_repository=self.user_repository,
            token_repository=self.token_repository,
            token_issuer=self._token_issuer
        )


# Global service factory instance
_service_factory: Optional[ServiceFactory | InMemoryServiceFactory] = None


def build_service_factory(settings) -> ServiceFactory | InMemoryServiceFactory:
    """Create the factory selected by settings.storage_backend."""
    token_issuer = JWTTokenIssuer(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expire_minutes=settings.access_token_expire_minutes
    )
    if settings.storage_backend == "memory":
        return InMemoryServiceFactory(token_issuer, seed_demo_data=settings.seed_demo_data)

    database_manager = DatabaseManager(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        echo=settings.db_echo
    )
    return ServiceFactory(database_manager, token_issuer)


def get_service_factory() -> ServiceFactory | InMemoryServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        from src.car_inspection.presentation.api.config import get_settings
        _service_factory = build_service_factory(get_settings())

    return _service_factory


async def initialize_services() -> None:
    await get_service_factory().initialize()


async def shutdown_services() -> None:
    await get_service_factory().shutdown()
