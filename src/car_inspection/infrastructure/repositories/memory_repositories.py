"""In-memory repository implementations for testing and development.

Entities are copied on the way in and out so callers never share state with
the store; a change only becomes visible after save/update, as with the SQL
repositories.
"""

import copy
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from src.car_inspection.application.ports.repositories import (
    AuthTokenRepository,
    CarPartRepository,
    CarRepository,
    InspectionReportRepository,
    ReportQuery,
    UserRepository,
)
from src.car_inspection.domain.entities.car import Car
from src.car_inspection.domain.entities.car_part import CarPart
from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.exceptions import ConflictError
from src.car_inspection.domain.value_objects.auth import AuthToken


class InMemoryInspectionReportRepository(InspectionReportRepository):
    """In-memory implementation of inspection report repository."""

    def __init__(self):
        self._reports: Dict[UUID, InspectionReport] = {}

    async def save(self, report: InspectionReport) -> InspectionReport:
        if any(existing.report_number == report.report_number for existing in self._reports.values()):
            raise ConflictError(f"Report number {report.report_number} already exists")
        self._reports[report.id] = copy.deepcopy(report)
        return report

    async def update(self, report: InspectionReport) -> InspectionReport:
        stored = self._reports.get(report.id)
        if stored is None:
            raise ConflictError(f"Inspection report {report.id} no longer exists")

        updated = copy.deepcopy(report)
        # View counters belong to the store, never to the caller's copy
        updated._view_count = stored.view_count
        updated._last_viewed_at = stored.last_viewed_at
        self._reports[report.id] = updated
        return copy.deepcopy(updated)

    async def find_by_id(self, report_id: UUID) -> Optional[InspectionReport]:
        report = self._reports.get(report_id)
        return copy.deepcopy(report) if report else None

    async def find_by_shareable_link(self, link: str) -> Optional[InspectionReport]:
        report = self._find_by_link(link)
        return copy.deepcopy(report) if report else None

    async def increment_view_count(self, link: str, viewed_at: datetime) -> Optional[InspectionReport]:
        # No await between lookup and mutation, so this cannot interleave
        report = self._find_by_link(link)
        if report is None or not report.is_published:
            return None
        report.record_public_view(viewed_at)
        return copy.deepcopy(report)

    async def report_number_exists(self, report_number: str) -> bool:
        return any(report.report_number == report_number for report in self._reports.values())

    async def list_reports(self, query: ReportQuery, offset: int, limit: int) -> List[InspectionReport]:
        matching = sorted(self._matching(query), key=lambda report: report.created_at, reverse=True)
        return [copy.deepcopy(report) for report in matching[offset:offset + limit]]

    async def count(self, query: ReportQuery) -> int:
        return len(self._matching(query))

    async def delete(self, report_id: UUID) -> bool:
        return self._reports.pop(report_id, None) is not None

    def _find_by_link(self, link: str) -> Optional[InspectionReport]:
        if not link:
            return None
        for report in self._reports.values():
            if report.shareable_link == link:
                return report
        return None

    def _matching(self, query: ReportQuery) -> List[InspectionReport]:
        result = []
        for report in self._reports.values():
            if query.inspector_id is not None and report.inspector_id != query.inspector_id:
                continue
            if query.car_ids is not None and report.car_id not in query.car_ids:
                continue
            if query.is_published is not None and report.is_published != query.is_published:
                continue
            result.append(report)
        return result


class InMemoryCarPartRepository(CarPartRepository):
    """In-memory implementation of car part repository.

    Dict insertion order doubles as the parts' insertion order.
    """

    def __init__(self):
        self._parts: Dict[UUID, CarPart] = {}

    async def save(self, part: CarPart) -> CarPart:
        self._parts[part.id] = copy.deepcopy(part)
        return part

    async def update(self, part: CarPart) -> CarPart:
        if part.id not in self._parts:
            raise ConflictError(f"Car part {part.id} no longer exists")
        self._parts[part.id] = copy.deepcopy(part)
        return part

    async def find_by_id(self, part_id: UUID) -> Optional[CarPart]:
        part = self._parts.get(part_id)
        return copy.deepcopy(part) if part else None

    async def find_by_report(self, report_id: UUID) -> List[CarPart]:
        return [copy.deepcopy(part) for part in self._parts.values()
                if part.inspection_report_id == report_id]

    async def delete(self, part_id: UUID) -> bool:
        return self._parts.pop(part_id, None) is not None

    async def delete_by_report(self, report_id: UUID) -> int:
        doomed = [part_id for part_id, part in self._parts.items()
                  if part.inspection_report_id == report_id]
        for part_id in doomed:
            del self._parts[part_id]
        return len(doomed)


class InMemoryCarRepository(CarRepository):
    """In-memory implementation of car repository."""

    def __init__(self):
        self._cars: Dict[UUID, Car] = {}

    async def save(self, car: Car) -> Car:
        self._cars[car.id] = car
        return car

    async def find_by_id(self, car_id: UUID) -> Optional[Car]:
        return self._cars.get(car_id)

    async def find_by_registration_no(self, registration_no: str) -> Optional[Car]:
        normalized = registration_no.strip().upper()
        for car in self._cars.values():
            if car.registration_no == normalized:
                return car
        return None

    async def find_ids_by_owner(self, owner_id: UUID) -> List[UUID]:
        return [car.id for car in self._cars.values() if car.is_owned_by(owner_id)]


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of user repository."""

    def __init__(self):
        self._users: Dict[UUID, User] = {}
        self._password_hashes: Dict[UUID, str] = {}
        self._login_info: Dict[UUID, Tuple[int, Optional[datetime]]] = {}

    async def save(self, user: User, password_hash: Optional[str] = None) -> User:
        self._users[user.id] = user
        if password_hash is not None:
            self._password_hashes[user.id] = password_hash
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        return self._users.get(user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        normalized = email.lower().strip()
        for user in self._users.values():
            if user.email == normalized:
                return user
        return None

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> bool:
        if user_id not in self._users:
            return False
        self._password_hashes[user_id] = password_hash
        return True

    async def update_login_info(
        self, user_id: UUID, failed_attempts: int = 0, locked_until: Optional[datetime] = None
    ) -> bool:
        if user_id not in self._users:
            return False
        self._login_info[user_id] = (failed_attempts, locked_until)
        return True

    async def record_login(self, user_id: UUID) -> bool:
        user = self._users.get(user_id)
        if not user:
            return False
        user.record_login()
        self._login_info[user_id] = (0, None)
        return True

    async def get_password_hash(self, user_id: UUID) -> Optional[str]:
        return self._password_hashes.get(user_id)

    async def get_failed_attempts(self, user_id: UUID) -> int:
        return self._login_info.get(user_id, (0, None))[0]

    async def get_lockout_expiry(self, user_id: UUID) -> Optional[datetime]:
        return self._login_info.get(user_id, (0, None))[1]


class InMemoryAuthTokenRepository(AuthTokenRepository):
    """Issued tokens kept in process memory; removing one revokes it."""

    def __init__(self):
        self._tokens: Dict[str, AuthToken] = {}

    async def save_token(self, token: AuthToken) -> bool:
        self._tokens[token.token_id] = token
        return True

    async def find_token(self, token_id: str) -> Optional[AuthToken]:
        return self._tokens.get(token_id)

    async def invalidate_token(self, token_id: str) -> bool:
        return self._tokens.pop(token_id, None) is not None

    async def cleanup_expired_tokens(self) -> int:
        expired = [token_id for token_id, token in self._tokens.items() if token.is_expired]
        for token_id in expired:
            del self._tokens[token_id]
        return len(expired)
