"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.car_inspection.domain.entities.car import Car
    from src.car_inspection.domain.entities.car_part import CarPart
    from src.car_inspection.domain.entities.inspection_report import InspectionReport
    from src.car_inspection.domain.entities.user import User
    from src.car_inspection.domain.value_objects.auth import AuthToken


@dataclass(frozen=True)
class ReportQuery:
    """Filter for listing reports. None means no restriction on that field."""
    inspector_id: Optional[UUID] = None
    car_ids: Optional[Sequence[UUID]] = None
    is_published: Optional[bool] = None


class InspectionReportRepository(ABC):
    """Port interface for inspection report repository."""

    @abstractmethod
    async def save(self, report: "InspectionReport") -> "InspectionReport":
        """Insert a new report."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, report: "InspectionReport") -> "InspectionReport":
        """Persist changes to an existing report.

        Raises:
            ConflictError: If the report no longer exists
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, report_id: UUID) -> Optional["InspectionReport"]:
        """Find report by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_shareable_link(self, link: str) -> Optional["InspectionReport"]:
        """Find report by shareable link regardless of its published state."""
        raise NotImplementedError

    @abstractmethod
    async def increment_view_count(
        self, link: str, viewed_at: datetime
    ) -> Optional["InspectionReport"]:
        """Atomically count one public view of a published report.

        Returns:
            The report after the increment, or None when no published report
            has this link (nothing is changed in that case)
        """
        raise NotImplementedError

    @abstractmethod
    async def report_number_exists(self, report_number: str) -> bool:
        """Check if a report number is already taken."""
        raise NotImplementedError

    @abstractmethod
    async def list_reports(self, query: ReportQuery, offset: int, limit: int) -> List["InspectionReport"]:
        """List reports matching query, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def count(self, query: ReportQuery) -> int:
        """Count reports matching query."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, report_id: UUID) -> bool:
        """Delete a report by ID."""
        raise NotImplementedError


class CarPartRepository(ABC):
    """Port interface for car part repository."""

    @abstractmethod
    async def save(self, part: "CarPart") -> "CarPart":
        """Insert a new car part."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, part: "CarPart") -> "CarPart":
        """Persist changes to an existing car part.

        Raises:
            ConflictError: If the part no longer exists
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, part_id: UUID) -> Optional["CarPart"]:
        """Find car part by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_report(self, report_id: UUID) -> List["CarPart"]:
        """Find all parts of a report in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, part_id: UUID) -> bool:
        """Delete a car part by ID."""
        raise NotImplementedError

    @abstractmethod
    async def delete_by_report(self, report_id: UUID) -> int:
        """Delete every part of a report and return how many were removed."""
        raise NotImplementedError


class CarRepository(ABC):
    """Port interface for car repository."""

    @abstractmethod
    async def save(self, car: "Car") -> "Car":
        """Save a car."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, car_id: UUID) -> Optional["Car"]:
        """Find car by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_registration_no(self, registration_no: str) -> Optional["Car"]:
        """Find car by registration number."""
        raise NotImplementedError

    @abstractmethod
    async def find_ids_by_owner(self, owner_id: UUID) -> List[UUID]:
        """IDs of cars owned by a user."""
        raise NotImplementedError


class UserRepository(ABC):
    """Port interface for user repository."""

    @abstractmethod
    async def save(self, user: "User", password_hash: Optional[str] = None) -> "User":
        """Save a user, optionally setting the password hash."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional["User"]:
        """Find user by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional["User"]:
        """Find user by email."""
        raise NotImplementedError

    @abstractmethod
    async def update_password_hash(self, user_id: UUID, password_hash: str) -> bool:
        """Update user password hash."""
        raise NotImplementedError

    @abstractmethod
    async def update_login_info(
        self, user_id: UUID, failed_attempts: int = 0, locked_until: Optional[datetime] = None
    ) -> bool:
        """Update failed login counter and lockout expiry."""
        raise NotImplementedError

    @abstractmethod
    async def record_login(self, user_id: UUID) -> bool:
        """Record successful login."""
        raise NotImplementedError

    @abstractmethod
    async def get_password_hash(self, user_id: UUID) -> Optional[str]:
        """Get password hash for user."""
        raise NotImplementedError

    @abstractmethod
    async def get_failed_attempts(self, user_id: UUID) -> int:
        """Get number of failed login attempts."""
        raise NotImplementedError

    @abstractmethod
    async def get_lockout_expiry(self, user_id: UUID) -> Optional[datetime]:
        """Get account lockout expiry time."""
        raise NotImplementedError


class AuthTokenRepository(ABC):
    """Port interface for issued token bookkeeping (revocation)."""

    @abstractmethod
    async def save_token(self, token: "AuthToken") -> bool:
        """Remember an issued token."""
        raise NotImplementedError

    @abstractmethod
    async def find_token(self, token_id: str) -> Optional["AuthToken"]:
        """Find a live token by its ID."""
        raise NotImplementedError

    @abstractmethod
    async def invalidate_token(self, token_id: str) -> bool:
        """Revoke a token."""
        raise NotImplementedError

    @abstractmethod
    async def cleanup_expired_tokens(self) -> int:
        """Forget expired tokens."""
        raise NotImplementedError
