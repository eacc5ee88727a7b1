"""Ownership and role rules shared by the report and car part services."""

from typing import Optional, TYPE_CHECKING

from src.car_inspection.application.ports.repositories import ReportQuery
from src.car_inspection.domain.exceptions import AuthorizationError
from src.car_inspection.domain.value_objects.auth import RequesterIdentity, UserRole
from src.car_inspection.infrastructure.logging import get_logger, log_business_rule_violation

if TYPE_CHECKING:
    from src.car_inspection.application.ports.repositories import CarRepository
    from src.car_inspection.domain.entities.inspection_report import InspectionReport


class ReportAccessPolicy:
    """Decides who may create, modify and read inspection reports.

    Car parts are governed through their owning report, so both services
    consult this one policy.
    """

    WRITER_ROLES = frozenset({UserRole.ADMIN, UserRole.INSPECTOR})

    def __init__(self, car_repository: "CarRepository"):
        self._car_repository = car_repository
        self._logger = get_logger(__name__)

    def ensure_can_create(self, requester: RequesterIdentity) -> None:
        """Only admins and inspectors create reports.

        Raises:
            AuthorizationError: For any other role
        """
        if requester.role not in self.WRITER_ROLES:
            self._deny("create_report_role", f"Role {requester.role.value} cannot create reports", requester)
            raise AuthorizationError("Only inspectors and admins can create inspection reports")

    def can_modify(self, report: "InspectionReport", requester: RequesterIdentity) -> bool:
        if requester.is_admin:
            return True
        return requester.role == UserRole.INSPECTOR and report.is_owned_by(requester.user_id)

    def ensure_can_modify(self, report: "InspectionReport", requester: RequesterIdentity, action: str) -> None:
        """Owner inspector or admin only.

        Args:
            report: Report being changed (or whose parts are being changed)
            requester: Caller identity
            action: Short description used in the error message and logs

        Raises:
            AuthorizationError: If requester is neither owner nor admin
        """
        if not self.can_modify(report, requester):
            self._deny(
                "report_ownership",
                f"User {requester.user_id} cannot {action} report {report.id}",
                requester,
                report_id=str(report.id),
            )
            raise AuthorizationError(f"Not authorized to {action} this inspection report")

    async def can_view(self, report: "InspectionReport", requester: RequesterIdentity) -> bool:
        """Admins see everything, inspectors their own reports, users reports on their cars."""
        if self.can_modify(report, requester):
            return True
        if requester.role == UserRole.USER:
            car = await self._car_repository.find_by_id(report.car_id)
            return car is not None and car.is_owned_by(requester.user_id)
        return False

    async def ensure_can_view(self, report: "InspectionReport", requester: RequesterIdentity) -> None:
        if not await self.can_view(report, requester):
            self._deny(
                "report_visibility",
                f"User {requester.user_id} cannot read report {report.id}",
                requester,
                report_id=str(report.id),
            )
            raise AuthorizationError("Not authorized to view this inspection report")

    async def scope_query(self, requester: RequesterIdentity, is_published: Optional[bool] = None) -> ReportQuery:
        """Restrict a listing to the reports requester may read."""
        if requester.is_admin:
            return ReportQuery(is_published=is_published)
        if requester.role == UserRole.INSPECTOR:
            return ReportQuery(inspector_id=requester.user_id, is_published=is_published)
        car_ids = await self._car_repository.find_ids_by_owner(requester.user_id)
        return ReportQuery(car_ids=tuple(car_ids), is_published=is_published)

    def _deny(self, rule: str, details: str, requester: RequesterIdentity, **extra) -> None:
        log_business_rule_violation(
            self._logger,
            rule,
            details,
            user_id=str(requester.user_id),
            role=requester.role.value,
            **extra
        )
