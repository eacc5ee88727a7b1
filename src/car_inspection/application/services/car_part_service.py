"""Car part registry scoped to inspection reports."""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING
from uuid import UUID

from src.car_inspection.domain.entities.car_part import CarPart
from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.exceptions import ConflictError, NotFoundError, ValidationError
from src.car_inspection.domain.value_objects.auth import RequesterIdentity
from src.car_inspection.domain.value_objects.part_types import PartCategory
from src.car_inspection.infrastructure.logging import (
    get_logger,
    log_business_rule_violation,
    log_with_extra,
)

if TYPE_CHECKING:
    from src.car_inspection.application.ports.repositories import (
        CarPartRepository,
        InspectionReportRepository,
    )
    from src.car_inspection.application.services.access_policy import ReportAccessPolicy


def group_parts_by_category(parts: Iterable[CarPart]) -> "OrderedDict[PartCategory, List[CarPart]]":
    """Group parts by category in category declaration order.

    Parts keep their relative order inside each group. Categories without
    parts are left out.
    """
    grouped: "OrderedDict[PartCategory, List[CarPart]]" = OrderedDict()
    parts = list(parts)
    for category in PartCategory:
        members = [part for part in parts if part.category == category]
        if members:
            grouped[category] = members
    return grouped


class CarPartService:
    """Service for adding, editing and listing car parts of a report."""

    def __init__(
        self,
        car_part_repository: "CarPartRepository",
        report_repository: "InspectionReportRepository",
        access_policy: "ReportAccessPolicy"
    ):
        self._car_part_repository = car_part_repository
        self._report_repository = report_repository
        self._access_policy = access_policy
        self._logger = get_logger(__name__)

    async def add_part(
        self,
        report_id: Optional[UUID],
        requester: RequesterIdentity,
        fields: Dict[str, Any]
    ) -> CarPart:
        """Attach a new part record to a report.

        Args:
            report_id: Owning inspection report
            requester: Caller identity
            fields: Raw snake_case part fields

        Returns:
            The stored car part

        Raises:
            ValidationError: If report_id is missing or a field is invalid
            NotFoundError: If the report does not exist
            AuthorizationError: If requester is neither report owner nor admin
        """
        if report_id is None:
            raise ValidationError("inspectionReportId is required")

        report = await self._get_report(report_id)
        self._access_policy.ensure_can_modify(report, requester, "add parts to")

        try:
            part = CarPart.create(report.id, fields, inspected_by=requester.user_id)
        except ValidationError as e:
            log_business_rule_violation(
                self._logger,
                "invalid_car_part",
                str(e),
                report_id=str(report.id)
            )
            raise

        saved = await self._car_part_repository.save(part)
        log_with_extra(
            self._logger,
            logging.INFO,
            f"Car part '{saved.part_name}' added to report {report.report_number}",
            part_id=str(saved.id),
            report_id=str(report.id),
            category=saved.category.value,
            condition=saved.condition.value
        )
        return saved

    async def update_part(
        self,
        part_id: UUID,
        requester: RequesterIdentity,
        patch: Dict[str, Any]
    ) -> CarPart:
        """Apply a partial update to a part; its report cannot change.

        Raises:
            NotFoundError: If the part or its report does not exist
            AuthorizationError: If requester is neither report owner nor admin
            ValidationError: If the patch is invalid or moves the part
        """
        part = await self._get_part(part_id)
        report = await self._get_report(part.inspection_report_id)
        self._access_policy.ensure_can_modify(report, requester, "update parts of")

        if "inspection_report_id" in patch and str(patch["inspection_report_id"]) == str(report.id):
            patch = {name: value for name, value in patch.items() if name != "inspection_report_id"}

        changed = part.apply_patch(patch)
        if not changed:
            return part

        updated = await self._car_part_repository.update(part)
        log_with_extra(
            self._logger,
            logging.INFO,
            f"Car part {updated.id} updated",
            part_id=str(updated.id),
            report_id=str(report.id),
            changed_fields=sorted(changed)
        )
        return updated

    async def remove_part(self, part_id: UUID, requester: RequesterIdentity) -> None:
        """Delete one part. Sibling parts and the report are untouched."""
        part = await self._get_part(part_id)
        report = await self._get_report(part.inspection_report_id)
        self._access_policy.ensure_can_modify(report, requester, "remove parts from")

        if not await self._car_part_repository.delete(part.id):
            raise ConflictError(f"Car part {part_id} was deleted concurrently")

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Car part {part.id} removed",
            part_id=str(part.id),
            report_id=str(report.id)
        )

    async def list_parts(
        self,
        report_id: UUID,
        requester: Optional[RequesterIdentity] = None
    ) -> "OrderedDict[PartCategory, List[CarPart]]":
        """Parts of a report grouped by category.

        Args:
            report_id: Owning report
            requester: When given, must be allowed to read the report

        Raises:
            NotFoundError: If the report does not exist
        """
        report = await self._get_report(report_id)
        if requester is not None:
            await self._access_policy.ensure_can_view(report, requester)
        parts = await self._car_part_repository.find_by_report(report.id)
        return group_parts_by_category(parts)

    async def get_part(self, part_id: UUID, requester: RequesterIdentity) -> CarPart:
        """Read one part, with the same read rule as its report."""
        part = await self._get_part(part_id)
        report = await self._get_report(part.inspection_report_id)
        await self._access_policy.ensure_can_view(report, requester)
        return part

    async def _get_part(self, part_id: UUID) -> CarPart:
        part = await self._car_part_repository.find_by_id(part_id)
        if not part:
            raise NotFoundError(f"Car part with ID {part_id} not found")
        return part

    async def _get_report(self, report_id: UUID) -> InspectionReport:
        report = await self._report_repository.find_by_id(report_id)
        if not report:
            raise NotFoundError(f"Inspection report with ID {report_id} not found")
        return report
