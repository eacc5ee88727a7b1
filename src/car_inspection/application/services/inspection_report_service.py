"""Inspection report lifecycle: creation, edits, publishing and public reads."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING
from uuid import UUID

from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.exceptions import ConflictError, NotFoundError, ValidationError
from src.car_inspection.domain.value_objects.auth import RequesterIdentity
from src.car_inspection.domain.value_objects.report_identifiers import (
    ReportNumberGenerator,
    ShareableLinkGenerator,
)
from src.car_inspection.infrastructure.logging import (
    get_logger,
    log_business_rule_violation,
    log_with_extra,
    mask_token,
)

if TYPE_CHECKING:
    from src.car_inspection.application.ports.repositories import (
        CarPartRepository,
        CarRepository,
        InspectionReportRepository,
    )
    from src.car_inspection.application.services.access_policy import ReportAccessPolicy


REPORT_STATUS_FILTERS = {"published": True, "draft": False}


@dataclass(frozen=True)
class ReportPage:
    """One page of a report listing."""
    items: List[InspectionReport]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class InspectionReportService:
    """Service owning the inspection report lifecycle."""

    MAX_REPORT_NUMBER_ATTEMPTS = 10
    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        report_repository: "InspectionReportRepository",
        car_part_repository: "CarPartRepository",
        car_repository: "CarRepository",
        access_policy: "ReportAccessPolicy",
        report_number_factory: Callable[[], str] = ReportNumberGenerator.generate,
        link_factory: Callable[[], str] = ShareableLinkGenerator.generate
    ):
        self._report_repository = report_repository
        self._car_part_repository = car_part_repository
        self._car_repository = car_repository
        self._access_policy = access_policy
        self._report_number_factory = report_number_factory
        self._link_factory = link_factory
        self._logger = get_logger(__name__)

    async def create_report(
        self,
        requester: RequesterIdentity,
        car_id: Optional[UUID],
        fields: Dict[str, Any]
    ) -> InspectionReport:
        """Create a draft report for a car.

        Args:
            requester: Inspector or admin creating the report
            car_id: Car being inspected
            fields: Initial snake_case report fields

        Returns:
            The stored draft report

        Raises:
            AuthorizationError: If requester is not an inspector or admin
            ValidationError: If car is missing or a field is invalid
            NotFoundError: If the car does not exist
            ConflictError: If no free report number could be found
        """
        self._access_policy.ensure_can_create(requester)
        if car_id is None:
            raise ValidationError("A car is required")

        car = await self._car_repository.find_by_id(car_id)
        if not car:
            self._logger.warning(f"Car {car_id} not found when creating report")
            raise NotFoundError(f"Car with ID {car_id} not found")

        for _ in range(self.MAX_REPORT_NUMBER_ATTEMPTS):
            report = InspectionReport.create(
                car_id=car.id,
                inspector_id=requester.user_id,
                report_number=await self._next_report_number(),
                fields=fields
            )
            try:
                saved = await self._report_repository.save(report)
                break
            except ConflictError:
                # Another create took the number between the check and the insert
                self._logger.warning(f"Report number {report.report_number} was taken concurrently, retrying")
        else:
            raise ConflictError("Could not allocate a unique report number")

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Inspection report {saved.report_number} created",
            report_id=str(saved.id),
            report_number=saved.report_number,
            car_id=str(car.id),
            inspector_id=str(requester.user_id),
            total_checkpoints=saved.inspection_summary.total_checkpoints
        )
        return saved

    async def update_report(
        self,
        report_id: UUID,
        requester: RequesterIdentity,
        patch: Dict[str, Any]
    ) -> InspectionReport:
        """Apply a partial update to a report.

        Raises:
            NotFoundError: If the report does not exist
            AuthorizationError: If requester is neither owner nor admin
            ValidationError: If the patch changes car, inspector, report number
                or system fields, or a non-admin edits a published report
            ConflictError: If the report was deleted while being updated
        """
        report = await self._get_existing(report_id)
        self._access_policy.ensure_can_modify(report, requester, "update")

        if report.is_published and not requester.is_admin:
            log_business_rule_violation(
                self._logger,
                "edit_published_report",
                f"User {requester.user_id} tried to edit published report {report.id}",
                report_id=str(report.id),
                user_id=str(requester.user_id)
            )
            raise ValidationError("Cannot update a published report")

        try:
            changed = report.apply_patch(patch)
        except ValidationError as e:
            log_business_rule_violation(
                self._logger,
                "invalid_report_patch",
                str(e),
                report_id=str(report.id),
                fields=sorted(patch)
            )
            raise

        if not changed:
            return report

        updated = await self._report_repository.update(report)
        log_with_extra(
            self._logger,
            logging.INFO,
            f"Inspection report {updated.report_number} updated",
            report_id=str(updated.id),
            changed_fields=sorted(changed),
            user_id=str(requester.user_id)
        )
        return updated

    async def publish_report(self, report_id: UUID, requester: RequesterIdentity) -> InspectionReport:
        """Publish a report, minting its shareable link on the first publish.

        Repeated calls leave the existing link untouched.
        """
        report = await self._get_existing(report_id)
        self._access_policy.ensure_can_modify(report, requester, "publish")

        was_published = report.is_published
        minted = report.publish(self._link_factory)
        if minted or not was_published:
            report = await self._report_repository.update(report)

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Inspection report {report.report_number} published",
            report_id=str(report.id),
            link_minted=minted,
            already_published=was_published,
            shareable_link=mask_token(report.shareable_link)
        )
        return report

    async def unpublish_report(self, report_id: UUID, requester: RequesterIdentity) -> InspectionReport:
        """Hide a report from public readers. Its shareable link is retained."""
        report = await self._get_existing(report_id)
        self._access_policy.ensure_can_modify(report, requester, "unpublish")

        if report.is_published:
            report.unpublish()
            report = await self._report_repository.update(report)

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Inspection report {report.report_number} unpublished",
            report_id=str(report.id)
        )
        return report

    async def get_by_shareable_link(self, link: str) -> InspectionReport:
        """Public read of a published report, counting one view.

        Raises:
            NotFoundError: If no published report has this link. Unpublished
                reports are reported exactly like unknown links.
        """
        if not ShareableLinkGenerator.looks_valid(link):
            raise NotFoundError("Inspection report not found")

        report = await self._report_repository.increment_view_count(link, datetime.utcnow())
        if report is None:
            self._logger.info(f"Public read refused for link {mask_token(link)}")
            raise NotFoundError("Inspection report not found")

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Public view of report {report.report_number}",
            report_id=str(report.id),
            view_count=report.view_count
        )
        return report

    async def get_published_report(self, link: str) -> InspectionReport:
        """Published report by link without counting a view (PDF, QR code)."""
        if not ShareableLinkGenerator.looks_valid(link):
            raise NotFoundError("Inspection report not found")
        report = await self._report_repository.find_by_shareable_link(link)
        if report is None or not report.is_published:
            raise NotFoundError("Inspection report not found")
        return report

    async def get_report(self, report_id: UUID, requester: RequesterIdentity) -> InspectionReport:
        """Read one report as an authenticated user."""
        report = await self._get_existing(report_id)
        await self._access_policy.ensure_can_view(report, requester)
        return report

    async def list_reports(
        self,
        requester: RequesterIdentity,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> ReportPage:
        """List reports visible to requester, newest first.

        Args:
            requester: Caller identity; decides which reports are visible
            status: Optional "published" or "draft" filter
            page: 1-based page number
            limit: Page size, at most MAX_PAGE_SIZE

        Raises:
            ValidationError: For an unknown status or bad paging values
        """
        if status is not None and status not in REPORT_STATUS_FILTERS:
            raise ValidationError("status must be 'published' or 'draft'")
        if page < 1:
            raise ValidationError("page must be at least 1")
        if limit < 1 or limit > self.MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {self.MAX_PAGE_SIZE}")

        query = await self._access_policy.scope_query(
            requester, REPORT_STATUS_FILTERS.get(status) if status else None
        )
        total = await self._report_repository.count(query)
        items = await self._report_repository.list_reports(query, offset=(page - 1) * limit, limit=limit)
        return ReportPage(items=items, total=total, page=page, limit=limit)

    async def delete_report(self, report_id: UUID, requester: RequesterIdentity) -> int:
        """Delete a report and all its car parts.

        Returns:
            Number of car parts removed with the report
        """
        report = await self._get_existing(report_id)
        self._access_policy.ensure_can_modify(report, requester, "delete")

        removed_parts = await self._car_part_repository.delete_by_report(report.id)
        deleted = await self._report_repository.delete(report.id)
        if not deleted:
            raise ConflictError(f"Inspection report {report_id} was deleted concurrently")

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Inspection report {report.report_number} deleted",
            report_id=str(report.id),
            removed_parts=removed_parts,
            user_id=str(requester.user_id)
        )
        return removed_parts

    async def _get_existing(self, report_id: UUID) -> InspectionReport:
        report = await self._report_repository.find_by_id(report_id)
        if not report:
            self._logger.info(f"Inspection report {report_id} not found")
            raise NotFoundError(f"Inspection report with ID {report_id} not found")
        return report

    async def _next_report_number(self) -> str:
        for _ in range(self.MAX_REPORT_NUMBER_ATTEMPTS):
            candidate = self._report_number_factory()
            if not await self._report_repository.report_number_exists(candidate):
                return candidate
            self._logger.debug(f"Report number {candidate} already taken, retrying")

        log_business_rule_violation(
            self._logger,
            "report_number_exhausted",
            f"No free report number after {self.MAX_REPORT_NUMBER_ATTEMPTS} attempts"
        )
        raise ConflictError("Could not allocate a unique report number")
