"""Unit tests for the car part registry service."""

import pytest
import pytest_asyncio
from uuid import uuid4

from src.car_inspection.application.services.access_policy import ReportAccessPolicy
from src.car_inspection.application.services.car_part_service import CarPartService
from src.car_inspection.domain.entities.car import Car
from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.car_inspection.domain.value_objects.auth import RequesterIdentity, UserRole
from src.car_inspection.domain.value_objects.part_types import PartCategory
from src.car_inspection.infrastructure.repositories.memory_repositories import (
    InMemoryCarPartRepository,
    InMemoryCarRepository,
    InMemoryInspectionReportRepository,
)

# Mark all async tests in this module
pytestmark = pytest.mark.asyncio

INSPECTOR = RequesterIdentity(uuid4(), UserRole.INSPECTOR)
OTHER_INSPECTOR = RequesterIdentity(uuid4(), UserRole.INSPECTOR)
ADMIN = RequesterIdentity(uuid4(), UserRole.ADMIN)
OWNER = RequesterIdentity(uuid4(), UserRole.USER)


def part_fields(**overrides):
    fields = {"category": "engine", "part_name": "Radiator", "condition": "Good", "condition_score": 8}
    fields.update(overrides)
    return fields


class Registry:
    """Service under test plus the repositories behind it."""

    def __init__(self):
        self.reports = InMemoryInspectionReportRepository()
        self.parts = InMemoryCarPartRepository()
        self.cars = InMemoryCarRepository()
        self.service = CarPartService(self.parts, self.reports, ReportAccessPolicy(self.cars))
        self.report = None


@pytest_asyncio.fixture
async def registry():
    registry = Registry()
    car = await registry.cars.save(Car("ABC-123", "Honda", "Civic", 2021, owner_id=OWNER.user_id))
    registry.report = await registry.reports.save(InspectionReport.create(
        car_id=car.id,
        inspector_id=INSPECTOR.user_id,
        report_number="INS-2024-00007",
        fields={"overall_rating": 7, "overall_condition": "Good"}
    ))
    return registry


class TestAddPart:
    """Test cases for adding parts."""

    async def test_add_part(self, registry):
        part = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields())

        assert part.inspection_report_id == registry.report.id
        assert part.inspected_by == INSPECTOR.user_id
        assert await registry.parts.find_by_id(part.id) is not None

    @pytest.mark.parametrize("overrides", [
        {"condition_score": 11},
        {"category": "bogus"},
        {"condition": "Sparkling"},
        {"recommendation": "ignore"},
        {"issues": [{"type": "explosion"}]},
    ])
    async def test_invalid_part_creates_no_record(self, registry, overrides):
        with pytest.raises(ValidationError):
            await registry.service.add_part(registry.report.id, INSPECTOR, part_fields(**overrides))

        assert await registry.parts.find_by_report(registry.report.id) == []

    async def test_missing_report_id(self, registry):
        with pytest.raises(ValidationError):
            await registry.service.add_part(None, INSPECTOR, part_fields())

    async def test_unknown_report(self, registry):
        with pytest.raises(NotFoundError):
            await registry.service.add_part(uuid4(), INSPECTOR, part_fields())

    async def test_only_owner_or_admin(self, registry):
        for requester in (OTHER_INSPECTOR, OWNER):
            with pytest.raises(AuthorizationError):
                await registry.service.add_part(registry.report.id, requester, part_fields())

        part = await registry.service.add_part(registry.report.id, ADMIN, part_fields())
        assert part.inspected_by == ADMIN.user_id


class TestUpdateAndRemovePart:
    """Test cases for editing and deleting parts."""

    async def test_update_part(self, registry):
        part = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields())

        updated = await registry.service.update_part(part.id, INSPECTOR, {
            "condition": "Poor",
            "recommendation": "repair-soon",
        })

        assert updated.condition.value == "Poor"
        assert updated.repair_urgency.value == "high"
        stored = await registry.parts.find_by_id(part.id)
        assert stored.condition.value == "Poor"

    async def test_part_cannot_move_between_reports(self, registry):
        part = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields())

        with pytest.raises(ValidationError):
            await registry.service.update_part(part.id, INSPECTOR, {"inspection_report_id": uuid4()})

        # Echoing the current report is accepted
        unchanged = await registry.service.update_part(
            part.id, INSPECTOR, {"inspection_report_id": str(registry.report.id)}
        )
        assert unchanged.inspection_report_id == registry.report.id

    async def test_update_follows_report_ownership(self, registry):
        part = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields())

        with pytest.raises(AuthorizationError):
            await registry.service.update_part(part.id, OTHER_INSPECTOR, {"notes": "x"})

    async def test_remove_part_deletes_only_that_part(self, registry):
        keep = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields(part_name="Fan"))
        drop = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields(part_name="Hose"))

        await registry.service.remove_part(drop.id, INSPECTOR)

        remaining = await registry.parts.find_by_report(registry.report.id)
        assert [part.id for part in remaining] == [keep.id]

    async def test_remove_unknown_part(self, registry):
        with pytest.raises(NotFoundError):
            await registry.service.remove_part(uuid4(), INSPECTOR)


class TestListParts:
    """Test cases for listing parts."""

    async def test_grouped_by_category_in_declaration_order(self, registry):
        report_id = registry.report.id
        await registry.service.add_part(report_id, INSPECTOR, part_fields(category="wheels", part_name="Rim"))
        await registry.service.add_part(report_id, INSPECTOR, part_fields(category="exterior", part_name="Hood"))
        await registry.service.add_part(report_id, INSPECTOR, part_fields(category="wheels", part_name="Tyre"))
        await registry.service.add_part(report_id, INSPECTOR, part_fields(category="engine", part_name="Belt"))

        grouped = await registry.service.list_parts(report_id)

        assert list(grouped) == [PartCategory.EXTERIOR, PartCategory.ENGINE, PartCategory.WHEELS]
        assert [part.part_name for part in grouped[PartCategory.WHEELS]] == ["Rim", "Tyre"]

    async def test_empty_report(self, registry):
        assert await registry.service.list_parts(registry.report.id) == {}

    async def test_unknown_report(self, registry):
        with pytest.raises(NotFoundError):
            await registry.service.list_parts(uuid4())

    async def test_read_rule_matches_report(self, registry):
        part = await registry.service.add_part(registry.report.id, INSPECTOR, part_fields())

        assert (await registry.service.get_part(part.id, OWNER)).id == part.id
        assert await registry.service.list_parts(registry.report.id, OWNER)

        with pytest.raises(AuthorizationError):
            await registry.service.get_part(part.id, OTHER_INSPECTOR)
        with pytest.raises(AuthorizationError):
            await registry.service.list_parts(registry.report.id, OTHER_INSPECTOR)
