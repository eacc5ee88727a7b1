"""Unit tests for the InspectionReport entity."""

import pytest
from datetime import datetime
from uuid import uuid4

from src.car_inspection.domain.entities.inspection_report import InspectionReport
from src.car_inspection.domain.exceptions import ValidationError
from src.car_inspection.domain.value_objects.assessment import OverallCondition, Recommendation


def make_report(**fields) -> InspectionReport:
    initial = {"overall_rating": 8.5, "overall_condition": "Good"}
    initial.update(fields)
    return InspectionReport.create(
        car_id=uuid4(),
        inspector_id=uuid4(),
        report_number="INS-2024-00042",
        fields=initial
    )


def link_factory(*links):
    """Return a factory handing out the given links in order."""
    remaining = list(links)
    return lambda: remaining.pop(0)


class TestReportCreation:
    """Test cases for creating reports."""

    def test_create_draft(self):
        report = make_report()

        assert report.overall_rating == 8.5
        assert report.overall_condition == OverallCondition.GOOD
        assert report.is_published is False
        assert report.shareable_link is None
        assert report.view_count == 0
        assert report.published_at is None
        assert report.inspection_summary.total_checkpoints == 0
        assert report.inspection_date is not None

    def test_create_with_nested_fields(self):
        report = make_report(
            overall_assessment={
                "recommendation": "Recommended with Repairs",
                "estimated_market_value": 3500000,
                "major_issues": [{"category": "Engine", "issue": "Oil leak", "severity": "Major",
                                  "estimated_cost": 25000}],
            },
            car_images=[{"url": "https://img.example.com/front.jpg", "category": "front", "is_primary": True}],
            checkpoints=[
                {"section": "exterior", "name": "Paint", "condition": "Good"},
                {"section": "engine", "name": "Oil Leak", "condition": "Leaking"},
            ],
            inspection_location={"address": " 12 Mall Road ", "city": "Lahore"},
        )

        assert report.overall_assessment.recommendation == Recommendation.RECOMMENDED_WITH_REPAIRS
        assert report.overall_assessment.currency == "PKR"
        assert report.overall_assessment.total_major_issue_cost == 25000
        assert report.primary_image.url == "https://img.example.com/front.jpg"
        assert report.inspection_summary.passed_checkpoints == 1
        assert report.inspection_summary.failed_checkpoints == 1
        assert report.inspection_location.address == "12 Mall Road"

    @pytest.mark.parametrize("rating", [-0.5, 10.5, "eleven", True])
    def test_rating_outside_range(self, rating):
        with pytest.raises(ValidationError):
            make_report(overall_rating=rating)

    def test_rating_bounds_are_inclusive(self):
        assert make_report(overall_rating=0).overall_rating == 0
        assert make_report(overall_rating=10).overall_rating == 10

    def test_unknown_condition(self):
        with pytest.raises(ValidationError):
            make_report(overall_condition="Mint")

    def test_unknown_recommendation(self):
        with pytest.raises(ValidationError):
            make_report(overall_assessment={"recommendation": "Buy it"})

    def test_rating_is_required(self):
        with pytest.raises(ValidationError):
            InspectionReport.create(uuid4(), uuid4(), "INS-2024-00001", {"overall_condition": "Good"})

    def test_duplicate_checkpoints_rejected(self):
        with pytest.raises(ValidationError):
            make_report(checkpoints=[
                {"section": "exterior", "name": "Paint", "condition": "Good"},
                {"section": "exterior", "name": "Paint ", "condition": "Fair"},
            ])

    def test_misspelled_checkpoint_condition_rejected(self):
        with pytest.raises(ValidationError):
            make_report(checkpoints=[{"section": "exterior", "name": "Paint", "condition": "Excelent"}])

    def test_patch_with_misspelled_condition_changes_nothing(self):
        report = make_report(checkpoints=[{"section": "brakes", "name": "Pads", "condition": "Good"}])

        with pytest.raises(ValidationError):
            report.apply_patch({"checkpoints": [{"section": "brakes", "name": "Pads", "condition": "Godo"}]})

        assert report.inspection_summary.passed_checkpoints == 1

    def test_system_fields_cannot_be_set_at_creation(self):
        with pytest.raises(ValidationError):
            make_report(view_count=10)

    def test_published_report_requires_link(self):
        with pytest.raises(ValidationError):
            InspectionReport(uuid4(), uuid4(), "INS-2024-00001", 5, OverallCondition.FAIR, is_published=True)


class TestReportPatch:
    """Test cases for partial updates."""

    def test_patch_editable_fields(self):
        report = make_report()

        changed = report.apply_patch({"overall_rating": 6, "overall_condition": "Fair"})

        assert changed == {"overall_rating", "overall_condition"}
        assert report.overall_rating == 6
        assert report.overall_condition == OverallCondition.FAIR

    def test_patch_recomputes_summary(self):
        report = make_report(checkpoints=[{"section": "brakes", "name": "Pads", "condition": "Good"}])

        report.apply_patch({"checkpoints": [
            {"section": "brakes", "name": "Pads", "condition": "Worn"},
            {"section": "brakes", "name": "Discs", "condition": "Scored"},
        ]})

        assert report.inspection_summary.total_checkpoints == 2
        assert report.inspection_summary.warning_checkpoints == 1
        assert report.inspection_summary.failed_checkpoints == 1

    @pytest.mark.parametrize("field", ["report_number", "car", "car_id", "inspector", "inspector_id"])
    def test_identity_changes_rejected(self, field):
        report = make_report()
        value = "INS-2024-99999" if field == "report_number" else uuid4()

        with pytest.raises(ValidationError):
            report.apply_patch({field: value})

    def test_restated_identity_is_ignored(self):
        report = make_report()

        changed = report.apply_patch({
            "report_number": report.report_number,
            "car": str(report.car_id),
            "inspector_id": report.inspector_id,
            "overall_rating": 7,
        })

        assert changed == {"overall_rating"}

    @pytest.mark.parametrize("field", ["shareable_link", "view_count", "is_published", "created_at"])
    def test_system_fields_rejected(self, field):
        report = make_report()

        with pytest.raises(ValidationError):
            report.apply_patch({field: "x"})

    def test_invalid_patch_changes_nothing(self):
        report = make_report()

        with pytest.raises(ValidationError):
            report.apply_patch({"overall_condition": "Fair", "overall_rating": 42})

        assert report.overall_condition == OverallCondition.GOOD
        assert report.overall_rating == 8.5

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            make_report().apply_patch({"colour": "red"})


class TestReportPublishing:
    """Test cases for the publish lifecycle."""

    def test_first_publish_mints_link(self):
        report = make_report()

        minted = report.publish(link_factory("a" * 64))

        assert minted is True
        assert report.is_published is True
        assert report.shareable_link == "a" * 64
        assert report.published_at is not None

    def test_publish_is_idempotent(self):
        report = make_report()
        factory = link_factory("a" * 64, "b" * 64)

        report.publish(factory)
        published_at = report.published_at
        minted = report.publish(factory)

        assert minted is False
        assert report.shareable_link == "a" * 64
        assert report.published_at == published_at

    def test_unpublish_keeps_link(self):
        report = make_report()
        report.publish(link_factory("a" * 64, "b" * 64))

        report.unpublish()

        assert report.is_published is False
        assert report.shareable_link == "a" * 64
        assert report.has_been_published is True

    def test_republish_reuses_link(self):
        report = make_report()
        factory = link_factory("a" * 64, "b" * 64)
        report.publish(factory)
        report.unpublish()

        minted = report.publish(factory)

        assert minted is False
        assert report.shareable_link == "a" * 64

    def test_views_only_on_published_reports(self):
        report = make_report()

        with pytest.raises(ValidationError):
            report.record_public_view()

        report.publish(link_factory("a" * 64))
        viewed_at = datetime(2024, 5, 1, 12, 0)
        report.record_public_view(viewed_at)

        assert report.view_count == 1
        assert report.last_viewed_at == viewed_at

    def test_is_owned_by(self):
        report = make_report()

        assert report.is_owned_by(report.inspector_id)
        assert not report.is_owned_by(uuid4())
