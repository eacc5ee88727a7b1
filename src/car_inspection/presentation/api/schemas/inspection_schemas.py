"""Pydantic schemas for inspection report API requests and responses.

Bodies use camelCase on the wire; snake_case names are accepted too. Values
that the domain validates (enumerations, rating range) are kept as plain
types here so that the domain reports them as validation errors.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ....domain.entities.car_part import CarPart
from ....domain.entities.inspection_report import InspectionReport
from ....domain.value_objects.part_types import PartCategory
from .car_part_schemas import CarPartResponse, part_to_response


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
    """Request base rejecting unknown fields."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_fields(self) -> Dict[str, Any]:
        """Snake_case mapping of the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# Nested payloads

class MajorIssueSchema(CamelModel):
    category: str = ""
    issue: str = ""
    severity: Optional[str] = None
    repair_urgency: Optional[str] = None
    estimated_cost: Optional[float] = None


class OverallAssessmentSchema(CamelModel):
    recommendation: Optional[str] = None
    estimated_market_value: Optional[float] = None
    estimated_repair_cost: Optional[float] = None
    currency: str = "PKR"
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    major_issues: List[MajorIssueSchema] = Field(default_factory=list)
    inspector_notes: str = ""
    disclaimers: List[str] = Field(default_factory=list)


class CarImageSchema(CamelModel):
    url: str
    category: Optional[str] = None
    caption: str = ""
    is_primary: bool = False


class CheckpointSchema(CamelModel):
    section: str
    name: str
    condition: Optional[str] = "N/A"
    issues: List[str] = Field(default_factory=list)
    notes: str = ""


class InspectionLocationSchema(CamelModel):
    address: str = ""
    city: str = ""


class InspectionSummarySchema(CamelModel):
    total_checkpoints: int
    passed_checkpoints: int
    failed_checkpoints: int
    warning_checkpoints: int
    not_applicable_checkpoints: int


# Requests

class ReportFieldsRequest(RequestModel):
    """Fields an inspector fills in on a report."""
    inspection_date: Optional[datetime] = None
    overall_rating: Optional[float] = None
    overall_condition: Optional[str] = None
    overall_assessment: Optional[OverallAssessmentSchema] = None
    car_images: Optional[List[CarImageSchema]] = None
    checkpoints: Optional[List[CheckpointSchema]] = None
    inspection_location: Optional[InspectionLocationSchema] = None


class CreateReportRequest(ReportFieldsRequest):
    """Request model for creating a draft report."""
    car_id: Optional[UUID] = Field(
        None,
        validation_alias=AliasChoices("carId", "car_id", "car"),
        description="Car being inspected"
    )

    def to_fields(self) -> Dict[str, Any]:
        fields = super().to_fields()
        fields.pop("car_id", None)
        return fields


class UpdateReportRequest(ReportFieldsRequest):
    """Partial update of a report.

    Identity and system fields are listed so they reach the domain, which
    rejects any attempt to change them.
    """
    id: Optional[Any] = None
    report_number: Optional[Any] = None
    car: Optional[Any] = None
    car_id: Optional[Any] = None
    inspector: Optional[Any] = None
    inspector_id: Optional[Any] = None
    is_published: Optional[Any] = None
    shareable_link: Optional[Any] = None
    view_count: Optional[Any] = None
    published_at: Optional[Any] = None
    last_viewed_at: Optional[Any] = None
    inspection_summary: Optional[Any] = None
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None


# Responses

class ReportResponse(CamelModel):
    """Response model for an inspection report."""
    id: UUID
    report_number: str
    car_id: UUID
    inspector_id: UUID
    inspection_date: datetime
    overall_rating: float
    overall_condition: str
    overall_assessment: Optional[OverallAssessmentSchema] = None
    car_images: List[CarImageSchema]
    checkpoints: List[CheckpointSchema]
    inspection_summary: InspectionSummarySchema
    inspection_location: Optional[InspectionLocationSchema] = None
    is_published: bool
    shareable_link: Optional[str] = None
    published_at: Optional[datetime] = None
    view_count: int
    last_viewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PublicReportResponse(ReportResponse):
    """Published report as served through its shareable link."""
    car_parts: Dict[str, List[CarPartResponse]] = Field(default_factory=dict)


class ReportListResponse(CamelModel):
    items: List[ReportResponse]
    total: int
    page: int
    limit: int
    pages: int


class PublishResponse(CamelModel):
    report: ReportResponse
    shareable_link: Optional[str] = None
    public_url: Optional[str] = None


class DeleteReportResponse(CamelModel):
    message: str
    deleted_parts: int


def _report_payload(report: InspectionReport) -> Dict[str, Any]:
    assessment = report.overall_assessment
    location = report.inspection_location
    return {
        "id": report.id,
        "report_number": report.report_number,
        "car_id": report.car_id,
        "inspector_id": report.inspector_id,
        "inspection_date": report.inspection_date,
        "overall_rating": report.overall_rating,
        "overall_condition": report.overall_condition.value,
        "overall_assessment": assessment.to_dict() if assessment else None,
        "car_images": [image.to_dict() for image in report.car_images],
        "checkpoints": [checkpoint.to_dict() for checkpoint in report.checkpoints],
        "inspection_summary": report.inspection_summary.to_dict(),
        "inspection_location": location.to_dict() if location else None,
        "is_published": report.is_published,
        "shareable_link": report.shareable_link,
        "published_at": report.published_at,
        "view_count": report.view_count,
        "last_viewed_at": report.last_viewed_at,
        "created_at": report.created_at,
        "updated_at": report.updated_at,
    }


def report_to_response(report: InspectionReport) -> ReportResponse:
    """Convert domain report to response model."""
    return ReportResponse.model_validate(_report_payload(report))


def public_report_to_response(
    report: InspectionReport,
    grouped_parts: "Dict[PartCategory, List[CarPart]]"
) -> PublicReportResponse:
    """Convert a published report and its grouped parts to the public response."""
    payload = _report_payload(report)
    payload["car_parts"] = {
        category.value: [part_to_response(part) for part in parts]
        for category, parts in grouped_parts.items()
    }
    return PublicReportResponse.model_validate(payload)
