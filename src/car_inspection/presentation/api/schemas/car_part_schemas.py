"""Pydantic schemas for car part API requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ....domain.entities.car_part import CarPart


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartIssueSchema(_CamelModel):
    type: Optional[str] = None
    severity: Optional[str] = None
    description: str = ""
    location: str = ""
    repair_needed: bool = False
    estimated_cost: Optional[float] = None


class PartImageSchema(_CamelModel):
    url: str
    caption: str = ""
    angle: Optional[str] = None


class PartFieldsRequest(_CamelModel):
    """Editable car part fields."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    category: Optional[str] = None
    part_name: Optional[str] = None
    part_code: Optional[str] = None
    condition: Optional[str] = None
    condition_score: Optional[float] = None
    issues: Optional[List[PartIssueSchema]] = None
    images: Optional[List[PartImageSchema]] = None
    recommendation: Optional[str] = None
    notes: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        """Snake_case mapping of the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class CreatePartRequest(PartFieldsRequest):
    """Request model for adding a part to a report."""
    inspection_report_id: Optional[UUID] = Field(
        None,
        validation_alias=AliasChoices("inspectionReportId", "inspection_report_id", "inspectionReport"),
    )

    def to_fields(self) -> Dict[str, Any]:
        fields = super().to_fields()
        fields.pop("inspection_report_id", None)
        return fields


class UpdatePartRequest(PartFieldsRequest):
    """Partial update of a part; the owning report cannot change."""
    inspection_report_id: Optional[Any] = Field(
        None,
        validation_alias=AliasChoices("inspectionReportId", "inspection_report_id", "inspectionReport"),
    )
    inspected_by: Optional[Any] = None


class CarPartResponse(_CamelModel):
    """Response model for a car part."""
    id: UUID
    inspection_report_id: UUID
    category: str
    part_name: str
    part_code: Optional[str] = None
    condition: str
    condition_score: float
    issues: List[PartIssueSchema]
    images: List[PartImageSchema]
    recommendation: Optional[str] = None
    notes: str
    inspected_by: Optional[UUID] = None
    repair_urgency: str
    health_score: int
    estimated_repair_cost: float
    created_at: datetime
    updated_at: datetime


class GroupedPartsResponse(_CamelModel):
    """Parts of one report grouped by category."""
    inspection_report_id: UUID
    total: int
    parts: Dict[str, List[CarPartResponse]]


def part_to_response(part: CarPart) -> CarPartResponse:
    """Convert domain car part to response model."""
    return CarPartResponse.model_validate({
        "id": part.id,
        "inspection_report_id": part.inspection_report_id,
        "category": part.category.value,
        "part_name": part.part_name,
        "part_code": part.part_code,
        "condition": part.condition.value,
        "condition_score": part.condition_score,
        "issues": [issue.to_dict() for issue in part.issues],
        "images": [image.to_dict() for image in part.images],
        "recommendation": part.recommendation.value if part.recommendation else None,
        "notes": part.notes,
        "inspected_by": part.inspected_by,
        "repair_urgency": part.repair_urgency.value,
        "health_score": part.health_score,
        "estimated_repair_cost": part.estimated_repair_cost,
        "created_at": part.created_at,
        "updated_at": part.updated_at,
    })
