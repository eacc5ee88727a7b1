"""Car part entity recorded as part of an inspection report."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from uuid import UUID, uuid4

from ..exceptions import ValidationError
from ..value_objects.coercion import coerce_enum, coerce_optional_enum, coerce_score
from ..value_objects.media import PartImage
from ..value_objects.part_types import (
    PartCategory,
    PartCondition,
    PartIssue,
    PartRecommendation,
    PartRepairUrgency,
)

MAX_NOTES_LENGTH = 1000

EDITABLE_PART_FIELDS = frozenset({
    "category",
    "part_name",
    "part_code",
    "condition",
    "condition_score",
    "issues",
    "images",
    "recommendation",
    "notes",
})

PROTECTED_PART_FIELDS = frozenset({
    "id",
    "inspection_report_id",
    "inspected_by",
    "created_at",
    "updated_at",
})


def parse_part_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate raw car part fields and convert them to domain values.

    Raises:
        ValidationError: If a field is unknown, protected or malformed
    """
    parsed: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in PROTECTED_PART_FIELDS:
            raise ValidationError(f"Field '{name}' cannot be changed")
        if name not in EDITABLE_PART_FIELDS:
            raise ValidationError(f"Unknown car part field '{name}'")

        if name == "category":
            parsed[name] = coerce_enum(PartCategory, value, "category")
        elif name == "condition":
            parsed[name] = coerce_enum(PartCondition, value, "condition")
        elif name == "condition_score":
            if value is None:
                raise ValidationError("conditionScore is required")
            parsed[name] = coerce_score(value, "conditionScore")
        elif name == "recommendation":
            parsed[name] = coerce_optional_enum(PartRecommendation, value, "recommendation")
        elif name == "part_name":
            if not value or not str(value).strip():
                raise ValidationError("partName cannot be empty")
            parsed[name] = str(value).strip()
        elif name == "part_code":
            parsed[name] = str(value).strip() if value else None
        elif name == "notes":
            notes = value or ""
            if len(notes) > MAX_NOTES_LENGTH:
                raise ValidationError(f"notes cannot exceed {MAX_NOTES_LENGTH} characters")
            parsed[name] = notes
        elif name == "issues":
            parsed[name] = [issue if isinstance(issue, PartIssue) else PartIssue.from_dict(issue)
                            for issue in value or ()]
        elif name == "images":
            parsed[name] = [image if isinstance(image, PartImage) else PartImage.from_dict(image)
                            for image in value or ()]
    return parsed


class CarPart:
    """Condition record for one part of the inspected car."""

    REQUIRED_FIELDS = ("category", "part_name", "condition", "condition_score")

    def __init__(
        self,
        inspection_report_id: UUID,
        category: PartCategory,
        part_name: str,
        condition: PartCondition,
        condition_score: float,
        part_id: Optional[UUID] = None,
        part_code: Optional[str] = None,
        issues: Optional[List[PartIssue]] = None,
        images: Optional[List[PartImage]] = None,
        recommendation: Optional[PartRecommendation] = None,
        notes: str = "",
        inspected_by: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if not isinstance(inspection_report_id, UUID):
            raise ValidationError("A car part must belong to an inspection report")
        if not part_name or not part_name.strip():
            raise ValidationError("partName cannot be empty")
        if len(notes or "") > MAX_NOTES_LENGTH:
            raise ValidationError(f"notes cannot exceed {MAX_NOTES_LENGTH} characters")

        now = datetime.utcnow()
        self._id = part_id or uuid4()
        self._inspection_report_id = inspection_report_id
        self._category = coerce_enum(PartCategory, category, "category")
        self._part_name = part_name.strip()
        self._part_code = part_code
        self._condition = coerce_enum(PartCondition, condition, "condition")
        self._condition_score = coerce_score(condition_score, "conditionScore")
        self._issues = list(issues or [])
        self._images = list(images or [])
        self._recommendation = recommendation
        self._notes = notes or ""
        self._inspected_by = inspected_by
        self._created_at = created_at or now
        self._updated_at = updated_at or now

    @classmethod
    def create(
        cls,
        inspection_report_id: UUID,
        fields: Dict[str, Any],
        inspected_by: Optional[UUID] = None
    ) -> "CarPart":
        """Create a part from raw fields, checking required ones are present."""
        parsed = parse_part_fields(fields)
        missing = [name for name in cls.REQUIRED_FIELDS if name not in parsed]
        if missing:
            raise ValidationError(f"Missing required car part fields: {', '.join(missing)}")
        return cls(inspection_report_id=inspection_report_id, inspected_by=inspected_by, **parsed)

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def inspection_report_id(self) -> UUID:
        return self._inspection_report_id

    @property
    def category(self) -> PartCategory:
        return self._category

    @property
    def part_name(self) -> str:
        return self._part_name

    @property
    def part_code(self) -> Optional[str]:
        return self._part_code

    @property
    def condition(self) -> PartCondition:
        return self._condition

    @property
    def condition_score(self) -> float:
        return self._condition_score

    @property
    def issues(self) -> List[PartIssue]:
        return self._issues.copy()

    @property
    def images(self) -> List[PartImage]:
        return self._images.copy()

    @property
    def recommendation(self) -> Optional[PartRecommendation]:
        return self._recommendation

    @property
    def notes(self) -> str:
        return self._notes

    @property
    def inspected_by(self) -> Optional[UUID]:
        return self._inspected_by

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def repair_urgency(self) -> PartRepairUrgency:
        return PartRepairUrgency.from_recommendation(self._recommendation)

    @property
    def health_score(self) -> int:
        """Part health out of 100 after condition and issue deductions."""
        health = 100 - self._condition.health_deduction()
        for issue in self._issues:
            if issue.severity is not None:
                health -= issue.severity.health_deduction()
        return max(0, health)

    @property
    def estimated_repair_cost(self) -> float:
        return sum(issue.estimated_cost or 0 for issue in self._issues if issue.repair_needed)

    def apply_patch(self, fields: Dict[str, Any]) -> Set[str]:
        """Apply a partial update; nothing changes if validation fails."""
        parsed = parse_part_fields(fields)
        for name, value in parsed.items():
            setattr(self, f"_{name}", value)
        if parsed:
            self._updated_at = datetime.utcnow()
        return set(parsed)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CarPart):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (f"CarPart(id={self._id}, report={self._inspection_report_id}, "
                f"category='{self._category.value}', part_name='{self._part_name}', "
                f"condition='{self._condition.value}')")
