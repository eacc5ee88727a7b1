"""Inspection report entity and its publish lifecycle."""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID, uuid4

from ..exceptions import ValidationError
from ..value_objects.assessment import OverallAssessment, OverallCondition
from ..value_objects.checkpoint import Checkpoint
from ..value_objects.coercion import coerce_enum, coerce_score
from ..value_objects.inspection_summary import InspectionSummary, summarize_checkpoints
from ..value_objects.location import InspectionLocation
from ..value_objects.media import CarImage


# Fields an owner may change after creation.
EDITABLE_FIELDS = frozenset({
    "inspection_date",
    "overall_rating",
    "overall_condition",
    "overall_assessment",
    "car_images",
    "checkpoints",
    "inspection_location",
})

# Fields fixed at creation.
IMMUTABLE_FIELDS = frozenset({"id", "report_number", "car", "car_id", "inspector", "inspector_id"})

# Fields only the system maintains.
SYSTEM_FIELDS = frozenset({
    "is_published",
    "shareable_link",
    "view_count",
    "published_at",
    "last_viewed_at",
    "inspection_summary",
    "created_at",
    "updated_at",
})


def parse_report_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate raw report fields and convert them to domain values.

    Args:
        fields: Mapping of snake_case field names to raw values

    Returns:
        Mapping of the same names to validated domain values

    Raises:
        ValidationError: If a field is unknown, not editable or malformed
    """
    parsed: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in IMMUTABLE_FIELDS:
            raise ValidationError(f"Field '{name}' cannot be changed")
        if name in SYSTEM_FIELDS:
            raise ValidationError(f"Field '{name}' is maintained by the system")
        if name not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown report field '{name}'")
        parsed[name] = _parse_field(name, value)
    return parsed


def _parse_field(name: str, value: Any) -> Any:
    if name == "overall_rating":
        if value is None:
            raise ValidationError("overallRating is required")
        return coerce_score(value, "overallRating")
    if name == "overall_condition":
        if value is None:
            raise ValidationError("overallCondition is required")
        return coerce_enum(OverallCondition, value, "overallCondition")
    if name == "overall_assessment":
        if value is None or isinstance(value, OverallAssessment):
            return value
        return OverallAssessment.from_dict(value)
    if name == "car_images":
        return [image if isinstance(image, CarImage) else CarImage.from_dict(image)
                for image in value or ()]
    if name == "checkpoints":
        return [checkpoint if isinstance(checkpoint, Checkpoint) else Checkpoint.from_dict(checkpoint)
                for checkpoint in value or ()]
    if name == "inspection_location":
        if value is None or isinstance(value, InspectionLocation):
            return value
        return InspectionLocation.from_dict(value)
    if name == "inspection_date":
        if value is not None and not isinstance(value, datetime):
            raise ValidationError("inspectionDate must be a datetime")
        return value
    return value


class InspectionReport:
    """Inspection report for one car, written by one inspector.

    A report starts as a draft. Publishing makes it readable through its
    shareable link; the link is minted on the first publish and kept for
    the lifetime of the report so already shared URLs keep working after
    an unpublish/republish cycle.
    """

    def __init__(
        self,
        car_id: UUID,
        inspector_id: UUID,
        report_number: str,
        overall_rating: float,
        overall_condition: OverallCondition,
        report_id: Optional[UUID] = None,
        inspection_date: Optional[datetime] = None,
        overall_assessment: Optional[OverallAssessment] = None,
        car_images: Optional[List[CarImage]] = None,
        checkpoints: Optional[List[Checkpoint]] = None,
        inspection_location: Optional[InspectionLocation] = None,
        is_published: bool = False,
        shareable_link: Optional[str] = None,
        view_count: int = 0,
        published_at: Optional[datetime] = None,
        last_viewed_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        """Initialize inspection report entity."""
        if not isinstance(car_id, UUID):
            raise ValidationError("A car is required")
        if not isinstance(inspector_id, UUID):
            raise ValidationError("An inspector is required")
        if not report_number or not report_number.strip():
            raise ValidationError("Report number cannot be empty")
        if is_published and not shareable_link:
            raise ValidationError("A published report must have a shareable link")
        if view_count < 0:
            raise ValidationError("View count cannot be negative")

        now = datetime.utcnow()
        self._id = report_id or uuid4()
        self._car_id = car_id
        self._inspector_id = inspector_id
        self._report_number = report_number.strip()
        self._overall_rating = coerce_score(overall_rating, "overallRating")
        self._overall_condition = coerce_enum(OverallCondition, overall_condition, "overallCondition")
        self._inspection_date = inspection_date or created_at or now
        self._overall_assessment = overall_assessment
        self._car_images = list(car_images or [])
        self._checkpoints = self._validated_checkpoints(checkpoints or [])
        self._inspection_summary = summarize_checkpoints(self._checkpoints)
        self._inspection_location = inspection_location
        self._is_published = is_published
        self._shareable_link = shareable_link
        self._view_count = view_count
        self._published_at = published_at
        self._last_viewed_at = last_viewed_at
        self._created_at = created_at or now
        self._updated_at = updated_at or now

    @classmethod
    def create(
        cls,
        car_id: UUID,
        inspector_id: UUID,
        report_number: str,
        fields: Dict[str, Any]
    ) -> "InspectionReport":
        """Create a draft report from raw initial fields."""
        parsed = parse_report_fields(fields)
        if "overall_rating" not in parsed:
            raise ValidationError("overallRating is required")
        if "overall_condition" not in parsed:
            raise ValidationError("overallCondition is required")
        return cls(car_id=car_id, inspector_id=inspector_id, report_number=report_number, **parsed)

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def car_id(self) -> UUID:
        return self._car_id

    @property
    def inspector_id(self) -> UUID:
        return self._inspector_id

    @property
    def report_number(self) -> str:
        return self._report_number

    @property
    def inspection_date(self) -> datetime:
        return self._inspection_date

    @property
    def overall_rating(self) -> float:
        return self._overall_rating

    @property
    def overall_condition(self) -> OverallCondition:
        return self._overall_condition

    @property
    def overall_assessment(self) -> Optional[OverallAssessment]:
        return self._overall_assessment

    @property
    def car_images(self) -> List[CarImage]:
        return self._car_images.copy()

    @property
    def primary_image(self) -> Optional[CarImage]:
        """Image flagged as primary, falling back to the first image."""
        for image in self._car_images:
            if image.is_primary:
                return image
        return self._car_images[0] if self._car_images else None

    @property
    def checkpoints(self) -> List[Checkpoint]:
        return self._checkpoints.copy()

    @property
    def inspection_summary(self) -> InspectionSummary:
        return self._inspection_summary

    @property
    def inspection_location(self) -> Optional[InspectionLocation]:
        return self._inspection_location

    @property
    def is_published(self) -> bool:
        return self._is_published

    @property
    def has_been_published(self) -> bool:
        """True once the report was published at least once."""
        return self._shareable_link is not None

    @property
    def shareable_link(self) -> Optional[str]:
        return self._shareable_link

    @property
    def view_count(self) -> int:
        return self._view_count

    @property
    def published_at(self) -> Optional[datetime]:
        return self._published_at

    @property
    def last_viewed_at(self) -> Optional[datetime]:
        return self._last_viewed_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def is_owned_by(self, user_id: UUID) -> bool:
        """Check if the given user created this report."""
        return self._inspector_id == user_id

    def apply_patch(self, fields: Dict[str, Any]) -> Set[str]:
        """Apply a partial update.

        Args:
            fields: Raw snake_case field values to change

        Returns:
            Names of the fields that were changed

        Raises:
            ValidationError: If the patch touches immutable or system fields,
                or carries invalid values. Nothing is changed in that case.
        """
        parsed = parse_report_fields(self._without_restated_identity(fields))
        if "checkpoints" in parsed:
            parsed["checkpoints"] = self._validated_checkpoints(parsed["checkpoints"])

        for name, value in parsed.items():
            if name == "inspection_date" and value is None:
                continue
            setattr(self, f"_{name}", value)

        if "checkpoints" in parsed:
            self._inspection_summary = summarize_checkpoints(self._checkpoints)

        if parsed:
            self._updated_at = datetime.utcnow()
        return set(parsed)

    def publish(self, link_factory: Callable[[], str]) -> bool:
        """Publish the report.

        Mints a shareable link with link_factory only when the report has
        none yet. Publishing an already published report changes nothing.

        Returns:
            True if a new shareable link was minted
        """
        minted = False
        if self._shareable_link is None:
            link = link_factory()
            if not link:
                raise ValidationError("Shareable link cannot be empty")
            self._shareable_link = link
            minted = True

        if not self._is_published:
            self._is_published = True
            now = datetime.utcnow()
            self._published_at = now
            self._updated_at = now
        return minted

    def unpublish(self) -> None:
        """Hide the report from public readers. The shareable link is kept."""
        if self._is_published:
            self._is_published = False
            self._updated_at = datetime.utcnow()

    def record_public_view(self, viewed_at: Optional[datetime] = None) -> None:
        """Count one public read. Only the store's view increment calls this."""
        if not self._is_published:
            raise ValidationError("Views can only be recorded on published reports")
        self._view_count += 1
        self._last_viewed_at = viewed_at or datetime.utcnow()

    def _without_restated_identity(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Drop identity fields whose value matches the current one.

        Clients often echo the whole report back; only real changes to
        identity fields are rejected.
        """
        current = {
            "id": self._id,
            "report_number": self._report_number,
            "car": self._car_id,
            "car_id": self._car_id,
            "inspector": self._inspector_id,
            "inspector_id": self._inspector_id,
        }
        return {
            name: value for name, value in fields.items()
            if not (name in current and value is not None and str(value) == str(current[name]))
        }

    @staticmethod
    def _validated_checkpoints(checkpoints: Iterable[Checkpoint]) -> List[Checkpoint]:
        result = list(checkpoints)
        seen = set()
        for checkpoint in result:
            if checkpoint.key in seen:
                section, name = checkpoint.key
                raise ValidationError(f"Duplicate checkpoint '{name}' in section '{section.value}'")
            seen.add(checkpoint.key)
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, InspectionReport):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        state = "published" if self._is_published else "draft"
        return f"InspectionReport({self._report_number}, {state})"

    def __repr__(self) -> str:
        return (f"InspectionReport(id={self._id}, report_number='{self._report_number}', "
                f"car_id={self._car_id}, inspector_id={self._inspector_id}, "
                f"is_published={self._is_published}, view_count={self._view_count})")
