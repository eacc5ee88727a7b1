"""Car part vocabulary and part issue value object."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import ValidationError
from .coercion import coerce_optional_amount, coerce_optional_enum


class PartCategory(Enum):
    """Part categories, in presentation order."""
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    ENGINE = "engine"
    TRANSMISSION = "transmission"
    SUSPENSION = "suspension"
    BRAKES = "brakes"
    WHEELS = "wheels"
    ELECTRICAL = "electrical"
    SAFETY = "safety"


class PartCondition(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    DAMAGED = "Damaged"
    MISSING = "Missing"

    def health_deduction(self) -> int:
        """Health points lost because of this condition."""
        return {
            PartCondition.EXCELLENT: 0,
            PartCondition.GOOD: 10,
            PartCondition.FAIR: 30,
            PartCondition.POOR: 50,
            PartCondition.DAMAGED: 70,
            PartCondition.MISSING: 100,
        }[self]


class PartRecommendation(Enum):
    NO_ACTION = "no-action"
    MONITOR = "monitor"
    SERVICE_SOON = "service-soon"
    REPAIR_SOON = "repair-soon"
    REPLACE_IMMEDIATELY = "replace-immediately"


class PartRepairUrgency(Enum):
    """Urgency derived from a part recommendation."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @classmethod
    def from_recommendation(cls, recommendation: Optional[PartRecommendation]) -> "PartRepairUrgency":
        mapping = {
            PartRecommendation.REPLACE_IMMEDIATELY: cls.CRITICAL,
            PartRecommendation.REPAIR_SOON: cls.HIGH,
            PartRecommendation.SERVICE_SOON: cls.MEDIUM,
            PartRecommendation.MONITOR: cls.LOW,
        }
        return mapping.get(recommendation, cls.NONE)


class PartIssueType(Enum):
    SCRATCH = "scratch"
    DENT = "dent"
    RUST = "rust"
    CRACK = "crack"
    WEAR = "wear"
    LEAK = "leak"
    NOISE = "noise"
    MALFUNCTION = "malfunction"
    MISSING = "missing"
    OTHER = "other"


class PartIssueSeverity(Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"

    def health_deduction(self) -> int:
        return {
            PartIssueSeverity.MINOR: 5,
            PartIssueSeverity.MODERATE: 15,
            PartIssueSeverity.MAJOR: 25,
            PartIssueSeverity.CRITICAL: 40,
        }[self]


@dataclass(frozen=True)
class PartIssue:
    """A defect found on a single car part."""

    type: Optional[PartIssueType] = None
    severity: Optional[PartIssueSeverity] = None
    description: str = ""
    location: str = ""
    repair_needed: bool = False
    estimated_cost: Optional[float] = None

    def __post_init__(self) -> None:
        if self.estimated_cost is not None and self.estimated_cost < 0:
            raise ValidationError("Issue estimated cost cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value if self.type else None,
            "severity": self.severity.value if self.severity else None,
            "description": self.description,
            "location": self.location,
            "repair_needed": self.repair_needed,
            "estimated_cost": self.estimated_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartIssue":
        return cls(
            type=coerce_optional_enum(PartIssueType, data.get("type"), "issues.type"),
            severity=coerce_optional_enum(PartIssueSeverity, data.get("severity"), "issues.severity"),
            description=data.get("description") or "",
            location=data.get("location") or "",
            repair_needed=bool(data.get("repair_needed", False)),
            estimated_cost=coerce_optional_amount(data.get("estimated_cost"), "issues.estimatedCost"),
        )
