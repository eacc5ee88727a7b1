"""Overall assessment value objects for inspection reports."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..exceptions import ValidationError
from .coercion import coerce_enum, coerce_optional_amount, coerce_optional_enum


class OverallCondition(Enum):
    """Overall condition of the inspected car."""
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def from_rating(cls, rating: float) -> "OverallCondition":
        """Condition implied by a 0-10 rating."""
        if rating >= 9:
            return cls.EXCELLENT
        elif rating >= 8:
            return cls.VERY_GOOD
        elif rating >= 7:
            return cls.GOOD
        elif rating >= 5:
            return cls.FAIR
        return cls.POOR


class Recommendation(Enum):
    """Purchase recommendation issued by the inspector."""
    HIGHLY_RECOMMENDED = "Highly Recommended"
    RECOMMENDED = "Recommended"
    RECOMMENDED_WITH_REPAIRS = "Recommended with Repairs"
    NOT_RECOMMENDED = "Not Recommended"


class IssueSeverity(Enum):
    MINOR = "Minor"
    MODERATE = "Moderate"
    MAJOR = "Major"
    CRITICAL = "Critical"


class RepairUrgency(Enum):
    IMMEDIATE = "Immediate"
    SOON = "Soon"
    MONITOR = "Monitor"
    PREVENTIVE = "Preventive"


@dataclass(frozen=True)
class MajorIssue:
    """A significant problem found during the inspection."""

    category: str
    issue: str
    severity: Optional[IssueSeverity] = None
    repair_urgency: Optional[RepairUrgency] = None
    estimated_cost: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.issue or not self.issue.strip():
            raise ValidationError("Major issue description cannot be empty")
        if self.estimated_cost is not None and self.estimated_cost < 0:
            raise ValidationError("Major issue estimated cost cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "issue": self.issue,
            "severity": self.severity.value if self.severity else None,
            "repair_urgency": self.repair_urgency.value if self.repair_urgency else None,
            "estimated_cost": self.estimated_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MajorIssue":
        return cls(
            category=data.get("category") or "",
            issue=data.get("issue") or "",
            severity=coerce_optional_enum(IssueSeverity, data.get("severity"), "majorIssues.severity"),
            repair_urgency=coerce_optional_enum(
                RepairUrgency, data.get("repair_urgency"), "majorIssues.repairUrgency"
            ),
            estimated_cost=coerce_optional_amount(data.get("estimated_cost"), "majorIssues.estimatedCost"),
        )


@dataclass(frozen=True)
class OverallAssessment:
    """Inspector's overall verdict on the car."""

    recommendation: Recommendation
    estimated_market_value: Optional[float] = None
    estimated_repair_cost: Optional[float] = None
    currency: str = "PKR"
    strengths: Tuple[str, ...] = field(default_factory=tuple)
    weaknesses: Tuple[str, ...] = field(default_factory=tuple)
    major_issues: Tuple[MajorIssue, ...] = field(default_factory=tuple)
    inspector_notes: str = ""
    disclaimers: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.recommendation, Recommendation):
            raise ValidationError("recommendation must be a Recommendation enum")
        for amount in (self.estimated_market_value, self.estimated_repair_cost):
            if amount is not None and amount < 0:
                raise ValidationError("Estimated amounts cannot be negative")

    @property
    def total_major_issue_cost(self) -> float:
        return sum(issue.estimated_cost or 0 for issue in self.major_issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendation": self.recommendation.value,
            "estimated_market_value": self.estimated_market_value,
            "estimated_repair_cost": self.estimated_repair_cost,
            "currency": self.currency,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "major_issues": [issue.to_dict() for issue in self.major_issues],
            "inspector_notes": self.inspector_notes,
            "disclaimers": list(self.disclaimers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OverallAssessment":
        if data.get("recommendation") is None:
            raise ValidationError("overallAssessment.recommendation is required")
        return cls(
            recommendation=coerce_enum(
                Recommendation, data["recommendation"], "overallAssessment.recommendation"
            ),
            estimated_market_value=coerce_optional_amount(
                data.get("estimated_market_value"), "overallAssessment.estimatedMarketValue"
            ),
            estimated_repair_cost=coerce_optional_amount(
                data.get("estimated_repair_cost"), "overallAssessment.estimatedRepairCost"
            ),
            currency=data.get("currency") or "PKR",
            strengths=tuple(data.get("strengths") or ()),
            weaknesses=tuple(data.get("weaknesses") or ()),
            major_issues=tuple(
                issue if isinstance(issue, MajorIssue) else MajorIssue.from_dict(issue)
                for issue in data.get("major_issues") or ()
            ),
            inspector_notes=data.get("inspector_notes") or "",
            disclaimers=tuple(data.get("disclaimers") or ()),
        )
