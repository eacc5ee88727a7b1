"""Checkpoint value object."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from ..exceptions import ValidationError
from .checkpoint_types import (
    CheckpointOutcome,
    CheckpointSection,
    classify_condition,
    is_known_condition,
)


@dataclass(frozen=True)
class Checkpoint:
    """Immutable value object for one inspected attribute of a car."""

    section: CheckpointSection
    name: str
    condition: str = "N/A"
    issues: Tuple[str, ...] = field(default_factory=tuple)
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate checkpoint data."""
        if not isinstance(self.section, CheckpointSection):
            raise ValidationError("section must be a CheckpointSection enum")
        if not self.name or not self.name.strip():
            raise ValidationError("Checkpoint name cannot be empty")
        if not isinstance(self.condition, str):
            raise ValidationError("Checkpoint condition must be a string")
        if not is_known_condition(self.condition):
            raise ValidationError(f"Unknown checkpoint condition: {self.condition!r}")

    @property
    def key(self) -> Tuple[CheckpointSection, str]:
        """Identity of the checkpoint within a report."""
        return self.section, self.name.strip()

    @property
    def outcome(self) -> CheckpointOutcome:
        return classify_condition(self.condition)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "section": self.section.value,
            "name": self.name,
            "condition": self.condition,
            "issues": list(self.issues),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Checkpoint":
        try:
            section = data["section"]
            if not isinstance(section, CheckpointSection):
                section = CheckpointSection(section)
            return cls(
                section=section,
                name=data["name"],
                condition=data.get("condition") or "N/A",
                issues=tuple(data.get("issues") or ()),
                notes=data.get("notes") or "",
            )
        except KeyError as e:
            raise ValidationError(f"Checkpoint is missing field {e.args[0]!r}")
        except ValidationError:
            raise
        except ValueError as e:
            raise ValidationError(f"Invalid checkpoint: {e}")
