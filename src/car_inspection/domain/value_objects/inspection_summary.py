"""Inspection summary value object."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable

from .checkpoint import Checkpoint
from .checkpoint_types import CheckpointOutcome


@dataclass(frozen=True)
class InspectionSummary:
    """Immutable checkpoint counts derived from a report's checkpoints."""

    total_checkpoints: int = 0
    passed_checkpoints: int = 0
    failed_checkpoints: int = 0
    warning_checkpoints: int = 0
    not_applicable_checkpoints: int = 0

    def __post_init__(self) -> None:
        """Validate summary counts."""
        counts = (
            self.passed_checkpoints,
            self.failed_checkpoints,
            self.warning_checkpoints,
            self.not_applicable_checkpoints,
        )
        if any(count < 0 for count in counts) or self.total_checkpoints < 0:
            raise ValueError("Checkpoint counts cannot be negative")
        if sum(counts) != self.total_checkpoints:
            raise ValueError("Checkpoint counts must add up to the total")

    @property
    def assessed_checkpoints(self) -> int:
        """Checkpoints that were actually evaluated."""
        return self.total_checkpoints - self.not_applicable_checkpoints

    @property
    def pass_rate(self) -> float:
        """Percentage of assessed checkpoints that passed."""
        if self.assessed_checkpoints == 0:
            return 0.0
        return (self.passed_checkpoints / self.assessed_checkpoints) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_checkpoints": self.total_checkpoints,
            "passed_checkpoints": self.passed_checkpoints,
            "failed_checkpoints": self.failed_checkpoints,
            "warning_checkpoints": self.warning_checkpoints,
            "not_applicable_checkpoints": self.not_applicable_checkpoints,
        }


def summarize_checkpoints(checkpoints: Iterable[Checkpoint]) -> InspectionSummary:
    """Count checkpoint outcomes. Pure function over the checkpoint list."""
    counts = {outcome: 0 for outcome in CheckpointOutcome}
    for checkpoint in checkpoints:
        counts[checkpoint.outcome] += 1

    return InspectionSummary(
        total_checkpoints=sum(counts.values()),
        passed_checkpoints=counts[CheckpointOutcome.PASSED],
        failed_checkpoints=counts[CheckpointOutcome.FAILED],
        warning_checkpoints=counts[CheckpointOutcome.WARNING],
        not_applicable_checkpoints=counts[CheckpointOutcome.NOT_APPLICABLE],
    )
