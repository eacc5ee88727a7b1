"""Unit tests for checkpoint classification and the inspection summary."""

import pytest

from src.car_inspection.domain.exceptions import ValidationError
from src.car_inspection.domain.value_objects.checkpoint import Checkpoint
from src.car_inspection.domain.value_objects.checkpoint_types import (
    FAILING_CONDITIONS,
    KNOWN_CONDITIONS,
    NOT_APPLICABLE_CONDITIONS,
    PASSING_CONDITIONS,
    WARNING_CONDITIONS,
    CheckpointOutcome,
    CheckpointSection,
    classify_condition,
    is_known_condition,
)
from src.car_inspection.domain.value_objects.inspection_summary import (
    InspectionSummary,
    summarize_checkpoints,
)


class TestClassifyCondition:
    """Test cases for condition classification."""

    @pytest.mark.parametrize("condition", ["Excellent", "Good", "Working", "all working", " Clear "])
    def test_clean_conditions_pass(self, condition):
        assert classify_condition(condition) == CheckpointOutcome.PASSED

    @pytest.mark.parametrize("condition", ["Fair", "Worn", "Partial Repaint", "intermittent"])
    def test_degraded_conditions_warn(self, condition):
        assert classify_condition(condition) == CheckpointOutcome.WARNING

    @pytest.mark.parametrize("condition", [None, "", "N/A", "na"])
    def test_missing_conditions_not_applicable(self, condition):
        assert classify_condition(condition) == CheckpointOutcome.NOT_APPLICABLE

    @pytest.mark.parametrize("condition", ["Poor", "Cracked", "Leaking", "Not Working"])
    def test_other_conditions_fail(self, condition):
        assert classify_condition(condition) == CheckpointOutcome.FAILED


class TestSummarizeCheckpoints:
    """Test cases for the summary function."""

    def test_empty_list(self):
        summary = summarize_checkpoints([])

        assert summary == InspectionSummary()
        assert summary.pass_rate == 0.0

    def test_counts_each_outcome(self):
        checkpoints = [
            Checkpoint(CheckpointSection.EXTERIOR, "Paint", "Good"),
            Checkpoint(CheckpointSection.EXTERIOR, "Bumper", "Fair"),
            Checkpoint(CheckpointSection.ENGINE, "Oil Leak", "Leaking"),
            Checkpoint(CheckpointSection.ENGINE, "Turbo"),
            Checkpoint(CheckpointSection.BRAKES, "Pads", "Excellent"),
        ]

        summary = summarize_checkpoints(checkpoints)

        assert summary.total_checkpoints == 5
        assert summary.passed_checkpoints == 2
        assert summary.warning_checkpoints == 1
        assert summary.failed_checkpoints == 1
        assert summary.not_applicable_checkpoints == 1
        assert summary.assessed_checkpoints == 4
        assert summary.pass_rate == 50.0

    def test_is_pure(self):
        checkpoints = [Checkpoint(CheckpointSection.INTERIOR, "Seats", "Worn")]

        assert summarize_checkpoints(checkpoints) == summarize_checkpoints(checkpoints)

    def test_summary_rejects_inconsistent_counts(self):
        with pytest.raises(ValueError):
            InspectionSummary(total_checkpoints=2, passed_checkpoints=1)


class TestCheckpoint:
    """Test cases for the Checkpoint value object."""

    def test_from_dict(self):
        checkpoint = Checkpoint.from_dict({
            "section": "wheels_and_tires",
            "name": "Tread Depth",
            "condition": "Good",
            "issues": ["uneven wear"],
        })

        assert checkpoint.section == CheckpointSection.WHEELS_AND_TIRES
        assert checkpoint.issues == ("uneven wear",)
        assert checkpoint.outcome == CheckpointOutcome.PASSED
        assert checkpoint.to_dict()["section"] == "wheels_and_tires"

    def test_missing_condition_defaults_to_not_applicable(self):
        checkpoint = Checkpoint.from_dict({"section": "engine", "name": "Turbo"})

        assert checkpoint.condition == "N/A"
        assert checkpoint.outcome == CheckpointOutcome.NOT_APPLICABLE

    def test_unknown_section(self):
        with pytest.raises(ValidationError):
            Checkpoint.from_dict({"section": "roof", "name": "Sunroof"})

    def test_missing_name(self):
        with pytest.raises(ValidationError):
            Checkpoint.from_dict({"section": "engine"})

    def test_blank_name(self):
        with pytest.raises(ValidationError):
            Checkpoint(CheckpointSection.ENGINE, "   ")

    @pytest.mark.parametrize("condition", ["Excelent", "Sparkling", "ok-ish"])
    def test_unknown_condition_rejected(self, condition):
        with pytest.raises(ValidationError):
            Checkpoint.from_dict({"section": "exterior", "name": "Paint", "condition": condition})

    def test_condition_matching_ignores_case_and_spacing(self):
        checkpoint = Checkpoint(CheckpointSection.ENGINE, "Belt", "  NOT   working ")

        assert checkpoint.outcome == CheckpointOutcome.FAILED


class TestConditionVocabulary:
    """Test cases for the known condition vocabulary."""

    def test_outcome_groups_do_not_overlap(self):
        groups = [NOT_APPLICABLE_CONDITIONS, PASSING_CONDITIONS, WARNING_CONDITIONS, FAILING_CONDITIONS]

        assert sum(len(group) for group in groups) == len(KNOWN_CONDITIONS)

    @pytest.mark.parametrize("condition", ["Leaking", "Scored", "Cracked", "Poor", "Clean"])
    def test_recorded_conditions_are_known(self, condition):
        assert is_known_condition(condition)

    def test_misspelling_is_unknown(self):
        assert not is_known_condition("Excelent")
