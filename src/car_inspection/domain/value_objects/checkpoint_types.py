"""Checkpoint sections and outcome classification."""

from enum import Enum
from typing import Optional


class CheckpointSection(Enum):
    """Enumeration of inspection checkpoint sections."""

    EXTERIOR = "exterior"
    INTERIOR = "interior"
    ENGINE = "engine"
    TRANSMISSION = "transmission"
    SUSPENSION = "suspension"
    BRAKES = "brakes"
    WHEELS_AND_TIRES = "wheels_and_tires"
    ELECTRICAL = "electrical"
    ROAD_TEST = "road_test"
    SAFETY = "safety"

    def get_description(self) -> str:
        """Get human-readable description of the section."""
        descriptions = {
            self.EXTERIOR: "Body panels, paint, glass, mirrors, exterior lights",
            self.INTERIOR: "Seats, dashboard, controls, HVAC, infotainment",
            self.ENGINE: "Engine bay, fluids, belts, hoses, leaks, starting",
            self.TRANSMISSION: "Gear shifts, clutch, fluid, drivetrain noises",
            self.SUSPENSION: "Shock absorbers, springs, bushings, steering linkage",
            self.BRAKES: "Pads, discs, fluid, lines, parking brake",
            self.WHEELS_AND_TIRES: "Tread depth, tire age, rims, spare wheel",
            self.ELECTRICAL: "Battery, alternator, wiring, fuses, warning lights",
            self.ROAD_TEST: "Acceleration, braking, handling, noise and vibration",
            self.SAFETY: "Airbags, seat belts, driver assistance systems",
        }
        return descriptions.get(self, "Unknown section")


class CheckpointOutcome(Enum):
    """Outcome of a single checkpoint once its condition is classified."""

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"


NOT_APPLICABLE_CONDITIONS = frozenset({"", "n/a", "na"})

PASSING_CONDITIONS = frozenset({
    "excellent", "very good", "good", "all good", "working", "clear", "clean", "smooth",
    "present", "normal", "aligned", "responsive", "original", "none", "minimal", "off",
    "all working", "secure", "correct", "even", "straight", "full", "adequate", "new",
    "easy", "quick", "immediate", "holds well", "free", "complete", "dry", "passed",
})

WARNING_CONDITIONS = frozenset({
    "fair", "worn", "weak", "slow", "dim", "mild", "moderate", "partial",
    "intermittent", "firm", "partial repaint",
})

FAILING_CONDITIONS = frozenset({
    "poor", "bad", "not working", "none working", "some not working", "partially working",
    "failed", "some failed", "faulty", "marginal", "damaged", "minor damage", "major damage",
    "broken", "broken leaf", "cracked", "chipped", "bent", "scratched", "dented", "leaking",
    "leaking oil", "damp", "wet", "swollen", "bulge", "rusted", "rusty", "corroded",
    "peeling", "faded", "discolored", "yellowed", "foggy", "blurry", "distorted", "dark",
    "slightly dark", "contaminated", "milky", "foamy", "burnt", "burning oil", "dirty",
    "slightly dirty", "very dirty", "dusty", "oil stains", "stained", "torn", "sagging",
    "missing", "not present", "empty", "low", "loose", "tight", "over-tightened", "stiff",
    "sticky", "sticking", "stuck", "stuck open", "stuck closed", "seized", "stretched",
    "frayed", "stripped", "glazed", "scored", "warped", "out of round", "grooved",
    "heat spots", "cupping", "uneven", "noisy", "loud", "very loud", "unusual", "clicking",
    "clunking", "grinding", "squeaking", "squealing", "whining", "ticking", "knocking",
    "vibration", "rough", "harsh", "bouncy", "bottoming out", "body roll", "unstable",
    "wanders", "pulls", "pulls left", "pulls right", "vague", "heavy", "hard",
    "hard to engage", "delayed", "difficult", "multiple attempts", "hesitant", "hunting",
    "surging", "misfire", "backfire", "slipping", "slips", "grabbing", "spongy", "soft",
    "goes to floor", "blocked", "partially blocked", "some blocked", "clogged",
    "carbon buildup", "carbon tracked", "arcing", "fouled", "some blown", "deployed",
    "tampered", "modified", "replaced", "misaligned", "excessive", "excessive movement",
    "severe", "strong", "overcharging", "not charging", "overboost", "unresponsive",
    "dead pixels", "outdated", "connection issues", "poor reception", "range issues",
    "slow retraction", "needs balancing", "needs replacement", "due for change", "old",
    "on", "full repaint",
})

KNOWN_CONDITIONS = NOT_APPLICABLE_CONDITIONS | PASSING_CONDITIONS | WARNING_CONDITIONS | FAILING_CONDITIONS


def normalize_condition(condition: str) -> str:
    """Lower-case a condition and collapse its whitespace."""
    return " ".join(condition.strip().lower().split())


def is_known_condition(condition: Optional[str]) -> bool:
    """Check that a condition belongs to the inspection vocabulary."""
    return condition is None or normalize_condition(condition) in KNOWN_CONDITIONS


def classify_condition(condition: Optional[str]) -> CheckpointOutcome:
    """Classify a recorded condition string into a checkpoint outcome.

    Known conditions that are neither a clean state nor a warning state
    count as a failure.
    """
    if condition is None:
        return CheckpointOutcome.NOT_APPLICABLE

    normalized = normalize_condition(condition)
    if normalized in NOT_APPLICABLE_CONDITIONS:
        return CheckpointOutcome.NOT_APPLICABLE
    if normalized in PASSING_CONDITIONS:
        return CheckpointOutcome.PASSED
    if normalized in WARNING_CONDITIONS:
        return CheckpointOutcome.WARNING
    return CheckpointOutcome.FAILED
