"""Conflict evaluation for assigning workers to jobs."""

from shiftguard.conflicts.certifications import (
    CertificationStatus,
    certification_notes,
    certification_status,
)
from shiftguard.conflicts.evaluator import (
    ConflictClassification,
    ConflictEvaluator,
    ConflictReason,
    ConflictResult,
)
from shiftguard.conflicts.gaps import (
    GapCalculation,
    calculate_gap_hours,
    check_rest_gap,
    earliest_available_time,
)

__all__ = [
    # Evaluator
    "ConflictClassification",
    "ConflictEvaluator",
    "ConflictReason",
    "ConflictResult",
    # Rest gaps
    "GapCalculation",
    "calculate_gap_hours",
    "check_rest_gap",
    "earliest_available_time",
    # Certifications
    "CertificationStatus",
    "certification_notes",
    "certification_status",
]
