"""Domain models and business rules for conflict evaluation."""

from shiftguard.domain.models import (
    AssignmentStatus,
    Certification,
    CertificationKind,
    JobWindow,
    PreferenceRecord,
    PreferenceScope,
    PreferenceType,
    TimeOffRequest,
    TimeOffStatus,
    UnavailablePeriod,
    Worker,
    WorkerAssignment,
    WorkerPreference,
)
from shiftguard.domain.policies import (
    CertificationPolicy,
    DefaultCertificationPolicy,
    DefaultRestGapPolicy,
    RestGapPolicy,
)

__all__ = [
    # Models
    "AssignmentStatus",
    "Certification",
    "CertificationKind",
    "JobWindow",
    "PreferenceRecord",
    "PreferenceScope",
    "PreferenceType",
    "TimeOffRequest",
    "TimeOffStatus",
    "UnavailablePeriod",
    "Worker",
    "WorkerAssignment",
    "WorkerPreference",
    # Policies
    "CertificationPolicy",
    "DefaultCertificationPolicy",
    "DefaultRestGapPolicy",
    "RestGapPolicy",
]
