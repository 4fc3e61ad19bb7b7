"""Domain models for worker conflict evaluation.

This module contains the core data structures used throughout the conflict
evaluator: workers, job windows, existing assignments, time-off requests,
unavailable periods, and the company/site/client and worker-to-worker
preference records that restrict who may be placed on a job.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class AssignmentStatus(Enum):
    """Lifecycle status of a worker's assignment to a job."""

    DRAFT = "draft"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Whether the assignment still commits the worker's time."""
        return self in (AssignmentStatus.PENDING, AssignmentStatus.ACCEPTED)


class TimeOffStatus(Enum):
    """Approval status of a time-off request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def blocks_assignment(self) -> bool:
        """Pending and approved requests block; rejected ones never do."""
        return self is not TimeOffStatus.REJECTED


class PreferenceScope(Enum):
    """What a preference record is attached to."""

    COMPANY = "company"
    SITE = "site"
    CLIENT = "client"


class PreferenceType(Enum):
    """Direction of a preference record."""

    PREFERRED = "preferred"
    NOT_PREFERRED = "not_preferred"


class CertificationKind(Enum):
    """Certifications tracked for workers."""

    TCP = "tcp"  # Traffic control person
    DRIVER_LICENSE = "driver_license"

    @property
    def label(self) -> str:
        """Human-readable name used in notes."""
        return "TCP Certification" if self is CertificationKind.TCP else "Driver License"


@dataclass(frozen=True)
class Certification:
    """A certification held by a worker.

    Attributes:
        kind: Which certification this is.
        expiry_date: Date the certification expires, if known.
    """

    kind: CertificationKind
    expiry_date: Optional[date] = None


@dataclass
class Worker:
    """A worker who can be placed on jobs.

    Attributes:
        id: Unique identifier for the worker.
        name: Display name for the worker.
        certifications: Certifications held, keyed by kind.
    """

    id: str
    name: str = ""
    certifications: dict[CertificationKind, Certification] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def get_certification(self, kind: CertificationKind) -> Optional[Certification]:
        """Get the certification of a given kind, if held."""
        return self.certifications.get(kind)


@dataclass
class JobWindow:
    """The job a worker is being considered for.

    Attributes:
        start: When the job starts.
        end: When the job ends.
        job_id: ID of the job (existing assignments on it are ignored).
        company_id: Company the job belongs to.
        site_id: Site the job takes place at.
        client_id: Client the job is for.
        company_name: Display name used in explanations.
        site_name: Display name used in explanations.
        client_name: Display name used in explanations.
        position: Position code being filled (e.g. "tcp", "lct").
    """

    start: Optional[datetime]
    end: Optional[datetime]
    job_id: Optional[str] = None
    company_id: Optional[str] = None
    site_id: Optional[str] = None
    client_id: Optional[str] = None
    company_name: Optional[str] = None
    site_name: Optional[str] = None
    client_name: Optional[str] = None
    position: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Whether the window has a usable start and end."""
        if self.start is None or self.end is None:
            return False
        try:
            return self.end > self.start
        except TypeError:
            # Mixed naive/aware datetimes
            return False

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def scope_id(self, scope: PreferenceScope) -> Optional[str]:
        """Get the job's identifier for a preference scope."""
        if scope is PreferenceScope.COMPANY:
            return self.company_id
        if scope is PreferenceScope.SITE:
            return self.site_id
        return self.client_id

    def scope_name(self, scope: PreferenceScope) -> str:
        """Get the display name for a preference scope, with a generic fallback."""
        names = {
            PreferenceScope.COMPANY: self.company_name,
            PreferenceScope.SITE: self.site_name,
            PreferenceScope.CLIENT: self.client_name,
        }
        return names[scope] or scope.value.capitalize()

    def __repr__(self) -> str:
        if not self.is_complete:
            return "JobWindow(incomplete)"
        return (
            f"JobWindow({self.job_id or '-'}: "
            f"{self.start.strftime('%Y-%m-%d %H:%M')}-{self.end.strftime('%Y-%m-%d %H:%M')})"
        )


@dataclass
class WorkerAssignment:
    """One worker's committed time on a job.

    Attributes:
        worker_id: ID of the assigned worker.
        job_id: ID of the job.
        start: Worker's start time on the job.
        end: Worker's end time on the job.
        status: Assignment status; only pending/accepted commit time.
        job_number: Job number shown in explanations.
        site_name: Site shown in explanations.
        client_name: Client shown in explanations.
    """

    worker_id: str
    job_id: str
    start: datetime
    end: datetime
    status: AssignmentStatus = AssignmentStatus.ACCEPTED
    job_number: Optional[str] = None
    site_name: Optional[str] = None
    client_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def label(self) -> str:
        """Short description of the job for explanations."""
        number = self.job_number or self.job_id[-8:] or "Unknown"
        site = self.site_name or "Unknown Site"
        client = self.client_name or "Unknown Client"
        return f"Job #{number} at {site} ({client})"


@dataclass
class UnavailablePeriod:
    """A window an admin has marked the worker as unavailable.

    Attributes:
        worker_id: ID of the worker.
        start: Start of the unavailable window.
        end: End of the unavailable window.
        reason: Free-text reason.
    """

    worker_id: str
    start: datetime
    end: datetime
    reason: str = ""


@dataclass
class TimeOffRequest:
    """A worker's request for time off over an inclusive date range.

    Attributes:
        worker_id: ID of the worker requesting time off.
        start_date: First day off (inclusive).
        end_date: Last day off (inclusive).
        status: Approval status.
        type: Kind of time off (e.g. "day_off", "sick_leave").
        reason: Free-text reason.
    """

    worker_id: str
    start_date: date
    end_date: date
    status: TimeOffStatus = TimeOffStatus.PENDING
    type: str = "day_off"
    reason: str = ""

    @property
    def type_label(self) -> str:
        """Title-cased type, e.g. "day_off" -> "Day Off"."""
        return " ".join(word.capitalize() for word in self.type.split("_") if word)

    def overlaps_dates(self, start: date, end: date) -> bool:
        """Check if the request intersects an inclusive date range."""
        return self.start_date <= end and self.end_date >= start


@dataclass
class PreferenceRecord:
    """A company, site or client preference about a worker.

    Attributes:
        worker_id: Worker the preference is about.
        scope: What the preference is attached to.
        scope_id: ID of the company, site or client.
        preference_type: Preferred or not preferred.
        is_mandatory: If True, a not-preferred record is an absolute block.
        reason: Free-text reason.
    """

    worker_id: str
    scope: PreferenceScope
    scope_id: Optional[str] = None
    preference_type: PreferenceType = PreferenceType.NOT_PREFERRED
    is_mandatory: bool = False
    reason: str = ""

    def applies_to(self, job: JobWindow) -> bool:
        """Check if this record is scoped to the job's company, site or client."""
        job_scope_id = job.scope_id(self.scope)
        return job_scope_id is not None and job_scope_id == self.scope_id


@dataclass
class WorkerPreference:
    """A worker-to-worker preference.

    Attributes:
        user_id: Worker who set the preference.
        employee_id: Worker the preference is about.
        preference_type: Preferred or not preferred.
        is_mandatory: Whether the setter marked it as mandatory.
        reason: Free-text reason.
    """

    user_id: str
    employee_id: str
    preference_type: PreferenceType = PreferenceType.NOT_PREFERRED
    is_mandatory: bool = False
    reason: str = ""
