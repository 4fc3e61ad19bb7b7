"""Conflict evaluation for placing a worker on a job.

This module is the single source of truth for deciding whether a worker
can or should be assigned to a job window. Every caller (ranking, reports,
the CLI) goes through ConflictEvaluator so the priority order is applied
the same way everywhere.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

from shiftguard.conflicts.certifications import certification_notes
from shiftguard.conflicts.gaps import check_rest_gap, format_clock
from shiftguard.domain.models import (
    JobWindow,
    PreferenceRecord,
    PreferenceScope,
    PreferenceType,
    TimeOffRequest,
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

logger = logging.getLogger(__name__)


class ConflictClassification(Enum):
    """Outcome of evaluating a worker against a job, highest priority first."""

    MANDATORY_BLOCK = "mandatory_block"
    TIME_OFF_CONFLICT = "time_off_conflict"
    DIRECT_OVERLAP = "direct_overlap"
    GAP_VIOLATION = "gap_violation"
    NOT_PREFERRED = "not_preferred"
    WORKER_CONFLICT = "worker_conflict"
    CLEAR = "clear"

    @property
    def severity(self) -> int:
        """Position in the priority order (0 is the most severe)."""
        return _PRIORITY.index(self)

    @property
    def is_blocking(self) -> bool:
        return self in _BLOCKING

    @property
    def is_warning(self) -> bool:
        return self in _WARNINGS

    @property
    def label(self) -> str:
        """Human-readable label, e.g. "Time Off Conflict"."""
        return self.value.replace("_", " ").title()


_PRIORITY = list(ConflictClassification)
_BLOCKING = (
    ConflictClassification.MANDATORY_BLOCK,
    ConflictClassification.TIME_OFF_CONFLICT,
    ConflictClassification.DIRECT_OVERLAP,
)
_WARNINGS = (
    ConflictClassification.GAP_VIOLATION,
    ConflictClassification.NOT_PREFERRED,
    ConflictClassification.WORKER_CONFLICT,
)

# Sort keys used to rank candidate workers (lower sorts first)
TIME_OFF_SORT_PRIORITY = 3000
SCHEDULE_SORT_PRIORITY = 2000
MANDATORY_SORT_PRIORITY = 1000
NOT_PREFERRED_SORT_PRIORITY = 500

_SCOPE_ORDER = (PreferenceScope.COMPANY, PreferenceScope.SITE, PreferenceScope.CLIENT)


@dataclass
class ConflictReason:
    """A single reason contributing to a conflict result."""

    classification: ConflictClassification
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ConflictResult:
    """Result of evaluating one worker against one job window.

    Only the most severe classification is reported, but every matching
    reason is kept, ordered by severity and then by discovery.
    """

    worker_id: str
    classification: ConflictClassification = ConflictClassification.CLEAR
    details: list[ConflictReason] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    preferred_count: int = 0

    def add_reason(
        self,
        classification: ConflictClassification,
        message: str,
        **details,
    ) -> None:
        """Record a reason and raise the classification if it is more severe."""
        self.details.append(ConflictReason(classification, message, details))
        if classification.severity < self.classification.severity:
            self.classification = classification

    @property
    def reasons(self) -> list[str]:
        """Reason messages, most severe first."""
        ordered = sorted(self.details, key=lambda r: r.classification.severity)
        return [r.message for r in ordered]

    @property
    def matched(self) -> list[ConflictClassification]:
        """Every classification that matched, most severe first."""
        found = {r.classification for r in self.details}
        return [c for c in _PRIORITY if c in found]

    @property
    def is_blocking(self) -> bool:
        return self.classification.is_blocking

    @property
    def is_warning(self) -> bool:
        return self.classification.is_warning

    @property
    def can_proceed(self) -> bool:
        """Whether the worker may still be assigned (possibly after a warning)."""
        return not self.is_blocking

    @property
    def sort_priority(self) -> int:
        """Ranking key for worker pickers; preferred workers sort first."""
        matched = set(self.matched)
        if ConflictClassification.TIME_OFF_CONFLICT in matched:
            return TIME_OFF_SORT_PRIORITY
        if matched & {
            ConflictClassification.DIRECT_OVERLAP,
            ConflictClassification.GAP_VIOLATION,
        }:
            return SCHEDULE_SORT_PRIORITY
        if ConflictClassification.MANDATORY_BLOCK in matched:
            return MANDATORY_SORT_PRIORITY
        if self.preferred_count > 0:
            return -self.preferred_count
        if matched:
            return NOT_PREFERRED_SORT_PRIORITY
        return 0

    def __str__(self) -> str:
        parts = [f"[{self.classification.value}]", f"Worker {self.worker_id}"]
        if self.details:
            parts.append("- " + "; ".join(r.replace("\n", " ") for r in self.reasons))
        return " ".join(parts)


def _format_day(day: date) -> str:
    return f"{day:%b} {day.day}, {day.year}"


def _format_moment(moment: datetime, with_year: bool = True) -> str:
    if with_year:
        return f"{moment:%b} {moment.day}, {moment.year} {format_clock(moment)}"
    return f"{moment:%b} {moment.day}, {format_clock(moment)}"


def _is_mandatory_restriction(pref: PreferenceRecord) -> bool:
    return pref.is_mandatory and pref.preference_type is PreferenceType.NOT_PREFERRED


class ConflictEvaluator:
    """Classifies whether a worker can be assigned to a job window.

    Checks, in priority order: mandatory not-preferred records, time off,
    direct schedule overlaps, rest gap violations, advisory not-preferred
    records, and worker-to-worker conflicts. The evaluator is read-only and
    never raises; a missing or incomplete job window yields a clear result.

    Example:
        >>> evaluator = ConflictEvaluator()
        >>> result = evaluator.evaluate(worker, job, assignments=assignments)
        >>> if not result.can_proceed:
        ...     for reason in result.reasons:
        ...         print(reason)
    """

    def __init__(
        self,
        rest_gap_policy: Optional[RestGapPolicy] = None,
        certification_policy: Optional[CertificationPolicy] = None,
    ):
        self.rest_gap_policy = rest_gap_policy or DefaultRestGapPolicy()
        self.certification_policy = certification_policy or DefaultCertificationPolicy()

    def evaluate(
        self,
        worker: Worker,
        job: Optional[JobWindow],
        assignments: Iterable[WorkerAssignment] = (),
        time_off_requests: Iterable[TimeOffRequest] = (),
        preferences: Iterable[PreferenceRecord] = (),
        worker_preferences: Iterable[WorkerPreference] = (),
        assigned_worker_ids: Iterable[str] = (),
        unavailable_periods: Iterable[UnavailablePeriod] = (),
        worker_names: Optional[dict[str, str]] = None,
        today: Optional[date] = None,
    ) -> ConflictResult:
        """Evaluate a single worker against a job window.

        Records belonging to other workers are ignored, so callers may pass
        the same collections for every candidate.

        Args:
            worker: The candidate worker.
            job: The job window; None or incomplete means fail open.
            assignments: Existing assignments (any status, any worker).
            time_off_requests: Time-off requests (any status, any worker).
            preferences: Company/site/client preference records.
            worker_preferences: Worker-to-worker preference records.
            assigned_worker_ids: Workers already on this job.
            unavailable_periods: Admin-marked unavailable windows.
            worker_names: Dict mapping worker IDs to display names.
            today: Reference day for certification notes (defaults to today).

        Returns:
            ConflictResult with the classification and all reasons.
        """
        result = ConflictResult(worker_id=worker.id)

        if job is None or not job.is_complete:
            logger.debug("Job window missing or incomplete; %s evaluates clear", worker.id)
            return result

        self._check_scope_preferences(worker, job, preferences, result)
        self._check_time_off(worker, job, time_off_requests, result)
        self._check_schedule(worker, job, assignments, unavailable_periods, result)
        self._check_worker_preferences(
            worker,
            worker_preferences,
            assigned_worker_ids,
            worker_names or {},
            result,
        )

        result.notes = certification_notes(
            worker,
            job.position,
            today or date.today(),
            self.certification_policy,
        )
        return result

    def evaluate_many(
        self,
        workers: Iterable[Worker],
        job: Optional[JobWindow],
        **records,
    ) -> dict[str, ConflictResult]:
        """Evaluate several workers against the same job.

        Args:
            workers: Candidate workers.
            job: The job window.
            **records: Keyword arguments forwarded to evaluate().

        Returns:
            Dict mapping worker IDs to their results.
        """
        workers = list(workers)
        if "worker_names" not in records:
            records["worker_names"] = {w.id: w.display_name for w in workers}
        return {w.id: self.evaluate(w, job, **records) for w in workers}

    def rank_workers(
        self,
        workers: Iterable[Worker],
        job: Optional[JobWindow],
        **records,
    ) -> list[tuple[Worker, ConflictResult]]:
        """Rank workers for a picker: preferred first, time-off conflicts last.

        Args:
            workers: Candidate workers.
            job: The job window.
            **records: Keyword arguments forwarded to evaluate().

        Returns:
            (worker, result) pairs sorted by sort priority, then name.
        """
        workers = list(workers)
        results = self.evaluate_many(workers, job, **records)
        ranked = [(w, results[w.id]) for w in workers]
        ranked.sort(key=lambda pair: (pair[1].sort_priority, pair[0].display_name.lower()))
        return ranked

    def _check_scope_preferences(
        self,
        worker: Worker,
        job: JobWindow,
        preferences: Iterable[PreferenceRecord],
        result: ConflictResult,
    ) -> None:
        """Check company, site and client preference records."""
        by_scope: dict[PreferenceScope, PreferenceRecord] = {}
        for pref in preferences:
            if pref.worker_id != worker.id or not pref.applies_to(job):
                continue
            # A mandatory restriction outranks any other record for the scope;
            # otherwise the first record wins
            current = by_scope.get(pref.scope)
            if current is None or (
                _is_mandatory_restriction(pref) and not _is_mandatory_restriction(current)
            ):
                by_scope[pref.scope] = pref

        for scope in _SCOPE_ORDER:
            pref = by_scope.get(scope)
            if pref is None:
                continue

            if pref.preference_type is PreferenceType.PREFERRED:
                result.preferred_count += 1
                continue

            name = job.scope_name(scope)
            reason = pref.reason or "No reason"
            if pref.is_mandatory:
                result.add_reason(
                    ConflictClassification.MANDATORY_BLOCK,
                    f"{name} (Mandatory): {reason}",
                    scope=scope.value,
                )
            else:
                result.add_reason(
                    ConflictClassification.NOT_PREFERRED,
                    f"{name}: {reason}",
                    scope=scope.value,
                )

    def _check_time_off(
        self,
        worker: Worker,
        job: JobWindow,
        time_off_requests: Iterable[TimeOffRequest],
        result: ConflictResult,
    ) -> None:
        """Check pending and approved time off against the job's days."""
        for request in time_off_requests:
            if request.worker_id != worker.id or not request.status.blocks_assignment:
                continue
            try:
                overlaps = request.overlaps_dates(job.start_date, job.end_date)
            except TypeError:
                logger.debug("Skipping malformed time-off request for %s", worker.id)
                continue
            if not overlaps:
                continue

            if request.start_date == request.end_date:
                date_range = f"at {_format_day(request.start_date)}"
            else:
                date_range = (
                    f"from {_format_day(request.start_date)} "
                    f"to {_format_day(request.end_date)}"
                )
            result.add_reason(
                ConflictClassification.TIME_OFF_CONFLICT,
                f"{request.type_label} {request.status.value} {date_range}",
                type=request.type,
                status=request.status.value,
            )

    def _check_schedule(
        self,
        worker: Worker,
        job: JobWindow,
        assignments: Iterable[WorkerAssignment],
        unavailable_periods: Iterable[UnavailablePeriod],
        result: ConflictResult,
    ) -> None:
        """Check direct overlaps and rest gaps against other commitments."""
        overlapping: list[WorkerAssignment] = []

        for assignment in assignments:
            if assignment.worker_id != worker.id or not assignment.is_active:
                continue
            if job.job_id is not None and assignment.job_id == job.job_id:
                continue
            try:
                gap = check_rest_gap(
                    job.start,
                    job.end,
                    assignment.start,
                    assignment.end,
                    self.rest_gap_policy,
                )
            except TypeError:
                logger.debug(
                    "Skipping assignment %s for %s: incomparable times",
                    assignment.job_id,
                    worker.id,
                )
                continue

            if gap.is_overlap:
                overlapping.append(assignment)
            elif gap.has_gap_violation:
                result.add_reason(
                    ConflictClassification.GAP_VIOLATION,
                    f"{assignment.label}: {gap.description}",
                    job_id=assignment.job_id,
                    gap_hours=gap.gap_hours,
                    can_resolve_with_early_finish=gap.can_resolve_with_early_finish,
                )

        unavailable: list[UnavailablePeriod] = []
        for period in unavailable_periods:
            if period.worker_id != worker.id:
                continue
            try:
                if period.start < job.end and period.end > job.start:
                    unavailable.append(period)
            except TypeError:
                logger.debug("Skipping unavailable period for %s: incomparable times", worker.id)

        self._add_overlap_reasons(overlapping, unavailable, result)

    def _add_overlap_reasons(
        self,
        overlapping: list[WorkerAssignment],
        unavailable: list[UnavailablePeriod],
        result: ConflictResult,
    ) -> None:
        """Summarize direct overlaps the way the worker picker shows them."""
        total = len(overlapping) + len(unavailable)
        if total == 0:
            return

        kind = ConflictClassification.DIRECT_OVERLAP
        job_ids = [a.job_id for a in overlapping]

        if total == 1 and unavailable:
            period = unavailable[0]
            result.add_reason(
                kind,
                f"Unavailable Period: {_format_moment(period.start)} to "
                f"{_format_moment(period.end, with_year=False)}\n"
                f"Reason: {period.reason or 'Marked as unavailable by admin'}",
            )
        elif total == 1:
            assignment = overlapping[0]
            result.add_reason(
                kind,
                f"Schedule Conflict: {assignment.label}\n"
                f"{_format_moment(assignment.start)} to "
                f"{_format_moment(assignment.end, with_year=False)}",
                job_ids=job_ids,
            )
        elif not overlapping:
            result.add_reason(
                kind,
                f"Unavailable: {len(unavailable)} period(s) marked as unavailable",
            )
        elif unavailable:
            result.add_reason(kind, f"{len(unavailable)} unavailable period(s)")
            result.add_reason(
                kind,
                f"{len(overlapping)} schedule conflict(s)",
                job_ids=job_ids,
            )
        else:
            result.add_reason(
                kind,
                f"Schedule Conflict: {len(overlapping)} overlapping jobs detected",
                job_ids=job_ids,
            )

    def _check_worker_preferences(
        self,
        worker: Worker,
        worker_preferences: Iterable[WorkerPreference],
        assigned_worker_ids: Iterable[str],
        worker_names: dict[str, str],
        result: ConflictResult,
    ) -> None:
        """Check not-preferred links with workers already on the job."""
        assigned = {wid for wid in assigned_worker_ids if wid and wid != worker.id}
        if not assigned:
            return

        for pref in worker_preferences:
            if pref.preference_type is not PreferenceType.NOT_PREFERRED:
                continue
            if pref.user_id == pref.employee_id:
                continue

            reason = pref.reason or "No reason provided"
            if pref.employee_id == worker.id and pref.user_id in assigned:
                other = worker_names.get(pref.user_id) or "Unknown Worker"
                message = f"{other} has marked this worker as not preferred: {reason}"
                other_id = pref.user_id
            elif pref.user_id == worker.id and pref.employee_id in assigned:
                other = worker_names.get(pref.employee_id) or "Unknown Worker"
                message = f"This worker has marked {other} as not preferred: {reason}"
                other_id = pref.employee_id
            else:
                continue

            result.add_reason(
                ConflictClassification.WORKER_CONFLICT,
                message,
                other_worker_id=other_id,
                is_mandatory=pref.is_mandatory,
            )
