"""Tests for worker conflict evaluation."""

from datetime import date, datetime, timezone

import pytest

from shiftguard.conflicts.evaluator import (
    ConflictClassification,
    ConflictEvaluator,
    ConflictResult,
)
from shiftguard.domain.models import (
    AssignmentStatus,
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
from shiftguard.domain.policies import DefaultRestGapPolicy

TODAY = date(2025, 3, 1)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 3, day, hour, minute)


class TestConflictClassification:
    """Tests for the classification ordering and flags."""

    def test_priority_order(self):
        assert [c.value for c in ConflictClassification] == [
            "mandatory_block",
            "time_off_conflict",
            "direct_overlap",
            "gap_violation",
            "not_preferred",
            "worker_conflict",
            "clear",
        ]

    def test_severity_increases_down_the_list(self):
        severities = [c.severity for c in ConflictClassification]
        assert severities == sorted(severities)

    def test_blocking_and_warning_flags(self):
        assert ConflictClassification.DIRECT_OVERLAP.is_blocking is True
        assert ConflictClassification.GAP_VIOLATION.is_blocking is False
        assert ConflictClassification.GAP_VIOLATION.is_warning is True
        assert ConflictClassification.CLEAR.is_warning is False

    def test_label(self):
        assert ConflictClassification.TIME_OFF_CONFLICT.label == "Time Off Conflict"


class TestConflictEvaluator:
    """Tests for ConflictEvaluator.evaluate."""

    @pytest.fixture
    def evaluator(self):
        """Create an evaluator with default policies."""
        return ConflictEvaluator()

    @pytest.fixture
    def worker(self):
        return Worker(id="W1", name="Alice")

    @pytest.fixture
    def job(self):
        """Create an 8 AM - 4 PM job on March 10, 2025."""
        return JobWindow(
            start=at(10, 8),
            end=at(10, 16),
            job_id="J1",
            company_id="C1",
            site_id="S1",
            client_id="CL1",
            company_name="Northside Traffic",
            site_name="Harbour Bridge",
            client_name="City Works",
        )

    def evaluate(self, evaluator, worker, job, **records) -> ConflictResult:
        return evaluator.evaluate(worker, job, today=TODAY, **records)

    # Fail-open

    def test_clear_without_records(self, evaluator, worker, job):
        result = self.evaluate(evaluator, worker, job)
        assert result.classification == ConflictClassification.CLEAR
        assert result.reasons == []
        assert result.can_proceed is True
        assert result.sort_priority == 0

    def test_missing_job_is_clear(self, evaluator, worker):
        assignment = WorkerAssignment("W1", "J2", at(10, 8), at(10, 16))
        result = self.evaluate(evaluator, worker, None, assignments=[assignment])
        assert result.classification == ConflictClassification.CLEAR
        assert result.reasons == []

    def test_incomplete_job_is_clear(self, evaluator, worker):
        job = JobWindow(start=at(10, 16), end=at(10, 8), job_id="J1")
        assignment = WorkerAssignment("W1", "J2", at(10, 8), at(10, 16))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.CLEAR

    def test_job_without_end_is_clear(self, evaluator, worker):
        job = JobWindow(start=at(10, 8), end=None)
        result = self.evaluate(evaluator, worker, job)
        assert result.classification == ConflictClassification.CLEAR

    def test_incomparable_assignment_is_skipped(self, evaluator, worker, job):
        aware = WorkerAssignment(
            "W1",
            "J2",
            datetime(2025, 3, 10, 9, tzinfo=timezone.utc),
            datetime(2025, 3, 10, 12, tzinfo=timezone.utc),
        )
        result = self.evaluate(evaluator, worker, job, assignments=[aware])
        assert result.classification == ConflictClassification.CLEAR

    # Scope preferences

    def test_mandatory_block(self, evaluator, worker, job):
        pref = PreferenceRecord(
            "W1", PreferenceScope.SITE, "S1", is_mandatory=True, reason="Incident"
        )
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert result.classification == ConflictClassification.MANDATORY_BLOCK
        assert result.reasons == ["Harbour Bridge (Mandatory): Incident"]
        assert result.is_blocking is True
        assert result.can_proceed is False
        assert result.sort_priority == 1000

    def test_mandatory_block_without_names(self, evaluator, worker):
        job = JobWindow(start=at(10, 8), end=at(10, 16), site_id="S1")
        pref = PreferenceRecord("W1", PreferenceScope.SITE, "S1", is_mandatory=True)
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert result.reasons == ["Site (Mandatory): No reason"]

    def test_preference_for_other_scope_id_ignored(self, evaluator, worker, job):
        pref = PreferenceRecord("W1", PreferenceScope.SITE, "S2", is_mandatory=True)
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert result.classification == ConflictClassification.CLEAR

    def test_preference_for_other_worker_ignored(self, evaluator, worker, job):
        pref = PreferenceRecord("W2", PreferenceScope.SITE, "S1", is_mandatory=True)
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert result.classification == ConflictClassification.CLEAR

    def test_advisory_not_preferred(self, evaluator, worker, job):
        pref = PreferenceRecord("W1", PreferenceScope.CLIENT, "CL1", reason="Client feedback")
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert result.classification == ConflictClassification.NOT_PREFERRED
        assert result.reasons == ["City Works: Client feedback"]
        assert result.is_warning is True
        assert result.can_proceed is True
        assert result.sort_priority == 500

    def test_preferred_counts_toward_ranking(self, evaluator, worker, job):
        prefs = [
            PreferenceRecord(
                "W1", PreferenceScope.COMPANY, "C1", preference_type=PreferenceType.PREFERRED
            ),
            PreferenceRecord(
                "W1", PreferenceScope.SITE, "S1", preference_type=PreferenceType.PREFERRED
            ),
        ]
        result = self.evaluate(evaluator, worker, job, preferences=prefs)
        assert result.classification == ConflictClassification.CLEAR
        assert result.preferred_count == 2
        assert result.sort_priority == -2

    def test_later_mandatory_record_outranks_advisory(self, evaluator, worker, job):
        prefs = [
            PreferenceRecord("W1", PreferenceScope.SITE, "S1", reason="Late twice"),
            PreferenceRecord(
                "W1", PreferenceScope.SITE, "S1", is_mandatory=True, reason="Incident"
            ),
        ]
        result = self.evaluate(evaluator, worker, job, preferences=prefs)
        assert result.classification == ConflictClassification.MANDATORY_BLOCK
        assert result.reasons == ["Harbour Bridge (Mandatory): Incident"]

    def test_later_mandatory_record_outranks_preferred(self, evaluator, worker, job):
        prefs = [
            PreferenceRecord(
                "W1", PreferenceScope.SITE, "S1", preference_type=PreferenceType.PREFERRED
            ),
            PreferenceRecord("W1", PreferenceScope.SITE, "S1", is_mandatory=True),
        ]
        result = self.evaluate(evaluator, worker, job, preferences=prefs)
        assert result.classification == ConflictClassification.MANDATORY_BLOCK
        assert result.preferred_count == 0

    def test_first_advisory_record_per_scope_wins(self, evaluator, worker, job):
        prefs = [
            PreferenceRecord("W1", PreferenceScope.SITE, "S1", reason="first"),
            PreferenceRecord(
                "W1", PreferenceScope.SITE, "S1", preference_type=PreferenceType.PREFERRED
            ),
            PreferenceRecord("W1", PreferenceScope.SITE, "S1", reason="second"),
        ]
        result = self.evaluate(evaluator, worker, job, preferences=prefs)
        assert result.classification == ConflictClassification.NOT_PREFERRED
        assert result.reasons == ["Harbour Bridge: first"]
        assert result.preferred_count == 0

    def test_one_reason_per_matching_scope(self, evaluator, worker, job):
        prefs = [
            PreferenceRecord("W1", PreferenceScope.CLIENT, "CL1", is_mandatory=True, reason="a"),
            PreferenceRecord("W1", PreferenceScope.COMPANY, "C1", is_mandatory=True, reason="b"),
        ]
        result = self.evaluate(evaluator, worker, job, preferences=prefs)
        assert result.reasons == [
            "Northside Traffic (Mandatory): b",
            "City Works (Mandatory): a",
        ]

    # Time off

    def test_single_day_time_off(self, evaluator, worker, job):
        request = TimeOffRequest(
            "W1", date(2025, 3, 10), date(2025, 3, 10), status=TimeOffStatus.APPROVED
        )
        result = self.evaluate(evaluator, worker, job, time_off_requests=[request])
        assert result.classification == ConflictClassification.TIME_OFF_CONFLICT
        assert result.reasons == ["Day Off approved at Mar 10, 2025"]
        assert result.sort_priority == 3000

    def test_multi_day_pending_time_off(self, evaluator, worker, job):
        request = TimeOffRequest("W1", date(2025, 3, 8), date(2025, 3, 10), type="sick_leave")
        result = self.evaluate(evaluator, worker, job, time_off_requests=[request])
        assert result.reasons == ["Sick Leave pending from Mar 8, 2025 to Mar 10, 2025"]

    def test_rejected_time_off_never_blocks(self, evaluator, worker, job):
        request = TimeOffRequest(
            "W1", date(2025, 3, 10), date(2025, 3, 10), status=TimeOffStatus.REJECTED
        )
        result = self.evaluate(evaluator, worker, job, time_off_requests=[request])
        assert result.classification == ConflictClassification.CLEAR

    def test_time_off_on_other_days(self, evaluator, worker, job):
        request = TimeOffRequest("W1", date(2025, 3, 11), date(2025, 3, 14))
        result = self.evaluate(evaluator, worker, job, time_off_requests=[request])
        assert result.classification == ConflictClassification.CLEAR

    def test_overnight_job_checks_end_day(self, evaluator, worker):
        job = JobWindow(start=at(10, 22), end=at(11, 6), job_id="J1")
        request = TimeOffRequest("W1", date(2025, 3, 11), date(2025, 3, 11))
        result = self.evaluate(evaluator, worker, job, time_off_requests=[request])
        assert result.classification == ConflictClassification.TIME_OFF_CONFLICT

    # Schedule

    def test_direct_overlap(self, evaluator, worker, job):
        assignment = WorkerAssignment(
            "W1",
            "J2",
            at(10, 12),
            at(10, 20),
            job_number="1042",
            site_name="Ridge Road",
            client_name="Metro Gas",
        )
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.DIRECT_OVERLAP
        assert result.reasons == [
            "Schedule Conflict: Job #1042 at Ridge Road (Metro Gas)\n"
            "Mar 10, 2025 12:00 PM to Mar 10, 8:00 PM"
        ]
        assert result.sort_priority == 2000

    def test_label_fallbacks(self, evaluator, worker, job):
        assignment = WorkerAssignment("W1", "job-0000abcd1234", at(10, 12), at(10, 20))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.reasons[0].startswith(
            "Schedule Conflict: Job #abcd1234 at Unknown Site (Unknown Client)"
        )

    def test_pending_assignment_counts(self, evaluator, worker, job):
        assignment = WorkerAssignment(
            "W1", "J2", at(10, 9), at(10, 10), status=AssignmentStatus.PENDING
        )
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.DIRECT_OVERLAP

    @pytest.mark.parametrize(
        "status",
        [AssignmentStatus.DRAFT, AssignmentStatus.REJECTED, AssignmentStatus.CANCELLED],
    )
    def test_inactive_assignments_ignored(self, evaluator, worker, job, status):
        assignment = WorkerAssignment("W1", "J2", at(10, 9), at(10, 10), status=status)
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.CLEAR

    def test_same_job_ignored(self, evaluator, worker, job):
        assignment = WorkerAssignment("W1", "J1", at(10, 8), at(10, 16))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.CLEAR

    def test_multiple_overlaps(self, evaluator, worker, job):
        assignments = [
            WorkerAssignment("W1", "J2", at(10, 7), at(10, 9)),
            WorkerAssignment("W1", "J3", at(10, 15), at(10, 18)),
        ]
        result = self.evaluate(evaluator, worker, job, assignments=assignments)
        assert result.reasons == ["Schedule Conflict: 2 overlapping jobs detected"]

    def test_unavailable_period(self, evaluator, worker, job):
        period = UnavailablePeriod("W1", at(10, 13), at(10, 17), reason="Medical")
        result = self.evaluate(evaluator, worker, job, unavailable_periods=[period])
        assert result.classification == ConflictClassification.DIRECT_OVERLAP
        assert result.reasons == [
            "Unavailable Period: Mar 10, 2025 1:00 PM to Mar 10, 5:00 PM\nReason: Medical"
        ]

    def test_unavailable_period_default_reason(self, evaluator, worker, job):
        period = UnavailablePeriod("W1", at(10, 13), at(10, 17))
        result = self.evaluate(evaluator, worker, job, unavailable_periods=[period])
        assert result.reasons[0].endswith("Reason: Marked as unavailable by admin")

    def test_unavailable_and_assignment_overlaps(self, evaluator, worker, job):
        result = self.evaluate(
            evaluator,
            worker,
            job,
            assignments=[WorkerAssignment("W1", "J2", at(10, 9), at(10, 10))],
            unavailable_periods=[UnavailablePeriod("W1", at(10, 13), at(10, 17))],
        )
        assert result.reasons == ["1 unavailable period(s)", "1 schedule conflict(s)"]

    def test_gap_violation(self, evaluator, worker, job):
        assignment = WorkerAssignment(
            "W1", "J2", at(10, 0), at(10, 4), job_number="7", site_name="A", client_name="B"
        )
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.GAP_VIOLATION
        assert result.reasons == [
            "Job #7 at A (B): Only 4.0 hours between shifts. Worker needs to finish by "
            "12:00 AM to maintain 8-hour gap."
        ]
        assert result.is_warning is True
        assert result.can_proceed is True
        assert result.sort_priority == 2000

    def test_touching_shift_is_gap_violation_not_overlap(self, evaluator, worker, job):
        assignment = WorkerAssignment("W1", "J2", at(10, 0), at(10, 8))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.GAP_VIOLATION

    def test_eight_hour_gap_is_clear(self, evaluator, worker, job):
        assignment = WorkerAssignment("W1", "J2", at(9, 22), at(10, 0))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.CLEAR

    def test_custom_rest_gap_policy(self, worker, job):
        evaluator = ConflictEvaluator(rest_gap_policy=DefaultRestGapPolicy(rest_hours=10))
        assignment = WorkerAssignment("W1", "J2", at(9, 20), at(9, 23))
        result = self.evaluate(evaluator, worker, job, assignments=[assignment])
        assert result.classification == ConflictClassification.GAP_VIOLATION

    # Worker-to-worker

    def test_worker_conflict_from_assigned_worker(self, evaluator, worker, job):
        pref = WorkerPreference(user_id="W2", employee_id="W1", reason="Slow")
        result = self.evaluate(
            evaluator,
            worker,
            job,
            worker_preferences=[pref],
            assigned_worker_ids=["W2"],
            worker_names={"W2": "Bob"},
        )
        assert result.classification == ConflictClassification.WORKER_CONFLICT
        assert result.reasons == ["Bob has marked this worker as not preferred: Slow"]
        assert result.sort_priority == 500

    def test_worker_conflict_from_candidate(self, evaluator, worker, job):
        pref = WorkerPreference(user_id="W1", employee_id="W2")
        result = self.evaluate(
            evaluator,
            worker,
            job,
            worker_preferences=[pref],
            assigned_worker_ids=["W2"],
        )
        assert result.reasons == [
            "This worker has marked Unknown Worker as not preferred: No reason provided"
        ]

    def test_mandatory_worker_preference_is_still_a_warning(self, evaluator, worker, job):
        pref = WorkerPreference(user_id="W2", employee_id="W1", is_mandatory=True)
        result = self.evaluate(
            evaluator, worker, job, worker_preferences=[pref], assigned_worker_ids=["W2"]
        )
        assert result.classification == ConflictClassification.WORKER_CONFLICT
        assert result.details[0].details["is_mandatory"] is True

    def test_worker_preference_needs_assigned_worker(self, evaluator, worker, job):
        pref = WorkerPreference(user_id="W2", employee_id="W1")
        result = self.evaluate(
            evaluator, worker, job, worker_preferences=[pref], assigned_worker_ids=["W3"]
        )
        assert result.classification == ConflictClassification.CLEAR

    def test_preferred_worker_link_is_not_conflict(self, evaluator, worker, job):
        pref = WorkerPreference(
            user_id="W2", employee_id="W1", preference_type=PreferenceType.PREFERRED
        )
        result = self.evaluate(
            evaluator, worker, job, worker_preferences=[pref], assigned_worker_ids=["W2"]
        )
        assert result.classification == ConflictClassification.CLEAR

    def test_self_reference_ignored(self, evaluator, worker, job):
        pref = WorkerPreference(user_id="W1", employee_id="W1")
        result = self.evaluate(
            evaluator, worker, job, worker_preferences=[pref], assigned_worker_ids=["W1"]
        )
        assert result.classification == ConflictClassification.CLEAR

    # Priority

    def test_highest_priority_wins_and_all_reasons_kept(self, evaluator, worker, job):
        result = self.evaluate(
            evaluator,
            worker,
            job,
            preferences=[
                PreferenceRecord("W1", PreferenceScope.CLIENT, "CL1", reason="Feedback"),
                PreferenceRecord("W1", PreferenceScope.SITE, "S1", is_mandatory=True),
            ],
            time_off_requests=[TimeOffRequest("W1", date(2025, 3, 10), date(2025, 3, 10))],
            assignments=[WorkerAssignment("W1", "J2", at(10, 12), at(10, 20))],
        )
        assert result.classification == ConflictClassification.MANDATORY_BLOCK
        assert result.matched == [
            ConflictClassification.MANDATORY_BLOCK,
            ConflictClassification.TIME_OFF_CONFLICT,
            ConflictClassification.DIRECT_OVERLAP,
            ConflictClassification.NOT_PREFERRED,
        ]
        assert result.reasons[0] == "Harbour Bridge (Mandatory): No reason"
        assert result.reasons[-1] == "City Works: Feedback"
        # Ranking puts time off behind everything else
        assert result.sort_priority == 3000

    def test_time_off_beats_overlap(self, evaluator, worker, job):
        result = self.evaluate(
            evaluator,
            worker,
            job,
            time_off_requests=[TimeOffRequest("W1", date(2025, 3, 10), date(2025, 3, 10))],
            assignments=[WorkerAssignment("W1", "J2", at(10, 12), at(10, 20))],
        )
        assert result.classification == ConflictClassification.TIME_OFF_CONFLICT

    def test_str(self, evaluator, worker, job):
        pref = PreferenceRecord("W1", PreferenceScope.SITE, "S1", is_mandatory=True)
        result = self.evaluate(evaluator, worker, job, preferences=[pref])
        assert str(result).startswith("[mandatory_block] Worker W1")

    # Certification notes

    def test_certification_notes_do_not_change_classification(self, evaluator, worker):
        job = JobWindow(start=at(10, 8), end=at(10, 16), position="tcp")
        result = self.evaluate(evaluator, worker, job)
        assert result.classification == ConflictClassification.CLEAR
        assert result.notes == ["No TCP Certification (informational only)"]


class TestRanking:
    """Tests for evaluate_many and rank_workers."""

    @pytest.fixture
    def evaluator(self):
        return ConflictEvaluator()

    @pytest.fixture
    def job(self):
        return JobWindow(start=at(10, 8), end=at(10, 16), job_id="J1", site_id="S1")

    @pytest.fixture
    def workers(self):
        return [
            Worker(id="W1", name="Zoe"),
            Worker(id="W2", name="Bob"),
            Worker(id="W3", name="Carl"),
            Worker(id="W4", name="Amy"),
        ]

    def test_evaluate_many_fills_worker_names(self, evaluator, job, workers):
        results = evaluator.evaluate_many(
            workers,
            job,
            worker_preferences=[WorkerPreference(user_id="W2", employee_id="W1")],
            assigned_worker_ids=["W2"],
            today=TODAY,
        )
        assert set(results) == {"W1", "W2", "W3", "W4"}
        assert results["W1"].reasons == [
            "Bob has marked this worker as not preferred: No reason provided"
        ]

    def test_rank_workers(self, evaluator, job, workers):
        ranked = evaluator.rank_workers(
            workers,
            job,
            time_off_requests=[TimeOffRequest("W4", date(2025, 3, 10), date(2025, 3, 10))],
            preferences=[
                PreferenceRecord(
                    "W1", PreferenceScope.SITE, "S1", preference_type=PreferenceType.PREFERRED
                ),
            ],
            today=TODAY,
        )
        names = [worker.name for worker, _ in ranked]
        # Preferred first, then clear workers by name, time off last
        assert names == ["Zoe", "Bob", "Carl", "Amy"]
