"""Load a conflict-evaluation request from JSON.

Expected layout::

    {
      "job": {"id": "...", "start": "2025-03-10T08:00", "end": "...",
              "company_id": "...", "site_id": "...", "client_id": "...",
              "company_name": "...", "site_name": "...", "client_name": "...",
              "position": "tcp"},
      "workers": [{"id": "w1", "name": "Ana",
                   "certifications": {"tcp": "2026-01-31", "driver_license": null}}],
      "assignments": [{"worker_id": "w1", "job_id": "j2", "start": "...",
                       "end": "...", "status": "accepted", "job_number": "1042",
                       "site_name": "...", "client_name": "..."}],
      "unavailable": [{"worker_id": "w1", "start": "...", "end": "...", "reason": "..."}],
      "time_off": [{"worker_id": "w1", "start_date": "2025-03-10",
                    "end_date": "2025-03-11", "status": "approved",
                    "type": "day_off", "reason": "..."}],
      "preferences": [{"worker_id": "w1", "scope": "site", "scope_id": "s1",
                       "type": "not_preferred", "mandatory": true, "reason": "..."}],
      "worker_preferences": [{"user_id": "w1", "employee_id": "w2",
                              "type": "not_preferred", "mandatory": false, "reason": "..."}],
      "assigned_worker_ids": ["w2"]
    }

Every key except "workers" is optional.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

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

logger = logging.getLogger(__name__)


class InputError(ValueError):
    """Raised when request input is malformed.

    Attributes:
        path: Location of the offending value, e.g. "assignments[2].start".
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


@dataclass
class EvaluationRequest:
    """Everything needed to evaluate workers against one job."""

    job: Optional[JobWindow]
    workers: list[Worker] = field(default_factory=list)
    assignments: list[WorkerAssignment] = field(default_factory=list)
    unavailable_periods: list[UnavailablePeriod] = field(default_factory=list)
    time_off_requests: list[TimeOffRequest] = field(default_factory=list)
    preferences: list[PreferenceRecord] = field(default_factory=list)
    worker_preferences: list[WorkerPreference] = field(default_factory=list)
    assigned_worker_ids: list[str] = field(default_factory=list)

    def records(self) -> dict[str, Any]:
        """Keyword arguments for ConflictEvaluator.evaluate()."""
        return {
            "assignments": self.assignments,
            "time_off_requests": self.time_off_requests,
            "preferences": self.preferences,
            "worker_preferences": self.worker_preferences,
            "assigned_worker_ids": self.assigned_worker_ids,
            "unavailable_periods": self.unavailable_periods,
        }

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        return None


def load_request(path: Union[str, Path]) -> EvaluationRequest:
    """Read and parse a request file.

    Raises:
        InputError: If the file can't be read or its content is malformed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as exc:
        raise InputError("", f"cannot read {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise InputError("", f"invalid JSON in {path}: {exc}") from exc
    return parse_request(raw)


def parse_request(raw: Any) -> EvaluationRequest:
    """Build an EvaluationRequest from decoded JSON."""
    if not isinstance(raw, dict):
        raise InputError("", "top level must be an object")

    request = EvaluationRequest(
        job=_parse_job(raw.get("job")),
        workers=[_parse_worker(item, p) for p, item in _items(raw, "workers")],
        assignments=[_parse_assignment(item, p) for p, item in _items(raw, "assignments")],
        unavailable_periods=[
            _parse_unavailable(item, p) for p, item in _items(raw, "unavailable")
        ],
        time_off_requests=[_parse_time_off(item, p) for p, item in _items(raw, "time_off")],
        preferences=[_parse_preference(item, p) for p, item in _items(raw, "preferences")],
        worker_preferences=[
            _parse_worker_preference(item, p)
            for p, item in _items(raw, "worker_preferences")
        ],
        assigned_worker_ids=[
            _text(item, p) for p, item in _items(raw, "assigned_worker_ids", objects=False)
        ],
    )
    logger.debug(
        "Loaded request: %d workers, %d assignments, %d time-off requests",
        len(request.workers),
        len(request.assignments),
        len(request.time_off_requests),
    )
    return request


def _items(raw: dict, key: str, objects: bool = True):
    values = raw.get(key) or []
    if not isinstance(values, list):
        raise InputError(key, "must be a list")
    for i, item in enumerate(values):
        path = f"{key}[{i}]"
        if objects and not isinstance(item, dict):
            raise InputError(path, "must be an object")
        yield path, item


def _text(value: Any, path: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InputError(path, "must be a string")
    return str(value)


def _required(item: dict, key: str, path: str) -> Any:
    if item.get(key) is None:
        raise InputError(f"{path}.{key}", "is required")
    return item[key]


def _optional_text(item: dict, key: str, path: str) -> Optional[str]:
    value = item.get(key)
    return None if value is None else _text(value, f"{path}.{key}")


def _flag(item: dict, key: str, path: str) -> bool:
    value = item.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InputError(f"{path}.{key}", "must be true or false")
    return value


def _datetime(value: Any, path: str) -> datetime:
    if not isinstance(value, str):
        raise InputError(path, "must be an ISO 8601 timestamp")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InputError(path, f"invalid timestamp {value!r}") from None


def _date(value: Any, path: str) -> date:
    if not isinstance(value, str):
        raise InputError(path, "must be a YYYY-MM-DD date")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise InputError(path, f"invalid date {value!r}") from None


def _enum(enum_cls: type[Enum], value: Any, path: str, default: Optional[Enum]) -> Enum:
    if value is None:
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InputError(path, f"must be one of {allowed}, got {value!r}") from None


def _parse_job(item: Any) -> Optional[JobWindow]:
    if item is None:
        return None
    if not isinstance(item, dict):
        raise InputError("job", "must be an object")

    # Missing times load as an incomplete window so evaluation fails open
    start = _datetime(item["start"], "job.start") if item.get("start") else None
    end = _datetime(item["end"], "job.end") if item.get("end") else None
    job = JobWindow(
        start=start,
        end=end,
        job_id=_optional_text(item, "id", "job"),
        company_id=_optional_text(item, "company_id", "job"),
        site_id=_optional_text(item, "site_id", "job"),
        client_id=_optional_text(item, "client_id", "job"),
        company_name=_optional_text(item, "company_name", "job"),
        site_name=_optional_text(item, "site_name", "job"),
        client_name=_optional_text(item, "client_name", "job"),
        position=_optional_text(item, "position", "job"),
    )
    if not job.is_complete:
        logger.warning("Job window is incomplete; every worker will evaluate clear")
        return None
    return job


def _parse_worker(item: dict, path: str) -> Worker:
    certifications = {}
    raw_certs = item.get("certifications") or {}
    if not isinstance(raw_certs, dict):
        raise InputError(f"{path}.certifications", "must be an object")
    for key, expiry in raw_certs.items():
        cert_path = f"{path}.certifications.{key}"
        kind = _enum(CertificationKind, key, cert_path, None)
        expiry_date = None if expiry is None else _date(expiry, cert_path)
        certifications[kind] = Certification(kind=kind, expiry_date=expiry_date)

    return Worker(
        id=_text(_required(item, "id", path), f"{path}.id"),
        name=_optional_text(item, "name", path) or "",
        certifications=certifications,
    )


def _parse_assignment(item: dict, path: str) -> WorkerAssignment:
    return WorkerAssignment(
        worker_id=_text(_required(item, "worker_id", path), f"{path}.worker_id"),
        job_id=_text(_required(item, "job_id", path), f"{path}.job_id"),
        start=_datetime(_required(item, "start", path), f"{path}.start"),
        end=_datetime(_required(item, "end", path), f"{path}.end"),
        status=_enum(
            AssignmentStatus, item.get("status"), f"{path}.status", AssignmentStatus.ACCEPTED
        ),
        job_number=_optional_text(item, "job_number", path),
        site_name=_optional_text(item, "site_name", path),
        client_name=_optional_text(item, "client_name", path),
    )


def _parse_unavailable(item: dict, path: str) -> UnavailablePeriod:
    return UnavailablePeriod(
        worker_id=_text(_required(item, "worker_id", path), f"{path}.worker_id"),
        start=_datetime(_required(item, "start", path), f"{path}.start"),
        end=_datetime(_required(item, "end", path), f"{path}.end"),
        reason=_optional_text(item, "reason", path) or "",
    )


def _parse_time_off(item: dict, path: str) -> TimeOffRequest:
    return TimeOffRequest(
        worker_id=_text(_required(item, "worker_id", path), f"{path}.worker_id"),
        start_date=_date(_required(item, "start_date", path), f"{path}.start_date"),
        end_date=_date(_required(item, "end_date", path), f"{path}.end_date"),
        status=_enum(TimeOffStatus, item.get("status"), f"{path}.status", TimeOffStatus.PENDING),
        type=_optional_text(item, "type", path) or "day_off",
        reason=_optional_text(item, "reason", path) or "",
    )


def _parse_preference(item: dict, path: str) -> PreferenceRecord:
    return PreferenceRecord(
        worker_id=_text(_required(item, "worker_id", path), f"{path}.worker_id"),
        scope=_enum(PreferenceScope, _required(item, "scope", path), f"{path}.scope", None),
        scope_id=_optional_text(item, "scope_id", path),
        preference_type=_enum(
            PreferenceType, item.get("type"), f"{path}.type", PreferenceType.NOT_PREFERRED
        ),
        is_mandatory=_flag(item, "mandatory", path),
        reason=_optional_text(item, "reason", path) or "",
    )


def _parse_worker_preference(item: dict, path: str) -> WorkerPreference:
    return WorkerPreference(
        user_id=_text(_required(item, "user_id", path), f"{path}.user_id"),
        employee_id=_text(_required(item, "employee_id", path), f"{path}.employee_id"),
        preference_type=_enum(
            PreferenceType, item.get("type"), f"{path}.type", PreferenceType.NOT_PREFERRED
        ),
        is_mandatory=_flag(item, "mandatory", path),
        reason=_optional_text(item, "reason", path) or "",
    )
