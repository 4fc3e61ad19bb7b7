"""Rest gap arithmetic between shifts.

Gaps are measured in hours. A negative gap means the two periods overlap
and its magnitude is the length of the overlap.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from shiftguard.domain.policies import DefaultRestGapPolicy, RestGapPolicy


def format_clock(moment: datetime) -> str:
    """Format a time of day like "7:00 AM"."""
    return moment.strftime("%I:%M %p").lstrip("0")


def hours_between(earlier: datetime, later: datetime) -> float:
    """Signed number of hours from earlier to later."""
    return (later - earlier) / timedelta(hours=1)


def calculate_gap_hours(
    start1: datetime,
    end1: datetime,
    start2: datetime,
    end2: datetime,
) -> float:
    """Calculate the gap between two time periods.

    Args:
        start1: Start of the first period.
        end1: End of the first period.
        start2: Start of the second period.
        end2: End of the second period.

    Returns:
        Gap in hours; negative (minus the overlap length) if they overlap.
    """
    if start1 < end2 and end1 > start2:
        overlap_start = max(start1, start2)
        overlap_end = min(end1, end2)
        return -hours_between(overlap_start, overlap_end)

    if end1 <= start2:
        return hours_between(end1, start2)
    return hours_between(end2, start1)


@dataclass
class GapCalculation:
    """Result of checking the rest gap between a new and an existing shift.

    Attributes:
        has_gap_violation: True if the shifts don't overlap but rest is too short.
        gap_hours: Gap in hours (negative when overlapping).
        can_resolve_with_early_finish: True if finishing the existing shift
            earlier would restore the required rest.
        required_finish_time: Latest finish for the existing shift, if resolvable
            by finishing early.
        description: Human-readable explanation.
    """

    has_gap_violation: bool
    gap_hours: float
    can_resolve_with_early_finish: bool = False
    required_finish_time: Optional[datetime] = None
    description: str = ""

    @property
    def is_overlap(self) -> bool:
        return self.gap_hours < 0


def check_rest_gap(
    new_start: datetime,
    new_end: datetime,
    existing_start: datetime,
    existing_end: datetime,
    policy: Optional[RestGapPolicy] = None,
) -> GapCalculation:
    """Check whether a new shift leaves enough rest around an existing one.

    Args:
        new_start: Start of the shift being considered.
        new_end: End of the shift being considered.
        existing_start: Start of the worker's existing shift.
        existing_end: End of the worker's existing shift.
        policy: Rest gap policy (defaults to 8 hours).

    Returns:
        GapCalculation describing the gap.
    """
    policy = policy or DefaultRestGapPolicy()
    rest_hours = policy.min_rest_hours()
    gap = calculate_gap_hours(existing_start, existing_end, new_start, new_end)

    if gap < 0:
        return GapCalculation(
            has_gap_violation=False,
            gap_hours=gap,
            description="Shifts overlap directly. Worker cannot be assigned to both.",
        )

    if not policy.is_gap_violation(gap):
        return GapCalculation(
            has_gap_violation=False,
            gap_hours=gap,
            description=f"{gap:.1f} hours between shifts. Adequate gap maintained.",
        )

    if existing_end <= new_start:
        # Existing shift comes first; finishing it earlier can restore rest
        required_finish = new_start - policy.min_rest()
        resolvable = required_finish >= existing_start
        if resolvable:
            description = (
                f"Only {gap:.1f} hours between shifts. Worker needs to finish by "
                f"{format_clock(required_finish)} to maintain {rest_hours:g}-hour gap."
            )
        else:
            description = (
                f"Only {gap:.1f} hours between shifts. Cannot maintain "
                f"{rest_hours:g}-hour gap even with early finish."
            )
        return GapCalculation(
            has_gap_violation=True,
            gap_hours=gap,
            can_resolve_with_early_finish=resolvable,
            required_finish_time=required_finish if resolvable else None,
            description=description,
        )

    return GapCalculation(
        has_gap_violation=True,
        gap_hours=gap,
        description=(
            f"Only {gap:.1f} hours between shifts. {rest_hours:g}-hour gap "
            f"required between consecutive shifts."
        ),
    )


def earliest_available_time(
    existing_windows: Iterable[tuple[datetime, datetime]],
    proposed_start: datetime,
    policy: Optional[RestGapPolicy] = None,
) -> Optional[datetime]:
    """Calculate the earliest start that keeps the rest gap after existing shifts.

    Only shifts ending after the proposed start push it back.

    Args:
        existing_windows: (start, end) pairs of the worker's existing shifts.
        proposed_start: Proposed start of the new shift.
        policy: Rest gap policy (defaults to 8 hours).

    Returns:
        The earliest possible start, or None if the proposed start already works.
    """
    policy = policy or DefaultRestGapPolicy()
    earliest = proposed_start

    for _, existing_end in existing_windows:
        if existing_end > proposed_start:
            candidate = existing_end + policy.min_rest()
            if candidate > earliest:
                earliest = candidate

    return earliest if earliest > proposed_start else None
