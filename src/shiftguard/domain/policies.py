"""Policy definitions for conflict rules.

This module contains configurable policies that define business rules
for rest gaps between shifts and certification requirements. Policies are
kept separate from the evaluator to allow independent testing and easy
modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta

from shiftguard.domain.models import CertificationKind


class RestGapPolicy(ABC):
    """Abstract base class for minimum rest between shifts."""

    @abstractmethod
    def min_rest_hours(self) -> float:
        """Minimum rest between two shifts, in hours."""
        pass

    @abstractmethod
    def is_gap_violation(self, gap_hours: float) -> bool:
        """Check if a gap (negative means overlap) is too short without overlapping."""
        pass

    def min_rest(self) -> timedelta:
        """Minimum rest as a timedelta."""
        return timedelta(hours=self.min_rest_hours())


class CertificationPolicy(ABC):
    """Abstract base class for position certification rules."""

    @abstractmethod
    def required_certifications(self, position: str) -> list[CertificationKind]:
        """Get certifications a position requires, in display order.

        Args:
            position: Position code (case-insensitive).

        Returns:
            Required certification kinds (empty if none).
        """
        pass

    @abstractmethod
    def expiring_soon_days(self) -> int:
        """Days before expiry at which a certification counts as expiring soon."""
        pass


@dataclass
class DefaultRestGapPolicy(RestGapPolicy):
    """Default rest gap policy implementation.

    Consecutive shifts need at least 8 hours between the end of one and
    the start of the other. Touching shifts (0 hours) are a violation;
    exactly 8 hours is not.
    """

    rest_hours: float = 8.0

    def min_rest_hours(self) -> float:
        return self.rest_hours

    def is_gap_violation(self, gap_hours: float) -> bool:
        return 0 <= gap_hours < self.rest_hours


@dataclass
class DefaultCertificationPolicy(CertificationPolicy):
    """Default certification policy implementation.

    Requirements:
    - TCP and LCT positions need a TCP certification
    - LCT positions also need a driver license

    A certification expiring within 30 days (inclusive) is flagged.
    """

    requirements: dict[str, list[CertificationKind]] = field(
        default_factory=lambda: {
            "tcp": [CertificationKind.TCP],
            "lct": [CertificationKind.TCP, CertificationKind.DRIVER_LICENSE],
        }
    )
    warning_days: int = 30

    def required_certifications(self, position: str) -> list[CertificationKind]:
        return list(self.requirements.get(position.strip().lower(), []))

    def expiring_soon_days(self) -> int:
        return self.warning_days
