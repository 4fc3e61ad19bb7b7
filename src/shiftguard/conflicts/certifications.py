"""Certification status checks for position requirements.

Certification problems are informational only: they are reported next to
a conflict result but never change its classification.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from shiftguard.domain.models import Worker
from shiftguard.domain.policies import CertificationPolicy, DefaultCertificationPolicy


@dataclass(frozen=True)
class CertificationStatus:
    """Status of a single certification on a given day.

    Attributes:
        has_certification: Whether the worker holds it at all.
        is_valid: Whether it has not yet expired (expiry day counts as valid).
        is_expiring_soon: Whether it expires within the warning window.
        days_remaining: Days until expiry (negative once expired).
    """

    has_certification: bool
    is_valid: bool = False
    is_expiring_soon: bool = False
    days_remaining: int = 0


def certification_status(
    expiry_date: Optional[date],
    today: date,
    policy: Optional[CertificationPolicy] = None,
) -> CertificationStatus:
    """Compute certification status from its expiry date.

    Args:
        expiry_date: Expiry date, or None if the worker has no certification.
        today: Reference day.
        policy: Certification policy (defaults to a 30-day warning window).

    Returns:
        CertificationStatus for the given day.
    """
    if expiry_date is None:
        return CertificationStatus(has_certification=False)

    policy = policy or DefaultCertificationPolicy()
    days_remaining = (expiry_date - today).days
    return CertificationStatus(
        has_certification=True,
        is_valid=expiry_date >= today,
        is_expiring_soon=0 <= days_remaining <= policy.expiring_soon_days(),
        days_remaining=days_remaining,
    )


def certification_notes(
    worker: Worker,
    position: Optional[str],
    today: date,
    policy: Optional[CertificationPolicy] = None,
) -> list[str]:
    """Build informational notes for certifications a position requires.

    Args:
        worker: The worker being considered.
        position: Position code of the job (None means no requirements).
        today: Reference day.
        policy: Certification policy.

    Returns:
        Notes in requirement order; empty if everything is in order.
    """
    if not position:
        return []

    policy = policy or DefaultCertificationPolicy()
    notes = []

    for kind in policy.required_certifications(position):
        certification = worker.get_certification(kind)
        expiry = certification.expiry_date if certification else None
        status = certification_status(expiry, today, policy)

        if certification is None:
            notes.append(f"No {kind.label} (informational only)")
        elif expiry is None:
            # Held but no expiry on file
            continue
        elif not status.is_valid:
            notes.append(f"{kind.label} is expired (informational only)")
        elif status.is_expiring_soon:
            unit = "day" if status.days_remaining == 1 else "days"
            notes.append(
                f"{kind.label} expires in {status.days_remaining} {unit} (informational only)"
            )

    return notes
