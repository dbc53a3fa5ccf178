"""Certificate lifecycle rules: the single authority on expiry and status.

Pure functions, no DB imports. Verification, list filtering, response badges
and renewal eligibility all go through ``effective_status`` so a certificate
can never be shown as valid in one place and expired in another.

Transitions::

    issue()  ──► ACTIVE ──expire()──► EXPIRED ──renew()──► ACTIVE
                   │                     │
                   └──────revoke()───────┴──► REVOKED (terminal)
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date

from certification.models.enums import CertificateStatus


def is_expired(expiry_date: date, today: date) -> bool:
    return today > expiry_date


def effective_status(
    status: CertificateStatus,
    expiry_date: date,
    today: date,
) -> CertificateStatus:
    """Status as it must be reported at ``today``.

    Revoked and expired are sticky. Pending and active certificates whose
    expiry date has passed report as expired even if nobody has persisted
    that change yet.
    """
    if status in (CertificateStatus.REVOKED, CertificateStatus.EXPIRED):
        return status
    if is_expired(expiry_date, today):
        return CertificateStatus.EXPIRED
    return status


def add_years(start: date, years: int) -> date:
    """Shift ``start`` by whole calendar years; Feb 29 lands on Feb 28 when needed.

    Raises ``ValueError`` when the target year is outside the supported range.
    """
    year = start.year + years
    if not MINYEAR <= year <= MAXYEAR:
        raise ValueError(f"year {year} is out of range")
    if (start.month, start.day) == (2, 29) and not calendar.isleap(year):
        return start.replace(year=year, day=28)
    return start.replace(year=year)


def compute_expiry_date(issue_date: date, validity_years: int) -> date:
    if validity_years < 1:
        raise ValueError("validity_years must be at least 1")
    return add_years(issue_date, validity_years)


def renewed_expiry_date(previous_expiry: date, today: date, validity_years: int) -> date:
    """New expiry for a renewal, always strictly after ``previous_expiry``."""
    return compute_expiry_date(max(previous_expiry, today), validity_years)
