"""Public certificate verification.

Read-only and safe for anonymous callers. Unknown or malformed codes are a
normal negative answer, never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from certification.certificates import lifecycle, service
from certification.certificates.schemas import PublicCertificateView, VerificationResponse
from certification.models.certificate import Certificate
from certification.models.enums import CertificateStatus

MAX_CODE_LENGTH = 64

# Base32 alphabet, unpadded
_CODE_RE = re.compile(r"[A-Z2-7]+")


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    certificate: PublicCertificateView | None = None

    def to_response(self) -> VerificationResponse:
        return VerificationResponse(valid=self.valid, certificate=self.certificate)


INVALID = VerificationResult(valid=False)


def public_view(cert: Certificate) -> PublicCertificateView:
    return PublicCertificateView(
        certificate_number=cert.certificate_number,
        holder_name=cert.holder_full_name,
        course_title=cert.course_title,
        grade=cert.grade,
        issue_date=cert.issue_date,
        expiry_date=cert.expiry_date,
        certificate_type=cert.certificate_type,
        certificate_level=cert.certificate_level,
        issued_by=cert.issued_by,
    )


async def verify(
    db: AsyncSession,
    code: str | None,
    *,
    today: date | None = None,
) -> VerificationResult:
    """Answer "is this code a currently valid certificate?".

    Validity is recomputed from the expiry date on every call rather than
    trusting the stored status alone.
    """
    if code is None:
        return INVALID
    code = code.strip().upper()
    if len(code) > MAX_CODE_LENGTH or not _CODE_RE.fullmatch(code):
        return INVALID

    cert = await service.get_certificate_by_code(db, code)
    if cert is None:
        return INVALID

    today = today or datetime.now(timezone.utc).date()
    status = lifecycle.effective_status(cert.status, cert.expiry_date, today)
    if status != CertificateStatus.ACTIVE:
        return INVALID
    return VerificationResult(valid=True, certificate=public_view(cert))
