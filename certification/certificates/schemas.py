"""Certificate domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from certification.models.enums import (
    CertificateLevel,
    CertificateStatus,
    CertificateType,
    Grade,
)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PersonRef(BaseModel):
    """Snapshot of an external user (holder or instructor)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)


class CourseRef(BaseModel):
    """Snapshot of an external course."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID | None = None
    title: str | None = Field(default=None, max_length=300)


class ScoreIn(BaseModel):
    obtained: int
    total: int
    percentage: float | None = Field(
        default=None,
        description="Derived from obtained/total when omitted; must agree with it when given.",
    )


class IssueCertificateRequest(BaseModel):
    """Request body for certificate issuance.

    Required-field checks live in ``service.issue_certificate`` rather than here so that
    every problem is reported together as one ``ValidationError``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    holder: PersonRef | None = None
    course: CourseRef | None = None
    instructor: PersonRef | None = None
    issue_date: date | None = None
    expiry_date: date | None = Field(
        default=None,
        description="Optional override; defaults to issue_date + the configured validity period.",
    )
    grade: str | None = None
    certificate_type: str | None = CertificateType.COMPLETION.value
    certificate_level: str | None = None
    score: ScoreIn | None = None
    issued_by: str | None = Field(default=None, max_length=200)


class RevokeCertificateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    revocation_reason: str | None = Field(default=None, max_length=500)


class CertificateFilter(BaseModel):
    """Filters for listing certificates. ``status`` matches the effective status."""

    status: CertificateStatus | None = None
    holder_id: UUID | None = None
    course_id: UUID | None = None
    instructor_id: UUID | None = None
    search: str | None = Field(
        default=None,
        max_length=100,
        description="Case-insensitive match on certificate number or verification code.",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ScoreOut(BaseModel):
    obtained: int
    total: int
    percentage: float


class CertificateResponse(BaseModel):
    """Full certificate record for administrative callers."""

    model_config = ConfigDict(from_attributes=True)

    certificate_id: UUID
    certificate_number: str
    verification_code: str
    status: CertificateStatus = Field(description="Effective status at response time.")
    verified: bool
    holder_id: UUID
    holder_name: str
    holder_email: str | None = None
    course_id: UUID
    course_title: str
    instructor_id: UUID
    instructor_name: str
    issue_date: date
    expiry_date: date
    grade: Grade
    certificate_type: CertificateType
    certificate_level: CertificateLevel
    score: ScoreOut | None = None
    issued_by: str
    authorized_by: UUID | None = None
    revocation_reason: str | None = None
    revoked_at: datetime | None = None
    renewed_at: datetime | None = None
    verification_url: str | None = Field(
        default=None,
        description="Full URL encoded in the certificate QR code.",
    )


class PublicCertificateView(BaseModel):
    """Restricted view returned by public verification."""

    certificate_number: str
    holder_name: str
    course_title: str
    grade: Grade
    issue_date: date
    expiry_date: date
    certificate_type: CertificateType
    certificate_level: CertificateLevel
    issued_by: str


class VerificationResponse(BaseModel):
    """Public verification result (accessed via QR code scan)."""

    valid: bool
    certificate: PublicCertificateView | None = None
