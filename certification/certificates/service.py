"""Certificate registry: issuance, lifecycle transitions, and lookups.

Pure business logic, no FastAPI imports.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from certification.certificates import lifecycle
from certification.certificates.codes import CodeGenerator, make_code_generator
from certification.certificates.schemas import CertificateFilter, IssueCertificateRequest
from certification.config import Settings
from certification.exceptions import (
    CollisionError,
    InvalidTransitionError,
    NotCertificateHolderError,
    NotFoundError,
    ValidationError,
)
from certification.models.certificate import Certificate
from certification.models.enums import (
    CertificateLevel,
    CertificateStatus,
    CertificateType,
    Grade,
)

logger = logging.getLogger(__name__)

# Percentage points a caller-supplied score percentage may differ from obtained/total
PERCENTAGE_TOLERANCE = 0.5


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


# ---------------------------------------------------------------------------
# Issuance validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _ValidatedIssue:
    holder_id: UUID
    holder_first_name: str
    holder_last_name: str
    holder_email: str | None
    course_id: UUID
    course_title: str
    instructor_id: UUID
    instructor_first_name: str
    instructor_last_name: str
    issue_date: date
    expiry_date: date
    grade: Grade
    certificate_type: CertificateType
    certificate_level: CertificateLevel
    score_obtained: int | None
    score_total: int | None
    score_percentage: float | None
    issued_by: str


def _parse_enum(enum_cls, value, field: str, errors: list[dict[str, str]]):
    if _blank(value):
        errors.append({"field": field, "message": "is required"})
        return None
    try:
        return enum_cls(value.strip())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        errors.append({"field": field, "message": f"must be one of: {allowed}"})
        return None


def _validate_issue(data: IssueCertificateRequest, settings: Settings) -> _ValidatedIssue:
    """Check every issuance invariant and collect all problems before failing."""
    errors: list[dict[str, str]] = []

    holder, course, instructor = data.holder, data.course, data.instructor
    if holder is None:
        errors.append({"field": "holder", "message": "is required"})
    else:
        if holder.id is None:
            errors.append({"field": "holder.id", "message": "is required"})
        if _blank(holder.first_name):
            errors.append({"field": "holder.first_name", "message": "must not be empty"})
        if _blank(holder.last_name):
            errors.append({"field": "holder.last_name", "message": "must not be empty"})

    if course is None:
        errors.append({"field": "course", "message": "is required"})
    else:
        if course.id is None:
            errors.append({"field": "course.id", "message": "is required"})
        if _blank(course.title):
            errors.append({"field": "course.title", "message": "must not be empty"})

    if instructor is None:
        errors.append({"field": "instructor", "message": "is required"})
    else:
        if instructor.id is None:
            errors.append({"field": "instructor.id", "message": "is required"})
        if _blank(instructor.first_name):
            errors.append({"field": "instructor.first_name", "message": "must not be empty"})
        if _blank(instructor.last_name):
            errors.append({"field": "instructor.last_name", "message": "must not be empty"})

    grade = _parse_enum(Grade, data.grade, "grade", errors)
    cert_type = _parse_enum(CertificateType, data.certificate_type, "certificate_type", errors)
    cert_level = _parse_enum(CertificateLevel, data.certificate_level, "certificate_level", errors)

    expiry_date = None
    if data.issue_date is None:
        errors.append({"field": "issue_date", "message": "is required"})
    elif data.expiry_date is not None:
        if data.expiry_date <= data.issue_date:
            errors.append({"field": "expiry_date", "message": "must be after issue_date"})
        else:
            expiry_date = data.expiry_date
    else:
        try:
            expiry_date = lifecycle.compute_expiry_date(
                data.issue_date, settings.certificate_validity_years,
            )
        except ValueError:
            errors.append(
                {"field": "issue_date", "message": "expiry would exceed the supported date range"}
            )

    score = data.score
    percentage = None
    if score is not None:
        score_ok = True
        if score.total <= 0:
            errors.append({"field": "score.total", "message": "must be greater than 0"})
            score_ok = False
        if score.obtained < 0 or score.obtained > score.total:
            errors.append({"field": "score.obtained", "message": "must be between 0 and total"})
            score_ok = False
        if score_ok:
            percentage = round(100 * score.obtained / score.total, 2)
        if score.percentage is not None:
            if not 0 <= score.percentage <= 100:
                errors.append(
                    {"field": "score.percentage", "message": "must be between 0 and 100"}
                )
            elif score_ok and abs(score.percentage - percentage) > PERCENTAGE_TOLERANCE:
                errors.append(
                    {"field": "score.percentage", "message": "must match obtained/total"}
                )
            else:
                percentage = score.percentage

    issued_by = data.issued_by if not _blank(data.issued_by) else settings.certificate_issuer_name
    if _blank(issued_by):
        errors.append({"field": "issued_by", "message": "must not be empty"})

    if errors:
        raise ValidationError(errors)

    return _ValidatedIssue(
        holder_id=holder.id,
        holder_first_name=holder.first_name.strip(),
        holder_last_name=holder.last_name.strip(),
        holder_email=holder.email or None,
        course_id=course.id,
        course_title=course.title.strip(),
        instructor_id=instructor.id,
        instructor_first_name=instructor.first_name.strip(),
        instructor_last_name=instructor.last_name.strip(),
        issue_date=data.issue_date,
        expiry_date=expiry_date,
        grade=grade,
        certificate_type=cert_type,
        certificate_level=cert_level,
        score_obtained=score.obtained if score else None,
        score_total=score.total if score else None,
        score_percentage=percentage,
        issued_by=issued_by.strip(),
    )


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


async def issue_certificate(
    db: AsyncSession,
    data: IssueCertificateRequest,
    settings: Settings,
    *,
    authorized_by: UUID | None = None,
    generate_codes: CodeGenerator | None = None,
) -> Certificate:
    """Validate, allocate unique codes, and store an ACTIVE certificate.

    Each insert runs inside a SAVEPOINT. A UNIQUE violation on the number or
    code rolls back only that savepoint and retries with a fresh pair, so two
    concurrent issuances can never share a code.
    """
    fields = _validate_issue(data, settings)
    generate_codes = generate_codes or make_code_generator(
        settings.certificate_number_prefix, settings.certificate_code_bytes,
    )
    max_attempts = settings.certificate_code_max_attempts

    for attempt in range(1, max_attempts + 1):
        codes = generate_codes(fields.issue_date.year)
        cert = Certificate(
            certificate_number=codes.certificate_number,
            verification_code=codes.verification_code,
            status=CertificateStatus.ACTIVE,
            verified=False,
            authorized_by=authorized_by,
            **asdict(fields),
        )
        try:
            async with db.begin_nested():
                db.add(cert)
                await db.flush()
        except IntegrityError:
            logger.warning(
                "Certificate code collision (attempt %d/%d) number=%s",
                attempt, max_attempts, codes.certificate_number,
            )
            continue

        await db.refresh(cert)
        logger.info(
            "Issued certificate %s holder=%s course=%s expires=%s",
            cert.certificate_number, cert.holder_id, cert.course_id, cert.expiry_date,
        )
        return cert

    logger.error("Exhausted %d attempts allocating certificate codes", max_attempts)
    raise CollisionError(max_attempts)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


async def get_certificate_by_id(
    db: AsyncSession,
    certificate_id: UUID,
) -> Certificate:
    cert = await db.get(Certificate, certificate_id)
    if cert is None:
        raise NotFoundError(str(certificate_id))
    return cert


async def get_certificate_for_user(
    db: AsyncSession,
    certificate_id: UUID,
    user_id: UUID,
    *,
    is_staff: bool,
) -> Certificate:
    """Holders may read their own certificates; staff may read any."""
    cert = await get_certificate_by_id(db, certificate_id)
    if not is_staff and cert.holder_id != user_id:
        raise NotCertificateHolderError(str(certificate_id))
    return cert


async def get_certificate_by_number(
    db: AsyncSession,
    certificate_number: str,
) -> Certificate:
    cert = await db.scalar(
        select(Certificate).where(Certificate.certificate_number == certificate_number)
    )
    if cert is None:
        raise NotFoundError(certificate_number)
    return cert


async def get_certificate_by_code(
    db: AsyncSession,
    verification_code: str,
) -> Certificate | None:
    return await db.scalar(
        select(Certificate).where(Certificate.verification_code == verification_code)
    )


def _effective_status_clause(status: CertificateStatus, today: date):
    """SQL twin of ``lifecycle.effective_status`` for list filtering."""
    live = (CertificateStatus.PENDING, CertificateStatus.ACTIVE)
    if status == CertificateStatus.EXPIRED:
        return or_(
            Certificate.status == CertificateStatus.EXPIRED,
            and_(Certificate.status.in_(live), Certificate.expiry_date < today),
        )
    if status in live:
        return and_(Certificate.status == status, Certificate.expiry_date >= today)
    return Certificate.status == status


async def list_certificates(
    db: AsyncSession,
    filters: CertificateFilter,
    *,
    limit: int = 20,
    offset: int = 0,
    today: date | None = None,
) -> tuple[list[Certificate], int]:
    today = today or _today()
    clauses = []
    if filters.status is not None:
        clauses.append(_effective_status_clause(filters.status, today))
    if filters.holder_id is not None:
        clauses.append(Certificate.holder_id == filters.holder_id)
    if filters.course_id is not None:
        clauses.append(Certificate.course_id == filters.course_id)
    if filters.instructor_id is not None:
        clauses.append(Certificate.instructor_id == filters.instructor_id)
    if filters.search and filters.search.strip():
        term = filters.search.strip()
        clauses.append(
            or_(
                Certificate.certificate_number.icontains(term, autoescape=True),
                Certificate.verification_code.icontains(term, autoescape=True),
            )
        )

    total = await db.scalar(
        select(func.count()).select_from(Certificate).where(*clauses)
    ) or 0
    stmt = (
        select(Certificate)
        .where(*clauses)
        .order_by(Certificate.issue_date.desc(), Certificate.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


# ---------------------------------------------------------------------------
# Lifecycle transitions
# ---------------------------------------------------------------------------


async def revoke_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    *,
    reason: str | None = None,
    revoked_by: UUID | None = None,
) -> Certificate:
    """Permanently revoke. Revoking twice returns the existing revoked record."""
    cert = await get_certificate_by_id(db, certificate_id)
    if cert.status == CertificateStatus.REVOKED:
        return cert
    cert.status = CertificateStatus.REVOKED
    cert.revocation_reason = reason
    cert.revoked_by = revoked_by
    cert.revoked_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(cert)
    logger.info("Revoked certificate %s by=%s", cert.certificate_number, revoked_by)
    return cert


async def renew_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    settings: Settings,
    *,
    today: date | None = None,
) -> Certificate:
    today = today or _today()
    cert = await get_certificate_by_id(db, certificate_id)
    current = lifecycle.effective_status(cert.status, cert.expiry_date, today)
    if current != CertificateStatus.EXPIRED:
        raise InvalidTransitionError(current.value, CertificateStatus.ACTIVE.value)

    previous = cert.expiry_date
    try:
        cert.expiry_date = lifecycle.renewed_expiry_date(
            previous, today, settings.certificate_validity_years,
        )
    except ValueError:
        raise ValidationError(
            [{"field": "expiry_date", "message": "renewed expiry would exceed the supported date range"}]
        ) from None
    cert.status = CertificateStatus.ACTIVE
    cert.renewed_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(cert)
    logger.info(
        "Renewed certificate %s expiry %s -> %s",
        cert.certificate_number, previous, cert.expiry_date,
    )
    return cert


async def expire_certificate(
    db: AsyncSession,
    certificate_id: UUID,
) -> Certificate:
    """Administrative expiry. Already-expired certificates are returned unchanged."""
    cert = await get_certificate_by_id(db, certificate_id)
    if cert.status == CertificateStatus.EXPIRED:
        return cert
    if cert.status == CertificateStatus.REVOKED:
        raise InvalidTransitionError(cert.status.value, CertificateStatus.EXPIRED.value)
    cert.status = CertificateStatus.EXPIRED
    await db.flush()
    await db.refresh(cert)
    logger.info("Expired certificate %s", cert.certificate_number)
    return cert


async def mark_certificate_verified(
    db: AsyncSession,
    certificate_id: UUID,
) -> Certificate:
    cert = await get_certificate_by_id(db, certificate_id)
    if not cert.verified:
        cert.verified = True
        await db.flush()
        await db.refresh(cert)
    return cert
