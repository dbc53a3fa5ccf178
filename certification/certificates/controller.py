"""Certificate controller: maps service results to HTTP responses."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from uuid import UUID

from fastapi import HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from certification.certificates import lifecycle, qr, service, verification
from certification.certificates.rendering import render_certificate
from certification.certificates.schemas import (
    CertificateFilter,
    CertificateResponse,
    IssueCertificateRequest,
    RevokeCertificateRequest,
    ScoreOut,
    VerificationResponse,
)
from certification.config import Settings
from certification.exceptions import (
    CollisionError,
    InvalidTransitionError,
    NotCertificateHolderError,
    NotFoundError,
    RenderError,
    ValidationError,
)
from certification.models.certificate import Certificate
from certification.models.enums import CertificateStatus
from certification.pagination import OffsetPage, OffsetParams
from shared.constants import CERTIFICATE_STAFF_ROLES
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, NotCertificateHolderError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this certificate.",
        )
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invalid certificate data.", "fields": exc.errors},
        )
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, CollisionError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate a unique certificate code. Try again.",
        )
    if isinstance(exc, RenderError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Certificate data is incomplete and cannot be rendered.",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


_DOMAIN_ERRORS = (
    NotFoundError,
    NotCertificateHolderError,
    ValidationError,
    InvalidTransitionError,
    CollisionError,
    RenderError,
)


def to_response(cert: Certificate, settings: Settings, today: date | None = None) -> CertificateResponse:
    today = today or datetime.now(timezone.utc).date()
    score = None
    if cert.has_score:
        score = ScoreOut(
            obtained=cert.score_obtained,
            total=cert.score_total,
            percentage=cert.score_percentage,
        )
    return CertificateResponse(
        certificate_id=cert.certificate_id,
        certificate_number=cert.certificate_number,
        verification_code=cert.verification_code,
        status=lifecycle.effective_status(cert.status, cert.expiry_date, today),
        verified=cert.verified,
        holder_id=cert.holder_id,
        holder_name=cert.holder_full_name,
        holder_email=cert.holder_email,
        course_id=cert.course_id,
        course_title=cert.course_title,
        instructor_id=cert.instructor_id,
        instructor_name=cert.instructor_full_name,
        issue_date=cert.issue_date,
        expiry_date=cert.expiry_date,
        grade=cert.grade,
        certificate_type=cert.certificate_type,
        certificate_level=cert.certificate_level,
        score=score,
        issued_by=cert.issued_by,
        authorized_by=cert.authorized_by,
        revocation_reason=cert.revocation_reason,
        revoked_at=cert.revoked_at,
        renewed_at=cert.renewed_at,
        verification_url=qr.build_verification_url(
            settings.certificate_base_url, cert.verification_code,
        ),
    )


async def issue_certificate(
    db: AsyncSession,
    body: IssueCertificateRequest,
    admin_id: UUID,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.issue_certificate(db, body, settings, authorized_by=admin_id)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def list_certificates(
    db: AsyncSession,
    filters: CertificateFilter,
    page: OffsetParams,
    settings: Settings,
) -> OffsetPage[CertificateResponse]:
    items, total = await service.list_certificates(
        db, filters, limit=page.limit, offset=page.offset,
    )
    return OffsetPage[CertificateResponse](
        items=[to_response(c, settings) for c in items],
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


async def list_my_certificates(
    db: AsyncSession,
    user: CurrentUser,
    status_filter: CertificateStatus | None,
    page: OffsetParams,
    settings: Settings,
) -> OffsetPage[CertificateResponse]:
    return await list_certificates(
        db, CertificateFilter(holder_id=user.id, status=status_filter), page, settings,
    )


async def _certificate_for(
    db: AsyncSession,
    certificate_id: UUID,
    user: CurrentUser,
) -> Certificate:
    return await service.get_certificate_for_user(
        db, certificate_id, user.id,
        is_staff=user.has_any_role(CERTIFICATE_STAFF_ROLES),
    )


async def get_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    user: CurrentUser,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await _certificate_for(db, certificate_id, user)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def get_certificate_by_number(
    db: AsyncSession,
    certificate_number: str,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.get_certificate_by_number(db, certificate_number)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def revoke_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    body: RevokeCertificateRequest,
    admin_id: UUID,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.revoke_certificate(
            db, certificate_id, reason=body.revocation_reason, revoked_by=admin_id,
        )
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def renew_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.renew_certificate(db, certificate_id, settings)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def expire_certificate(
    db: AsyncSession,
    certificate_id: UUID,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.expire_certificate(db, certificate_id)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def mark_certificate_verified(
    db: AsyncSession,
    certificate_id: UUID,
    settings: Settings,
) -> CertificateResponse:
    try:
        cert = await service.mark_certificate_verified(db, certificate_id)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc
    return to_response(cert, settings)


async def certificate_document(
    db: AsyncSession,
    certificate_id: UUID,
    user: CurrentUser,
    settings: Settings,
    *,
    download: bool,
) -> Response:
    """Render the PDF and wrap it for inline viewing or as an attachment."""
    try:
        cert = await _certificate_for(db, certificate_id, user)
        pdf_bytes = render_certificate(cert, settings)
    except _DOMAIN_ERRORS as exc:
        raise _handle_domain_error(exc) from exc

    disposition = "attachment" if download else "inline"
    filename = f"certificate-{cert.certificate_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )


async def verify_certificate(
    db: AsyncSession,
    code: str,
) -> VerificationResponse:
    result = await verification.verify(db, code)
    return result.to_response()
