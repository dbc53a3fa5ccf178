"""Certificate router: issuance, lifecycle actions, documents, and public verification."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from certification.certificates import controller
from certification.certificates.schemas import (
    CertificateFilter,
    CertificateResponse,
    IssueCertificateRequest,
    RevokeCertificateRequest,
    VerificationResponse,
)
from certification.config import Settings
from certification.database import get_db
from certification.dependencies import (
    get_certificate_admin,
    get_certificate_staff,
    get_current_user,
    get_settings,
)
from certification.models.enums import CertificateStatus
from certification.pagination import OffsetPage, OffsetParams
from shared.models.user import CurrentUser

router = APIRouter(prefix="/certificates", tags=["Certificates"])


@router.get(
    "/verify/{code}",
    response_model=VerificationResponse,
    summary="Verify certificate via QR code (public)",
    description="Public endpoint, no authentication required. "
    "Returns valid=false for unknown, revoked, or expired codes; never 404.",
)
async def verify_certificate(
    code: str,
    db: AsyncSession = Depends(get_db),
) -> VerificationResponse:
    return await controller.verify_certificate(db, code)


@router.post(
    "",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a certificate",
    description="Called after an exam pass or application approval. "
    "Expiry defaults to issue date plus the configured validity period.",
)
async def issue_certificate(
    body: IssueCertificateRequest,
    db: AsyncSession = Depends(get_db),
    staff: CurrentUser = Depends(get_certificate_staff),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.issue_certificate(db, body, staff.id, settings)


@router.get(
    "",
    response_model=OffsetPage[CertificateResponse],
    summary="List certificates",
    description="Status filters on the effective status, so certificates past "
    "their expiry date are listed as expired.",
)
async def list_certificates(
    status_filter: CertificateStatus | None = Query(default=None, alias="status"),
    holder_id: UUID | None = Query(default=None),
    course_id: UUID | None = Query(default=None),
    instructor_id: UUID | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    staff: CurrentUser = Depends(get_certificate_staff),
    settings: Settings = Depends(get_settings),
) -> OffsetPage[CertificateResponse]:
    filters = CertificateFilter(
        status=status_filter,
        holder_id=holder_id,
        course_id=course_id,
        instructor_id=instructor_id,
        search=search,
    )
    return await controller.list_certificates(
        db, filters, OffsetParams(limit=limit, offset=offset), settings,
    )


@router.get(
    "/mine",
    response_model=OffsetPage[CertificateResponse],
    summary="List my certificates",
    description="Certificates held by the authenticated user.",
)
async def list_my_certificates(
    status_filter: CertificateStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> OffsetPage[CertificateResponse]:
    return await controller.list_my_certificates(
        db, user, status_filter, OffsetParams(limit=limit, offset=offset), settings,
    )


@router.get(
    "/number/{certificate_number}",
    response_model=CertificateResponse,
    summary="Get certificate by certificate number",
)
async def get_certificate_by_number(
    certificate_number: str,
    db: AsyncSession = Depends(get_db),
    staff: CurrentUser = Depends(get_certificate_staff),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.get_certificate_by_number(db, certificate_number, settings)


@router.get(
    "/{certificate_id}",
    response_model=CertificateResponse,
    summary="Get certificate by ID",
)
async def get_certificate(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.get_certificate(db, certificate_id, user, settings)


@router.post(
    "/{certificate_id}/revoke",
    response_model=CertificateResponse,
    summary="Revoke certificate",
    description="Permanent. Revoking an already revoked certificate returns it unchanged.",
)
async def revoke_certificate(
    certificate_id: UUID,
    body: RevokeCertificateRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_certificate_admin),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.revoke_certificate(
        db, certificate_id, body or RevokeCertificateRequest(), admin.id, settings,
    )


@router.post(
    "/{certificate_id}/renew",
    response_model=CertificateResponse,
    summary="Renew expired certificate",
    description="Only expired certificates can be renewed; returns 409 otherwise.",
)
async def renew_certificate(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_certificate_admin),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.renew_certificate(db, certificate_id, settings)


@router.post(
    "/{certificate_id}/expire",
    response_model=CertificateResponse,
    summary="Mark certificate expired",
)
async def expire_certificate(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_certificate_admin),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.expire_certificate(db, certificate_id, settings)


@router.post(
    "/{certificate_id}/verified",
    response_model=CertificateResponse,
    summary="Confirm certificate (admin verification flag)",
    description="Sets the administrative verified flag. Does not change status.",
)
async def mark_certificate_verified(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_certificate_admin),
    settings: Settings = Depends(get_settings),
) -> CertificateResponse:
    return await controller.mark_certificate_verified(db, certificate_id, settings)


@router.get(
    "/{certificate_id}/view",
    response_class=Response,
    summary="View certificate PDF inline",
)
async def view_certificate(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> Response:
    return await controller.certificate_document(db, certificate_id, user, settings, download=False)


@router.get(
    "/{certificate_id}/download",
    response_class=Response,
    summary="Download certificate PDF",
)
async def download_certificate(
    certificate_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> Response:
    return await controller.certificate_document(db, certificate_id, user, settings, download=True)
