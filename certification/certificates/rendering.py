"""Glue between stored certificates and the PDF generator.

Derives the display names, produces the single QR image and hands both to
the renderer.
"""

from __future__ import annotations

import logging

from certification.certificates import qr
from certification.certificates.pdf_generator import (
    CertificatePDFData,
    generate_certificate_pdf,
    page_size_for,
)
from certification.config import Settings
from certification.exceptions import RenderError
from certification.models.certificate import Certificate

logger = logging.getLogger(__name__)


def _enum_text(value) -> str:
    return value.value if hasattr(value, "value") else (value or "")


def to_pdf_data(cert: Certificate, qr_png: bytes) -> CertificatePDFData:
    return CertificatePDFData(
        issued_by=cert.issued_by,
        holder_name=cert.holder_full_name,
        course_title=cert.course_title,
        instructor_name=cert.instructor_full_name,
        grade=_enum_text(cert.grade),
        certificate_level=_enum_text(cert.certificate_level),
        certificate_type=_enum_text(cert.certificate_type),
        certificate_number=cert.certificate_number,
        issue_date=cert.issue_date,
        expiry_date=cert.expiry_date,
        verification_code=cert.verification_code,
        qr_png=qr_png,
        score_obtained=cert.score_obtained,
        score_total=cert.score_total,
        score_percentage=cert.score_percentage,
    )


def render_certificate(cert: Certificate, settings: Settings) -> bytes:
    """Render ``cert`` as PDF bytes.

    Render failures are logged and re-raised; the caller must not retry with
    the same record.
    """
    verification_url = qr.build_verification_url(
        settings.certificate_base_url, cert.verification_code or "",
    )
    qr_png = qr.encode(verification_url) if cert.verification_code else b""
    try:
        return generate_certificate_pdf(
            to_pdf_data(cert, qr_png),
            page_size_for(settings.certificate_page_size),
        )
    except RenderError as exc:
        logger.error(
            "Refusing to render certificate %s: missing %s",
            cert.certificate_id, ", ".join(exc.missing_fields),
        )
        raise
