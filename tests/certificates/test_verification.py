from datetime import date

import pytest

from certification.certificates import service
from certification.certificates.verification import MAX_CODE_LENGTH, verify
from certification.models.enums import CertificateLevel, CertificateType, Grade


@pytest.mark.asyncio
async def test_verify_issued_certificate(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(
        db_session,
        issue_request(issue_date=date(2024, 1, 10), expiry_date=date(2027, 1, 10)),
        settings,
    )
    result = await verify(db_session, cert.verification_code, today=date(2024, 2, 1))
    assert result.valid is True
    view = result.certificate
    assert view.holder_name == "Jane Doe"
    assert view.course_title == "Advanced Pastry"
    assert view.grade == Grade.A
    assert view.certificate_level == CertificateLevel.ADVANCED
    assert view.certificate_type == CertificateType.COMPLETION
    assert view.issue_date == date(2024, 1, 10)
    assert view.certificate_number == cert.certificate_number


@pytest.mark.asyncio
async def test_public_view_hides_internal_fields(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(db_session, issue_request(), settings)
    result = await verify(db_session, cert.verification_code, today=date(2024, 2, 1))
    payload = result.to_response().model_dump()
    exposed = set(payload["certificate"])
    for internal in ("verification_code", "holder_email", "authorized_by", "revocation_reason",
                     "certificate_id", "score", "holder_id"):
        assert internal not in exposed


@pytest.mark.asyncio
async def test_verify_is_case_and_whitespace_tolerant(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(db_session, issue_request(), settings)
    result = await verify(
        db_session, f"  {cert.verification_code.lower()}\n", today=date(2024, 2, 1),
    )
    assert result.valid is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code",
    [None, "", "   ", "UNKNOWNCODE", "A" * (MAX_CODE_LENGTH + 1), "\x00", "ABC-234", "ABC 234", "ABC18"],
)
async def test_verify_unknown_or_malformed_code(db_session, code) -> None:
    result = await verify(db_session, code, today=date(2024, 2, 1))
    assert result.valid is False
    assert result.certificate is None


@pytest.mark.asyncio
async def test_verify_revoked_certificate(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(db_session, issue_request(), settings)
    await service.revoke_certificate(db_session, cert.certificate_id, reason="Fraud")
    result = await verify(db_session, cert.verification_code, today=date(2024, 2, 1))
    assert result.valid is False
    assert result.certificate is None


@pytest.mark.asyncio
async def test_verify_past_expiry_even_if_stored_active(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(db_session, issue_request(), settings)
    assert (await verify(db_session, cert.verification_code, today=date(2027, 1, 10))).valid
    result = await verify(db_session, cert.verification_code, today=date(2027, 1, 11))
    assert result.valid is False


@pytest.mark.asyncio
async def test_verify_administratively_expired(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(db_session, issue_request(), settings)
    await service.expire_certificate(db_session, cert.certificate_id)
    result = await verify(db_session, cert.verification_code, today=date(2024, 2, 1))
    assert result.valid is False


@pytest.mark.asyncio
async def test_verify_after_renewal(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(
        db_session,
        issue_request(issue_date=date(2020, 1, 1), expiry_date=date(2022, 1, 1)),
        settings,
    )
    today = date(2024, 6, 1)
    assert not (await verify(db_session, cert.verification_code, today=today)).valid
    await service.renew_certificate(db_session, cert.certificate_id, settings, today=today)
    assert (await verify(db_session, cert.verification_code, today=today)).valid


@pytest.mark.asyncio
async def test_issue_verify_revoke_end_to_end(db_session, settings, issue_request) -> None:
    cert = await service.issue_certificate(
        db_session,
        issue_request(
            grade="A",
            certificate_type="completion",
            certificate_level="advanced",
            issue_date=date(2024, 1, 10),
            expiry_date=date(2027, 1, 10),
        ),
        settings,
    )
    today = date(2024, 2, 1)

    result = await verify(db_session, cert.verification_code, today=today)
    assert result.valid is True
    assert result.certificate.holder_name == "Jane Doe"
    assert result.certificate.course_title == "Advanced Pastry"
    assert result.certificate.grade == Grade.A

    await service.revoke_certificate(db_session, cert.certificate_id, reason="Exam misconduct")
    assert (await verify(db_session, cert.verification_code, today=today)).valid is False


@pytest.mark.asyncio
async def test_verify_rejects_foreign_characters_before_lookup(db_session, monkeypatch) -> None:
    async def _lookup(db, code):
        raise AssertionError(f"looked up {code!r}")

    monkeypatch.setattr(service, "get_certificate_by_code", _lookup)
    for code in ("ABC\x00DEF", "ÄBC234", "ABC%27"):
        assert (await verify(db_session, code, today=date(2024, 2, 1))).valid is False
