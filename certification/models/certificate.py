import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import (
    CertificateLevel,
    CertificateStatus,
    CertificateType,
    Grade,
    certificate_level_enum,
    certificate_status_enum,
    certificate_type_enum,
    grade_enum,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Certificate(Base):
    __tablename__ = "certificates"

    certificate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    certificate_number: Mapped[str] = mapped_column(String(50), nullable=False)
    verification_code: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[CertificateStatus] = mapped_column(
        certificate_status_enum, nullable=False, default=CertificateStatus.ACTIVE
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Soft references: users and courses live in other services
    holder_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    instructor_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    # Denormalized fields: snapshot at issuance for rendering and verification display
    holder_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    holder_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    holder_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    course_title: Mapped[str] = mapped_column(String(300), nullable=False)
    instructor_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    instructor_last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    grade: Mapped[Grade] = mapped_column(grade_enum, nullable=False)
    certificate_type: Mapped[CertificateType] = mapped_column(
        certificate_type_enum, nullable=False, default=CertificateType.COMPLETION
    )
    certificate_level: Mapped[CertificateLevel] = mapped_column(
        certificate_level_enum, nullable=False
    )

    score_obtained: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)

    issued_by: Mapped[str] = mapped_column(String(200), nullable=False)
    authorized_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    revocation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    revoked_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    renewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("certificate_number", name="uq_certificates_certificate_number"),
        UniqueConstraint("verification_code", name="uq_certificates_verification_code"),
        CheckConstraint("expiry_date > issue_date", name="ck_certificates_expiry_after_issue"),
        Index("ix_certificates_holder_id", "holder_id"),
        Index("ix_certificates_course_id", "course_id"),
        Index("ix_certificates_status", "status"),
        Index("ix_certificates_issue_date", "issue_date"),
    )

    @property
    def holder_full_name(self) -> str:
        return f"{self.holder_first_name} {self.holder_last_name}".strip()

    @property
    def instructor_full_name(self) -> str:
        return f"{self.instructor_first_name} {self.instructor_last_name}".strip()

    @property
    def has_score(self) -> bool:
        return self.score_total is not None
