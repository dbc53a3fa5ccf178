"""Certificates table with storage-level uniqueness for numbers and codes.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables created:
  - certificates          Issued credentials, soft references to users/courses

ENUM types created:
  - certificate_status    pending / active / expired / revoked
  - certificate_type      completion / achievement / excellence
  - certificate_level     beginner / intermediate / advanced / expert
  - certificate_grade     A+ .. F

Downgrade: drops the table, then the ENUM types.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS = ("pending", "active", "expired", "revoked")
TYPES = ("completion", "achievement", "excellence")
LEVELS = ("beginner", "intermediate", "advanced", "expert")
GRADES = ("A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D", "F")


def upgrade() -> None:
    op.create_table(
        "certificates",
        sa.Column("certificate_id", sa.Uuid(), primary_key=True),
        sa.Column("certificate_number", sa.String(50), nullable=False),
        sa.Column("verification_code", sa.String(64), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*STATUS, name="certificate_status"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("holder_id", sa.Uuid(), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("instructor_id", sa.Uuid(), nullable=False),
        sa.Column("holder_first_name", sa.String(100), nullable=False),
        sa.Column("holder_last_name", sa.String(100), nullable=False),
        sa.Column("holder_email", sa.String(255), nullable=True),
        sa.Column("course_title", sa.String(300), nullable=False),
        sa.Column("instructor_first_name", sa.String(100), nullable=False),
        sa.Column("instructor_last_name", sa.String(100), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("grade", sa.Enum(*GRADES, name="certificate_grade"), nullable=False),
        sa.Column(
            "certificate_type",
            sa.Enum(*TYPES, name="certificate_type"),
            nullable=False,
            server_default="completion",
        ),
        sa.Column(
            "certificate_level",
            sa.Enum(*LEVELS, name="certificate_level"),
            nullable=False,
        ),
        sa.Column("score_obtained", sa.Integer(), nullable=True),
        sa.Column("score_total", sa.Integer(), nullable=True),
        sa.Column("score_percentage", sa.Float(), nullable=True),
        sa.Column("issued_by", sa.String(200), nullable=False),
        sa.Column("authorized_by", sa.Uuid(), nullable=True),
        sa.Column("revocation_reason", sa.String(500), nullable=True),
        sa.Column("revoked_by", sa.Uuid(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("renewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("certificate_number", name="uq_certificates_certificate_number"),
        sa.UniqueConstraint("verification_code", name="uq_certificates_verification_code"),
        sa.CheckConstraint("expiry_date > issue_date", name="ck_certificates_expiry_after_issue"),
    )
    op.create_index("ix_certificates_holder_id", "certificates", ["holder_id"])
    op.create_index("ix_certificates_course_id", "certificates", ["course_id"])
    op.create_index("ix_certificates_status", "certificates", ["status"])
    op.create_index("ix_certificates_issue_date", "certificates", ["issue_date"])


def downgrade() -> None:
    op.drop_index("ix_certificates_issue_date", table_name="certificates")
    op.drop_index("ix_certificates_status", table_name="certificates")
    op.drop_index("ix_certificates_course_id", table_name="certificates")
    op.drop_index("ix_certificates_holder_id", table_name="certificates")
    op.drop_table("certificates")
    for enum_name in ("certificate_grade", "certificate_level", "certificate_type", "certificate_status"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
