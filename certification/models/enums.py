import enum

from sqlalchemy import Enum as SAEnum


class CertificateStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class CertificateType(str, enum.Enum):
    COMPLETION = "completion"
    ACHIEVEMENT = "achievement"
    EXCELLENCE = "excellence"


class CertificateLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class Grade(str, enum.Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D = "D"
    F = "F"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# Shared SQLAlchemy Enum instances (reuse across models to avoid duplicate type creation).
# Values, not member names, are stored so rows read the same as the API payloads.
certificate_status_enum = SAEnum(
    CertificateStatus, name="certificate_status", values_callable=_values
)
certificate_type_enum = SAEnum(
    CertificateType, name="certificate_type", values_callable=_values
)
certificate_level_enum = SAEnum(
    CertificateLevel, name="certificate_level", values_callable=_values
)
grade_enum = SAEnum(Grade, name="certificate_grade", values_callable=_values)
