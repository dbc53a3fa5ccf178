from .enums import CertificateLevel, CertificateStatus, CertificateType, Grade
from .certificate import Certificate

__all__ = [
    "CertificateLevel",
    "CertificateStatus",
    "CertificateType",
    "Grade",
    "Certificate",
]
