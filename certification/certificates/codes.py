"""Certificate number and verification code generation.

Codes come from the OS CSPRNG and are never derived from holder, course or
time fields, so they cannot be enumerated. Uniqueness itself is enforced by
the UNIQUE constraints on ``certificates``; the registry retries with a fresh
pair when an insert collides.
"""

from __future__ import annotations

import base64
import secrets
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class CertificateCodes:
    certificate_number: str
    verification_code: str


CodeGenerator = Callable[[int], CertificateCodes]


def generate_verification_code(num_bytes: int = 15) -> str:
    """Base32 (no padding) of ``num_bytes`` random bytes, upper-case."""
    if num_bytes < 10:
        raise ValueError("verification codes need at least 80 bits of entropy")
    raw = secrets.token_bytes(num_bytes)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def generate_certificate_number(prefix: str, year: int) -> str:
    """Human-readable number, e.g. ``CC2024048213``."""
    return f"{prefix}{year}{secrets.randbelow(1_000_000):06d}"


def make_code_generator(prefix: str, code_bytes: int) -> CodeGenerator:
    """Return a generator bound to the configured prefix and code length.

    The returned callable takes the issue year.
    """

    def _generate(year: int) -> CertificateCodes:
        return CertificateCodes(
            certificate_number=generate_certificate_number(prefix, year),
            verification_code=generate_verification_code(code_bytes),
        )

    return _generate
