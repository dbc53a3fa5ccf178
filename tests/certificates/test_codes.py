import base64
import re

import pytest

from certification.certificates.codes import (
    CertificateCodes,
    generate_certificate_number,
    generate_verification_code,
    make_code_generator,
)

BASE32_RE = re.compile(r"^[A-Z2-7]+$")


def test_verification_code_is_unpadded_base32() -> None:
    code = generate_verification_code(15)
    # 15 bytes = 120 bits = exactly 24 base32 characters, no padding
    assert len(code) == 24
    assert BASE32_RE.match(code)
    assert len(base64.b32decode(code)) == 15


def test_verification_codes_are_distinct() -> None:
    codes = {generate_verification_code() for _ in range(500)}
    assert len(codes) == 500


def test_verification_code_requires_enough_entropy() -> None:
    with pytest.raises(ValueError):
        generate_verification_code(8)


def test_certificate_number_format() -> None:
    number = generate_certificate_number("CC", 2024)
    assert re.fullmatch(r"CC2024\d{6}", number)


def test_code_generator_uses_prefix_and_year() -> None:
    generate = make_code_generator("CK", 15)
    codes = generate(2031)
    assert isinstance(codes, CertificateCodes)
    assert codes.certificate_number.startswith("CK2031")
    assert len(codes.verification_code) == 24
