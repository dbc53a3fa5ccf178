"""QR encoder for certificate verification references."""

from __future__ import annotations

import io
from functools import lru_cache

import qrcode


def build_verification_url(base_url: str, verification_code: str) -> str:
    return f"{base_url.rstrip('/')}/{verification_code}"


@lru_cache(maxsize=256)
def encode(reference: str) -> bytes:
    """Encode ``reference`` as PNG bytes.

    The same reference always produces the same image, so results are cached.
    """
    if not reference or not reference.strip():
        raise ValueError("QR reference must not be empty")
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=6,
        border=2,
    )
    qr.add_data(reference)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
