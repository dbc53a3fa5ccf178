import pytest

from certification.certificates import qr

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_build_verification_url_joins_once() -> None:
    assert (
        qr.build_verification_url("https://certs.example.com/verify/", "ABC234")
        == "https://certs.example.com/verify/ABC234"
    )
    assert (
        qr.build_verification_url("https://certs.example.com/verify", "ABC234")
        == "https://certs.example.com/verify/ABC234"
    )


def test_encode_returns_png() -> None:
    png = qr.encode("https://certs.example.com/verify/ABC234")
    assert png.startswith(PNG_SIGNATURE)


def test_encode_is_deterministic() -> None:
    reference = "https://certs.example.com/verify/DEF567"
    first = qr.encode(reference)
    qr.encode.cache_clear()
    assert qr.encode(reference) == first


def test_encode_differs_per_reference() -> None:
    assert qr.encode("https://x.example/verify/AAAA") != qr.encode("https://x.example/verify/BBBB")


@pytest.mark.parametrize("reference", ["", "   "])
def test_encode_rejects_empty_reference(reference) -> None:
    with pytest.raises(ValueError):
        qr.encode(reference)
