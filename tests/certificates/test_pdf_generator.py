from dataclasses import replace
from datetime import date

import pytest
from reportlab.lib.pagesizes import A4, landscape, letter
from reportlab.pdfbase.pdfmetrics import stringWidth

from certification.certificates import qr
from certification.certificates.pdf_generator import (
    FOOTER_LINES,
    CertificatePDFData,
    ImageOp,
    LineOp,
    RectOp,
    TextOp,
    build_layout,
    generate_certificate_pdf,
    page_size_for,
)
from certification.exceptions import RenderError

CODE = "JBSWY3DPEHPK3PXPJBSWY3DP"


@pytest.fixture
def pdf_data() -> CertificatePDFData:
    return CertificatePDFData(
        issued_by="Cooking Certification Institute",
        holder_name="Jane Doe",
        course_title="Advanced Pastry",
        instructor_name="Marco Rossi",
        grade="A",
        certificate_level="advanced",
        certificate_type="completion",
        certificate_number="CC2024000123",
        issue_date=date(2024, 1, 10),
        expiry_date=date(2027, 1, 10),
        verification_code=CODE,
        qr_png=qr.encode(f"https://certs.example.com/verify/{CODE}"),
        score_obtained=45,
        score_total=50,
        score_percentage=90.0,
    )


def _texts(ops) -> list[str]:
    return [op.text for op in ops if isinstance(op, TextOp)]


def _text_op(ops, text: str) -> TextOp:
    return next(op for op in ops if isinstance(op, TextOp) and op.text == text)


def test_layout_contains_every_block(pdf_data) -> None:
    texts = _texts(build_layout(pdf_data))
    for expected in (
        "Cooking Certification Institute",
        "Certificate of Completion",
        "This is to certify that",
        "Jane Doe",
        "has successfully completed the course",
        "Advanced Pastry",
        "Grade: A | Level: advanced",
        "Certificate Type: completion",
        "Certificate Number:",
        "CC2024000123",
        "Issue Date:",
        "January 10, 2024",
        "Expiry Date:",
        "January 10, 2027",
        "Score:",
        "45/50 (90%)",
        "Instructor:",
        "Marco Rossi",
        "Scan to verify",
        f"Code: {CODE}",
        *FOOTER_LINES,
    ):
        assert expected in texts


def test_layout_starts_with_background_then_border(pdf_data) -> None:
    ops = build_layout(pdf_data)
    page_w, page_h = landscape(A4)
    background, border = ops[0], ops[1]
    assert isinstance(background, RectOp) and background.fill
    assert (background.width, background.height) == (page_w, page_h)
    assert isinstance(border, RectOp) and border.stroke
    assert 0 < border.x and border.x + border.width < page_w


def test_body_is_stacked_top_down(pdf_data) -> None:
    ops = build_layout(pdf_data)
    sequence = [
        "Cooking Certification Institute",
        "Certificate of Completion",
        "This is to certify that",
        "Jane Doe",
        "has successfully completed the course",
        "Advanced Pastry",
        "Grade: A | Level: advanced",
        "Certificate Type: completion",
        "Certificate Number:",
    ]
    ys = [_text_op(ops, text).y for text in sequence]
    assert ys == sorted(ys, reverse=True)


def test_body_is_centred_and_emphasised(pdf_data) -> None:
    ops = build_layout(pdf_data)
    page_w, _ = landscape(A4)
    name = _text_op(ops, "Jane Doe")
    intro = _text_op(ops, "This is to certify that")
    assert name.centred and name.x == pytest.approx(page_w / 2)
    assert name.font == "Helvetica-Bold"
    assert name.size > intro.size
    assert _text_op(ops, "Certificate Number:").font == "Helvetica-Bold"
    assert _text_op(ops, "CC2024000123").font == "Helvetica"


@pytest.mark.parametrize("pagesize", [landscape(A4), landscape(letter)])
def test_everything_fits_on_the_page(pdf_data, pagesize) -> None:
    page_w, page_h = pagesize
    for op in build_layout(pdf_data, pagesize):
        if isinstance(op, TextOp):
            width = stringWidth(op.text, op.font, op.size)
            left = op.x - width / 2 if op.centred else op.x
            assert 0 <= left and left + width <= page_w, op.text
            assert 0 < op.y < page_h, op.text
        elif isinstance(op, ImageOp):
            assert 0 <= op.x and op.x + op.width <= page_w
            assert 0 <= op.y and op.y + op.height <= page_h
        elif isinstance(op, LineOp):
            assert 0 <= op.x1 < op.x2 <= page_w


def test_positions_follow_page_size(pdf_data) -> None:
    a4 = build_layout(pdf_data, landscape(A4))
    us = build_layout(pdf_data, landscape(letter))
    assert _text_op(a4, "Jane Doe").x == pytest.approx(landscape(A4)[0] / 2)
    assert _text_op(us, "Jane Doe").x == pytest.approx(landscape(letter)[0] / 2)
    assert _text_op(a4, "Jane Doe").y != _text_op(us, "Jane Doe").y


def test_qr_block_in_bottom_right(pdf_data) -> None:
    ops = build_layout(pdf_data)
    page_w, page_h = landscape(A4)
    images = [op for op in ops if isinstance(op, ImageOp)]
    assert len(images) == 1
    image = images[0]
    assert image.x > page_w / 2
    assert image.y < page_h / 2
    caption = _text_op(ops, "Scan to verify")
    code = _text_op(ops, f"Code: {CODE}")
    assert code.y < caption.y < image.y


def test_right_column_stays_clear_of_qr(pdf_data) -> None:
    data = replace(pdf_data, instructor_name="Alessandra Rossi")
    ops = build_layout(data)
    image = next(op for op in ops if isinstance(op, ImageOp))
    instructor = _text_op(ops, "Alessandra Rossi")
    assert instructor.size < 12
    assert instructor.x + stringWidth(instructor.text, instructor.font, instructor.size) <= image.x


def test_long_course_title_shrinks_to_fit(pdf_data) -> None:
    title = "Professional Patisserie, Viennoiserie and Chocolate Work " * 3
    ops = build_layout(replace(pdf_data, course_title=title.strip()))
    op = _text_op(ops, title.strip())
    assert op.size < 20
    assert stringWidth(op.text, op.font, op.size) <= landscape(A4)[0]


def test_missing_score_renders_not_available(pdf_data) -> None:
    data = replace(pdf_data, score_obtained=None, score_total=None, score_percentage=None)
    assert "N/A" in _texts(build_layout(data))


@pytest.mark.parametrize(
    "field_name", ["holder_name", "course_title", "instructor_name", "issued_by", "verification_code"]
)
def test_blank_required_field_raises(pdf_data, field_name) -> None:
    with pytest.raises(RenderError) as excinfo:
        build_layout(replace(pdf_data, **{field_name: "  "}))
    assert field_name in excinfo.value.missing_fields


def test_missing_qr_and_dates_raise(pdf_data) -> None:
    with pytest.raises(RenderError) as excinfo:
        generate_certificate_pdf(replace(pdf_data, qr_png=b"", issue_date=None))
    assert set(excinfo.value.missing_fields) == {"qr_png", "issue_date"}


def test_generate_pdf_bytes(pdf_data) -> None:
    pdf = generate_certificate_pdf(pdf_data)
    assert pdf.startswith(b"%PDF")
    assert pdf.rstrip().endswith(b"%%EOF")
    # Exactly one embedded image: the QR code
    assert pdf.count(b"/Subtype /Image") == 1


def test_generate_pdf_is_deterministic(pdf_data) -> None:
    assert generate_certificate_pdf(pdf_data) == generate_certificate_pdf(pdf_data)


def test_page_size_for() -> None:
    assert page_size_for("a4") == landscape(A4)
    assert page_size_for("LETTER") == landscape(letter)
    with pytest.raises(ValueError):
        page_size_for("A3")
