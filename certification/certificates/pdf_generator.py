"""Certificate PDF generator using ReportLab.

Pure utility: no DB or FastAPI imports.
Generates a single-page landscape certificate. The layout is first computed
as a list of draw operations (``build_layout``) and then painted onto a
canvas, so positions can be checked without parsing the PDF.

All positions derive from the real page size. Vertical positions of the
header, body and details blocks accumulate top-down from one cursor; the QR
block and footer are anchored to the bottom edge. Offsets are expressed in
units of the A4-landscape reference page and scaled to the target page.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape, letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import getAscent, stringWidth
from reportlab.pdfgen import canvas

from certification.exceptions import RenderError

REFERENCE_WIDTH, REFERENCE_HEIGHT = landscape(A4)

PAGE_SIZES = {
    "A4": landscape(A4),
    "LETTER": landscape(letter),
}

DARK = "#2c3e50"
MUTED = "#7f8c8d"
ACCENT = "#3498db"
SUCCESS = "#27ae60"
DIVIDER = "#bdc3c7"
BACKGROUND = "#f8f9fa"

FOOTER_LINES = (
    "This certificate is issued electronically and is valid without signature",
    "For verification, visit our website or scan the QR code",
)


def page_size_for(name: str) -> tuple[float, float]:
    try:
        return PAGE_SIZES[name.upper()]
    except KeyError:
        raise ValueError(f"Unsupported page size: {name}") from None


@dataclass(frozen=True)
class CertificatePDFData:
    """All data needed to render a certificate PDF."""

    issued_by: str
    holder_name: str
    course_title: str
    instructor_name: str
    grade: str
    certificate_level: str
    certificate_type: str
    certificate_number: str
    issue_date: date | None
    expiry_date: date | None
    verification_code: str
    qr_png: bytes
    score_obtained: int | None = None
    score_total: int | None = None
    score_percentage: float | None = None


# ---------------------------------------------------------------------------
# Draw operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextOp:
    text: str
    x: float
    y: float  # baseline
    font: str
    size: float
    color: str
    centred: bool = False


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    line_width: float = 0
    stroke: str | None = None
    fill: str | None = None


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    line_width: float
    color: str


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float


DrawOp = TextOp | RectOp | LineOp | ImageOp


@dataclass
class _Frame:
    """Maps reference units measured from the page top onto PDF coordinates."""

    page_w: float
    page_h: float
    ops: list[DrawOp] = field(default_factory=list)

    @property
    def sx(self) -> float:
        return self.page_w / REFERENCE_WIDTH

    @property
    def sy(self) -> float:
        return self.page_h / REFERENCE_HEIGHT

    @property
    def scale(self) -> float:
        return min(self.sx, self.sy)

    def x(self, ref: float) -> float:
        return ref * self.sx

    def x_from_right(self, ref: float) -> float:
        return self.page_w - ref * self.sx

    def y_top(self, ref_from_top: float) -> float:
        return self.page_h - ref_from_top * self.sy

    def y_bottom(self, ref_from_bottom: float) -> float:
        return ref_from_bottom * self.sy

    def text(
        self,
        text: str,
        x: float,
        top: float,
        font: str,
        size: float,
        color: str,
        *,
        centred: bool = False,
        max_width: float | None = None,
    ) -> None:
        """Place text whose line box starts at PDF y ``top``."""
        size = size * self.scale
        if max_width is not None:
            # Shrink long titles instead of truncating the text of a legal document.
            while size > 8 and stringWidth(text, font, size) > max_width:
                size -= 0.5
        baseline = top - getAscent(font, size)
        self.ops.append(TextOp(text, x, baseline, font, size, color, centred))


def _format_date(value: date) -> str:
    return value.strftime("%B %d, %Y")


def _format_score(data: CertificatePDFData) -> str:
    if data.score_total is None or data.score_obtained is None or data.score_percentage is None:
        return "N/A"
    return f"{data.score_obtained}/{data.score_total} ({data.score_percentage:g}%)"


def _missing_fields(data: CertificatePDFData) -> list[str]:
    required_text = (
        "issued_by",
        "holder_name",
        "course_title",
        "instructor_name",
        "grade",
        "certificate_level",
        "certificate_type",
        "certificate_number",
        "verification_code",
    )
    missing = [
        name for name in required_text
        if getattr(data, name) is None or not str(getattr(data, name)).strip()
    ]
    if data.issue_date is None:
        missing.append("issue_date")
    if data.expiry_date is None:
        missing.append("expiry_date")
    if not data.qr_png:
        missing.append("qr_png")
    return missing


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def build_layout(
    data: CertificatePDFData,
    pagesize: tuple[float, float] = landscape(A4),
) -> list[DrawOp]:
    """Compute every draw operation for ``data`` on a page of ``pagesize``."""
    missing = _missing_fields(data)
    if missing:
        raise RenderError(missing)

    page_w, page_h = pagesize
    f = _Frame(page_w, page_h)
    center_x = page_w / 2
    content_width = page_w - 2 * f.x(100)

    # --- Background and border ---
    f.ops.append(RectOp(0, 0, page_w, page_h, fill=BACKGROUND))
    inset_x, inset_y = f.x(20), f.y_bottom(20)
    f.ops.append(
        RectOp(
            inset_x, inset_y, page_w - 2 * inset_x, page_h - 2 * inset_y,
            line_width=3 * f.scale, stroke=DARK,
        )
    )

    # --- Header ---
    cursor = 80.0
    f.text(data.issued_by, center_x, f.y_top(cursor), "Helvetica-Bold", 28, DARK,
           centred=True, max_width=content_width)
    cursor += 40
    f.text("Certificate of Completion", center_x, f.y_top(cursor), "Helvetica", 18, MUTED,
           centred=True)
    cursor += 30
    f.ops.append(
        LineOp(f.x(100), f.y_top(cursor), f.x_from_right(100), f.y_top(cursor),
               2 * f.scale, ACCENT)
    )

    # --- Body ---
    cursor += 30
    f.text("This is to certify that", center_x, f.y_top(cursor), "Helvetica", 14, DARK,
           centred=True)
    cursor += 30
    f.text(data.holder_name, center_x, f.y_top(cursor), "Helvetica-Bold", 24, DARK,
           centred=True, max_width=content_width)
    cursor += 40
    f.text("has successfully completed the course", center_x, f.y_top(cursor), "Helvetica",
           14, DARK, centred=True)
    cursor += 30
    f.text(data.course_title, center_x, f.y_top(cursor), "Helvetica-Bold", 20, ACCENT,
           centred=True, max_width=content_width)
    cursor += 40
    f.text(f"Grade: {data.grade} | Level: {data.certificate_level}", center_x,
           f.y_top(cursor), "Helvetica-Bold", 16, SUCCESS, centred=True)
    cursor += 30
    f.text(f"Certificate Type: {data.certificate_type}", center_x, f.y_top(cursor),
           "Helvetica", 14, MUTED, centred=True)

    # --- Details (two columns) ---
    cursor += 50
    left_x, right_x = f.x(80), f.x_from_right(200)
    column_width = right_x - left_x - f.x(20)
    left_rows = (
        ("Certificate Number:", data.certificate_number),
        ("Issue Date:", _format_date(data.issue_date)),
        ("Expiry Date:", _format_date(data.expiry_date)),
    )
    right_rows = (
        ("Score:", _format_score(data)),
        ("Instructor:", data.instructor_name),
    )
    # Right column stops short of the QR image
    qr_x = f.x_from_right(120)
    for column_x, rows, width in (
        (left_x, left_rows, column_width),
        (right_x, right_rows, qr_x - right_x - f.x(10)),
    ):
        row_top = cursor
        for label, value in rows:
            f.text(label, column_x, f.y_top(row_top), "Helvetica-Bold", 12, DARK)
            f.text(value, column_x, f.y_top(row_top + 20), "Helvetica", 12, DARK,
                   max_width=width)
            row_top += 50

    # --- QR block (bottom-right corner) ---
    qr_size = 80 * f.scale
    qr_y = f.y_bottom(70)
    f.ops.append(ImageOp(qr_x, qr_y, qr_size, qr_size))
    qr_center = qr_x + qr_size / 2
    f.text("Scan to verify", qr_center, qr_y - 5 * f.sy, "Helvetica", 10, MUTED, centred=True)
    f.text(f"Code: {data.verification_code}", qr_center, qr_y - 20 * f.sy, "Helvetica", 8,
           MUTED, centred=True)

    # --- Footer ---
    footer_top = f.y_bottom(80)
    divider_y = footer_top + 20 * f.sy
    f.ops.append(LineOp(f.x(100), divider_y, f.x_from_right(100), divider_y, 1 * f.scale,
                        DIVIDER))
    f.text(FOOTER_LINES[0], center_x, footer_top, "Helvetica", 10, MUTED, centred=True)
    f.text(FOOTER_LINES[1], center_x, footer_top - 15 * f.sy, "Helvetica", 10, MUTED,
           centred=True)

    return f.ops


# ---------------------------------------------------------------------------
# Painting
# ---------------------------------------------------------------------------


def _paint(c: canvas.Canvas, ops: list[DrawOp], qr_png: bytes) -> None:
    for op in ops:
        if isinstance(op, RectOp):
            c.setLineWidth(op.line_width)
            if op.fill:
                c.setFillColor(colors.HexColor(op.fill))
            if op.stroke:
                c.setStrokeColor(colors.HexColor(op.stroke))
            c.rect(op.x, op.y, op.width, op.height,
                   stroke=1 if op.stroke else 0, fill=1 if op.fill else 0)
        elif isinstance(op, LineOp):
            c.setStrokeColor(colors.HexColor(op.color))
            c.setLineWidth(op.line_width)
            c.line(op.x1, op.y1, op.x2, op.y2)
        elif isinstance(op, TextOp):
            c.setFillColor(colors.HexColor(op.color))
            c.setFont(op.font, op.size)
            if op.centred:
                c.drawCentredString(op.x, op.y, op.text)
            else:
                c.drawString(op.x, op.y, op.text)
        elif isinstance(op, ImageOp):
            c.drawImage(ImageReader(io.BytesIO(qr_png)), op.x, op.y,
                        width=op.width, height=op.height)


def generate_certificate_pdf(
    data: CertificatePDFData,
    pagesize: tuple[float, float] = landscape(A4),
) -> bytes:
    """Render the certificate and return raw PDF bytes.

    Raises ``RenderError`` before anything is drawn if a required field is blank.
    """
    ops = build_layout(data, pagesize)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize, invariant=1)
    c.setTitle(f"Certificate {data.certificate_number}")
    c.setAuthor(data.issued_by)
    c.setSubject(data.course_title)
    _paint(c, ops, data.qr_png)
    c.showPage()
    c.save()
    return buf.getvalue()
