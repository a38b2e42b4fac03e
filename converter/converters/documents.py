"""
Word to PDF conversion.

Text is pulled out of the DOCX with python-docx and flowed onto A4 pages
with ReportLab, wrapping lines by measured width.
"""

import logging
import zipfile
from io import BytesIO
from typing import List

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.error_handling import ConversionError
from ..utils.mime_detector import get_mime_type
from ..validate.formats.ole import OLE_SIGNATURE

logger = logging.getLogger(__name__)

FONT = "Helvetica"
FONT_SIZE = 10
LINE_HEIGHT = 15
SIDE_MARGIN = 20
TOP_MARGIN = 20
BOTTOM_MARGIN = 50


def wrap_text(text: str, max_width: float, font: str = FONT, size: int = FONT_SIZE) -> List[str]:
    """
    Greedy word wrap by rendered width.

    A single word wider than the line is placed on a line of its own.
    """
    lines: List[str] = []
    current = ""

    for word in text.split(" "):
        candidate = word if not current else f"{current} {word}"
        if stringWidth(candidate, font, size) <= max_width:
            current = candidate
        elif current:
            lines.append(current)
            current = word
        else:
            lines.append(word)

    if current:
        lines.append(current)
    return lines


def extract_docx_text(upload: UploadedFile) -> str:
    """Raw text of a DOCX upload; legacy binary .doc files are rejected."""
    if upload.extension == ".doc" or upload.content.startswith(OLE_SIGNATURE):
        raise ConversionError(
            "Legacy .doc files are not supported. Please save the document as .docx and try again"
        )

    try:
        document = Document(BytesIO(upload.content))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning(f"Could not open Word document {upload.file_name!r}: {e}")
        raise ConversionError("Unable to read the Word document")

    # Body order is kept; a table row becomes one tab separated line
    paragraphs = []
    for item in document.iter_inner_content():
        if isinstance(item, Table):
            rows = ["\t".join(cell.text for cell in row.cells) for row in item.rows]
            paragraphs.append("\n".join(rows))
        else:
            paragraphs.append(item.text)
    return "\n\n".join(paragraphs)


def render_text_pdf(text: str, title: str = "") -> bytes:
    """Flow paragraphs of text onto as many A4 pages as needed."""
    page_width, page_height = A4
    max_width = page_width - 2 * SIDE_MARGIN

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)
    pdf.setFont(FONT, FONT_SIZE)

    y = TOP_MARGIN
    paragraphs = text.replace("\r\n", "\n").replace("\r", "\n").rstrip("\n").split("\n\n")

    for paragraph in paragraphs:
        for source_line in paragraph.split("\n"):
            for line in wrap_text(source_line.replace("\t", "    "), max_width):
                if y >= page_height - BOTTOM_MARGIN:
                    pdf.showPage()
                    pdf.setFont(FONT, FONT_SIZE)
                    y = TOP_MARGIN
                # y counts down from the top; ReportLab counts up from the bottom
                pdf.drawString(SIDE_MARGIN, page_height - y - FONT_SIZE, line)
                y += LINE_HEIGHT
        y += LINE_HEIGHT / 2

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def word_to_pdf(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """Convert a DOCX document into a text-only PDF."""
    text = extract_docx_text(upload)
    logger.info(f"Extracted {len(text)} characters from {upload.file_name!r}")

    return ConversionResponse.ok(
        render_text_pdf(text, upload.stem),
        f"{upload.stem}.pdf",
        get_mime_type(extension="pdf"),
    )
