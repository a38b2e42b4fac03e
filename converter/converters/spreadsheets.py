"""
Spreadsheet converters: Excel to PDF and the internal PDF to Excel path.

Workbooks are read with pandas (openpyxl engine for .xlsx, xlrd for .xls)
and drawn onto A4 pages with ReportLab. PDF text is split into worksheet
cells with openpyxl.
"""

import logging
import re
import zipfile
from io import BytesIO
from typing import Dict, List

import openpyxl
import pandas as pd
import xlrd
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.error_handling import ConversionError
from ..utils.mime_detector import get_mime_type
from ..validate.formats.ole import OLE_SIGNATURE
from .pdf_to_word import read_pdf

logger = logging.getLogger(__name__)

# Grid layout, in points
MARGIN = 20
ROW_HEIGHT = 20
MIN_GRID_COLUMNS = 10
MAX_ROWS = 50
MAX_COLUMNS = 10
CELL_PADDING = 2
BORDER_WIDTH = 0.5

FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
FONT_SIZE = 8
TITLE_FONT_SIZE = 12
TITLE_TOP = 10

MAX_CELL_CHARS = 20
TRUNCATED_CHARS = 17

PDF_CELL_DELIMITERS = re.compile(r"[\t;,|]")
MAX_COLUMN_WIDTH = 60


def read_workbook(upload: UploadedFile) -> Dict[str, pd.DataFrame]:
    """
    Read every worksheet of an Excel upload.

    Returns:
        Mapping of sheet name to a header-less DataFrame, in workbook order
    """
    if upload.extension == ".xls" or upload.content.startswith(OLE_SIGNATURE):
        engine = "xlrd"
    else:
        engine = "openpyxl"

    try:
        return pd.read_excel(BytesIO(upload.content), sheet_name=None, header=None, engine=engine)
    except (ValueError, KeyError, OSError, zipfile.BadZipFile, xlrd.XLRDError) as e:
        logger.warning(f"Could not read workbook {upload.file_name!r} with {engine}: {e}")
        raise ConversionError("Unable to read the spreadsheet file")


def cell_text(value) -> str:
    """Display text for a worksheet value ('' for empty cells)."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def truncate_cell(text: str) -> str:
    if len(text) > MAX_CELL_CHARS:
        return text[:TRUNCATED_CHARS] + "..."
    return text


def _draw_sheet(pdf: canvas.Canvas, name: str, frame: pd.DataFrame) -> None:
    """Draw one worksheet as a grid on the current page."""
    page_width, page_height = A4
    rows, columns = frame.shape
    cell_width = (page_width - 2 * MARGIN) / max(columns, MIN_GRID_COLUMNS)

    pdf.setLineWidth(BORDER_WIDTH)
    pdf.setStrokeColor(colors.black)

    for row in range(min(rows, MAX_ROWS)):
        is_header = row == 0
        for col in range(min(columns, MAX_COLUMNS)):
            text = cell_text(frame.iat[row, col])
            if not text:
                continue

            x = MARGIN + col * cell_width
            # ReportLab measures y from the bottom of the page
            y = page_height - MARGIN - (row + 1) * ROW_HEIGHT

            if is_header:
                pdf.setFillColor(colors.lightgrey)
                pdf.rect(x, y, cell_width, ROW_HEIGHT, stroke=0, fill=1)
            pdf.rect(x, y, cell_width, ROW_HEIGHT, stroke=1, fill=0)

            pdf.setFillColor(colors.black)
            pdf.setFont(BOLD_FONT if is_header else FONT, FONT_SIZE)
            pdf.drawString(x + CELL_PADDING, y + (ROW_HEIGHT - FONT_SIZE) / 2 + 1, truncate_cell(text))

    pdf.setFillColor(colors.black)
    pdf.setFont(BOLD_FONT, TITLE_FONT_SIZE)
    pdf.drawCentredString(page_width / 2, page_height - TITLE_TOP - TITLE_FONT_SIZE * 0.75, str(name))


def excel_to_pdf(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """Render each worksheet of a workbook on its own A4 portrait page."""
    sheets = read_workbook(upload)

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(upload.stem)
    for name, frame in sheets.items():
        logger.debug(f"Rendering sheet {name!r} ({frame.shape[0]}x{frame.shape[1]})")
        _draw_sheet(pdf, name, frame)
        pdf.showPage()
    pdf.save()

    return ConversionResponse.ok(
        buffer.getvalue(),
        f"{upload.stem}.pdf",
        get_mime_type(extension="pdf"),
    )


def split_pdf_line(line: str) -> List[str]:
    """Cells of a text line split on tab, semicolon, comma or pipe."""
    return [part.strip() for part in PDF_CELL_DELIMITERS.split(line)]


def pdf_to_excel(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """
    Split the text of every PDF page into worksheet rows.

    Not exposed over HTTP; reachable through the converter factory.
    """
    reader = read_pdf(upload.content)

    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Sheet1"

    widths: Dict[int, int] = {}
    row = 1
    for page in reader.pages:
        text = page.extract_text() or ""
        for line in text.splitlines():
            if not line.strip():
                continue
            for col, value in enumerate(split_pdf_line(line), start=1):
                sheet.cell(row=row, column=col, value=value)
                widths[col] = max(widths.get(col, 0), len(value))
            row += 1

    for col, width in widths.items():
        sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, MAX_COLUMN_WIDTH)

    buffer = BytesIO()
    workbook.save(buffer)

    return ConversionResponse.ok(
        buffer.getvalue(),
        f"{upload.stem}.xlsx",
        get_mime_type(extension="xlsx"),
    )
