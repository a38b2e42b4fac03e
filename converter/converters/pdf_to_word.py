"""
PDF to Word conversion.

Pages are read with pypdf and turned into an immutable block model
(paragraphs made of runs, tables, pictures and page breaks). A single
serialization step then writes the blocks with python-docx.
"""

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import List, Sequence, Tuple, Union

from docx import Document
from docx.shared import Inches, Pt
from PIL import Image
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.error_handling import ConversionError
from ..utils.mime_detector import get_mime_type

logger = logging.getLogger(__name__)

FONT_NAME = "Calibri"
HEADING_SIZE_PT = 14
BODY_SIZE_PT = 10
HEADING_MAX_LENGTH = 100
TABLE_STYLE = "Table Grid"
MAX_PICTURE_WIDTH_INCHES = 6.0
PICTURE_DPI = 96

CELL_DELIMITERS = re.compile(r"[|\t]")

# Image types python-docx can embed as-is
DOCX_IMAGE_FORMATS = {"JPEG", "PNG", "GIF", "BMP"}


@dataclass(frozen=True)
class TextRun:
    text: str
    size_pt: int = BODY_SIZE_PT
    bold: bool = False
    font_name: str = FONT_NAME


@dataclass(frozen=True)
class ParagraphBlock:
    runs: Tuple[TextRun, ...]


@dataclass(frozen=True)
class TableBlock:
    rows: Tuple[Tuple[str, ...], ...]

    @property
    def column_count(self) -> int:
        return max(len(row) for row in self.rows)


@dataclass(frozen=True)
class ImageBlock:
    data: bytes
    width_px: int
    height_px: int


@dataclass(frozen=True)
class PageBreakBlock:
    pass


Block = Union[ParagraphBlock, TableBlock, ImageBlock, PageBreakBlock]


def is_heading(line: str) -> bool:
    """Short all-caps lines that contain at least one letter."""
    return (
        len(line) < HEADING_MAX_LENGTH
        and line == line.upper()
        and any(char.isalpha() for char in line)
    )


def split_cells(line: str) -> List[str]:
    """Non-empty cells of a pipe or tab delimited line."""
    return [cell.strip() for cell in CELL_DELIMITERS.split(line) if cell.strip()]


def is_table_row(line: str) -> bool:
    return bool(CELL_DELIMITERS.search(line)) and len(split_cells(line)) >= 2


def text_blocks(text: str) -> List[Block]:
    """
    Turn one page of extracted text into paragraph and table blocks.

    Consecutive delimited lines are gathered into a single table.
    """
    blocks: List[Block] = []
    pending_rows: List[Tuple[str, ...]] = []

    def flush_table():
        if pending_rows:
            blocks.append(TableBlock(tuple(pending_rows)))
            pending_rows.clear()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if is_table_row(raw_line):
            pending_rows.append(tuple(split_cells(raw_line)))
            continue

        flush_table()
        if is_heading(line):
            run = TextRun(line, size_pt=HEADING_SIZE_PT, bold=True)
        else:
            run = TextRun(line)
        blocks.append(ParagraphBlock((run,)))

    flush_table()
    return blocks


def _embeddable_image(data: bytes) -> ImageBlock:
    """Image block for python-docx, re-encoding to PNG when needed."""
    with Image.open(BytesIO(data)) as image:
        width, height = image.size
        if image.format in DOCX_IMAGE_FORMATS:
            return ImageBlock(data, width, height)

        buffer = BytesIO()
        converted = image.convert("RGBA") if image.has_transparency_data else image.convert("RGB")
        converted.save(buffer, format="PNG")
        return ImageBlock(buffer.getvalue(), width, height)


def page_image_blocks(page, page_number: int) -> List[Block]:
    """Picture blocks for a page's embedded images; failures skip the page's images."""
    try:
        return [_embeddable_image(image_file.data) for image_file in page.images]
    except Exception:
        logger.warning(f"Skipping images on page {page_number}", exc_info=True)
        return []


def read_pdf(content: bytes) -> PdfReader:
    """Open PDF bytes with pypdf, rejecting unreadable or locked files."""
    try:
        reader = PdfReader(BytesIO(content))
        if reader.is_encrypted and not reader.decrypt(""):
            raise ConversionError("Password-protected PDF files are not supported")
        # Touch the page tree so structural errors surface here
        len(reader.pages)
    except (PdfReadError, ValueError, KeyError) as e:
        logger.warning(f"Could not parse PDF: {e}")
        raise ConversionError("Unable to read the PDF file")
    return reader


def build_blocks(reader: PdfReader) -> List[Block]:
    """Block model for a whole document, page by page."""
    blocks: List[Block] = []
    for page_number, page in enumerate(reader.pages, start=1):
        if page_number > 1:
            blocks.append(PageBreakBlock())
        blocks.extend(text_blocks(page.extract_text() or ""))
        blocks.extend(page_image_blocks(page, page_number))
    return blocks


def _write_paragraph(document, block: ParagraphBlock) -> None:
    paragraph = document.add_paragraph()
    for text_run in block.runs:
        run = paragraph.add_run(text_run.text)
        run.bold = text_run.bold
        run.font.size = Pt(text_run.size_pt)
        run.font.name = text_run.font_name


def _write_table(document, block: TableBlock) -> None:
    table = document.add_table(rows=len(block.rows), cols=block.column_count)
    table.style = TABLE_STYLE
    for row_index, row in enumerate(block.rows):
        for col_index, value in enumerate(row):
            cell = table.cell(row_index, col_index)
            cell.text = value
            for run in cell.paragraphs[0].runs:
                run.font.size = Pt(BODY_SIZE_PT)
                run.font.name = FONT_NAME


def _write_image(document, block: ImageBlock) -> None:
    width = min(MAX_PICTURE_WIDTH_INCHES, block.width_px / PICTURE_DPI)
    document.add_picture(BytesIO(block.data), width=Inches(width))


def write_docx(blocks: Sequence[Block]) -> bytes:
    """Serialize a block model to DOCX bytes."""
    document = Document()
    for block in blocks:
        if isinstance(block, PageBreakBlock):
            document.add_page_break()
        elif isinstance(block, TableBlock):
            _write_table(document, block)
        elif isinstance(block, ImageBlock):
            _write_image(document, block)
        else:
            _write_paragraph(document, block)

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def pdf_to_word(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """Convert a PDF into a Word document."""
    reader = read_pdf(upload.content)
    blocks = build_blocks(reader)
    logger.info(f"Built {len(blocks)} blocks from {len(reader.pages)} page(s) of {upload.file_name!r}")

    return ConversionResponse.ok(
        write_docx(blocks),
        f"{upload.stem}.docx",
        get_mime_type(extension="docx"),
    )
