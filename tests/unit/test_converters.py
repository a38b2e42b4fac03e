"""
Unit tests for the local converters.
"""

from io import BytesIO

import pytest
from docx import Document
from docx.shared import Inches
from openpyxl import load_workbook
from PIL import Image, features
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth

from converter.config import CONVERSION_CATALOG, INTERNAL_CONVERSIONS
from converter.converters import get_converter_factory
from converter.converters.documents import render_text_pdf, word_to_pdf, wrap_text
from converter.converters.images import image_to_pdf, recode_image
from converter.converters.pdf_to_word import (
    ImageBlock,
    PageBreakBlock,
    ParagraphBlock,
    TableBlock,
    TextRun,
    is_heading,
    pdf_to_word,
    text_blocks,
    write_docx,
)
from converter.converters.spreadsheets import cell_text, excel_to_pdf, pdf_to_excel, truncate_cell
from converter.models import ConversionOptions
from converter.utils.error_handling import ConversionError, ErrorCode


def pdf_text(data: bytes) -> str:
    return "\n".join(page.extract_text() or "" for page in PdfReader(BytesIO(data)).pages)


class TestImageConverters:
    """Test cases for image to PDF and image re-encoding."""

    def test_image_to_pdf_is_single_a4_page(self, png_upload):
        """Test the image is placed on one A4 page."""
        result = image_to_pdf(png_upload, ConversionOptions())
        reader = PdfReader(BytesIO(result.data))

        assert result.file_name == "photo.pdf"
        assert len(reader.pages) == 1
        assert float(reader.pages[0].mediabox.width) == pytest.approx(A4[0], abs=1)

    def test_image_to_pdf_flattens_transparency(self, samples):
        """Test transparent images convert without error."""
        upload = samples.upload(samples.image_bytes(mode="RGBA", color=(0, 0, 0, 0)), "clear.png")
        result = image_to_pdf(upload, ConversionOptions(width=300))
        assert result.success is True

    @pytest.mark.parametrize("target,pillow_format", [
        ("jpeg", "JPEG"),
        ("png", "PNG"),
        ("webp", "WEBP"),
    ])
    def test_recode(self, png_upload, target, pillow_format):
        """Test each re-encode target produces that format."""
        result = recode_image(png_upload, ConversionOptions(quality=70), target)
        assert result.file_name == f"photo.{target}"
        assert Image.open(BytesIO(result.data)).format == pillow_format

    def test_recode_to_ico_is_bounded(self, samples):
        """Test icons are scaled down to at most 256 pixels."""
        upload = samples.upload(samples.image_bytes(size=(512, 400)), "big.png")
        result = recode_image(upload, ConversionOptions(), "ico")
        icon = Image.open(BytesIO(result.data))

        assert result.content_type == "image/x-icon"
        assert icon.format == "ICO"
        assert max(icon.size) <= 256

    @pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF")
    def test_recode_to_avif(self, png_upload):
        """Test AVIF output when the codec is available."""
        result = recode_image(png_upload, ConversionOptions(), "avif")
        assert result.content_type == "image/avif"
        assert Image.open(BytesIO(result.data)).format == "AVIF"

    def test_jpeg_drops_alpha(self, samples):
        """Test RGBA input is flattened for JPEG."""
        upload = samples.upload(samples.image_bytes(mode="RGBA", color=(0, 0, 0, 0)), "clear.png")
        result = recode_image(upload, ConversionOptions(), "jpeg")
        image = Image.open(BytesIO(result.data))
        assert image.mode == "RGB"
        assert image.getpixel((0, 0))[0] > 240

    def test_undecodable_image(self, samples):
        """Test decode failures become ConversionError."""
        with pytest.raises(ConversionError) as exc_info:
            recode_image(samples.upload(b"nope", "x.png"), ConversionOptions(), "png")
        assert exc_info.value.message == "Unable to read the image file"


class TestPdfToWord:
    """Test cases for the PDF to Word block model."""

    def test_heading_detection(self):
        """Test short all-caps lines with a letter are headings."""
        assert is_heading("ANNUAL REPORT 2024")
        assert not is_heading("Annual report")
        assert not is_heading("2024 - 2025")
        assert not is_heading("A" * 100)

    def test_text_blocks(self):
        """Test headings, tables and paragraphs are recognized."""
        blocks = text_blocks("SUMMARY\nName | Qty\nApples\t3\n\nplain text line\n")

        assert isinstance(blocks[0], ParagraphBlock)
        assert blocks[0].runs[0].bold is True
        assert blocks[0].runs[0].size_pt == 14
        assert blocks[1] == TableBlock((("Name", "Qty"), ("Apples", "3")))
        assert blocks[2].runs[0] == TextRun("plain text line")
        assert len(blocks) == 3

    def test_single_cell_line_is_a_paragraph(self):
        """Test a delimiter with only one non-empty cell is not a table."""
        blocks = text_blocks("total |")
        assert isinstance(blocks[0], ParagraphBlock)

    def test_write_docx(self, samples):
        """Test every block kind serializes."""
        picture = samples.image_bytes(size=(192, 96))
        blocks = [
            ParagraphBlock((TextRun("TITLE", size_pt=14, bold=True),)),
            TableBlock((("a", "b"), ("c",))),
            PageBreakBlock(),
            ImageBlock(picture, 192, 96),
        ]
        document = Document(BytesIO(write_docx(blocks)))

        assert document.paragraphs[0].text == "TITLE"
        assert document.paragraphs[0].runs[0].bold is True
        assert len(document.tables) == 1
        assert document.tables[0].cell(0, 1).text == "b"
        assert len(document.inline_shapes) == 1
        assert document.inline_shapes[0].width == Inches(2)

    def test_pdf_to_word(self, pdf_upload):
        """Test a text PDF becomes a DOCX with its heading."""
        result = pdf_to_word(pdf_upload, ConversionOptions())
        document = Document(BytesIO(result.data))

        assert result.file_name == "document.docx"
        assert any("SUMMARY" in paragraph.text for paragraph in document.paragraphs)

    def test_pages_are_separated(self, samples):
        """Test a page break precedes every page after the first."""
        upload = samples.upload(samples.pdf_bytes([["first page"], ["second page"]]), "two.pdf")
        document = Document(BytesIO(pdf_to_word(upload, ConversionOptions()).data))
        assert 'w:type="page"' in document.element.xml

    def test_unreadable_pdf(self, samples):
        """Test parse failures become ConversionError."""
        upload = samples.upload(b"%PDF-1.4\ngarbage\n%%EOF", "bad.pdf")
        with pytest.raises(ConversionError):
            pdf_to_word(upload, ConversionOptions())


class TestSpreadsheets:
    """Test cases for Excel to PDF and PDF to Excel."""

    def test_cell_text(self):
        """Test display text of worksheet values."""
        assert cell_text(None) == ""
        assert cell_text(float("nan")) == ""
        assert cell_text(3.0) == "3"
        assert cell_text(2.5) == "2.5"
        assert cell_text("x") == "x"

    def test_truncate_cell(self):
        """Test long cell text is cut to 17 characters plus an ellipsis."""
        assert truncate_cell("a" * 20) == "a" * 20
        assert truncate_cell("a" * 21) == "a" * 17 + "..."

    def test_excel_to_pdf_page_per_sheet(self, samples):
        """Test every worksheet gets its own page with its title."""
        content = samples.xlsx_bytes({
            "Fruit": [["Name", "Qty"], ["Apples", 3]],
            "Veg": [["Name", "Qty"], ["Leeks", 7]],
        })
        result = excel_to_pdf(samples.upload(content, "stock.xlsx"), ConversionOptions())
        reader = PdfReader(BytesIO(result.data))

        assert result.file_name == "stock.pdf"
        assert len(reader.pages) == 2
        assert "Fruit" in reader.pages[0].extract_text()
        assert "Leeks" in reader.pages[1].extract_text()

    def test_pdf_to_excel(self, samples):
        """Test delimited PDF lines become worksheet rows."""
        content = samples.pdf_bytes([["Name;Qty", "Apples;3"], ["Pears;5"]])
        result = pdf_to_excel(samples.upload(content, "table.pdf"), ConversionOptions())
        sheet = load_workbook(BytesIO(result.data)).active

        assert result.file_name == "table.xlsx"
        assert sheet.title == "Sheet1"
        assert sheet["A1"].value == "Name"
        assert sheet["B2"].value == "3"
        assert sheet["A3"].value == "Pears"


class TestDocuments:
    """Test cases for Word to PDF."""

    def test_wrap_text(self):
        """Test wrapped lines fit the width."""
        text = " ".join(["word"] * 200)
        lines = wrap_text(text, 200)
        assert len(lines) > 1
        assert all(stringWidth(line, "Helvetica", 10) <= 200 for line in lines)
        assert " ".join(lines) == text

    def test_overlong_word_gets_own_line(self):
        """Test a word wider than the line is not split."""
        assert wrap_text("a " + "x" * 200 + " b", 100) == ["a", "x" * 200, "b"]

    def test_word_to_pdf(self, docx_upload):
        """Test paragraph text is carried into the PDF."""
        result = word_to_pdf(docx_upload, ConversionOptions())
        assert result.file_name == "report.pdf"
        assert "Quarterly report" in pdf_text(result.data)

    def test_long_document_spans_pages(self, samples):
        """Test text flows onto further pages."""
        paragraphs = [f"Paragraph number {index}" for index in range(200)]
        upload = samples.upload(samples.docx_bytes(paragraphs), "long.docx")
        result = word_to_pdf(upload, ConversionOptions())
        assert len(PdfReader(BytesIO(result.data)).pages) > 1

    def test_legacy_doc_rejected(self, samples):
        """Test binary .doc files are refused with guidance."""
        with pytest.raises(ConversionError) as exc_info:
            word_to_pdf(samples.upload(b"\xd0\xcf\x11\xe0rest", "old.doc"), ConversionOptions())
        assert "save the document as .docx" in exc_info.value.message

    def test_empty_text_renders_a_page(self):
        """Test an empty document still yields a one-page PDF."""
        assert len(PdfReader(BytesIO(render_text_pdf(""))).pages) == 1


class TestConverterFactory:
    """Test cases for ConverterFactory."""

    def test_every_operation_is_bound(self):
        """Test the catalog and internal operations all have converters."""
        operations = set(get_converter_factory().operations())
        assert set(CONVERSION_CATALOG) | set(INTERNAL_CONVERSIONS) <= operations

    def test_unknown_operation(self):
        """Test unknown operations are not supported."""
        with pytest.raises(ConversionError) as exc_info:
            get_converter_factory().get_converter("pdf-to-pptx")
        assert exc_info.value.error_code == ErrorCode.CONVERSION_NOT_SUPPORTED

    def test_convert_runs_bound_converter(self, png_upload):
        """Test convert() delegates to the bound converter."""
        result = get_converter_factory().convert("img-to-webp", png_upload, ConversionOptions())
        assert result.file_name == "photo.webp"
        assert result.content_type == "image/webp"
