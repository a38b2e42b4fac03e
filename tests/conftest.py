"""
Shared test configuration and fixtures for the converter API tests.

Sample files are generated in memory with the same libraries the service
reads them with, so no fixture files need to be kept on disk.
"""

import zipfile

import pytest
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple

from docx import Document
from fastapi.testclient import TestClient
from openpyxl import Workbook
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app import app
from converter.models import ConversionOptions, ConversionRequest, UploadedFile


# ===== SAMPLE FILE FACTORY =====

class SampleFileFactory:
    """Factory for generating sample uploads in memory."""

    @staticmethod
    def image_bytes(
        size: Tuple[int, int] = (64, 48),
        image_format: str = "PNG",
        mode: str = "RGB",
        color=(200, 30, 30),
        **save_kwargs
    ) -> bytes:
        """Solid-colour image encoded in the given format."""
        image = Image.new(mode, size, color)
        buffer = BytesIO()
        image.save(buffer, format=image_format, **save_kwargs)
        return buffer.getvalue()

    @staticmethod
    def noisy_image_bytes(size: Tuple[int, int] = (128, 128), image_format: str = "PNG", **save_kwargs) -> bytes:
        """Random-noise RGB image, which compresses poorly."""
        image = Image.effect_noise(size, 120).convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format=image_format, **save_kwargs)
        return buffer.getvalue()

    @staticmethod
    def xlsx_bytes(sheets: Optional[Dict[str, Sequence[Sequence]]] = None) -> bytes:
        """Workbook with one worksheet per entry of ``sheets``."""
        sheets = sheets or {"Data": [["Name", "Qty"], ["Apples", 3], ["Pears", 5]]}
        workbook = Workbook()
        workbook.remove(workbook.active)
        for name, rows in sheets.items():
            sheet = workbook.create_sheet(title=name)
            for row in rows:
                sheet.append(list(row))
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def docx_bytes(paragraphs: Optional[List[str]] = None) -> bytes:
        """Word document with one paragraph per string."""
        document = Document()
        for text in paragraphs or ["Quarterly report", "Revenue grew in every region."]:
            document.add_paragraph(text)
        buffer = BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def docx_with_undecodable_name() -> bytes:
        """Word document whose zip directory holds a UTF-8 flagged name that is not UTF-8."""
        buffer = BytesIO(SampleFileFactory.docx_bytes())
        with zipfile.ZipFile(buffer, "a") as archive:
            archive.writestr("é.xml", "<x/>")
        # Same length, so every offset in the archive stays valid
        return buffer.getvalue().replace("é.xml".encode("utf-8"), b"\xff\xfe.xml")

    @staticmethod
    def pdf_bytes(pages: Optional[List[List[str]]] = None) -> bytes:
        """PDF with one page per list of text lines."""
        pages = pages or [["SUMMARY", "The quick brown fox jumps over the lazy dog."]]
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        for lines in pages:
            y = 800
            for line in lines:
                pdf.drawString(40, y, line)
                y -= 20
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    @staticmethod
    def upload(content: bytes, file_name: str, content_type: Optional[str] = None) -> UploadedFile:
        return UploadedFile(content=content, file_name=file_name, content_type=content_type)

    @staticmethod
    def request(
        conversion_type: Optional[str],
        upload: Optional[UploadedFile],
        **options
    ) -> ConversionRequest:
        return ConversionRequest(
            conversion_type=conversion_type,
            file=upload,
            options=ConversionOptions(**options),
        )


# ===== STANDARD FIXTURES =====

@pytest.fixture(scope="session")
def client():
    """FastAPI test client for synchronous tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def samples():
    """In-memory sample file factory."""
    return SampleFileFactory


@pytest.fixture
def png_upload(samples):
    """Small opaque PNG upload."""
    return samples.upload(samples.image_bytes(), "photo.png", "image/png")


@pytest.fixture
def jpeg_upload(samples):
    """Small JPEG upload."""
    return samples.upload(samples.image_bytes(image_format="JPEG"), "photo.jpg", "image/jpeg")


@pytest.fixture
def xlsx_upload(samples):
    """Single-sheet workbook upload."""
    return samples.upload(
        samples.xlsx_bytes(),
        "sheet.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


@pytest.fixture
def docx_upload(samples):
    """Two-paragraph Word document upload."""
    return samples.upload(
        samples.docx_bytes(),
        "report.docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )


@pytest.fixture
def pdf_upload(samples):
    """One-page text PDF upload."""
    return samples.upload(samples.pdf_bytes(), "document.pdf", "application/pdf")
