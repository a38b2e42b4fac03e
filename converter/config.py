"""
Conversion configuration for the /convert endpoints.

This module defines the file categories, the closed catalog of conversion
operations and the category each one requires, the extension and
content-type tables used to classify uploads, and the environment-driven
runtime settings.
"""

import os
from enum import Enum
from typing import Dict, List, Tuple


class Category(Enum):
    """File categories an upload can be classified into."""
    IMAGE = "Image"
    PDF = "Pdf"
    WORD = "Word"
    EXCEL = "Excel"
    UNKNOWN = "Unknown"


# Conversion catalog: operation identifier -> (required category, description).
# Insertion order is the order operations are reported to clients.
CONVERSION_CATALOG: Dict[str, Tuple[Category, str]] = {
    "img-to-pdf": (Category.IMAGE, "Image to single-page A4 PDF"),
    "img-to-jpeg": (Category.IMAGE, "Image re-encoded as JPEG"),
    "img-to-png": (Category.IMAGE, "Image re-encoded as PNG"),
    "img-to-webp": (Category.IMAGE, "Image re-encoded as WebP"),
    "img-to-avif": (Category.IMAGE, "Image re-encoded as AVIF"),
    "img-to-ico": (Category.IMAGE, "Image re-encoded as ICO"),
    "compress-img": (Category.IMAGE, "Size-aware image compression"),
    "pdf-to-word": (Category.PDF, "PDF text, tables and images to DOCX"),
    "excel-to-pdf": (Category.EXCEL, "Worksheets rendered as PDF grids"),
    "word-to-pdf": (Category.WORD, "DOCX text flowed into PDF pages"),
}

# Converters available programmatically but not routed from the HTTP surface
INTERNAL_CONVERSIONS: Dict[str, Tuple[Category, str]] = {
    "pdf-to-excel": (Category.PDF, "PDF text rows split into worksheet cells"),
}

# Extension tables, checked in this order
CATEGORY_EXTENSIONS: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.EXCEL, ("xls", "xlsx")),
    (Category.WORD, ("doc", "docx")),
    (Category.PDF, ("pdf",)),
    (Category.IMAGE, ("jpg", "jpeg", "jfif", "jif", "png", "gif", "bmp", "webp", "ico", "avif")),
]

# Declared content-type fallback, checked in this order after the image/ prefix
CONTENT_TYPE_TOKENS: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.PDF, ("pdf",)),
    (Category.EXCEL, ("excel", "spreadsheet")),
    (Category.WORD, ("word", "document")),
]

# Target format for every image recode operation
IMAGE_RECODE_TARGETS: Dict[str, str] = {
    "img-to-jpeg": "jpeg",
    "img-to-png": "png",
    "img-to-webp": "webp",
    "img-to-avif": "avif",
    "img-to-ico": "ico",
}

# Static payload for GET /supported-formats
SUPPORTED_FORMATS = {
    "imageInput": ["jpg", "jpeg", "jfif", "jif", "png", "gif", "bmp", "webp", "ico", "avif"],
    "imageOutput": ["jpg", "jpeg", "png", "webp", "ico", "avif"],
    "documentInput": ["pdf", "xls", "xlsx", "doc", "docx"],
    "documentOutput": ["docx", "pdf"],
    "conversionTypes": [
        "img-to-pdf",
        "pdf-to-word",
        "excel-to-pdf",
        "img-to-jpeg",
        "img-to-png",
        "img-to-webp",
        "img-to-avif",
        "img-to-ico",
        "compress-img",
        "word-to-pdf",
    ],
}

BATCH_ARCHIVE_NAME = "converted_files.zip"


class AppConfig:
    """Runtime settings read from the environment."""

    DEFAULT_PORT = 8080
    DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB
    DEFAULT_MAX_IMAGE_PIXELS = 80_000_000

    @staticmethod
    def _int_from_env(name: str, default: int) -> int:
        value = os.getenv(name)
        if not value:
            return default
        try:
            parsed = int(value)
        except ValueError:
            return default
        return parsed if parsed > 0 else default

    @staticmethod
    def get_port() -> int:
        """Listening port for `python app.py`."""
        return AppConfig._int_from_env("PORT", AppConfig.DEFAULT_PORT)

    @staticmethod
    def get_max_upload_bytes() -> int:
        """Per-file upload ceiling in bytes."""
        return AppConfig._int_from_env("MAX_UPLOAD_BYTES", AppConfig.DEFAULT_MAX_UPLOAD_BYTES)

    @staticmethod
    def get_max_image_pixels() -> int:
        """Largest decoded image (width x height) accepted."""
        return AppConfig._int_from_env("MAX_IMAGE_PIXELS", AppConfig.DEFAULT_MAX_IMAGE_PIXELS)

    @staticmethod
    def get_cors_origins() -> List[str]:
        """Allowed CORS origins (comma separated, '*' by default)."""
        raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        return origins or ["*"]
