"""
Unified MIME type lookup utility.

Converters label their output through this module so that every response
carries the same content type for the same format, regardless of what the
platform's mimetypes database happens to contain.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

# MIME type mappings for every format the service reads or writes
MIME_TYPE_MAPPINGS = {
    # Document formats
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # Image formats
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jfif": "image/jpeg",
    "jif": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "avif": "image/avif",
    "ico": "image/x-icon",

    # Archive formats
    "zip": "application/zip",
}


class MimeTypeDetector:
    """
    MIME type detector with consistent fallbacks.

    Lookup priority order:
    1. Custom mappings (authoritative for the formats above)
    2. Extension-based detection (mimetypes module)
    3. Generic fallback
    """

    def __init__(self):
        """Initialize the MIME type detector."""
        mimetypes.init()

        # Register custom mappings so mimetypes agrees with them
        for ext, mime_type in MIME_TYPE_MAPPINGS.items():
            mimetypes.add_type(mime_type, f".{ext}")

    @staticmethod
    def extension_of(filename: Optional[str]) -> str:
        """
        Lower-cased extension of a file name without the dot ('' if none).

        A bare dotted name such as '.png' is all extension.
        """
        if not filename:
            return ""
        name = Path(filename.replace("\\", "/")).name
        suffix = Path(name).suffix
        if not suffix and name.startswith(".") and name.count(".") == 1:
            suffix = name
        return suffix[1:].lower()

    def detect_from_mapping(self, format_or_extension: str) -> Optional[str]:
        """
        Detect MIME type from the custom mapping table.

        Args:
            format_or_extension: File format or extension

        Returns:
            MIME type string or None
        """
        if not format_or_extension:
            return None

        format_clean = format_or_extension.lstrip(".").lower()
        mime_type = MIME_TYPE_MAPPINGS.get(format_clean)
        if mime_type:
            logger.debug(f"Mapping-based detection: {format_clean} -> {mime_type}")
        return mime_type

    def detect_from_extension(self, filename: str) -> Optional[str]:
        """
        Detect MIME type from a file name using the mimetypes module.

        Args:
            filename: Filename or path

        Returns:
            Detected MIME type string or None
        """
        extension = self.extension_of(filename)
        if not extension:
            return None

        mime_type, _ = mimetypes.guess_type(f"file.{extension}")
        if mime_type:
            logger.debug(f"Extension-based detection: {extension} -> {mime_type}")
        return mime_type

    def get_mime_type(
        self,
        filename: Optional[str] = None,
        extension: Optional[str] = None
    ) -> str:
        """
        Get MIME type for a file name or bare extension.

        Args:
            filename: Optional filename for extension-based detection
            extension: Optional file extension (alternative to filename)

        Returns:
            MIME type string with fallback to application/octet-stream
        """
        lookup = extension or self.extension_of(filename)

        detected_mime = self.detect_from_mapping(lookup)
        if not detected_mime and filename:
            detected_mime = self.detect_from_extension(filename)

        return detected_mime or DEFAULT_MIME_TYPE


# Global detector instance
_detector_instance = None

def get_mime_detector() -> MimeTypeDetector:
    """Get the global MIME type detector instance."""
    global _detector_instance
    if _detector_instance is None:
        _detector_instance = MimeTypeDetector()
    return _detector_instance

def get_mime_type(filename: Optional[str] = None, extension: Optional[str] = None) -> str:
    """Convenience function to get a MIME type using the global detector."""
    return get_mime_detector().get_mime_type(filename, extension)

