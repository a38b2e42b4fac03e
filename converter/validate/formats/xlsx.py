"""
XLSX file validation.

Validates Excel XLSX files by their OOXML package structure.
"""

import logging

from ..base_validator import ArchiveBasedValidator, ValidationError

logger = logging.getLogger(__name__)


class XLSXValidator(ArchiveBasedValidator):
    """XLSX file validator using the base validation framework."""

    def __init__(self):
        # Define required files for XLSX format
        required_files = [
            '[Content_Types].xml',
            'xl/workbook.xml'
        ]
        super().__init__("xlsx", required_files)

    def _validate_content(self, content: bytes, **options) -> bool:
        """
        Validate XLSX file content.

        Args:
            content: XLSX file content as bytes
            **options: Additional validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        namelist = self._validate_basic_archive_content(content)

        # A workbook needs at least one worksheet part
        if not any(name.startswith('xl/worksheets/') for name in namelist):
            raise ValidationError(
                "XLSX workbook contains no worksheets",
                format_type=self.format_name,
                details={"available_files": namelist[:10]}
            )

        return True
