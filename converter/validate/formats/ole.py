"""
Legacy Office (OLE2 compound file) validation for .doc and .xls uploads.
"""

import logging

from ..base_validator import SignatureBasedValidator

logger = logging.getLogger(__name__)

# D0 CF 11 E0 A1 B1 1A E1
OLE_SIGNATURE = bytes.fromhex('d0cf11e0a1b11ae1')


class OLEValidator(SignatureBasedValidator):
    """Validator for binary Word and Excel files."""

    def __init__(self, format_name: str):
        super().__init__(format_name, [OLE_SIGNATURE])
