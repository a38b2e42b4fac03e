"""
Unit tests for the error envelope.
"""

import json

from converter.utils.error_handling import (
    GENERIC_CONVERSION_MESSAGE,
    ErrorCode,
    create_error_response,
    status_for,
)


class TestErrorResponses:
    """Test cases for create_error_response()."""

    def test_envelope_fields(self):
        """Test the standard fields of an error response."""
        response = create_error_response(ErrorCode.INVALID_FILE, message="File is not a valid image")
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body["success"] is False
        assert body["message"] == "File is not a valid image"
        assert body["error"] == "INVALID_FILE"
        assert body["severity"] == "low"
        assert body["timestamp"].endswith("Z")

    def test_default_message_is_generic(self):
        """Test a missing message falls back to the generic one."""
        body = json.loads(create_error_response(ErrorCode.INTERNAL_ERROR).body)
        assert body["message"] == GENERIC_CONVERSION_MESSAGE
        assert body["severity"] == "critical"

    def test_details_are_truncated(self):
        """Test long details are cut to 1000 characters."""
        body = json.loads(create_error_response(ErrorCode.CONVERSION_FAILED, details="x" * 5000).body)
        assert len(body["details"]) == 1000

    def test_status_mapping(self):
        """Test HTTP statuses per error code."""
        assert status_for(ErrorCode.FILE_TOO_LARGE) == 413
        assert status_for(ErrorCode.INTERNAL_ERROR) == 500
        assert status_for(ErrorCode.CONVERSION_FAILED) == 400
        assert status_for("SOMETHING_ELSE") == 500
