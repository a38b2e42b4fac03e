"""
Unit tests for batch conversion and result archiving.
"""

import zipfile
from io import BytesIO

from converter.models import BatchConversionRequest, ConversionOptions, ConversionResponse
from converter.utils.archive_packer import pack, packable, unique_name
from converter.utils.batch_runner import run_batch
from converter.utils.error_handling import ErrorCode


class TestRunBatch:
    """Test cases for run_batch()."""

    def test_empty_batch(self):
        """Test a batch without files yields one failure."""
        results = run_batch(BatchConversionRequest(conversion_type="img-to-pdf", files=[]))
        assert len(results) == 1
        assert results[0].success is False
        assert results[0].message == "No files provided for batch conversion"
        assert results[0].error_code == ErrorCode.MISSING_PARAMETER

    def test_one_failure_does_not_affect_siblings(self, samples):
        """Test a corrupt file in the middle of a batch."""
        files = [
            samples.upload(samples.image_bytes(), "a.png", "image/png"),
            samples.upload(b"corrupt bytes", "b.png", "image/png"),
            samples.upload(samples.image_bytes(image_format="JPEG"), "c.jpg", "image/jpeg"),
        ]
        results = run_batch(BatchConversionRequest(conversion_type="img-to-jpeg", files=files))

        assert [result.success for result in results] == [True, False, True]
        assert [results[0].file_name, results[2].file_name] == ["a.jpeg", "c.jpeg"]
        assert results[1].data is None

    def test_malformed_archive_does_not_abort_batch(self, samples):
        """Test a zip with an undecodable member name fails alone."""
        files = [
            samples.upload(samples.docx_bytes(), "first.docx"),
            samples.upload(samples.docx_with_undecodable_name(), "broken.docx"),
            samples.upload(samples.docx_bytes(["Second"]), "second.docx"),
        ]
        results = run_batch(BatchConversionRequest(conversion_type="word-to-pdf", files=files))

        assert [result.success for result in results] == [True, False, True]
        assert results[1].message == "File is not a valid DOCX file"
        assert [results[0].file_name, results[2].file_name] == ["first.pdf", "second.pdf"]

    def test_options_apply_to_every_file(self, samples):
        """Test the shared options reach each conversion."""
        files = [
            samples.upload(samples.image_bytes(size=(10, 10)), "one.png"),
            samples.upload(samples.image_bytes(size=(20, 10)), "two.png"),
        ]
        request = BatchConversionRequest(
            conversion_type="img-to-pdf",
            files=files,
            options=ConversionOptions(width=100, height=100),
        )
        results = run_batch(request)
        assert all(result.success for result in results)
        assert [result.file_name for result in results] == ["one.pdf", "two.pdf"]


class TestArchivePacker:
    """Test cases for the zip packer."""

    def test_unique_name_suffixes(self):
        """Test colliding names get _1, _2 before the extension."""
        used = set()
        assert unique_name("photo.pdf", used) == "photo.pdf"
        assert unique_name("photo.pdf", used) == "photo_1.pdf"
        assert unique_name("photo.pdf", used) == "photo_2.pdf"
        assert unique_name("README", used) == "README"
        assert unique_name("README", used) == "README_1"

    def test_packable_skips_failures(self):
        """Test failures and empty outputs are left out."""
        responses = [
            ConversionResponse.ok(b"data", "a.pdf", "application/pdf"),
            ConversionResponse.failure("nope"),
            ConversionResponse.ok(b"", "empty.pdf", "application/pdf"),
        ]
        assert [response.file_name for response in packable(responses)] == ["a.pdf"]

    def test_pack_writes_deflated_entries(self):
        """Test the archive holds each output under a unique name."""
        responses = [
            ConversionResponse.ok(b"first", "scan.pdf", "application/pdf"),
            ConversionResponse.failure("broken"),
            ConversionResponse.ok(b"second", "scan.pdf", "application/pdf"),
        ]
        with zipfile.ZipFile(BytesIO(pack(responses))) as archive:
            assert archive.namelist() == ["scan.pdf", "scan_1.pdf"]
            assert archive.read("scan_1.pdf") == b"second"
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in archive.infolist())

    def test_pack_with_no_successes(self):
        """Test an all-failed batch still gives a valid empty archive."""
        with zipfile.ZipFile(BytesIO(pack([ConversionResponse.failure("x")]))) as archive:
            assert archive.namelist() == []
