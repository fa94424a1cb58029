"""Document input rules: filename, content type, size, sender email, id format."""

from datetime import datetime, timezone

import pytest

from docvault.domain.exceptions import DomainValidationError, PayloadTooLargeError
from docvault.domain.models.document import DocumentMetadata, ViewerAck
from docvault.domain.validators.document_validator import (
    normalize_email,
    validate_content_type,
    validate_document_id,
    validate_filename,
    validate_upload,
)


@pytest.mark.parametrize("name", ["a.pdf", "Report 2024.PDF", "  spaced.pdf  "])
def test_valid_filenames(name):
    assert validate_filename(name) == name.strip()


@pytest.mark.parametrize(
    "name",
    [None, "", "   ", "a.txt", "dir/a.pdf", "..\\a.pdf", 'q"uote.pdf', "nl\n.pdf", "x" * 252 + ".pdf"],
)
def test_invalid_filenames(name):
    with pytest.raises(DomainValidationError):
        validate_filename(name)


@pytest.mark.parametrize("content_type", ["application/pdf", "APPLICATION/PDF", "application/pdf; charset=binary"])
def test_pdf_content_types_accepted(content_type):
    validate_content_type(content_type)


@pytest.mark.parametrize("content_type", [None, "", "text/plain", "application/octet-stream"])
def test_other_content_types_rejected(content_type):
    with pytest.raises(DomainValidationError):
        validate_content_type(content_type)


def test_size_bounds():
    assert validate_upload("a.pdf", "application/pdf", 10, 10) == "a.pdf"
    with pytest.raises(DomainValidationError):
        validate_upload("a.pdf", "application/pdf", 0, 10)
    with pytest.raises(PayloadTooLargeError):
        validate_upload("a.pdf", "application/pdf", 11, 10)


def test_normalize_email():
    assert normalize_email("  X@Y.Com ") == "x@y.com"
    assert normalize_email(None) is None
    assert normalize_email("  ") is None
    with pytest.raises(DomainValidationError) as exc_info:
        normalize_email("x@y", "sender")
    assert "sender" in exc_info.value.message


def test_document_id_format():
    assert validate_document_id("0123456789abcdef0123456789abcdef")
    for bad in ["", "0123", "0123456789ABCDEF0123456789ABCDEF", "../" + "a" * 29]:
        with pytest.raises(DomainValidationError):
            validate_document_id(bad)


def test_ack_lookup_is_case_insensitive():
    meta = DocumentMetadata(
        document_id="a" * 32,
        filename="a.pdf",
        upload_date=None,
        viewer_acks=[ViewerAck("Admin@Z.com", datetime.now(timezone.utc))],
    )
    assert meta.ack_for(" admin@z.COM ") is not None
    assert meta.ack_for("other@z.com") is None
