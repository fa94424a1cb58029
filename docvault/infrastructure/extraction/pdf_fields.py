"""Best-effort AcroForm field extraction with pypdf."""

import asyncio
import io
import logging
from typing import Any, List

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from docvault.domain.models.document import FormField

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_as_text(v) for v in value]
    return str(value)


def extract_form_fields(content: bytes) -> List[FormField]:
    """Return the document's form fields; an unreadable or field-less PDF yields []."""
    try:
        reader = PdfReader(io.BytesIO(content))
        raw = reader.get_fields() or {}
    except (PyPdfError, ValueError, KeyError, TypeError) as e:
        logger.warning("pdf_field_extraction_failed", extra={"error": str(e)})
        return []
    return [
        FormField(name=name, value=_as_text(field.get("/V")))
        for name, field in raw.items()
    ]


class PdfFieldExtractor:
    """Runs the blocking pypdf parse in a worker thread."""

    async def extract(self, content: bytes) -> List[FormField]:
        return await asyncio.to_thread(extract_form_fields, content)
