"""PDF extraction plugin.

PDFs are not converted to text; the grading backend receives the document
itself, so the bytes are carried through as a base64 payload.
"""

from __future__ import annotations

import base64

from ..models import ContentKind, ExtractedContent
from .base import ExtractionPlugin


class PdfFilePlugin(ExtractionPlugin):
    supported_kinds = ("pdf",)

    def extract(self, file_name: str, data: bytes) -> ExtractedContent:
        payload = base64.b64encode(data).decode("ascii")
        return ExtractedContent(content=payload, kind=ContentKind.PDF_BINARY)
