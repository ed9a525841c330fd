"""Word-processor document extraction plugin."""

from __future__ import annotations

import io
import logging

from ..models import ExtractedContent
from .base import ExtractionPlugin

LOG = logging.getLogger(__name__)

PARSE_ERROR_MESSAGE = "Error parsing Word document. Please try converting to PDF."
LIBRARY_MISSING_MESSAGE = "Error: Word processor library not loaded. Please install python-docx."


class WordDocumentPlugin(ExtractionPlugin):
    supported_kinds = ("word",)

    def extract(self, file_name: str, data: bytes) -> ExtractedContent:
        try:
            from docx import Document
        except ImportError as exc:
            LOG.error("python-docx is not available: %s", exc)
            return ExtractedContent.error(LIBRARY_MISSING_MESSAGE)

        try:
            document = Document(io.BytesIO(data))
            blocks = [p.text for p in document.paragraphs]
            for table in document.tables:
                for row in table.rows:
                    blocks.append(" | ".join(cell.text.strip() for cell in row.cells))
        except Exception as exc:  # pylint: disable=broad-except
            LOG.error("Word extraction failed for %s: %s", file_name, exc)
            return ExtractedContent.error(PARSE_ERROR_MESSAGE)

        text = "\n\n".join(block for block in blocks if block.strip())
        LOG.debug("Extracted %d characters from %s", len(text), file_name)
        return ExtractedContent.text(text)
