"""Plain text and source code extraction plugin."""

from __future__ import annotations

from ..models import ExtractedContent
from .base import ExtractionPlugin


def decode_text(data: bytes) -> str:
    """Decode uploaded bytes as UTF-8, dropping a BOM and replacing bad sequences."""
    return data.decode("utf-8-sig", errors="replace")


class PlainTextPlugin(ExtractionPlugin):
    supported_kinds = ("text", "code", "unknown")

    def extract(self, file_name: str, data: bytes) -> ExtractedContent:
        return ExtractedContent.text(decode_text(data))
