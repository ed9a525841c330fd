"""Data models for content extraction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ContentKind(str, Enum):
    PLAIN_TEXT = "plain-text"
    PDF_BINARY = "pdf-binary"
    EXTRACTION_ERROR = "extraction-error"


@dataclass(frozen=True)
class ExtractedContent:
    """Normalized `(content, kind)` pair produced for one uploaded file.

    For ``EXTRACTION_ERROR`` the content is the human-readable failure message.
    """

    content: str
    kind: ContentKind

    @property
    def failed(self) -> bool:
        return self.kind == ContentKind.EXTRACTION_ERROR

    @classmethod
    def text(cls, content: str) -> "ExtractedContent":
        return cls(content=content, kind=ContentKind.PLAIN_TEXT)

    @classmethod
    def error(cls, message: str) -> "ExtractedContent":
        return cls(content=message, kind=ContentKind.EXTRACTION_ERROR)


def file_suffix(file_name: str) -> Optional[str]:
    """Lower-cased extension including the dot, or None."""
    if "." not in file_name:
        return None
    return "." + file_name.rsplit(".", 1)[1].lower()
