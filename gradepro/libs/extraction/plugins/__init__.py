"""Plugin registry for content extraction."""

from __future__ import annotations

from typing import List, Optional

from ..models import file_suffix
from .base import ExtractionPlugin
from .pdf import PdfFilePlugin
from .text import PlainTextPlugin
from .word import WordDocumentPlugin

PDF_EXTENSIONS = {".pdf"}
PDF_CONTENT_TYPES = {"application/pdf"}
WORD_EXTENSIONS = {".docx"}
TEXT_EXTENSIONS = {".txt", ".text", ".log", ".md", ".markdown", ".csv", ".tsv", ".json", ".yml", ".yaml"}
CODE_EXTENSIONS = {
    ".py",
    ".java",
    ".cpp",
    ".c",
    ".h",
    ".hpp",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".sql",
    ".sh",
    ".ps1",
    ".go",
    ".jl",
    ".rb",
    ".scala",
    ".pl",
    ".swift",
    ".kt",
    ".m",
    ".r",
    ".rmd",
    ".qmd",
    ".ipynb",
    ".html",
    ".css",
}


def default_plugins() -> List[ExtractionPlugin]:
    return [
        WordDocumentPlugin(),
        PdfFilePlugin(),
        PlainTextPlugin(),
    ]


def infer_kind(file_name: str, content_type: Optional[str] = None) -> str:
    """Classify an upload by extension first, then by declared content type."""
    suffix = file_suffix(file_name)
    if suffix in WORD_EXTENSIONS:
        return "word"
    if suffix in PDF_EXTENSIONS or (content_type or "").lower() in PDF_CONTENT_TYPES:
        return "pdf"
    if suffix in CODE_EXTENSIONS:
        return "code"
    if suffix in TEXT_EXTENSIONS or (content_type or "").startswith("text/"):
        return "text"
    return "unknown"
