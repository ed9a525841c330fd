"""Tests for content extraction plugins."""

import base64
import io
import sys
from unittest.mock import patch

import pytest
from docx import Document

from gradepro.libs.extraction import ContentExtractor, ContentKind, ExtractedContent
from gradepro.libs.extraction.plugins import infer_kind
from gradepro.libs.extraction.plugins.base import ExtractionPlugin
from gradepro.libs.extraction.plugins.word import LIBRARY_MISSING_MESSAGE, PARSE_ERROR_MESSAGE


@pytest.fixture
def extractor():
    return ContentExtractor()


def make_docx(paragraphs, table_rows=None) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.mark.parametrize("file_name,content_type,expected", [
    ("essay.docx", None, "word"),
    ("Essay.DOCX", None, "word"),
    ("report.pdf", None, "pdf"),
    ("scan", "application/pdf", "pdf"),
    ("main.py", None, "code"),
    ("notes.md", None, "text"),
    ("README", "text/plain", "text"),
    ("data.bin", "application/octet-stream", "unknown"),
])
def test_infer_kind(file_name, content_type, expected):
    assert infer_kind(file_name, content_type) == expected


def test_plain_text_is_passed_through(extractor):
    result = extractor.extract("answer.txt", "text/plain", "Hello, 世界\nline two".encode("utf-8"))

    assert result == ExtractedContent("Hello, 世界\nline two", ContentKind.PLAIN_TEXT)


def test_source_code_is_plain_text(extractor):
    code = b"def add(a, b):\n    return a + b\n"
    result = extractor.extract("solution.py", "text/x-python", code)

    assert result.kind == ContentKind.PLAIN_TEXT
    assert result.content == code.decode()


def test_utf8_bom_is_dropped(extractor):
    result = extractor.extract("answer.txt", None, b"\xef\xbb\xbfHello")
    assert result.content == "Hello"


def test_unknown_extension_falls_back_to_text(extractor):
    result = extractor.extract("submission.xyz", None, b"some answer")

    assert result.kind == ContentKind.PLAIN_TEXT
    assert result.content == "some answer"


def test_pdf_is_base64_payload(extractor):
    data = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n%%EOF"
    result = extractor.extract("report.pdf", "application/pdf", data)

    assert result.kind == ContentKind.PDF_BINARY
    assert base64.b64decode(result.content) == data


def test_docx_text_is_extracted(extractor):
    data = make_docx(
        ["Introduction", "", "The Industrial Revolution reshaped cities."],
        table_rows=[["Year", "Population"], ["1850", "2.6M"]],
    )
    result = extractor.extract("essay.docx", None, data)

    assert result.kind == ContentKind.PLAIN_TEXT
    assert result.content == (
        "Introduction\n\n"
        "The Industrial Revolution reshaped cities.\n\n"
        "Year | Population\n\n"
        "1850 | 2.6M"
    )


def test_corrupt_docx_is_extraction_error(extractor):
    result = extractor.extract("essay.docx", None, b"definitely not a zip archive")

    assert result.failed
    assert result.kind == ContentKind.EXTRACTION_ERROR
    assert result.content == PARSE_ERROR_MESSAGE


def test_missing_word_library_is_extraction_error(extractor):
    data = make_docx(["Introduction"])
    with patch.dict(sys.modules, {"docx": None}):
        result = extractor.extract("essay.docx", None, data)

    assert result.failed
    assert result.content == LIBRARY_MISSING_MESSAGE


def test_plugin_exception_becomes_extraction_error():
    class ExplodingPlugin(ExtractionPlugin):
        supported_kinds = ("text", "unknown")

        def extract(self, file_name, data):
            raise RuntimeError("disk on fire")

    result = ContentExtractor(plugins=[ExplodingPlugin()]).extract("a.txt", None, b"x")

    assert result.failed
    assert "a.txt" in result.content
    assert "disk on fire" in result.content


def test_no_matching_plugin_is_extraction_error():
    result = ContentExtractor(plugins=[]).extract("a.txt", None, b"x")
    assert result.failed
