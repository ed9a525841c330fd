"""Content extraction package."""

from .extractor import ContentExtractor
from .models import ContentKind, ExtractedContent

__all__ = [
    "ContentExtractor",
    "ContentKind",
    "ExtractedContent",
]
