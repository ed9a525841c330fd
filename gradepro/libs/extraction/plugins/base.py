"""Plugin base class for content extraction."""

from __future__ import annotations

from ..models import ExtractedContent


class ExtractionPlugin:
    """Extension point for per-format extraction strategies."""

    supported_kinds: tuple[str, ...] = ()

    def matches(self, kind: str) -> bool:
        return kind in self.supported_kinds

    def extract(self, file_name: str, data: bytes) -> ExtractedContent:
        raise NotImplementedError
