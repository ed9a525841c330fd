"""Content extractor that dispatches uploads to format plugins."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .models import ExtractedContent
from .plugins import default_plugins, infer_kind
from .plugins.base import ExtractionPlugin

LOG = logging.getLogger(__name__)


class ContentExtractor:
    """Turn raw uploads into normalized content. Never raises to the caller."""

    def __init__(self, plugins: Optional[Sequence[ExtractionPlugin]] = None) -> None:
        self.plugins: List[ExtractionPlugin] = default_plugins() if plugins is None else list(plugins)

    def plugin_for(self, kind: str) -> Optional[ExtractionPlugin]:
        for plugin in self.plugins:
            if plugin.matches(kind):
                return plugin
        return None

    def extract(self, file_name: str, content_type: Optional[str], data: bytes) -> ExtractedContent:
        kind = infer_kind(file_name, content_type)
        plugin = self.plugin_for(kind) or self.plugin_for("unknown")
        if plugin is None:
            return ExtractedContent.error(f"No extractor available for {file_name}")

        LOG.debug("Extracting %s as %s with %s", file_name, kind, type(plugin).__name__)
        try:
            return plugin.extract(file_name, data)
        except Exception as exc:  # pylint: disable=broad-except
            LOG.error("Extraction failed for %s: %s", file_name, exc)
            return ExtractedContent.error(f"Could not read {file_name}: {exc}")
