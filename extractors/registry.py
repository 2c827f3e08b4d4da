from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from error_handler import ConfigurationError, UnknownExtractorTypeError

if TYPE_CHECKING:
    from execution_context import ExecutionContext

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Name -> extractor map. `config['type']` (default 'text') picks the strategy."""

    def __init__(self):
        self._extractors: dict[str, Any] = {}

    def register(self, name: str, extractor: Any) -> Any:
        if not callable(getattr(extractor, "extract", None)):
            raise ConfigurationError(f"Extractor must have an extract method: {name}")
        self._extractors[name] = extractor
        return extractor

    def get(self, name: str) -> Any:
        extractor = self._extractors.get(name)
        if extractor is None:
            raise UnknownExtractorTypeError(name)
        return extractor

    def has(self, name: str) -> bool:
        return name in self._extractors

    def names(self) -> list[str]:
        return list(self._extractors)

    async def extract(self, element: Any, config: dict[str, Any],
                      context: "ExecutionContext") -> Any:
        extractor_type = config.get("type") or "text"
        extractor = self.get(extractor_type)
        options = {k: v for k, v in config.items() if k != "type"}
        try:
            return await extractor.extract(element, options, context)
        except Exception as e:
            context.logger.error(f"Extraction failed for type {extractor_type}: {e}")
            raise


def build_default_extractors(registry: Optional[ExtractorRegistry] = None) -> ExtractorRegistry:
    from .attribute import AttributeExtractor
    from .html import HtmlExtractor
    from .list_items import ListExtractor
    from .page_url import PageUrlExtractor
    from .text import TextExtractor

    registry = registry or ExtractorRegistry()
    registry.register("text", TextExtractor())
    registry.register("attribute", AttributeExtractor())
    registry.register("html", HtmlExtractor())
    registry.register("list", ListExtractor(registry))
    registry.register("pageUrl", PageUrlExtractor())
    return registry
