from __future__ import annotations

from typing import TYPE_CHECKING, Any

from error_handler import ConfigurationError

from .base import BaseExtractor

if TYPE_CHECKING:
    from .registry import ExtractorRegistry


class ListExtractor(BaseExtractor):
    """
    One object per element matching `selector`, with every entry of `fields`
    extracted relative to that element.

    A failing field is stored as None for that item only; the item and the
    rest of the list are kept.
    """

    name = "list"

    def __init__(self, registry: "ExtractorRegistry"):
        self.registry = registry

    async def extract(self, element, config, context) -> list[dict[str, Any]]:
        selector = config.get("selector")
        fields = config.get("fields") or []
        limit = config.get("limit")
        if not selector:
            raise ConfigurationError("Selector is required for list extraction")
        if not fields:
            raise ConfigurationError("Fields array is required for list extraction")

        elements = await element.query_selector_all(selector)
        if not elements:
            context.logger.warning(f"No elements found for selector: {selector}")
            return []

        if limit:
            elements = elements[: int(limit)]
        context.logger.debug(f"Processing {len(elements)} elements for {selector}")

        results = []
        for index, el in enumerate(elements):
            item: dict[str, Any] = {}
            for field in fields:
                name = field.get("name")
                if not name:
                    context.logger.warning(f"Field without name at index {index}, skipping")
                    continue
                try:
                    item[name] = await self.registry.extract(el, field, context)
                except Exception as e:
                    context.logger.error(f"Failed to extract field '{name}' at index {index}: {e}")
                    item[name] = None
            results.append(item)

        context.logger.info(f"Extracted {len(results)} items from list")
        return results
