from __future__ import annotations

from typing import TYPE_CHECKING, Any

from error_handler import ConfigurationError, SelectorNotFoundError

from .base import BaseAction

if TYPE_CHECKING:
    from extractors import ExtractorRegistry


class ExtractAction(BaseAction):
    """
    Extract named fields from the page.

    Single mode reads every field relative to `container` (or `selector`, or
    the page) and isolates per-field failures to None. `multiple: true`
    extracts one object per element matching `container`.
    """

    name = "extract"
    description = "Extract structured data"

    def __init__(self, extractors: "ExtractorRegistry"):
        self.extractors = extractors

    async def execute(self, page, config, context) -> Any:
        fields = config.get("fields") or []
        scope_selector = config.get("container") or config.get("selector")
        if not fields:
            raise ConfigurationError("At least one field must be configured for extraction")

        if config.get("multiple"):
            if not scope_selector:
                raise ConfigurationError("Container selector is required for multiple extraction")
            return await self.extractors.extract(page, {
                "type": "list",
                "selector": scope_selector,
                "fields": fields,
                "limit": config.get("limit"),
            }, context)

        element = page
        if scope_selector:
            element = await page.query_selector(scope_selector)
            if element is None:
                raise SelectorNotFoundError(scope_selector, "Container not found")

        result: dict[str, Any] = {}
        for field in fields:
            name = field.get("name")
            if not name:
                context.logger.warning("Field without name, skipping")
                continue
            try:
                result[name] = await self.extractors.extract(element, field, context)
            except Exception as e:
                context.logger.error(f"Failed to extract field '{name}': {e}")
                result[name] = None
        return result
