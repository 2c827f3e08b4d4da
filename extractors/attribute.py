from __future__ import annotations

from typing import Any

from error_handler import ConfigurationError

from .base import BaseExtractor, find_target, preview


class AttributeExtractor(BaseExtractor):
    name = "attribute"

    async def extract(self, element, config, context) -> Any:
        attribute = config.get("attribute")
        default = config.get("default")
        if not attribute:
            raise ConfigurationError("Attribute name is required for attribute extraction")

        target = await find_target(element, config.get("selector"), context)
        if target is None:
            return default

        value = await target.get_attribute(attribute)
        if value is None:
            context.logger.debug(f"Attribute '{attribute}' not found, using default: {default}")
            return default

        context.logger.debug(f"Extracted attribute '{attribute}': {preview(value)}")
        return value
