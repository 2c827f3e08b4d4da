from __future__ import annotations

from typing import Any

from .base import BaseExtractor, find_target, preview


class TextExtractor(BaseExtractor):
    """innerText (default) or textContent of the target, trimmed unless trim is false."""

    name = "text"

    async def extract(self, element, config, context) -> Any:
        method = config.get("method", "innerText")
        target = await find_target(element, config.get("selector"), context)
        if target is None:
            return None

        try:
            if method == "textContent":
                text = await target.text_content()
            else:
                text = await target.inner_text()
        except Exception as e:
            context.logger.error(f"Text extraction failed: {e}")
            raise

        if text and config.get("trim", True) is not False:
            text = text.strip()
        context.logger.debug(f"Extracted text: {preview(text)}")
        return text or ""
