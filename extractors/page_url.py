from __future__ import annotations

from typing import Any

from .base import BaseExtractor, is_page


class PageUrlExtractor(BaseExtractor):
    """Current page URL; useful inside loops to record which page was scraped."""

    name = "pageUrl"

    async def extract(self, element, config, context) -> Any:
        if is_page(element):
            return element.url

        owner_frame = getattr(element, "owner_frame", None)
        if owner_frame is not None:
            frame = await owner_frame()
            if frame is not None:
                return frame.url

        if context.page is not None and is_page(context.page):
            return context.page.url

        context.logger.warning("pageUrl extractor: could not determine page URL")
        return None
