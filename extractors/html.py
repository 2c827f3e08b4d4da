from __future__ import annotations

from typing import Any

from .base import BaseExtractor, find_target, preview


class HtmlExtractor(BaseExtractor):
    """
    innerHTML or outerHTML of the target.

    The registry consumes `type` to pick this extractor, so inside a workflow
    the inner/outer choice is given as `mode`. A direct call may still pass
    `type: 'outer'`.
    """

    name = "html"

    async def extract(self, element, config, context) -> Any:
        mode = config.get("mode") or config.get("type") or "inner"
        target = await find_target(element, config.get("selector"), context)
        if target is None:
            return None

        if mode == "outer":
            html = await target.evaluate("el => el.outerHTML")
        else:
            html = await target.evaluate("el => el.innerHTML")

        context.logger.debug(f"Extracted {mode}HTML: {preview(html, 100)}")
        return html or ""
