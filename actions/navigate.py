from __future__ import annotations

from typing import Any

from .base import BaseAction, ms, require


class NavigateAction(BaseAction):
    name = "navigate"
    description = "Navigate to a URL"

    async def execute(self, page, config, context) -> dict[str, Any]:
        url = require(config, "url", "Navigate")
        wait_until = config.get("waitUntil", "load")
        timeout = ms(config.get("timeout"), 30000)

        context.logger.info(f"Navigating to: {url}")
        options: dict[str, Any] = {"wait_until": wait_until, "timeout": timeout}
        if config.get("referer"):
            options["referer"] = config["referer"]

        response = await page.goto(url, **options)
        if response is None:
            raise RuntimeError(f"Navigation failed - no response received: {url}")

        status = response.status
        success = 200 <= status < 400
        if not success:
            # Error pages stay inspectable by later steps
            context.logger.warning(f"Navigation returned non-success status {status}: {url}")

        context.logger.info(f"Navigation finished: {page.url} ({status})")
        return {
            "success": success,
            "status": status,
            "url": page.url,
            "title": await page.title(),
        }
