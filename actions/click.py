from __future__ import annotations

from typing import Any

from .base import BaseAction, ms, require


class ClickAction(BaseAction):
    name = "click"
    description = "Click on an element"

    async def execute(self, page, config, context) -> dict[str, Any]:
        selector = require(config, "selector", "Click")
        timeout = ms(config.get("timeout"), 5000)

        options: dict[str, Any] = {
            "button": config.get("button", "left"),
            "click_count": int(config.get("clickCount", 1)),
            "delay": ms(config.get("delay"), 0),
            "force": bool(config.get("force", False)),
        }
        if config.get("position"):
            options["position"] = config["position"]
        if config.get("modifiers"):
            options["modifiers"] = config["modifiers"]

        try:
            locator = page.locator(selector).first
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.click(**options)
        except Exception as e:
            if config.get("optional"):
                context.logger.warning(f"Optional click failed on {selector}: {e}")
                return {"success": False, "selector": selector, "clicked": False, "optional": True}
            raise

        context.logger.info(f"Clicked: {selector}")
        return {"success": True, "selector": selector, "clicked": True}
