from __future__ import annotations

from typing import Any

from error_handler import ConfigurationError, SelectorNotFoundError

from .base import BaseAction, ms


class ScrollAction(BaseAction):
    name = "scroll"
    description = "Scroll the page or an element"

    async def execute(self, page, config, context) -> dict[str, Any]:
        scroll_type = config.get("type", "page")
        selector = config.get("selector")
        step = int(config.get("step", 500))
        iterations = int(config.get("iterations", 10))
        wait_for = ms(config.get("waitFor"), 200)

        if scroll_type == "page":
            for _ in range(iterations):
                await page.evaluate("(s) => window.scrollBy(0, s)", step)
                await page.wait_for_timeout(wait_for)
            result: dict[str, Any] = {"iterations": iterations, "step": step}

        elif scroll_type == "element":
            if not selector:
                raise ConfigurationError('Scroll action with type "element" requires a selector')
            element = await page.query_selector(selector)
            if element is None:
                raise SelectorNotFoundError(selector, "Scroll target not found")
            for _ in range(iterations):
                await element.evaluate("(el, s) => el.scrollBy(0, s)", step)
                await page.wait_for_timeout(wait_for)
            result = {"selector": selector, "iterations": iterations, "step": step}

        elif scroll_type == "bottom":
            await page.evaluate(
                "() => window.scrollTo({top: document.body.scrollHeight, behavior: 'smooth'})"
            )
            result = {}

        elif scroll_type == "top":
            await page.evaluate("() => window.scrollTo({top: 0, behavior: 'smooth'})")
            result = {}

        elif scroll_type == "into-view":
            if not selector:
                raise ConfigurationError('Scroll action with type "into-view" requires a selector')
            element = await page.query_selector(selector)
            if element is None:
                raise SelectorNotFoundError(selector, "Scroll target not found")
            await element.scroll_into_view_if_needed()
            result = {"selector": selector}

        else:
            raise ConfigurationError(f"Unknown scroll type: {scroll_type}")

        context.logger.info(f"Scrolled ({scroll_type})")
        return {"success": True, "type": scroll_type, "scrolled": True, **result}
