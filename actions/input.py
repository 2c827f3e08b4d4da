from __future__ import annotations

from typing import Any

from error_handler import ConfigurationError

from .base import BaseAction, ms, require


class InputAction(BaseAction):
    name = "input"
    description = "Type into or operate a form control"

    async def execute(self, page, config, context) -> dict[str, Any]:
        selector = require(config, "selector", "Input")
        value = config.get("value")
        input_type = config.get("type", "fill")
        press = config.get("press")
        if value is None and not press:
            raise ConfigurationError("Input action requires a value or press key")
        if value is None:
            input_type = "press"

        locator = page.locator(selector).first
        await locator.wait_for(state="visible", timeout=ms(config.get("timeout"), 5000))
        if config.get("clear"):
            await locator.fill("")

        if input_type == "fill":
            await locator.fill(str(value))
            result: dict[str, Any] = {"filled": True, "value": value}
        elif input_type == "type":
            await locator.press_sequentially(str(value), delay=ms(config.get("delay"), 0))
            result = {"typed": True, "value": value}
        elif input_type == "press":
            key = press or value
            await locator.press(key)
            result = {"pressed": True, "key": key}
        elif input_type == "select":
            selected = await locator.select_option(value)
            result = {"selected": selected, "values": value}
        elif input_type == "check":
            await locator.check()
            result = {"checked": True}
        elif input_type == "uncheck":
            await locator.uncheck()
            result = {"unchecked": True}
        elif input_type == "upload":
            files = value if isinstance(value, list) else [value]
            await locator.set_input_files(files)
            result = {"uploaded": True, "files": files}
        else:
            raise ConfigurationError(f"Unknown input type: {input_type}")

        context.logger.info(f"Input {input_type} on {selector}")
        return {"success": True, "selector": selector, "type": input_type, **result}
