from __future__ import annotations

from typing import Any

from error_handler import ConfigurationError

from .base import BaseAction, ms


class WaitAction(BaseAction):
    name = "wait"
    description = "Wait for a delay, a selector, a load state, a predicate or a URL"

    async def execute(self, page, config, context) -> dict[str, Any]:
        wait_type = config.get("type", "timeout")
        value = config.get("value")
        timeout = ms(config.get("timeout"), 30000)
        log = context.logger

        if wait_type in ("timeout", "delay"):
            raw = value if value is not None else config.get("duration")
            duration = ms(raw, 1000)
            await page.wait_for_timeout(duration)
            log.info(f"Waited {duration}ms")
            result: dict[str, Any] = {"waited": duration}

        elif wait_type == "selector":
            selector = config.get("selector") or value
            if not selector:
                raise ConfigurationError('Wait action with type "selector" requires a selector')
            state = config.get("state", "visible")
            await page.wait_for_selector(selector, state=state, timeout=timeout)
            log.info(f"Waited for selector {selector} ({state})")
            result = {"selector": selector, "state": state}

        elif wait_type == "navigation":
            wait_until = value or "load"
            await page.wait_for_load_state(wait_until, timeout=timeout)
            log.info(f"Waited for load state {wait_until}")
            result = {"waitUntil": wait_until}

        elif wait_type == "networkidle":
            await page.wait_for_load_state("networkidle", timeout=timeout)
            log.info("Waited for network idle")
            result = {"networkidle": True}

        elif wait_type == "function":
            if not value:
                raise ConfigurationError('Wait action with type "function" requires a value')
            await page.wait_for_function(value, timeout=timeout)
            log.info("Waited for function")
            result = {"function": True}

        elif wait_type == "url":
            if not value:
                raise ConfigurationError('Wait action with type "url" requires a value')
            await page.wait_for_url(value, timeout=timeout)
            log.info(f"Waited for URL {value}")
            result = {"url": value}

        else:
            raise ConfigurationError(f"Unknown wait type: {wait_type}")

        return {"success": True, "type": wait_type, **result}
