from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from error_handler import ConfigurationError, SelectorNotFoundError

from .base import BaseAction, ms, require

SET_STORAGE_JS = "([area, key, value]) => window[area].setItem(key, value)"


async def export_cookies(page: Any) -> list[dict[str, Any]]:
    """All cookies of the page's browser context, e.g. to persist a login."""
    return await page.context.cookies()


def _hostname(page: Any) -> str:
    return urlparse(page.url).hostname or ""


class LoginAction(BaseAction):
    name = "login"
    description = "Authenticate with a form, a token or a cookie jar"

    async def execute(self, page, config, context) -> dict[str, Any]:
        login_type = config.get("type", "form")
        credentials = config.get("credentials") or {}
        context.logger.info(f"Executing login action: {login_type}")

        if login_type == "form":
            result = await self._login_with_form(page, credentials, config)
        elif login_type == "token":
            result = await self._login_with_token(page, credentials, config)
        elif login_type == "cookie":
            result = await self._login_with_cookies(page, credentials, config)
        else:
            raise ConfigurationError(f"Unknown login type: {login_type}")

        wait_after = ms(config.get("waitAfterLogin"), 2000)
        if wait_after > 0:
            await page.wait_for_timeout(wait_after)

        success_selector = config.get("successSelector")
        if success_selector and await page.query_selector(success_selector) is None:
            raise SelectorNotFoundError(success_selector, "Login failed: success selector not found")

        context.logger.info("Login successful")
        return result

    async def _login_with_form(self, page, credentials, config) -> dict[str, Any]:
        selectors = require(config, "selectors", "Login")
        username_selector = require(selectors, "username", "Login form")
        password_selector = require(selectors, "password", "Login form")

        await page.wait_for_selector(username_selector, timeout=ms(selectors.get("timeout"), 5000))
        await page.locator(username_selector).first.fill(str(credentials.get("username", "")))
        await page.locator(password_selector).first.fill(str(credentials.get("password", "")))

        if selectors.get("submit"):
            await page.locator(selectors["submit"]).first.click()
        else:
            await page.locator(password_selector).first.press("Enter")

        if config.get("waitForNavigation", True) is not False:
            await page.wait_for_load_state(
                "networkidle", timeout=ms(config.get("navigationTimeout"), 10000)
            )
        return {"success": True, "method": "form"}

    async def _login_with_token(self, page, credentials, config) -> dict[str, Any]:
        token = require(credentials, "token", "Login token")
        token_type = credentials.get("type", "Bearer")
        storage_type = config.get("storageType", "localStorage")
        storage_key = config.get("storageKey", "authToken")
        value = f"Bearer {token}" if token_type == "Bearer" else str(token)

        if storage_type in ("localStorage", "sessionStorage"):
            await page.evaluate(SET_STORAGE_JS, [storage_type, storage_key, value])
        elif storage_type == "cookie":
            await page.context.add_cookies([{
                "name": storage_key,
                "value": value,
                "domain": _hostname(page),
                "path": "/",
                "httpOnly": bool(config.get("httpOnly", False)),
                "secure": bool(config.get("secure", False)),
            }])
        else:
            raise ConfigurationError(f"Unknown token storage type: {storage_type}")
        return {"success": True, "method": "token", "type": token_type}

    async def _login_with_cookies(self, page, credentials, config) -> dict[str, Any]:
        cookies = credentials.get("cookies")
        if not isinstance(cookies, list) or not cookies:
            raise ConfigurationError("No cookies provided")

        hostname = _hostname(page)
        await page.context.add_cookies([
            {
                "name": cookie["name"],
                "value": cookie["value"],
                "domain": cookie.get("domain") or hostname,
                "path": cookie.get("path", "/"),
                "httpOnly": cookie.get("httpOnly", False),
                "secure": cookie.get("secure", False),
                "sameSite": cookie.get("sameSite", "Lax"),
                "expires": cookie.get("expires", -1),
            }
            for cookie in cookies
        ])
        if config.get("reloadAfterCookies", True) is not False:
            await page.reload(wait_until="networkidle")
        return {"success": True, "method": "cookie", "count": len(cookies)}
