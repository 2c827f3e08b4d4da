"""
HTTP request action.

Requests go through the page's browser request context (sharing its cookies)
when one is available. Otherwise, or with `useBrowserContext: false`, they are
sent with curl_cffi impersonating Chrome.
"""

from __future__ import annotations

import json
from typing import Any

from curl_cffi.requests import AsyncSession
from curl_cffi.requests import exceptions as requests_exceptions

from error_handler import ConfigurationError, NetworkError

from .base import BaseAction, ms, require

BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
IMPERSONATE = "chrome120"


def _parse_body(raw: str, response_type: str) -> Any:
    if response_type == "json":
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


class ApiAction(BaseAction):
    name = "api"
    description = "Issue an HTTP request"

    async def execute(self, page, config, context) -> dict[str, Any]:
        url = require(config, "url", "API")
        method = str(config.get("method", "GET")).upper()
        headers = dict(config.get("headers") or {})
        body = config.get("body")
        response_type = config.get("responseType", "json")
        timeout = ms(config.get("timeout"), 30000)
        if response_type not in ("json", "text"):
            raise ConfigurationError(f"Unsupported responseType: {response_type}")

        data = None
        if body is not None and method in BODY_METHODS:
            if isinstance(body, str):
                data = body
            else:
                data = json.dumps(body)
                headers.setdefault("Content-Type", "application/json")

        context.logger.info(f"API {method} {url}")
        request_context = getattr(page, "request", None) if page is not None else None
        if request_context is not None and config.get("useBrowserContext", True):
            result = await self._browser_fetch(request_context, method, url, headers, data,
                                               timeout, response_type)
        else:
            result = await self._direct_fetch(method, url, headers, data, timeout, response_type)

        if result["ok"]:
            context.logger.info(f"API response: {result['status']} {result['statusText']}")
        else:
            context.logger.warning(f"API response: {result['status']} {result['statusText']}")
        return result

    async def _browser_fetch(self, request_context, method, url, headers, data, timeout,
                             response_type) -> dict[str, Any]:
        response = await request_context.fetch(
            url, method=method, headers=headers, data=data, timeout=timeout
        )
        raw = await response.text()
        return {
            "status": response.status,
            "statusText": response.status_text,
            "ok": response.ok,
            "headers": dict(response.headers),
            "body": _parse_body(raw, response_type),
        }

    async def _direct_fetch(self, method, url, headers, data, timeout,
                            response_type) -> dict[str, Any]:
        try:
            async with AsyncSession() as session:
                response = await session.request(
                    method, url, headers=headers, data=data,
                    timeout=timeout / 1000, impersonate=IMPERSONATE,
                )
        except requests_exceptions.RequestException as e:
            raise NetworkError(f"API request failed: {e}", code=type(e).__name__) from e

        return {
            "status": response.status_code,
            "statusText": response.reason or "",
            "ok": 200 <= response.status_code < 300,
            "headers": dict(response.headers),
            "body": _parse_body(response.text, response_type),
        }
