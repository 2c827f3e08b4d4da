"""
Browser lifecycle for workflow runs.

Launches a Playwright browser and one context with the anti-detection
settings from scraper_defaults, and hands out pages from a small reuse pool.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

import scraper_defaults
from error_handler import ConfigurationError
from workflow_models import BrowserConfig, ResourceBlockingConfig

logger = logging.getLogger(__name__)

BROWSER_TYPES = ("chromium", "firefox", "webkit")


class BrowserSession:
    """Owns the Playwright browser, its context and the page pool."""

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page_pool: list[Page] = []
        self.active_pages = 0
        self._prepared_pages: set[int] = set()

    @property
    def is_ready(self) -> bool:
        return self.browser is not None and self.context is not None

    async def launch(self) -> None:
        if self.is_ready:
            logger.warning("Browser already launched")
            return

        cfg = self.config
        if cfg.browser_type not in BROWSER_TYPES:
            raise ConfigurationError(f"Unsupported browser type: {cfg.browser_type}")

        logger.info(f"Launching {cfg.browser_type} (headless={cfg.headless})")
        self.playwright = await async_playwright().start()
        try:
            launcher = getattr(self.playwright, cfg.browser_type)
            self.browser = await launcher.launch(
                headless=cfg.headless,
                slow_mo=cfg.slow_mo,
                timeout=cfg.timeout,
                args=cfg.args if cfg.browser_type == "chromium" else [],
            )
            self.context = await self.browser.new_context(
                viewport=cfg.viewport,
                user_agent=cfg.user_agent,
                locale=cfg.locale,
                timezone_id=cfg.timezone_id,
                ignore_https_errors=cfg.ignore_https_errors,
            )
            self.context.set_default_timeout(cfg.timeout)
            await self.context.add_init_script(scraper_defaults.ANTI_DETECT_SCRIPT)
        except Exception:
            await self.close()
            raise
        logger.info("Browser launched")

    async def new_page(self, reuse: bool = True) -> Page:
        if self.context is None:
            raise RuntimeError("Browser context not initialized. Call launch() first.")

        if reuse and self.page_pool:
            page = self.page_pool.pop()
            logger.debug(f"Reusing page from pool ({len(self.page_pool)} left)")
        else:
            page = await self.context.new_page()
            logger.debug(f"Created new page ({self.active_pages + 1} active)")
        self.active_pages += 1

        if id(page) not in self._prepared_pages:
            if self.config.resource_blocking.enabled:
                await self._setup_resource_blocking(page, self.config.resource_blocking)
            self._setup_page_handlers(page)
            self._prepared_pages.add(id(page))
        return page

    async def _setup_resource_blocking(self, page: Page, blocking: ResourceBlockingConfig) -> None:
        blocked_types = set(blocking.types)
        blocked_domains = list(blocking.domains)
        logger.debug(f"Blocking resource types {sorted(blocked_types)} and domains {blocked_domains}")

        async def handle(route: Route) -> None:
            request = route.request
            if request.resource_type in blocked_types or any(
                domain in request.url for domain in blocked_domains
            ):
                await route.abort()
            else:
                await route.continue_()

        await page.route("**/*", handle)

    def _setup_page_handlers(self, page: Page) -> None:
        page.on("console", lambda msg: logger.debug(f"Browser console [{msg.type}]: {msg.text}"))
        page.on("pageerror", lambda error: logger.error(f"Page error: {error}"))
        page.on(
            "requestfailed",
            lambda request: logger.warning(f"Request failed: {request.url} ({request.failure})"),
        )

    async def release_page(self, page: Optional[Page], close: bool = False) -> None:
        """Return a page to the pool after clearing it, or close it."""
        if page is None:
            return
        self.active_pages = max(0, self.active_pages - 1)

        if close or len(self.page_pool) >= self.config.max_pool_size:
            await self._close_page(page)
            return
        try:
            await page.goto("about:blank")
            await page.evaluate("() => { localStorage.clear(); sessionStorage.clear(); }")
        except Exception as e:
            logger.warning(f"Failed to clear page, closing it instead: {e}")
            await self._close_page(page)
            return
        self.page_pool.append(page)
        logger.debug(f"Page returned to pool ({len(self.page_pool)} pooled)")

    async def _close_page(self, page: Page) -> None:
        self._prepared_pages.discard(id(page))
        try:
            await page.close()
        except Exception as e:
            logger.warning(f"Failed to close page: {e}")

    def stats(self) -> dict[str, Any]:
        return {
            "isLaunched": self.is_ready,
            "activePagesCount": self.active_pages,
            "poolSize": len(self.page_pool),
            "browserType": self.config.browser_type if self.browser else None,
        }

    async def close(self) -> None:
        logger.info(f"Closing browser: {self.stats()}")
        for page in self.page_pool:
            await self._close_page(page)
        self.page_pool = []

        if self.context is not None:
            await self.context.close()
            self.context = None
        if self.browser is not None:
            await self.browser.close()
            self.browser = None
        if self.playwright is not None:
            await self.playwright.stop()
            self.playwright = None
        self.active_pages = 0

    async def __aenter__(self) -> "BrowserSession":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
