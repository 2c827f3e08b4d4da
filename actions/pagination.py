"""
Pagination action.

Walks through result pages by clicking a "next" control, by generating page
URLs, or by infinite scroll. On every page (the last one included) the
top-level steps listed in `repeatSteps` are re-run through the workflow and
their results collected; the collected pages are flattened into one result.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from error_handler import ConfigurationError

from .base import BaseAction, ms

IS_DISABLED_JS = "(el, cls) => el.classList.contains(cls) || el.hasAttribute('disabled')"
SCROLL_HEIGHT_JS = "() => document.body.scrollHeight"


def build_page_url(config: dict[str, Any], page_num: int) -> str:
    """`urlPattern` with {page} substituted, or `baseUrl` with `pageParam` set."""
    pattern = config.get("urlPattern")
    if pattern:
        return str(pattern).replace("{page}", str(page_num))

    base_url, page_param = config.get("baseUrl"), config.get("pageParam")
    if not base_url or not page_param:
        raise ConfigurationError("urlPattern (or baseUrl + pageParam) is required for URL-based pagination")
    parsed = urlparse(base_url)
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != page_param]
    query.append((page_param, str(page_num)))
    return urlunparse(parsed._replace(query=urlencode(query)))


def flatten_pagination_data(pages: list[Any]) -> Any:
    """
    Merge per-page results.

    Lists are concatenated; objects sharing a single key holding lists are
    concatenated into one list; other objects are merged key by key.
    """
    if not pages:
        return pages
    if all(isinstance(p, list) for p in pages):
        return [item for p in pages for item in p]
    if not all(isinstance(p, dict) for p in pages):
        return pages

    keys: list[str] = []
    for p in pages:
        keys.extend(k for k in p if k not in keys)

    if len(keys) == 1 and all(isinstance(p.get(keys[0]), list) for p in pages):
        return [item for p in pages for item in p[keys[0]]]

    merged: dict[str, Any] = {}
    for key in keys:
        values = [p[key] for p in pages if key in p]
        if all(isinstance(v, list) for v in values):
            merged[key] = [item for v in values for item in v]
        else:
            merged[key] = values[0] if len(values) == 1 else values
    return merged


class _PageCollector:
    def __init__(self, max_items: Optional[int]):
        self.max_items = max_items
        self.pages: list[Any] = []
        self.items = 0

    def add(self, page_data: Any) -> None:
        if page_data is None:
            return
        self.pages.append(page_data)
        self.items += len(page_data) if isinstance(page_data, list) else 1

    @property
    def full(self) -> bool:
        return bool(self.max_items) and self.items >= self.max_items


class PaginationAction(BaseAction):
    name = "pagination"
    description = "Iterate over result pages"

    async def execute(self, page, config, context) -> Any:
        pagination_type = config.get("type", "click")
        max_pages = int(config.get("maxPages", 10))
        max_items = config.get("maxItems")
        collector = _PageCollector(int(max_items) if max_items else None)
        repeat_steps = config.get("repeatSteps") or []

        context.logger.info(f"Starting pagination: {pagination_type} (maxPages={max_pages})")
        if pagination_type == "click":
            summary = await self._by_click(page, config, context, collector, max_pages)
        elif pagination_type == "url":
            summary = await self._by_url(page, config, context, collector, max_pages)
        elif pagination_type == "scroll":
            summary = await self._by_scroll(page, config, context, collector)
        else:
            raise ConfigurationError(f"Unknown pagination type: {pagination_type}")

        summary.update({"type": pagination_type, "itemsCollected": collector.items})
        context.logger.info(
            f"Pagination completed: {summary['pagesVisited']} pages, {collector.items} items"
        )
        if repeat_steps:
            return flatten_pagination_data(collector.pages)
        return {**summary, "data": collector.pages}

    async def _collect(self, page, config, context, collector: _PageCollector) -> None:
        step_ids = config.get("repeatSteps") or []
        if not step_ids:
            return

        workflow = context.workflow
        outputs: dict[str, Any] = {}
        unnamed: list[Any] = []
        for step_id in step_ids:
            step = workflow.get_step_by_id(step_id)
            if step is None:
                context.logger.warning(f"Repeat step not found: {step_id}")
                continue
            result = await workflow.execute_step(step, page)
            if step.output:
                outputs[step.output] = result
            else:
                unnamed.append(result)

        if outputs:
            collector.add(outputs)
        elif len(unnamed) == 1:
            collector.add(unnamed[0])
        elif unnamed:
            collector.add(unnamed)

    async def _by_click(self, page, config, context, collector, max_pages) -> dict[str, Any]:
        next_selector = config.get("nextSelector")
        if not next_selector:
            raise ConfigurationError("nextSelector is required for click-based pagination")
        wait_after_click = ms(config.get("waitAfterClick"), 2000)
        disabled_class = config.get("disabledClass")
        wait_for_selector = config.get("waitForSelector")

        pages_visited = 1
        while True:
            context.check_cancelled()
            await self._collect(page, config, context, collector)
            if collector.full:
                context.logger.info(f"Max items reached: {collector.max_items}")
                break
            if pages_visited >= max_pages:
                break

            next_button = await page.query_selector(next_selector)
            if next_button is None:
                context.logger.info("Next button not found, ending pagination")
                break
            if disabled_class and await next_button.evaluate(IS_DISABLED_JS, disabled_class):
                context.logger.info("Next button is disabled, ending pagination")
                break

            try:
                await next_button.click()
                if wait_after_click:
                    await page.wait_for_timeout(wait_after_click)
                if wait_for_selector:
                    await page.wait_for_selector(wait_for_selector, timeout=10000)
            except Exception as e:
                context.logger.warning(f"Failed to go to next page: {e}")
                break
            pages_visited += 1
            context.logger.debug(f"Clicked next button, page {pages_visited}")

        return {"pagesVisited": pages_visited}

    async def _by_url(self, page, config, context, collector, max_pages) -> dict[str, Any]:
        start_page = int(config.get("startPage", 1))
        wait_until = "networkidle" if config.get("waitForNavigation", True) else "load"
        build_page_url(config, start_page)  # fail fast on a missing pattern

        pages_visited = 0
        for page_num in range(start_page, start_page + max_pages):
            context.check_cancelled()
            if collector.full:
                context.logger.info(f"Max items reached: {collector.max_items}")
                break
            url = build_page_url(config, page_num)
            try:
                context.logger.debug(f"Navigating to page {page_num}: {url}")
                await page.goto(url, wait_until=wait_until)
            except Exception as e:
                context.logger.warning(f"Failed to navigate to page {page_num}: {e}")
                break
            pages_visited += 1
            await self._collect(page, config, context, collector)

        return {"pagesVisited": pages_visited}

    async def _by_scroll(self, page, config, context, collector) -> dict[str, Any]:
        max_scrolls = int(config.get("maxScrolls", 10))
        scroll_delay = ms(config.get("scrollDelay"), 1000)
        end_selector = config.get("endSelector")
        scroll_distance = config.get("scrollDistance")

        scrolls = 0
        previous_height = await page.evaluate(SCROLL_HEIGHT_JS)
        while True:
            context.check_cancelled()
            await self._collect(page, config, context, collector)
            if collector.full:
                context.logger.info(f"Max items reached: {collector.max_items}")
                break
            if scrolls >= max_scrolls:
                break
            if end_selector and await page.query_selector(end_selector) is not None:
                context.logger.info("End marker detected, stopping scroll")
                break

            if scroll_distance:
                await page.evaluate("(d) => window.scrollBy(0, d)", int(scroll_distance))
            else:
                await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            scrolls += 1
            await page.wait_for_timeout(scroll_delay)

            new_height = await page.evaluate(SCROLL_HEIGHT_JS)
            if new_height == previous_height:
                context.logger.info("No new content loaded, ending scroll pagination")
                break
            previous_height = new_height

        return {"pagesVisited": 1, "scrolls": scrolls}
