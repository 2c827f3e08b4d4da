#!/usr/bin/env python3
"""
Scraper runner.

Launches a browser session, runs the configured workflow on one page and
prints the result as JSON.

Usage:
    python scraper.py <config_file> [--visible] [--log-level DEBUG]
    python scraper.py <config_file> --session shop-login
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from actions.registry import ActionRegistry
from browser_session import BrowserSession
from error_handler import ScraperError
from persistence import JSONSessionStore, SessionStore
from workflow_engine import ProgressCallback, Workflow, is_exported_key
from workflow_loader import load_scraper_config, validate_scraper_config
from workflow_models import ScraperConfig

logger = logging.getLogger(__name__)


def prepare_export_data(data: Dict[str, Any]) -> Any:
    """
    Flatten a workflow result map for a file writer.

    Numeric keys are dropped; a single list or object value is unwrapped;
    several object values are merged; anything else is concatenated.
    """
    if not data:
        return {}

    filtered = {k: v for k, v in data.items() if is_exported_key(k)}
    values = list((filtered or data).values())

    if len(values) == 1 and isinstance(values[0], (list, dict)):
        return values[0]
    if len(values) > 1:
        if all(isinstance(v, dict) for v in values):
            merged: Dict[str, Any] = {}
            for value in values:
                merged.update(value)
            return merged
        flat = []
        for value in values:
            if isinstance(value, list):
                flat.extend(value)
            else:
                flat.append(value)
        return flat[0] if len(flat) == 1 else flat
    return values[0] if values and values[0] else {}


class Scraper:
    """Browser session + workflow for one scraper config."""

    def __init__(
        self,
        config: ScraperConfig,
        on_progress: Optional[ProgressCallback] = None,
        registry: Optional[ActionRegistry] = None,
        session_name: Optional[str] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.config = config
        self.on_progress = on_progress
        self.registry = registry
        self.session_name = session_name
        self.session_store = session_store
        self.browser: Optional[BrowserSession] = None
        self.workflow: Optional[Workflow] = None

    async def initialize(self) -> None:
        logger.info(f"Initializing scraper: {self.config.name}")
        for warning in validate_scraper_config(self.config, self.registry):
            logger.warning(f"Config warning: {warning}")
        self.browser = BrowserSession(self.config.browser)
        await self.browser.launch()

    async def run(self) -> Dict[str, Any]:
        if self.browser is None or not self.browser.is_ready:
            raise RuntimeError("Scraper not initialized. Call initialize() first.")

        page = await self.browser.new_page()
        try:
            if self.session_name and self.session_store is not None:
                if self.session_store.has_session(self.session_name):
                    await self.session_store.restore_session(self.session_name, page)

            self.workflow = Workflow(
                self.config.workflow,
                global_context={"target": self.config.target, "scraper": {"name": self.config.name}},
                registry=self.registry,
                on_progress=self.on_progress,
                error_handling=self.config.error_handling,
            )
            result = await self.workflow.execute(page)

            if self.session_name and self.session_store is not None:
                await self.session_store.save_session(
                    self.session_name, page, metadata={"scraper": self.config.name}
                )
        finally:
            await self.browser.release_page(page)

        logger.info(f"Scraper finished in {result['duration']}ms, "
                    f"{len(result['data'])} output key(s): {', '.join(result['data'])}")
        return result

    async def close(self) -> None:
        if self.browser is not None:
            await self.browser.close()
            self.browser = None

    async def execute(self) -> Dict[str, Any]:
        """initialize + run + close."""
        try:
            await self.initialize()
            return await self.run()
        finally:
            await self.close()


def main():
    parser = argparse.ArgumentParser(description="Run a scraper workflow config")
    parser.add_argument("config", help="Path to a YAML or JSON scraper config")
    parser.add_argument("--visible", action="store_true", help="Show the browser window")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--session", help="Restore / save browser session under this name")
    parser.add_argument("--session-dir", help="Directory for saved sessions")
    parser.add_argument("--export", action="store_true",
                        help="Print the flattened export data instead of the full result")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        config = load_scraper_config(args.config)
    except (FileNotFoundError, ScraperError) as e:
        logger.error(f"Could not load config: {e}")
        sys.exit(1)

    if args.visible:
        config.browser.headless = False

    store = None
    if args.session:
        store = JSONSessionStore(args.session_dir) if args.session_dir else JSONSessionStore()

    scraper = Scraper(config, session_name=args.session, session_store=store)
    try:
        result = asyncio.run(scraper.execute())
    except ScraperError as e:
        logger.error(f"Scraper failed: {e}")
        sys.exit(1)

    output = prepare_export_data(result["data"]) if args.export else result
    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))


if __name__ == '__main__':
    main()
