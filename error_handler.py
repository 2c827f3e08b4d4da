"""
Error taxonomy and retry handling for workflow actions.

RetryHandler runs one action invocation with bounded retries and exponential
backoff. Errors are re-raised as the same instance after the last attempt so
callers can tell error kinds apart.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

import scraper_defaults

if TYPE_CHECKING:
    from workflow_models import ErrorHandlingConfig, WorkflowStep

logger = logging.getLogger(__name__)


class ScraperError(Exception):
    """Base class for all scraper errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ScraperError):
    """Missing or invalid configuration. Never retried."""


class UnknownActionTypeError(ConfigurationError):
    def __init__(self, action_type: Any, available: list[str] | None = None):
        available = available or []
        super().__init__(
            f"Unknown action type: {action_type}",
            {"type": action_type, "available": available},
        )
        self.action_type = action_type


class UnknownExtractorTypeError(ConfigurationError):
    def __init__(self, extractor_type: Any):
        super().__init__(f"Unknown extractor type: {extractor_type}", {"type": extractor_type})
        self.extractor_type = extractor_type


class SelectorNotFoundError(ScraperError):
    def __init__(self, selector: str, message: str = "Selector not found"):
        super().__init__(f"{message}: {selector}", {"selector": selector})
        self.selector = selector


class ActionTimeoutError(ScraperError):
    """Raised when an action loses the race against its step timeout."""

    def __init__(self, action: str, timeout: int):
        super().__init__(
            f"Action timeout after {timeout}ms: {action}",
            {"action": action, "timeout": timeout},
        )
        self.action = action
        self.timeout = timeout


class NetworkError(ScraperError):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, {"code": code} if code else None)
        self.code = code


class ExtractionError(ScraperError):
    pass


class WorkflowStepError(ScraperError):
    """A step failure surfaced at the workflow boundary."""

    def __init__(self, step: str, action_type: str, original: BaseException,
                 duration: Optional[int] = None):
        super().__init__(
            f"Step '{step}' ({action_type}) failed: {original}",
            {"step": step, "type": action_type, "error": str(original)},
        )
        self.step = step
        self.action_type = action_type
        self.original = original
        self.duration = duration


class WorkflowCancelledError(ScraperError):
    pass


TRANSIENT_ERROR_MARKERS = (
    "ECONNRESET",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ECONNREFUSED",
    "NetworkError",
    "TimeoutError",
    "Target closed",
    "Navigation timeout",
)


def is_transient_error(error: BaseException) -> bool:
    """Check whether an error looks like a transient network / timeout failure."""
    if isinstance(error, (NetworkError, ActionTimeoutError, ConnectionError, asyncio.TimeoutError)):
        return True
    code = getattr(error, "code", None)
    name = type(error).__name__
    message = str(error)
    return any(
        code == marker or name == marker or marker in message
        for marker in TRANSIENT_ERROR_MARKERS
    )


def should_retry(error: BaseException) -> bool:
    """Configuration and cancellation errors are final, also when wrapped by a sub-workflow."""
    while isinstance(error, WorkflowStepError):
        error = error.original
    return not isinstance(error, (ConfigurationError, WorkflowCancelledError))


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = scraper_defaults.DEFAULT_RETRIES
    retry_delay: int = scraper_defaults.DEFAULT_RETRY_DELAY
    backoff_multiplier: float = scraper_defaults.DEFAULT_BACKOFF_MULTIPLIER
    max_retry_delay: int = scraper_defaults.DEFAULT_MAX_RETRY_DELAY
    continue_on_error: bool = scraper_defaults.DEFAULT_CONTINUE_ON_ERROR
    screenshot_on_error: bool = scraper_defaults.DEFAULT_SCREENSHOT_ON_ERROR
    screenshot_path: str = scraper_defaults.SCREENSHOT_DIR

    @classmethod
    def resolve(cls, step: Optional["WorkflowStep"] = None,
                error_handling: Optional["ErrorHandlingConfig"] = None) -> "RetryPolicy":
        """
        Build the effective policy for a step.

        Order: step `retry` > step `continueOnError` > errorHandling > defaults.
        """
        retry = step.retry if step is not None else None

        def pick(retry_field: str, handling_field: str, default: Any) -> Any:
            if retry is not None and getattr(retry, retry_field) is not None:
                return getattr(retry, retry_field)
            if error_handling is not None:
                return getattr(error_handling, handling_field)
            return default

        if retry is not None and retry.continue_on_error is not None:
            continue_on_error = retry.continue_on_error
        elif step is not None and step.continue_on_error:
            continue_on_error = True
        elif error_handling is not None:
            continue_on_error = error_handling.continue_on_error
        else:
            continue_on_error = scraper_defaults.DEFAULT_CONTINUE_ON_ERROR

        return cls(
            retries=pick("retries", "retries", scraper_defaults.DEFAULT_RETRIES),
            retry_delay=pick("retry_delay", "retry_delay", scraper_defaults.DEFAULT_RETRY_DELAY),
            backoff_multiplier=pick(
                "backoff_multiplier", "backoff_multiplier", scraper_defaults.DEFAULT_BACKOFF_MULTIPLIER
            ),
            max_retry_delay=pick(
                "max_retry_delay", "max_retry_delay", scraper_defaults.DEFAULT_MAX_RETRY_DELAY
            ),
            continue_on_error=continue_on_error,
            screenshot_on_error=pick(
                "screenshot_on_error", "screenshot_on_error", scraper_defaults.DEFAULT_SCREENSHOT_ON_ERROR
            ),
            screenshot_path=(
                error_handling.screenshot_path if error_handling is not None
                else scraper_defaults.SCREENSHOT_DIR
            ),
        )

    def delay_for(self, attempt: int) -> float:
        """Delay in ms after a failed attempt (0-based)."""
        return min(self.retry_delay * self.backoff_multiplier ** attempt, self.max_retry_delay)


class RetryHandler:
    """Executes a coroutine factory with retries and exponential backoff."""

    def __init__(
        self,
        policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_retry: Optional[Callable[[BaseException, int, str], Any]] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.policy = policy
        self.sleep = sleep
        self.on_retry = on_retry
        self.log = log or logger

    async def execute(self, fn: Callable[[int], Awaitable[Any]], label: str = "",
                      page: Any = None) -> Any:
        """
        Run `fn(attempt)` until it succeeds or attempts are exhausted.

        Attempts are numbered 0..retries inclusive. On the terminal failure the
        original error is re-raised unchanged, or None is returned when the
        policy continues on error.
        """
        policy = self.policy
        attempt = 0
        while True:
            try:
                return await fn(attempt)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                max_attempts = policy.retries + 1
                terminal = attempt >= policy.retries or not should_retry(e)
                self.log.error(f"[{label}] Attempt {attempt + 1}/{max_attempts} failed: {e}")

                if terminal:
                    if policy.screenshot_on_error and page is not None:
                        await self.capture_screenshot(page, e, label)
                    if policy.continue_on_error and not isinstance(e, WorkflowCancelledError):
                        self.log.warning(f"[{label}] Error ignored (continueOnError=true): {e}")
                        return None
                    raise

                delay = policy.delay_for(attempt)
                self.log.info(
                    f"[{label}] Retrying in {delay:.0f}ms "
                    f"(attempt {attempt + 2}/{max_attempts}, transient={is_transient_error(e)})"
                )
                if self.on_retry is not None:
                    self.on_retry(e, attempt + 1, label)
                await self.sleep(delay / 1000)
                attempt += 1

    async def capture_screenshot(self, page: Any, error: BaseException, label: str) -> Optional[str]:
        """Save a full-page screenshot. Failures are logged, never raised."""
        try:
            screenshot_dir = Path(self.policy.screenshot_path)
            screenshot_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
            safe_label = re.sub(r"[^a-zA-Z0-9]", "_", label)[:50]
            path = screenshot_dir / f"error_{safe_label}_{timestamp}.png"
            await page.screenshot(path=str(path), full_page=True)
            self.log.info(f"[{label}] Screenshot captured: {path} ({error})")
            return str(path)
        except Exception as e:
            self.log.warning(f"[{label}] Failed to capture screenshot: {e}")
            return None
