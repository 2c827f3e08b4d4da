from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from execution_context import ExecutionContext


class BaseExtractor(ABC):
    """Reads one value out of a page or element handle."""

    name: str = ""

    @abstractmethod
    async def extract(self, element: Any, config: dict[str, Any], context: "ExecutionContext") -> Any:
        ...


def is_page(scope: Any) -> bool:
    """Pages (and frames) expose `url` as a string; element handles do not."""
    return isinstance(getattr(scope, "url", None), str)


async def find_target(scope: Any, selector: Optional[str], context: "ExecutionContext") -> Any:
    """
    Resolve the element an extractor reads from.

    With a selector the first match under `scope` is returned, or None after a
    warning. Without one the scope itself is used; a page scope falls back to
    its <body> since pages have no text of their own.
    """
    if selector:
        target = await scope.query_selector(selector)
        if target is None:
            context.logger.warning(f"Element not found: {selector}")
        return target
    if is_page(scope):
        return await scope.query_selector("body")
    return scope


def preview(value: Any, length: int = 50) -> str:
    text = "" if value is None else str(value).replace("\n", " ")
    return text[:length] + ("..." if len(text) > length else "")
