from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from error_handler import ConfigurationError

if TYPE_CHECKING:
    from execution_context import ExecutionContext


class BaseAction(ABC):
    """Abstract base class for all workflow actions."""

    name: str = ""
    description: str = ""

    @abstractmethod
    async def execute(self, page: Any, config: dict[str, Any], context: "ExecutionContext") -> Any:
        """
        Execute the action.

        Args:
            page: Playwright page the workflow runs against
            config: Step config, already template-resolved unless the action
                resolves its own sub-scopes
            context: Execution context of the running step

        Returns:
            Result of the action execution
        """


def require(config: dict[str, Any], key: str, action: str) -> Any:
    """Return config[key] or raise ConfigurationError when it is missing/empty."""
    value = config.get(key)
    if value is None or value == "" or value == [] or value == {}:
        raise ConfigurationError(f'{action} action requires "{key}"', {"field": key})
    return value


def ms(value: Any, default: int) -> int:
    """Coerce a millisecond setting that may arrive as a template string."""
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid millisecond value: {value!r}")
