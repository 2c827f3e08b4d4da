from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Optional

from error_handler import (
    ActionTimeoutError,
    ConfigurationError,
    RetryHandler,
    RetryPolicy,
    UnknownActionTypeError,
)
from template_resolver import resolve_template
from workflow_models import WorkflowStep

if TYPE_CHECKING:
    from execution_context import ExecutionContext

logger = logging.getLogger(__name__)

# Actions whose configs hold nested step bodies; they resolve templates
# per iteration / branch themselves.
CONTROL_FLOW_ACTIONS = frozenset({"loop", "condition"})


def coerce_step(step: WorkflowStep | dict[str, Any]) -> WorkflowStep:
    if isinstance(step, WorkflowStep):
        return step
    if not isinstance(step, dict):
        raise ConfigurationError(f"Invalid step definition: {step!r}")
    return WorkflowStep.model_validate(step)


def prepare_step_config(step: WorkflowStep, template_context: dict[str, Any]) -> dict[str, Any]:
    """Resolve a step's config, leaving control-flow configs untouched."""
    if step.type in CONTROL_FLOW_ACTIONS:
        return step.config
    return resolve_template(step.config, template_context)


class ActionRegistry:
    """Name -> action map plus the retry/timeout wrapped dispatch."""

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._actions: dict[str, Any] = {}
        self.sleep = sleep

    def register(self, name: str, action: Any) -> Any:
        if not callable(getattr(action, "execute", None)):
            raise ConfigurationError(f"Action {name} must have an execute method")
        self._actions[name] = action
        logger.debug(f"Action registered: {name}")
        return action

    def get(self, name: str) -> Optional[Any]:
        return self._actions.get(name)

    def has(self, name: str) -> bool:
        return name in self._actions

    def names(self) -> list[str]:
        return list(self._actions)

    async def execute_action(
        self,
        page: Any,
        step: WorkflowStep,
        context: "ExecutionContext",
        config: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Run one step's action with its retry policy and optional timeout.

        `config` is the resolved config; it defaults to the step's literal
        config. Errors from the action propagate unchanged; a lost timeout
        race raises ActionTimeoutError.
        """
        if not step.type:
            raise ConfigurationError("Action type is required")

        action = self.get(step.type)
        if action is None:
            raise UnknownActionTypeError(step.type, self.names())

        config = step.config if config is None else config
        label = step.label()
        log = context.logger
        timeout = step.timeout or config.get("timeout")
        timeout_ms = int(float(timeout)) if timeout not in (None, "", 0) else None

        policy = RetryPolicy.resolve(step, context.error_handling)
        handler = RetryHandler(policy, sleep=self.sleep, log=log)

        async def attempt(n: int) -> Any:
            if timeout_ms is None:
                return await action.execute(page, config, context)
            return await _race(action.execute(page, config, context), timeout_ms, label)

        log.info(f"Executing action: {label} ({step.type})")
        start = time.monotonic()
        try:
            result = await handler.execute(attempt, label=label, page=page)
        except Exception as e:
            duration = int((time.monotonic() - start) * 1000)
            log.error(f"Action failed: {label} ({step.type}) after {duration}ms: {e}")
            raise

        duration = int((time.monotonic() - start) * 1000)
        log.info(f"Action completed: {label} ({step.type}) in {duration}ms")
        return result


async def _race(coro: Awaitable[Any], timeout_ms: int, label: str) -> Any:
    """
    Race an action against a timer.

    Losing the race cancels the coroutine, but a browser-side operation it
    already started is not aborted.
    """
    task = asyncio.ensure_future(coro)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise
    if not done:
        task.cancel()
        raise ActionTimeoutError(label, timeout_ms)
    return task.result()


class StepRunner:
    """
    Runs a nested list of steps (loop bodies, condition branches).

    Injected into control-flow actions so they never reach back into a
    global registry.
    """

    def __init__(self, registry: ActionRegistry):
        self.registry = registry

    async def run_steps(
        self,
        page: Any,
        steps: Iterable[WorkflowStep | dict[str, Any]],
        context: "ExecutionContext",
    ) -> dict[str, Any]:
        """Execute steps in order and return their `output` values by key."""
        results: dict[str, Any] = {}
        scope = context
        for raw_step in steps:
            scope.check_cancelled()
            step = coerce_step(raw_step)
            step_context = scope.for_step(step)
            config = prepare_step_config(step, step_context.template_context())
            result = await self.registry.execute_action(page, step, step_context, config=config)

            if step.output:
                results[step.output] = result
                scope = scope.derive(**{step.output: result})
            if step.save_as:
                scope = scope.derive(**{step.save_as: result})
        return results
