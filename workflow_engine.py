"""
Workflow engine: runs a workflow's steps in order against one Playwright page.

Each step's config is template-resolved against the data collected so far,
dispatched through the action registry (retries and timeouts included) and
its result stored under the step's `output` / `saveAs` key. Loop and
condition configs are passed through unresolved; those actions resolve their
bodies per iteration / branch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
import time
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError

from actions import build_default_registry
from actions.registry import ActionRegistry, prepare_step_config
from error_handler import ConfigurationError, WorkflowCancelledError, WorkflowStepError
from execution_context import ExecutionContext
from workflow_models import ErrorHandlingConfig, WorkflowDefinition, WorkflowStep

_NUMERIC_KEY_RE = re.compile(r"[0-9]+")

ProgressCallback = Callable[[dict[str, Any]], Any]


def is_exported_key(key: str) -> bool:
    """Purely numeric output keys are kept internal."""
    return not _NUMERIC_KEY_RE.fullmatch(key)


class Workflow:
    """Executes a WorkflowDefinition. One instance per run."""

    def __init__(
        self,
        definition: WorkflowDefinition | dict[str, Any],
        global_context: Optional[dict[str, Any]] = None,
        registry: Optional[ActionRegistry] = None,
        on_progress: Optional[ProgressCallback] = None,
        logger: Optional[logging.Logger] = None,
        error_handling: Optional[ErrorHandlingConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
        workflow_id: Optional[str] = None,
    ):
        if isinstance(definition, dict):
            try:
                definition = WorkflowDefinition.model_validate(definition)
            except ValidationError as e:
                raise ConfigurationError(
                    "Invalid workflow definition", {"errors": e.errors(include_url=False)}
                ) from e

        self.definition = definition
        self.global_context = dict(global_context or {})
        self.registry = registry or build_default_registry()
        self.on_progress = on_progress
        self.logger = logger or logging.getLogger(__name__)
        self.error_handling = error_handling or ErrorHandlingConfig()
        self.workflow_id = workflow_id or str(uuid.uuid4())
        self._cancel_event = cancel_event or asyncio.Event()

        self.data: dict[str, Any] = {}
        self.results: dict[str, Any] = {}
        self.log_lines: list[str] = []
        self._started_at: Optional[float] = None

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def steps(self) -> list[WorkflowStep]:
        return self.definition.steps

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Stop dispatching further steps; the running action finishes first."""
        self._cancel_event.set()

    def _elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return int((time.monotonic() - self._started_at) * 1000)

    async def _emit(self, event_type: str, **fields: Any) -> None:
        if self.on_progress is None:
            return
        event = {"type": event_type, "workflowId": self.workflow_id, **fields}
        try:
            result = self.on_progress(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.warning(f"Progress callback failed for {event_type} event: {e}")

    async def _log(self, msg: str, level: int = logging.INFO) -> None:
        self.logger.log(level, msg)
        self.log_lines.append(msg)
        await self._emit("log", level=logging.getLevelName(level).lower(), message=msg)

    async def execute(self, page: Any) -> dict[str, Any]:
        """Run every step. Returns {"success", "data", "duration"}."""
        total = len(self.steps)
        self._started_at = time.monotonic()
        await self._log(f"Starting workflow: {self.name} ({total} steps)")
        await self._emit("progress", status="started", current=0, total=total, percentage=0)

        try:
            for index, step in enumerate(self.steps):
                if self.is_cancelled:
                    raise WorkflowCancelledError(f"Workflow cancelled: {self.name}")

                label = step.label(index)
                await self._emit("step", index=index, total=total, step=label,
                                 stepType=step.type, status="running")
                result = await self.execute_step(step, page, index)
                self._store_result(step, result)
                if step.output and is_exported_key(step.output):
                    await self._emit("data", key=step.output, data=result)

                await self._emit("step", index=index, total=total, step=label,
                                 stepType=step.type, status="completed")
                await self._emit("progress", status="running", current=index + 1, total=total,
                                 percentage=round((index + 1) * 100 / total) if total else 100)
        except Exception as e:
            duration = self._elapsed_ms()
            await self._log(f"Workflow failed after {duration}ms: {e}", logging.ERROR)
            await self._emit("progress", status="failed", total=total, error=str(e),
                             duration=duration)
            raise

        duration = self._elapsed_ms()
        await self._log(f"Workflow completed in {duration}ms: {self.name}")
        await self._emit("progress", status="completed", current=total, total=total,
                         percentage=100, duration=duration)
        return {"success": True, "data": dict(self.results), "duration": duration}

    async def execute_step(self, step: WorkflowStep, page: Any, index: Optional[int] = None) -> Any:
        """
        Resolve, dispatch and error-handle one step.

        Returns the action result, or None when the step (or the workflow)
        continues on error. Other failures raise WorkflowStepError chained to
        the original error.
        """
        label = step.label(index)
        position = f"[{index + 1}/{len(self.steps)}] " if index is not None else ""
        await self._log(f"Executing step {position}{label} ({step.type})")

        context = self.create_step_context(step, page)
        try:
            config = self.resolve_step_config(step, context)
            result = await self.registry.execute_action(page, step, context, config=config)
        except WorkflowCancelledError:
            raise
        except Exception as e:
            await self._log(f"Step failed: {label}: {e}", logging.ERROR)
            if step.continue_on_error or self.definition.continue_on_error:
                await self._log(f"Continuing despite error in step: {label}", logging.WARNING)
                return None
            if isinstance(e, WorkflowStepError):
                raise
            raise WorkflowStepError(label, step.type, e, self._elapsed_ms()) from e

        self.logger.debug(f"Step completed: {label} (result: {result is not None})")
        return result

    def _store_result(self, step: WorkflowStep, result: Any) -> None:
        if step.output:
            self.data[step.output] = result
            if is_exported_key(step.output):
                self.results[step.output] = result
        if step.save_as:
            self.data[step.save_as] = result

    def create_step_context(self, step: WorkflowStep, page: Any) -> ExecutionContext:
        return ExecutionContext(
            workflow=self,
            page=page,
            logger=self.logger,
            error_handling=self.error_handling,
            globals=self.global_context,
            step=step,
        )

    def resolve_step_config(self, step: WorkflowStep, context: ExecutionContext) -> dict[str, Any]:
        return prepare_step_config(step, context.template_context())

    def get_step_by_id(self, step_id: str) -> Optional[WorkflowStep]:
        return next((step for step in self.steps if step.id == step_id), None)

    def get_data(self) -> dict[str, Any]:
        return dict(self.data)

    def set_data(self, key: str, value: Any) -> None:
        self.data[key] = value

    def has_sub_workflow(self, name: str) -> bool:
        return name in self.definition.sub_workflows

    def get_sub_workflow_names(self) -> list[str]:
        return list(self.definition.sub_workflows)

    async def execute_sub_workflow(self, name: str, params: Optional[dict[str, Any]],
                                   page: Any) -> dict[str, Any]:
        """
        Run a named sub-workflow on the same page with its own data store.

        The child sees the parent's globals plus `params` and a `parent`
        descriptor, and shares registry, logger, progress callback and
        cancellation state.
        """
        sub = self.definition.sub_workflows.get(name)
        if sub is None:
            raise ConfigurationError(
                f"Sub-workflow not found: {name}. "
                f"Available: {', '.join(self.get_sub_workflow_names()) or 'none'}",
                {"name": name, "available": self.get_sub_workflow_names()},
            )

        continue_on_error = (
            sub.continue_on_error if sub.continue_on_error is not None
            else self.definition.continue_on_error
        )
        child = Workflow(
            WorkflowDefinition(
                name=f"{self.name}:{name}",
                steps=sub.steps,
                continue_on_error=continue_on_error,
            ),
            global_context={
                **self.global_context,
                "parent": {"workflow": self.name, "data": self.data},
                "params": params or {},
            },
            registry=self.registry,
            on_progress=self.on_progress,
            logger=self.logger,
            error_handling=self.error_handling,
            cancel_event=self._cancel_event,
            workflow_id=self.workflow_id,
        )
        await self._log(f"Executing sub-workflow: {name}")
        result = await child.execute(page)
        await self._log(f"Sub-workflow completed: {name} in {result['duration']}ms")
        return result
