"""
Execution context passed to actions and extractors.

One context tree exists per workflow execution. Loop iterations and nested
step scopes get derived copies with extra local variables; the workflow
reference, page and logger are shared.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from error_handler import WorkflowCancelledError
from template_resolver import get_nested_value
from workflow_models import ErrorHandlingConfig, WorkflowStep

if TYPE_CHECKING:
    from workflow_engine import Workflow


@dataclass(frozen=True)
class ExecutionContext:
    workflow: "Workflow"
    page: Any
    logger: logging.Logger
    error_handling: ErrorHandlingConfig = field(default_factory=ErrorHandlingConfig)
    globals: dict[str, Any] = field(default_factory=dict)
    locals: dict[str, Any] = field(default_factory=dict)
    step: Optional[WorkflowStep] = None

    @property
    def data(self) -> dict[str, Any]:
        return self.workflow.data

    def template_context(self) -> dict[str, Any]:
        """Variables visible to {{...}} placeholders in this scope."""
        ctx = dict(self.globals)
        ctx["data"] = self.workflow.data
        ctx["workflow"] = {"name": self.workflow.name, "data": self.workflow.data}
        ctx.update(self.locals)
        return ctx

    def derive(self, **variables: Any) -> "ExecutionContext":
        """Return a child context with extra local variables."""
        return replace(self, locals={**self.locals, **variables})

    def for_step(self, step: WorkflowStep) -> "ExecutionContext":
        return replace(self, step=step)

    def lookup(self, path: str) -> Any:
        """Resolve a dot path in the data store, then in the template context."""
        value = get_nested_value(self.workflow.data, path)
        if value is None:
            value = get_nested_value(self.template_context(), path)
        return value

    def check_cancelled(self) -> None:
        if self.workflow.is_cancelled:
            raise WorkflowCancelledError(f"Workflow cancelled: {self.workflow.name}")
