"""
Workflow actions.

`build_default_registry()` wires every built-in action into a fresh
ActionRegistry. Control-flow actions get a StepRunner bound to that same
registry; the extract action gets the extractor registry.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from extractors import ExtractorRegistry, build_default_extractors

from .api import ApiAction
from .base import BaseAction
from .click import ClickAction
from .condition import ConditionAction
from .extract import ExtractAction
from .form import FormAction, get_form_values
from .input import InputAction
from .login import LoginAction, export_cookies
from .loop import LoopAction
from .navigate import NavigateAction
from .pagination import PaginationAction
from .registry import CONTROL_FLOW_ACTIONS, ActionRegistry, StepRunner
from .scroll import ScrollAction
from .sub_workflow import SubWorkflowAction
from .wait import WaitAction


def build_default_registry(
    extractors: Optional[ExtractorRegistry] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> ActionRegistry:
    registry = ActionRegistry(sleep=sleep)
    runner = StepRunner(registry)
    extractors = extractors or build_default_extractors()

    registry.register("navigate", NavigateAction())
    registry.register("click", ClickAction())
    registry.register("wait", WaitAction())
    registry.register("scroll", ScrollAction())
    registry.register("input", InputAction())
    registry.register("api", ApiAction())
    registry.register("form", FormAction())
    registry.register("login", LoginAction())
    registry.register("extract", ExtractAction(extractors))
    registry.register("pagination", PaginationAction())
    registry.register("loop", LoopAction(runner))
    registry.register("condition", ConditionAction(runner))
    registry.register("subWorkflow", SubWorkflowAction())
    return registry


__all__ = [
    'ActionRegistry',
    'BaseAction',
    'CONTROL_FLOW_ACTIONS',
    'StepRunner',
    'build_default_registry',
    'export_cookies',
    'get_form_values',
]
