from __future__ import annotations

from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from error_handler import ConfigurationError
from template_resolver import resolve_template, to_template_string

from .base import BaseAction, ms

if TYPE_CHECKING:
    from .registry import StepRunner

COMPARISONS = {
    "greaterThan": lambda a, b: a > b,
    "lessThan": lambda a, b: a < b,
    "greaterOrEqual": lambda a, b: a >= b,
    "lessOrEqual": lambda a, b: a <= b,
}


def _number(value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError("Comparison values must be numeric")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Comparison values must be numeric: {value!r}")


def _strict_equals(value: Any, expected: Any) -> bool:
    """Equality without cross-type coercion; ints and floats still compare by value."""
    numeric = (int, float)
    if isinstance(value, bool) or isinstance(expected, bool):
        return type(value) is type(expected) and value == expected
    if isinstance(value, numeric) and isinstance(expected, numeric):
        return value == expected
    return type(value) is type(expected) and value == expected


class ConditionAction(BaseAction):
    """Run the `then` or `else` steps depending on the `if` descriptor."""

    name = "condition"
    description = "Branch on a page or data condition"

    def __init__(self, runner: "StepRunner"):
        self.runner = runner

    async def execute(self, page, config, context) -> dict[str, Any]:
        condition = config.get("if")
        then_steps = config.get("then") or []
        else_steps = config.get("else") or []
        if not condition:
            raise ConfigurationError('Condition action requires "if" configuration')
        if not then_steps:
            raise ConfigurationError('Condition action requires "then" steps array')

        outcome = await self.evaluate(page, condition, context)
        context.logger.info(f"Condition evaluated to: {outcome}")

        if outcome:
            branch, steps = "then", then_steps
        elif else_steps:
            branch, steps = "else", else_steps
        else:
            context.logger.debug("Condition false and no else branch, skipping")
            return {"branch": "none", "result": None}

        results = await self.runner.run_steps(page, steps, context)
        return {"branch": branch, "results": results}

    async def evaluate(self, page, condition: dict[str, Any], context) -> bool:
        condition = resolve_template(condition, context.template_context())
        condition_type = condition.get("type", "exists")

        if condition_type == "exists":
            return await self._exists(page, condition, context)
        if condition_type == "equals":
            if "value" not in condition or "expected" not in condition:
                raise ConfigurationError('equals condition requires "value" and "expected"')
            value, expected = condition["value"], condition["expected"]
            return _strict_equals(value, expected)
        if condition_type == "contains":
            value, substring = condition.get("value"), condition.get("substring")
            if not value or not substring:
                raise ConfigurationError('contains condition requires "value" and "substring"')
            return to_template_string(substring) in to_template_string(value)
        if condition_type in COMPARISONS:
            if condition.get("value") is None or condition.get("compare") is None:
                raise ConfigurationError(f'{condition_type} condition requires "value" and "compare"')
            return COMPARISONS[condition_type](_number(condition["value"]), _number(condition["compare"]))
        if condition_type == "expression":
            expression = condition.get("expression")
            if not expression:
                raise ConfigurationError('expression condition requires an "expression" string')
            return bool(await page.evaluate(expression))

        raise ConfigurationError(f"Unknown condition type: {condition_type}")

    async def _exists(self, page, condition, context) -> bool:
        selector = condition.get("selector")
        if not selector:
            raise ConfigurationError("exists condition requires a selector")
        try:
            await page.wait_for_selector(selector, state="visible",
                                         timeout=ms(condition.get("timeout"), 1000))
        except PlaywrightError:
            context.logger.debug(f"Selector does not exist: {selector}")
            return False
        return True
