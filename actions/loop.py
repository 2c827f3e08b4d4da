from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from error_handler import ConfigurationError, WorkflowCancelledError
from template_resolver import resolve_template

from .base import BaseAction

if TYPE_CHECKING:
    from .registry import StepRunner

_SINGLE_TEMPLATE_RE = re.compile(r"^\s*\{\{\s*([^}]+?)\s*\}\}\s*$")


class LoopAction(BaseAction):
    """
    Run `steps` once per item of `items`.

    `items` is a list or a dot path (optionally written as `{{path}}`) looked
    up in the data store, then in the surrounding template variables. Each
    iteration sees `itemVar` / `indexVar` / `loopIteration`. An iteration with
    exactly one output key contributes that value directly to the results.
    """

    name = "loop"
    description = "Repeat steps for each item of a list"

    def __init__(self, runner: "StepRunner"):
        self.runner = runner

    def _resolve_items(self, items: Any, context) -> Any:
        if isinstance(items, list):
            return resolve_template(items, context.template_context())
        if isinstance(items, str):
            match = _SINGLE_TEMPLATE_RE.match(items)
            return context.lookup(match.group(1) if match else items.strip())
        raise ConfigurationError("Items must be an array or a string path to data")

    async def execute(self, page, config, context) -> list[Any]:
        items = config.get("items")
        steps = config.get("steps") or []
        item_var = config.get("itemVar", "item")
        index_var = config.get("indexVar", "index")
        if items is None or items == "":
            raise ConfigurationError('Loop action requires "items" configuration')
        if not steps:
            raise ConfigurationError('Loop action requires "steps" array')

        items_list = self._resolve_items(items, context)
        if items_list is None:
            context.logger.warning(f"No data found at path: {items}")
            return []
        if not isinstance(items_list, (list, tuple)):
            raise ConfigurationError("Items must resolve to an array")

        limit = resolve_template(config.get("limit"), context.template_context())
        if limit not in (None, "", 0):
            try:
                limit = int(float(limit))
            except (TypeError, ValueError):
                raise ConfigurationError(f"Loop limit must be a number: {limit!r}") from None
            items_list = list(items_list)[:limit]

        total = len(items_list)
        context.logger.info(f"Looping over {total} items")
        results: list[Any] = []
        for index, item in enumerate(items_list):
            context.check_cancelled()
            context.logger.info(f"Loop iteration {index + 1}/{total}")
            iteration_context = context.derive(**{
                item_var: item,
                index_var: index,
                "loopIteration": {"current": index + 1, "total": total, "item": item, "index": index},
            })
            try:
                outputs = await self.runner.run_steps(page, steps, iteration_context)
            except WorkflowCancelledError:
                raise
            except Exception as e:
                context.logger.error(f"Loop iteration {index + 1} failed: {e}")
                if config.get("continueOnError"):
                    results.append({"error": str(e), "index": index})
                    continue
                raise

            if len(outputs) == 1:
                results.append(next(iter(outputs.values())))
            else:
                results.append(outputs)

        context.logger.info(f"Loop completed with {len(results)} results")
        return results
