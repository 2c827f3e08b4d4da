from __future__ import annotations

from typing import Any

from error_handler import ConfigurationError

from .base import BaseAction, require


class SubWorkflowAction(BaseAction):
    """
    Run a named sub-workflow of the current workflow on the same page.

    `params` arrive already resolved against the calling step's context.
    """

    name = "subWorkflow"
    description = "Execute a named sub-workflow"

    async def execute(self, page, config, context) -> dict[str, Any]:
        name = require(config, "name", "SubWorkflow")
        workflow = context.workflow
        if not workflow.has_sub_workflow(name):
            available = workflow.get_sub_workflow_names()
            raise ConfigurationError(
                f"Sub-workflow not found: {name}. Available: {', '.join(available) or 'none'}",
                {"name": name, "available": available},
            )

        result = await workflow.execute_sub_workflow(name, config.get("params") or {}, page)
        context.logger.info(f"Sub-workflow {name} finished in {result['duration']}ms")
        return result
