"""
Scraper config loader.

Loads YAML or JSON scraper documents into ScraperConfig models and reports
non-fatal problems a run would only hit late (or silently).
"""

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from actions import build_default_registry
from actions.registry import ActionRegistry
from error_handler import ConfigurationError
from template_resolver import has_template_variables
from workflow_engine import is_exported_key
from workflow_models import ScraperConfig, WorkflowStep


def parse_scraper_config(data: Any) -> ScraperConfig:
    """
    Build a ScraperConfig from a loaded document.

    Raises:
        ConfigurationError: If the document is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Scraper config must contain a mapping")
    try:
        return ScraperConfig.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors
        )
        raise ConfigurationError(f"Invalid scraper config: {details}", {"errors": errors}) from e


def load_scraper_config(file_path: str) -> ScraperConfig:
    """
    Load a scraper config from a YAML or JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If the config is invalid
        yaml.YAMLError: If parsing fails
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    return parse_scraper_config(data)


def _nested_steps(step: WorkflowStep) -> List[Any]:
    if step.type == "loop":
        return list(step.config.get("steps") or [])
    if step.type == "condition":
        return list(step.config.get("then") or []) + list(step.config.get("else") or [])
    return []


def iter_steps(steps: List[Any], scope: str,
               warnings: List[str]) -> Iterator[Tuple[str, WorkflowStep]]:
    """Yield (scope, step) for every step, descending into loop / condition bodies."""
    for index, raw in enumerate(steps):
        if isinstance(raw, WorkflowStep):
            step = raw
        else:
            try:
                step = WorkflowStep.model_validate(raw)
            except ValidationError as e:
                warnings.append(f"{scope} step {index + 1} is invalid: {e.error_count()} error(s)")
                continue
        yield scope, step
        nested = _nested_steps(step)
        if nested:
            yield from iter_steps(nested, f"{scope} > {step.label(index)}", warnings)


def validate_scraper_config(config: ScraperConfig,
                            registry: Optional[ActionRegistry] = None) -> List[str]:
    """
    Validate a config and return a list of warnings (not errors).

    Args:
        config: Loaded scraper config
        registry: Registry used to check action types (built-ins by default)

    Returns:
        List of warning messages (empty if no warnings)
    """
    registry = registry or build_default_registry()
    workflow = config.workflow
    warnings: List[str] = []
    top_level_ids = {step.id for step in workflow.steps if step.id}
    outputs: Dict[str, str] = {}

    scopes: List[Tuple[str, List[Any]]] = [("workflow", list(workflow.steps))]
    scopes += [(f"subWorkflow {name}", list(sub.steps)) for name, sub in workflow.sub_workflows.items()]

    for root, steps in scopes:
        for scope, step in iter_steps(steps, root, warnings):
            label = f"{scope}: {step.label()}"

            if not registry.has(step.type):
                warnings.append(f"{label} uses unknown action type: {step.type}")

            if step.type == "navigate":
                url = str(step.config.get("url", ""))
                if url and not has_template_variables(url) and not url.startswith(("http://", "https://")):
                    warnings.append(f"{label} URL may be invalid (missing http/https): {url}")

            if step.type == "subWorkflow":
                name = step.config.get("name")
                if name and not has_template_variables(str(name)) and name not in workflow.sub_workflows:
                    warnings.append(f"{label} references undefined sub-workflow: {name}")

            if step.type == "pagination":
                for step_id in step.config.get("repeatSteps") or []:
                    if step_id not in top_level_ids:
                        warnings.append(f"{label} repeatSteps references unknown step id: {step_id}")

            if step.output and root == "workflow" and scope == root:
                if not is_exported_key(step.output):
                    warnings.append(f"{label} output key '{step.output}' is numeric and will not be exported")
                if step.output in outputs:
                    warnings.append(
                        f"{label} output key '{step.output}' overwrites {outputs[step.output]}"
                    )
                outputs[step.output] = label

    return warnings
