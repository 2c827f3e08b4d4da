"""
Workflow data models.

Defines the JSON/YAML structure of scraper documents, workflows and steps.
Documents use camelCase keys; the models expose snake_case attributes with
the document names as aliases.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

import scraper_defaults


class RetryConfig(BaseModel):
    """Step-level retry override. Unset fields fall through to errorHandling."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    retries: Optional[int] = Field(None, ge=0)
    retry_delay: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("delay", "retryDelay", "retry_delay")
    )
    backoff_multiplier: Optional[float] = Field(None, gt=0, alias="backoffMultiplier")
    max_retry_delay: Optional[int] = Field(None, ge=0, alias="maxRetryDelay")
    continue_on_error: Optional[bool] = Field(None, alias="continueOnError")
    screenshot_on_error: Optional[bool] = Field(None, alias="screenshotOnError")


class WorkflowStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    type: str  # e.g. "navigate", "click", "extract", "loop", ...
    config: dict[str, Any] = Field(default_factory=dict)
    output: Optional[str] = None  # exported result key
    save_as: Optional[str] = Field(None, alias="saveAs")  # internal-only key
    retry: Optional[RetryConfig] = None
    timeout: Optional[int] = Field(None, ge=0)
    continue_on_error: bool = Field(False, alias="continueOnError")
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _config_defaults_to_empty(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("config") is None:
            data = {**data, "config": {}}
        return data

    def label(self, index: int | None = None) -> str:
        if self.name or self.id:
            return self.name or self.id
        if index is not None:
            return f"step-{index + 1}"
        return self.type


class SubWorkflowDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    steps: list[WorkflowStep]
    continue_on_error: Optional[bool] = Field(None, alias="continueOnError")
    description: str = ""


class WorkflowDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = "unnamed"
    description: str = ""
    steps: list[WorkflowStep]
    continue_on_error: bool = Field(False, alias="continueOnError")
    sub_workflows: dict[str, SubWorkflowDefinition] = Field(
        default_factory=dict, alias="subWorkflows"
    )


class ErrorHandlingConfig(BaseModel):
    """Workflow-wide retry policy defaults."""

    model_config = ConfigDict(populate_by_name=True)

    retries: int = Field(scraper_defaults.DEFAULT_RETRIES, ge=0)
    retry_delay: int = Field(scraper_defaults.DEFAULT_RETRY_DELAY, ge=0, alias="retryDelay")
    backoff_multiplier: float = Field(
        scraper_defaults.DEFAULT_BACKOFF_MULTIPLIER, gt=0, alias="backoffMultiplier"
    )
    max_retry_delay: int = Field(
        scraper_defaults.DEFAULT_MAX_RETRY_DELAY, ge=0, alias="maxRetryDelay"
    )
    continue_on_error: bool = Field(
        scraper_defaults.DEFAULT_CONTINUE_ON_ERROR, alias="continueOnError"
    )
    screenshot_on_error: bool = Field(
        scraper_defaults.DEFAULT_SCREENSHOT_ON_ERROR, alias="screenshotOnError"
    )
    screenshot_path: str = Field(scraper_defaults.SCREENSHOT_DIR, alias="screenshotPath")


class ResourceBlockingConfig(BaseModel):
    enabled: bool = False
    types: list[str] = Field(
        default_factory=lambda: list(scraper_defaults.BLOCKED_RESOURCE_TYPES)
    )
    domains: list[str] = Field(default_factory=list)


class BrowserConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    browser_type: str = Field(scraper_defaults.BROWSER_TYPE, alias="browserType")
    headless: bool = scraper_defaults.HEADLESS
    slow_mo: int = Field(0, ge=0, alias="slowMo")
    timeout: int = Field(scraper_defaults.DEFAULT_TIMEOUT, ge=0)
    args: list[str] = Field(default_factory=lambda: list(scraper_defaults.BROWSER_ARGS))
    viewport: dict[str, int] = Field(default_factory=lambda: dict(scraper_defaults.VIEWPORT))
    user_agent: Optional[str] = Field(scraper_defaults.USER_AGENT, alias="userAgent")
    locale: str = "en-US"
    timezone_id: Optional[str] = Field(None, alias="timezoneId")
    ignore_https_errors: bool = Field(False, alias="ignoreHTTPSErrors")
    resource_blocking: ResourceBlockingConfig = Field(
        default_factory=ResourceBlockingConfig, alias="resourceBlocking"
    )
    max_pool_size: int = Field(scraper_defaults.MAX_POOL_SIZE, ge=0, alias="maxPoolSize")


class ScraperConfig(BaseModel):
    """Top-level scraper document: browser + error handling + one workflow."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = "scraper"
    description: str = ""
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    error_handling: ErrorHandlingConfig = Field(
        default_factory=ErrorHandlingConfig, alias="errorHandling"
    )
    target: dict[str, Any] = Field(default_factory=dict)
    workflow: WorkflowDefinition

    @model_validator(mode="before")
    @classmethod
    def _accept_workflow_shapes(cls, data: Any) -> Any:
        """Accept `workflow`, `workflows[0]`, or a bare workflow document."""
        if not isinstance(data, dict) or "workflow" in data:
            return data
        data = dict(data)
        workflows = data.pop("workflows", None)
        if isinstance(workflows, list) and workflows:
            data["workflow"] = workflows[0]
        elif "steps" in data:
            data["workflow"] = {
                "name": data.get("name", "unnamed"),
                "description": data.get("description", ""),
                "steps": data.pop("steps"),
                "continueOnError": data.pop("continueOnError", False),
                "subWorkflows": data.pop("subWorkflows", {}),
            }
        return data
