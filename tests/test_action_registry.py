"""
Unit tests for action dispatch, timeouts and nested step execution.
"""

import asyncio
import unittest

from actions import build_default_registry
from actions.base import BaseAction, ms, require
from actions.registry import ActionRegistry, StepRunner, coerce_step, prepare_step_config
from error_handler import (
    ActionTimeoutError,
    ConfigurationError,
    UnknownActionTypeError,
    WorkflowCancelledError,
)
from workflow_models import WorkflowStep

from fakes import FakePage, RecordingSleep, make_context, make_workflow, quiet_error_handling


class EchoAction(BaseAction):
    name = "echo"

    def __init__(self):
        self.configs = []

    async def execute(self, page, config, context):
        self.configs.append(config)
        return config.get("value")


class SlowAction(BaseAction):
    name = "slow"

    async def execute(self, page, config, context):
        await asyncio.sleep(1)
        return "late"


class FlakyAction(BaseAction):
    name = "flaky"

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    async def execute(self, page, config, context):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return "ok"


class TestRegistration(unittest.TestCase):

    def test_default_registry_has_all_actions(self):
        registry = build_default_registry()
        self.assertEqual(
            set(registry.names()),
            {"navigate", "click", "wait", "scroll", "input", "api", "form", "login",
             "extract", "pagination", "loop", "condition", "subWorkflow"},
        )

    def test_register_requires_execute(self):
        registry = ActionRegistry()
        with self.assertRaises(ConfigurationError):
            registry.register("bad", object())

    def test_register_replaces_existing(self):
        registry = ActionRegistry()
        first, second = EchoAction(), EchoAction()
        registry.register("echo", first)
        registry.register("echo", second)
        self.assertIs(registry.get("echo"), second)
        self.assertTrue(registry.has("echo"))
        self.assertFalse(registry.has("missing"))


class TestHelpers(unittest.TestCase):

    def test_require(self):
        self.assertEqual(require({"url": "x"}, "url", "navigate"), "x")
        for config in ({}, {"url": ""}, {"url": None}):
            with self.assertRaises(ConfigurationError):
                require(config, "url", "navigate")

    def test_ms(self):
        self.assertEqual(ms(None, 500), 500)
        self.assertEqual(ms("250", 500), 250)
        self.assertEqual(ms(0, 500), 0)
        with self.assertRaises(ConfigurationError):
            ms("soon", 500)

    def test_coerce_step(self):
        step = coerce_step({"type": "click", "config": {"selector": "a"}})
        self.assertEqual(step.config, {"selector": "a"})
        with self.assertRaises(ConfigurationError):
            coerce_step("click")

    def test_control_flow_configs_are_not_resolved(self):
        loop = WorkflowStep(type="loop", config={"items": "{{rows}}"})
        click = WorkflowStep(type="click", config={"selector": "{{sel}}"})
        ctx = {"rows": [1, 2], "sel": "#go"}
        self.assertEqual(prepare_step_config(loop, ctx), {"items": "{{rows}}"})
        self.assertEqual(prepare_step_config(click, ctx), {"selector": "#go"})


class TestExecuteAction(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.sleep = RecordingSleep()
        self.registry = ActionRegistry(sleep=self.sleep)
        self.context = make_context(FakePage())

    async def test_unknown_type(self):
        step = WorkflowStep(type="teleport")
        with self.assertRaises(UnknownActionTypeError) as ctx:
            await self.registry.execute_action(None, step, self.context)
        self.assertEqual(ctx.exception.action_type, "teleport")

    async def test_literal_config_used_by_default(self):
        echo = self.registry.register("echo", EchoAction())
        step = WorkflowStep(type="echo", config={"value": 7})
        self.assertEqual(await self.registry.execute_action(None, step, self.context), 7)
        self.assertEqual(echo.configs, [{"value": 7}])

    async def test_timeout_race(self):
        self.registry.register("slow", SlowAction())
        step = WorkflowStep(type="slow", timeout=50)
        with self.assertRaises(ActionTimeoutError) as ctx:
            await self.registry.execute_action(None, step, self.context)
        self.assertEqual(ctx.exception.timeout, 50)

    async def test_timeout_from_config(self):
        self.registry.register("slow", SlowAction())
        step = WorkflowStep(type="slow", config={"timeout": 30})
        with self.assertRaises(ActionTimeoutError):
            await self.registry.execute_action(None, step, self.context)

    async def test_retries_use_error_handling(self):
        flaky = self.registry.register("flaky", FlakyAction(failures=2))
        context = make_context(
            FakePage(),
            make_workflow(error_handling=quiet_error_handling(retries=2, retry_delay=100)),
        )
        result = await self.registry.execute_action(None, WorkflowStep(type="flaky"), context)
        self.assertEqual(result, "ok")
        self.assertEqual(flaky.calls, 3)
        self.assertEqual(self.sleep.delays, [0.1, 0.2])

    async def test_step_retry_override(self):
        flaky = self.registry.register("flaky", FlakyAction(failures=5))
        step = WorkflowStep(type="flaky", retry={"retries": 1, "delay": 10})
        with self.assertRaises(RuntimeError):
            await self.registry.execute_action(None, step, self.context)
        self.assertEqual(flaky.calls, 2)


class TestStepRunner(unittest.IsolatedAsyncioTestCase):

    async def test_outputs_and_scope_variables(self):
        registry = ActionRegistry(sleep=RecordingSleep())
        echo = registry.register("echo", EchoAction())
        runner = StepRunner(registry)
        context = make_context(FakePage(), item="apple")

        results = await runner.run_steps(None, [
            {"type": "echo", "config": {"value": "{{item}}"}, "output": "first"},
            {"type": "echo", "config": {"value": "{{first}}-2"}, "saveAs": "second"},
            {"type": "echo", "config": {"value": "{{second}}-3"}, "output": "third"},
        ], context)

        self.assertEqual(results, {"first": "apple", "third": "apple-2-3"})
        self.assertEqual([c["value"] for c in echo.configs], ["apple", "apple-2", "apple-2-3"])

    async def test_cancelled_before_step(self):
        registry = ActionRegistry()
        registry.register("echo", EchoAction())
        workflow = make_workflow()
        workflow.cancel()
        with self.assertRaises(WorkflowCancelledError):
            await StepRunner(registry).run_steps(None, [{"type": "echo"}], make_context(None, workflow))


if __name__ == '__main__':
    unittest.main()
