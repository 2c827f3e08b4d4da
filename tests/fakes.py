"""
In-memory stand-ins for the parts of the Playwright async API the actions
and extractors use.

FakePage keeps a flat selector -> elements map; FakeElement keeps its own
map for selectors queried below it.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from actions import build_default_registry
from execution_context import ExecutionContext
from workflow_engine import Workflow
from workflow_models import ErrorHandlingConfig, WorkflowDefinition


class FakeFrame:
    def __init__(self, url: str):
        self.url = url


class FakeElement:
    def __init__(
        self,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
        html: str = "",
        children: Optional[Dict[str, List["FakeElement"]]] = None,
        classes: Optional[List[str]] = None,
        page: Optional["FakePage"] = None,
        text_error: Optional[Exception] = None,
        on_click: Optional[Callable[[], None]] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        self.html = html or text
        self.children = children or {}
        self.classes = classes or []
        self.page = page
        self.text_error = text_error
        self.on_click = on_click
        self.clicks = 0
        self.scrolled_by: List[int] = []

    async def inner_text(self) -> str:
        if self.text_error is not None:
            raise self.text_error
        return self.text

    async def text_content(self) -> str:
        if self.text_error is not None:
            raise self.text_error
        return self.text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if "outerHTML" in expression:
            return f"<div>{self.html}</div>"
        if "innerHTML" in expression:
            return self.html
        if "classList" in expression:
            return arg in self.classes or "disabled" in self.attrs
        if "scrollBy" in expression:
            self.scrolled_by.append(arg)
            return None
        return None

    async def query_selector(self, selector: str) -> Optional["FakeElement"]:
        matches = self.children.get(selector) or []
        return matches[0] if matches else None

    async def query_selector_all(self, selector: str) -> List["FakeElement"]:
        return list(self.children.get(selector) or [])

    async def click(self, **kwargs) -> None:
        self.clicks += 1
        if self.on_click is not None:
            self.on_click()

    async def scroll_into_view_if_needed(self) -> None:
        self.scrolled_by.append(0)

    async def owner_frame(self) -> Optional[FakeFrame]:
        return FakeFrame(self.page.url) if self.page is not None else None


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def _record(self, name: str, *args, **kwargs) -> None:
        self.page.calls.append((name, self.selector, args, kwargs))

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        self._record("wait_for", state=state, timeout=timeout)
        if not self.page.elements.get(self.selector):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def click(self, **kwargs) -> None:
        self._record("click", **kwargs)
        for element in self.page.elements.get(self.selector, [])[:1]:
            await element.click()

    async def fill(self, value: str) -> None:
        self._record("fill", value)
        if self.selector in self.page.fill_errors:
            raise self.page.fill_errors[self.selector]
        self.page.values[self.selector] = value

    async def press_sequentially(self, text: str, delay: float = 0) -> None:
        self._record("press_sequentially", text, delay=delay)
        self.page.values[self.selector] = text

    async def press(self, key: str) -> None:
        self._record("press", key)

    async def select_option(self, value: Any) -> List[str]:
        self._record("select_option", value)
        return value if isinstance(value, list) else [value]

    async def check(self) -> None:
        self._record("check")
        self.page.checked.add(self.selector)

    async def uncheck(self) -> None:
        self._record("uncheck")
        self.page.checked.discard(self.selector)

    async def is_checked(self) -> bool:
        return self.selector in self.page.checked

    async def set_input_files(self, files: Any) -> None:
        self._record("set_input_files", files)


class FakeResponse:
    def __init__(self, status: int = 200):
        self.status = status


class FakeApiResponse:
    def __init__(self, status: int = 200, body: str = "", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self.status_text = "OK" if status < 400 else "Error"
        self.ok = 200 <= status < 300
        self.headers = headers or {"content-type": "application/json"}
        self._body = body

    async def text(self) -> str:
        return self._body


class FakeRequestContext:
    def __init__(self, response: Optional[FakeApiResponse] = None):
        self.response = response or FakeApiResponse()
        self.requests: List[Dict[str, Any]] = []

    async def fetch(self, url: str, **kwargs) -> FakeApiResponse:
        self.requests.append({"url": url, **kwargs})
        return self.response


class FakeBrowserContext:
    def __init__(self):
        self._cookies: List[Dict[str, Any]] = []

    async def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self._cookies.extend(cookies)

    async def cookies(self) -> List[Dict[str, Any]]:
        return list(self._cookies)


class FakePage:
    """Page fake. `elements` maps selectors to the elements they match."""

    def __init__(
        self,
        elements: Optional[Dict[str, List[FakeElement]]] = None,
        url: str = "about:blank",
        title: str = "",
        statuses: Optional[Dict[str, int]] = None,
    ):
        self.elements: Dict[str, List[FakeElement]] = elements or {}
        self.url = url
        self.page_title = title
        self.statuses = statuses or {}
        self.calls: List[Any] = []
        self.values: Dict[str, Any] = {}
        self.checked: set = set()
        self.fill_errors: Dict[str, Exception] = {}
        self.waited: List[float] = []
        self.screenshots: List[str] = []
        self.evaluate_results: Dict[str, Any] = {}
        self.storage: Dict[str, Dict[str, str]] = {"localStorage": {}, "sessionStorage": {}}
        self.context = FakeBrowserContext()
        self.request: Optional[FakeRequestContext] = FakeRequestContext()
        self.on_goto: Optional[Callable[[str], None]] = None
        for matches in self.elements.values():
            for element in matches:
                element.page = self

    def add(self, selector: str, *elements: FakeElement) -> None:
        for element in elements:
            element.page = self
        self.elements.setdefault(selector, []).extend(elements)

    async def goto(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(("goto", url, kwargs))
        self.url = url
        if self.on_goto is not None:
            self.on_goto(url)
        return FakeResponse(self.statuses.get(url, 200))

    async def reload(self, **kwargs) -> FakeResponse:
        self.calls.append(("reload", kwargs))
        return FakeResponse(200)

    async def title(self) -> str:
        return self.page_title

    async def wait_for_selector(self, selector: str, state: str = "visible",
                                timeout: Optional[float] = None) -> FakeElement:
        self.calls.append(("wait_for_selector", selector, state, timeout))
        matches = self.elements.get(selector)
        if not matches:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return matches[0]

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waited.append(timeout)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        self.calls.append(("wait_for_load_state", state, timeout))

    async def wait_for_function(self, expression: str, timeout: Optional[float] = None) -> None:
        self.calls.append(("wait_for_function", expression, timeout))

    async def wait_for_url(self, url: str, timeout: Optional[float] = None) -> None:
        self.calls.append(("wait_for_url", url, timeout))

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", expression, arg))
        for marker, result in self.evaluate_results.items():
            if marker in expression:
                return result(arg) if callable(result) else result
        if "setItem" in expression:
            area, *rest = arg
            items = rest[0] if isinstance(rest[0], dict) else {rest[0]: rest[1]}
            self.storage[area].update(items)
            return None
        if "getItem" in expression:
            return dict(self.storage[arg])
        return None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def query_selector(self, selector: str) -> Optional[FakeElement]:
        matches = self.elements.get(selector) or []
        return matches[0] if matches else None

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        return list(self.elements.get(selector) or [])

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self.screenshots.append(path)
        return b""


class RecordingSleep:
    """Replaces asyncio.sleep in retry handling; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def quiet_error_handling(**overrides) -> ErrorHandlingConfig:
    """No retries and no screenshots unless a test asks for them."""
    values = {"retries": 0, "screenshot_on_error": False}
    values.update(overrides)
    return ErrorHandlingConfig(**values)


def make_workflow(definition: Any = None, **kwargs) -> Workflow:
    if definition is None:
        definition = WorkflowDefinition(name="test", steps=[])
    kwargs.setdefault("error_handling", quiet_error_handling())
    kwargs.setdefault("registry", build_default_registry(sleep=RecordingSleep()))
    return Workflow(definition, **kwargs)


def make_context(page: Optional[FakePage] = None, workflow: Optional[Workflow] = None,
                 **locals_) -> ExecutionContext:
    workflow = workflow or make_workflow()
    return ExecutionContext(
        workflow=workflow,
        page=page,
        logger=logging.getLogger("tests"),
        error_handling=workflow.error_handling,
        globals=workflow.global_context,
        locals=locals_,
    )
