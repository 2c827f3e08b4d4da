from __future__ import annotations

from typing import Any, Optional

from .base import BaseAction, ms

TEXT_FIELD_TYPES = {
    "text", "email", "password", "number", "tel", "url", "search", "textarea",
    "date", "datetime-local", "time",
}

DETECT_FIELD_TYPE_JS = """
(sel) => {
    const el = document.querySelector(sel);
    if (!el) return 'text';
    const tag = el.tagName.toLowerCase();
    if (tag === 'select' || tag === 'textarea') return tag;
    if (tag === 'input') return (el.getAttribute('type') || 'text').toLowerCase();
    return 'text';
}
"""

VALIDATE_FORM_JS = """
(sel) => {
    const form = sel ? document.querySelector(sel) : document.querySelector('form');
    if (!form) return {valid: false, errors: ['Form not found']};
    const valid = form.checkValidity();
    const errors = [];
    if (!valid) {
        form.querySelectorAll('input, select, textarea').forEach(input => {
            if (!input.checkValidity()) {
                errors.push({name: input.name || input.id, message: input.validationMessage});
            }
        });
    }
    return {valid, errors};
}
"""

FORM_VALUES_JS = """
(sel) => {
    const form = sel ? document.querySelector(sel) : document.querySelector('form');
    if (!form) return {};
    const values = {};
    for (const [key, value] of new FormData(form).entries()) {
        if (key in values) {
            if (!Array.isArray(values[key])) values[key] = [values[key]];
            values[key].push(value);
        } else {
            values[key] = value;
        }
    }
    return values;
}
"""


def _scoped(form_selector: Optional[str], selector: str) -> str:
    return f"{form_selector} {selector}" if form_selector else selector


async def fill_field(page: Any, field_name: str, field_config: Any,
                     form_selector: Optional[str] = None) -> str:
    """Fill one form control and return the field type that was used."""
    if not isinstance(field_config, dict):
        field_config = {"value": field_config}

    selector = _scoped(form_selector, field_config.get("selector") or f'[name="{field_name}"]')
    value = field_config.get("value")
    field_type = field_config.get("type", "auto")

    if field_config.get("wait", True):
        await page.wait_for_selector(
            selector, state="visible", timeout=ms(field_config.get("timeout"), 5000)
        )
    if field_type == "auto":
        field_type = await page.evaluate(DETECT_FIELD_TYPE_JS, selector)

    locator = page.locator(selector).first
    if field_type == "select":
        await locator.select_option(value if isinstance(value, list) else [value])
    elif field_type == "checkbox":
        checked = await locator.is_checked()
        if value and not checked:
            await locator.check()
        elif not value and checked:
            await locator.uncheck()
    elif field_type == "radio":
        radio_selector = selector if "[value=" in selector else f'{selector}[value="{value}"]'
        await page.locator(radio_selector).first.check()
    elif field_type == "file":
        await locator.set_input_files(value if isinstance(value, list) else [value])
    else:
        await locator.fill("" if value is None else str(value))
    return field_type


async def validate_form(page: Any, form_selector: Optional[str] = None) -> dict[str, Any]:
    return await page.evaluate(VALIDATE_FORM_JS, form_selector)


async def get_form_values(page: Any, form_selector: Optional[str] = None) -> dict[str, Any]:
    """Current values of a form as submitted by the browser (FormData)."""
    return await page.evaluate(FORM_VALUES_JS, form_selector)


class FormAction(BaseAction):
    name = "form"
    description = "Fill, validate and submit a form"

    async def execute(self, page, config, context) -> dict[str, Any]:
        form_selector = config.get("formSelector")
        fields = config.get("fields") or {}
        submit = bool(config.get("submit", False))
        submit_selector = config.get("submitSelector", 'button[type="submit"]')
        wait_after_submit = ms(config.get("waitAfterSubmit"), 1000)
        log = context.logger

        result: dict[str, Any] = {"filled": [], "errors": [], "submitted": False}
        if form_selector:
            await page.wait_for_selector(form_selector, timeout=5000)

        for field_name, field_config in fields.items():
            try:
                await fill_field(page, field_name, field_config, form_selector)
                result["filled"].append(field_name)
                log.debug(f"Field filled: {field_name}")
            except Exception as e:
                log.warning(f"Failed to fill field {field_name}: {e}")
                result["errors"].append({"field": field_name, "error": str(e)})

        if submit and config.get("validateBefore", True):
            validation = await validate_form(page, form_selector)
            if not validation.get("valid"):
                log.warning(f"Form validation failed: {validation.get('errors')}")
                result["validationErrors"] = validation.get("errors", [])

        if submit:
            button = await page.query_selector(_scoped(form_selector, submit_selector))
            if button is not None:
                await button.click()
                result["submitted"] = True
                log.info("Form submitted")
                if wait_after_submit > 0:
                    await page.wait_for_timeout(wait_after_submit)
            else:
                log.warning(f"Submit button not found: {submit_selector}")

        log.info(f"Form action completed: {len(result['filled'])} fields filled, "
                 f"{len(result['errors'])} errors")
        return result
