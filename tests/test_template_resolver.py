"""
Unit tests for template resolution.
"""

import unittest

from template_resolver import (
    extract_variable_names,
    get_nested_value,
    has_template_variables,
    resolve_template,
    set_nested_value,
    to_template_string,
)


class TestGetNestedValue(unittest.TestCase):
    """Test dot-path lookups."""

    def test_nested_dicts(self):
        self.assertEqual(get_nested_value({"a": {"b": {"c": 1}}}, "a.b.c"), 1)

    def test_list_index(self):
        """Integer segments index into lists."""
        data = {"products": [{"name": "x"}, {"name": "y"}]}
        self.assertEqual(get_nested_value(data, "products.1.name"), "y")

    def test_missing_path_returns_none(self):
        self.assertIsNone(get_nested_value({"a": 1}, "a.b"))
        self.assertIsNone(get_nested_value({"a": [1]}, "a.5"))
        self.assertIsNone(get_nested_value({"a": [1]}, "a.first"))
        self.assertIsNone(get_nested_value(None, "a"))
        self.assertIsNone(get_nested_value({"a": 1}, ""))


class TestSetNestedValue(unittest.TestCase):

    def test_creates_intermediate_dicts(self):
        data = {}
        set_nested_value(data, "a.b.c", 3)
        self.assertEqual(data, {"a": {"b": {"c": 3}}})


class TestResolveTemplate(unittest.TestCase):
    """Test deep placeholder resolution."""

    def test_string_substitution_trims_path(self):
        result = resolve_template("https://x.test/{{ user.id }}/{{user.name}}", {"user": {"id": 7, "name": "bo"}})
        self.assertEqual(result, "https://x.test/7/bo")

    def test_missing_value_becomes_empty_string(self):
        self.assertEqual(resolve_template("a{{missing.path}}b", {}), "ab")
        self.assertEqual(resolve_template("{{x}}", {"x": None}), "")

    def test_never_raises_on_empty_context(self):
        value = {"a": ["{{b}}", {"c": "{{d.e.f}}"}], "n": 3}
        self.assertEqual(resolve_template(value, None), {"a": ["", {"c": ""}], "n": 3})

    def test_recurses_lists_and_dicts_preserving_shape(self):
        value = {"url": "{{base}}/p", "tags": ["{{t}}", "fixed"], "nested": {"k": "{{t}}"}}
        result = resolve_template(value, {"base": "https://x", "t": "tag"})
        self.assertEqual(result, {"url": "https://x/p", "tags": ["tag", "fixed"], "nested": {"k": "tag"}})

    def test_non_string_primitives_unchanged(self):
        for value in (1, 2.5, True, None):
            self.assertEqual(resolve_template(value, {"a": 1}), value)

    def test_single_pass_only(self):
        """Substituted text containing placeholders is not resolved again."""
        result = resolve_template("{{a}}", {"a": "{{b}}", "b": "deep"})
        self.assertEqual(result, "{{b}}")

    def test_idempotent_on_clean_output(self):
        ctx = {"a": "x"}
        once = resolve_template({"k": "{{a}}-y"}, ctx)
        self.assertEqual(resolve_template(once, ctx), once)

    def test_string_forms(self):
        self.assertEqual(to_template_string(True), "true")
        self.assertEqual(to_template_string(3.0), "3")
        self.assertEqual(to_template_string([1, 2]), "[1, 2]")
        self.assertEqual(to_template_string(None), "")


class TestTemplateHelpers(unittest.TestCase):

    def test_has_template_variables(self):
        self.assertTrue(has_template_variables("go {{url}}"))
        self.assertFalse(has_template_variables("plain"))
        self.assertFalse(has_template_variables(5))

    def test_extract_variable_names(self):
        self.assertEqual(extract_variable_names("{{ a.b }} and {{c}}"), ["a.b", "c"])


if __name__ == '__main__':
    unittest.main()
