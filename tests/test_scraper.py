"""
Unit tests for the scraper runner helpers.
"""

import unittest

from scraper import Scraper, prepare_export_data
from workflow_models import ScraperConfig


class TestPrepareExportData(unittest.TestCase):

    def test_empty(self):
        self.assertEqual(prepare_export_data({}), {})

    def test_single_list_is_unwrapped(self):
        self.assertEqual(prepare_export_data({"products": [{"a": 1}]}), [{"a": 1}])

    def test_numeric_keys_dropped(self):
        self.assertEqual(prepare_export_data({"0": "tmp", "products": [1, 2]}), [1, 2])

    def test_objects_merged(self):
        self.assertEqual(
            prepare_export_data({"meta": {"title": "Shop"}, "stats": {"count": 2}}),
            {"title": "Shop", "count": 2},
        )

    def test_mixed_values_concatenated(self):
        self.assertEqual(prepare_export_data({"a": [1, 2], "b": 3}), [1, 2, 3])


class TestScraper(unittest.IsolatedAsyncioTestCase):

    async def test_run_requires_initialize(self):
        scraper = Scraper(ScraperConfig.model_validate({"steps": []}))
        with self.assertRaises(RuntimeError):
            await scraper.run()

    async def test_close_without_browser(self):
        scraper = Scraper(ScraperConfig.model_validate({"steps": []}))
        await scraper.close()
        self.assertIsNone(scraper.browser)


if __name__ == '__main__':
    unittest.main()
