"""
Unit tests for JSON session snapshots.
"""

import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from error_handler import ConfigurationError
from persistence import JSONSessionStore

from fakes import FakePage


class TestJSONSessionStore(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.store = JSONSessionStore(self.tmp.name)

    def logged_in_page(self):
        page = FakePage(url="https://shop.test/account")
        page.context._cookies.append({"name": "sid", "value": "abc", "domain": "shop.test", "path": "/"})
        page.storage["localStorage"]["authToken"] = "Bearer xyz"
        return page

    async def test_save_writes_snapshot(self):
        session = await self.store.save_session("shop", self.logged_in_page(), metadata={"user": "ann"})

        path = Path(self.tmp.name) / "shop.json"
        self.assertTrue(path.exists())
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(on_disk, session)
        self.assertEqual(on_disk["url"], "https://shop.test/account")
        self.assertEqual(on_disk["cookies"][0]["name"], "sid")
        self.assertEqual(on_disk["localStorage"], {"authToken": "Bearer xyz"})
        self.assertEqual(on_disk["sessionStorage"], {})
        self.assertEqual(on_disk["metadata"], {"user": "ann"})

    async def test_restore_into_fresh_page(self):
        await self.store.save_session("shop", self.logged_in_page())

        other = JSONSessionStore(self.tmp.name)
        page = FakePage()
        self.assertTrue(await other.restore_session("shop", page, navigate=True))

        self.assertEqual((await page.context.cookies())[0]["value"], "abc")
        self.assertEqual(page.url, "https://shop.test/account")
        self.assertEqual(page.storage["localStorage"], {"authToken": "Bearer xyz"})

    async def test_restore_missing(self):
        with self.assertRaises(ConfigurationError):
            await self.store.restore_session("nobody", FakePage())

    async def test_list_has_delete(self):
        await self.store.save_session("b", FakePage())
        await self.store.save_session("a", FakePage())

        self.assertEqual(self.store.list_sessions(), ["a", "b"])
        self.assertTrue(self.store.has_session("a"))
        self.assertTrue(self.store.delete_session("a"))
        self.assertFalse(self.store.delete_session("a"))
        self.assertFalse(self.store.has_session("a"))
        self.assertIsNone(self.store.load_session("a"))

    def test_invalid_names(self):
        for name in ("../etc", ".hidden", "a/b", ""):
            with self.assertRaises(ConfigurationError):
                self.store.has_session(name)

    async def test_clean_expired(self):
        await self.store.save_session("old", FakePage())
        await self.store.save_session("new", FakePage())
        (Path(self.tmp.name) / "broken.json").write_text("{not json", encoding="utf-8")

        old = self.store.load_session("old")
        old["timestamp"] = (datetime.now(timezone.utc) - timedelta(days=30)).isoformat()
        (Path(self.tmp.name) / "old.json").write_text(json.dumps(old), encoding="utf-8")

        deleted = self.store.clean_expired_sessions(max_age_seconds=7 * 24 * 3600)

        self.assertEqual(deleted, 1)
        self.assertEqual(self.store.list_sessions(), ["broken", "new"])


if __name__ == '__main__':
    unittest.main()
