"""
Browser session snapshots.

Saves cookies, localStorage and sessionStorage of a page so a later run can
skip logging in again. Designed with a protocol so the JSON files can be
swapped for another backend.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import scraper_defaults
from error_handler import ConfigurationError

logger = logging.getLogger(__name__)

_SESSION_NAME_RE = re.compile(r"^[\w.-]+$")

READ_STORAGE_JS = """
(area) => {
    const items = {};
    for (let i = 0; i < window[area].length; i++) {
        const key = window[area].key(i);
        items[key] = window[area].getItem(key);
    }
    return items;
}
"""

WRITE_STORAGE_JS = """
([area, items]) => {
    for (const [key, value] of Object.entries(items)) window[area].setItem(key, value);
}
"""


class SessionStore(Protocol):
    """Storage interface for named browser session snapshots."""

    async def save_session(self, name: str, page: Any,
                           metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    async def restore_session(self, name: str, page: Any, navigate: bool = False) -> bool:
        ...

    def load_session(self, name: str) -> Optional[Dict[str, Any]]:
        ...

    def delete_session(self, name: str) -> bool:
        ...

    def list_sessions(self) -> List[str]:
        ...

    def has_session(self, name: str) -> bool:
        ...


class JSONSessionStore:
    """
    One JSON file per session under `session_dir`.

    Snapshots: {name, timestamp, url, cookies, localStorage, sessionStorage,
    metadata}.
    """

    def __init__(self, session_dir: str = scraper_defaults.SESSION_DIR):
        self.session_dir = Path(session_dir)
        self.session_dir.mkdir(parents=True, exist_ok=True)
        self.sessions: Dict[str, Dict[str, Any]] = {}

    def _path(self, name: str) -> Path:
        if not _SESSION_NAME_RE.match(name) or name.startswith("."):
            raise ConfigurationError(f"Invalid session name: {name!r}")
        return self.session_dir / f"{name}.json"

    async def save_session(self, name: str, page: Any,
                           metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Snapshot the page's cookies and storage and write it to disk."""
        path = self._path(name)
        session = {
            "name": name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "url": page.url,
            "cookies": await page.context.cookies(),
            "localStorage": await page.evaluate(READ_STORAGE_JS, "localStorage"),
            "sessionStorage": await page.evaluate(READ_STORAGE_JS, "sessionStorage"),
            "metadata": metadata or {},
        }
        path.write_text(json.dumps(session, indent=2), encoding="utf-8")
        self.sessions[name] = session
        logger.info(f"Session saved: {name} ({len(session['cookies'])} cookies)")
        return session

    async def restore_session(self, name: str, page: Any, navigate: bool = False) -> bool:
        """
        Apply a saved snapshot to `page`.

        Storage is origin-bound, so it is only written once the page is on the
        saved URL's origin; pass navigate=True to go there first.
        """
        session = self.sessions.get(name) or self.load_session(name)
        if session is None:
            raise ConfigurationError(f"Session not found: {name}")

        if session.get("cookies"):
            await page.context.add_cookies(session["cookies"])
        if navigate and session.get("url"):
            await page.goto(session["url"], wait_until="domcontentloaded")
        for area in ("localStorage", "sessionStorage"):
            if session.get(area):
                await page.evaluate(WRITE_STORAGE_JS, [area, session[area]])

        logger.info(f"Session restored: {name}")
        return True

    def load_session(self, name: str) -> Optional[Dict[str, Any]]:
        path = self._path(name)
        if not path.exists():
            logger.debug(f"Session file not found: {name}")
            return None
        with open(path, 'r', encoding='utf-8') as f:
            session = json.load(f)
        self.sessions[name] = session
        return session

    def delete_session(self, name: str) -> bool:
        path = self._path(name)
        self.sessions.pop(name, None)
        if path.exists():
            path.unlink()
            logger.info(f"Session deleted: {name}")
            return True
        return False

    def list_sessions(self) -> List[str]:
        return sorted(p.stem for p in self.session_dir.glob("*.json"))

    def has_session(self, name: str) -> bool:
        return name in self.sessions or self._path(name).exists()

    def clean_expired_sessions(self, max_age_seconds: int = scraper_defaults.SESSION_MAX_AGE_SECONDS,
                               now: Optional[datetime] = None) -> int:
        """Delete sessions older than max_age_seconds. Returns the number deleted."""
        now = now or datetime.now(timezone.utc)
        deleted = 0
        for name in self.list_sessions():
            try:
                session = self.load_session(name)
                saved_at = datetime.fromisoformat(session["timestamp"])
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable session {name}: {e}")
                continue
            if saved_at.tzinfo is None:
                saved_at = saved_at.replace(tzinfo=timezone.utc)
            if (now - saved_at).total_seconds() > max_age_seconds:
                self.delete_session(name)
                deleted += 1
        logger.info(f"Cleaned {deleted} expired session(s)")
        return deleted
