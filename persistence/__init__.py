"""
Persistence layer for browser sessions.

Session snapshots (cookies and web storage) are kept as JSON files behind
the SessionStore protocol.
"""

from .session_store import JSONSessionStore, SessionStore

__all__ = ['JSONSessionStore', 'SessionStore']
