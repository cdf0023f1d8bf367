"""
Session Store - per-conversation mutable state.

A session is keyed by conversation identity (one per channel thread) and is
created lazily on first access. Stores work on whole states: callers read a
session, mutate a copy and write the entire copy back.
"""
import copy
import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from servicebot.core.logging import logger


@dataclass
class Session:
    """State of one conversation."""
    service: Optional[int] = None
    query: Dict[str, Any] = field(default_factory=dict)
    context: List[Dict[str, str]] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    def select_service(self, service_id: int) -> None:
        """Activate a service; query, context and data never outlive it."""
        self.service = service_id
        self.clear()

    def clear(self) -> None:
        """Reset per-service state. Settings are kept."""
        self.query = {}
        self.context = []
        self.data = {}

    def set_setting(self, key: str, value: Any) -> None:
        self.settings = {**self.settings, key: value}

    def copy(self) -> "Session":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "query": self.query,
            "context": self.context,
            "data": self.data,
            "settings": self.settings,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Session":
        return cls(
            service=raw.get("service"),
            query=dict(raw.get("query") or {}),
            context=list(raw.get("context") or []),
            data=dict(raw.get("data") or {}),
            settings=dict(raw.get("settings") or {}),
        )


class SessionStore(ABC):
    """Full-state get/put keyed by session id."""

    @abstractmethod
    def get_state(self, session_id: str) -> Session:
        """Return the session, creating an empty one on first access."""
        pass

    @abstractmethod
    def set_state(self, session_id: str, session: Session) -> None:
        """Replace the stored session with ``session``."""
        pass

    def session_ids(self) -> List[str]:
        return []


class InMemorySessionStore(SessionStore):
    """Process-lifetime store. States are copied in and out."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def get_state(self, session_id: str) -> Session:
        if session_id not in self._sessions:
            logger.debug(f"[Sessions] Creating session {session_id}")
            self._sessions[session_id] = Session()
        return self._sessions[session_id].copy()

    def set_state(self, session_id: str, session: Session) -> None:
        self._sessions[session_id] = session.copy()

    def session_ids(self) -> List[str]:
        return list(self._sessions)


class SqliteSessionStore(SessionStore):
    """Sessions persisted as JSON documents in a SQLite table."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize the sqlite session store."""
        if db_path is None:
            from servicebot.core.config import settings
            db_path = settings.sessions.path

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    state TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get_state(self, session_id: str) -> Session:
        with self._lock, sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT state FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        if row is None:
            logger.debug(f"[Sessions] Creating session {session_id}")
            return Session()
        return Session.from_dict(json.loads(row[0]))

    def set_state(self, session_id: str, session: Session) -> None:
        payload = json.dumps(session.to_dict())
        with self._lock, sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO sessions (session_id, state, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET state = excluded.state, updated_at = excluded.updated_at
                """,
                (session_id, payload, datetime.now().isoformat()),
            )
            conn.commit()

    def session_ids(self) -> List[str]:
        with self._lock, sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT session_id FROM sessions ORDER BY updated_at").fetchall()
        return [r[0] for r in rows]


def create_session_store(backend: Optional[str] = None) -> SessionStore:
    """Build the store selected in config (``memory`` or ``sqlite``)."""
    if backend is None:
        from servicebot.core.config import settings
        backend = settings.sessions.backend

    if backend == "sqlite":
        return SqliteSessionStore()
    if backend != "memory":
        logger.warning(f"[Sessions] Unknown backend '{backend}', using memory")
    return InMemorySessionStore()
