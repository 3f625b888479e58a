"""
Nitya Proxy - Session Manager
Tracks whether a prospect is starting fresh or resuming a saved conversation.
"""

import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from core.logger import log_info
from memory.prospect_store import ProspectStore, utc_timestamp


@dataclass
class Session:
    """In-memory session state for one prospect."""
    user_id: str
    created_at: str
    last_activity_at: str
    message_count: int = 0
    is_resumed: bool = False

    @property
    def session_type(self) -> str:
        return "resumed" if self.is_resumed else "new"


class SessionManager:
    """
    Caches per-prospect session info derived from conversation.json.

    The first lookup for a prospect reads its saved conversation; later
    lookups are served from memory until clear_cache() is called.
    """

    def __init__(self, store: ProspectStore):
        self._store = store
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def get_session(self, user_id: str) -> Session:
        """
        Get or create the session for a prospect.

        Args:
            user_id: Prospect identifier

        Returns:
            Cached or freshly loaded Session
        """
        with self._lock:
            session = self._sessions.get(user_id)
            if session is not None:
                return session

        conversation = self._store.load_conversation(user_id)
        messages = conversation.get("messages") or []
        now = utc_timestamp()

        session = Session(
            user_id=user_id,
            created_at=conversation.get("createdAt") or now,
            last_activity_at=now,
            message_count=len(messages),
            is_resumed=len(messages) > 0
        )

        with self._lock:
            # Another request may have loaded it meanwhile; keep the first
            session = self._sessions.setdefault(user_id, session)

        log_info(f"Session for {user_id} (resumed: {session.is_resumed})", prefix="🔐")
        return session

    def touch(self, user_id: str) -> None:
        """Update the activity timestamp of a cached session."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session:
                session.last_activity_at = utc_timestamp()

    def is_resumed(self, user_id: str) -> bool:
        return self.get_session(user_id).is_resumed

    def get_session_context(self, user_id: str) -> Dict[str, Any]:
        """
        Context dict for prompt building.

        Returns:
            Dict with userId, sessionType ("new"/"resumed"), messageCount,
            createdAt and lastActivityAt
        """
        session = self.get_session(user_id)
        return {
            "userId": user_id,
            "sessionType": session.session_type,
            "messageCount": session.message_count,
            "createdAt": session.created_at,
            "lastActivityAt": session.last_activity_at,
        }

    def clear_cache(self, user_id: Optional[str] = None) -> None:
        """Drop cached sessions (one prospect, or all) so the next lookup reloads."""
        with self._lock:
            if user_id:
                self._sessions.pop(user_id, None)
            else:
                self._sessions.clear()

    def get_active_sessions(self) -> List[Dict[str, Any]]:
        """Snapshot of all cached sessions."""
        with self._lock:
            return [asdict(session) for session in self._sessions.values()]
