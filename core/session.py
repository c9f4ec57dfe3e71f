"""
Session Management for Use Cases.

Provides session context tracking across conversation turns.
This enables:
- Remembering which patient the conversation has identified
- Keeping a bounded history of recent turns
- Evicting conversations that have gone idle

Sessions are held in memory by an injected SessionManager rather than in
module-level maps, so their lifecycle is explicit and testable.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionContext:
    """
    Base session context that tracks conversation state.

    The session context is:
    - Scoped to a single conversation
    - Created on the first turn of that conversation
    - Evicted by the SessionManager after an idle period
    """
    # Identity
    conversation_id: str = ""

    # Patient identified in this conversation
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None

    # Recent messages, oldest first
    history: List[Dict[str, Any]] = field(default_factory=list)

    # Timestamps
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    clock: Callable[[], datetime] = field(default=_now, repr=False, compare=False)

    def set_patient(self, patient_id: str, patient_name: str):
        """Set the patient this conversation is about."""
        self.patient_id = patient_id
        self.patient_name = patient_name
        self._touch()

    def add_message(self, role: str, content: str, limit: int = 20):
        """Append a message, keeping only the most recent ``limit`` entries."""
        self.history.append({
            "role": role,
            "content": content,
            "timestamp": self.clock().isoformat(),
        })
        if limit > 0 and len(self.history) > limit:
            del self.history[:-limit]
        self._touch()

    def _touch(self, now: Optional[datetime] = None):
        """Update the timestamp."""
        self.updated_at = now or self.clock()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "conversation_id": self.conversation_id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "history": self.history,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class SessionManager:
    """
    Manages session contexts across conversations.

    This is a simple in-memory manager guarded by a lock. Idle sessions are
    swept lazily whenever a session is fetched or created.
    """

    def __init__(
        self,
        context_class: type = SessionContext,
        idle_timeout: timedelta = timedelta(hours=24),
        history_limit: int = 20,
        clock: Callable[[], datetime] = _now,
    ):
        """
        Initialize the session manager.

        Args:
            context_class: The SessionContext class to use (can be a subclass)
            idle_timeout: How long a session may go untouched before eviction
            history_limit: Maximum messages kept per session
            clock: Source of the current time
        """
        self._sessions: Dict[str, SessionContext] = {}
        self._context_class = context_class
        self._idle_timeout = idle_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self.history_limit = history_limit

    def get_or_create(self, conversation_id: str) -> SessionContext:
        """
        Get an existing session or create a new one, marking it active.

        Args:
            conversation_id: The conversation to get/create a session for

        Returns:
            The session context for this conversation
        """
        now = self._clock()
        with self._lock:
            self._expire_idle(now)
            session = self._sessions.get(conversation_id)
            if session is None:
                session = self._context_class(
                    conversation_id=conversation_id, created_at=now, clock=self._clock
                )
                self._sessions[conversation_id] = session
                logger.debug(f"Created new session for conversation {conversation_id}")
            session._touch(now)
            return session

    def get(self, conversation_id: str) -> Optional[SessionContext]:
        """
        Get an existing session.

        Args:
            conversation_id: The conversation ID

        Returns:
            The session context if it exists and has not expired, None otherwise
        """
        with self._lock:
            self._expire_idle(self._clock())
            return self._sessions.get(conversation_id)

    def clear(self, conversation_id: str):
        """Clear a session."""
        with self._lock:
            if self._sessions.pop(conversation_id, None) is not None:
                logger.debug(f"Cleared session for conversation {conversation_id}")

    def expire_idle(self) -> int:
        """Evict sessions idle longer than the timeout. Returns how many were evicted."""
        with self._lock:
            return self._expire_idle(self._clock())

    def _expire_idle(self, now: datetime) -> int:
        cutoff = now - self._idle_timeout
        expired = [cid for cid, s in self._sessions.items() if s.updated_at < cutoff]
        for cid in expired:
            del self._sessions[cid]
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s)")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        """Summary counts for the admin listing."""
        with self._lock:
            sessions = list(self._sessions.values())
        return {
            "active_sessions": len(sessions),
            "identified_patients": sum(1 for s in sessions if s.patient_id),
            "total_messages": sum(len(s.history) for s in sessions),
        }
