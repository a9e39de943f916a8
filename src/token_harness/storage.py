"""
In-memory session storage for the token harness.

Each browser session gets a HarnessSession record holding what the browser tool
kept in local/session storage: the saved configuration, the pending CSRF state
with the configuration snapshot taken at login start, and the latest tokens and
introspection result. The signed session cookie only carries the record id, so
large tokens never hit cookie size limits.

Records live in process memory; restarting the harness drops them. Sessions
idle for longer than the store's idle timeout are removed, and the store never
holds more than `max_sessions` records: creating one more evicts the least
recently seen.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import secrets

from ..shared.oauth_models import ClientConfiguration, IntrospectionResult, TokenResponse
from ..shared.logging_utils import OAuthLogger

logger = OAuthLogger("HARNESS-STORAGE")

DEFAULT_IDLE_TIMEOUT = timedelta(hours=1)
DEFAULT_MAX_SESSIONS = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class HarnessSession:
    """Per-browser state for one harness user."""
    session_id: str
    config: ClientConfiguration = field(default_factory=ClientConfiguration)
    pending_state: Optional[str] = None
    config_at_auth: Optional[ClientConfiguration] = None
    token: Optional[TokenResponse] = None
    introspection: Optional[IntrospectionResult] = None
    error: Optional[str] = None
    last_seen: datetime = field(default_factory=_utcnow)

    def reset_results(self):
        """Forget tokens, introspection and the last error."""
        self.token = None
        self.introspection = None
        self.error = None

    def clear_pending_login(self):
        """Drop the pending state and its configuration snapshot."""
        self.pending_state = None
        self.config_at_auth = None


class SessionStore:
    """
    Process-local map of session id to HarnessSession.

    Every lookup refreshes the session's `last_seen`; expired sessions are
    purged whenever a new one is created.
    """

    def __init__(self, default_config: Optional[ClientConfiguration] = None,
                 idle_timeout: timedelta = DEFAULT_IDLE_TIMEOUT,
                 max_sessions: int = DEFAULT_MAX_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._sessions: Dict[str, HarnessSession] = {}
        self._default_config = default_config or ClientConfiguration()
        self.idle_timeout = idle_timeout
        self.max_sessions = max_sessions

    @property
    def default_config(self) -> ClientConfiguration:
        """Configuration new sessions start with."""
        return self._default_config

    def _is_expired(self, session: HarnessSession, now: datetime) -> bool:
        return now - session.last_seen > self.idle_timeout

    def create(self) -> HarnessSession:
        """Create a fresh session seeded with the default configuration."""
        self.cleanup_expired_sessions()

        evicted = 0
        while len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.last_seen)
            del self._sessions[oldest.session_id]
            evicted += 1

        session = HarnessSession(
            session_id=secrets.token_urlsafe(24),
            config=self._default_config,
        )
        self._sessions[session.session_id] = session

        logger.log_oauth_message(
            "HARNESS", "HARNESS-STORAGE",
            "Session Created",
            {
                "session_id": session.session_id,
                "active_sessions": len(self._sessions),
                "evicted_sessions": evicted
            }
        )
        return session

    def get(self, session_id: Optional[str]) -> Optional[HarnessSession]:
        """Return a live session and mark it as seen; expired ones are dropped."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None

        now = _utcnow()
        if self._is_expired(session, now):
            del self._sessions[session_id]
            return None

        session.last_seen = now
        return session

    def get_or_create(self, session_id: Optional[str]) -> HarnessSession:
        """Return the session for `session_id`, creating one if unknown."""
        return self.get(session_id) or self.create()

    def cleanup_expired_sessions(self) -> int:
        """
        Remove sessions idle for longer than the idle timeout.

        Returns:
            int: Number of sessions removed
        """
        now = _utcnow()
        expired = [
            session_id for session_id, session in self._sessions.items()
            if self._is_expired(session, now)
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.log_oauth_message(
                "HARNESS-STORAGE", "HARNESS-STORAGE",
                "Expired Sessions Removed",
                {
                    "removed_sessions": len(expired),
                    "active_sessions": len(self._sessions)
                }
            )
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
