"""Environment-driven settings for the token harness."""

from dataclasses import dataclass
import os
import secrets

from ..shared.oauth_models import ClientConfiguration


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < 1:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


@dataclass(frozen=True)
class HarnessSettings:
    session_secret: str
    default_api_origin: str
    default_realm: str
    default_scope: str
    http_timeout: float
    host: str
    port: int
    session_idle_minutes: int = 60
    max_sessions: int = 1000

    def default_client_configuration(self) -> ClientConfiguration:
        """Configuration a new browser session starts with."""
        return ClientConfiguration(
            api_origin=self.default_api_origin,
            realm=self.default_realm,
            scope=self.default_scope,
        )


def load_settings() -> HarnessSettings:
    timeout_raw = _getenv("HARNESS_HTTP_TIMEOUT", "10")
    port_raw = _getenv("HARNESS_PORT", "3000")
    idle_raw = _getenv("HARNESS_SESSION_IDLE_MINUTES", "60")
    max_sessions_raw = _getenv("HARNESS_MAX_SESSIONS", "1000")

    try:
        http_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(f"HARNESS_HTTP_TIMEOUT must be a number (got {timeout_raw!r})") from None
    if http_timeout <= 0:
        raise ValueError(f"HARNESS_HTTP_TIMEOUT must be positive (got {timeout_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"HARNESS_PORT must be an integer (got {port_raw!r})") from None

    session_idle_minutes = _positive_int("HARNESS_SESSION_IDLE_MINUTES", idle_raw)
    max_sessions = _positive_int("HARNESS_MAX_SESSIONS", max_sessions_raw)

    return HarnessSettings(
        session_secret=_getenv("HARNESS_SESSION_SECRET", "") or secrets.token_urlsafe(32),
        default_api_origin=_getenv("HARNESS_DEFAULT_API_ORIGIN", "http://localhost:8080"),
        default_realm=_getenv("HARNESS_DEFAULT_REALM", "master"),
        default_scope=_getenv("HARNESS_DEFAULT_SCOPE", "openid"),
        http_timeout=http_timeout,
        host=_getenv("HARNESS_HOST", "0.0.0.0"),
        port=port,
        session_idle_minutes=session_idle_minutes,
        max_sessions=max_sessions,
    )
