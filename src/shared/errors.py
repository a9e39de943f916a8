"""
Error taxonomy for the token harness.

Every failure raised by the OAuth client helper and the login flow derives from
HarnessError so the web layer can catch one type and show the message verbatim.
None of these errors are retried.
"""

import json
from typing import Any, Optional


class HarnessError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(HarnessError):
    """A caller-side precondition was violated before any network call."""


class TokenEndpointError(HarnessError):
    """
    Non-2xx response from an identity provider endpoint.

    Attributes:
        status_code: HTTP status returned by the provider
        detail: Parsed JSON body when the body was JSON, otherwise the raw text
    """

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(
            f"Token endpoint error (HTTP {status_code}):\n{self.detail_text}"
        )

    @property
    def detail_text(self) -> str:
        if isinstance(self.detail, str):
            return self.detail
        return json.dumps(self.detail, indent=2)

    @property
    def error_code(self) -> Optional[str]:
        """OAuth `error` field of the body, when the provider sent one."""
        if isinstance(self.detail, dict):
            return self.detail.get("error")
        return None


class NetworkError(HarnessError):
    """Transport-level failure (DNS, connection refused, timeout)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Network error calling {url}: {reason}")


class ProtocolError(HarnessError):
    """Success status whose body does not parse as the expected structure."""


class StateMismatchError(HarnessError):
    """The redirect's state does not match the state stored at login start."""


class AuthorizationError(HarnessError):
    """The identity provider redirected back with an OAuth error."""

    def __init__(self, error: str, error_description: Optional[str] = None):
        self.error = error
        self.error_description = error_description
        message = f"{error}: {error_description}" if error_description else error
        super().__init__(message)
