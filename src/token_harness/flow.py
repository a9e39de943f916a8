"""
Login flow across the redirect boundary.

The authorize step is a full-page navigation, so the flow is split in two
independent calls: begin_login() before leaving for the identity provider and
complete_login() when the browser comes back with ?code=...&state=...
"""

from typing import Mapping, Optional, Tuple

from ..shared.crypto_utils import constant_time_compare, generate_state
from ..shared.errors import AuthorizationError, ConfigurationError, StateMismatchError
from ..shared.oauth_models import ClientConfiguration
from ..shared.security import InputValidator
from .oidc import build_authorization_url
from .storage import HarnessSession


def is_redirect_return(params: Mapping[str, str]) -> bool:
    """True when query parameters look like a provider redirect."""
    return bool(params.get("code") or params.get("error"))


def begin_login(session: HarnessSession, config: ClientConfiguration) -> Tuple[str, str]:
    """
    Start a login attempt.

    Generates a fresh state, stores it with a snapshot of `config` in the
    session and clears previous results.

    Returns:
        Tuple[str, str]: (authorization_url, state)

    Raises:
        ConfigurationError: client_id or redirect_uri missing or malformed
    """
    session.reset_results()
    session.config = config

    if not config.client_id.strip():
        raise ConfigurationError("client_id is required")
    if not config.redirect_uri.strip():
        raise ConfigurationError("redirect_uri is required")
    if not InputValidator.validate_redirect_uri(config.redirect_uri):
        raise ConfigurationError(f"redirect_uri must be an absolute http(s) URL (got {config.redirect_uri!r})")
    if not InputValidator.validate_realm(config.realm):
        raise ConfigurationError(f"realm must be a single path segment (got {config.realm!r})")

    state = generate_state()
    authorization_url = build_authorization_url(config, state)

    session.pending_state = state
    session.config_at_auth = config

    return authorization_url, state


def complete_login(session: HarnessSession, params: Mapping[str, str]) -> Tuple[str, ClientConfiguration]:
    """
    Validate a provider redirect and return the code to exchange.

    The pending state and snapshot are consumed whatever the outcome, so a
    redirect can only be completed once.

    Returns:
        Tuple[str, ClientConfiguration]: (authorization code, configuration active at login start)

    Raises:
        AuthorizationError: The provider returned `error`
        StateMismatchError: No pending login, missing or different state, or no snapshot
    """
    expected_state = session.pending_state
    config_at_auth = session.config_at_auth
    session.clear_pending_login()

    error = params.get("error")
    if error:
        raise AuthorizationError(error, params.get("error_description"))

    if not expected_state:
        raise StateMismatchError("Missing expected state for this session; start login again.")

    returned_state: Optional[str] = params.get("state")
    if not returned_state or not constant_time_compare(returned_state, expected_state):
        raise StateMismatchError(
            f"State mismatch. expected={expected_state} got={returned_state or '(missing)'}"
        )

    if config_at_auth is None:
        raise StateMismatchError("No configuration snapshot from login start; start login again.")

    code = params.get("code")
    if not code:
        raise AuthorizationError("invalid_request", "Redirect carried no authorization code")

    return code, config_at_auth
