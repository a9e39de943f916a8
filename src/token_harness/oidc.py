"""
OAuth client helper for OpenID Connect realm endpoints.

Builds the authorization URL and performs the three back-channel calls the
harness needs: authorization code exchange, refresh, and token introspection.
The helper holds no state and does no logging; configuration is passed in on
every call and each network operation issues exactly one request.
"""

from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote
import json

import httpx
from pydantic import ValidationError

from ..shared.crypto_utils import basic_auth_header_value
from ..shared.errors import ConfigurationError, NetworkError, ProtocolError, TokenEndpointError
from ..shared.oauth_models import (
    ClientConfiguration,
    GrantType,
    IntrospectionResult,
    ResponseType,
    TokenResponse,
    TokenTypeHint,
)

DEFAULT_TIMEOUT = 10.0

AUTHORIZE_SUFFIX = "protocol/openid-connect/auth"
TOKEN_SUFFIX = "protocol/openid-connect/token"
INTROSPECT_SUFFIX = "protocol/openid-connect/token/introspect"


def _normalize_root_path(root_path: str) -> str:
    path = root_path.strip()
    if not path or path == "/":
        return ""
    if not path.startswith("/"):
        path = f"/{path}"
    return path.rstrip("/")


def compute_base_url(origin: str, root_path: str) -> str:
    """
    Join the provider origin with an optional API root path.

    Examples:
        compute_base_url("http://idp:8080/", "")      # http://idp:8080
        compute_base_url("http://idp:8080", "api/")   # http://idp:8080/api
    """
    return f"{origin.rstrip('/')}{_normalize_root_path(root_path)}"


def realm_endpoint(config: ClientConfiguration, suffix: str) -> str:
    """Absolute URL of a realm-scoped endpoint, realm encoded as one path segment."""
    base = compute_base_url(config.api_origin, config.root_path)
    return f"{base}/realms/{quote(config.realm, safe='')}/{suffix}"


def request_endpoint(config: ClientConfiguration, suffix: str) -> str:
    """
    Realm endpoint a request is sent to, checked to be an absolute http(s) URL.

    Raises:
        ConfigurationError: If the configured origin does not form an absolute URL
    """
    endpoint = realm_endpoint(config, suffix)
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as e:
        raise ConfigurationError(
            f"API origin must be an absolute http(s) URL (got {config.api_origin!r}): {e}"
        ) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"API origin must be an absolute http(s) URL (got {config.api_origin!r})"
        )
    return endpoint


def computed_endpoints(config: ClientConfiguration) -> Dict[str, str]:
    """Endpoints derived from a configuration, for display."""
    return {
        "base": compute_base_url(config.api_origin, config.root_path),
        "authorize": realm_endpoint(config, AUTHORIZE_SUFFIX),
        "token": realm_endpoint(config, TOKEN_SUFFIX),
        "introspect": realm_endpoint(config, INTROSPECT_SUFFIX),
    }


def build_authorization_url(config: ClientConfiguration, state: str) -> str:
    """
    Build the authorization request URL the browser is sent to.

    The caller generates and stores `state`; this function only places it in
    the query. `scope` is sent trimmed, and only when non-blank.

    Raises:
        ConfigurationError: If the configured origin does not form an absolute URL
    """
    endpoint = request_endpoint(config, AUTHORIZE_SUFFIX)

    params = {
        "response_type": ResponseType.CODE.value,
        "client_id": config.client_id,
        "redirect_uri": config.redirect_uri,
        "state": state,
    }
    scope = config.scope.strip()
    if scope:
        params["scope"] = scope

    try:
        url = httpx.URL(endpoint, params=params)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid authorization URL {endpoint!r}: {e}") from e

    return str(url)


def build_form(fields: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """
    Drop fields whose value is None or the empty string.

    Providers treat an empty parameter differently from an absent one, so an
    empty-string field is never sent.
    """
    return {key: value for key, value in fields.items() if value is not None and value != ""}


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


async def post_form(
    url: str,
    fields: Mapping[str, Optional[str]],
    headers: Optional[Dict[str, str]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """
    POST an application/x-www-form-urlencoded body and return the parsed JSON.

    Args:
        url: Endpoint URL
        fields: Form fields; None and "" values are omitted
        headers: Extra request headers
        http_client: Client to use; a short-lived one is created when omitted

    Returns:
        Any: Decoded JSON body of a 2xx response

    Raises:
        TokenEndpointError: Non-2xx status; detail is JSON when parseable, else text
        NetworkError: Transport failure
        ProtocolError: 2xx status with a body that is not JSON
    """
    request_headers = {"Content-Type": "application/x-www-form-urlencoded"}
    if headers:
        request_headers.update(headers)
    data = build_form(fields)

    try:
        if http_client is None:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
                response = await client.post(url, data=data, headers=request_headers)
        else:
            response = await http_client.post(url, data=data, headers=request_headers)
    except httpx.TransportError as e:
        raise NetworkError(url, str(e) or e.__class__.__name__) from e

    text = response.text
    payload = _parse_body(text)

    if not response.is_success:
        raise TokenEndpointError(response.status_code, payload if payload is not None else text)

    if payload is None:
        raise ProtocolError(
            f"Expected a JSON body from {url} (HTTP {response.status_code}), got: {text[:200]!r}"
        )

    return payload


def _parse_model(model, payload: Any, url: str):
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolError(f"Unexpected response shape from {url}:\n{e}") from e


async def exchange_code_for_token(
    config: ClientConfiguration,
    code: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TokenResponse:
    """Exchange an authorization code for tokens."""
    url = request_endpoint(config, TOKEN_SUFFIX)
    payload = await post_form(
        url,
        {
            "grant_type": GrantType.AUTHORIZATION_CODE.value,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "code": code,
        },
        http_client=http_client,
    )
    return _parse_model(TokenResponse, payload, url)


async def refresh_token(
    config: ClientConfiguration,
    refresh_token_value: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TokenResponse:
    """Obtain new tokens with a refresh token. Scope is re-sent when configured."""
    url = request_endpoint(config, TOKEN_SUFFIX)
    payload = await post_form(
        url,
        {
            "grant_type": GrantType.REFRESH_TOKEN.value,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "refresh_token": refresh_token_value,
            "scope": config.scope.strip(),
        },
        http_client=http_client,
    )
    return _parse_model(TokenResponse, payload, url)


async def introspect_token(
    config: ClientConfiguration,
    token: str,
    token_type_hint: TokenTypeHint = TokenTypeHint.ACCESS_TOKEN,
    http_client: Optional[httpx.AsyncClient] = None,
) -> IntrospectionResult:
    """
    Ask the provider whether a token is active.

    Introspection is authenticated with HTTP Basic client credentials, so it
    needs a confidential client. `active: false` is returned, not raised.

    Raises:
        ConfigurationError: client_id or client_secret is blank; no request is made
    """
    if not config.is_confidential:
        raise ConfigurationError(
            "Introspection requires a confidential client: set client_id and client_secret."
        )

    url = request_endpoint(config, INTROSPECT_SUFFIX)
    payload = await post_form(
        url,
        {
            "token": token,
            "token_type_hint": TokenTypeHint(token_type_hint).value,
        },
        headers={"Authorization": basic_auth_header_value(config.client_id, config.client_secret)},
        http_client=http_client,
    )
    return _parse_model(IntrospectionResult, payload, url)
