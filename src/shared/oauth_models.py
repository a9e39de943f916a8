"""
Pydantic models for the OpenID Connect token harness.

This module defines the client configuration entered on the harness page and the
structured responses returned by the identity provider's token and introspection
endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union
from enum import Enum


class GrantType(str, Enum):
    """Grant types sent to the token endpoint."""
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"


class ResponseType(str, Enum):
    """OAuth response types."""
    CODE = "code"


class TokenTypeHint(str, Enum):
    """Token type hints accepted by the introspection endpoint (RFC 7662)."""
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"


class ClientConfiguration(BaseModel):
    """
    Identity provider and client settings for one test flow.

    Values are kept exactly as entered; normalization of the origin and root
    path happens when URLs are computed. An empty client secret means a
    public client.
    """
    model_config = ConfigDict(frozen=True)

    api_origin: str = Field(default="http://localhost:8080", description="Provider origin, e.g. http://localhost:8080")
    root_path: str = Field(default="", description="Optional API root path, e.g. '' or '/api'")
    realm: str = Field(default="master", description="Realm identifier")
    client_id: str = Field(default="", description="OAuth client identifier")
    client_secret: str = Field(default="", description="Client secret (empty for public clients)")
    scope: str = Field(default="openid", description="Space-delimited scope")
    redirect_uri: str = Field(default="", description="Redirect URI registered for the client")

    @property
    def is_confidential(self) -> bool:
        """True when both client id and secret are set."""
        return bool(self.client_id.strip() and self.client_secret.strip())


class TokenResponse(BaseModel):
    """
    Token endpoint response for the code exchange and refresh grants.

    Provider-specific extras (scope, refresh_expires_in, session_state...) are
    kept as extra fields.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    access_token: str = Field(..., description="Access token")
    token_type: str = Field(..., description="Token type, usually Bearer")
    refresh_token: str = Field(..., description="Refresh token")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    id_token: Optional[str] = Field(default=None, description="OpenID Connect ID token")


class IntrospectionResult(BaseModel):
    """
    Token introspection response (RFC 7662).

    `active=False` is a normal outcome: the token is known but not usable.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    active: bool
    scope: Optional[str] = None
    client_id: Optional[str] = None
    username: Optional[str] = None
    sub: Optional[str] = None
    token_type: Optional[str] = None
    exp: Optional[int] = None
    iat: Optional[int] = None
    nbf: Optional[int] = None
    aud: Optional[Union[str, List[str]]] = None
    iss: Optional[str] = None
    jti: Optional[str] = None
    realm: Optional[str] = None
