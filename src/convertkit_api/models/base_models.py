"""Shared Pydantic models for the ConvertKit API client.

The models provide type safety and validation for:
- OAuth credentials and token endpoint responses
- Request descriptors passed through the request pipeline
- Cursor pagination metadata returned by v4 list endpoints
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """OAuth credentials used to authenticate API requests.

    Instances are immutable. A token exchange or refresh produces a new
    instance through :meth:`with_tokens` rather than mutating this one.

    :param client_id: OAuth application client ID
    :type client_id: str
    :param redirect_uri: Redirect URI registered for the OAuth application
    :type redirect_uri: str
    :param access_token: Current access token
    :type access_token: Optional[str]
    :param refresh_token: Current refresh token
    :type refresh_token: Optional[str]
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    redirect_uri: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    def with_tokens(self, access_token: str, refresh_token: str) -> "Credentials":
        """Return a copy carrying a new access/refresh token pair.

        :param access_token: New access token
        :type access_token: str
        :param refresh_token: New refresh token
        :type refresh_token: str
        :return: New credentials instance
        :rtype: Credentials
        """
        return self.model_copy(
            update={"access_token": access_token, "refresh_token": refresh_token}
        )


class TokenResponse(BaseModel):
    """Payload returned by ``POST /oauth/token``.

    Unknown keys are kept so that callbacks receive the full payload.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    created_at: Optional[int] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


class HttpMethod(str, Enum):
    """HTTP methods accepted by the request pipeline."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, method: str) -> "HttpMethod":
        """Parse a case-insensitive method name.

        :param method: Method name such as ``"get"`` or ``"POST"``
        :type method: str
        :return: Matching enum member
        :rtype: HttpMethod
        :raises ValueError: If the method is not supported
        """
        return cls(str(method).strip().upper())


class RequestDescriptor(BaseModel):
    """A single call into the request pipeline.

    :param endpoint: Endpoint path relative to its namespace, e.g. ``account``
    :type endpoint: str
    :param method: HTTP method
    :type method: HttpMethod
    :param params: Query (GET) or JSON body (POST/PUT/DELETE) parameters
    :type params: Dict[str, Any]
    :param retry_if_rate_limited: Whether a 429 may be retried once
    :type retry_if_rate_limited: bool
    :param authenticated: Whether to send the bearer token
    :type authenticated: bool
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    method: HttpMethod = HttpMethod.GET
    params: Dict[str, Any] = Field(default_factory=dict)
    retry_if_rate_limited: bool = True
    authenticated: bool = True

    def for_retry(self) -> "RequestDescriptor":
        """Return the descriptor used for the single permitted retry."""
        return self.model_copy(update={"retry_if_rate_limited": False})


class Pagination(BaseModel):
    """Cursor pagination block of a v4 list response."""

    model_config = ConfigDict(extra="allow")

    has_previous_page: bool = False
    has_next_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None
    per_page: Optional[int] = None
    total_count: Optional[int] = None
