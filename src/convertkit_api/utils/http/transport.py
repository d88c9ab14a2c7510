"""Transport seam between the request pipeline and the HTTP library.

The pipeline hands a :class:`PreparedRequest` to a :class:`Transport` and
gets back a :class:`TransportResponse`. Network level failures raise
:class:`~convertkit_api.exceptions.TransportError`; HTTP error statuses
are ordinary responses and are classified further up.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from ...exceptions import TransportError
from ..security import mask_url
from .client_manager import create_http_client, create_timeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRequest:
    """A fully built HTTP request.

    :param method: HTTP method name
    :param url: Absolute URL, including the query string for GET
    :param headers: Request headers
    :param body: Encoded JSON body, or None
    :param timeout: Timeout in seconds
    """

    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes] = None
    timeout: float = 10.0


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


class Transport(ABC):
    """Sends prepared requests."""

    @abstractmethod
    def send(self, request: PreparedRequest) -> TransportResponse:
        """Send the request.

        :param request: Request to send
        :type request: PreparedRequest
        :return: Status, body and headers
        :rtype: TransportResponse
        :raises TransportError: On DNS, TLS, connection or timeout failures
        """

    def close(self) -> None:
        """Release any pooled connections."""


class HttpxTransport(Transport):
    """Transport backed by a synchronous :class:`httpx.Client`.

    :param client: Optional client to use; one is created and owned otherwise
    :type client: Optional[httpx.Client]
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        self._owns_client = client is None
        self._client = client or create_http_client()

    def send(self, request: PreparedRequest) -> TransportResponse:
        try:
            response = self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=create_timeout(request.timeout),
            )
        except httpx.HTTPError as e:
            url = mask_url(request.url)
            message = mask_url(str(e)) or e.__class__.__name__
            logger.error(f"HTTP request to {url} failed: {message}")
            raise TransportError(message, url=url) from e

        return TransportResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
            logger.debug("Closed HTTP client")
