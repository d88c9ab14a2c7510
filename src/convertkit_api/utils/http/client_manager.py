"""Factories for the synchronous httpx client used by the transport.

Redirects are not followed; the Kit API answers every endpoint directly
and a redirect indicates a misconfigured base URL.
"""

import logging
import os
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def create_timeout(
    total: float = DEFAULT_TIMEOUT,
    connect: Optional[float] = None,
) -> httpx.Timeout:
    """Create a timeout configuration.

    :param total: Timeout applied to read, write and pool
    :type total: float
    :param connect: Optional connect timeout, defaults to ``total``
    :type connect: Optional[float]
    :return: Timeout configuration
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(total, connect=connect if connect is not None else total)


def create_limits(
    max_keepalive: int = 5,
    max_connections: int = 10,
    keepalive_expiry: float = 30.0,
) -> httpx.Limits:
    """Create a connection limits configuration.

    :param max_keepalive: Maximum keep-alive connections
    :type max_keepalive: int
    :param max_connections: Maximum total connections
    :type max_connections: int
    :param keepalive_expiry: Keep-alive expiry in seconds
    :type keepalive_expiry: float
    :return: Limits configuration
    :rtype: httpx.Limits
    """
    return httpx.Limits(
        max_keepalive_connections=max_keepalive,
        max_connections=max_connections,
        keepalive_expiry=keepalive_expiry,
    )


def create_http_client(
    timeout: Optional[httpx.Timeout] = None,
    limits: Optional[httpx.Limits] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create a synchronous HTTP client.

    ``HTTP_ENABLE_HTTP2=true`` turns on HTTP/2 when the ``h2`` package is
    installed.

    :param timeout: Optional default timeout
    :type timeout: Optional[httpx.Timeout]
    :param limits: Optional connection limits
    :type limits: Optional[httpx.Limits]
    :param transport: Optional httpx transport, e.g. ``httpx.MockTransport``
    :type transport: Optional[httpx.BaseTransport]
    :return: Configured client
    :rtype: httpx.Client
    """
    http2 = os.getenv("HTTP_ENABLE_HTTP2", "false").lower() == "true"
    if http2:
        try:
            import h2  # type: ignore  # noqa: F401
        except ImportError:
            logger.warning(
                "HTTP/2 requested but 'h2' package not installed; falling back to HTTP/1.1"
            )
            http2 = False

    client = httpx.Client(
        timeout=timeout or create_timeout(),
        limits=limits or create_limits(),
        http2=http2,
        follow_redirects=False,
        transport=transport,
    )
    logger.debug("Created HTTP client (http2=%s)", http2)
    return client
