"""HTTP utilities public API (barrel module).

This package provides:
- httpx client factories with timeout and connection limits
- The transport seam used by the request pipeline
- The rate limit retry policy

Recommended import pattern for consumers:
    from convertkit_api.utils.http import HttpxTransport, RetryPolicy
"""

from .client_manager import create_http_client, create_limits, create_timeout
from .retry import RetryPolicy
from .transport import HttpxTransport, PreparedRequest, Transport, TransportResponse

__all__ = [
    "create_http_client",
    "create_limits",
    "create_timeout",
    "RetryPolicy",
    "HttpxTransport",
    "PreparedRequest",
    "Transport",
    "TransportResponse",
]
