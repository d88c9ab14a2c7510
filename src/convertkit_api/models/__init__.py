"""ConvertKit API models package.

This package contains the Pydantic models shared by the request
pipeline, the OAuth token manager and the resource methods.
"""

from .base_models import (
    Credentials,
    HttpMethod,
    Pagination,
    RequestDescriptor,
    TokenResponse,
)
from .result import ApiResult, Failure, FailureKind, Success

__all__ = [
    "ApiResult",
    "Credentials",
    "Failure",
    "FailureKind",
    "HttpMethod",
    "Pagination",
    "RequestDescriptor",
    "Success",
    "TokenResponse",
]
