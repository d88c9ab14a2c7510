"""Kit (ConvertKit) v4 API client package.

This package provides a synchronous client for the Kit API with OAuth
PKCE support, automatic access token refresh and rate limit handling.
All requests go through a single pipeline that returns
:class:`~convertkit_api.models.result.Success` or
:class:`~convertkit_api.models.result.Failure` results.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"

from .api.client import ConvertKitAPI  # noqa: E402
from .auth.credentials import CredentialStore  # noqa: E402
from .auth.hooks import ApiHooks  # noqa: E402
from .models.base_models import Credentials  # noqa: E402
from .models.result import ApiResult, Failure, FailureKind, Success  # noqa: E402

__all__ = [
    "__version__",
    "ApiHooks",
    "ApiResult",
    "ConvertKitAPI",
    "CredentialStore",
    "Credentials",
    "Failure",
    "FailureKind",
    "Success",
]
