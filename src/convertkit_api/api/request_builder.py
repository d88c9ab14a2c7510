"""Build URLs, headers and bodies for calls into the Kit API.

Endpoints live under one of three namespaces on the API host:

- ``wordpress/`` for the WordPress specific endpoints
- ``oauth/`` for the token endpoint
- ``{api_version}/`` (``v4/``) for everything else

Namespace selection is substring based, so templated paths such as
``profile/{signed_subscriber_id}`` resolve to their namespace.
"""

import json
import logging
import platform
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .. import __version__
from ..auth.hooks import ApiHooks
from ..config.settings import Settings
from ..models.base_models import HttpMethod, RequestDescriptor
from ..utils.http.transport import PreparedRequest

logger = logging.getLogger(__name__)

CLIENT_NAME = "convertkit-api"

WORDPRESS_ENDPOINTS = (
    "posts",
    "products",
    "profile",
    "recommendations_script",
    "subscriber_authentication/send_code",
    "subscriber_authentication/verify",
)
OAUTH_ENDPOINTS = ("token",)


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_query_value(item) for item in value]
    return value


def encode_query(params: Dict[str, Any]) -> str:
    """Encode GET parameters, dropping ``None`` values.

    :param params: Query parameters
    :type params: Dict[str, Any]
    :return: Query string without the leading ``?``
    :rtype: str
    """
    pairs = {
        key: _query_value(value) for key, value in params.items() if value is not None
    }
    return urlencode(pairs, doseq=True)


class RequestBuilder:
    """Turns a :class:`RequestDescriptor` into a :class:`PreparedRequest`.

    :param settings: Client settings
    :type settings: Settings
    :param hooks: Hooks providing the timeout filter
    :type hooks: Optional[ApiHooks]
    :param context: Free text tag appended to the User-Agent
    :type context: Optional[str]
    :param timeout: Timeout overriding the settings value
    :type timeout: Optional[float]
    """

    def __init__(
        self,
        settings: Settings,
        hooks: Optional[ApiHooks] = None,
        context: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings
        self.hooks = hooks or ApiHooks()
        self.context = context if context is not None else settings.context
        self._timeout = timeout if timeout is not None else settings.request_timeout

    def get_api_url(self, endpoint: str) -> str:
        """Resolve an endpoint to its absolute URL.

        :param endpoint: Endpoint such as ``account`` or ``profile/abc``
        :type endpoint: str
        :return: Absolute URL
        :rtype: str
        """
        endpoint = endpoint.lstrip("/")
        base = self.settings.api_url_base

        if any(name in endpoint for name in WORDPRESS_ENDPOINTS):
            return f"{base}wordpress/{endpoint}"
        if any(name in endpoint for name in OAUTH_ENDPOINTS):
            return f"{base}oauth/{endpoint}"
        return f"{self.settings.api_url}{endpoint}"

    def get_user_agent(self) -> str:
        """Build the User-Agent header.

        Format: ``[{integration}/{version};]Python/{python};convertkit-api/{version};{site_url}``
        followed by ``;context/{context}`` when a context was given.

        :return: User-Agent string
        :rtype: str
        """
        parts = []
        if self.settings.integration_name:
            parts.append(
                f"{self.settings.integration_name}/{self.settings.integration_version or ''}"
            )
        parts.append(f"Python/{platform.python_version()}")
        parts.append(f"{CLIENT_NAME}/{__version__}")
        parts.append(self.settings.site_url)
        if self.context:
            parts.append(f"context/{self.context}")
        return ";".join(parts)

    def get_timeout(self) -> float:
        return self.hooks.timeout(self._timeout)

    def get_request_headers(
        self, access_token: Optional[str] = None, authenticated: bool = True
    ) -> Dict[str, str]:
        """Build the request headers.

        :param access_token: Bearer token for authenticated requests
        :type access_token: Optional[str]
        :param authenticated: Whether to attach the Authorization header
        :type authenticated: bool
        :return: Header mapping
        :rtype: Dict[str, str]
        """
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json; charset=utf-8",
            "User-Agent": self.get_user_agent(),
        }
        if authenticated:
            headers["Authorization"] = f"Bearer {access_token or ''}"
        return headers

    def build(
        self, descriptor: RequestDescriptor, access_token: Optional[str] = None
    ) -> PreparedRequest:
        """Build the request for one attempt.

        GET parameters go into the query string. POST, PUT and DELETE
        parameters are sent as a JSON body.

        :param descriptor: What to send
        :type descriptor: RequestDescriptor
        :param access_token: Access token current at send time
        :type access_token: Optional[str]
        :return: Request ready for the transport
        :rtype: PreparedRequest
        """
        url = self.get_api_url(descriptor.endpoint)
        body = None

        if descriptor.method is HttpMethod.GET:
            query = encode_query(descriptor.params)
            if query:
                url = f"{url}?{query}"
        else:
            body = json.dumps(descriptor.params).encode("utf-8")

        return PreparedRequest(
            method=descriptor.method.value,
            url=url,
            headers=self.get_request_headers(access_token, descriptor.authenticated),
            body=body,
            timeout=self.get_timeout(),
        )
