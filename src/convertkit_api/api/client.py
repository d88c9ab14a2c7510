"""Kit (ConvertKit) API client.

Every API call funnels through :meth:`ConvertKitAPI.request`, which:

1. rejects unsupported HTTP methods without sending anything
2. builds the URL, headers and body for the endpoint
3. sends the request and classifies the response
4. refreshes an expired access token, or waits out a rate limit, and
   retries once

Failures are returned as :class:`~convertkit_api.models.result.Failure`
values; the client never raises for an API or network error.

Example:
    >>> api = ConvertKitAPI(
    ...     Credentials(client_id="abc", redirect_uri="https://example.com/cb",
    ...                 access_token="...", refresh_token="..."),
    ...     hooks=ApiHooks(on_refresh_token=save_tokens),
    ... )
    >>> result = api.get_account()
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from .. import messages
from ..auth.credentials import CredentialStore
from ..auth.hooks import ApiHooks
from ..auth.token_manager import TOKEN_ENDPOINT, TokenManager
from ..auth.verifier_store import (
    CodeVerifierStore,
    EncryptedFileCodeVerifierStore,
    InMemoryCodeVerifierStore,
)
from ..config.settings import Settings
from ..config.settings import settings as default_settings
from ..exceptions import ConfigurationError, TransportError
from ..models.base_models import Credentials, HttpMethod, RequestDescriptor
from ..models.result import ApiResult, Failure, FailureKind
from ..utils.http.retry import RetryPolicy
from ..utils.http.transport import HttpxTransport, Transport
from ..utils.security import (
    mask_endpoint,
    mask_params,
    sanitize_headers,
    setup_audit_log,
    setup_secure_logging,
)
from .orchestrator import RetryOrchestrator
from .request_builder import RequestBuilder
from .resources import ResourcesMixin
from .response_classifier import classify

logger = logging.getLogger(__name__)


class ConvertKitAPI(ResourcesMixin):
    """Synchronous Kit API client.

    :param credentials: Credentials, or a credential handle shared with other code
    :type credentials: Union[Credentials, CredentialStore]
    :param settings: Client settings, defaults to the environment
    :type settings: Optional[Settings]
    :param context: Free text tag appended to the User-Agent
    :type context: Optional[str]
    :param transport: Transport to send requests with
    :type transport: Optional[Transport]
    :param verifier_store: PKCE code verifier storage
    :type verifier_store: Optional[CodeVerifierStore]
    :param hooks: Token callbacks and timeout filter
    :type hooks: Optional[ApiHooks]
    :param retry_policy: Rate limit backoff policy
    :type retry_policy: Optional[RetryPolicy]
    :param timeout: Request timeout overriding the settings value
    :type timeout: Optional[float]
    """

    def __init__(
        self,
        credentials: Union[Credentials, CredentialStore],
        settings: Optional[Settings] = None,
        context: Optional[str] = None,
        transport: Optional[Transport] = None,
        verifier_store: Optional[CodeVerifierStore] = None,
        hooks: Optional[ApiHooks] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or default_settings
        if isinstance(credentials, CredentialStore):
            self.credentials = credentials
        else:
            self.credentials = CredentialStore(credentials)
        self.hooks = hooks or ApiHooks()
        self.transport = transport or HttpxTransport()
        self.builder = RequestBuilder(
            self.settings, hooks=self.hooks, context=context, timeout=timeout
        )
        self.token_manager = TokenManager(
            credentials=self.credentials,
            verifier_store=verifier_store or self._default_verifier_store(),
            hooks=self.hooks,
            send_token_request=self._send_token_request,
            authorize_url=self.settings.oauth_authorize_url,
        )
        self.orchestrator = RetryOrchestrator(
            send=self._send,
            refresh=self.token_manager.refresh,
            policy=retry_policy
            or RetryPolicy(rate_limit_delay=self.settings.rate_limit_retry_delay),
        )
        self._audit_handler = None
        if self.settings.debug:
            setup_secure_logging(self.settings.log_level)
            if self.settings.log_file:
                self._audit_handler = setup_audit_log(self.settings.log_file)

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, **kwargs: Any
    ) -> "ConvertKitAPI":
        """Build a client from ``CONVERTKIT_*`` settings.

        :param settings: Settings instance, defaults to the environment
        :type settings: Optional[Settings]
        :return: Configured client
        :rtype: ConvertKitAPI
        :raises ConfigurationError: If client ID or redirect URI is missing
        """
        settings = settings or default_settings
        if not settings.client_id:
            raise ConfigurationError(
                "CONVERTKIT_CLIENT_ID is required", config_key="client_id"
            )
        if not settings.redirect_uri:
            raise ConfigurationError(
                "CONVERTKIT_REDIRECT_URI is required", config_key="redirect_uri"
            )
        credentials = Credentials(
            client_id=settings.client_id,
            redirect_uri=settings.redirect_uri,
            access_token=settings.access_token,
            refresh_token=settings.refresh_token,
        )
        return cls(credentials, settings=settings, **kwargs)

    def _default_verifier_store(self) -> CodeVerifierStore:
        if self.settings.code_verifier_path:
            return EncryptedFileCodeVerifierStore(
                storage_path=self.settings.code_verifier_path,
                encryption_key=self.settings.encryption_key,
            )
        return InMemoryCodeVerifierStore()

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def request(
        self,
        endpoint: str,
        method: str = "get",
        params: Optional[Dict[str, Any]] = None,
        retry_if_rate_limited: bool = True,
    ) -> ApiResult:
        """Send a request to the Kit API.

        :param endpoint: Endpoint such as ``subscribers`` or ``posts``
        :type endpoint: str
        :param method: ``get``, ``post``, ``put`` or ``delete``
        :type method: str
        :param params: Query parameters (GET) or JSON body
        :type params: Optional[Dict[str, Any]]
        :param retry_if_rate_limited: Retry once after a 429 response
        :type retry_if_rate_limited: bool
        :return: Decoded response or failure
        :rtype: ApiResult
        """
        return self._request(
            endpoint, method, params, retry_if_rate_limited, authenticated=True
        )

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        return self.request(endpoint, "get", params)

    def post(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        return self.request(endpoint, "post", params)

    def put(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        return self.request(endpoint, "put", params)

    def delete(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> ApiResult:
        return self.request(endpoint, "delete", params)

    def _request(
        self,
        endpoint: str,
        method: str,
        params: Optional[Dict[str, Any]],
        retry_if_rate_limited: bool,
        authenticated: bool,
    ) -> ApiResult:
        try:
            http_method = HttpMethod.parse(method)
        except ValueError:
            return self._log_failure(
                Failure(
                    kind=FailureKind.REQUEST_METHOD_UNSUPPORTED,
                    message=messages.REQUEST_METHOD_UNSUPPORTED.format(method=method),
                )
            )

        descriptor = RequestDescriptor(
            endpoint=endpoint,
            method=http_method,
            params=params or {},
            retry_if_rate_limited=retry_if_rate_limited,
            authenticated=authenticated,
        )
        result = self.orchestrator.execute(descriptor)
        if not result.ok:
            self._log_failure(result)
        return result

    def _send(self, descriptor: RequestDescriptor) -> ApiResult:
        """Build, send and classify a single attempt."""
        self._log_request(descriptor)
        prepared = self.builder.build(descriptor, self.credentials.access_token)
        logger.debug(f"Headers: {sanitize_headers(prepared.headers)}")

        try:
            response = self.transport.send(prepared)
        except TransportError as e:
            return Failure(kind=FailureKind.TRANSPORT_ERROR, message=e.message)

        return classify(response.status_code, response.body)

    def _send_token_request(self, params: Dict[str, Any]) -> ApiResult:
        return self._request(
            TOKEN_ENDPOINT,
            "post",
            params,
            retry_if_rate_limited=True,
            authenticated=False,
        )

    def _log_request(self, descriptor: RequestDescriptor) -> None:
        logger.debug(
            "API: %s %s: %s",
            descriptor.method.value,
            mask_endpoint(descriptor.endpoint),
            json.dumps(mask_params(descriptor.params), default=str),
        )

    def _log_failure(self, failure: Failure) -> Failure:
        logger.warning("API: Error: %s", failure.message)
        return failure

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def get_oauth_url(
        self, return_to: Optional[str] = None, tenant_name: Optional[str] = None
    ) -> str:
        """Return the OAuth authorization URL, creating a PKCE verifier if needed.

        Repeated calls reuse the same verifier until :meth:`get_access_token`
        is called.
        """
        return self.token_manager.get_authorize_url(
            return_to=return_to, tenant_name=tenant_name
        )

    def get_access_token(self, authorization_code: str) -> ApiResult:
        """Exchange the authorization code from the OAuth redirect for tokens."""
        return self.token_manager.exchange_code(authorization_code)

    def refresh_token(self) -> ApiResult:
        """Exchange the refresh token for a new token pair."""
        return self.token_manager.refresh()

    def get_code_verifier(self) -> Optional[str]:
        return self.token_manager.get_code_verifier()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.transport.close()
        if self._audit_handler is not None:
            logging.getLogger("convertkit_api").removeHandler(self._audit_handler)
            self._audit_handler.close()
            self._audit_handler = None

    def __enter__(self) -> "ConvertKitAPI":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
