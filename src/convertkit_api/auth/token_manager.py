"""OAuth token management: authorize URL, code exchange and refresh.

Both token grants POST to the ``token`` endpoint without an Authorization
header. On success the new access/refresh pair replaces the credentials
in the :class:`CredentialStore` as a new immutable snapshot and the
matching :class:`ApiHooks` callback is invoked. On failure the stored
credentials are left untouched.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

from pydantic import ValidationError as PydanticValidationError

from .. import messages
from ..models.base_models import TokenResponse
from ..models.result import ApiResult, Failure, FailureKind, Success
from .credentials import CredentialStore
from .hooks import ApiHooks
from .pkce import (
    CODE_CHALLENGE_METHOD,
    base64_urldecode,
    base64_urlencode,
    generate_code_challenge,
    generate_code_verifier,
)
from .verifier_store import CodeVerifierStore

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "token"

TokenRequestFn = Callable[[Dict[str, Any]], ApiResult]


class TokenManager:
    """Coordinates the OAuth authorization code and refresh token grants.

    :param credentials: Credential handle shared with the client
    :type credentials: CredentialStore
    :param verifier_store: Where the PKCE code verifier is kept
    :type verifier_store: CodeVerifierStore
    :param hooks: Token callbacks
    :type hooks: ApiHooks
    :param send_token_request: Posts a payload to the token endpoint
    :type send_token_request: TokenRequestFn
    :param authorize_url: OAuth authorization page URL
    :type authorize_url: str
    """

    def __init__(
        self,
        credentials: CredentialStore,
        verifier_store: CodeVerifierStore,
        hooks: ApiHooks,
        send_token_request: TokenRequestFn,
        authorize_url: str,
    ):
        self.credentials = credentials
        self.verifier_store = verifier_store
        self.hooks = hooks
        self._send_token_request = send_token_request
        self.authorize_url = authorize_url

    def get_code_verifier(self) -> Optional[str]:
        return self.verifier_store.get()

    def get_or_create_code_verifier(self) -> str:
        """Return the stored verifier, generating one if none exists.

        The same verifier is returned until a code exchange is attempted.

        :return: PKCE code verifier
        :rtype: str
        """
        code_verifier = self.verifier_store.get()
        if code_verifier:
            return code_verifier

        code_verifier = generate_code_verifier()
        self.verifier_store.set(code_verifier)
        logger.debug("Generated new PKCE code verifier")
        return code_verifier

    def get_authorize_url(
        self, return_to: Optional[str] = None, tenant_name: Optional[str] = None
    ) -> str:
        """Build the URL the user visits to grant access.

        :param return_to: URL to return to once the flow completes, sent in ``state``
        :type return_to: Optional[str]
        :param tenant_name: Optional tenant name shown on the consent page
        :type tenant_name: Optional[str]
        :return: Authorization URL
        :rtype: str
        """
        credentials = self.credentials.current
        code_verifier = self.get_or_create_code_verifier()

        params = {
            "client_id": credentials.client_id,
            "response_type": "code",
            "redirect_uri": credentials.redirect_uri,
            "code_challenge": generate_code_challenge(code_verifier),
            "code_challenge_method": CODE_CHALLENGE_METHOD,
        }
        if return_to:
            params["state"] = encode_state(return_to, credentials.client_id)
        if tenant_name:
            params["tenant_name"] = tenant_name

        return f"{self.authorize_url}?{urlencode(params)}"

    def exchange_code(self, authorization_code: str) -> ApiResult:
        """Exchange an authorization code for an access/refresh token pair.

        The stored code verifier is deleted after the call whatever its
        outcome, so the next authorization starts with a fresh verifier.

        :param authorization_code: Code from the OAuth redirect
        :type authorization_code: str
        :return: Success with the token payload, or the failure
        :rtype: ApiResult
        """
        credentials = self.credentials.current
        code_verifier = self.verifier_store.get()
        if not code_verifier:
            logger.warning("No PKCE code verifier stored for the code exchange")

        try:
            result = self._send_token_request(
                {
                    "client_id": credentials.client_id,
                    "grant_type": "authorization_code",
                    "code": authorization_code,
                    "redirect_uri": credentials.redirect_uri,
                    "code_verifier": code_verifier,
                }
            )
        finally:
            self.verifier_store.delete()

        result = self._parse_token_result(result)
        if not result.ok:
            logger.error(f"Authorization code exchange failed: {result.message}")
            return result

        token = result.data
        self.credentials.replace(
            credentials.with_tokens(token["access_token"], token["refresh_token"])
        )
        logger.info("Obtained access token from authorization code")
        self.hooks.access_token_obtained(token, credentials.client_id)
        return result

    def refresh(self) -> ApiResult:
        """Exchange the refresh token for a new access/refresh token pair.

        :return: Success with the token payload, or the failure
        :rtype: ApiResult
        """
        credentials = self.credentials.current
        result = self._send_token_request(
            {
                "client_id": credentials.client_id,
                "grant_type": "refresh_token",
                "refresh_token": credentials.refresh_token,
            }
        )

        result = self._parse_token_result(result)
        if not result.ok:
            logger.error(f"Token refresh failed: {result.message}")
            return result

        token = result.data
        refreshed = credentials.with_tokens(token["access_token"], token["refresh_token"])
        if self.credentials.compare_and_swap(credentials, refreshed):
            logger.info("Refreshed access token")
            self.hooks.token_refreshed(token, credentials.client_id)
        return result

    def _parse_token_result(self, result: ApiResult) -> ApiResult:
        if not result.ok:
            return result
        try:
            token = TokenResponse.model_validate(result.data)
        except PydanticValidationError:
            return Failure(
                kind=FailureKind.RESPONSE_TYPE_UNEXPECTED,
                message=messages.RESPONSE_TYPE_UNEXPECTED,
            )
        return Success(data=token.model_dump(exclude_none=True))


def encode_state(return_to: str, client_id: str) -> str:
    """Encode the OAuth ``state`` parameter.

    :return: base64url of ``{"return_to": ..., "client_id": ...}``
    :rtype: str
    """
    payload = json.dumps(
        {"return_to": return_to, "client_id": client_id}, separators=(",", ":")
    )
    return base64_urlencode(payload.encode("utf-8"))


def decode_state(state: str) -> Dict[str, Any]:
    """Decode a ``state`` parameter produced by :func:`encode_state`."""
    return json.loads(base64_urldecode(state).decode("utf-8"))

