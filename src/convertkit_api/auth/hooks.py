"""Callbacks an embedding application registers with the client.

Tokens are never persisted by the client itself. Instead the application
passes an :class:`ApiHooks` instance at construction time and is called
synchronously after a successful authorization code exchange or token
refresh, with the token payload and the OAuth client ID.

Example:
    >>> def save_tokens(token_payload, client_id):
    ...     db.save(client_id, token_payload["access_token"],
    ...             token_payload["refresh_token"])
    >>> hooks = ApiHooks(on_access_token=save_tokens, on_refresh_token=save_tokens)
    >>> api = ConvertKitAPI(credentials, hooks=hooks)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

TokenCallback = Callable[[Dict[str, Any], str], None]
TimeoutFilter = Callable[[float], float]


@dataclass
class ApiHooks:
    """Optional callbacks invoked by the client.

    :param on_access_token: Called after an authorization code exchange
    :type on_access_token: Optional[TokenCallback]
    :param on_refresh_token: Called after a successful token refresh
    :type on_refresh_token: Optional[TokenCallback]
    :param filter_timeout: Receives the default timeout, returns the one to use
    :type filter_timeout: Optional[TimeoutFilter]
    """

    on_access_token: Optional[TokenCallback] = None
    on_refresh_token: Optional[TokenCallback] = None
    filter_timeout: Optional[TimeoutFilter] = None

    def access_token_obtained(self, token_payload: Dict[str, Any], client_id: str) -> None:
        if self.on_access_token is not None:
            logger.debug("Notifying access token callback")
            self.on_access_token(token_payload, client_id)

    def token_refreshed(self, token_payload: Dict[str, Any], client_id: str) -> None:
        if self.on_refresh_token is not None:
            logger.debug("Notifying refresh token callback")
            self.on_refresh_token(token_payload, client_id)

    def timeout(self, default: float) -> float:
        """Apply the timeout filter, if any.

        :param default: Timeout from settings
        :type default: float
        :return: Timeout to use for the request
        :rtype: float
        """
        if self.filter_timeout is None:
            return default
        return self.filter_timeout(default)
