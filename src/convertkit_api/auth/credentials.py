"""Credential handle shared between the client and the token manager."""

import logging
import threading
from typing import Optional

from ..models.base_models import Credentials

logger = logging.getLogger(__name__)


class CredentialStore:
    """Owns the current :class:`Credentials` snapshot.

    Requests read :attr:`current` each time they are sent, so a retry
    after a refresh carries the new access token. Credentials themselves
    are immutable; a refresh swaps in a new snapshot.

    Two refreshes running at once on the same store are not prevented.
    :meth:`compare_and_swap` lets the token manager notice that another
    refresh already replaced the snapshot it started from.

    :param credentials: Initial credentials
    :type credentials: Credentials
    """

    def __init__(self, credentials: Credentials):
        self._credentials = credentials
        self._lock = threading.Lock()

    @property
    def current(self) -> Credentials:
        return self._credentials

    @property
    def access_token(self) -> Optional[str]:
        return self._credentials.access_token

    def replace(self, credentials: Credentials) -> None:
        """Swap in new credentials unconditionally.

        :param credentials: New credentials snapshot
        :type credentials: Credentials
        """
        with self._lock:
            self._credentials = credentials

    def compare_and_swap(self, expected: Credentials, credentials: Credentials) -> bool:
        """Swap in new credentials only if ``expected`` is still current.

        :param expected: Snapshot the caller started from
        :type expected: Credentials
        :param credentials: New credentials snapshot
        :type credentials: Credentials
        :return: True if the swap happened
        :rtype: bool
        """
        with self._lock:
            if self._credentials is not expected:
                logger.warning(
                    "Credentials changed while a token request was in flight; "
                    "keeping the newer credentials"
                )
                return False
            self._credentials = credentials
            return True
