"""Retry orchestration for the request pipeline.

A call is attempted, classified, and retried at most once:

- an expired access token on an authenticated request triggers one
  token refresh followed by one retry
- a rate limited response triggers one retry after a fixed pause, unless
  the caller disabled rate limit retries
- every other failure is returned as-is

The retry always runs with ``retry_if_rate_limited=False``. A failure on
the retry is returned without a further refresh or pause.
"""

import logging
from typing import Callable

from .. import messages
from ..models.base_models import RequestDescriptor
from ..models.result import ApiResult, Failure, FailureKind
from ..utils.http.retry import RetryPolicy
from ..utils.security import mask_endpoint

logger = logging.getLogger(__name__)

MAX_RETRIES = 1

SendFn = Callable[[RequestDescriptor], ApiResult]
RefreshFn = Callable[[], ApiResult]


class RetryOrchestrator:
    """Runs a request descriptor through the bounded retry loop.

    :param send: Builds, sends and classifies one attempt
    :type send: SendFn
    :param refresh: Exchanges the refresh token for new credentials
    :type refresh: RefreshFn
    :param policy: Rate limit backoff policy
    :type policy: RetryPolicy
    """

    def __init__(self, send: SendFn, refresh: RefreshFn, policy: RetryPolicy):
        self._send = send
        self._refresh = refresh
        self.policy = policy

    def execute(self, descriptor: RequestDescriptor) -> ApiResult:
        """Send ``descriptor``, retrying at most once.

        :param descriptor: The request to send
        :type descriptor: RequestDescriptor
        :return: Result of the last attempt, or of a failed refresh
        :rtype: ApiResult
        """
        attempt = 0
        logged_endpoint = mask_endpoint(descriptor.endpoint)
        while True:
            result = self._send(descriptor)
            if result.ok:
                return result

            retries_left = attempt < MAX_RETRIES

            if result.kind is FailureKind.EXPIRED_TOKEN:
                if not (retries_left and descriptor.authenticated):
                    return result
                logger.info(f"Access token expired calling {logged_endpoint}, refreshing")
                refreshed = self._refresh()
                if not refreshed.ok:
                    logger.warning(f"Token refresh failed: {refreshed.message}")
                    return refreshed
            elif result.kind is FailureKind.RATE_LIMIT_EXCEEDED:
                if not (retries_left and descriptor.retry_if_rate_limited):
                    return Failure(
                        kind=FailureKind.RATE_LIMIT_EXCEEDED,
                        message=messages.RATE_LIMIT_EXCEEDED,
                        status_code=429,
                    )
                self.policy.wait_for_rate_limit(logged_endpoint)
            else:
                return result

            descriptor = descriptor.for_retry()
            attempt += 1
