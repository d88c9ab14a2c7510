"""Backoff policy for the rate limit retry.

The pipeline retries a 429 response at most once, after a fixed pause.
The pause is a blocking sleep; ``sleep`` is injectable so tests do not
have to wait.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_DELAY = 2.0


@dataclass
class RetryPolicy:
    """Rate limit retry configuration.

    :param rate_limit_delay: Seconds to wait before retrying a 429
    :type rate_limit_delay: float
    :param sleep: Blocking sleep function
    :type sleep: Callable[[float], None]
    """

    rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def wait_for_rate_limit(self, endpoint: str) -> None:
        """Sleep before the retry. ``endpoint`` is logged as given, so pass it masked."""
        logger.info(
            f"Rate limit hit on {endpoint}, retrying in {self.rate_limit_delay}s"
        )
        self.sleep(self.rate_limit_delay)
