"""
Linear backoff schedule shared by the representation resolver and fetcher.
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Awaitable
from typing import Callable

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class BackoffConfig:
  """Fixed retry budget with delay growing linearly per attempt."""

  max_retries: int
  base_delay: float

  def calculate_delay(self, attempt: int) -> float:
    """
    Calculate delay before a retry.

    Args:
        attempt: The retry number (1-indexed)

    Returns:
        Delay in seconds (``base_delay * attempt``)
    """
    return self.base_delay * attempt

  def attempts(self) -> range:
    """Retry numbers 1..max_retries."""
    return range(1, self.max_retries + 1)


async def wait_before_retry(
    config: BackoffConfig,
    attempt: int,
    operation_name: str,
    sleep: Sleeper = asyncio.sleep,
) -> float:
  """Log and sleep ahead of retry ``attempt``; returns the delay used."""
  delay = config.calculate_delay(attempt)
  logger.info(
      f"{operation_name}: retry {attempt}/{config.max_retries} in"
      f" {delay:.1f}s"
  )
  await sleep(delay)
  return delay
