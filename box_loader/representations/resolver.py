"""
Representation readiness resolution.

Box generates text representations asynchronously. The resolver lists the
file's representations, reads the job state from the freshest listing, and
polls with linear backoff while the job is pending. The decision for each
observed state comes from an explicit transition table.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import Any

from box_loader.client import RemoteClient
from box_loader.config import default_poll_retry
from box_loader.extensions import file_extension
from box_loader.extensions import representation_kind_for
from box_loader.representations.errors import failure_from_error
from box_loader.representations.errors import RETRIEVAL_ERRORS
from box_loader.retry import BackoffConfig
from box_loader.retry import Sleeper
from box_loader.retry import wait_before_retry
from box_loader.types import Failure
from box_loader.types import FailureKind
from box_loader.types import FileDescriptor
from box_loader.types import RepresentationDescriptor
from box_loader.types import RepresentationKind
from box_loader.types import RepresentationState

logger = logging.getLogger(__name__)


class ResolverAction(str, Enum):
  """What the resolver does after observing a state."""

  ACCEPT = "accept"
  POLL = "poll"
  FAIL = "fail"


TRANSITIONS: dict[RepresentationState, ResolverAction] = {
    RepresentationState.READY: ResolverAction.ACCEPT,
    RepresentationState.PENDING: ResolverAction.POLL,
    RepresentationState.PROCESSING: ResolverAction.POLL,
    RepresentationState.NONE: ResolverAction.FAIL,
    RepresentationState.ERROR: ResolverAction.FAIL,
    RepresentationState.UNKNOWN: ResolverAction.FAIL,
}

TERMINAL_FAILURES: dict[RepresentationState, FailureKind] = {
    RepresentationState.NONE: FailureKind.NO_REPRESENTATION,
    RepresentationState.ERROR: FailureKind.EXTRACTION_FAILED,
    RepresentationState.UNKNOWN: FailureKind.UNKNOWN_STATE,
}


def select_kind(file: FileDescriptor) -> RepresentationKind:
  """Representation kind for a file, from its extension or name."""
  return representation_kind_for(file.extension or file_extension(file.name))


def find_entry(
    entries: list[dict[str, Any]], kind: RepresentationKind
) -> dict[str, Any] | None:
  for entry in entries:
    if entry.get("representation") == kind.value:
      return entry
  return None


class RepresentationResolver:
  """
  Drives one file's representation to a terminal state.

  Example:
      ```python
      resolver = RepresentationResolver(client)
      result = await resolver.resolve(file)
      if isinstance(result, Failure):
          print(result.render(file.name))
      else:
          print(result.info_url)
      ```
  """

  def __init__(
      self,
      client: RemoteClient,
      retry: BackoffConfig | None = None,
      sleep: Sleeper = asyncio.sleep,
  ):
    """
    Initialize RepresentationResolver.

    Args:
        client: Remote client used for representation listings
        retry: Poll budget and delay schedule while pending
        sleep: Awaitable used between polls (replaceable in tests)
    """
    self.client = client
    self.retry = retry or default_poll_retry()
    self._sleep = sleep

  async def _observe(
      self, file_id: str, kind: RepresentationKind
  ) -> RepresentationDescriptor | Failure:
    """Issue one listing call and read the entry for ``kind``."""
    try:
      entries = await self.client.list_representations(file_id, kind)
    except RETRIEVAL_ERRORS as e:
      logger.warning(f"Representation listing failed for file {file_id}: {e}")
      return failure_from_error(e)

    entry = find_entry(entries, kind)
    if entry is None:
      return Failure(kind=FailureKind.NO_REPRESENTATION)
    return RepresentationDescriptor.from_api(kind, entry)

  async def resolve(
      self, file: FileDescriptor
  ) -> RepresentationDescriptor | Failure:
    """
    Resolve the file's representation to ready, or to a Failure.

    Args:
        file: Metadata snapshot of the file

    Returns:
        A ready RepresentationDescriptor, or a Failure describing why not
    """
    kind = select_kind(file)
    observed = await self._observe(file.id, kind)
    attempt = 0

    while isinstance(observed, RepresentationDescriptor):
      action = TRANSITIONS[observed.state]
      if action is ResolverAction.ACCEPT:
        return observed
      if action is ResolverAction.FAIL:
        return Failure(
            kind=TERMINAL_FAILURES[observed.state],
            detail=observed.status_message,
        )

      attempt += 1
      if attempt > self.retry.max_retries:
        logger.warning(
            f"Representation {kind.value} for file {file.id} still"
            f" {observed.state.value} after {self.retry.max_retries} polls"
        )
        return Failure(kind=FailureKind.STILL_PROCESSING)

      await wait_before_retry(
          self.retry,
          attempt,
          f"{kind.value} representation for file {file.id}",
          sleep=self._sleep,
      )
      observed = await self._observe(file.id, kind)

    return observed
