"""
Representation content fetching.

A ready representation is reached through two URLs: the ``info`` URL returns
JSON with a ``content.url_template``, and the template (with its asset path
placeholder emptied) points at the text itself. Box sometimes reports a
representation ready before its content is written, so a blank result
re-runs the whole resolve and fetch sequence a bounded number of times.
"""

from __future__ import annotations

import asyncio
import logging

from box_loader.client import RemoteClient
from box_loader.config import default_empty_retry
from box_loader.representations.errors import failure_from_error
from box_loader.representations.errors import failure_from_status
from box_loader.representations.errors import RETRIEVAL_ERRORS
from box_loader.representations.resolver import RepresentationResolver
from box_loader.retry import BackoffConfig
from box_loader.retry import Sleeper
from box_loader.retry import wait_before_retry
from box_loader.types import Failure
from box_loader.types import FailureKind
from box_loader.types import FileDescriptor
from box_loader.types import RepresentationDescriptor
from box_loader.types import RetrievalOutcome

logger = logging.getLogger(__name__)

ASSET_PATH_PLACEHOLDER = "{+asset_path}"


def content_url_from_template(url_template: str) -> str:
  """Fill the asset path placeholder with the empty string."""
  return url_template.replace(ASSET_PATH_PLACEHOLDER, "")


class RepresentationFetcher:
  """
  Turns ready representations into text.

  ``fetch`` performs a single two-stage download. ``retrieve`` runs the
  resolver and fetcher together, retrying when the text comes back blank.
  """

  def __init__(
      self,
      client: RemoteClient,
      resolver: RepresentationResolver | None = None,
      retry: BackoffConfig | None = None,
      sleep: Sleeper = asyncio.sleep,
  ):
    """
    Initialize RepresentationFetcher.

    Args:
        client: Remote client used for raw URL fetches
        resolver: Resolver re-run by ``retrieve``; built from client if None
        retry: Budget and delays for blank-content retries
        sleep: Awaitable used between retries (replaceable in tests)
    """
    self.client = client
    self.resolver = resolver or RepresentationResolver(client, sleep=sleep)
    self.retry = retry or default_empty_retry()
    self._sleep = sleep

  async def fetch(self, descriptor: RepresentationDescriptor) -> RetrievalOutcome:
    """
    Download the text behind a ready representation.

    Args:
        descriptor: A descriptor in the ready state

    Returns:
        RetrievalOutcome with the text, or a Failure
    """
    if not descriptor.info_url:
      return RetrievalOutcome(
          failure=Failure(kind=FailureKind.MISSING_URL_TEMPLATE)
      )

    try:
      info_resp = await self.client.http_get(descriptor.info_url)
    except RETRIEVAL_ERRORS as e:
      return RetrievalOutcome(failure=failure_from_error(e))
    if info_resp.status_code != 200:
      return RetrievalOutcome(failure=failure_from_status(info_resp.status_code))

    try:
      info = info_resp.json()
    except ValueError:
      return RetrievalOutcome.failed(FailureKind.INVALID_FORMAT)

    content = info.get("content") if isinstance(info, dict) else None
    url_template = content.get("url_template") if isinstance(content, dict) else None
    if not url_template:
      return RetrievalOutcome.failed(FailureKind.MISSING_URL_TEMPLATE)

    try:
      content_resp = await self.client.http_get(
          content_url_from_template(url_template)
      )
    except RETRIEVAL_ERRORS as e:
      return RetrievalOutcome(failure=failure_from_error(e))
    if not content_resp.is_success:
      return RetrievalOutcome(
          failure=failure_from_status(content_resp.status_code)
      )

    return RetrievalOutcome.success(content_resp.text)

  async def _attempt(self, file: FileDescriptor) -> RetrievalOutcome:
    resolved = await self.resolver.resolve(file)
    if isinstance(resolved, Failure):
      return RetrievalOutcome(failure=resolved)
    return await self.fetch(resolved)

  async def retrieve(self, file: FileDescriptor) -> RetrievalOutcome:
    """
    Resolve and fetch a file's text, retrying blank results.

    The first non-blank text wins. If every attempt is blank (or a retry
    fails), the last outcome is returned as-is.

    Args:
        file: Metadata snapshot of the file

    Returns:
        The final RetrievalOutcome
    """
    outcome = await self._attempt(file)
    for attempt in self.retry.attempts():
      if not outcome.is_empty:
        break
      await wait_before_retry(
          self.retry,
          attempt,
          f"blank content for file {file.id}",
          sleep=self._sleep,
      )
      outcome = await self._attempt(file)

    if outcome.is_empty:
      logger.warning(
          f"File {file.id} ({file.name}) still blank after"
          f" {self.retry.max_retries} retries"
      )
    return outcome
