"""
BoxLoader: the entry point for loading Box files as Documents.

Coordinates metadata lookup, the media skip rule, representation
resolution and fetching, and document assembly, for either an explicit
list of file ids or a folder traversal. Files are processed strictly one
after another.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from typing import AsyncIterator

from box_loader.assembler import DocumentAssembler
from box_loader.auth import auth_from_env
from box_loader.auth import CredentialProvider
from box_loader.client import BoxClient
from box_loader.client import RemoteClient
from box_loader.config import LoaderConfig
from box_loader.exceptions import ConfigurationError
from box_loader.extensions import sanitize_folder_id
from box_loader.representations.errors import RETRIEVAL_ERRORS
from box_loader.representations.fetcher import RepresentationFetcher
from box_loader.representations.resolver import RepresentationResolver
from box_loader.retry import Sleeper
from box_loader.types import Document
from box_loader.walker import FolderWalker

logger = logging.getLogger(__name__)


@dataclass
class _Pipeline:
  """Per-load collaborators bound to one client."""

  client: RemoteClient
  fetcher: RepresentationFetcher
  walker: FolderWalker


class BoxLoader:
  """
  Load text Documents from Box files or folders.

  Example:
      ```python
      loader = BoxLoader(
          auth=DeveloperTokenAuth(token),
          folder_id="12345",
          recursive=True,
          character_limit=10_000,
      )

      # Eager
      docs = await loader.load()

      # Lazy - each Document is fetched when pulled
      async for doc in loader.lazy_load():
          print(doc.metadata["file_name"])
      ```
  """

  def __init__(
      self,
      client: RemoteClient | None = None,
      auth: CredentialProvider | None = None,
      file_ids: list[str] | None = None,
      folder_id: str | int | None = None,
      recursive: bool = False,
      character_limit: int | None = None,
      config: LoaderConfig | None = None,
      sleep: Sleeper = asyncio.sleep,
  ):
    """
    Initialize BoxLoader.

    Args:
        client: Ready RemoteClient; left open after loading
        auth: Credential provider used to build a BoxClient per load
        file_ids: Explicit file ids, loaded in order
        folder_id: Folder to traverse ("root" and 0 mean the root folder)
        recursive: Descend into subfolders
        character_limit: Truncate content to this many characters
        config: Page size, retry schedules and endpoints
        sleep: Awaitable used for backoff waits (replaceable in tests)

    Raises:
        ConfigurationError: If no client or credentials are available, or
            neither file ids nor a folder id is given
    """
    if file_ids is None and folder_id is None:
      raise ConfigurationError(
          "Must provide either file_ids or folder_id", config_field="file_ids"
      )

    self.config = config or LoaderConfig()
    self._owns_auth = False
    if client is None and auth is None:
      auth = auth_from_env(config=self.config)
      self._owns_auth = True

    self.client = client
    self.auth = auth
    self.file_ids = [str(file_id) for file_id in file_ids or []]
    self.folder_id = (
        sanitize_folder_id(folder_id) if folder_id is not None else None
    )
    self.recursive = recursive
    self.character_limit = character_limit
    self.assembler = DocumentAssembler(character_limit)
    self._sleep = sleep

  def _build_pipeline(self, client: RemoteClient) -> _Pipeline:
    resolver = RepresentationResolver(
        client, retry=self.config.poll_retry, sleep=self._sleep
    )
    fetcher = RepresentationFetcher(
        client,
        resolver=resolver,
        retry=self.config.empty_retry,
        sleep=self._sleep,
    )
    walker = FolderWalker(client, recursive=self.recursive, config=self.config)
    return _Pipeline(client=client, fetcher=fetcher, walker=walker)

  @asynccontextmanager
  async def _session(self) -> AsyncIterator[_Pipeline]:
    """Yield a pipeline, building and closing a BoxClient if needed."""
    if self.client is not None:
      yield self._build_pipeline(self.client)
      return

    auth = self.auth
    if auth is None:
      raise ConfigurationError(
          "BoxLoader needs a client or a credential provider",
          config_field="auth",
      )
    client = BoxClient(auth, self.config)
    try:
      # Authentication failures here are fatal for the whole load
      await auth.get_access_token()
      yield self._build_pipeline(client)
    finally:
      await client.aclose()
      if self._owns_auth:
        await auth.aclose()

  async def _load_file(
      self, pipeline: _Pipeline, file_id: str
  ) -> Document | None:
    """Load one file; None when it is skipped or its metadata is unavailable."""
    try:
      file = await pipeline.client.get_item_metadata(file_id)
    except RETRIEVAL_ERRORS as e:
      logger.warning(f"Could not fetch metadata for file {file_id}: {e}")
      return None

    if self.assembler.should_skip(file):
      logger.debug(f"Skipping media file {file_id} ({file.name})")
      return None

    outcome = await pipeline.fetcher.retrieve(file)
    return self.assembler.assemble(file, outcome)

  async def lazy_load(self) -> AsyncIterator[Document]:
    """
    Yield Documents one at a time as they are pulled.

    Each call starts a fresh traversal. Explicit file ids come first, then
    the folder traversal. Closing the iterator early stops all further
    requests.

    Yields:
        Document for each readable, non-media file
    """
    async with self._session() as pipeline:
      for file_id in self.file_ids:
        doc = await self._load_file(pipeline, file_id)
        if doc is not None:
          yield doc

      if self.folder_id is not None:
        async for entry in pipeline.walker.iter_entries(self.folder_id):
          doc = await self._load_file(pipeline, entry.id)
          if doc is not None:
            yield doc

  async def load(self) -> list[Document]:
    """
    Load every Document before returning.

    Folder contents are enumerated fully first, then each file is loaded
    in depth-first pre-order.

    Returns:
        Documents in file-id order, followed by folder order
    """
    documents: list[Document] = []
    async with self._session() as pipeline:
      for file_id in self.file_ids:
        doc = await self._load_file(pipeline, file_id)
        if doc is not None:
          documents.append(doc)

      if self.folder_id is not None:
        entries = await pipeline.walker.list_entries(self.folder_id)
        logger.info(f"Folder {self.folder_id}: {len(entries)} files to load")
        for entry in entries:
          doc = await self._load_file(pipeline, entry.id)
          if doc is not None:
            documents.append(doc)

    return documents


def load_documents(**kwargs) -> list[Document]:
  """Synchronous wrapper around ``BoxLoader(**kwargs).load()``."""
  return asyncio.run(BoxLoader(**kwargs).load())
