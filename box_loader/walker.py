"""
Folder tree traversal.

Folders are listed page by page. A page of exactly ``page_size`` entries
always triggers one more request at the next offset; a shorter page
(including an empty one) ends the folder. Recursion is depth-first
pre-order, driven by an explicit stack of folder cursors so at most one
page per depth level is buffered.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
import logging
from typing import AsyncIterator

from box_loader.client import RemoteClient
from box_loader.config import LoaderConfig
from box_loader.representations.errors import RETRIEVAL_ERRORS
from box_loader.types import FolderEntry

logger = logging.getLogger(__name__)


@dataclass
class FolderCursor:
  """Position within one folder's paginated listing."""

  folder_id: str
  depth: int
  offset: int = 0
  page: list[FolderEntry] = field(default_factory=list)
  index: int = 0
  exhausted: bool = False
  pages_fetched: int = 0


class FolderWalker:
  """
  Enumerates file entries under a folder.

  Example:
      ```python
      walker = FolderWalker(client, recursive=True)

      # Lazy: one page per depth level in memory
      async for entry in walker.iter_entries("0"):
          print(entry.name)

      # Eager: the full list
      entries = await walker.list_entries("0")
      ```
  """

  def __init__(
      self,
      client: RemoteClient,
      recursive: bool = False,
      config: LoaderConfig | None = None,
  ):
    self.client = client
    self.recursive = recursive
    self.config = config or LoaderConfig()

  @property
  def page_size(self) -> int:
    return self.config.page_size

  async def _fetch_page(self, cursor: FolderCursor) -> bool:
    """
    Load the cursor's next page.

    Returns:
        False if the listing call failed and the folder must be abandoned
    """
    try:
      page = await self.client.list_folder_items(
          cursor.folder_id,
          cursor.offset,
          self.page_size,
          self.config.folder_fields,
      )
    except RETRIEVAL_ERRORS as e:
      logger.warning(
          f"Error listing folder {cursor.folder_id} at offset"
          f" {cursor.offset}; skipping the rest of it: {e}"
      )
      cursor.exhausted = True
      return False

    cursor.pages_fetched += 1
    cursor.page = page
    cursor.index = 0
    cursor.offset += len(page)
    if len(page) < self.page_size:
      cursor.exhausted = True
    return True

  async def _next_entry(self, cursor: FolderCursor) -> FolderEntry | None:
    """Next entry of the folder, fetching a page only when needed."""
    while cursor.index >= len(cursor.page):
      if cursor.exhausted:
        return None
      if not await self._fetch_page(cursor):
        return None
    entry = cursor.page[cursor.index]
    cursor.index += 1
    return entry

  def _should_descend(self, depth: int) -> bool:
    if not self.recursive:
      return False
    max_depth = self.config.max_depth
    return max_depth is None or depth < max_depth

  async def iter_entries(self, folder_id: str) -> AsyncIterator[FolderEntry]:
    """
    Lazily yield file entries under ``folder_id``.

    Listing calls happen only when the consumer pulls past the buffered
    page. Subfolders are expanded in place when recursion is enabled and
    dropped otherwise.

    Args:
        folder_id: Folder to enumerate

    Yields:
        FolderEntry for each file, in depth-first pre-order
    """
    stack = [FolderCursor(folder_id=folder_id, depth=0)]
    while stack:
      cursor = stack[-1]
      entry = await self._next_entry(cursor)
      if entry is None:
        stack.pop()
        continue
      if entry.is_folder:
        if self._should_descend(cursor.depth):
          stack.append(FolderCursor(folder_id=entry.id, depth=cursor.depth + 1))
        continue
      if entry.is_file:
        yield entry

  async def list_entries(self, folder_id: str) -> list[FolderEntry]:
    """Eagerly collect every file entry under ``folder_id``."""
    return [entry async for entry in self.iter_entries(folder_id)]
