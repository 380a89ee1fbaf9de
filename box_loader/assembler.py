"""
Document assembly: media skip rule, truncation and metadata.
"""

import logging

from box_loader.extensions import is_media_extension
from box_loader.extensions import is_media_file
from box_loader.types import Document
from box_loader.types import FileDescriptor
from box_loader.types import RetrievalOutcome

logger = logging.getLogger(__name__)


def truncate(content: str, character_limit: int | None) -> str:
  """Cut ``content`` to ``character_limit`` characters when positive."""
  if character_limit is not None and character_limit > 0:
    return content[:character_limit]
  return content


class DocumentAssembler:
  """Builds output Documents from file metadata and retrieval outcomes."""

  def __init__(self, character_limit: int | None = None):
    self.character_limit = character_limit

  @staticmethod
  def should_skip(file: FileDescriptor) -> bool:
    """True for image and video files, which never produce a Document."""
    if file.extension:
      return is_media_extension(file.extension)
    return is_media_file(file.name)

  def assemble(
      self,
      file: FileDescriptor,
      outcome: RetrievalOutcome,
      character_limit: int | None = None,
  ) -> Document | None:
    """
    Build the Document for one file.

    Args:
        file: Metadata snapshot of the file
        outcome: Retrieved text or failure
        character_limit: Overrides the assembler-wide limit for this call

    Returns:
        The Document, or None for image/video files
    """
    if self.should_skip(file):
      logger.debug(f"Skipping media file {file.id} ({file.name})")
      return None

    if not outcome.ok:
      logger.warning(
          f"Could not read file {file.id} ({file.name}):"
          f" {outcome.failure.kind.value}"
      )
    if character_limit is None:
      character_limit = self.character_limit
    content = truncate(outcome.render(file.name), character_limit)
    return Document.for_file(file, content)
