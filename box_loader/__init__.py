"""
box-loader: load Box files as text Documents.

Retrieves server-rendered text and markdown representations of files stored
in Box, either for an explicit list of file ids or by walking a folder tree.

Features:
- Polls representation generation until ready, with linear backoff
- Paginated, optionally recursive folder traversal that streams lazily
- Per-file failure isolation: failed reads become diagnostic content
- Image and video files are skipped before any representation request

Example:
    ```python
    from box_loader import BoxLoader, DeveloperTokenAuth

    loader = BoxLoader(
        auth=DeveloperTokenAuth("..."),
        folder_id="0",
        recursive=True,
    )
    docs = await loader.load()
    ```
"""

import logging as _logging

# Logs warnings and above to stderr by default
_logger = _logging.getLogger(__name__)
if not _logger.handlers:
  _handler = _logging.StreamHandler()
  _handler.setFormatter(
      _logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
  )
  _logger.addHandler(_handler)
  _logger.setLevel(_logging.WARNING)


def configure_logging(
    level: int = _logging.WARNING,
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
  """
  Configure logging for the box_loader package.

  By default the library logs WARNING and above to stderr.

  Args:
      level: Logging level (e.g., logging.DEBUG, logging.INFO).
      format: Log message format string.

  Example:
      import logging
      import box_loader

      box_loader.configure_logging(level=logging.INFO)
  """
  logger = _logging.getLogger(__name__)
  logger.setLevel(level)
  for handler in logger.handlers:
    handler.setLevel(level)
    handler.setFormatter(_logging.Formatter(format))


from box_loader.assembler import DocumentAssembler
from box_loader.auth import auth_from_env
from box_loader.auth import CCGAuth
from box_loader.auth import CredentialProvider
from box_loader.auth import DeveloperTokenAuth
from box_loader.auth import JWTAuth
from box_loader.client import BoxClient
from box_loader.client import RemoteClient
from box_loader.config import load_config
from box_loader.config import LoaderConfig
from box_loader.exceptions import AuthenticationError
from box_loader.exceptions import BoxAPIError
from box_loader.exceptions import BoxLoaderError
from box_loader.exceptions import ConfigurationError
from box_loader.exceptions import InvalidResponseError
from box_loader.extensions import format_file_size
from box_loader.extensions import is_image_file
from box_loader.extensions import is_media_file
from box_loader.extensions import is_text_file
from box_loader.extensions import is_video_file
from box_loader.extensions import sanitize_folder_id
from box_loader.loader import BoxLoader
from box_loader.loader import load_documents
from box_loader.representations import RepresentationFetcher
from box_loader.representations import RepresentationResolver
from box_loader.retry import BackoffConfig
from box_loader.types import Document
from box_loader.types import Failure
from box_loader.types import FailureKind
from box_loader.types import FileDescriptor
from box_loader.types import FolderEntry
from box_loader.types import RepresentationDescriptor
from box_loader.types import RepresentationKind
from box_loader.types import RepresentationState
from box_loader.types import RetrievalOutcome
from box_loader.walker import FolderWalker

__all__ = [
    "configure_logging",
    # Loader
    "BoxLoader",
    "load_documents",
    # Auth and client
    "CredentialProvider",
    "DeveloperTokenAuth",
    "CCGAuth",
    "JWTAuth",
    "auth_from_env",
    "RemoteClient",
    "BoxClient",
    # Engine components
    "RepresentationResolver",
    "RepresentationFetcher",
    "FolderWalker",
    "DocumentAssembler",
    # Config
    "LoaderConfig",
    "BackoffConfig",
    "load_config",
    # Types
    "Document",
    "FileDescriptor",
    "FolderEntry",
    "RepresentationKind",
    "RepresentationState",
    "RepresentationDescriptor",
    "RetrievalOutcome",
    "Failure",
    "FailureKind",
    # Errors
    "BoxLoaderError",
    "ConfigurationError",
    "AuthenticationError",
    "BoxAPIError",
    "InvalidResponseError",
    # Helpers
    "format_file_size",
    "is_image_file",
    "is_media_file",
    "is_video_file",
    "is_text_file",
    "sanitize_folder_id",
]
