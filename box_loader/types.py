"""
Core data types for box-loader.

Defines the file and folder snapshots returned by the Box API, the
representation lifecycle types used by the resolver, the tagged retrieval
outcome, and the Document record handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any

BOX_FILE_TYPE = "file"
BOX_FOLDER_TYPE = "folder"
BOX_WEB_LINK_TYPE = "web_link"

BOX_SOURCE_PREFIX = "box://file/"
BOX_WEB_URL_PREFIX = "https://app.box.com/file/"


class RepresentationKind(str, Enum):
  """Server-rendered text forms a file can be requested in."""

  EXTRACTED_TEXT = "extracted_text"
  MARKDOWN = "markdown"

  @property
  def hint(self) -> str:
    """Value for the ``x-rep-hints`` request header."""
    return f"[{self.value}]"


class RepresentationState(str, Enum):
  """Lifecycle state of a representation generation job."""

  UNKNOWN = "unknown"
  PENDING = "pending"
  PROCESSING = "processing"
  READY = "ready"
  NONE = "none"
  ERROR = "error"

  @property
  def is_terminal(self) -> bool:
    return self in (
        RepresentationState.READY,
        RepresentationState.NONE,
        RepresentationState.ERROR,
    )

  @classmethod
  def from_api(
      cls, raw_state: str | None, info_url: str | None
  ) -> "RepresentationState":
    """
    Map a Box ``status.state`` value onto a RepresentationState.

    A missing state with an info URL counts as ready. Box reports finished
    jobs as ``success`` or ``viewable``.

    Args:
        raw_state: The state string from the listing, if any
        info_url: The entry's ``info.url``, if any

    Returns:
        The mapped state; unrecognised values map to UNKNOWN
    """
    if raw_state is None:
      return cls.READY if info_url else cls.UNKNOWN
    if not isinstance(raw_state, str):
      return cls.UNKNOWN
    state = raw_state.lower()
    if state in ("success", "viewable"):
      return cls.READY
    if state == "pending":
      return cls.PENDING
    if state == "processing":
      return cls.PROCESSING
    if state == "none":
      return cls.NONE
    if state == "error":
      return cls.ERROR
    return cls.UNKNOWN


@dataclass(frozen=True)
class FileDescriptor:
  """Read-only snapshot of a Box file's metadata."""

  id: str
  name: str = ""
  size: int = 0
  extension: str = ""
  created_at: str = ""
  modified_at: str = ""

  @classmethod
  def from_api(cls, data: dict[str, Any]) -> "FileDescriptor":
    """Build from a Box ``GET /files/{id}`` response body."""
    return cls(
        id=str(data["id"]),
        name=data.get("name") or "",
        size=data.get("size") or 0,
        extension=data.get("extension") or "",
        created_at=data.get("created_at") or "",
        modified_at=data.get("modified_at") or "",
    )


@dataclass(frozen=True)
class FolderEntry:
  """One item from a folder listing page."""

  id: str
  type: str
  name: str = ""
  size: int | None = None
  extension: str | None = None
  created_at: str | None = None
  modified_at: str | None = None

  @property
  def is_file(self) -> bool:
    return self.type == BOX_FILE_TYPE

  @property
  def is_folder(self) -> bool:
    return self.type == BOX_FOLDER_TYPE

  @classmethod
  def from_api(cls, data: dict[str, Any]) -> "FolderEntry":
    """Build from one entry of a ``GET /folders/{id}/items`` page."""
    return cls(
        id=str(data["id"]),
        type=data.get("type", ""),
        name=data.get("name") or "",
        size=data.get("size"),
        extension=data.get("extension"),
        created_at=data.get("created_at"),
        modified_at=data.get("modified_at"),
    )


@dataclass
class RepresentationDescriptor:
  """A representation entry as seen on the most recent listing call."""

  kind: RepresentationKind
  state: RepresentationState = RepresentationState.UNKNOWN
  info_url: str | None = None
  status_message: str | None = None

  @classmethod
  def from_api(
      cls, kind: RepresentationKind, entry: dict[str, Any]
  ) -> "RepresentationDescriptor":
    status = entry.get("status")
    if not isinstance(status, dict):
      status = {}
    info = entry.get("info")
    info_url = info.get("url") if isinstance(info, dict) else None
    return cls(
        kind=kind,
        state=RepresentationState.from_api(status.get("state"), info_url),
        info_url=info_url,
        status_message=status.get("message"),
    )


class FailureKind(str, Enum):
  """Why a file's text could not be retrieved."""

  NO_REPRESENTATION = "no_representation"
  STILL_PROCESSING = "still_processing"
  EXTRACTION_FAILED = "extraction_failed"
  UNKNOWN_STATE = "unknown_state"
  NETWORK_ERROR = "network_error"
  HTTP_STATUS = "http_status"
  AUTHENTICATION = "authentication"
  INVALID_FORMAT = "invalid_format"
  MISSING_URL_TEMPLATE = "missing_url_template"


@dataclass(frozen=True)
class Failure:
  """A typed per-file retrieval failure."""

  kind: FailureKind
  detail: str | None = None
  status: int | None = None

  def render(self, file_name: str) -> str:
    """
    Render the failure as a diagnostic placed in the Document content.

    Args:
        file_name: Name of the file the failure belongs to

    Returns:
        Human-readable diagnostic string
    """
    kind = self.kind
    if kind == FailureKind.NO_REPRESENTATION:
      text = f"No text representation available for file: {file_name}"
    elif kind == FailureKind.STILL_PROCESSING:
      text = f"Text extraction still processing for file: {file_name}"
    elif kind == FailureKind.EXTRACTION_FAILED:
      text = f"Text extraction failed for file: {file_name}"
    elif kind == FailureKind.UNKNOWN_STATE:
      text = f"Unknown representation state for file: {file_name}"
    elif kind == FailureKind.NETWORK_ERROR:
      text = f"Network error reading file: {file_name}"
    elif kind == FailureKind.AUTHENTICATION:
      text = f"Access denied reading file: {file_name}"
    elif kind == FailureKind.INVALID_FORMAT:
      text = f"Invalid representation data format for file: {file_name}"
    elif kind == FailureKind.MISSING_URL_TEMPLATE:
      text = f"No representation URL for file: {file_name}"
    else:
      text = f"Error reading file: {file_name}"

    if self.status is not None:
      text += f" (HTTP {self.status})"
    if self.detail:
      text += f" - {self.detail}"
    return f"[{text}]"


@dataclass(frozen=True)
class RetrievalOutcome:
  """Either retrieved text or a Failure, never both."""

  text: str | None = None
  failure: Failure | None = None

  @classmethod
  def success(cls, text: str) -> "RetrievalOutcome":
    return cls(text=text)

  @classmethod
  def failed(
      cls,
      kind: FailureKind,
      detail: str | None = None,
      status: int | None = None,
  ) -> "RetrievalOutcome":
    return cls(failure=Failure(kind=kind, detail=detail, status=status))

  @property
  def ok(self) -> bool:
    return self.failure is None

  @property
  def is_empty(self) -> bool:
    """True for a successful retrieval whose text is blank."""
    return self.ok and not (self.text or "").strip()

  def render(self, file_name: str) -> str:
    if self.failure is not None:
      return self.failure.render(file_name)
    return self.text or ""


@dataclass
class Document:
  """Text retrieved for one Box file, plus its metadata."""

  page_content: str
  metadata: dict[str, Any] = field(default_factory=dict)

  @classmethod
  def for_file(cls, file: FileDescriptor, content: str) -> "Document":
    """Build a Document with the standard metadata for ``file``."""
    return cls(
        page_content=content,
        metadata={
            "source": f"{BOX_SOURCE_PREFIX}{file.id}",
            "file_id": file.id,
            "file_name": file.name,
            "file_type": file.extension,
            "file_size": file.size,
            "created_at": file.created_at,
            "modified_at": file.modified_at,
            "box_url": f"{BOX_WEB_URL_PREFIX}{file.id}",
        },
    )

  def to_dict(self) -> dict[str, Any]:
    """Convert to dictionary for serialization."""
    return {"page_content": self.page_content, "metadata": dict(self.metadata)}
