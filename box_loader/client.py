"""
Box API client.

RemoteClient is the narrow interface the loading engine talks to;
BoxClient implements it over ``httpx.AsyncClient``. Every call is awaited
one at a time by the engine, so the client holds no request queue of its
own.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
import logging
from typing import Any

import httpx

from box_loader.auth import CredentialProvider
from box_loader.config import FILE_METADATA_FIELDS
from box_loader.config import LoaderConfig
from box_loader.exceptions import BoxAPIError
from box_loader.exceptions import InvalidResponseError
from box_loader.types import FileDescriptor
from box_loader.types import FolderEntry
from box_loader.types import RepresentationKind

logger = logging.getLogger(__name__)


class RemoteClient(ABC):
  """
  Interface to the remote content service.

  Implementations raise ``BoxAPIError`` for non-success API responses,
  ``InvalidResponseError`` for bodies that cannot be parsed, and let
  ``httpx.HTTPError`` propagate for transport failures.
  """

  @abstractmethod
  async def get_item_metadata(self, file_id: str) -> FileDescriptor:
    """Fetch a fresh metadata snapshot for one file."""
    ...

  @abstractmethod
  async def list_representations(
      self, file_id: str, kind: RepresentationKind
  ) -> list[dict[str, Any]]:
    """
    List a file's representations, hinting only ``kind``.

    Returns:
        Raw representation entries (possibly empty)
    """
    ...

  @abstractmethod
  async def list_folder_items(
      self,
      folder_id: str,
      offset: int,
      limit: int,
      fields: list[str],
  ) -> list[FolderEntry]:
    """Fetch one page of a folder's items."""
    ...

  @abstractmethod
  async def http_get(self, url: str) -> httpx.Response:
    """GET an arbitrary URL with authorization; status is not checked."""
    ...

  async def aclose(self) -> None:
    """Release transport resources."""


def _raise_for_status(resp: httpx.Response) -> None:
  if resp.status_code < 400:
    return
  message = f"HTTP {resp.status_code}"
  payload: dict[str, Any] | None = None
  try:
    payload = resp.json()
    msg = payload.get("message") if isinstance(payload, dict) else None
    if isinstance(msg, str) and msg.strip():
      message = msg
  except ValueError:
    text = resp.text.strip()
    if text:
      message = text
  raise BoxAPIError(message, resp.status_code, payload)


class BoxClient(RemoteClient):
  """
  Box API client over httpx.

  Example:
      ```python
      async with BoxClient(DeveloperTokenAuth(token)) as client:
          info = await client.get_item_metadata("12345")
      ```
  """

  def __init__(
      self,
      auth: CredentialProvider,
      config: LoaderConfig | None = None,
      http_client: httpx.AsyncClient | None = None,
  ):
    """
    Initialize BoxClient.

    Args:
        auth: Credential provider used for every request
        config: Endpoint and timeout settings
        http_client: Optional client to use instead of creating one
    """
    self.auth = auth
    self.config = config or LoaderConfig()
    self._owns_http = http_client is None
    self._http = http_client or httpx.AsyncClient(
        timeout=self.config.request_timeout,
        follow_redirects=True,
    )

  async def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
    token = await self.auth.get_access_token()
    headers = {"Authorization": f"Bearer {token}"}
    if extra:
      headers.update(extra)
    return headers

  def _url(self, path: str) -> str:
    return f"{self.config.api_base_url.rstrip('/')}/{path.lstrip('/')}"

  async def _get_json(
      self,
      path: str,
      params: dict[str, Any] | None = None,
      headers: dict[str, str] | None = None,
  ) -> dict[str, Any]:
    resp = await self._http.get(
        self._url(path),
        params=params,
        headers=await self._headers(headers),
    )
    _raise_for_status(resp)
    try:
      data = resp.json()
    except ValueError as e:
      raise InvalidResponseError(
          f"Response from {path} is not JSON", status=resp.status_code
      ) from e
    if not isinstance(data, dict):
      raise InvalidResponseError(
          f"Response from {path} is not a JSON object", status=resp.status_code
      )
    return data

  async def get_item_metadata(self, file_id: str) -> FileDescriptor:
    data = await self._get_json(
        f"files/{file_id}",
        params={"fields": ",".join(FILE_METADATA_FIELDS)},
    )
    try:
      return FileDescriptor.from_api(data)
    except (KeyError, TypeError, ValueError) as e:
      raise InvalidResponseError(f"Malformed metadata for file {file_id}") from e

  async def list_representations(
      self, file_id: str, kind: RepresentationKind
  ) -> list[dict[str, Any]]:
    data = await self._get_json(
        f"files/{file_id}",
        params={"fields": "representations"},
        headers={"x-rep-hints": kind.hint},
    )
    representations = data.get("representations") or {}
    entries = (
        representations.get("entries")
        if isinstance(representations, dict)
        else None
    )
    if entries is None:
      return []
    if not isinstance(entries, list) or not all(
        isinstance(entry, dict) for entry in entries
    ):
      raise InvalidResponseError(
          f"Malformed representation list for file {file_id}"
      )
    return entries

  async def list_folder_items(
      self,
      folder_id: str,
      offset: int,
      limit: int,
      fields: list[str],
  ) -> list[FolderEntry]:
    logger.debug(f"Listing folder {folder_id} offset={offset} limit={limit}")
    data = await self._get_json(
        f"folders/{folder_id}/items",
        params={"offset": offset, "limit": limit, "fields": ",".join(fields)},
    )
    try:
      return [FolderEntry.from_api(entry) for entry in data.get("entries") or []]
    except (KeyError, TypeError, AttributeError) as e:
      raise InvalidResponseError(
          f"Malformed item page for folder {folder_id}"
      ) from e

  async def http_get(self, url: str) -> httpx.Response:
    return await self._http.get(url, headers=await self._headers())

  async def aclose(self) -> None:
    if self._owns_http:
      await self._http.aclose()

  async def __aenter__(self) -> "BoxClient":
    return self

  async def __aexit__(self, *args) -> None:
    await self.aclose()
