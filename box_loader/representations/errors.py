"""
Conversion of client-level exceptions into per-file Failures.
"""

import httpx

from box_loader.exceptions import AuthenticationError
from box_loader.exceptions import BoxAPIError
from box_loader.exceptions import InvalidResponseError
from box_loader.types import Failure
from box_loader.types import FailureKind

# httpx.InvalidURL is not an httpx.HTTPError subclass
RETRIEVAL_ERRORS = (
    BoxAPIError,
    AuthenticationError,
    InvalidResponseError,
    httpx.HTTPError,
    httpx.InvalidURL,
)


def failure_from_error(error: Exception) -> Failure:
  """Classify an exception raised by a RemoteClient call."""
  if isinstance(error, BoxAPIError):
    kind = (
        FailureKind.AUTHENTICATION
        if error.is_auth_error
        else FailureKind.HTTP_STATUS
    )
    return Failure(kind=kind, detail=str(error), status=error.status)
  if isinstance(error, AuthenticationError):
    return Failure(
        kind=FailureKind.AUTHENTICATION, detail=str(error), status=error.status
    )
  if isinstance(error, (InvalidResponseError, httpx.InvalidURL)):
    return Failure(kind=FailureKind.INVALID_FORMAT, detail=str(error) or None)
  return Failure(kind=FailureKind.NETWORK_ERROR, detail=str(error) or None)


def failure_from_status(status: int) -> Failure:
  """Classify a non-success status from a raw URL fetch."""
  if status in (401, 403):
    return Failure(kind=FailureKind.AUTHENTICATION, status=status)
  return Failure(kind=FailureKind.HTTP_STATUS, status=status)
