"""
Exceptions for box-loader.

Only construction-time and client-level problems surface as exceptions.
Per-file retrieval problems are reported as ``Failure`` outcomes instead
(see ``box_loader.types``).
"""

from typing import Any


class BoxLoaderError(Exception):
  """Base class for box-loader errors."""

  def __init__(self, message: str, details: dict[str, Any] | None = None):
    super().__init__(message)
    self.details = details or {}

  def get_troubleshooting_message(self) -> str:
    """Get troubleshooting guidance for this error."""
    return "Run with --verbose for detailed logs."


class ConfigurationError(BoxLoaderError):
  """Invalid loader options or configuration file."""

  def __init__(
      self,
      message: str,
      config_field: str | None = None,
      details: dict[str, Any] | None = None,
  ):
    super().__init__(message, details)
    self.config_field = config_field

  def get_troubleshooting_message(self) -> str:
    tips = [
        "Troubleshooting:",
        "  1. Pass either file ids or a folder id to the loader",
        "  2. Set BOX_DEVELOPER_TOKEN, BOX_JWT_PATH, or BOX_CLIENT_ID and"
        " BOX_CLIENT_SECRET",
    ]
    if self.config_field:
      tips.append(f"  3. Review the '{self.config_field}' setting")
    return "\n".join(tips)


class AuthenticationError(BoxLoaderError):
  """A bearer token could not be obtained."""

  def __init__(
      self,
      message: str,
      status: int | None = None,
      details: dict[str, Any] | None = None,
  ):
    super().__init__(message, details)
    self.status = status

  def get_troubleshooting_message(self) -> str:
    return "\n".join([
        "Troubleshooting:",
        "  1. Developer tokens expire after 60 minutes; generate a new one",
        "  2. Check the client id and secret of your Box app",
        "  3. Make sure the app is authorized in the Box admin console",
    ])


class BoxAPIError(BoxLoaderError):
  """A Box API call returned a non-success status."""

  def __init__(
      self,
      message: str,
      status: int,
      payload: dict[str, Any] | None = None,
  ):
    super().__init__(message, payload)
    self.status = status
    self.payload = payload or {}

  @property
  def is_auth_error(self) -> bool:
    return self.status in (401, 403)

  @property
  def code(self) -> str | None:
    """Box error code, e.g. ``not_found`` or ``access_denied_insufficient_permissions``."""
    return self.payload.get("code")

  def get_troubleshooting_message(self) -> str:
    if self.is_auth_error:
      return (
          "The token was rejected or lacks access to this item. "
          "Check that the app user is a collaborator on it."
      )
    if self.status == 404:
      return "The item does not exist or is not visible to this user."
    return super().get_troubleshooting_message()


class InvalidResponseError(BoxLoaderError):
  """A Box API call succeeded but its body could not be parsed."""

  def __init__(
      self,
      message: str,
      status: int | None = None,
      details: dict[str, Any] | None = None,
  ):
    super().__init__(message, details)
    self.status = status

  def get_troubleshooting_message(self) -> str:
    return (
        "Box returned an unexpected response body. A proxy or gateway in"
        " front of the API may be rewriting responses."
    )
