"""
Credential providers for the Box API.

A CredentialProvider hands out bearer tokens. Three flavours are supported:
a static developer token, the client-credentials grant (CCG) and the JWT
bearer grant, the latter two used by server-side Box apps.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
import json
import logging
import os
from pathlib import Path
import time
from typing import Any
import uuid

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
import httpx
import jwt

from box_loader.config import DEFAULT_AUTH_URL
from box_loader.config import LoaderConfig
from box_loader.exceptions import AuthenticationError
from box_loader.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Refresh grant tokens this many seconds before Box says they expire
TOKEN_EXPIRY_MARGIN = 60.0

# Box rejects JWT assertions that live longer than 60 seconds
JWT_ASSERTION_LIFETIME = 30
JWT_ALGORITHM = "RS256"
JWT_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class CredentialProvider(ABC):
  """Supplies a bearer token on demand."""

  @abstractmethod
  async def get_access_token(self) -> str:
    """Return a token valid for at least the next request."""
    ...

  async def aclose(self) -> None:
    """Release any resources held by the provider."""


class DeveloperTokenAuth(CredentialProvider):
  """A fixed developer token (valid for 60 minutes after generation)."""

  def __init__(self, token: str):
    if not token:
      raise ConfigurationError(
          "Developer token must not be empty",
          config_field="BOX_DEVELOPER_TOKEN",
      )
    self._token = token

  async def get_access_token(self) -> str:
    return self._token

  def __repr__(self) -> str:
    return "DeveloperTokenAuth(token=***)"


class _TokenGrantAuth(CredentialProvider):
  """
  Shared token endpoint handling for the server-side grants.

  Subclasses supply the form fields; this class posts them, maps errors to
  AuthenticationError and caches the token until shortly before expiry.
  """

  def __init__(
      self,
      enterprise_id: str | None,
      user_id: str | None,
      auth_url: str,
      timeout: float,
      http_client: httpx.AsyncClient | None,
  ):
    self.enterprise_id = enterprise_id
    self.user_id = user_id
    self.auth_url = auth_url
    self.timeout = timeout
    self._http = http_client
    self._owns_http = http_client is None
    self._token: str | None = None
    self._expires_at = 0.0

  @property
  def subject(self) -> tuple[str, str]:
    """(subject type, subject id) the token is requested for."""
    if self.user_id:
      return "user", self.user_id
    return "enterprise", self.enterprise_id or ""

  def _client(self) -> httpx.AsyncClient:
    if self._http is None:
      self._http = httpx.AsyncClient(timeout=self.timeout)
    return self._http

  @abstractmethod
  def _grant_data(self) -> dict[str, str]:
    """Form fields for one token request."""
    ...

  async def get_access_token(self) -> str:
    if self._token and time.monotonic() < self._expires_at:
      return self._token

    try:
      resp = await self._client().post(self.auth_url, data=self._grant_data())
    except httpx.HTTPError as e:
      raise AuthenticationError(f"Token request failed: {e}") from e

    if resp.status_code != 200:
      message = f"Token request rejected with HTTP {resp.status_code}"
      try:
        payload = resp.json()
        description = payload.get("error_description") or payload.get("error")
        if description:
          message = f"{message}: {description}"
      except (ValueError, AttributeError):
        pass
      raise AuthenticationError(message, status=resp.status_code)

    try:
      payload = resp.json()
      token = payload["access_token"]
    except (ValueError, KeyError, TypeError) as e:
      raise AuthenticationError("Token response did not contain a token") from e

    expires_in = float(payload.get("expires_in", 3600))
    self._token = token
    self._expires_at = time.monotonic() + max(
        0.0, expires_in - TOKEN_EXPIRY_MARGIN
    )
    subject_type, subject_id = self.subject
    logger.debug(
        f"Obtained {type(self).__name__} token for {subject_type} {subject_id}"
    )
    return token

  async def aclose(self) -> None:
    if self._owns_http and self._http is not None:
      await self._http.aclose()
      self._http = None


class CCGAuth(_TokenGrantAuth):
  """
  Client Credentials Grant authentication.

  Tokens are requested for either a user or the enterprise service account;
  the user wins when both ids are given. Tokens are cached until shortly
  before expiry.

  Example:
      ```python
      auth = CCGAuth(
          client_id="...",
          client_secret="...",
          enterprise_id="12345",
      )
      token = await auth.get_access_token()
      ```
  """

  def __init__(
      self,
      client_id: str,
      client_secret: str,
      enterprise_id: str | None = None,
      user_id: str | None = None,
      auth_url: str = DEFAULT_AUTH_URL,
      timeout: float = 30.0,
      http_client: httpx.AsyncClient | None = None,
  ):
    """
    Initialize CCGAuth.

    Args:
        client_id: Box app client id
        client_secret: Box app client secret
        enterprise_id: Enterprise id for the service account subject
        user_id: User id for a user subject
        auth_url: Token endpoint
        timeout: Request timeout in seconds
        http_client: Optional client to use instead of creating one
    """
    if not client_id or not client_secret:
      raise ConfigurationError(
          "CCG authentication requires a client id and client secret",
          config_field="BOX_CLIENT_ID",
      )
    if not enterprise_id and not user_id:
      raise ConfigurationError(
          "CCG authentication requires an enterprise id or a user id",
          config_field="BOX_ENTERPRISE_ID",
      )
    super().__init__(enterprise_id, user_id, auth_url, timeout, http_client)
    self.client_id = client_id
    self._client_secret = client_secret

  def _grant_data(self) -> dict[str, str]:
    subject_type, subject_id = self.subject
    return {
        "grant_type": "client_credentials",
        "client_id": self.client_id,
        "client_secret": self._client_secret,
        "box_subject_type": subject_type,
        "box_subject_id": subject_id,
    }

  def __repr__(self) -> str:
    subject_type, subject_id = self.subject
    return f"CCGAuth(client_id={self.client_id!r}, {subject_type}={subject_id!r})"


class JWTAuth(_TokenGrantAuth):
  """
  JWT bearer grant authentication from a Box app config.

  The config is the JSON file Box generates for a JWT app::

      {
        "boxAppSettings": {
          "clientID": "...",
          "clientSecret": "...",
          "appAuth": {"publicKeyID": "...", "privateKey": "...", "passphrase": "..."}
        },
        "enterpriseID": "..."
      }

  Each token request signs a short-lived assertion with the app's private
  key. The user wins over the enterprise when ``user_id`` is given.
  """

  def __init__(
      self,
      app_config: dict[str, Any],
      user_id: str | None = None,
      auth_url: str = DEFAULT_AUTH_URL,
      timeout: float = 30.0,
      http_client: httpx.AsyncClient | None = None,
  ):
    """
    Initialize JWTAuth.

    Args:
        app_config: Parsed Box app config
        user_id: User id for a user subject
        auth_url: Token endpoint, also used as the assertion audience
        timeout: Request timeout in seconds
        http_client: Optional client to use instead of creating one

    Raises:
        ConfigurationError: If the config is incomplete or the private key
            cannot be loaded
    """
    try:
      settings = app_config["boxAppSettings"]
      client_id = settings["clientID"]
      client_secret = settings["clientSecret"]
      app_auth = settings["appAuth"]
      key_id = app_auth["publicKeyID"]
      private_key = app_auth["privateKey"]
    except (KeyError, TypeError) as e:
      raise ConfigurationError(
          f"JWT app config is missing {e}", config_field="BOX_JWT_PATH"
      ) from e

    enterprise_id = app_config.get("enterpriseID")
    if not enterprise_id and not user_id:
      raise ConfigurationError(
          "JWT authentication requires an enterpriseID or a user id",
          config_field="BOX_USER_ID",
      )
    super().__init__(
        str(enterprise_id) if enterprise_id else None,
        user_id,
        auth_url,
        timeout,
        http_client,
    )
    self.client_id = client_id
    self._client_secret = client_secret
    self.key_id = key_id
    self._private_key = _load_private_key(private_key, app_auth.get("passphrase"))

  @classmethod
  def from_file(cls, path: str | Path, **kwargs: Any) -> "JWTAuth":
    """Build from a Box app config JSON file."""
    config_path = Path(path)
    try:
      with config_path.open(encoding="utf-8") as f:
        app_config = json.load(f)
    except FileNotFoundError as e:
      raise ConfigurationError(
          f"JWT config file not found: {config_path}",
          config_field="BOX_JWT_PATH",
      ) from e
    except ValueError as e:
      raise ConfigurationError(
          f"Invalid JSON in {config_path}: {e}", config_field="BOX_JWT_PATH"
      ) from e
    return cls(app_config, **kwargs)

  def build_assertion(self) -> str:
    """Sign a fresh assertion for the configured subject."""
    subject_type, subject_id = self.subject
    claims = {
        "iss": self.client_id,
        "sub": subject_id,
        "box_sub_type": subject_type,
        "aud": self.auth_url,
        "jti": uuid.uuid4().hex,
        "exp": int(time.time()) + JWT_ASSERTION_LIFETIME,
    }
    return jwt.encode(
        claims,
        self._private_key,
        algorithm=JWT_ALGORITHM,
        headers={"kid": self.key_id},
    )

  def _grant_data(self) -> dict[str, str]:
    return {
        "grant_type": JWT_GRANT_TYPE,
        "assertion": self.build_assertion(),
        "client_id": self.client_id,
        "client_secret": self._client_secret,
    }

  def __repr__(self) -> str:
    subject_type, subject_id = self.subject
    return f"JWTAuth(client_id={self.client_id!r}, {subject_type}={subject_id!r})"


def _load_private_key(pem: str, passphrase: str | None):
  try:
    return serialization.load_pem_private_key(
        pem.encode("utf-8"),
        password=passphrase.encode("utf-8") if passphrase else None,
    )
  except (ValueError, TypeError, UnsupportedAlgorithm) as e:
    raise ConfigurationError(
        f"Could not load the JWT private key: {e}",
        config_field="BOX_JWT_PATH",
    ) from e


def auth_from_env(
    env: dict[str, str] | None = None,
    config: LoaderConfig | None = None,
) -> CredentialProvider:
  """
  Build a credential provider from environment variables.

  Checks ``BOX_DEVELOPER_TOKEN`` first, then ``BOX_JWT_PATH`` (with an
  optional ``BOX_USER_ID``), then ``BOX_CLIENT_ID`` / ``BOX_CLIENT_SECRET``
  with ``BOX_ENTERPRISE_ID`` or ``BOX_USER_ID``.

  Args:
      env: Mapping to read instead of ``os.environ``
      config: Supplies the token endpoint and request timeout

  Raises:
      ConfigurationError: If no usable configuration is found
  """
  env = os.environ if env is None else env
  config = config or LoaderConfig()

  developer_token = env.get("BOX_DEVELOPER_TOKEN")
  if developer_token:
    return DeveloperTokenAuth(developer_token)

  jwt_path = env.get("BOX_JWT_PATH")
  if jwt_path:
    return JWTAuth.from_file(
        jwt_path,
        user_id=env.get("BOX_USER_ID"),
        auth_url=config.auth_url,
        timeout=config.request_timeout,
    )

  client_id = env.get("BOX_CLIENT_ID")
  client_secret = env.get("BOX_CLIENT_SECRET")
  if client_id and client_secret:
    return CCGAuth(
        client_id=client_id,
        client_secret=client_secret,
        enterprise_id=env.get("BOX_ENTERPRISE_ID"),
        user_id=env.get("BOX_USER_ID"),
        auth_url=config.auth_url,
        timeout=config.request_timeout,
    )

  raise ConfigurationError(
      "No Box authentication configuration found in environment variables. "
      "Set BOX_DEVELOPER_TOKEN, BOX_JWT_PATH, or BOX_CLIENT_ID and"
      " BOX_CLIENT_SECRET."
  )
