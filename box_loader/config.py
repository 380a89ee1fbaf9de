"""
Configuration for box-loader.

Every tunable (page size, retry budgets, delays, endpoints) is a named field
of ``LoaderConfig`` so callers and tests can override it. Configuration can
be built in code or read from a YAML file.
"""

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from box_loader.exceptions import ConfigurationError
from box_loader.retry import BackoffConfig

DEFAULT_API_BASE_URL = "https://api.box.com/2.0"
DEFAULT_AUTH_URL = "https://api.box.com/oauth2/token"
DEFAULT_PAGE_SIZE = 100

# Fields requested for every folder listing page
DEFAULT_FOLDER_FIELDS = [
    "id",
    "name",
    "type",
    "size",
    "created_at",
    "modified_at",
    "extension",
]

# Fields requested when looking up a single file
FILE_METADATA_FIELDS = [
    "id",
    "name",
    "size",
    "extension",
    "created_at",
    "modified_at",
]


def default_poll_retry() -> BackoffConfig:
  """Representation still pending: 3 polls at 1.5s, 3.0s, 4.5s."""
  return BackoffConfig(max_retries=3, base_delay=1.5)


def default_empty_retry() -> BackoffConfig:
  """Representation ready but blank: 2 re-runs at 1.0s, 2.0s."""
  return BackoffConfig(max_retries=2, base_delay=1.0)


@dataclass
class LoaderConfig:
  """Settings for the Box client and the loading engine."""

  api_base_url: str = DEFAULT_API_BASE_URL
  auth_url: str = DEFAULT_AUTH_URL
  request_timeout: float = 30.0
  page_size: int = DEFAULT_PAGE_SIZE
  folder_fields: list[str] = field(
      default_factory=lambda: list(DEFAULT_FOLDER_FIELDS)
  )
  poll_retry: BackoffConfig = field(default_factory=default_poll_retry)
  empty_retry: BackoffConfig = field(default_factory=default_empty_retry)
  max_depth: int | None = None  # None = follow the whole tree

  def __post_init__(self):
    if self.page_size < 1:
      raise ConfigurationError(
          f"page_size must be positive, got {self.page_size}",
          config_field="page_size",
      )
    if self.max_depth is not None and self.max_depth < 0:
      raise ConfigurationError(
          f"max_depth must be >= 0, got {self.max_depth}",
          config_field="max_depth",
      )
    for name in ("poll_retry", "empty_retry"):
      backoff = getattr(self, name)
      if backoff.max_retries < 0 or backoff.base_delay < 0:
        raise ConfigurationError(
            f"{name} values must not be negative", config_field=name
        )

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "LoaderConfig":
    """
    Build a config from a plain dictionary (e.g. parsed YAML).

    Nested ``poll_retry`` / ``empty_retry`` mappings are converted to
    BackoffConfig.

    Raises:
        ConfigurationError: On unknown keys or malformed values
    """
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
      raise ConfigurationError(
          f"Unknown configuration keys: {', '.join(unknown)}",
          config_field=unknown[0],
      )

    values = dict(data)
    defaults = {
        "poll_retry": default_poll_retry(),
        "empty_retry": default_empty_retry(),
    }
    for name, default in defaults.items():
      if name not in values:
        continue
      raw = values[name]
      if not isinstance(raw, dict):
        raise ConfigurationError(
            f"{name} must be a mapping", config_field=name
        )
      try:
        values[name] = BackoffConfig(**{**asdict(default), **raw})
      except TypeError as e:
        raise ConfigurationError(
            f"Invalid {name} settings: {e}", config_field=name
        ) from e

    try:
      return cls(**values)
    except TypeError as e:
      raise ConfigurationError(f"Invalid configuration: {e}") from e

  def to_dict(self) -> dict[str, Any]:
    """Convert to dictionary for serialization."""
    return asdict(self)


def load_config(path: str | Path | None = None) -> LoaderConfig:
  """
  Load a LoaderConfig from a YAML file.

  Args:
      path: YAML file path. None returns the defaults.

  Returns:
      The parsed LoaderConfig

  Raises:
      ConfigurationError: If the file is missing, unparsable or invalid
  """
  if path is None:
    return LoaderConfig()

  config_path = Path(path)
  if not config_path.is_file():
    raise ConfigurationError(f"Config file not found: {config_path}")

  try:
    with config_path.open(encoding="utf-8") as f:
      data = yaml.safe_load(f) or {}
  except yaml.YAMLError as e:
    raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

  if not isinstance(data, dict):
    raise ConfigurationError(f"{config_path} must contain a mapping")
  return LoaderConfig.from_dict(data)
