"""
Configuration management for playlister.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml, with overrides taken
from environment variables (a .env file in the current directory is
loaded first).

The configuration file contains:
    - Spotify application settings (client_id, redirect URI, scopes)
    - URL of the trusted token-exchange backend
    - Rate-limit retry ceiling and request timeout
    - Playlist defaults (description, visibility)
    - Storage directory for the pending login and log files

Configuration File Location:
    config.yaml in the current working directory, unless an explicit path
    is given. The file may be omitted entirely when the required values
    come from the environment.

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      redirect_uri: "http://127.0.0.1:8888/callback"
      token_exchange_url: "https://auth.example.com/api/token"

    sync:
      max_rate_limit_retries: 5
      batch_size: 100
      public: false

    storage:
      directory: "~/.playlister"

Environment Overrides:
    SPOTIFY_CLIENT_ID, SPOTIFY_REDIRECT_URI,
    PLAYLISTER_TOKEN_EXCHANGE_URL, PLAYLISTER_STORAGE_DIR
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from playlister.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_SCOPES = "playlist-modify-public playlist-modify-private"
DEFAULT_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
DEFAULT_API_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_DESCRIPTION = "Created from local folder"
DEFAULT_STORAGE_DIR = "~/.playlister"

# Spotify rejects more than 100 URIs per add-items request
MAX_BATCH_SIZE = 100

ENV_OVERRIDES = {
    "SPOTIFY_CLIENT_ID": ("spotify", "client_id"),
    "SPOTIFY_REDIRECT_URI": ("spotify", "redirect_uri"),
    "PLAYLISTER_TOKEN_EXCHANGE_URL": ("spotify", "token_exchange_url"),
    "PLAYLISTER_STORAGE_DIR": ("storage", "directory"),
}


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify application and authorization settings.

    The client ID comes from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    No client secret is involved: the authorization code is bound to a
    PKCE verifier and exchanged by the trusted backend.

    Attributes:
        client_id: The Spotify application client ID.
        redirect_uri: Where Spotify sends the user back with ?code=...
                      Must be registered in the Dashboard.
        token_exchange_url: Trusted backend endpoint that turns
                            {code, code_verifier} into {access_token}.
        scopes: Space-separated OAuth scopes to request.
        authorize_url: Spotify authorization endpoint.
        api_base_url: Spotify Web API base URL (no trailing slash).
    """
    client_id: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    token_exchange_url: str = ""
    scopes: str = DEFAULT_SCOPES
    authorize_url: str = DEFAULT_AUTHORIZE_URL
    api_base_url: str = DEFAULT_API_BASE_URL

    def validate_for_login(self) -> None:
        """
        Check the settings only the PKCE login needs.

        Raises:
            ConfigError: If client_id or token_exchange_url is not set.
        """
        for field, value in (
            ("spotify.client_id", self.client_id),
            ("spotify.token_exchange_url", self.token_exchange_url),
        ):
            if not value:
                raise ConfigError(
                    f"'{field}' is required to log in to Spotify",
                    details={"field": field}
                )


@dataclass(frozen=True)
class SyncConfig:
    """
    Sync behavior configuration.

    Attributes:
        max_rate_limit_retries: How many times one request is resent after
                                a 429 before RateLimitExceeded is raised.
        max_retry_after: Upper bound (seconds) on a single Retry-After wait.
        request_timeout: Per-request timeout in seconds.
        batch_size: URIs per add-tracks call (1..100).
        description: Description set on created playlists.
        public: Whether created playlists are public.
    """
    max_rate_limit_retries: int = 5
    max_retry_after: float = 60.0
    request_timeout: float = 30.0
    batch_size: int = MAX_BATCH_SIZE
    description: str = DEFAULT_DESCRIPTION
    public: bool = False


@dataclass(frozen=True)
class StorageConfig:
    """
    Local storage locations.

    Attributes:
        directory: Absolute path holding the pending PKCE verifier
                   and the logs/ subdirectory.
    """
    directory: Path

    @property
    def logs_directory(self) -> Path:
        return self.directory / "logs"


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and immutable (frozen dataclass).

    Attributes:
        spotify: Spotify application and authorization settings.
        sync: Sync behavior settings.
        storage: Local storage settings.
    """
    spotify: SpotifyConfig
    sync: SyncConfig
    storage: StorageConfig


def load_config(config_path: Path | None = None, load_env: bool = True) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.
                     An explicit path must exist; the default one may be absent.
        load_env: If True, read a .env file into the environment first.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the file has invalid YAML syntax, is missing required
                     fields, or contains invalid values.

    Behavior:
        1. Load .env (python-dotenv) without overriding existing variables
        2. Read and parse YAML content (if the file exists)
        3. Apply environment variable overrides
        4. Validate and build each section with defaults
    """
    if load_env:
        load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    # "spotify:" with nothing below it parses to None
    for section in ("spotify", "sync", "storage"):
        if raw_config.get(section) is None:
            raw_config.pop(section, None)

    _apply_environment(raw_config)

    for section in ("spotify", "sync", "storage"):
        if not isinstance(raw_config.get(section, {}), dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    return Config(
        spotify=_parse_spotify_config(raw_config.get("spotify", {})),
        sync=_parse_sync_config(raw_config.get("sync", {})),
        storage=_parse_storage_config(raw_config.get("storage", {})),
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )
    return raw_config


def _apply_environment(raw_config: dict[str, Any]) -> None:
    """Environment variables take precedence over file-based values."""
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            section_data = raw_config.setdefault(section, {})
            if isinstance(section_data, dict):
                section_data[key] = value


def _require_string(section: dict[str, Any], key: str, field: str) -> str:
    value = section.get(key, "")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    return value.strip()


def _optional_string(section: dict[str, Any], key: str, field: str, default: str) -> str:
    if section.get(key) is None:
        return default
    return _require_string(section, key, field)


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse and validate the Spotify configuration section.

    Raises:
        ConfigError: If a value is not a non-empty string, or a URL does not
                     use http(s). client_id and token_exchange_url may be
                     absent; see SpotifyConfig.validate_for_login().
    """
    client_id = _optional_string(spotify_section, "client_id", "spotify.client_id", "")
    token_exchange_url = _optional_string(
        spotify_section, "token_exchange_url", "spotify.token_exchange_url", ""
    )
    redirect_uri = _optional_string(
        spotify_section, "redirect_uri", "spotify.redirect_uri", DEFAULT_REDIRECT_URI
    )
    scopes = _optional_string(spotify_section, "scopes", "spotify.scopes", DEFAULT_SCOPES)
    authorize_url = _optional_string(
        spotify_section, "authorize_url", "spotify.authorize_url", DEFAULT_AUTHORIZE_URL
    )
    api_base_url = _optional_string(
        spotify_section, "api_base_url", "spotify.api_base_url", DEFAULT_API_BASE_URL
    )

    for field, url in (
        ("spotify.token_exchange_url", token_exchange_url),
        ("spotify.redirect_uri", redirect_uri),
        ("spotify.authorize_url", authorize_url),
        ("spotify.api_base_url", api_base_url),
    ):
        if url and not url.startswith(("http://", "https://")):
            raise ConfigError(
                f"'{field}' must be an http(s) URL",
                details={"field": field, "value": url}
            )

    return SpotifyConfig(
        client_id=client_id,
        redirect_uri=redirect_uri,
        token_exchange_url=token_exchange_url,
        scopes=scopes,
        authorize_url=authorize_url,
        api_base_url=api_base_url.rstrip("/"),
    )


def _parse_sync_config(sync_section: dict[str, Any]) -> SyncConfig:
    """
    Parse and validate the sync configuration section.

    Applies defaults if section is missing or fields are not specified.

    Raises:
        ConfigError: If a numeric field is out of range or has the wrong type.
    """
    defaults = SyncConfig()

    max_retries = sync_section.get("max_rate_limit_retries", defaults.max_rate_limit_retries)
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
        raise ConfigError(
            "'sync.max_rate_limit_retries' must be a non-negative integer",
            details={"field": "sync.max_rate_limit_retries", "value": max_retries}
        )

    max_retry_after = _positive_number(
        sync_section, "max_retry_after", defaults.max_retry_after
    )
    request_timeout = _positive_number(
        sync_section, "request_timeout", defaults.request_timeout
    )

    batch_size = sync_section.get("batch_size", defaults.batch_size)
    if (
        isinstance(batch_size, bool)
        or not isinstance(batch_size, int)
        or not 1 <= batch_size <= MAX_BATCH_SIZE
    ):
        raise ConfigError(
            f"'sync.batch_size' must be an integer between 1 and {MAX_BATCH_SIZE}",
            details={"field": "sync.batch_size", "value": batch_size}
        )

    description = sync_section.get("description", defaults.description)
    if not isinstance(description, str):
        raise ConfigError(
            "'sync.description' must be a string",
            details={"field": "sync.description"}
        )

    public = sync_section.get("public", defaults.public)
    if not isinstance(public, bool):
        raise ConfigError(
            "'sync.public' must be true or false",
            details={"field": "sync.public", "value": public}
        )

    return SyncConfig(
        max_rate_limit_retries=max_retries,
        max_retry_after=max_retry_after,
        request_timeout=request_timeout,
        batch_size=batch_size,
        description=description,
        public=public,
    )


def _positive_number(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(
            f"'sync.{key}' must be a positive number",
            details={"field": f"sync.{key}", "value": value}
        )
    return float(value)


def _parse_storage_config(storage_section: dict[str, Any]) -> StorageConfig:
    """
    Parse the storage section. Expands ~ and makes the path absolute.
    Does NOT create the directory (that happens on first write).
    """
    directory = _optional_string(
        storage_section, "directory", "storage.directory", DEFAULT_STORAGE_DIR
    )
    return StorageConfig(directory=Path(directory).expanduser().resolve())
