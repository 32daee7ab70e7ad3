"""
Core module for playlister.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs
    - storage: Single-slot store for the pending PKCE authorization

The progress bar (core.progress) depends on the sync pipeline types and is
imported from its own module.

Usage:
    from playlister.core import (
        Config, load_config,
        setup_logging, get_logger,
        PlaylisterError, ConfigError
    )
"""

from playlister.core.config import (
    Config,
    SpotifyConfig,
    StorageConfig,
    SyncConfig,
    load_config,
)
from playlister.core.exceptions import (
    AuthorizationError,
    CatalogApiError,
    CatalogError,
    ConfigError,
    EmptyInputError,
    FolderError,
    MalformedResponseError,
    MissingVerifierError,
    PlaylisterError,
    RateLimitExceeded,
    SyncAbortedError,
    TokenExchangeError,
)
from playlister.core.logger import get_logger, setup_logging, shutdown_logging
from playlister.core.storage import PendingAuthorization, VerifierStore

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "SyncConfig",
    "StorageConfig",
    "load_config",
    # Exceptions
    "PlaylisterError",
    "ConfigError",
    "FolderError",
    "AuthorizationError",
    "MissingVerifierError",
    "TokenExchangeError",
    "CatalogError",
    "CatalogApiError",
    "RateLimitExceeded",
    "MalformedResponseError",
    "EmptyInputError",
    "SyncAbortedError",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    # Storage
    "PendingAuthorization",
    "VerifierStore",
]
