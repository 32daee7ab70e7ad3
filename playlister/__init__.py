"""
playlister: Turn a folder of audio files into a Spotify playlist.

This package reads the file names of a local music folder, looks each one
up on Spotify, creates a new private playlist named after the folder and
adds every track it found.

Architecture:
    The process runs in a fixed sequence:

    LOGIN (auth/): OAuth2 authorization code flow with PKCE
        - Generate verifier/challenge, open Spotify's consent page
        - Capture the redirect (local server or pasted URL)
        - Exchange {code, code_verifier} at the trusted backend

    SCAN (sync/folder.py): List audio files of the folder

    SYNC (sync/pipeline.py, spotify/):
        - Fetch the user's profile
        - Create the playlist
        - Search one track per file name ("{title} {artist}")
        - Add matches in chunks of 100

Modules:
    core/       - Configuration, logging, exceptions, verifier storage, progress bar
    auth/       - PKCE login and redirect capture
    spotify/    - Rate-limit aware Web API client and response models
    sync/       - File name normalization, folder scan, sync pipeline
    cli.py      - Command-line interface

Usage:
    Command Line:
        playlister sync "~/Music/Road Trip"
        playlister sync "~/Music/Road Trip" --name "Road Trip 2026"
        playlister sync "~/Music/Road Trip" --dry-run
        playlister login

    Python API:
        from playlister.core import load_config, setup_logging, VerifierStore
        from playlister.auth import CredentialBroker, wait_for_redirect
        from playlister.spotify import CatalogClient
        from playlister.sync import SyncPipeline, scan_folder

        config = load_config()
        broker = CredentialBroker(config.spotify, VerifierStore(config.storage.directory))
        broker.begin_login()
        redirect = wait_for_redirect(config.spotify.redirect_uri)
        credential = broker.complete_login(redirect.code, redirect.state)

        client = CatalogClient.from_config(
            credential, config.sync, base_url=config.spotify.api_base_url
        )
        scan = scan_folder(Path("~/Music/Road Trip"))
        result = SyncPipeline(client).run(scan.file_names, scan.name)

Dependencies:
    - requests: HTTP for the Web API and the token exchange
    - rich-click: CLI framework with colored help
    - rich: Progress bar
    - tqdm: Progress-bar-safe console logging
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for credentials
"""

__version__ = "0.1.0"
__author__ = "playlister"
__license__ = "MIT"

# Convenience imports for common usage
from playlister.auth import Credential, CredentialBroker
from playlister.core import (
    AuthorizationError,
    CatalogApiError,
    Config,
    ConfigError,
    EmptyInputError,
    PlaylisterError,
    RateLimitExceeded,
    SyncAbortedError,
    get_logger,
    load_config,
    setup_logging,
)
from playlister.spotify import CatalogClient
from playlister.sync import SyncPipeline, SyncResult, normalize_track_name, scan_folder

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "PlaylisterError",
    "ConfigError",
    "AuthorizationError",
    "CatalogApiError",
    "RateLimitExceeded",
    "EmptyInputError",
    "SyncAbortedError",
    # Components
    "Credential",
    "CredentialBroker",
    "CatalogClient",
    "SyncPipeline",
    "SyncResult",
    "normalize_track_name",
    "scan_folder",
]
