"""
Command-line interface for playlister.

This module implements the CLI using Click, with rich-click for colored
help output.

Commands:
    playlister sync <folder>              Create a playlist from a folder
    playlister sync <folder> --dry-run    Show the search queries only
    playlister login                      Check that the Spotify login works

Usage:
    # Playlist named after the folder
    playlister sync "~/Music/Road Trip"

    # Custom name, subfolders included
    playlister sync "~/Music/Road Trip" --name "Road Trip 2026" --recursive

    # Skip the login with an access token obtained elsewhere
    SPOTIFY_ACCESS_TOKEN=... playlister sync "~/Music/Road Trip"

Configuration:
    Reads config.yaml from the current directory (or --config) and .env.
    See playlister.core.config for the available settings.

Exit Codes:
    0  success (also when no track was found)
    1  configuration, folder, input or login error
    2  sync aborted (profile lookup, playlist creation or adding tracks)
    130 interrupted by user
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "playlister sync": [
        {
            "name": "Playlist",
            "options": ["--name", "--recursive", "--dry-run"],
        },
        {
            "name": "Authentication",
            "options": ["--token", "--no-browser"],
        },
        {
            "name": "Advanced Options",
            "options": ["--config", "--verbose", "--help"],
        },
    ],
}

from playlister import __version__
from playlister.auth import (
    Credential,
    CredentialBroker,
    is_loopback_redirect,
    parse_redirect_url,
    wait_for_redirect,
)
from playlister.core import (
    AuthorizationError,
    Config,
    ConfigError,
    EmptyInputError,
    FolderError,
    PlaylisterError,
    SyncAbortedError,
    VerifierStore,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from playlister.core.progress import SearchProgressBar
from playlister.spotify import CatalogClient
from playlister.sync import SyncPipeline, SyncResult, normalize_track_name, scan_folder

logger = get_logger(__name__)


@click.group()
@click.version_option(__version__, prog_name="playlister")
def cli() -> None:
    """
    playlister: Turn a folder of audio files into a Spotify playlist.

    Every audio file name is turned into a search query ("01 - Artist - Title.mp3"
    becomes "Title Artist"), the best Spotify match is picked, and all matches are
    added to a new private playlist named after the folder.
    """


@cli.command()
@click.argument(
    "folder",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--name",
    type=str,
    default=None,
    metavar="<playlist-name>",
    help="Playlist name (default: the folder name)"
)
@click.option(
    "--recursive",
    is_flag=True,
    help="Include audio files in subfolders"
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Only print the search queries; no login, no playlist"
)
@click.option(
    "--token",
    type=str,
    default=None,
    envvar="SPOTIFY_ACCESS_TOKEN",
    metavar="<access-token>",
    help="Use this access token instead of logging in"
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Print the login URL instead of opening a browser"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages"
)
def sync(
    folder: Path,
    name: Optional[str],
    recursive: bool,
    dry_run: bool,
    token: Optional[str],
    no_browser: bool,
    config_path: Optional[Path],
    verbose: bool
) -> None:
    """
    Create a Spotify playlist from the audio files of FOLDER.
    """
    try:
        scan = scan_folder(folder, recursive=recursive)
        playlist_name = (name or scan.name).strip()
        if not playlist_name:
            raise EmptyInputError("Playlist name must not be blank")

        if dry_run:
            _print_queries(scan.name, scan.file_names)
            return

        if not scan.file_names:
            raise EmptyInputError(f"No audio files found in {scan.path}")

        config = load_config(config_path)
        setup_logging(config.storage.logs_directory, verbose=verbose)
        logger.info(f"playlister {__version__} starting")
        logger.info(f"Folder: {scan.path} ({scan.track_count} audio files)")

        broker = _make_broker(config)
        if token:
            credential = broker.use_token(token)
        else:
            credential = _login(broker, config, open_browser=not no_browser)

        result = _run_sync(config, credential, scan.file_names, playlist_name)
        _print_summary(result)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except (FolderError, EmptyInputError) as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    except AuthorizationError as e:
        click.echo(f"Login failed: {e.message}", err=True)
        sys.exit(1)

    except SyncAbortedError as e:
        logger.error(e.message)
        if e.result is not None and e.result.playlist is not None:
            click.echo(f"Playlist (incomplete): {e.result.playlist.url}", err=True)
        sys.exit(2)

    except PlaylisterError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    finally:
        shutdown_logging()


@cli.command()
@click.option(
    "--no-browser",
    is_flag=True,
    help="Print the login URL instead of opening a browser"
)
@click.option(
    "--show-token",
    is_flag=True,
    help="Print the access token (for --token / SPOTIFY_ACCESS_TOKEN)"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
def login(no_browser: bool, show_token: bool, config_path: Optional[Path]) -> None:
    """
    Log in to Spotify and check that the token exchange works.
    """
    try:
        config = load_config(config_path)
        setup_logging(config.storage.logs_directory)
        credential = _login(_make_broker(config), config, open_browser=not no_browser)
        click.echo("Logged in to Spotify.")
        if show_token:
            click.echo(credential.access_token)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except AuthorizationError as e:
        click.echo(f"Login failed: {e.message}", err=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    finally:
        shutdown_logging()


def _make_broker(config: Config) -> CredentialBroker:
    return CredentialBroker(
        config.spotify,
        VerifierStore(config.storage.directory),
        timeout=config.sync.request_timeout,
    )


def _login(broker: CredentialBroker, config: Config, open_browser: bool) -> Credential:
    """
    Run the PKCE login and return the credential.

    With a loopback redirect URI the redirect is captured by a local
    server; otherwise the user pastes the URL the browser landed on.

    Raises:
        ConfigError: client_id or token_exchange_url not configured.
        AuthorizationError: Any login failure.
    """
    config.spotify.validate_for_login()

    url = broker.begin_login(open_browser=open_browser)

    click.echo("Open this URL to authorize playlister:")
    click.echo(url)

    if is_loopback_redirect(config.spotify.redirect_uri):
        click.echo("Waiting for Spotify to redirect back...")
        redirect = wait_for_redirect(config.spotify.redirect_uri)
    else:
        pasted = click.prompt("Paste the full URL you were redirected to")
        redirect = parse_redirect_url(pasted)

    return broker.complete_login(redirect.code, redirect.state)


def _run_sync(
    config: Config,
    credential: Credential,
    file_names: tuple[str, ...],
    playlist_name: str
) -> SyncResult:
    client = CatalogClient.from_config(
        credential, config.sync, base_url=config.spotify.api_base_url
    )
    pipeline = SyncPipeline(
        client,
        description=config.sync.description,
        public=config.sync.public,
    )

    with SearchProgressBar(total=len(file_names)) as progress:
        pipeline.subscribe(progress.handle_entry)
        return pipeline.run(file_names, playlist_name)


def _print_queries(folder_name: str, file_names: tuple[str, ...]) -> None:
    click.echo(f"Folder: {folder_name}")
    click.echo(f"Tracks ({len(file_names)}):")
    for file_name in file_names:
        click.echo(f"  {file_name}  ->  {normalize_track_name(file_name)}")


def _print_summary(result: SyncResult) -> None:
    logger.info("=" * 60)
    if result.playlist is not None:
        logger.info(f"Playlist:          {result.playlist.url}")
    logger.info(f"Found:             {result.found}")
    logger.info(f"Not found:         {result.not_found}")
    logger.info(f"Search errors:     {result.errors}")
    logger.info(f"Added:             {result.added}")
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `playlister` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
