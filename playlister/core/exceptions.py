"""
Exception classes for playlister.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes.

Exception Hierarchy:
    PlaylisterError (base)
        ConfigError - Configuration file issues
        FolderError - Local folder cannot be scanned
        AuthorizationError - OAuth/PKCE login issues
            MissingVerifierError - No pending PKCE verifier on return
            TokenExchangeError - Token-exchange backend refused the code
        CatalogError - Spotify Web API issues
            CatalogApiError - Non-2xx response (or transport failure)
                RateLimitExceeded - 429 responses past the retry ceiling
            MalformedResponseError - Response body has an unexpected shape
        EmptyInputError - Nothing to synchronize
        SyncAbortedError - A pipeline run stopped before completion
"""

from typing import Any


class PlaylisterError(Exception):
    """
    Base exception for all playlister errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all playlister errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., status, URLs).

    Example:
        try:
            # some operation
        except PlaylisterError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'status': HTTP status code of the failing response
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(PlaylisterError):
    """
    Raised when there's an issue with the configuration.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Required fields missing (client_id, token_exchange_url)
        - Invalid field values (e.g., batch_size above 100)
    """
    pass


class FolderError(PlaylisterError):
    """
    Raised when the local music folder cannot be read.

    Common causes:
        - Folder does not exist
        - Path points to a file instead of a directory
        - Permission denied while listing
    """
    pass


class AuthorizationError(PlaylisterError):
    """
    Raised when the OAuth authorization sequence fails.

    This is a CRITICAL error: no pipeline step may run without a credential.

    Common causes:
        - User denied consent (error parameter on the redirect)
        - State parameter mismatch on the redirect
        - Timed out waiting for the redirect
    """
    pass


class MissingVerifierError(AuthorizationError):
    """
    Raised when an authorization code arrives but no PKCE verifier is pending.

    Happens when the storage was cleared between the redirect and the return,
    or when an authorization code that was already exchanged is replayed.
    The only recovery is a fresh login.
    """
    pass


class TokenExchangeError(AuthorizationError):
    """
    Raised when the token-exchange backend does not return an access token.

    Attributes:
        status: HTTP status of the backend response, or None for
                connection failures.
        body: Response body text (for diagnostics).
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str = "",
        details: dict | None = None
    ) -> None:
        details = dict(details or {})
        details.setdefault("status", status)
        super().__init__(message, details)
        self.status = status
        self.body = body


class CatalogError(PlaylisterError):
    """
    Base class for failures talking to the Spotify Web API.

    Per-track search failures of this type are isolated by the sync
    pipeline; profile, playlist creation and write failures abort the run.
    """
    pass


class CatalogApiError(CatalogError):
    """
    Raised for a non-2xx, non-429 response from the Spotify Web API.

    Also raised with ``status=None`` when the request never got a response
    (DNS failure, connection reset, timeout).

    Attributes:
        status: HTTP status code, or None for transport failures.
        body: Response body text as returned by the API.

    Example:
        raise CatalogApiError(
            "Spotify API error (404): Not found",
            status=404,
            body='{"error": {"status": 404, "message": "Not found"}}'
        )
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str = "",
        details: dict | None = None
    ) -> None:
        details = dict(details or {})
        details.setdefault("status", status)
        super().__init__(message, details)
        self.status = status
        self.body = body

    @property
    def is_auth_error(self) -> bool:
        """True when the access token was rejected (expired or revoked)."""
        return self.status == 401


class RateLimitExceeded(CatalogApiError):
    """
    Raised when the API keeps answering 429 past the configured retry ceiling.

    Attributes:
        retry_after: The last Retry-After value (seconds) the API asked for.
        attempts: How many requests were sent in total.
    """

    def __init__(
        self,
        message: str,
        retry_after: float,
        attempts: int,
        body: str = ""
    ) -> None:
        super().__init__(
            message,
            status=429,
            body=body,
            details={"retry_after": retry_after, "attempts": attempts}
        )
        self.retry_after = retry_after
        self.attempts = attempts


class MalformedResponseError(CatalogError):
    """
    Raised when a 2xx response does not match the expected schema.

    Example:
        raise MalformedResponseError(
            "Search response has no 'tracks.items' list",
            details={"response": data}
        )
    """
    pass


class EmptyInputError(PlaylisterError):
    """Raised when a sync run is started without any file names."""
    pass


class SyncAbortedError(PlaylisterError):
    """
    Raised when a sync run stops at a step that cannot be skipped.

    Attributes:
        stage: The SyncStage at which the run stopped
               (profile lookup, playlist creation, or adding tracks).
        result: The partial SyncResult with every progress entry emitted
                before the failure. ``result.playlist`` is set when the
                playlist was already created.
    """

    def __init__(
        self,
        message: str,
        stage: Any,
        result: Any,
        details: dict | None = None
    ) -> None:
        super().__init__(message, details)
        self.stage = stage
        self.result = result
