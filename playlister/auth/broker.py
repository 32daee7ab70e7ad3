"""
OAuth2 authorization code flow with PKCE for the Spotify Web API.

CredentialBroker drives one login session:

    UNAUTHENTICATED --begin_login()--> AWAITING_CODE
    AWAITING_CODE --complete_login(code)--> EXCHANGING --> AUTHENTICATED
                                                       \\-> FAILED

1. begin_login() generates a PKCE verifier/challenge pair, persists the
   verifier (and a random state value) through the VerifierStore, and opens
   the browser on Spotify's authorize URL carrying only the challenge.
2. Spotify redirects back to redirect_uri with ?code=...&state=...
   (captured by playlister.auth.callback or pasted by the user).
3. complete_login(code, state) loads the verifier and posts
   {code, code_verifier} to the trusted token-exchange backend, which
   answers {access_token}.

The pending verifier is cleared after a successful exchange and after a
definitive failure (non-2xx answer), so an authorization code can never
be exchanged twice. A connection failure keeps it so the exchange may be
retried.

The access token is not refreshed: when it expires, Spotify answers 401
and the user logs in again.
"""

import secrets
import urllib.parse
import webbrowser
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import requests

from playlister.auth.pkce import CHALLENGE_METHOD, PKCEPair, generate_state
from playlister.core.config import SpotifyConfig
from playlister.core.exceptions import (
    AuthorizationError,
    MissingVerifierError,
    TokenExchangeError,
)
from playlister.core.logger import get_logger
from playlister.core.storage import PendingAuthorization, VerifierStore

logger = get_logger(__name__)


class AuthState(str, Enum):
    """Login session states."""
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_CODE = "awaiting_code"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class Credential:
    """
    Bearer access token for the Spotify Web API.

    The token is excluded from repr() so it never ends up in logs.
    """
    access_token: str = field(repr=False)
    token_type: str = "Bearer"

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class CredentialBroker:
    """
    Runs the PKCE login and holds the resulting credential for one session.

    Attributes:
        config: Spotify application settings (client id, URLs, scopes).
        store: Where the pending verifier survives the browser round-trip.
        timeout: Timeout (seconds) for the token-exchange request.
    """

    def __init__(
        self,
        config: SpotifyConfig,
        store: VerifierStore,
        session: requests.Session | None = None,
        browser_opener: Callable[[str], bool] = webbrowser.open,
        timeout: float = 30.0,
    ) -> None:
        self.config = config
        self.store = store
        self.timeout = timeout
        self._session = session or requests.Session()
        self._browser_opener = browser_opener
        self._state = AuthState.UNAUTHENTICATED
        self._credential: Credential | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def credential(self) -> Credential | None:
        return self._credential

    @property
    def is_authenticated(self) -> bool:
        return self._state == AuthState.AUTHENTICATED and self._credential is not None

    def build_authorize_url(self, challenge: str, state: str) -> str:
        """
        Authorization URL for Spotify's consent page.

        Carries the challenge only; the verifier is never part of it.
        """
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "scope": self.config.scopes,
            "code_challenge_method": CHALLENGE_METHOD,
            "code_challenge": challenge,
            "state": state,
        }
        return f"{self.config.authorize_url}?{urllib.parse.urlencode(params)}"

    def begin_login(self, open_browser: bool = True) -> str:
        """
        Start a login: persist a fresh verifier and send the user to Spotify.

        Any previously pending verifier is replaced, so only the newest
        authorize URL can complete.

        Args:
            open_browser: Open the URL in the default browser.

        Returns:
            The authorize URL (for display when no browser can be opened).
        """
        pair = PKCEPair.generate()
        state = generate_state()
        self.store.save(PendingAuthorization.create(pair.verifier, state))

        url = self.build_authorize_url(pair.challenge, state)
        self._credential = None
        self._state = AuthState.AWAITING_CODE
        logger.debug("PKCE verifier generated, waiting for authorization code")

        if open_browser:
            try:
                if not self._browser_opener(url):
                    logger.warning("Could not open a browser; open the URL manually")
            except webbrowser.Error as e:
                logger.warning(f"Could not open a browser: {e}")

        return url

    def complete_login(self, code: str, state: str | None = None) -> Credential:
        """
        Exchange the authorization code for an access token.

        Args:
            code: The ?code= value from the redirect.
            state: The ?state= value from the redirect. When given it must
                   equal the value stored by begin_login().

        Returns:
            The new Credential; the broker is AUTHENTICATED.

        Raises:
            MissingVerifierError: No pending verifier (storage cleared, or
                                  the code was already exchanged).
            AuthorizationError: Empty code or state mismatch.
            TokenExchangeError: Backend unreachable, non-2xx, or no
                                access_token in its answer.
        """
        if not code:
            self._state = AuthState.FAILED
            raise AuthorizationError("Authorization code is empty")

        pending = self.store.load()
        if pending is None:
            self._state = AuthState.FAILED
            raise MissingVerifierError(
                "No pending login found. The authorization code is stale or was "
                "already used; please log in again."
            )

        if state is not None and not secrets.compare_digest(
            state.encode("utf-8"), pending.state.encode("utf-8")
        ):
            self.store.clear()
            self._state = AuthState.FAILED
            raise AuthorizationError(
                "Authorization state mismatch; the redirect does not belong "
                "to the pending login"
            )

        self._state = AuthState.EXCHANGING
        logger.debug("Exchanging authorization code")

        try:
            response = self._session.post(
                self.config.token_exchange_url,
                json={"code": code, "code_verifier": pending.verifier},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # Transient: keep the verifier so the exchange can be retried
            self._state = AuthState.FAILED
            raise TokenExchangeError(
                f"Token exchange request failed: {e}",
                status=None,
                body=str(e),
                details={"original_error": str(e)},
            ) from e

        if not 200 <= response.status_code < 300:
            self.store.clear()
            self._state = AuthState.FAILED
            raise TokenExchangeError(
                f"Token exchange failed ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token:
            self.store.clear()
            self._state = AuthState.FAILED
            raise TokenExchangeError(
                "Token exchange response has no access_token",
                status=response.status_code,
                body=response.text,
            )

        self.store.clear()
        self._credential = Credential(
            access_token=access_token,
            token_type=str(payload.get("token_type") or "Bearer"),
        )
        self._state = AuthState.AUTHENTICATED
        logger.info("Spotify authorization complete")
        return self._credential

    def use_token(self, access_token: str) -> Credential:
        """
        Adopt an access token obtained elsewhere (e.g. --token).

        Skips the PKCE flow entirely.
        """
        if not access_token.strip():
            raise AuthorizationError("Access token is empty")
        self._credential = Credential(access_token=access_token.strip())
        self._state = AuthState.AUTHENTICATED
        return self._credential

