"""
Spotify login for playlister (OAuth2 authorization code + PKCE).

Usage:
    from playlister.auth import CredentialBroker, wait_for_redirect

    broker = CredentialBroker(config.spotify, VerifierStore(storage_dir))
    broker.begin_login()
    redirect = wait_for_redirect(config.spotify.redirect_uri)
    credential = broker.complete_login(redirect.code, redirect.state)
"""

from playlister.auth.broker import AuthState, Credential, CredentialBroker
from playlister.auth.callback import (
    RedirectResult,
    is_loopback_redirect,
    parse_redirect_url,
    wait_for_redirect,
)
from playlister.auth.pkce import PKCEPair, derive_challenge, generate_verifier

__all__ = [
    "AuthState",
    "Credential",
    "CredentialBroker",
    "RedirectResult",
    "is_loopback_redirect",
    "parse_redirect_url",
    "wait_for_redirect",
    "PKCEPair",
    "derive_challenge",
    "generate_verifier",
]
