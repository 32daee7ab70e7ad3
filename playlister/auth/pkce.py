"""
PKCE (Proof Key for Code Exchange, RFC 7636) helpers.

The verifier is a high-entropy URL-safe secret kept on this machine; only
its SHA-256 hash (the challenge) is sent to the authorization endpoint.
The verifier itself is sent once, to the token-exchange backend, together
with the authorization code.
"""

import base64
import hashlib
import re
import secrets
from dataclasses import dataclass


# RFC 7636 section 4.1
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")

DEFAULT_ENTROPY_BYTES = 64
CHALLENGE_METHOD = "S256"


def _b64url_no_pad(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def generate_verifier(entropy_bytes: int = DEFAULT_ENTROPY_BYTES) -> str:
    """
    Generate a random code verifier.

    64 bytes of entropy encode to 86 characters, inside the 43..128 range.
    """
    verifier = _b64url_no_pad(secrets.token_bytes(entropy_bytes))
    if not VERIFIER_PATTERN.match(verifier):
        raise ValueError(
            f"entropy_bytes={entropy_bytes} gives a verifier of {len(verifier)} characters, "
            f"outside {MIN_VERIFIER_LENGTH}..{MAX_VERIFIER_LENGTH}"
        )
    return verifier


def derive_challenge(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding."""
    return _b64url_no_pad(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_state() -> str:
    return secrets.token_urlsafe(16)


@dataclass(frozen=True)
class PKCEPair:
    """
    A verifier and the challenge derived from it.

    Attributes:
        verifier: Secret kept locally until the token exchange.
        challenge: Hash of the verifier sent with the authorize request.
    """
    verifier: str
    challenge: str

    @classmethod
    def generate(cls) -> "PKCEPair":
        verifier = generate_verifier()
        return cls(verifier=verifier, challenge=derive_challenge(verifier))
