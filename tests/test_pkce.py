"""Test PKCE verifier and challenge generation"""

import base64
import hashlib

import pytest

from playlister.auth.pkce import (
    MAX_VERIFIER_LENGTH,
    MIN_VERIFIER_LENGTH,
    VERIFIER_PATTERN,
    PKCEPair,
    derive_challenge,
    generate_state,
    generate_verifier,
)


class TestVerifier:
    """Test generate_verifier"""

    def test_length_and_alphabet(self):
        """Test RFC 7636 length and character set"""
        verifier = generate_verifier()

        assert MIN_VERIFIER_LENGTH <= len(verifier) <= MAX_VERIFIER_LENGTH
        assert VERIFIER_PATTERN.match(verifier)

    def test_random(self):
        """Test that two verifiers differ"""
        assert generate_verifier() != generate_verifier()

    def test_too_little_entropy_rejected(self):
        """Test that a verifier below 43 characters is refused"""
        with pytest.raises(ValueError):
            generate_verifier(entropy_bytes=16)


class TestChallenge:
    """Test derive_challenge"""

    def test_rfc7636_example(self):
        """Test the example from RFC 7636 appendix B"""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert derive_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_no_padding(self):
        """Test that the challenge is unpadded base64url of the SHA-256"""
        verifier = generate_verifier()
        expected = base64.urlsafe_b64encode(
            hashlib.sha256(verifier.encode()).digest()
        ).decode().rstrip("=")

        challenge = derive_challenge(verifier)

        assert challenge == expected
        assert "=" not in challenge


class TestPKCEPair:
    """Test PKCEPair"""

    def test_challenge_derived_from_verifier(self):
        """Test that the pair is consistent"""
        pair = PKCEPair.generate()

        assert pair.challenge == derive_challenge(pair.verifier)
        assert pair.challenge != pair.verifier

    def test_pairs_are_random(self):
        """Test that two logins never share a verifier"""
        first, second = PKCEPair.generate(), PKCEPair.generate()

        assert first.verifier != second.verifier
        assert first.challenge != second.challenge

    def test_state_is_random(self):
        """Test generate_state"""
        assert generate_state() != generate_state()
