"""Test configuration and fixtures"""

import json

import pytest
from unittest.mock import Mock

from playlister.auth import Credential
from playlister.core.config import SpotifyConfig
from playlister.core.storage import VerifierStore


def make_response(status_code=200, payload=None, headers=None, text=None):
    """Build a Mock standing in for a requests.Response"""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response.text = text
    response.content = text.encode()
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


@pytest.fixture
def response_factory():
    """Factory for fake HTTP responses"""
    return make_response


@pytest.fixture
def mock_session():
    """Mock requests.Session"""
    return Mock()


@pytest.fixture
def credential():
    """Credential used by client tests"""
    return Credential(access_token="test-token")


@pytest.fixture
def spotify_config():
    """Spotify settings for login tests"""
    return SpotifyConfig(
        client_id="test_client_id",
        redirect_uri="http://127.0.0.1:8888/callback",
        token_exchange_url="https://auth.example.com/api/token",
    )


@pytest.fixture
def verifier_store(tmp_path):
    """Verifier store in a temporary directory"""
    return VerifierStore(tmp_path / "storage")


@pytest.fixture
def sample_search_data():
    """Search response with one track"""
    return {
        'tracks': {
            'items': [
                {
                    'id': '4u7EnebtmKWzUH433cf5Qv',
                    'name': 'Bohemian Rhapsody',
                    'uri': 'spotify:track:4u7EnebtmKWzUH433cf5Qv',
                    'artists': [{'id': 'artist_123', 'name': 'Queen'}],
                }
            ],
            'total': 1,
        }
    }


@pytest.fixture
def sample_playlist_data():
    """Playlist creation response"""
    return {
        'id': 'playlist_123',
        'name': 'Road Trip',
        'external_urls': {'spotify': 'https://open.spotify.com/playlist/playlist_123'},
    }
