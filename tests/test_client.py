"""Test the Spotify Web API client"""

import json

import pytest
import requests
from unittest.mock import Mock

from playlister.core.config import SyncConfig
from playlister.core.exceptions import (
    CatalogApiError,
    MalformedResponseError,
    RateLimitExceeded,
)
from playlister.spotify.client import CatalogClient, chunked, parse_retry_after
from playlister.spotify.models import PlaylistRef, UserProfile


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def client(credential, mock_session, sleep):
    return CatalogClient(credential, session=mock_session, sleep=sleep)


def _sent_headers(mock_session, call=0):
    return mock_session.request.call_args_list[call].kwargs["headers"]


class TestRequest:
    """Test CatalogClient.request"""

    def test_injects_auth_and_content_type(self, client, mock_session, response_factory):
        """Test the headers on every call"""
        mock_session.request.return_value = response_factory(200, {"ok": True})

        assert client.request("GET", "/me") == {"ok": True}

        headers = _sent_headers(mock_session)
        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Content-Type"] == "application/json"
        args = mock_session.request.call_args
        assert args.args == ("GET", "https://api.spotify.com/v1/me")

    def test_caller_headers_extend_but_cannot_replace_auth(
        self, client, mock_session, response_factory
    ):
        """Test that the credential owns Authorization"""
        mock_session.request.return_value = response_factory(200, {})

        client.request("GET", "/me", headers={"authorization": "Bearer evil", "X-Trace": "1"})

        headers = _sent_headers(mock_session)
        assert headers["Authorization"] == "Bearer test-token"
        assert "authorization" not in headers
        assert headers["X-Trace"] == "1"

    def test_body_is_json(self, client, mock_session, response_factory):
        """Test body serialization"""
        mock_session.request.return_value = response_factory(201, {"id": "x"})

        client.request("POST", "/things", body={"a": 1})

        assert json.loads(mock_session.request.call_args.kwargs["data"]) == {"a": 1}

    def test_empty_success_body(self, client, mock_session, response_factory):
        """Test a 2xx without content"""
        mock_session.request.return_value = response_factory(204)

        assert client.request("DELETE", "/things") == {}

    def test_absolute_url(self, client, mock_session, response_factory):
        """Test that absolute URLs (e.g. paging links) are used as-is"""
        mock_session.request.return_value = response_factory(200, {})

        client.request("GET", "https://api.spotify.com/v1/me/playlists?offset=50")

        assert mock_session.request.call_args.args[1] == (
            "https://api.spotify.com/v1/me/playlists?offset=50"
        )

    def test_error_status_not_retried(self, client, mock_session, sleep, response_factory):
        """Test that a non-429 error fails at once with status and body"""
        mock_session.request.return_value = response_factory(500, text="server exploded")

        with pytest.raises(CatalogApiError) as exc_info:
            client.request("GET", "/me")

        assert exc_info.value.status == 500
        assert exc_info.value.body == "server exploded"
        assert mock_session.request.call_count == 1
        sleep.assert_not_called()

    def test_unauthorized(self, client, mock_session, response_factory):
        """Test that an expired token surfaces as a 401 error"""
        mock_session.request.return_value = response_factory(401, text="expired")

        with pytest.raises(CatalogApiError) as exc_info:
            client.request("GET", "/me")

        assert exc_info.value.is_auth_error

    def test_transport_error(self, client, mock_session):
        """Test that connection failures become CatalogApiError without status"""
        mock_session.request.side_effect = requests.ConnectionError("reset")

        with pytest.raises(CatalogApiError) as exc_info:
            client.request("GET", "/me")

        assert exc_info.value.status is None


class TestRateLimiting:
    """Test 429 handling"""

    def test_retry_after_then_success(self, client, mock_session, sleep, response_factory):
        """Test that one 429 then 200 yields exactly one outcome"""
        mock_session.request.side_effect = [
            response_factory(429, headers={"Retry-After": "3"}),
            response_factory(200, {"id": "user"}),
        ]

        assert client.request("GET", "/me") == {"id": "user"}

        sleep.assert_called_once_with(3.0)
        assert mock_session.request.call_count == 2
        first, second = mock_session.request.call_args_list
        assert first == second

    def test_default_wait_without_header(self, client, mock_session, sleep, response_factory):
        """Test the 1 second default"""
        mock_session.request.side_effect = [
            response_factory(429),
            response_factory(429, headers={"Retry-After": "soon"}),
            response_factory(200, {}),
        ]

        client.request("GET", "/me")

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 1.0]

    def test_wait_is_capped(self, credential, mock_session, sleep, response_factory):
        """Test max_retry_after"""
        client = CatalogClient(
            credential, session=mock_session, sleep=sleep, max_retry_after=10
        )
        mock_session.request.side_effect = [
            response_factory(429, headers={"Retry-After": "3600"}),
            response_factory(200, {}),
        ]

        client.request("GET", "/me")

        sleep.assert_called_once_with(10)

    def test_retry_ceiling(self, credential, mock_session, sleep, response_factory):
        """Test that a persistent 429 ends in RateLimitExceeded"""
        client = CatalogClient(credential, session=mock_session, sleep=sleep, max_retries=2)
        mock_session.request.return_value = response_factory(
            429, headers={"Retry-After": "2"}, text="slow down"
        )

        with pytest.raises(RateLimitExceeded) as exc_info:
            client.request("GET", "/me")

        assert mock_session.request.call_count == 3
        assert sleep.call_count == 2
        assert exc_info.value.status == 429
        assert exc_info.value.attempts == 3
        assert exc_info.value.retry_after == 2.0
        assert isinstance(exc_info.value, CatalogApiError)

    def test_no_retries(self, credential, mock_session, sleep, response_factory):
        """Test max_retries=0"""
        client = CatalogClient(credential, session=mock_session, sleep=sleep, max_retries=0)
        mock_session.request.return_value = response_factory(429)

        with pytest.raises(RateLimitExceeded):
            client.request("GET", "/me")

        sleep.assert_not_called()

    @pytest.mark.parametrize("value,expected", [
        ("5", 5.0),
        (" 2.5 ", 2.5),
        ("0", 0.0),
        (None, 1.0),
        ("", 1.0),
        ("abc", 1.0),
        ("-4", 1.0),
        ("nan", 1.0),
    ])
    def test_parse_retry_after(self, value, expected):
        assert parse_retry_after(value) == expected


class TestCatalogOperations:
    """Test the derived catalog operations"""

    def test_get_profile(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(
            200, {"id": "user_1", "display_name": "Alice"}
        )

        assert client.get_profile() == UserProfile(id="user_1", display_name="Alice")

    def test_get_profile_malformed(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(200, {"display_name": "Alice"})

        with pytest.raises(MalformedResponseError):
            client.get_profile()

    def test_create_playlist(self, client, mock_session, response_factory, sample_playlist_data):
        """Test the create call and the returned reference"""
        mock_session.request.return_value = response_factory(201, sample_playlist_data)

        playlist = client.create_playlist("user_1", "Road Trip")

        assert playlist == PlaylistRef(
            id="playlist_123",
            url="https://open.spotify.com/playlist/playlist_123",
            name="Road Trip",
        )
        method, url = mock_session.request.call_args.args
        assert method == "POST"
        assert url == "https://api.spotify.com/v1/users/user_1/playlists"
        assert json.loads(mock_session.request.call_args.kwargs["data"]) == {
            "name": "Road Trip",
            "description": "Created from local folder",
            "public": False,
        }

    def test_create_playlist_without_url(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(201, {"id": "p"})

        with pytest.raises(MalformedResponseError):
            client.create_playlist("user_1", "Road Trip")

    def test_search_match(self, client, mock_session, response_factory, sample_search_data):
        """Test that the first track's URI is returned"""
        mock_session.request.return_value = response_factory(200, sample_search_data)

        assert client.search_track("Bohemian Rhapsody Queen") == (
            "spotify:track:4u7EnebtmKWzUH433cf5Qv"
        )
        assert mock_session.request.call_args.kwargs["params"] == {
            "q": "Bohemian Rhapsody Queen",
            "type": "track",
            "limit": 1,
        }

    def test_search_no_match(self, client, mock_session, response_factory):
        """Test that an empty result is None, not a sentinel"""
        mock_session.request.return_value = response_factory(200, {"tracks": {"items": []}})

        assert client.search_track("nothing like this") is None

    def test_search_blank_query(self, client, mock_session):
        """Test that a blank query sends no request"""
        assert client.search_track("   ") is None
        mock_session.request.assert_not_called()

    def test_search_malformed(self, client, mock_session, response_factory):
        mock_session.request.return_value = response_factory(200, {"artists": {}})

        with pytest.raises(MalformedResponseError):
            client.search_track("query")

    @pytest.mark.parametrize("count,expected_calls", [
        (0, 0),
        (1, 1),
        (100, 1),
        (101, 2),
        (250, 3),
    ])
    def test_add_tracks_chunking(
        self, client, mock_session, response_factory, count, expected_calls
    ):
        """Test one write per chunk of at most 100, in order"""
        uris = [f"spotify:track:{i}" for i in range(count)]
        mock_session.request.return_value = response_factory(201, {"snapshot_id": "snap"})

        assert client.add_tracks("playlist_123", uris) == expected_calls

        sent = [
            json.loads(c.kwargs["data"])["uris"] for c in mock_session.request.call_args_list
        ]
        assert len(sent) == expected_calls
        assert all(len(chunk) <= 100 for chunk in sent)
        assert [uri for chunk in sent for uri in chunk] == uris
        for c in mock_session.request.call_args_list:
            assert c.args == ("POST", "https://api.spotify.com/v1/playlists/playlist_123/tracks")

    def test_add_tracks_stops_at_first_failure(self, client, mock_session, response_factory):
        """Test that a failing chunk stops the write"""
        uris = [f"spotify:track:{i}" for i in range(250)]
        mock_session.request.side_effect = [
            response_factory(201, {"snapshot_id": "snap"}),
            response_factory(403, text="forbidden"),
        ]

        with pytest.raises(CatalogApiError):
            client.add_tracks("playlist_123", uris)

        assert mock_session.request.call_count == 2

    def test_add_tracks_batch_size_limit(self, client):
        with pytest.raises(ValueError):
            client.add_tracks("playlist_123", ["spotify:track:1"], batch_size=101)

    def test_client_batch_size_limit(self, credential):
        with pytest.raises(ValueError):
            CatalogClient(credential, batch_size=0)

    def test_from_config(self, credential, mock_session):
        """Test settings taken from the sync section"""
        config = SyncConfig(max_rate_limit_retries=2, max_retry_after=5, batch_size=50)

        client = CatalogClient.from_config(
            credential, config, base_url="https://api.example.com/v1/", session=mock_session
        )

        assert client.max_retries == 2
        assert client.max_retry_after == 5
        assert client.batch_size == 50
        assert client.base_url == "https://api.example.com/v1"


class TestChunked:
    """Test chunked"""

    def test_partition(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunked([], 100)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))
