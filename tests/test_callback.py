"""Test capture and parsing of the authorization redirect"""

import pytest
from unittest.mock import Mock, patch

from playlister.auth.callback import (
    CallbackHandler,
    RedirectResult,
    is_loopback_redirect,
    parse_redirect_url,
    wait_for_redirect,
)
from playlister.core.exceptions import AuthorizationError


class TestParseRedirectUrl:
    """Test parse_redirect_url"""

    def test_code_and_state(self):
        """Test a regular redirect"""
        result = parse_redirect_url("http://127.0.0.1:8888/callback?code=abc&state=xyz")

        assert result == RedirectResult(code="abc", state="xyz")

    def test_code_without_state(self):
        """Test a redirect without state"""
        result = parse_redirect_url("  https://example.com/cb?code=abc  ")

        assert result.code == "abc"
        assert result.state is None

    def test_denied(self):
        """Test the error parameter of a denied consent"""
        with pytest.raises(AuthorizationError, match="access_denied") as exc_info:
            parse_redirect_url("http://127.0.0.1:8888/callback?error=access_denied")

        assert exc_info.value.details["error"] == "access_denied"

    def test_no_code(self):
        """Test a URL without code"""
        with pytest.raises(AuthorizationError, match="authorization code"):
            parse_redirect_url("http://127.0.0.1:8888/callback")


class TestIsLoopbackRedirect:
    """Test is_loopback_redirect"""

    @pytest.mark.parametrize("uri", [
        "http://127.0.0.1:8888/callback",
        "http://localhost:8080/",
    ])
    def test_loopback(self, uri):
        assert is_loopback_redirect(uri)

    @pytest.mark.parametrize("uri", [
        "https://127.0.0.1:8888/callback",
        "https://example.com/callback",
        "http://192.168.1.10:8888/callback",
    ])
    def test_not_loopback(self, uri):
        assert not is_loopback_redirect(uri)


class TestWaitForRedirect:
    """Test wait_for_redirect"""

    def test_rejects_remote_uri(self):
        """Test that a remote redirect cannot be captured"""
        with pytest.raises(AuthorizationError, match="not a local"):
            wait_for_redirect("https://example.com/callback")

    def test_port_in_use(self):
        """Test that a bind failure becomes an AuthorizationError"""
        with patch("playlister.auth.callback.HTTPServer", side_effect=OSError("in use")):
            with pytest.raises(AuthorizationError, match="Cannot listen"):
                wait_for_redirect("http://127.0.0.1:8888/callback")

    def test_returns_captured_result(self):
        """Test that the handled request's result is returned and the server closed"""
        with patch("playlister.auth.callback.HTTPServer") as server_cls:
            server = server_cls.return_value

            def handle_request():
                server.redirect_result = RedirectResult(code="abc", state="xyz")

            server.handle_request.side_effect = handle_request

            result = wait_for_redirect("http://127.0.0.1:8888/callback", timeout=5)

        assert result == RedirectResult(code="abc", state="xyz")
        assert server.callback_path == "/callback"
        server.server_close.assert_called_once()

    def test_captured_error_is_raised(self):
        """Test that a denial seen by the handler is raised"""
        with patch("playlister.auth.callback.HTTPServer") as server_cls:
            server = server_cls.return_value

            def handle_request():
                server.redirect_error = AuthorizationError("denied")

            server.handle_request.side_effect = handle_request

            with pytest.raises(AuthorizationError, match="denied"):
                wait_for_redirect("http://127.0.0.1:8888/callback", timeout=5)

        server.server_close.assert_called_once()

    def test_timeout(self):
        """Test giving up after the deadline"""
        with patch("playlister.auth.callback.HTTPServer") as server_cls:
            server = server_cls.return_value

            with pytest.raises(AuthorizationError, match="Timed out"):
                wait_for_redirect("http://127.0.0.1:8888/callback", timeout=0)

        server.server_close.assert_called_once()


class TestCallbackHandler:
    """Test the page served for the redirect request"""

    @pytest.fixture
    def handler(self):
        handler = CallbackHandler.__new__(CallbackHandler)
        handler.server = Mock(callback_path="/callback", redirect_error=None)
        handler._respond = Mock()
        return handler

    def test_error_value_is_escaped(self, handler):
        """Test that markup in ?error= is shown as text"""
        handler.path = "/callback?error=%3Cscript%3Ealert(1)%3C%2Fscript%3E"

        handler.do_GET()

        status, page = handler._respond.call_args.args
        assert status == 400
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
        assert "<script>" not in page
        assert isinstance(handler.server.redirect_error, AuthorizationError)

    def test_code_is_stored(self, handler):
        """Test a successful redirect"""
        handler.path = "/callback?code=abc&state=xyz"

        handler.do_GET()

        assert handler.server.redirect_result == RedirectResult(code="abc", state="xyz")
        assert handler._respond.call_args.args[0] == 200
