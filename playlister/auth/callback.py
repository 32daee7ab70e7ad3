"""
Capture of the OAuth redirect that returns the authorization code.

When the redirect URI points at this machine (http://127.0.0.1:<port>/...
or http://localhost:<port>/...), a one-shot HTTP server listens on that
port, reads ?code=...&state=... (or ?error=...) from the callback request
and shows a short page telling the user to return to the terminal.

For any other redirect URI the user pastes the URL the browser landed on,
and parse_redirect_url() extracts the same values.
"""

import html
import time
import urllib.parse
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer

from playlister.core.exceptions import AuthorizationError
from playlister.core.logger import get_logger

logger = get_logger(__name__)


LOOPBACK_HOSTS = ("127.0.0.1", "localhost")
DEFAULT_REDIRECT_TIMEOUT = 300

SUCCESS_HTML = """
<html>
<head><title>Authorization Success</title></head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 50px;">
    <h1 style="color: #1DB954;">Authorization Successful!</h1>
    <p>You can now close this window and return to the terminal.</p>
</body>
</html>
"""

ERROR_HTML = """
<html>
<head><title>Authorization Error</title></head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 50px;">
    <h1 style="color: #E22134;">Authorization Failed</h1>
    <p>Error: {error}</p>
    <p>Please try again or check your Spotify App settings.</p>
</body>
</html>
"""


@dataclass(frozen=True)
class RedirectResult:
    """
    Values Spotify appended to the redirect URI.

    Attributes:
        code: Authorization code to exchange.
        state: State echoed back from the authorize request, if any.
    """
    code: str
    state: str | None = None


def _result_from_query(query: str) -> RedirectResult | None:
    params = urllib.parse.parse_qs(query)

    if "error" in params:
        raise AuthorizationError(
            f"Spotify authorization was denied: {params['error'][0]}",
            details={"error": params["error"][0]}
        )

    if "code" not in params or not params["code"][0]:
        return None

    state = params["state"][0] if "state" in params else None
    return RedirectResult(code=params["code"][0], state=state)


def parse_redirect_url(url: str) -> RedirectResult:
    """
    Extract code and state from a redirected URL pasted by the user.

    Raises:
        AuthorizationError: If the URL carries an error or no code.
    """
    result = _result_from_query(urllib.parse.urlparse(url.strip()).query)
    if result is None:
        raise AuthorizationError(
            "The URL does not contain an authorization code",
            details={"url": url}
        )
    return result


def is_loopback_redirect(redirect_uri: str) -> bool:
    """True when the redirect can be captured by a local HTTP server."""
    parsed = urllib.parse.urlparse(redirect_uri)
    return parsed.scheme == "http" and parsed.hostname in LOOPBACK_HOSTS


class CallbackHandler(BaseHTTPRequestHandler):
    """
    Handles the single GET request of the OAuth redirect.

    Stores the outcome on the server instance (redirect_result or
    redirect_error) for wait_for_redirect() to pick up. Requests for other
    paths (favicon.ico and the like) get a 404 and are ignored.
    """

    def do_GET(self) -> None:
        parsed_url = urllib.parse.urlparse(self.path)
        if parsed_url.path != self.server.callback_path:
            self.send_response(404)
            self.end_headers()
            return

        try:
            result = _result_from_query(parsed_url.query)
        except AuthorizationError as e:
            self.server.redirect_error = e
            error = html.escape(e.details.get("error", "unknown"))
            self._respond(400, ERROR_HTML.format(error=error))
            return

        if result is None:
            self._respond(400, ERROR_HTML.format(error="missing authorization code"))
            return

        self.server.redirect_result = result
        self._respond(200, SUCCESS_HTML)

    def _respond(self, status: int, page: str) -> None:
        self.send_response(status)
        self.send_header("Content-type", "text/html")
        self.end_headers()
        self.wfile.write(page.encode())

    def log_message(self, format, *args) -> None:
        # Keep the console clean during the login
        pass


def wait_for_redirect(
    redirect_uri: str,
    timeout: float = DEFAULT_REDIRECT_TIMEOUT
) -> RedirectResult:
    """
    Listen on the redirect URI's port until Spotify sends the browser back.

    Args:
        redirect_uri: Loopback redirect URI registered for the application.
        timeout: Seconds to wait before giving up.

    Raises:
        AuthorizationError: Non-loopback URI, the port cannot be bound,
                            the user denied access, or the wait timed out.
    """
    if not is_loopback_redirect(redirect_uri):
        raise AuthorizationError(
            f"Redirect URI is not a local http address: {redirect_uri}",
            details={"redirect_uri": redirect_uri}
        )

    parsed = urllib.parse.urlparse(redirect_uri)
    port = parsed.port or 80

    try:
        server = HTTPServer((parsed.hostname, port), CallbackHandler)
    except OSError as e:
        raise AuthorizationError(
            f"Cannot listen on {parsed.hostname}:{port} for the redirect: {e}",
            details={"redirect_uri": redirect_uri, "original_error": str(e)}
        ) from e

    server.callback_path = parsed.path or "/"
    server.redirect_result = None
    server.redirect_error = None
    server.timeout = 1

    logger.debug(f"Waiting for authorization redirect on {parsed.hostname}:{port}")
    deadline = time.monotonic() + timeout
    try:
        while time.monotonic() < deadline:
            server.handle_request()
            if server.redirect_error is not None:
                raise server.redirect_error
            if server.redirect_result is not None:
                return server.redirect_result
    finally:
        server.server_close()

    raise AuthorizationError(
        f"Timed out after {timeout:g} seconds waiting for the authorization redirect",
        details={"redirect_uri": redirect_uri}
    )
