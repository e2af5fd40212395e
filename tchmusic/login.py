"""Browser-based OAuth login with a one-shot loopback callback listener."""

import logging
import queue
import threading
import urllib.parse
import webbrowser
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .config import LOGIN_CALLBACK_PATH, LOGIN_SERVER_HOST, LOGIN_SERVER_PORT, OAUTH_STATE
from .errors import LoginError

logger = logging.getLogger(__name__)

SUCCESS_PAGE = b"Success! Back to cli.<script>setTimeout(window.close, 5000);</script>"


class CallbackHandler(BaseHTTPRequestHandler):
    """Handles the provider redirect and hands exactly one result to the waiter.

    ``auth_manager``, ``expected_state`` and ``handoff`` are bound per login by
    ``build_handler``.
    """

    auth_manager: SpotifyOAuth
    expected_state: str
    handoff: "queue.Queue[dict[str, Any] | Exception]"

    def do_GET(self) -> None:
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path != LOGIN_CALLBACK_PATH:
            self.respond(404, b"Not found")
            return

        params = dict(urllib.parse.parse_qsl(parsed.query))

        if params.get("error"):
            self.respond(403, b"Couldn't get token")
            self.deliver(LoginError(f"authorization denied: {params['error']}"))
            return

        if params.get("state") != self.expected_state:
            self.respond(404, b"Not found")
            self.deliver(LoginError("state not match"))
            return

        code = params.get("code")
        if not code:
            self.respond(400, b"Missing code")
            self.deliver(LoginError("callback did not include an authorization code"))
            return

        try:
            # Spotipy saves the new token through the store-backed cache handler.
            self.auth_manager.get_access_token(code, as_dict=False, check_cache=False)
            token_info = self.auth_manager.cache_handler.get_cached_token()
        except SpotifyOauthError as exc:
            self.respond(403, b"Couldn't get token")
            self.deliver(exc)
            return

        if not token_info:
            self.respond(403, b"Couldn't get token")
            self.deliver(LoginError("token exchange returned no token"))
            return

        self.respond(200, SUCCESS_PAGE, content_type="text/html")
        self.deliver(token_info)

    def respond(self, status: int, body: bytes, content_type: str = "text/plain") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def deliver(self, result: "dict[str, Any] | Exception") -> None:
        try:
            self.handoff.put_nowait(result)
        except queue.Full:
            logger.warning("Ignoring extra OAuth callback; login already completed")

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback server: " + format, *args)


def build_handler(
    auth_manager: SpotifyOAuth,
    handoff: "queue.Queue[dict[str, Any] | Exception]",
    expected_state: str = OAUTH_STATE,
) -> type[CallbackHandler]:
    return type(
        "BoundCallbackHandler",
        (CallbackHandler,),
        {"auth_manager": auth_manager, "handoff": handoff, "expected_state": expected_state},
    )


def login(
    auth_manager: SpotifyOAuth,
    *,
    open_browser: Callable[[str], bool] = webbrowser.open,
    address: tuple[str, int] = (LOGIN_SERVER_HOST, LOGIN_SERVER_PORT),
    timeout: float | None = None,
) -> dict[str, Any]:
    """Run the authorization-code flow and return the new token info.

    Blocks until the callback delivers a token or an error. ``timeout`` of
    None waits indefinitely.
    """
    handoff: "queue.Queue[dict[str, Any] | Exception]" = queue.Queue(maxsize=1)
    server = HTTPServer(address, build_handler(auth_manager, handoff))
    server_thread = threading.Thread(target=server.serve_forever, name="oauth-callback", daemon=True)
    server_thread.start()

    try:
        url = auth_manager.get_authorize_url(state=OAUTH_STATE)
        logger.info("Opening browser for Spotify login")
        if not open_browser(url):
            raise LoginError(f"could not open a browser; visit {url} manually")

        try:
            result = handoff.get(timeout=timeout)
        except queue.Empty:
            raise LoginError(f"no OAuth callback received within {timeout} seconds") from None
    finally:
        server.shutdown()
        server.server_close()

    if isinstance(result, Exception):
        raise LoginError(f"login failed: {result}") from result
    return result
