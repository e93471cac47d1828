import logging
import webbrowser
from urllib.parse import urlparse

import requests
import spotipy
from flask import Flask, request
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError
from werkzeug.serving import make_server

from coverglow.config import load_tokens, save_tokens
from coverglow.errors import AuthenticationError, AuthorizationDenied

logger = logging.getLogger(__name__)

SCOPE = "user-read-recently-played user-read-currently-playing"


def create_callback_app(result: dict) -> Flask:
    """Flask app that captures the ``code`` or ``error`` Spotify redirects back with."""
    app = Flask(__name__)

    @app.route("/callback")
    def callback():
        error = request.args.get("error")
        if error:
            result["error"] = error
            return f"<h1>Authorization failed: {error}</h1>", 400

        code = request.args.get("code")
        if not code:
            return "<h1>Missing authorization code</h1>", 400

        result["code"] = code
        return "<h1>Authorization successful! You can close this window.</h1>"

    @app.after_request
    def disable_keepalive(response):
        response.headers["Connection"] = "close"
        return response

    return app


def wait_for_callback(redirect_uri):
    """
    Serve the redirect URI once and block until Spotify calls back.

    HTTPS redirect URIs get a throwaway self-signed certificate, so the
    browser will warn before following the redirect.
    """
    parsed = urlparse(redirect_uri)
    host = parsed.hostname or "127.0.0.1"
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    ssl_context = "adhoc" if parsed.scheme == "https" else None

    result = {}
    server = make_server(host, port, create_callback_app(result), ssl_context=ssl_context)
    logger.info(f"Local callback server started on {parsed.scheme}://{host}:{port}")
    try:
        while not result:
            server.handle_request()
    finally:
        server.server_close()

    if "error" in result:
        raise AuthorizationDenied(result["error"])
    return result["code"]


class SpotifySession:
    """
    Owns the Spotify tokens and the client built from them.

    API calls go through :meth:`call`, which recovers from an expired token
    with one refresh and, failing that, one re-authorization per polling cycle.
    """

    def __init__(self, config, token_path, oauth=None, client_factory=None, authorizer=None):
        self.config = config
        self.token_path = token_path
        self.oauth = oauth or SpotifyOAuth(
            client_id=config["clientId"],
            client_secret=config["clientSecret"],
            redirect_uri=config["redirectUri"],
            scope=SCOPE,
            cache_handler=MemoryCacheHandler(),
            open_browser=False,
        )
        self.client_factory = client_factory or (
            lambda token: spotipy.Spotify(auth=token, requests_timeout=10)
        )
        self.authorizer = authorizer or wait_for_callback
        self.tokens = None
        self.sp = None
        self._reauthorized = False

    def _use(self, tokens):
        self.tokens = tokens
        self.sp = self.client_factory(tokens["access_token"])

    def start(self):
        tokens = load_tokens(self.token_path)
        if not tokens:
            logger.info("No saved tokens found. Starting OAuth flow...")
            self.authenticate()
        else:
            self._use(tokens)

        try:
            self.sp.me()
        except SpotifyException as e:
            if e.http_status != 401:
                raise
            logger.info("Token expired. Refreshing...")
            if not self.refresh():
                logger.error("Failed to refresh token. Re-authenticating...")
                self.authenticate()
        return self

    def authenticate(self):
        redirect_uri = self.config["redirectUri"]
        authorize_url = self.oauth.get_authorize_url(state="state")

        logger.info("=== Spotify Authentication Required ===")
        logger.info(f"Redirect URI being used: {redirect_uri}")
        logger.info(f"Please visit this URL to authorize the application:\n{authorize_url}")
        if urlparse(redirect_uri).scheme == "https":
            logger.info("Your browser may warn about the self-signed certificate; proceed anyway.")
        try:
            webbrowser.open(authorize_url)
        except webbrowser.Error:
            pass

        code = self.authorizer(redirect_uri)
        try:
            self.oauth.get_access_token(code, as_dict=False, check_cache=False)
        except (SpotifyOauthError, requests.RequestException) as e:
            raise AuthenticationError(f"Could not exchange authorization code: {e}") from e

        token_info = self.oauth.cache_handler.get_cached_token() or {}
        if not token_info.get("access_token"):
            raise AuthenticationError("Authorization code exchange returned no access token")

        tokens = {
            "access_token": token_info["access_token"],
            "refresh_token": token_info.get("refresh_token"),
        }
        save_tokens(self.token_path, tokens)
        self._use(tokens)
        logger.info("Authorization successful!")

    def refresh(self) -> bool:
        refresh_token = (self.tokens or {}).get("refresh_token")
        if not refresh_token:
            logger.error("Failed to refresh token: no refresh token stored")
            return False
        try:
            token_info = self.oauth.refresh_access_token(refresh_token)
        except (SpotifyOauthError, SpotifyException, requests.RequestException) as e:
            logger.error(f"Failed to refresh token: {e}")
            return False

        tokens = {
            "access_token": token_info["access_token"],
            # Spotify only sometimes rotates the refresh token
            "refresh_token": token_info.get("refresh_token") or refresh_token,
        }
        save_tokens(self.token_path, tokens)
        self._use(tokens)
        logger.info("Token refreshed successfully")
        return True

    def begin_cycle(self):
        self._reauthorized = False

    def reauthorize(self):
        if self._reauthorized:
            raise AuthenticationError("Re-authentication already attempted this cycle")
        self._reauthorized = True
        logger.error("Failed to refresh token. Re-authenticating...")
        self.authenticate()

    def call(self, method, *args, **kwargs):
        try:
            return getattr(self.sp, method)(*args, **kwargs)
        except SpotifyException as e:
            if e.http_status != 401:
                raise
            logger.info("Token expired. Refreshing...")

        if not self.refresh():
            self.reauthorize()
        return getattr(self.sp, method)(*args, **kwargs)
