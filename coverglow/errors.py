class CoverglowError(Exception):
    pass


class ConfigError(CoverglowError):
    """Config file missing or incomplete. Fatal at startup."""


class AuthenticationError(CoverglowError):
    """Token could not be refreshed and re-authorization did not help."""


class AuthorizationDenied(AuthenticationError):
    """The user refused the grant on the Spotify consent page."""

    def __init__(self, reason):
        super().__init__(f"Authorization denied: {reason}")
        self.reason = reason


class DownloadError(CoverglowError):
    def __init__(self, url, status=None, message=None):
        self.url = url
        self.status = status
        if message is None:
            message = f"Failed to download image: {status}"
        super().__init__(message)
