import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from coverglow.errors import ConfigError

load_dotenv()

logger = logging.getLogger(__name__)

# --- Paths ---
CONFIG_NAME = ".spotify-config.json"
TOKEN_NAME = ".spotify-tokens.json"
CACHE_NAME = "temp"
UPDATE_NAME = "update.json"
UPDATE_FILE_ENV = "COVERGLOW_UPDATE_FILE"

DEFAULT_REDIRECT_URI = "https://127.0.0.1:8888/callback"

# --- Polling ---
POLL_INTERVAL = 30
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def base_dir() -> Path:
    return Path(os.getenv("COVERGLOW_HOME") or Path.cwd()).resolve()


def config_path() -> Path:
    return base_dir() / CONFIG_NAME


def token_path() -> Path:
    return base_dir() / TOKEN_NAME


def cache_dir() -> Path:
    return base_dir() / CACHE_NAME


def update_path() -> Path:
    return cache_dir() / UPDATE_NAME


def poll_interval() -> int:
    value = os.getenv("COVERGLOW_POLL_INTERVAL")
    if not value:
        return POLL_INTERVAL
    try:
        return max(1, int(value))
    except ValueError:
        logger.warning(f"Ignoring invalid COVERGLOW_POLL_INTERVAL={value!r}")
        return POLL_INTERVAL


def setup_logging(debug=False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def load_config(path=None) -> dict:
    """
    Read the Spotify app credentials.

    The file holds ``clientId``, ``clientSecret`` and optionally
    ``redirectUri``. A missing file is fatal: the caller is expected to log
    the guidance in the raised ConfigError and exit.
    """
    path = Path(path or config_path())
    if not path.exists():
        raise ConfigError(
            f"{path.name} not found! Create it with your Spotify API credentials: "
            '{"clientId": "...", "clientSecret": "...", '
            f'"redirectUri": "{DEFAULT_REDIRECT_URI}"}}'
        )
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e

    missing = [key for key in ("clientId", "clientSecret") if not data.get(key)]
    if missing:
        raise ConfigError(f"{path.name} is missing {', '.join(missing)}")

    return {
        "clientId": data["clientId"],
        "clientSecret": data["clientSecret"],
        "redirectUri": data.get("redirectUri") or DEFAULT_REDIRECT_URI,
    }


# --- Token store ---
def load_tokens(path=None):
    path = Path(path or token_path())
    if not path.exists():
        return None
    try:
        with open(path) as f:
            tokens = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load token file: {e}")
        return None
    if not tokens.get("access_token"):
        return None
    return tokens


def save_tokens(path, tokens):
    with open(Path(path or token_path()), "w") as f:
        json.dump(
            {
                "access_token": tokens["access_token"],
                "refresh_token": tokens.get("refresh_token"),
            },
            f,
            indent=2,
        )
