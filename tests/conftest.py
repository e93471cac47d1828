import threading

import pytest
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

CONFIG = {
    "clientId": "client-id",
    "clientSecret": "client-secret",
    "redirectUri": "https://127.0.0.1:8888/callback",
}


def make_track(track_id, name="Song", artists=("Artist",), album="Album", images=None):
    if images is None:
        images = [{"url": f"https://i.scdn.co/image/{track_id}-640"},
                  {"url": f"https://i.scdn.co/image/{track_id}-64"}]
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": a} for a in artists],
        "album": {"name": album, "images": images},
    }


def unauthorized():
    return SpotifyException(401, -1, "The access token expired")


@pytest.fixture(autouse=True)
def no_browser(monkeypatch):
    monkeypatch.setattr("coverglow.auth.webbrowser.open", lambda url: True)


class FakeOAuth:
    def __init__(self, refresh_ok=True):
        self.cache_handler = MemoryCacheHandler()
        self.refresh_ok = refresh_ok
        self.refresh_calls = 0
        self.exchanged = []

    def get_authorize_url(self, state=None):
        return "https://accounts.spotify.com/authorize?client_id=client-id"

    def get_access_token(self, code, as_dict=False, check_cache=False):
        self.exchanged.append(code)
        self.cache_handler.save_token_to_cache(
            {"access_token": f"access-{code}", "refresh_token": "refresh-new"}
        )
        return f"access-{code}"

    def refresh_access_token(self, refresh_token):
        self.refresh_calls += 1
        if not self.refresh_ok:
            raise SpotifyOauthError("error: invalid_grant")
        return {"access_token": "access-refreshed"}


class FakeSpotify:
    """Client whose methods answer 401 while ``token`` is in ``expired``."""

    def __init__(self, token, expired=(), playing=None, recent=None):
        self.token = token
        self.expired = set(expired)
        self.playing = playing
        self.recent = recent

    def _check(self):
        if self.token in self.expired:
            raise unauthorized()

    def me(self):
        self._check()
        return {"id": "me"}

    def current_user_playing_track(self):
        self._check()
        return self.playing

    def current_user_recently_played(self, limit=50):
        self._check()
        return self.recent or {"items": []}

    def audio_features(self, tracks):
        self._check()
        return [{"tempo": 120.0, "energy": 0.5}]


class ScriptedSession:
    """Stands in for SpotifySession: answers from a list of playing tracks."""

    def __init__(self, tracks, features=None, recent=None):
        self.tracks = list(tracks)
        self.features = features
        self.recent = recent
        self.cycles = 0
        self.calls = []

    def begin_cycle(self):
        self.cycles += 1

    def call(self, method, *args, **kwargs):
        self.calls.append(method)
        if method == "current_user_playing_track":
            track = self.tracks.pop(0) if self.tracks else None
            return {"item": track} if track else None
        if method == "current_user_recently_played":
            return self.recent or {"items": []}
        if method == "audio_features":
            if isinstance(self.features, Exception):
                raise self.features
            return [self.features]
        raise AssertionError(f"unexpected call {method}")


class RecordingManager:
    def __init__(self):
        self.published = []

    def publish(self, update):
        self.published.append(update)
        return len(self.published) == 1

    def shutdown(self):
        pass


class FakeProcess:
    _next_pid = 1000

    def __init__(self, cmd, **kwargs):
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.cmd = cmd
        self.kwargs = kwargs
        self.stdout = iter(["window ready\n"])
        self.returncode = None
        self.terminated = False
        self._exited = threading.Event()

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        self._exited.wait(timeout)
        return self.returncode

    def finish(self, code):
        self.returncode = code
        self._exited.set()

    def terminate(self):
        self.terminated = True
        self.finish(-15)

    def kill(self):
        self.finish(-9)


class FakePopen:
    def __init__(self):
        self.processes = []

    def __call__(self, cmd, **kwargs):
        process = FakeProcess(cmd, **kwargs)
        self.processes.append(process)
        return process


@pytest.fixture
def recording_manager():
    return RecordingManager()


@pytest.fixture
def fake_popen():
    popen = FakePopen()
    yield popen
    for process in popen.processes:
        if process.returncode is None:
            process.finish(0)
