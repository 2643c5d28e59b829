import threading

import pytest

from spotify_search.src.models import SearchResult, Track
from spotify_search.src.services.base import ServiceProvider
from spotify_search.src.services.spotify_auth import SpotifyClientCredentials
from spotify_search.src.services.spotify_service import SpotifyService, clamp_page

API = "https://api.test/v1"
TOKEN_URL = "https://accounts.test/api/token"

INVALID_JSON = object()


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text

    def json(self):
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """requests.Session falso: delega en `handler(method, url, **kwargs)` y guarda las llamadas."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, method, url, kwargs):
        with self._lock:
            self.calls.append((method, url, kwargs))

    def get(self, url, **kwargs):
        self._record("GET", url, kwargs)
        return self.handler("GET", url, **kwargs)

    def post(self, url, **kwargs):
        self._record("POST", url, kwargs)
        return self.handler("POST", url, **kwargs)

    def token_calls(self):
        return [c for c in self.calls if c[1] == TOKEN_URL]

    def api_calls(self, route=None):
        prefix = f"{API}/{route}" if route else API
        return [c for c in self.calls if c[1].startswith(prefix)]


def track_json(track_id, name=None):
    return {
        "id": track_id,
        "name": name or f"Song {track_id}",
        "uri": f"spotify:track:{track_id}",
        "duration_ms": 180000,
        "explicit": False,
        "artists": [{"id": "ar1", "name": "Artist One"}, {"id": "ar2", "name": "Artist Two"}],
        "album": {"id": "al1", "name": "Album", "images": [{"url": "https://img/large"}, {"url": "https://img/small"}]},
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


def features_json(track_id, **overrides):
    af = {
        "id": track_id,
        "danceability": 0.5,
        "energy": 0.8,
        "key": 11,
        "loudness": -6.0,
        "mode": 1,
        "speechiness": 0.05,
        "acousticness": 0.1,
        "instrumentalness": 0.0,
        "liveness": 0.2,
        "valence": 0.6,
        "tempo": 125.0,
        "time_signature": 4,
    }
    af.update(overrides)
    return af


class TokenIssuer:
    """Respuestas del endpoint de token: tok-1, tok-2, ..."""

    def __init__(self, expires_in=3600, gate=None):
        self.expires_in = expires_in
        self.gate = gate
        self.issued = 0
        self._lock = threading.Lock()

    def __call__(self):
        if self.gate is not None:
            self.gate.wait(5)
        with self._lock:
            self.issued += 1
            n = self.issued
        return FakeResponse(200, {"access_token": f"tok-{n}", "expires_in": self.expires_in, "token_type": "Bearer"})


def make_service(api_handler, clock=None, issuer=None, **kwargs):
    issuer = issuer or TokenIssuer()

    def handler(method, url, **kw):
        if url == TOKEN_URL:
            return issuer()
        return api_handler(method, url, **kw)

    session = FakeSession(handler)
    auth = SpotifyClientCredentials(
        "client-id",
        "client-secret",
        token_url=TOKEN_URL,
        timeout=5,
        session=session,
        clock=clock or FakeClock(),
    )
    svc = SpotifyService(auth, api_base=API, timeout=5, session=session, **kwargs)
    return svc, session


class FakeCatalogClient(ServiceProvider):
    """Cliente de catálogo en memoria: pistas a y b; b sin audio-features, `unknown` no existe."""

    def __init__(self):
        self.error = None
        self.searches = []

    def search(self, query, limit=None, offset=None):
        if self.error:
            raise self.error
        limit, offset = clamp_page(limit, offset)
        self.searches.append((query, limit, offset))
        tracks = [Track.from_spotify(track_json(i)) for i in ("a", "b")]
        return SearchResult(tracks=tracks, total=99, limit=limit, offset=offset)

    def get_tracks(self, track_ids):
        if self.error:
            raise self.error
        return [Track.from_spotify(track_json(i)) for i in track_ids if i != "unknown"]

    def audio_features(self, track_ids):
        return [None if i == "b" else features_json(i) for i in track_ids]


@pytest.fixture
def clock():
    return FakeClock(1000.0)
