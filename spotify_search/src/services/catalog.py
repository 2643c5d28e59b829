"""Facade que consumen las rutas: búsqueda y tracks con embeddings.

Una sola instancia por proceso (ver `create_app`), de modo que todas las
peticiones comparten la misma caché de credenciales.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..config import Config
from ..errors import InvalidInput
from ..models import SearchResult, TrackWithFeatures
from .base import ServiceProvider
from .features import BatchFeatureFetcher
from .spotify_auth import SpotifyClientCredentials
from .spotify_service import SpotifyService


class Catalog:
    def __init__(self, client: ServiceProvider, fetcher: BatchFeatureFetcher, max_ids: int = 50):
        self.client = client
        self.fetcher = fetcher
        self.max_ids = max_ids

    @classmethod
    def from_config(cls, config=Config, session=None) -> "Catalog":
        auth = SpotifyClientCredentials(
            client_id=config.SPOTIFY_CLIENT_ID,
            client_secret=config.SPOTIFY_CLIENT_SECRET,
            token_url=config.SPOTIFY_TOKEN_URL,
            timeout=config.REQUEST_TIMEOUT,
            safety_margin=config.TOKEN_SAFETY_MARGIN,
            session=session,
        )
        client = SpotifyService(
            auth,
            api_base=config.SPOTIFY_API_BASE,
            timeout=config.REQUEST_TIMEOUT,
            market=config.SPOTIFY_MARKET,
            tracks_batch_size=config.TRACKS_BATCH_SIZE,
            session=session,
        )
        fetcher = BatchFeatureFetcher(
            client,
            batch_size=config.FEATURES_BATCH_SIZE,
            max_workers=config.FEATURE_WORKERS,
        )
        return cls(client, fetcher, max_ids=config.MAX_IDS_PER_REQUEST)

    def _with_features(self, tracks) -> list:
        features = self.fetcher.fetch_features([t.id for t in tracks])
        return [TrackWithFeatures(track=t, features=f) for t, f in zip(tracks, features)]

    def search(
        self,
        q: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include_features: bool = False,
    ) -> SearchResult:
        result = self.client.search(q, limit, offset)
        if include_features:
            result.tracks = self._with_features(result.tracks)
        else:
            result.tracks = [TrackWithFeatures(track=t) for t in result.tracks]
        return result

    def get_tracks_with_features(self, ids: Sequence[str]) -> SearchResult:
        ids = [i.strip() for i in ids if i and i.strip()]
        if not ids:
            raise InvalidInput("at least one track id required")
        if len(ids) > self.max_ids:
            raise InvalidInput(f"at most {self.max_ids} track ids per request")
        tracks = self._with_features(self.client.get_tracks(ids))
        return SearchResult(tracks=tracks, total=len(tracks), limit=len(tracks), offset=0)
