"""Servicio OOP para consumir el catálogo de Spotify (búsqueda, tracks y audio-features).

Usa Client Credentials; no requiere tokens de usuario. Cada llamada pide un
token válido a la caché de credenciales; si Spotify responde 401 se fuerza un
refresh y se reenvía una sola vez.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..errors import AuthFailure, InvalidInput, RateLimited, UpstreamProtocolError, UpstreamTimeout
from ..models import SearchResult, Track
from ..utils import chunked, clamp, parse_retry_after
from .base import ServiceProvider
from .spotify_auth import SpotifyClientCredentials

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
MAX_OFFSET = 1000


def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    limit = DEFAULT_LIMIT if limit is None else limit
    offset = 0 if offset is None else offset
    return clamp(limit, 1, MAX_LIMIT), clamp(offset, 0, MAX_OFFSET)


class SpotifyService(ServiceProvider):
    API_BASE = "https://api.spotify.com/v1"

    def __init__(
        self,
        auth: SpotifyClientCredentials,
        api_base: str | None = None,
        timeout: float = 10.0,
        market: str | None = None,
        tracks_batch_size: int = 50,
        session: Optional[requests.Session] = None,
    ):
        self.auth = auth
        self.api_base = (api_base or self.API_BASE).rstrip("/")
        self.timeout = timeout
        self.market = market.upper() if market else None
        self.tracks_batch_size = tracks_batch_size
        self.session = session or requests.Session()

    def _send(self, route: str, params: Dict[str, Any], token) -> requests.Response:
        try:
            return self.session.get(
                f"{self.api_base}/{route.lstrip('/')}",
                params=params,
                headers=self.auth.headers_for(token),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeout(f"{route} request timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise UpstreamTimeout(f"{route} request failed: {exc}") from exc

    def _request(self, route: str, params: Dict[str, Any]) -> Dict[str, Any]:
        token = self.auth.get_token()
        resp = self._send(route, params, token)
        if resp.status_code == 401:
            logger.info("Spotify rejected token on /%s, refreshing and retrying once", route)
            token = self.auth.refresh(stale=token)
            resp = self._send(route, params, token)
            if resp.status_code == 401:
                raise AuthFailure(f"Spotify rejected refreshed token on /{route}")
        return self._decode(route, resp)

    def _decode(self, route: str, resp: requests.Response) -> Dict[str, Any]:
        if resp.status_code == 429:
            retry_after = parse_retry_after(resp.headers)
            logger.warning("Spotify rate limited /%s (retry_after=%s)", route, retry_after)
            raise RateLimited("Spotify rate limit exceeded", retry_after=retry_after)
        if resp.status_code == 403:
            raise AuthFailure(f"Spotify refused /{route}: {resp.text[:200]}")
        if resp.status_code != 200:
            logger.warning("Spotify /%s returned %s", route, resp.status_code)
            raise UpstreamProtocolError(f"Spotify API error {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Spotify /%s returned invalid JSON", route)
            raise UpstreamProtocolError(f"{route} parse failed: {exc}") from exc
        if not isinstance(data, dict):
            raise UpstreamProtocolError(f"{route} response is not a JSON object")
        return data

    def search(self, query: str, limit: Optional[int] = None, offset: Optional[int] = None) -> SearchResult:
        """Busca pistas usando /v1/search.

        `limit` y `offset` se acotan a [1, 50] y [0, 1000]; una query vacía es
        InvalidInput.
        """
        if not query or not query.strip():
            raise InvalidInput("query 'q' is required and cannot be empty")
        limit, offset = clamp_page(limit, offset)
        params: Dict[str, Any] = {"q": query, "type": "track", "limit": limit, "offset": offset}
        if self.market:
            params["market"] = self.market
        data = self._request("search", params)

        page = data.get("tracks")
        if not isinstance(page, dict) or not isinstance(page.get("items"), list):
            raise UpstreamProtocolError("search response missing tracks.items")
        tracks = [Track.from_spotify(item) for item in page["items"] if item is not None]
        total = page.get("total")
        if not isinstance(total, int):
            raise UpstreamProtocolError("search response missing tracks.total")
        return SearchResult(tracks=tracks, total=total, limit=limit, offset=offset)

    def get_tracks(self, track_ids: Sequence[str]) -> List[Track]:
        """Lookup en lote via /v1/tracks. Los ids desconocidos se omiten."""
        out: List[Track] = []
        for chunk in chunked(track_ids, self.tracks_batch_size):
            params: Dict[str, Any] = {"ids": ",".join(chunk)}
            if self.market:
                params["market"] = self.market
            data = self._request("tracks", params)
            items = data.get("tracks")
            if not isinstance(items, list) or len(items) != len(chunk):
                raise UpstreamProtocolError("tracks response does not match requested ids")
            for requested, item in zip(chunk, items):
                if item is None:
                    logger.info("Spotify has no track for id %s", requested)
                    continue
                out.append(Track.from_spotify(item))
        return out

    def audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        if not track_ids:
            return []
        data = self._request("audio-features", {"ids": ",".join(track_ids)})
        items = data.get("audio_features")
        if not isinstance(items, list):
            raise UpstreamProtocolError("audio-features response missing audio_features list")
        by_id: Dict[str, Dict[str, Any]] = {}
        for af in items:
            if isinstance(af, dict) and af.get("id"):
                by_id[af["id"]] = af
        return [by_id.get(track_id) for track_id in track_ids]
