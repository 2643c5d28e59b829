"""Modelos del catálogo.

La API de Spotify devuelve objetos de pista bastante grandes; aquí solo se
normaliza lo que expone el servicio (id, nombre, uri, artistas, álbum, url).
`Track.from_spotify` es estricto con los campos que identifican la pista y
permisivo con el resto.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import UpstreamProtocolError


@dataclass(frozen=True)
class Token:
    """Bearer token + instante absoluto de expiración (reloj monotónico)."""

    value: str
    expires_at: float

    def usable_at(self, now: float, margin: float) -> bool:
        return now < self.expires_at - margin


@dataclass
class Artist:
    id: Optional[str]
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class Album:
    id: Optional[str]
    name: str
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "image_url": self.image_url}


@dataclass
class Track:
    id: str
    name: str
    uri: str
    duration_ms: int = 0
    explicit: bool = False
    artists: List[Artist] = field(default_factory=list)
    album: Album = field(default_factory=lambda: Album(id=None, name=""))
    spotify_url: Optional[str] = None

    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists if a.name)

    def metadata(self) -> Dict[str, str]:
        meta = {
            "spotify_id": self.id,
            "title": self.name,
            "artist": self.artist_names(),
            "album": self.album.name,
        }
        if self.spotify_url:
            meta["spotify_url"] = self.spotify_url
        return meta

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "uri": self.uri,
            "duration_ms": self.duration_ms,
            "explicit": self.explicit,
            "artists": [a.to_dict() for a in self.artists],
            "album": self.album.to_dict(),
            "spotify_url": self.spotify_url,
            "metadata": self.metadata(),
        }

    @classmethod
    def from_spotify(cls, item: Any) -> "Track":
        if not isinstance(item, dict):
            raise UpstreamProtocolError("track object is not a JSON object")
        missing = [k for k in ("id", "name", "uri") if not isinstance(item.get(k), str)]
        if missing:
            raise UpstreamProtocolError(f"track object missing {', '.join(missing)}")

        try:
            album_obj = item.get("album") or {}
            images = album_obj.get("images") or []
            image_url = images[0].get("url") if images and isinstance(images[0], dict) else None
            artists = [
                Artist(id=a.get("id"), name=a.get("name") or "")
                for a in (item.get("artists") or [])
                if isinstance(a, dict)
            ]
            return cls(
                id=item["id"],
                name=item["name"],
                uri=item["uri"],
                duration_ms=int(item.get("duration_ms") or 0),
                explicit=bool(item.get("explicit", False)),
                artists=artists,
                album=Album(id=album_obj.get("id"), name=album_obj.get("name") or "", image_url=image_url),
                spotify_url=(item.get("external_urls") or {}).get("spotify"),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise UpstreamProtocolError(f"malformed track object {item.get('id')}: {exc}") from exc


@dataclass(frozen=True)
class TrackFeatures:
    track_id: str
    vector: Tuple[float, ...]


@dataclass
class TrackWithFeatures:
    track: Track
    features: Optional[TrackFeatures] = None

    def to_dict(self) -> Dict[str, Any]:
        out = self.track.to_dict()
        if self.features is not None:
            out["embedding"] = list(self.features.vector)
        return out


@dataclass
class SearchResult:
    tracks: List[Any]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tracks": [t.to_dict() for t in self.tracks],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }
