"""Fetch en lote de audio-features y su embedding de 12 dimensiones.

Orden de dimensiones (EMBEDDING_VERSION = 1); cambiarlo requiere subir la versión:

     0 danceability       0..1
     1 energy             0..1
     2 key                key / 11 (sin tonalidad, -1 -> 0)
     3 loudness           (dB + 60) / 60, acotado a 0..1
     4 mode               0 menor, 1 mayor
     5 speechiness        0..1
     6 acousticness       0..1
     7 instrumentalness   0..1
     8 liveness           0..1
     9 valence            0..1
    10 tempo              BPM / 250, acotado a 0..1
    11 time_signature     compases / 7, acotado a 0..1
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional, Sequence

from ..errors import UpstreamProtocolError
from ..models import TrackFeatures
from ..utils import chunked
from .base import ServiceProvider

logger = logging.getLogger(__name__)

EMBEDDING_VERSION = 1

FEATURE_ORDER = (
    "danceability",
    "energy",
    "key",
    "loudness",
    "mode",
    "speechiness",
    "acousticness",
    "instrumentalness",
    "liveness",
    "valence",
    "tempo",
    "time_signature",
)


def _unit(value: float) -> float:
    return max(0.0, min(float(value), 1.0))


_SCALERS = {
    "key": lambda v: 0.0 if v < 0 else _unit(v / 11.0),
    "loudness": lambda v: _unit((v + 60.0) / 60.0),
    "tempo": lambda v: _unit(v / 250.0),
    "time_signature": lambda v: _unit(v / 7.0),
}


def to_embedding(track_id: str, af: Optional[Dict[str, Any]]) -> Optional[TrackFeatures]:
    """Mapea un objeto audio-features a TrackFeatures, o None si falta algún atributo."""
    if not af:
        return None
    vector: List[float] = []
    for name in FEATURE_ORDER:
        value = af.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        scale = _SCALERS.get(name)
        vector.append(scale(value) if scale else float(value))
    return TrackFeatures(track_id=track_id, vector=tuple(vector))


class BatchFeatureFetcher:
    def __init__(self, client: ServiceProvider, batch_size: int = 100, max_workers: int = 4):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.client = client
        self.batch_size = batch_size
        self.max_workers = max(1, max_workers)

    def _fetch_chunk(self, chunk: List[str]) -> List[Optional[TrackFeatures]]:
        raw = self.client.audio_features(chunk)
        if len(raw) != len(chunk):
            raise UpstreamProtocolError(
                f"audio-features returned {len(raw)} entries for {len(chunk)} ids"
            )
        return [to_embedding(track_id, af) for track_id, af in zip(chunk, raw)]

    def fetch_features(self, track_ids: Sequence[str]) -> List[Optional[TrackFeatures]]:
        """Una entrada por id de entrada, en el mismo orden.

        Si un bloque completo falla se propaga el error (fail fast) y se
        cancelan los bloques pendientes.
        """
        chunks = list(chunked(track_ids, self.batch_size))
        if not chunks:
            return []

        if self.max_workers == 1 or len(chunks) == 1:
            results = [self._fetch_chunk(chunk) for chunk in chunks]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(chunks))) as pool:
                futures = [pool.submit(self._fetch_chunk, chunk) for chunk in chunks]
                done, pending = wait(futures, return_when=FIRST_EXCEPTION)
                for fut in pending:
                    fut.cancel()
                for fut in futures:
                    if fut in done and fut.exception() is not None:
                        raise fut.exception()
                # Reensamblado por índice de bloque, no por orden de llegada.
                results = [fut.result() for fut in futures]

        out: List[Optional[TrackFeatures]] = []
        for features in results:
            out.extend(features)
        missing = sum(1 for f in out if f is None)
        if missing:
            logger.info("No audio features for %d of %d tracks", missing, len(out))
        return out
