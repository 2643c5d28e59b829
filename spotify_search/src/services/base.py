from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..models import SearchResult, Track


class ServiceProvider(ABC):
    """Clase base para clientes de catálogo de música.

    Define la interfaz común que consumen el fetcher de features y el
    facade `Catalog`: búsqueda paginada, lookup por ids y audio-features.
    """

    @abstractmethod
    def search(self, query: str, limit: Optional[int] = None, offset: Optional[int] = None) -> SearchResult:
        raise NotImplementedError

    @abstractmethod
    def get_tracks(self, track_ids: Sequence[str]) -> List[Track]:
        raise NotImplementedError

    def audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """Opcional: audio-features crudos para un bloque de IDs (una sola llamada).

        Devuelve una entrada por id, en el mismo orden; `None` donde el
        proveedor no tiene análisis para esa pista.
        """
        raise NotImplementedError("audio_features no implementado para este proveedor")
