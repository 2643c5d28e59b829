"""Servidor gRPC `spotify.SpotifySearch`, junto al HTTP.

Comparte el mismo `Catalog` (y por tanto la misma caché de token) que la app
Flask. Los errores del catálogo se traducen a status gRPC; el `retry_after`
de un RateLimited viaja como trailing metadata `retry-after`.
"""

from __future__ import annotations

import logging
from concurrent import futures
from typing import Tuple

import grpc

from ..src.errors import CatalogError
from ..src.services.catalog import Catalog
from .messages import (
    SERVICE_NAME,
    GetTracksWithFeaturesRequest,
    GetTracksWithFeaturesResponse,
    TrackWithFeatures,
)

logger = logging.getLogger(__name__)

_STATUS = {
    "invalid_input": grpc.StatusCode.INVALID_ARGUMENT,
    "rate_limited": grpc.StatusCode.RESOURCE_EXHAUSTED,
    "upstream_timeout": grpc.StatusCode.UNAVAILABLE,
}


class SpotifySearchServicer:
    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def GetTracksWithFeatures(self, request, context):
        ids = [i for i in request.track_ids if i.strip()]
        if not ids:
            return GetTracksWithFeaturesResponse()
        try:
            result = self.catalog.get_tracks_with_features(ids)
        except CatalogError as exc:
            logger.warning("GetTracksWithFeatures failed: %s (%s)", exc.message, exc.kind)
            if exc.retry_after is not None:
                context.set_trailing_metadata((("retry-after", str(exc.retry_after)),))
            context.abort(_STATUS.get(exc.kind, grpc.StatusCode.INTERNAL), exc.message)

        # Solo pistas con embedding
        tracks = [
            TrackWithFeatures(id=t.track.id, embedding=t.features.vector, metadata=t.track.metadata())
            for t in result.tracks
            if t.features is not None
        ]
        return GetTracksWithFeaturesResponse(tracks=tracks)


def generic_handler(servicer: SpotifySearchServicer) -> grpc.GenericRpcHandler:
    return grpc.method_handlers_generic_handler(
        SERVICE_NAME,
        {
            "GetTracksWithFeatures": grpc.unary_unary_rpc_method_handler(
                servicer.GetTracksWithFeatures,
                request_deserializer=GetTracksWithFeaturesRequest.FromString,
                response_serializer=GetTracksWithFeaturesResponse.SerializeToString,
            ),
        },
    )


def create_server(catalog: Catalog, address: str, max_workers: int = 10) -> Tuple[grpc.Server, int]:
    """Crea (sin arrancar) el servidor y devuelve también el puerto enlazado."""
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    server.add_generic_rpc_handlers((generic_handler(SpotifySearchServicer(catalog)),))
    port = server.add_insecure_port(address)
    return server, port
