"""Endpoints de catálogo (Spotify): búsqueda y tracks con embeddings.

Estos endpoints encapsulan la conexión a Spotify para que otros servicios no
dependan directamente de su API. Los errores del catálogo se traducen a JSON
en el error handler registrado por `create_app`.
"""

from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from ..src.errors import InvalidInput
from ..src.services.catalog import Catalog


bp = Blueprint("catalog", __name__)

_TRUE = {"1", "true", "yes", "on"}


def _catalog() -> Catalog:
    return current_app.extensions["spotify_search"]


def _int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput(f"'{name}' must be an integer")


@bp.get("/search")
def search():
    """Búsqueda de pistas.

    Query: q (requerido), limit (1-50, default 20), offset (0-1000),
    include_features (añade `embedding` de 12 dimensiones).
    Respuesta: { tracks: [...], total, limit, offset }
    """
    q = (request.args.get("q") or "").strip()
    if not q:
        raise InvalidInput("query 'q' is required and cannot be empty")
    include_features = (request.args.get("include_features") or "").lower() in _TRUE
    result = _catalog().search(
        q,
        limit=_int_arg("limit"),
        offset=_int_arg("offset"),
        include_features=include_features,
    )
    return jsonify(result.to_dict()), 200


@bp.get("/tracks/with-features")
def tracks_with_features():
    """Tracks por ids (separados por coma) con metadata y embeddings."""
    raw = request.args.get("ids") or ""
    if not raw.strip():
        raise InvalidInput("ids is required (comma-separated track IDs)")
    result = _catalog().get_tracks_with_features(raw.split(","))
    return jsonify(result.to_dict()), 200
