import os
from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


class Config:
    load_dotenv()

    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    PORT = _int_env("PORT", 8081)
    GRPC_PORT = _int_env("GRPC_PORT", 50051)
    GRPC_WORKERS = _int_env("GRPC_WORKERS", 10)

    # Spotify Client Credentials (catálogo)
    SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID")
    SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET")
    SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")
    SPOTIFY_TOKEN_URL = os.getenv("SPOTIFY_TOKEN_URL", "https://accounts.spotify.com/api/token")
    SPOTIFY_MARKET = os.getenv("SPOTIFY_MARKET") or None

    # Límites del upstream (ids por llamada) y del propio servicio
    FEATURES_BATCH_SIZE = _int_env("FEATURES_BATCH_SIZE", 100)
    TRACKS_BATCH_SIZE = _int_env("TRACKS_BATCH_SIZE", 50)
    FEATURE_WORKERS = _int_env("FEATURE_WORKERS", 4)
    MAX_IDS_PER_REQUEST = _int_env("MAX_IDS_PER_REQUEST", 50)

    # Segundos
    REQUEST_TIMEOUT = _float_env("REQUEST_TIMEOUT", 10.0)
    TOKEN_SAFETY_MARGIN = _float_env("TOKEN_SAFETY_MARGIN", 30.0)
