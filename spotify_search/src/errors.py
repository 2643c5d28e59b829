"""Errores del catálogo, con el tipo y el status HTTP que las rutas exponen."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CatalogError(Exception):
    kind = "catalog_error"
    status_code = 502

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.retry_after is not None:
            body["retry_after"] = self.retry_after
        return body


class AuthFailure(CatalogError):
    """Credenciales rechazadas o refresh del token fallido."""

    kind = "auth_failure"
    status_code = 502


class RateLimited(CatalogError):
    kind = "rate_limited"
    status_code = 429


class UpstreamTimeout(CatalogError):
    kind = "upstream_timeout"
    status_code = 504


class UpstreamProtocolError(CatalogError):
    """Respuesta del upstream con forma o status inesperados."""

    kind = "upstream_protocol_error"
    status_code = 502


class InvalidInput(CatalogError):
    kind = "invalid_input"
    status_code = 400
