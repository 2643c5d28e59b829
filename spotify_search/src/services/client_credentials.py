"""Base helper for OAuth client credentials token acquisition with caching.

Refresh is single-flight: the first caller that sees an expired token starts
the upstream request and publishes its outcome through a shared future;
callers arriving meanwhile wait on that future instead of issuing their own
request. Reading a valid token takes no lock.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Callable, Optional, Tuple

from ..errors import AuthFailure
from ..models import Token

logger = logging.getLogger(__name__)


class ClientCredentials(ABC):
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        safety_margin: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not client_id or not client_secret:
            raise RuntimeError("Client credentials require client_id and client_secret")
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.safety_margin = safety_margin
        self._clock = clock
        # Último token emitido; puede estar expirado o rechazado (solo diagnóstico).
        self._token: Optional[Token] = None
        self._rejected: Optional[Token] = None
        self._pending: Optional[Future] = None
        self._lock = threading.Lock()

    def _usable(self, token: Optional[Token]) -> bool:
        return (
            token is not None
            and token is not self._rejected
            and token.usable_at(self._clock(), self.safety_margin)
        )

    def get_token(self) -> Token:
        current = self._token
        if self._usable(current):
            return current
        return self._refresh(stale=current, rejected=False)

    def refresh(self, stale: Optional[Token]) -> Token:
        """Fuerza un refresh tras un rechazo de `stale` por parte del upstream.

        Si otro hilo ya reemplazó `stale`, devuelve el token nuevo sin llamar
        al upstream.
        """
        return self._refresh(stale=stale, rejected=True)

    def _refresh(self, stale: Optional[Token], rejected: bool) -> Token:
        with self._lock:
            if rejected and stale is not None and stale is self._token:
                self._rejected = stale
            current = self._token
            if current is not stale and self._usable(current):
                return current
            pending = self._pending
            leader = pending is None
            if leader:
                pending = self._pending = Future()

        if not leader:
            return pending.result()

        try:
            token = self._issue()
        except BaseException as exc:
            with self._lock:
                self._pending = None
            pending.set_exception(exc)
            raise

        with self._lock:
            self._token = token
            self._pending = None
        pending.set_result(token)
        return token

    def _issue(self) -> Token:
        started = self._clock()
        value, expires_in = self._fetch_token()
        if not value:
            raise AuthFailure("Client credentials response did not return an access token")
        if expires_in <= self.safety_margin:
            raise AuthFailure(
                f"Token lifetime {expires_in}s is not longer than the safety margin {self.safety_margin}s"
            )
        token = Token(value=value, expires_at=started + expires_in)
        # El endpoint pudo tardar: el token debe seguir fuera del margen al entregarse.
        if not token.usable_at(self._clock(), self.safety_margin):
            raise AuthFailure(
                f"Token issued with {expires_in}s lifetime is already within the safety margin"
            )
        logger.info("Issued client credentials token (expires_in=%ss)", expires_in)
        return token

    @abstractmethod
    def _fetch_token(self) -> Tuple[Optional[str], int]:
        """Return a tuple (access_token, expires_in)."""
