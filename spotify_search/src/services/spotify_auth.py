"""Autenticación de Spotify (Client Credentials) orientada a objetos.

Uso:
    auth = SpotifyClientCredentials(client_id, client_secret)
    headers = auth.headers_for(auth.get_token())  # Authorization: Bearer <token>
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

import requests

from ..errors import AuthFailure, UpstreamTimeout
from ..models import Token
from .client_credentials import ClientCredentials

logger = logging.getLogger(__name__)


class SpotifyClientCredentials(ClientCredentials):
    TOKEN_URL = "https://accounts.spotify.com/api/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: Optional[str] = None,
        timeout: float = 10.0,
        safety_margin: float = 30.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(
            client_id=client_id,
            client_secret=client_secret,
            token_url=token_url or self.TOKEN_URL,
            safety_margin=safety_margin,
            clock=clock,
        )
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fetch_token(self):
        try:
            resp = self.session.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeout(f"token request timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise AuthFailure(f"token request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.warning("Token endpoint returned %s", resp.status_code)
            raise AuthFailure(f"token request failed: {resp.status_code} - {resp.text[:200]}")
        try:
            data = resp.json() or {}
            return data.get("access_token"), int(data.get("expires_in", 3600))
        except (AttributeError, TypeError, ValueError) as exc:
            raise AuthFailure(f"token parse failed: {exc}") from exc

    @staticmethod
    def headers_for(token: Token) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token.value}",
            "Accept": "application/json",
        }
