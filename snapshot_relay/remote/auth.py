"""
OAuth2 client-credentials provider for machine-to-machine access.

The rest of the service treats this as an opaque source of bearer tokens.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Optional

import httpx

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"

# Refresh this many seconds before the token actually expires
EXPIRY_MARGIN_SECONDS = 60


class OAuth2ClientCredentials:
    """Obtains and caches a bearer token with the client-credentials grant."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scope: str = "user_default",
        token_path: str = TOKEN_PATH,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.token_path = token_path
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def has_valid_token(self) -> bool:
        return self._token is not None and time.monotonic() < self._expires_at

    def invalidate(self) -> None:
        """Forget the cached token so the next call fetches a new one."""
        self._token = None
        self._expires_at = 0.0

    async def get_token(self, client: httpx.AsyncClient) -> str:
        """Return a valid access token, requesting a new one if needed."""
        async with self._lock:
            if self.has_valid_token:
                return self._token  # type: ignore[return-value]

            data = {
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": self.scope,
            }
            try:
                response = await client.post(self.token_path, data=data)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Token request rejected: HTTP {e.response.status_code}")
                raise AuthenticationError(
                    f"Token request rejected: HTTP {e.response.status_code}"
                ) from e
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Token request failed: {e}")
                raise AuthenticationError(f"Token request failed: {e}") from e

            token = payload.get("access_token") if isinstance(payload, dict) else None
            if not token:
                raise AuthenticationError("Token response did not contain access_token")

            expires_in = float(payload.get("expires_in") or 3600)
            self._token = token
            self._expires_at = time.monotonic() + max(
                expires_in - EXPIRY_MARGIN_SECONDS, 0
            )
            logger.info(f"Obtained access token (expires in {expires_in:.0f}s)")
            return token

    async def auth_headers(self, client: httpx.AsyncClient) -> Dict[str, str]:
        token = await self.get_token(client)
        return {"Authorization": f"Bearer {token}"}
