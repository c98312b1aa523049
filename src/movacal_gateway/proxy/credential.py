"""movacal_gateway.proxy.credential

Cycle de vie de la credential Movacal (jeton court, second facteur d'auth).

Couche Proxy:
- Contient l'I/O HTTP (httpx.AsyncClient) vers `credential.php`
- Cache mono-slot avec TTL, protégé par un `asyncio.Lock`
- Single-flight: des cache-miss concurrents ne déclenchent qu'un seul fetch

La valeur de la credential n'est jamais journalisée ni renvoyée à l'appelant MCP.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Callable

import httpx

from ..config.settings import MovacalSettings
from ..core.constants import (
    CREDENTIAL_ENDPOINT,
    CREDENTIAL_FETCH_TIMEOUT_S,
    CREDENTIAL_PARAM_KEY,
    CREDENTIAL_RANDOM_BYTES,
)
from ..core.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


def build_signed_challenge(secret_key: str, random_bytes: bytes) -> tuple[str, str]:
    """Retourne `(random_b64, signature_b64)`.

    signature = base64(hex(HMAC-SHA256(key=secret_key, msg=random_bytes)))
    """

    signature_hex = hmac.new(secret_key.encode("utf-8"), random_bytes, hashlib.sha256).hexdigest()
    random_b64 = base64.b64encode(random_bytes).decode("ascii")
    signature_b64 = base64.b64encode(signature_hex.encode("ascii")).decode("ascii")
    return random_b64, signature_b64


class CredentialManager:
    """Obtient, met en cache et rafraîchit la credential Movacal.

    Usage:
        manager = CredentialManager(settings, http_client=client)
        credential = await manager.get_credential()
    """

    def __init__(
        self,
        settings: MovacalSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
        random_source: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self._base_url = settings.base_url.rstrip("/")
        self._provider = settings.provider
        self._secret_key = settings.secret_key
        self._basic_id = settings.basic_id
        self._basic_password = settings.basic_password
        self._ttl_s = max(1, int(settings.credential_ttl))
        self._validate_config()

        self._http_client = http_client
        self._owns_client = http_client is None
        self._clock = clock
        self._random_source = random_source

        self._lock = asyncio.Lock()
        self._value: str | None = None
        self._expires_at: float = 0.0

    def _validate_config(self) -> None:
        if not self._base_url:
            raise ConfigurationError("MOVACAL_BASE_URL n'est pas configuré", config_key="MOVACAL_BASE_URL")
        if not self._provider:
            raise ConfigurationError("MOVACAL_PROVIDER n'est pas configuré", config_key="MOVACAL_PROVIDER")
        if not self._secret_key:
            raise ConfigurationError("MOVACAL_SECRET_KEY n'est pas configuré", config_key="MOVACAL_SECRET_KEY")
        if not self._basic_id or not self._basic_password:
            raise ConfigurationError(
                "MOVACAL_BASIC_ID / MOVACAL_BASIC_PASSWORD ne sont pas configurés",
                config_key="MOVACAL_BASIC_ID",
            )

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_s

    @property
    def has_cached_credential(self) -> bool:
        return self._cached() is not None

    def _cached(self) -> str | None:
        if self._value is None or self._clock() >= self._expires_at:
            return None
        return self._value

    def invalidate(self) -> None:
        """Évince la credential en cache."""

        self._value = None
        self._expires_at = 0.0

    async def get_credential(self) -> str:
        """Credential en cache si valide, sinon fetch + mise en cache pour le TTL.

        Raises:
            UpstreamError: réponse non 2xx, corps invalide, timeout/transport.
        """

        cached = self._cached()
        if cached is not None:
            return cached

        async with self._lock:
            # Un autre appelant a pu remplir le slot pendant l'attente du lock
            cached = self._cached()
            if cached is not None:
                return cached
            return await self._fetch_and_store()

    async def refresh_credential(self) -> str:
        """Invalide le cache puis récupère une nouvelle credential (après un 401 upstream)."""

        async with self._lock:
            self.invalidate()
            return await self._fetch_and_store()

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _fetch_and_store(self) -> str:
        value = await self._fetch_credential()
        self._value = value
        self._expires_at = self._clock() + self._ttl_s
        logger.info(f"🔑 Credential Movacal obtenue (ttl={self._ttl_s}s)")
        return value

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(CREDENTIAL_FETCH_TIMEOUT_S, connect=10.0))
            self._owns_client = True
        return self._http_client

    async def _fetch_credential(self) -> str:
        url = f"{self._base_url}/{CREDENTIAL_ENDPOINT}"
        random_b64, signature_b64 = build_signed_challenge(
            self._secret_key, self._random_source(CREDENTIAL_RANDOM_BYTES)
        )
        payload = {
            "provider": self._provider,
            "random": random_b64,
            "signature": signature_b64,
        }
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }

        try:
            response = await self._client().post(
                url,
                json=payload,
                headers=headers,
                auth=(self._basic_id, self._basic_password),
                timeout=httpx.Timeout(CREDENTIAL_FETCH_TIMEOUT_S),
            )
        except httpx.TimeoutException as e:
            logger.warning("⏱️ Timeout lors de la récupération de la credential Movacal")
            raise UpstreamError("Timeout lors de la récupération de la credential", reason="timeout") from e
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Erreur transport credential Movacal: {type(e).__name__}")
            raise UpstreamError("Erreur transport lors de la récupération de la credential", reason="transport_error") from e

        if not response.is_success:
            logger.warning(f"⚠️ credential.php a répondu HTTP {response.status_code}")
            raise UpstreamError(
                f"Échec de récupération de la credential: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data: object = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Réponse credential invalide: JSON attendu",
                status_code=response.status_code,
                reason="invalid_json",
            ) from e

        credential = data.get(CREDENTIAL_PARAM_KEY) if isinstance(data, dict) else None
        if not isinstance(credential, str) or not credential:
            raise UpstreamError(
                "Réponse credential invalide: champ credential manquant",
                status_code=response.status_code,
                reason="missing_credential",
            )

        return credential
