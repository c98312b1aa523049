"""
Client HTTPX du gateway Movacal.

Pipeline d'un appel:
sanitisation → règle get* → allowlist → fusion des paramètres → credential
→ POST → un seul retry après rafraîchissement si HTTP 401.

Tout autre échec (5xx, timeout, second 401) est renvoyé tel quel.
"""
import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config.settings import MovacalSettings
from ..core.constants import (
    CONTEXTUAL_CLINIC_KEY,
    DEFAULT_CALL_TIMEOUT_S,
    MAX_CALL_TIMEOUT_S,
    MIN_CALL_TIMEOUT_S,
)
from ..core.exceptions import ConfigurationError, UpstreamAuthError, UpstreamError
from ..features.movacal.params import ParameterMerger
from ..features.movacal.policy import AllowlistPolicy
from .credential import CredentialManager

logger = logging.getLogger(__name__)

# Tentative initiale + un retry après refresh de la credential
MAX_ATTEMPTS = 2

# Types de contenu renvoyés tels quels en texte; tout le reste est encodé en base64
TEXT_CONTENT_MARKERS = ("text/", "json", "xml", "javascript", "x-www-form-urlencoded")


@dataclass(frozen=True)
class UpstreamResponse:
    """Résultat brut d'un appel Movacal, inspecté par la boucle de retry."""
    status_code: int
    content_type: str
    content: bytes

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "UpstreamResponse":
        return cls(
            status_code=response.status_code,
            content_type=response.headers.get("content-type", ""),
            content=response.content,
        )

    @property
    def charset(self) -> str:
        for part in self.content_type.split(";")[1:]:
            key, _, value = part.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return "utf-8"

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.charset, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    @property
    def is_text(self) -> bool:
        media_type = self.content_type.split(";", 1)[0].strip().lower()
        return media_type == "" or any(marker in media_type for marker in TEXT_CONTENT_MARKERS)

    @property
    def successful(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


def clamp_timeout(timeout_seconds: Any) -> float:
    """Borne le timeout demandé à [MIN_CALL_TIMEOUT_S, MAX_CALL_TIMEOUT_S]."""
    if isinstance(timeout_seconds, bool):
        return float(DEFAULT_CALL_TIMEOUT_S)
    try:
        value = float(timeout_seconds)
    except (TypeError, ValueError):
        return float(DEFAULT_CALL_TIMEOUT_S)
    if value != value:  # NaN
        return float(DEFAULT_CALL_TIMEOUT_S)
    return float(max(MIN_CALL_TIMEOUT_S, min(MAX_CALL_TIMEOUT_S, value)))


def shape_response(response: UpstreamResponse) -> Any:
    """
    JSON → objet décodé; sinon enveloppe `{content_type, raw}`.

    Un contenu binaire (PDF, image...) est encodé en base64 dans `raw`, avec
    `"encoding": "base64"`, pour que ses octets restent récupérables.
    """
    if "application/json" in response.content_type.lower():
        if not response.text.strip():
            return {}
        try:
            data = json.loads(response.text)
        except ValueError:
            logger.debug("Réponse annoncée JSON mais non décodable, renvoyée brute")
        else:
            return {} if data is None else data

    if not response.is_text:
        return {
            "content_type": response.content_type,
            "raw": base64.b64encode(response.content).decode("ascii"),
            "encoding": "base64",
        }

    return {
        "content_type": response.content_type,
        "raw": response.text,
    }


class GatewayClient:
    """
    Exécute un appel authentifié vers un endpoint Movacal autorisé.

    Gère:
    - Basic auth + credential injectée dans le corps JSON
    - Allowlist et règle lecture seule avant tout appel réseau
    - Retry unique sur 401 après rafraîchissement de la credential
    """

    def __init__(
        self,
        settings: MovacalSettings,
        credentials: CredentialManager,
        *,
        policy: Optional[AllowlistPolicy] = None,
        merger: Optional[ParameterMerger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = settings.base_url.rstrip("/")
        self._basic_id = settings.basic_id
        self._basic_password = settings.basic_password
        self._validate_config()

        self._credentials = credentials
        self._policy = policy or AllowlistPolicy(settings.allowed_endpoints)
        contextual = {CONTEXTUAL_CLINIC_KEY: settings.clinic_info} if settings.clinic_info else {}
        self._merger = merger or ParameterMerger.from_json(settings.default_params_json, contextual)
        self._http_client = http_client
        self._owns_client = http_client is None

    def _validate_config(self):
        if not self._base_url:
            raise ConfigurationError("MOVACAL_BASE_URL n'est pas configuré", config_key="MOVACAL_BASE_URL")
        if not self._basic_id or not self._basic_password:
            raise ConfigurationError(
                "MOVACAL_BASIC_ID / MOVACAL_BASIC_PASSWORD ne sont pas configurés",
                config_key="MOVACAL_BASIC_ID",
            )

    @property
    def policy(self) -> AllowlistPolicy:
        return self._policy

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(float(DEFAULT_CALL_TIMEOUT_S), connect=10.0),
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )
            self._owns_client = True
        return self._http_client

    async def aclose(self):
        """Ferme le client HTTP s'il a été créé ici."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def call(
        self,
        endpoint: str,
        params: Optional[Any] = None,
        timeout_seconds: Any = DEFAULT_CALL_TIMEOUT_S,
    ) -> Any:
        """
        Appelle `{base_url}/{endpoint}` et retourne la réponse décodée.

        Args:
            endpoint: Nom de fichier d'endpoint (ex: getVersion.php)
            params: Paramètres appelant (ignorés s'ils ne sont pas un objet)
            timeout_seconds: Timeout HTTP, borné à [1, 60]

        Returns:
            JSON décodé, ou `{"content_type", "raw"}` pour une réponse non JSON

        Raises:
            ValidationError: endpoint refusé (aucun appel réseau)
            UpstreamAuthError: 401 persistant après refresh
            UpstreamError: autre statut non 2xx, timeout, erreur transport
        """
        safe_endpoint = self._policy.validate_endpoint(endpoint)
        timeout = clamp_timeout(timeout_seconds)
        merged = self._merger.build(params)
        url = f"{self._base_url}/{safe_endpoint}"

        response = await self._send_with_retry(url, merged, timeout, safe_endpoint)

        if not response.successful:
            logger.warning(f"⚠️ Movacal {safe_endpoint}: HTTP {response.status_code}")
            raise UpstreamError(
                f"Upstream error: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return shape_response(response)

    async def _send_with_retry(
        self,
        url: str,
        params: Dict[str, Any],
        timeout: float,
        endpoint: str,
    ) -> UpstreamResponse:
        credential = await self._credentials.get_credential()

        for attempt in range(1, MAX_ATTEMPTS + 1):
            response = await self._post(url, ParameterMerger.with_credential(params, credential), timeout)
            if not response.unauthorized:
                return response
            if attempt < MAX_ATTEMPTS:
                logger.info(f"🔄 Movacal {endpoint}: HTTP 401, rafraîchissement de la credential et nouvel essai")
                credential = await self._credentials.refresh_credential()

        logger.warning(f"⚠️ Movacal {endpoint}: HTTP 401 persistant après rafraîchissement")
        raise UpstreamAuthError()

    async def _post(self, url: str, body: Dict[str, Any], timeout: float) -> UpstreamResponse:
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }
        try:
            response = await self._client().post(
                url,
                json=body,
                headers=headers,
                auth=(self._basic_id, self._basic_password),
                timeout=httpx.Timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise UpstreamError("Timeout lors de l'appel Movacal", reason="timeout") from e
        except httpx.HTTPError as e:
            raise UpstreamError("Erreur transport lors de l'appel Movacal", reason="transport_error") from e

        return UpstreamResponse.from_httpx(response)


def create_gateway_client(
    settings: MovacalSettings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> GatewayClient:
    """
    Construit un GatewayClient et son CredentialManager sur un client HTTP partagé.

    Raises:
        ConfigurationError: réglage obligatoire manquant (validé immédiatement)
    """
    credentials = CredentialManager(settings, http_client=http_client)
    return GatewayClient(settings, credentials, http_client=http_client)
