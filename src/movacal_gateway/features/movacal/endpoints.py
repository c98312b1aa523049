"""
Wrappers d'endpoints Movacal en lecture seule.

Chaque wrapper cible un seul endpoint et délègue au GatewayClient
(allowlist, credential, retry 401).
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ...proxy.client import GatewayClient


class VersionApi:
    """Version de l'API Movacal."""

    ENDPOINT = "getVersion.php"

    def __init__(self, gateway: "GatewayClient"):
        self._gateway = gateway

    async def get_version(self, args: Optional[Dict[str, Any]] = None) -> Any:
        return await self._gateway.call(self.ENDPOINT, args)


class FileCategoryApi:
    """Catégories de documents."""

    ENDPOINT = "getFileCategory.php"

    def __init__(self, gateway: "GatewayClient"):
        self._gateway = gateway

    async def get_file_category(self, args: Optional[Dict[str, Any]] = None) -> Any:
        return await self._gateway.call(self.ENDPOINT, args)


@dataclass(frozen=True)
class MovacalReadApis:
    """Ensemble des wrappers disponibles pour le routeur d'operations."""
    version: VersionApi
    file_category: FileCategoryApi

    @classmethod
    def from_gateway(cls, gateway: "GatewayClient") -> "MovacalReadApis":
        return cls(
            version=VersionApi(gateway),
            file_category=FileCategoryApi(gateway),
        )
