"""movacal_gateway.features.movacal.policy

Politique d'accès aux endpoints Movacal.

Ordre imposé pour un endpoint fourni par l'appelant:
1. sanitisation (null bytes, dernier segment de chemin, espaces)
2. règle lecture seule (`get*`)
3. allowlist exacte, sensible à la casse, sur la valeur **sanitisée**

Ce module est **sans I/O**.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...core.constants import READ_ONLY_PREFIX
from ...core.exceptions import ValidationError
from .operations import Operation, allowed_operations


def sanitize_endpoint(name: object) -> str:
    """Réduit un nom d'endpoint à son dernier segment de chemin.

    `../../admin/getVersion.php` → `getVersion.php`; `/etc/passwd` → `passwd`.
    Les deux séparateurs `/` et `\\` sont pris en compte.
    """

    cleaned = str(name).replace("\0", "")
    cleaned = cleaned.replace("\\", "/").rstrip("/")
    cleaned = cleaned.rsplit("/", 1)[-1]
    return cleaned.strip()


def is_read_only(name: str) -> bool:
    return sanitize_endpoint(name).startswith(READ_ONLY_PREFIX)


def is_allowed_operation(operation: object) -> bool:
    """Appartenance exacte à l'énumération `Operation` (fixée par le code)."""

    if not isinstance(operation, str):
        return False
    return operation in {op.value for op in Operation}


class AllowlistPolicy:
    """Allowlist d'endpoints chargée une fois depuis la configuration."""

    def __init__(self, allowed_endpoints: Iterable[str]):
        self._ordered: tuple[str, ...] = tuple(allowed_endpoints)
        self._allowed: frozenset[str] = frozenset(self._ordered)

    @property
    def allowed_endpoints(self) -> tuple[str, ...]:
        return self._ordered

    def is_allowed_endpoint(self, name: str) -> bool:
        return sanitize_endpoint(name) in self._allowed

    def is_read_only(self, name: str) -> bool:
        return is_read_only(name)

    def is_allowed_operation(self, operation: object) -> bool:
        return is_allowed_operation(operation)

    def validate_endpoint(self, raw_endpoint: object) -> str:
        """Retourne le nom sanitisé ou lève `ValidationError`.

        Raises:
            ValidationError: nom vide, hors `get*`, ou absent de l'allowlist.
        """

        endpoint = sanitize_endpoint(raw_endpoint)
        if not endpoint:
            raise ValidationError("Endpoint vide après sanitisation", value="")

        if not endpoint.startswith(READ_ONLY_PREFIX):
            raise ValidationError(
                f"Seuls les endpoints {READ_ONLY_PREFIX}* sont autorisés. Reçu: {endpoint}",
                value=endpoint,
            )

        if endpoint not in self._allowed:
            raise ValidationError(
                f"Endpoint absent de l'allowlist: {endpoint}",
                value=endpoint,
            )

        return endpoint

    def validate_operation(self, operation: object) -> Operation:
        """Retourne le membre `Operation` ou lève `ValidationError` listant les operations permises."""

        allowed = allowed_operations()
        if not self.is_allowed_operation(operation):
            raise ValidationError(
                f"Opération inconnue ou non autorisée: {operation} "
                f"(opérations autorisées: {', '.join(allowed)})",
                value=str(operation),
                allowed=allowed,
            )
        return Operation(operation)
