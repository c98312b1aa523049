"""
Routeur d'operations logiques vers les wrappers d'endpoints.
"""
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, List, Optional

from .endpoints import MovacalReadApis
from .operations import OPERATION_HANDLERS, allowed_operations
from .policy import AllowlistPolicy

if TYPE_CHECKING:
    from ...proxy.client import GatewayClient

logger = logging.getLogger(__name__)


class OperationRouter:
    """
    Exécute une operation de l'énumération fermée.

    Une operation inconnue est rejetée avant toute activité réseau, avec la
    liste des operations permises pour que l'appelant (LLM) puisse se corriger.
    """

    def __init__(self, apis: MovacalReadApis, policy: AllowlistPolicy):
        self._apis = apis
        self._policy = policy

    @classmethod
    def from_gateway(cls, gateway: "GatewayClient") -> "OperationRouter":
        return cls(MovacalReadApis.from_gateway(gateway), gateway.policy)

    def allowed_operations(self) -> List[str]:
        return allowed_operations()

    def is_allowed_operation(self, operation: object) -> bool:
        return self._policy.is_allowed_operation(operation)

    async def execute(self, operation: object, args: Optional[Any] = None) -> Any:
        """
        Exécute `operation` avec `args` (transmis comme paramètres appelant).

        Raises:
            ValidationError: operation hors énumération (aucun appel réseau)
            UpstreamError: erreur Movacal après l'éventuel retry
        """
        op = self._policy.validate_operation(operation)
        call_args = dict(args) if isinstance(args, Mapping) else {}

        logger.debug(f"Operation {op.value} (args: {sorted(call_args)})")
        return await OPERATION_HANDLERS[op](self._apis, call_args)
