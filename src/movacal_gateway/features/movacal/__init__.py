"""
Accès Movacal en lecture seule: politique, paramètres, operations.

Modules:
- policy: sanitisation d'endpoint, règle get*, allowlists
- params: fusion defaults / contextuel / appelant
- endpoints: wrappers d'endpoints
- operations: énumération fermée + table de dispatch
- router: exécution d'une operation logique
"""

from .policy import AllowlistPolicy, sanitize_endpoint, is_read_only, is_allowed_operation
from .params import ParameterMerger, parse_default_params
from .endpoints import VersionApi, FileCategoryApi, MovacalReadApis
from .operations import Operation, OPERATION_HANDLERS, OPERATION_DESCRIPTIONS, allowed_operations
from .router import OperationRouter

__all__ = [
    "AllowlistPolicy",
    "sanitize_endpoint",
    "is_read_only",
    "is_allowed_operation",
    "ParameterMerger",
    "parse_default_params",
    "VersionApi",
    "FileCategoryApi",
    "MovacalReadApis",
    "Operation",
    "OPERATION_HANDLERS",
    "OPERATION_DESCRIPTIONS",
    "allowed_operations",
    "OperationRouter",
]
