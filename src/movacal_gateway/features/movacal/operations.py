"""movacal_gateway.features.movacal.operations

Énumération fermée des operations logiques et table de dispatch.

Les deux vivent ici et sont vérifiées à l'import: toute operation a
exactement un handler et aucun handler n'existe hors de l'énumération.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from .endpoints import MovacalReadApis


class Operation(str, Enum):
    GET_VERSION = "get_version"
    GET_FILE_CATEGORY = "get_file_category"


OperationHandler = Callable[[MovacalReadApis, dict[str, Any]], Awaitable[Any]]

OPERATION_HANDLERS: dict[Operation, OperationHandler] = {
    Operation.GET_VERSION: lambda apis, args: apis.version.get_version(args),
    Operation.GET_FILE_CATEGORY: lambda apis, args: apis.file_category.get_file_category(args),
}

OPERATION_DESCRIPTIONS: dict[Operation, str] = {
    Operation.GET_VERSION: "APIバージョン情報を取得 (API version information)",
    Operation.GET_FILE_CATEGORY: "書類カテゴリー一覧を取得 (document category list)",
}


def allowed_operations() -> list[str]:
    """Valeurs de l'énumération, dans l'ordre de déclaration."""

    return [op.value for op in Operation]


def _verify_dispatch_table() -> None:
    declared = set(Operation)
    handled = set(OPERATION_HANDLERS)
    if declared != handled:
        missing = sorted(op.value for op in declared - handled)
        extra = sorted(str(op) for op in handled - declared)
        raise RuntimeError(f"Table de dispatch désynchronisée: sans handler={missing}, hors énumération={extra}")
    if set(OPERATION_DESCRIPTIONS) != declared:
        raise RuntimeError("Descriptions d'operations désynchronisées avec l'énumération")


_verify_dispatch_table()
