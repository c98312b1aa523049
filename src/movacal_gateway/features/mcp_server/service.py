"""movacal_gateway.features.mcp_server.service

Service métier du serveur MCP Movacal.

Responsabilités (couche Features):
- Négocier `initialize` et décrire l'outil `movacal_get`
- Exécuter `tools/call` via l'OperationRouter et formater le résultat MCP
- Construire les réponses JSON-RPC 2.0 (résultat / erreur) en préservant `id`

Les erreurs métier (validation, upstream) deviennent un résultat d'outil
`isError: true` lisible par le LLM; aucun détail interne n'est exposé.
"""

from __future__ import annotations

import json
import logging

from ...core.constants import (
    MCP_SERVER_NAME,
    MCP_SERVER_VERSION,
    MCP_TOOL_NAME,
    SUPPORTED_PROTOCOL_VERSIONS,
)
from ...core.exceptions import MovacalGatewayError
from ..movacal.operations import OPERATION_DESCRIPTIONS, Operation, allowed_operations
from ..movacal.router import OperationRouter

logger = logging.getLogger(__name__)

JsonDict = dict[str, object]

# Codes JSON-RPC 2.0
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


def build_instructions() -> str:
    operations = "\n".join(f"- `{op.value}`: {OPERATION_DESCRIPTIONS[op]}" for op in Operation)
    return (
        "This MCP server provides **read-only** access to the Movacal API (medical records system).\n"
        "\n"
        "## Safety\n"
        "- Never attempt write operations (create/update/delete). This server is read-only.\n"
        f"- Use only the `{MCP_TOOL_NAME}` tool.\n"
        "- Returned data is sensitive medical information. Avoid repeating personal information unnecessarily.\n"
        "\n"
        f"## {MCP_TOOL_NAME} (read-only)\n"
        "- `operation` (string, required): operation name\n"
        "- `args` (object, optional): operation arguments\n"
        "\n"
        "Available operations:\n"
        f"{operations}\n"
        "\n"
        "If unsure which operation to use, ask the user instead of guessing."
    )


def build_tool_definition() -> JsonDict:
    return {
        "name": MCP_TOOL_NAME,
        "title": "Movacal API GET (Read-only)",
        "description": (
            "Fetch data from the Movacal API through a fixed set of read-only operations. "
            f"Allowed operations: {', '.join(allowed_operations())}."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": allowed_operations(),
                    "description": "Operation name (e.g. get_version)",
                },
                "args": {
                    "type": "object",
                    "description": "Operation arguments",
                },
            },
            "required": ["operation"],
        },
    }


class MovacalMCPService:
    """Service métier pour le serveur MCP Movacal."""

    def __init__(self, operations: OperationRouter):
        self._operations = operations

    def negotiate_protocol_version(self, requested: object) -> str:
        if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
            return requested
        return SUPPORTED_PROTOCOL_VERSIONS[0]

    def initialize_result(self, params: JsonDict) -> JsonDict:
        return {
            "protocolVersion": self.negotiate_protocol_version(params.get("protocolVersion")),
            "capabilities": {"tools": {}},
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
            "instructions": build_instructions(),
        }

    def tools_list_result(self) -> JsonDict:
        return {"tools": [build_tool_definition()]}

    async def call_tool(self, arguments: object) -> JsonDict:
        """Exécute `movacal_get` et retourne un résultat d'outil MCP."""

        args_obj = arguments if isinstance(arguments, dict) else {}
        operation = args_obj.get("operation")

        try:
            result = await self._operations.execute(operation, args_obj.get("args"))
        except MovacalGatewayError as e:
            logger.info(f"🚫 {MCP_TOOL_NAME} refusé/échoué: [{e.code}] operation={operation!s:.64}")
            return self.tool_result(e.message, is_error=True)
        except Exception as e:
            logger.error(f"❌ Erreur inattendue dans {MCP_TOOL_NAME}: {type(e).__name__}")
            return self.tool_result("Internal error", is_error=True)

        return self.tool_result(json.dumps(result, ensure_ascii=False), is_error=False)

    @staticmethod
    def tool_result(text: str, *, is_error: bool) -> JsonDict:
        return {
            "content": [{"type": "text", "text": text}],
            "isError": is_error,
        }

    @staticmethod
    def build_jsonrpc_result(request_json: object, result: object) -> JsonDict:
        req_id: object | None = None
        if isinstance(request_json, dict):
            req_id = request_json.get("id")
        return {"jsonrpc": "2.0", "id": req_id, "result": result}

    @staticmethod
    def build_jsonrpc_error(
        request_json: object,
        *,
        code: int,
        message: str,
        data: object | None = None,
    ) -> JsonDict:
        """Construit une réponse d'erreur JSON-RPC 2.0.

        Note: conserve `id` si présent dans la requête.
        """

        req_id: object | None = None
        if isinstance(request_json, dict):
            req_id = request_json.get("id")

        error: JsonDict = {
            "code": int(code),
            "message": message,
        }
        if data is not None:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "error": error,
            "id": req_id,
        }
