"""Routes API: serveur MCP Movacal.

Expose un endpoint JSON-RPC 2.0 (MCP) en lecture seule. Chaque requête est
d'abord journalisée sous forme sanitisée, puis dispatchée par méthode.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from ...core.constants import MCP_TOOL_NAME
from ...features.jsonrpc_log import log_jsonrpc_request
from ...features.mcp_server import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    MovacalMCPService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_meta(request: Request) -> dict[str, object]:
    headers = request.headers
    return {
        "http_method": request.method,
        "path": request.url.path,
        "ip": request.client.host if request.client else None,
        "user_agent": headers.get("user-agent"),
        "request_id": headers.get("x-request-id"),
        "content_type": headers.get("content-type"),
        "accept": headers.get("accept"),
    }


@router.post("/mcp/movacal")
async def mcp_movacal_rpc(request: Request):
    """Point d'entrée JSON-RPC du serveur MCP Movacal."""

    raw_body = await request.body()
    log_jsonrpc_request(raw_body, headers=request.headers, http=_http_meta(request))

    service = MovacalMCPService(request.app.state.operations)

    try:
        request_json = json.loads(raw_body) if raw_body else None
    except (ValueError, RecursionError):
        error_payload = service.build_jsonrpc_error(None, code=PARSE_ERROR, message="Parse error")
        return JSONResponse(content=error_payload, status_code=400)

    if not isinstance(request_json, dict) or not isinstance(request_json.get("method"), str):
        error_payload = service.build_jsonrpc_error(
            request_json, code=INVALID_REQUEST, message="Invalid Request"
        )
        return JSONResponse(content=error_payload, status_code=400)

    method = request_json["method"]
    params = request_json.get("params")
    if not isinstance(params, dict):
        params = {}

    # Notification (sans id): aucune réponse attendue
    if "id" not in request_json:
        logger.debug(f"MCP notification reçue: {method}")
        return Response(status_code=202)

    if method == "initialize":
        result = service.initialize_result(params)
        logger.info(f"🤝 MCP initialize response: {json.dumps(result, ensure_ascii=False)}")
        return JSONResponse(content=service.build_jsonrpc_result(request_json, result))

    if method == "ping":
        return JSONResponse(content=service.build_jsonrpc_result(request_json, {}))

    if method == "tools/list":
        return JSONResponse(content=service.build_jsonrpc_result(request_json, service.tools_list_result()))

    if method == "tools/call":
        tool_name = params.get("name")
        if tool_name != MCP_TOOL_NAME:
            error_payload = service.build_jsonrpc_error(
                request_json,
                code=INVALID_PARAMS,
                message=f"Unknown tool: {tool_name}",
            )
            return JSONResponse(content=error_payload)

        result = await service.call_tool(params.get("arguments"))
        return JSONResponse(content=service.build_jsonrpc_result(request_json, result))

    error_payload = service.build_jsonrpc_error(
        request_json,
        code=METHOD_NOT_FOUND,
        message=f"Method not found: {method}",
    )
    return JSONResponse(content=error_payload)
