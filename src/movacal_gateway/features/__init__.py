"""
Fonctionnalités de Movacal Gateway.
"""

from .movacal import AllowlistPolicy, ParameterMerger, Operation, OperationRouter
from .jsonrpc_log import JsonRpcSanitizer, headers_for_log, log_jsonrpc_request
from .mcp_server import MovacalMCPService

__all__ = [
    # Movacal
    "AllowlistPolicy",
    "ParameterMerger",
    "Operation",
    "OperationRouter",
    # JSON-RPC log
    "JsonRpcSanitizer",
    "headers_for_log",
    "log_jsonrpc_request",
    # MCP
    "MovacalMCPService",
]
