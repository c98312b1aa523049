"""
Journalisation sanitisée des requêtes JSON-RPC (MCP) entrantes.
"""

from .summarizer import (
    JsonRpcSanitizer,
    JsonRpcDecodeDiagnostic,
    SanitizedLogSummary,
    headers_for_log,
    truncate_bytes,
)
from .request_log import build_request_log_record, log_jsonrpc_request

__all__ = [
    "JsonRpcSanitizer",
    "JsonRpcDecodeDiagnostic",
    "SanitizedLogSummary",
    "headers_for_log",
    "truncate_bytes",
    "build_request_log_record",
    "log_jsonrpc_request",
]
