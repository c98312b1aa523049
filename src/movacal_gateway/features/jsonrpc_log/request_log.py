"""
Journalisation des requêtes MCP (JSON-RPC) entrantes.

Seul le résumé sanitisé est écrit: jamais le corps complet, les arguments
d'outil, ni les valeurs des en-têtes Authorization / Cookie.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional, Union

from ...core.constants import LOG_SCALAR_MAX_BYTES
from .summarizer import (
    JsonRpcDecodeDiagnostic,
    JsonRpcSanitizer,
    SanitizedLogSummary,
    headers_for_log,
    truncate_bytes,
)

logger = logging.getLogger(__name__)

_default_sanitizer = JsonRpcSanitizer()


def _bounded_http(http: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    bounded = {}
    for key, value in (http or {}).items():
        bounded[key] = truncate_bytes(value, LOG_SCALAR_MAX_BYTES) if isinstance(value, str) else value
    return bounded


def build_request_log_record(
    raw_body: Union[str, bytes, None],
    *,
    fallback_body: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    http: Optional[Mapping[str, Any]] = None,
    sanitizer: Optional[JsonRpcSanitizer] = None,
) -> Optional[Dict[str, Any]]:
    """
    Construit l'enregistrement de log d'une requête MCP.

    Returns:
        Dictionnaire {"kind": "jsonrpc" | "invalid_json", ...} ou None si rien
        d'assimilable à du JSON-RPC n'a été reçu
    """
    result = (sanitizer or _default_sanitizer).summarize(raw_body, fallback_body)

    if isinstance(result, JsonRpcDecodeDiagnostic):
        return {
            "kind": "invalid_json",
            "http": _bounded_http(http),
            **result.to_dict(),
        }

    if isinstance(result, SanitizedLogSummary):
        record = result.to_dict()
        sanitized_json = record.pop("sanitized_json")
        return {
            "kind": "jsonrpc",
            "mcp": record,
            "http": _bounded_http(http),
            "request": {
                "headers": headers_for_log(headers),
                "sanitized_json": sanitized_json,
            },
        }

    return None


def log_jsonrpc_request(
    raw_body: Union[str, bytes, None],
    *,
    fallback_body: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    http: Optional[Mapping[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Journalise une requête MCP puis rend la main: ne lève jamais pour un corps illisible.

    Returns:
        L'enregistrement journalisé (ou None)
    """
    record = build_request_log_record(raw_body, fallback_body=fallback_body, headers=headers, http=http)
    if record is None:
        return None

    serialized = json.dumps(record, ensure_ascii=False, default=str)
    if record["kind"] == "invalid_json":
        logger.warning(f"⚠️ MCP corps JSON invalide reçu: {serialized}")
    else:
        logger.info(f"📥 MCP JSON-RPC {record['mcp']['method']} reçu: {serialized}")
    return record
