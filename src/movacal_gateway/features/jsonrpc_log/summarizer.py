"""movacal_gateway.features.jsonrpc_log.summarizer

Résumé sanitisé des requêtes JSON-RPC 2.0 entrantes (MCP), pour la journalisation.

Règles:
- Seules quelques valeurs scalaires explicitement listées sortent du module
  (nom d'outil, `operation`, version de protocole, curseur de pagination...)
- Tout le reste est réduit à des listes de noms de clés
- Chaque texte produit est borné en octets avec un marqueur de troncature
- Les en-têtes Authorization / Cookie ne sont jamais copiés, seule leur présence

Ce module est **sans I/O**.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field

from ...core.constants import (
    LOG_RAW_PREVIEW_BYTES,
    LOG_SANITIZED_JSON_BYTES,
    LOG_SCALAR_MAX_BYTES,
    TRUNCATION_MARKER,
)
from ...core.exceptions import DecodeError

JsonDict = dict[str, object]

LOG_MAX_KEYS = 100


def truncate_bytes(value: str, max_bytes: int) -> str:
    """Tronque `value` à `max_bytes` octets UTF-8 et ajoute le marqueur."""

    if max_bytes <= 0:
        return ""
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value
    head = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return f"{head}{TRUNCATION_MARKER}"


def _scalar(value: object) -> object:
    """Valeur scalaire bornée; un non-scalaire est remplacé par son type."""

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return truncate_bytes(value, LOG_SCALAR_MAX_BYTES)
    return f"<{type(value).__name__}>"


def _keys(obj: object) -> list[str] | None:
    if not isinstance(obj, dict):
        return None
    keys = [truncate_bytes(str(k), LOG_SCALAR_MAX_BYTES) for k in obj.keys()]
    if len(keys) > LOG_MAX_KEYS:
        keys = keys[:LOG_MAX_KEYS] + [TRUNCATION_MARKER]
    return keys


def _safe_get_dict(obj: object, key: str) -> dict[str, object] | None:
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    if isinstance(value, dict):
        return value
    return None


def _client_info(params: JsonDict) -> JsonDict | None:
    client_info = _safe_get_dict(params, "clientInfo")
    if client_info is None:
        return None
    return {
        "name": _scalar(client_info.get("name")),
        "version": _scalar(client_info.get("version")),
    }


@dataclass(frozen=True)
class JsonRpcDecodeDiagnostic:
    """Corps illisible: classe d'erreur + aperçu borné, jamais le corps complet."""

    json_error: str
    raw_preview: str
    body_bytes: int

    def to_dict(self) -> JsonDict:
        return {
            "json_error": self.json_error,
            "raw_preview": self.raw_preview,
            "body_bytes": self.body_bytes,
        }


@dataclass(frozen=True)
class SanitizedLogSummary:
    """Résumé journalisable d'une requête JSON-RPC."""

    jsonrpc: object
    id: object
    method: str
    params_keys: list[str] | None
    summary: JsonDict
    body_bytes: int
    sanitized_json: str = field(default="", repr=False)

    def to_dict(self) -> JsonDict:
        return {
            "method": self.method,
            "id": self.id,
            "jsonrpc": self.jsonrpc,
            "params_keys": self.params_keys,
            "summary": self.summary,
            "body_bytes": self.body_bytes,
            "sanitized_json": self.sanitized_json,
        }


class JsonRpcSanitizer:
    """Extrait un résumé sans PII d'un corps JSON-RPC."""

    def __init__(
        self,
        *,
        raw_preview_bytes: int = LOG_RAW_PREVIEW_BYTES,
        sanitized_json_bytes: int = LOG_SANITIZED_JSON_BYTES,
    ) -> None:
        self._raw_preview_bytes = raw_preview_bytes
        self._sanitized_json_bytes = sanitized_json_bytes

    def summarize(
        self,
        raw_body: str | bytes | None,
        fallback_body: Mapping[str, object] | None = None,
    ) -> SanitizedLogSummary | JsonRpcDecodeDiagnostic | None:
        """Résume `raw_body`.

        Returns:
            - `JsonRpcDecodeDiagnostic` si le corps n'est pas du JSON valide
            - `None` si ce n'est pas un objet JSON-RPC (pas de `method` string)
            - `SanitizedLogSummary` sinon
        """

        raw_text = self._as_text(raw_body)
        body_bytes = len(raw_body) if isinstance(raw_body, bytes) else len(raw_text.encode("utf-8"))

        try:
            parsed = self.decode_body(raw_text, fallback_body)
        except DecodeError as e:
            return JsonRpcDecodeDiagnostic(
                json_error=e.error_class,
                raw_preview=truncate_bytes(raw_text, self._raw_preview_bytes),
                body_bytes=body_bytes,
            )

        if parsed is None:
            return None

        method = parsed.get("method")
        if not isinstance(method, str) or method == "":
            return None

        params_obj = parsed.get("params")
        params: JsonDict = params_obj if isinstance(params_obj, dict) else {}

        return SanitizedLogSummary(
            jsonrpc=_scalar(parsed.get("jsonrpc")),
            id=_scalar(parsed.get("id")),
            method=truncate_bytes(method, LOG_SCALAR_MAX_BYTES),
            params_keys=_keys(params_obj),
            summary=self.summarize_params(method, params),
            body_bytes=body_bytes,
            sanitized_json=truncate_bytes(self.sanitized_json(parsed), self._sanitized_json_bytes),
        )

    @staticmethod
    def _as_text(raw_body: str | bytes | None) -> str:
        if raw_body is None:
            return ""
        if isinstance(raw_body, bytes):
            return raw_body.decode("utf-8", errors="replace")
        return raw_body

    @staticmethod
    def decode_body(raw_text: str, fallback_body: Mapping[str, object] | None = None) -> JsonDict | None:
        """Décode le corps brut; corps vide → corps déjà parsé s'il ressemble à du JSON-RPC.

        Raises:
            DecodeError: JSON invalide (porte uniquement la classe d'erreur).
        """

        if raw_text != "":
            try:
                decoded = json.loads(raw_text)
            except (ValueError, RecursionError) as e:
                raise DecodeError("Corps JSON-RPC illisible", error_class=type(e).__name__) from e
            return decoded if isinstance(decoded, dict) else None

        # Formulaire ou corps déjà consommé: ne garder que ce qui ressemble à du JSON-RPC
        if (
            isinstance(fallback_body, Mapping)
            and "jsonrpc" in fallback_body
            and isinstance(fallback_body.get("method"), str)
        ):
            return dict(fallback_body)

        return None

    def summarize_params(self, method: str, params: JsonDict) -> JsonDict:
        """Vue réduite des paramètres, spécifique à la méthode."""

        if method == "initialize":
            return {
                "protocolVersion": _scalar(params.get("protocolVersion")),
                "clientInfo": _client_info(params),
                "capabilities_keys": _keys(params.get("capabilities")),
            }

        if method == "tools/call":
            args = params.get("arguments")
            args_summary: JsonDict = {}
            if isinstance(args, dict):
                operation = args.get("operation")
                if isinstance(operation, str):
                    args_summary["operation"] = truncate_bytes(operation, LOG_SCALAR_MAX_BYTES)
                if isinstance(args.get("args"), dict):
                    args_summary["args_keys"] = _keys(args.get("args"))
                elif "args" in args and args.get("args") is not None:
                    args_summary["args_type"] = type(args.get("args")).__name__
                args_summary["arguments_keys"] = _keys(args)

            return {
                "tool_name": _scalar(params.get("name")),
                "arguments": args_summary or None,
            }

        if method == "tools/list":
            return {
                "cursor": _scalar(params.get("cursor")),
                "per_page": _scalar(params.get("per_page")),
            }

        return {"params_keys": _keys(params)}

    def sanitized_json(self, message: JsonDict) -> str:
        """Requête réécrite (valeurs retirées) sérialisée en JSON, non tronquée."""

        method = message.get("method")
        params_obj = message.get("params")
        params: JsonDict = params_obj if isinstance(params_obj, dict) else {}
        meta_present = "_meta" in params

        sanitized: JsonDict = {
            "jsonrpc": _scalar(message.get("jsonrpc")),
            "id": _scalar(message.get("id")),
            "method": _scalar(method),
            "params": None,
        }

        if method == "initialize":
            sanitized["params"] = {
                "protocolVersion": _scalar(params.get("protocolVersion")),
                "clientInfo": _client_info(params),
                "capabilities_keys": _keys(params.get("capabilities")),
                "_meta_present": meta_present,
            }
        elif method == "tools/call":
            arguments = params.get("arguments")
            arg_summary: JsonDict | None = None
            if isinstance(arguments, dict):
                arg_summary = {"keys": _keys(arguments)}
                if isinstance(arguments.get("operation"), str):
                    arg_summary["operation"] = truncate_bytes(str(arguments["operation"]), LOG_SCALAR_MAX_BYTES)
                if isinstance(arguments.get("args"), dict):
                    arg_summary["args_keys"] = _keys(arguments.get("args"))
            sanitized["params"] = {
                "name": _scalar(params.get("name")),
                "arguments": arg_summary,
                "_meta_present": meta_present,
            }
        elif method == "tools/list":
            sanitized["params"] = {
                "cursor": _scalar(params.get("cursor")),
                "per_page": _scalar(params.get("per_page")),
                "_meta_present": meta_present,
            }
        else:
            sanitized["params"] = {
                "keys": _keys(params),
                "_meta_present": meta_present,
            }

        return json.dumps(sanitized, ensure_ascii=False, separators=(",", ":"))


def headers_for_log(headers: Mapping[str, str] | None) -> JsonDict:
    """Métadonnées réseau non sensibles + présence (booléenne) des en-têtes secrets."""

    normalized: dict[str, str] = {}
    if headers is not None:
        for key, value in headers.items():
            normalized.setdefault(str(key).lower(), value)

    def _header(name: str) -> object:
        value = normalized.get(name)
        return None if value is None else truncate_bytes(str(value), LOG_SCALAR_MAX_BYTES)

    return {
        "host": _header("host"),
        "x_forwarded_for": _header("x-forwarded-for"),
        "x_real_ip": _header("x-real-ip"),
        "cf_connecting_ip": _header("cf-connecting-ip"),
        "authorization_present": "authorization" in normalized,
        "cookie_present": "cookie" in normalized,
    }
