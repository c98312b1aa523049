"""
Tests unitaires de la journalisation sanitisée JSON-RPC.

Pourquoi: les arguments d'outil peuvent contenir des données patient.
Seuls les noms de clés et quelques scalaires listés doivent être journalisés.
"""
import json
import logging

import pytest

from movacal_gateway.core.constants import TRUNCATION_MARKER
from movacal_gateway.features.jsonrpc_log import (
    JsonRpcDecodeDiagnostic,
    JsonRpcSanitizer,
    SanitizedLogSummary,
    build_request_log_record,
    headers_for_log,
    log_jsonrpc_request,
    truncate_bytes,
)

TOOLS_CALL = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "tools/call",
    "params": {
        "name": "movacal_get",
        "arguments": {"operation": "get_version", "args": {"x": "s3cr3t"}},
    },
}


@pytest.fixture
def sanitizer():
    return JsonRpcSanitizer()


class TestTruncateBytes:
    """Tests de la troncature en octets."""

    def test_short_value_unchanged(self):
        assert truncate_bytes("abc", 10) == "abc"

    def test_long_value_gets_marker(self):
        assert truncate_bytes("a" * 20, 5) == "aaaaa" + TRUNCATION_MARKER

    def test_multibyte_is_not_split(self):
        # "é" = 2 octets: 3 octets ne gardent qu'un caractère entier
        assert truncate_bytes("éé", 3) == "é" + TRUNCATION_MARKER


class TestSummarize:
    """Tests du résumé par méthode."""

    def test_sibling_secret_reduced_to_key_name(self, sanitizer):
        """Exemple de référence: une valeur voisine de `operation` ne sort jamais."""
        message = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {
                "name": "movacal_get",
                "arguments": {"operation": "get_version", "secret": "s3cr3t"},
            },
        }

        summary = sanitizer.summarize(json.dumps(message))

        arguments = summary.summary["arguments"]
        assert arguments["operation"] == "get_version"
        assert arguments["arguments_keys"] == ["operation", "secret"]
        assert "s3cr3t" not in json.dumps(summary.to_dict())
        assert "s3cr3t" not in summary.sanitized_json

    def test_tools_call_keeps_only_operation_and_keys(self, sanitizer):
        summary = sanitizer.summarize(json.dumps(TOOLS_CALL))

        assert isinstance(summary, SanitizedLogSummary)
        assert summary.method == "tools/call"
        assert summary.id == 1
        assert summary.summary["tool_name"] == "movacal_get"
        assert summary.summary["arguments"]["operation"] == "get_version"
        assert summary.summary["arguments"]["args_keys"] == ["x"]
        assert "s3cr3t" not in json.dumps(summary.to_dict())

    def test_tools_call_non_object_args(self, sanitizer):
        message = {"jsonrpc": "2.0", "id": 2, "method": "tools/call",
                   "params": {"name": "movacal_get", "arguments": {"operation": "get_version", "args": "Yamada Taro"}}}
        summary = sanitizer.summarize(json.dumps(message))

        assert summary.summary["arguments"]["args_type"] == "str"
        assert "Yamada" not in json.dumps(summary.to_dict(), ensure_ascii=False)

    def test_initialize(self, sanitizer):
        message = {
            "jsonrpc": "2.0",
            "id": 0,
            "method": "initialize",
            "params": {
                "protocolVersion": "2025-06-18",
                "clientInfo": {"name": "client", "version": "1.0", "token": "abc"},
                "capabilities": {"roots": {}, "sampling": {}},
            },
        }
        summary = sanitizer.summarize(json.dumps(message))

        assert summary.summary == {
            "protocolVersion": "2025-06-18",
            "clientInfo": {"name": "client", "version": "1.0"},
            "capabilities_keys": ["roots", "sampling"],
        }
        assert "abc" not in summary.sanitized_json

    def test_tools_list(self, sanitizer):
        message = {"jsonrpc": "2.0", "id": 3, "method": "tools/list", "params": {"cursor": "c1", "per_page": 10}}
        summary = sanitizer.summarize(json.dumps(message))

        assert summary.summary == {"cursor": "c1", "per_page": 10}

    def test_other_method_keeps_param_keys(self, sanitizer):
        message = {"jsonrpc": "2.0", "id": 4, "method": "resources/read", "params": {"uri": "patient://42"}}
        summary = sanitizer.summarize(json.dumps(message))

        assert summary.summary == {"params_keys": ["uri"]}
        assert "patient://42" not in json.dumps(summary.to_dict())

    def test_meta_presence_flag(self, sanitizer):
        message = {"jsonrpc": "2.0", "id": 5, "method": "ping", "params": {"_meta": {"progressToken": "t"}}}
        summary = sanitizer.summarize(json.dumps(message))

        sanitized = json.loads(summary.sanitized_json)
        assert sanitized["params"]["_meta_present"] is True
        assert "progressToken" not in summary.sanitized_json

    def test_bytes_body(self, sanitizer):
        summary = sanitizer.summarize(json.dumps(TOOLS_CALL).encode("utf-8"))
        assert isinstance(summary, SanitizedLogSummary)

    def test_body_bytes_counts_raw_bytes(self, sanitizer):
        """La taille est celle du corps reçu, pas du texte décodé avec remplacement."""
        raw = b"{\xff\xfe broken"

        result = sanitizer.summarize(raw)

        assert isinstance(result, JsonRpcDecodeDiagnostic)
        assert result.body_bytes == len(raw) == 10

    def test_body_bytes_for_valid_bytes_body(self, sanitizer):
        raw = json.dumps(TOOLS_CALL, ensure_ascii=False).encode("utf-8")
        assert sanitizer.summarize(raw).body_bytes == len(raw)

    def test_sanitized_json_is_bounded(self):
        sanitizer = JsonRpcSanitizer(sanitized_json_bytes=40)
        summary = sanitizer.summarize(json.dumps(TOOLS_CALL))

        assert summary.sanitized_json.endswith(TRUNCATION_MARKER)
        assert len(summary.sanitized_json.encode("utf-8")) <= 40 + len(TRUNCATION_MARKER)


class TestSummarizeEdgeCases:
    """Corps invalides ou non JSON-RPC."""

    def test_invalid_json_gives_bounded_diagnostic(self):
        sanitizer = JsonRpcSanitizer(raw_preview_bytes=16)
        raw = "{" + "x" * 100

        result = sanitizer.summarize(raw)

        assert isinstance(result, JsonRpcDecodeDiagnostic)
        assert result.json_error == "JSONDecodeError"
        assert result.raw_preview == raw[:16] + TRUNCATION_MARKER
        assert result.body_bytes == 101

    @pytest.mark.parametrize(
        "raw",
        [
            json.dumps({"jsonrpc": "2.0", "id": 1}),
            json.dumps({"jsonrpc": "2.0", "method": ""}),
            json.dumps({"jsonrpc": "2.0", "method": 3}),
            json.dumps([TOOLS_CALL]),
            "42",
            "",
            None,
        ],
    )
    def test_not_jsonrpc_gives_none(self, sanitizer, raw):
        assert sanitizer.summarize(raw) is None

    def test_fallback_body_used_when_raw_empty(self, sanitizer):
        summary = sanitizer.summarize("", fallback_body=TOOLS_CALL)

        assert isinstance(summary, SanitizedLogSummary)
        assert summary.method == "tools/call"

    def test_fallback_without_jsonrpc_marker_ignored(self, sanitizer):
        assert sanitizer.summarize("", fallback_body={"method": "tools/call"}) is None


class TestHeadersForLog:
    """Tests des en-têtes journalisés."""

    def test_secrets_reduced_to_presence(self):
        headers = {
            "Host": "gateway.local",
            "Authorization": "Bearer top-secret",
            "Cookie": "session=abc",
            "X-Forwarded-For": "10.0.0.1",
        }
        result = headers_for_log(headers)

        assert result == {
            "host": "gateway.local",
            "x_forwarded_for": "10.0.0.1",
            "x_real_ip": None,
            "cf_connecting_ip": None,
            "authorization_present": True,
            "cookie_present": True,
        }
        assert "top-secret" not in json.dumps(result)

    def test_no_headers(self):
        result = headers_for_log(None)
        assert result["authorization_present"] is False
        assert result["cookie_present"] is False


class TestRequestLog:
    """Tests de l'enregistrement journalisé."""

    def test_jsonrpc_record(self):
        record = build_request_log_record(
            json.dumps(TOOLS_CALL),
            headers={"authorization": "Bearer x"},
            http={"http_method": "POST", "path": "/mcp/movacal"},
        )

        assert record["kind"] == "jsonrpc"
        assert record["mcp"]["method"] == "tools/call"
        assert "sanitized_json" not in record["mcp"]
        assert record["request"]["headers"]["authorization_present"] is True
        assert record["http"]["path"] == "/mcp/movacal"

    def test_invalid_json_record(self):
        record = build_request_log_record("{oops", http={"path": "/mcp/movacal"})

        assert record["kind"] == "invalid_json"
        assert record["json_error"] == "JSONDecodeError"
        assert record["raw_preview"] == "{oops"

    def test_log_never_contains_argument_values(self, caplog):
        with caplog.at_level(logging.INFO, logger="movacal_gateway.features.jsonrpc_log"):
            record = log_jsonrpc_request(
                json.dumps(TOOLS_CALL),
                headers={"Authorization": "Bearer top-secret"},
            )

        assert record is not None
        assert "tools/call" in caplog.text
        assert "s3cr3t" not in caplog.text
        assert "top-secret" not in caplog.text

    def test_invalid_json_logged_as_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="movacal_gateway.features.jsonrpc_log"):
            log_jsonrpc_request("{oops")

        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_non_jsonrpc_not_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="movacal_gateway.features.jsonrpc_log"):
            assert log_jsonrpc_request(json.dumps({"hello": "world"})) is None

        assert caplog.records == []
