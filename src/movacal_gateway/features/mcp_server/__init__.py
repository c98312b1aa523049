"""
Serveur MCP Movacal: handshake, description de l'outil, exécution.
"""

from .service import (
    MovacalMCPService,
    build_instructions,
    build_tool_definition,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
)

__all__ = [
    "MovacalMCPService",
    "build_instructions",
    "build_tool_definition",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
]
