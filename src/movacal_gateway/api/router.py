"""
Router principal de l'API.
"""
from fastapi import APIRouter

from .routes import health, mcp

# Router principal
api_router = APIRouter()

api_router.include_router(health.router, prefix="", tags=["health"])

# Serveur MCP Movacal (lecture seule)
api_router.include_router(mcp.router, prefix="", tags=["mcp"])
