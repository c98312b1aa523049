"""
Movacal Gateway - Application FastAPI Factory.
Serveur MCP en lecture seule vers l'API Movacal (dossier médical).
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from . import __version__
from .api.router import api_router
from .config.settings import MovacalSettings, load_settings
from .features.movacal import OperationRouter
from .proxy import create_gateway_client

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[MovacalSettings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Les composants (credential, gateway, router d'opérations) sont construits
    immédiatement: une configuration incomplète lève ConfigurationError ici.

    Args:
        settings: Configuration Movacal (chargée depuis config.toml / env si None)
        http_client: Client httpx partagé (créé et possédé par la gateway si None)

    Returns:
        Instance configurée de FastAPI
    """
    settings = settings or load_settings()
    gateway = create_gateway_client(settings, http_client=http_client)
    operations = OperationRouter.from_gateway(gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        _startup(app)
        yield
        await _shutdown(app)

    app = FastAPI(
        title="Movacal Gateway",
        description="Serveur MCP en lecture seule vers l'API Movacal",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.credentials = gateway.credentials
    app.state.gateway = gateway
    app.state.operations = operations

    app.include_router(api_router)

    return app


def _startup(app: FastAPI):
    """Initialisation au démarrage."""
    settings: MovacalSettings = app.state.settings
    operations: OperationRouter = app.state.operations

    logger.info("🚀 Démarrage de Movacal Gateway...")
    logger.info(f"✅ Base URL: {settings.base_url}")
    logger.info(f"✅ {len(settings.allowed_endpoints)} endpoint(s) autorisé(s)")
    logger.info(f"✅ Opérations exposées: {', '.join(operations.allowed_operations())}")
    if not settings.clinic_info:
        logger.info("ℹ️ clinic_info non configuré: aucun paramètre contextuel ajouté")


async def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    logger.info("👋 Arrêt du serveur...")

    await app.state.gateway.aclose()
    await app.state.credentials.aclose()

    logger.info("✅ Serveur arrêté proprement")
