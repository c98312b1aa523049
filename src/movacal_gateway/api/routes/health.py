"""
Routes API pour le health check.
"""
from fastapi import APIRouter, Request

from ... import __version__
from ...features.movacal.operations import allowed_operations

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check: opérations exposées et état du cache de credential."""
    state = request.app.state

    return {
        "status": "ok",
        "version": __version__,
        "operations": allowed_operations(),
        "allowed_endpoints": len(state.gateway.policy.allowed_endpoints),
        "credential_cached": state.credentials.has_cached_credential,
    }
