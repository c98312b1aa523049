"""
Logique de proxy HTTP vers l'API Movacal.
"""

from .credential import CredentialManager, build_signed_challenge
from .client import (
    GatewayClient,
    UpstreamResponse,
    clamp_timeout,
    shape_response,
    create_gateway_client,
)

__all__ = [
    "CredentialManager",
    "build_signed_challenge",
    "GatewayClient",
    "UpstreamResponse",
    "clamp_timeout",
    "shape_response",
    "create_gateway_client",
]
