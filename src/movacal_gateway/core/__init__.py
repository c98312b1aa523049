"""
Cœur métier de Movacal Gateway.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    MovacalGatewayError,
    ConfigurationError,
    ValidationError,
    UpstreamError,
    UpstreamAuthError,
    DecodeError,
)
from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_ALLOWED_ENDPOINTS,
    DEFAULT_CREDENTIAL_TTL_S,
    CREDENTIAL_PARAM_KEY,
    MIN_CALL_TIMEOUT_S,
    MAX_CALL_TIMEOUT_S,
)

__all__ = [
    # Exceptions
    "MovacalGatewayError",
    "ConfigurationError",
    "ValidationError",
    "UpstreamError",
    "UpstreamAuthError",
    "DecodeError",
    # Constants
    "DEFAULT_BASE_URL",
    "DEFAULT_ALLOWED_ENDPOINTS",
    "DEFAULT_CREDENTIAL_TTL_S",
    "CREDENTIAL_PARAM_KEY",
    "MIN_CALL_TIMEOUT_S",
    "MAX_CALL_TIMEOUT_S",
]
