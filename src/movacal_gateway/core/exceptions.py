"""
Exceptions personnalisées pour Movacal Gateway.

Règle commune: aucun message ni `details` ne contient de secret (credential,
mot de passe Basic) ni de corps de réponse upstream.
"""
from typing import Iterable, Optional


class MovacalGatewayError(Exception):
    """Exception de base pour toutes les erreurs du gateway."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(MovacalGatewayError):
    """Erreur de configuration (valeur manquante ou vide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class ValidationError(MovacalGatewayError):
    """Endpoint ou operation refusé avant tout appel réseau."""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        allowed: Optional[Iterable[str]] = None,
    ):
        details = {}
        if value is not None:
            details["value"] = value
        if allowed is not None:
            details["allowed"] = list(allowed)
        super().__init__(
            message=message,
            code="validation_error",
            details=details
        )


class UpstreamError(MovacalGatewayError):
    """Erreur renvoyée par l'API Movacal (status HTTP, réponse invalide, réseau)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        code: str = "upstream_error",
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = int(status_code)
        if reason is not None:
            details["reason"] = reason
        super().__init__(message=message, code=code, details=details)
        self.status_code = status_code


class UpstreamAuthError(UpstreamError):
    """401 persistant malgré le rafraîchissement de la credential."""

    def __init__(self, message: str = "Upstream error: HTTP 401", status_code: int = 401):
        super().__init__(
            message=message,
            status_code=status_code,
            reason="unauthorized",
            code="upstream_auth_error",
        )


class DecodeError(MovacalGatewayError):
    """Corps JSON-RPC illisible (journalisé, jamais bloquant)."""

    def __init__(self, message: str, error_class: str, preview: str = None):
        details = {"error_class": error_class}
        if preview is not None:
            details["preview"] = preview
        super().__init__(
            message=message,
            code="decode_error",
            details=details
        )
        self.error_class = error_class
