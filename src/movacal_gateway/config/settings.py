"""
Dataclasses pour la configuration.

Priorité: `config.toml` (section `[movacal]`) s'il existe, sinon les variables
d'environnement `MOVACAL_*`. La validation des valeurs obligatoires est faite
par les composants à leur construction (CredentialManager, GatewayClient).
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..core.constants import (
    DEFAULT_ALLOWED_ENDPOINTS,
    DEFAULT_BASE_URL,
    DEFAULT_CREDENTIAL_TTL_S,
)
from .loader import default_config_path, load_config, reload_config


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def _as_ttl(value: Any, default: int = DEFAULT_CREDENTIAL_TTL_S) -> int:
    if isinstance(value, bool):
        return default
    try:
        ttl = int(str(value).strip()) if not isinstance(value, int) else value
    except (TypeError, ValueError):
        return default
    return max(1, ttl)


def _as_endpoints(value: Any) -> Tuple[str, ...]:
    """
    Allowlist d'endpoints.

    Seule une clé absente (None) donne la liste intégrée: une liste explicite,
    même vide, est prise telle quelle et une valeur illisible n'autorise rien.
    """
    if value is None:
        return DEFAULT_ALLOWED_ENDPOINTS
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        return ()
    return tuple(item for item in items if item)


@dataclass(frozen=True)
class MovacalSettings:
    """Configuration de l'accès à l'API Movacal."""
    base_url: str = DEFAULT_BASE_URL
    basic_id: str = ""
    basic_password: str = field(default="", repr=False)
    provider: str = ""
    secret_key: str = field(default="", repr=False)
    credential_ttl: int = DEFAULT_CREDENTIAL_TTL_S
    default_params_json: str = "{}"
    clinic_id: str = ""
    clinic_code: str = ""
    allowed_endpoints: Tuple[str, ...] = DEFAULT_ALLOWED_ENDPOINTS

    @property
    def clinic_info(self) -> Dict[str, str]:
        """Champs contextuels fixes; vide si la clinique n'est pas configurée."""
        if not self.clinic_id and not self.clinic_code:
            return {}
        return {"clinic_id": self.clinic_id, "clinic_code": self.clinic_code}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MovacalSettings":
        """Crée une instance depuis la section `[movacal]` du TOML."""
        basic = data.get("basic", {})
        if not isinstance(basic, dict):
            basic = {}
        clinic = data.get("clinic_info", {})
        if not isinstance(clinic, dict):
            clinic = {}

        return cls(
            base_url=_as_str(data.get("base_url"), DEFAULT_BASE_URL).rstrip("/"),
            basic_id=_as_str(basic.get("id")),
            basic_password=_as_str(basic.get("password")),
            provider=_as_str(data.get("provider")),
            secret_key=_as_str(data.get("secret_key")),
            credential_ttl=_as_ttl(data.get("credential_ttl", DEFAULT_CREDENTIAL_TTL_S)),
            default_params_json=_as_str(data.get("default_params_json"), "{}") or "{}",
            clinic_id=_as_str(clinic.get("clinic_id")),
            clinic_code=_as_str(clinic.get("clinic_code")),
            allowed_endpoints=_as_endpoints(data.get("allowed_endpoints")),
        )

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "MovacalSettings":
        """Crée une instance depuis les variables d'environnement `MOVACAL_*`."""
        env = os.environ if environ is None else environ

        return cls(
            base_url=_as_str(env.get("MOVACAL_BASE_URL"), DEFAULT_BASE_URL).rstrip("/"),
            basic_id=_as_str(env.get("MOVACAL_BASIC_ID")),
            basic_password=_as_str(env.get("MOVACAL_BASIC_PASSWORD")),
            provider=_as_str(env.get("MOVACAL_PROVIDER")),
            secret_key=_as_str(env.get("MOVACAL_SECRET_KEY")),
            credential_ttl=_as_ttl(env.get("MOVACAL_CREDENTIAL_TTL", DEFAULT_CREDENTIAL_TTL_S)),
            default_params_json=_as_str(env.get("MOVACAL_DEFAULT_PARAMS_JSON"), "{}") or "{}",
            clinic_id=_as_str(env.get("MOVACAL_CLINIC_ID")),
            clinic_code=_as_str(env.get("MOVACAL_CLINIC_CODE")),
            allowed_endpoints=_as_endpoints(env.get("MOVACAL_ALLOWED_ENDPOINTS")),
        )


def load_settings(config_path: str = None) -> MovacalSettings:
    """
    Charge les réglages Movacal.

    Args:
        config_path: Chemin vers config.toml (optionnel)

    Returns:
        MovacalSettings depuis le TOML s'il existe, sinon depuis l'environnement
    """
    path = config_path or default_config_path()
    if not Path(path).exists():
        return MovacalSettings.from_env()

    # Un chemin explicite force la relecture: le cache ne garde qu'un fichier
    config = reload_config(path) if config_path else load_config(path)
    section = config.get("movacal", {})
    if not isinstance(section, dict):
        section = {}
    return MovacalSettings.from_dict(section)
