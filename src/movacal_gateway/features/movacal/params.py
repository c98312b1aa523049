"""
Fusion des paramètres de requête Movacal.

Priorité (croissante): défauts de configuration < champs contextuels fixes
(clinic_info) < arguments de l'appelant < credential.
"""
import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from ...core.constants import CREDENTIAL_PARAM_KEY

logger = logging.getLogger(__name__)


def parse_default_params(json_text: Optional[str]) -> Dict[str, Any]:
    """
    Décode `MOVACAL_DEFAULT_PARAMS_JSON`.

    Un JSON invalide ou qui n'est pas un objet donne un dictionnaire vide:
    ces valeurs ne sont que des surcharges optionnelles.
    """
    if not json_text:
        return {}
    try:
        decoded = json.loads(json_text)
    except (TypeError, ValueError):
        logger.debug("default_params_json invalide, défauts ignorés")
        return {}
    return dict(decoded) if isinstance(decoded, dict) else {}


class ParameterMerger:
    """Fusion déterministe defaults / contextuel / appelant."""

    def __init__(self, defaults: Optional[Mapping[str, Any]] = None, contextual: Optional[Mapping[str, Any]] = None):
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.contextual: Dict[str, Any] = dict(contextual or {})

    @classmethod
    def from_json(cls, defaults_json: Optional[str], contextual: Optional[Mapping[str, Any]] = None) -> "ParameterMerger":
        return cls(parse_default_params(defaults_json), contextual)

    @staticmethod
    def merge(defaults: Any, contextual: Any, caller: Any) -> Dict[str, Any]:
        """
        Fusion à trois sources, la dernière gagne pour une même clé.

        Une source qui n'est pas un mapping est traitée comme vide.
        """
        merged: Dict[str, Any] = {}
        for source in (defaults, contextual, caller):
            if isinstance(source, Mapping):
                merged.update(source)
        return merged

    def build(self, caller: Any) -> Dict[str, Any]:
        """Fusionne les arguments de l'appelant avec les sources configurées."""
        return self.merge(self.defaults, self.contextual, caller)

    @staticmethod
    def with_credential(params: Mapping[str, Any], credential: str) -> Dict[str, Any]:
        """Copie des paramètres avec la credential injectée en dernier (non surchargeable)."""
        body = dict(params)
        body.pop(CREDENTIAL_PARAM_KEY, None)
        body[CREDENTIAL_PARAM_KEY] = credential
        return body
