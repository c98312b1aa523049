"""
Configuration de Movacal Gateway.
"""

from .loader import load_config, reload_config
from .settings import MovacalSettings, load_settings

__all__ = [
    "load_config",
    "reload_config",
    "MovacalSettings",
    "load_settings",
]
