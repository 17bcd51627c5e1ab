"""
Configuration for Fermata
"""

from .settings import FermataSettings, get_settings, reset_settings

__all__ = [
    'FermataSettings',
    'get_settings',
    'reset_settings',
]
