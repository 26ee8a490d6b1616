"""Configuration package for webharvest.

Re-exports the settings symbols so that callers can write::

    from webharvest.config import get_settings
"""

from __future__ import annotations

from webharvest.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
