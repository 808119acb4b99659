"""
upper-doodle - Configuration package.
"""

from .settings import Settings, get_settings, load_config, set_settings

__all__ = ["Settings", "get_settings", "load_config", "set_settings"]
