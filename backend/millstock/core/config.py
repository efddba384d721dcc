"""
Configuration entry point.

Most modules import ``settings`` from here rather than from
``millstock.core.settings`` directly.
"""
from millstock.core.settings import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
