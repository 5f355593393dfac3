"""
Core module initialization.
Exports configuration, logging utilities and domain exceptions.
"""

from bhavan.core.config import get_settings, Settings, EnvironmentMode, StatusPolicy

__all__ = ["get_settings", "Settings", "EnvironmentMode", "StatusPolicy"]
