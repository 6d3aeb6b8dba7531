"""
Configuration loading for taxflow.
"""

from .settings import ImportSettings, SettingsLoader, load_settings

__all__ = ["ImportSettings", "SettingsLoader", "load_settings"]
