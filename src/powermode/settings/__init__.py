"""Application settings management.

This package provides:
- UserSettings: User-configurable settings loaded from a YAML config file
- ApplicationSettings: Derived settings such as state file paths
"""

from powermode.settings.application import AppPaths, ApplicationSettings
from powermode.settings.user import UserSettings

__all__ = ["AppPaths", "ApplicationSettings", "UserSettings"]
