"""Storage modules for PhishShield."""

from .settings_store import SettingsStore, StorageError

__all__ = ["SettingsStore", "StorageError"]
