"""
AI Settings Service

Loads and saves the user's text-provider settings.
"""

import logging

from models.coach import AISettings
from storage.database import BlobStore, StorageError, AI_SETTINGS_KEY

logger = logging.getLogger(__name__)


class SettingsService:
    """Persisted AISettings with safe defaults when storage fails."""

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    def get(self) -> AISettings:
        """Get current settings (defaults if missing or unreadable)."""
        try:
            raw = self.blob_store.get(AI_SETTINGS_KEY)
        except StorageError as e:
            logger.warning(f"Error loading AI settings: {e}")
            return AISettings()

        if not isinstance(raw, dict):
            return AISettings()
        return AISettings.from_dict(raw)

    def save(self, settings: AISettings) -> AISettings:
        """Save settings. The key is stripped; failures are logged."""
        settings.api_key = settings.api_key.strip()
        try:
            self.blob_store.set(AI_SETTINGS_KEY, settings.to_dict())
        except StorageError as e:
            logger.warning(f"Error saving AI settings: {e}")
        return settings
