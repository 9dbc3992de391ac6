"""Settings Manager - user settings read/update."""

from __future__ import annotations

from typing import Any

from .. import const, data_builders as db
from ..engines.instance_engine import merge_settings
from .base_manager import BaseManager


class SettingsManager(BaseManager):
    """Manager for the settings bucket (sleep window, theme)."""

    def setup(self) -> None:
        """Nothing to subscribe to."""

    def get_settings(self) -> dict[str, Any]:
        """Return stored settings merged over the defaults."""
        return merge_settings(self.coordinator.store.settings)

    def update_settings(self, updates: dict[str, Any]) -> dict[str, Any]:
        """Validate and merge a settings patch.

        Raises:
            ReminderValidationError: a clock is not "HH:MM" or the theme is unknown
        """
        validated = db.validate_settings(updates)
        self.coordinator.store.settings.update(validated)
        self.coordinator.persist()
        const.LOGGER.debug("SettingsManager: Updated settings %s", list(validated))
        self.emit(const.SIGNAL_SETTINGS_UPDATED, keys=list(validated))
        return self.get_settings()

    def apply_remote(self, data: dict[str, Any]) -> None:
        """Merge settings pushed by the remote sync collaborator.

        Remote values are stored as received; malformed clocks fall back to
        the defaults during expansion.
        """
        self.coordinator.store.settings.update(data)
        self.coordinator.persist()
        self.emit(const.SIGNAL_SETTINGS_UPDATED, keys=list(data))
