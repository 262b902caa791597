"""System settings edited from the admin dashboard.

Settings are saved as one JSON record next to the session (see
:class:`core.state.SessionStore`).  A missing or malformed record falls back
to the defaults of :class:`sacco.models.SystemSettings`.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from core import config
from core.state import SessionStore
from sacco.models import SystemSettings

logger = logging.getLogger(__name__)

SECTIONS = ("general", "notifications", "security", "financial", "approval")


def _merge(base: Dict[str, Any], changes: Dict[str, Any], path: str) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in changes.items():
        if key not in base:
            raise KeyError(f"unknown setting {path}.{key}")
        if isinstance(base[key], dict) and isinstance(value, dict):
            merged[key] = _merge(base[key], value, f"{path}.{key}")
        else:
            merged[key] = value
    return merged


class SettingsStore:
    def __init__(self, slot: Optional[SessionStore] = None) -> None:
        self.slot = slot or SessionStore(key=config.SETTINGS_KEY)
        self.current = self._load()

    def _load(self) -> SystemSettings:
        record = self.slot.read_record()
        if record is None:
            return SystemSettings()
        try:
            return SystemSettings.model_validate(record)
        except ValidationError as exc:
            logger.warning("Discarding malformed settings record: %s", exc)
            return SystemSettings()

    def update(self, section: str, actor: str = "System", **changes) -> SystemSettings:
        """Apply ``changes`` to one section and save.

        Nested values merge into the stored ones, so
        ``update("notifications", email={"enabled": True})`` leaves the email
        triggers alone.  Unknown keys raise ``KeyError``.
        """
        if section not in SECTIONS:
            raise KeyError(f"unknown settings section {section!r}")
        current = getattr(self.current, section)
        merged = _merge(current.model_dump(), changes, section)
        updated = type(current).model_validate(merged)
        self.current = self.current.model_copy(
            update={section: updated, "last_modified": datetime.now(timezone.utc), "modified_by": actor}
        )
        self.slot.write_record(self.current.model_dump(mode="json"))
        logger.info("%s updated %s settings: %s", actor, section, ", ".join(sorted(changes)))
        return self.current

    def reset(self) -> SystemSettings:
        self.current = SystemSettings()
        self.slot.clear()
        logger.info("System settings reset to defaults")
        return self.current
