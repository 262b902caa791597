import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from core import config
from sacco.models import User

logger = logging.getLogger(__name__)


class SessionStore:
    """File-backed slot holding one JSON record between app restarts.

    The file is a JSON object; the record lives under ``key``
    (``config.SESSION_KEY``, the signed-in user, by default).  Other keys in
    the file are left untouched so the same file can carry the system
    settings and other preferences.
    """

    def __init__(self, path: Optional[str] = None, key: Optional[str] = None) -> None:
        self.path = path or config.SESSION_FILE
        self.key = key or config.SESSION_KEY

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def read_record(self) -> Optional[dict]:
        record = self._read().get(self.key)
        return record if isinstance(record, dict) else None

    def write_record(self, record: dict) -> None:
        data = self._read()
        data[self.key] = record
        self._write(data)

    def load(self) -> Optional[User]:
        """Return the stored user, or ``None`` when nothing valid is saved."""
        record = self.read_record()
        if record is None:
            return None
        try:
            return User.model_validate(record)
        except ValidationError as exc:
            logger.warning("Discarding malformed session record: %s", exc)
            return None

    def save(self, user: User) -> None:
        self.write_record(user.model_dump(mode="json"))

    def clear(self) -> None:
        data = self._read()
        if self.key not in data:
            return
        del data[self.key]
        self._write(data)
