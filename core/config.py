"""Runtime settings for the SACCO manager.

Values come from environment variables (optionally loaded from a ``.env``
file in the working directory):

``SACCO_SESSION_FILE``
    JSON file holding the signed-in user and the system settings between
    app restarts.
``SACCO_LOGIN_DELAY``
    Seconds the login screen stays busy to imitate a server round trip.
``SACCO_LOG_LEVEL``
    Root log level name, ``INFO`` by default.
``SACCO_CURRENCY``
    Currency code printed next to amounts, ``UGX`` by default.
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from sacco import presets

load_dotenv()

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

SESSION_FILE = os.getenv("SACCO_SESSION_FILE", "sacco_session.json")
# Key of the serialized user record inside ``SESSION_FILE``.
SESSION_KEY = "sacco_user"
# Key of the saved system settings inside the same file.
SETTINGS_KEY = "sacco_settings"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


LOGIN_DELAY_SECONDS = _float_env("SACCO_LOGIN_DELAY", 1.0)
LOG_LEVEL = os.getenv("SACCO_LOG_LEVEL", "INFO").upper()
CURRENCY = os.getenv("SACCO_CURRENCY", presets.CURRENCY)


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; later calls only adjust the level."""

    resolved = logging.getLevelName((level or LOG_LEVEL).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    root.setLevel(resolved)
