"""Mock authentication.

Any non-empty email/password pair signs in; the user record is fabricated
from the chosen role.  :class:`AuthSession` is created once per browser
session and handed to the views that need it.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from core.state import SessionStore
from sacco.models import User
from sacco.presets import DEFAULT_DISPLAY_NAME, ROLE_DISPLAY_NAMES

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=100&h=100&fit=crop&crop=face"


def display_name_for(role: str) -> str:
    return ROLE_DISPLAY_NAMES.get(role, DEFAULT_DISPLAY_NAME)


class AuthSession:
    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def init(self) -> Optional[User]:
        """Restore a previously saved user, if any."""
        self.user = self.store.load()
        if self.user is not None:
            logger.info("Restored session for %s (%s)", self.user.email, self.user.role)
        return self.user

    def login(self, email: str, password: str, role: str) -> User:
        if not (email or "").strip() or not password:
            logger.warning("Rejected login with missing credentials")
            raise ValueError("email and password are required")
        user = User(
            id=uuid.uuid4().hex[:9],
            email=email.strip(),
            name=display_name_for(role),
            role=role,
            avatar=DEFAULT_AVATAR,
            created_at=datetime.now(timezone.utc),
        )
        self.user = user
        self.store.save(user)
        logger.info("Signed in %s as %s", user.email, user.role)
        return user

    def logout(self) -> None:
        if self.user is not None:
            logger.info("Signed out %s", self.user.email)
        self.user = None
        self.store.clear()
