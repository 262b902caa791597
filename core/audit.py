"""Simple audit trail utilities."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List


@dataclass
class AuditEntry:
    user: str
    action: str
    target: str
    details: str
    timestamp: datetime


class AuditLog:
    """In-memory audit trail of data store changes."""

    def __init__(self) -> None:
        self.entries: List[AuditEntry] = []

    def record(self, user: str, action: str, target: str, details: str = "") -> None:
        """Record an action on ``target`` (e.g. ``"loan:2"``) by ``user``."""
        self.entries.append(
            AuditEntry(
                user=user,
                action=action,
                target=target,
                details=details,
                timestamp=datetime.now(timezone.utc),
            )
        )

    def as_dict(self) -> List[dict]:
        """Return log entries as dictionaries, newest first, for display."""
        return [
            {
                "user": e.user,
                "action": e.action,
                "target": e.target,
                "details": e.details,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in reversed(self.entries)
        ]
