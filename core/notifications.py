"""Notification center: queue, delivery log and per-channel senders.

Messages are rendered from :data:`sacco.presets.NOTIFICATION_TEMPLATES` and
handed to one sender per channel.  The senders shipped here only simulate a
provider round trip.  Each event is sent on every channel whose settings
enable both the channel and the event's trigger.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional

from core.utils import format_currency
from sacco.models import Loan, Member, NotificationLog, QueuedNotification
from sacco.presets import NOTIFICATION_CHANNELS, NOTIFICATION_MAX_RETRIES, NOTIFICATION_TEMPLATES

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

Sender = Callable[[QueuedNotification], Dict[str, str]]


class DeliveryError(Exception):
    """Raised by a sender when the provider refuses a message."""


def render_template(template: str, variables: Mapping[str, object]) -> str:
    """Fill ``{{name}}`` placeholders; unknown names are left as written."""

    def _sub(match):
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    return _PLACEHOLDER.sub(_sub, template).strip()


def _simulated(provider: str) -> Sender:
    def send(notification: QueuedNotification) -> Dict[str, str]:
        logger.debug("Simulated %s delivery to %s", provider, notification.recipient)
        return {
            "message_id": f"{notification.type}_{uuid.uuid4().hex[:12]}",
            "status": "sent",
            "provider": provider,
        }

    return send


def default_senders() -> Dict[str, Sender]:
    return {
        "email": _simulated("smtp"),
        "whatsapp": _simulated("whatsapp_business"),
        "sms": _simulated("sms_gateway"),
        "in_app": _simulated("in_app"),
    }


def _recipient(member: Member, channel: str) -> str:
    if channel == "email":
        return member.email
    if channel in ("whatsapp", "sms"):
        return member.phone
    return member.id


def _body(template: Mapping[str, str], channel: str) -> str:
    # email text doubles as the in-app body, WhatsApp text as the SMS body
    return template["email"] if channel in ("email", "in_app") else template["whatsapp"]


class NotificationService:
    def __init__(self, settings, senders: Optional[Dict[str, Sender]] = None) -> None:
        self.settings = settings
        self.senders = {**default_senders(), **(senders or {})}
        self.queue: List[QueuedNotification] = []
        self.logs: List[NotificationLog] = []

    def _channel_settings(self, channel: str):
        return self.settings.current.notifications.channel(channel)

    def enabled_channels(self) -> List[str]:
        return [c for c in NOTIFICATION_CHANNELS if self._channel_settings(c).enabled]

    def channels_for(self, trigger: str) -> List[str]:
        """Channels that are switched on and subscribed to ``trigger``."""
        return [c for c in self.enabled_channels() if self._channel_settings(c).triggers.get(trigger, False)]

    def _index(self, notification_id: str) -> int:
        for idx, item in enumerate(self.queue):
            if item.id == notification_id:
                return idx
        raise KeyError(f"notification {notification_id!r} not found")

    def _log(self, notification: QueuedNotification, status: str, response=None, error: Optional[str] = None) -> None:
        self.logs.append(
            NotificationLog(
                id=uuid.uuid4().hex[:9],
                notification_id=notification.id,
                type=notification.type,
                recipient=notification.recipient,
                status=status,
                timestamp=datetime.now(timezone.utc),
                response=response or {},
                error_message=error,
            )
        )

    def _deliver(self, idx: int) -> QueuedNotification:
        notification = self.queue[idx]
        label = NOTIFICATION_CHANNELS[notification.type]
        error = None
        response = None
        if not self._channel_settings(notification.type).enabled:
            error = f"{label} notifications are disabled"
        else:
            try:
                response = self.senders[notification.type](notification)
            except DeliveryError as exc:
                error = str(exc)

        if error is not None:
            logger.warning("%s notification %s to %s failed: %s", label, notification.id, notification.recipient, error)
            self.queue[idx] = notification.model_copy(update={"status": "failed", "failure_reason": error})
            self._log(self.queue[idx], "failed", error=error)
        else:
            logger.info("%s notification %s sent to %s", label, notification.id, notification.recipient)
            self.queue[idx] = notification.model_copy(
                update={"status": "sent", "sent_at": datetime.now(timezone.utc), "failure_reason": None}
            )
            self._log(self.queue[idx], "sent", response=response)
        return self.queue[idx]

    def send(
        self,
        channel: str,
        recipient: str,
        content: str,
        subject: Optional[str] = None,
        priority: str = "normal",
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> QueuedNotification:
        """Queue one message and try to deliver it right away."""
        if channel not in NOTIFICATION_CHANNELS:
            raise ValueError(f"unknown notification channel {channel!r}")
        self.queue.append(
            QueuedNotification(
                id=uuid.uuid4().hex[:9],
                type=channel,
                recipient=recipient,
                subject=subject,
                content=content,
                priority=priority,
                max_retries=NOTIFICATION_MAX_RETRIES,
                created_at=datetime.now(timezone.utc),
                related_id=related_id,
                related_type=related_type,
            )
        )
        return self._deliver(len(self.queue) - 1)

    def notify(self, trigger: str, member: Member, variables=None, priority="normal", related_id=None, related_type=None):
        """Send the ``trigger`` template to ``member`` on every subscribed channel."""
        template = NOTIFICATION_TEMPLATES[trigger]
        values = {
            "saccoName": self.settings.current.general.sacco_name,
            "memberName": member.name,
            "memberNumber": member.member_number,
            **(variables or {}),
        }
        sent = []
        for channel in self.channels_for(trigger):
            recipient = _recipient(member, channel)
            if not recipient:
                logger.warning("Member %s has no %s address; %s skipped", member.member_number, channel, trigger)
                continue
            sent.append(
                self.send(
                    channel,
                    recipient,
                    render_template(_body(template, channel), values),
                    subject=render_template(template["subject"], values),
                    priority=priority,
                    related_id=related_id,
                    related_type=related_type,
                )
            )
        return sent

    # -- data store hooks ---------------------------------------------------

    def member_registered(self, member: Member):
        return self.notify("memberRegistration", member, related_id=member.id, related_type="member")

    def loan_approved(self, loan: Loan, member: Member):
        return self.notify(
            "loanApproval",
            member,
            {"amount": format_currency(loan.amount)},
            priority="high",
            related_id=loan.id,
            related_type="loan",
        )

    def loan_rejected(self, loan: Loan, member: Member, remark: str = ""):
        return self.notify(
            "loanRejection",
            member,
            {"amount": format_currency(loan.amount), "remark": remark},
            priority="high",
            related_id=loan.id,
            related_type="loan",
        )

    def payment_reminder(self, loan: Loan, member: Member):
        due = loan.next_payment_date.strftime("%d/%m/%Y") if loan.next_payment_date else "the agreed date"
        return self.notify(
            "paymentReminder",
            member,
            {"amount": format_currency(loan.monthly_payment), "dueDate": due},
            related_id=loan.id,
            related_type="loan",
        )

    # -- queue management ---------------------------------------------------

    def retry(self, notification_id: str) -> QueuedNotification:
        idx = self._index(notification_id)
        notification = self.queue[idx]
        if notification.status != "failed":
            raise ValueError(f"only failed notifications can be retried, {notification_id!r} is {notification.status}")
        if notification.retry_count >= notification.max_retries:
            raise ValueError(f"notification {notification_id!r} reached its retry limit")
        self.queue[idx] = notification.model_copy(
            update={"status": "pending", "retry_count": notification.retry_count + 1}
        )
        return self._deliver(idx)

    def cancel(self, notification_id: str) -> QueuedNotification:
        idx = self._index(notification_id)
        if self.queue[idx].status == "sent":
            raise ValueError(f"notification {notification_id!r} was already sent")
        self.queue[idx] = self.queue[idx].model_copy(update={"status": "cancelled"})
        logger.info("Notification %s cancelled", notification_id)
        return self.queue[idx]

    def delete(self, notification_id: str) -> None:
        del self.queue[self._index(notification_id)]

    def stats(self) -> Dict[str, object]:
        counts = {status: 0 for status in ("pending", "sent", "failed", "cancelled")}
        by_channel = {channel: 0 for channel in NOTIFICATION_CHANNELS}
        for item in self.queue:
            counts[item.status] += 1
            by_channel[item.type] += 1
        finished = counts["sent"] + counts["failed"]
        return {
            "total": len(self.queue),
            **counts,
            "by_channel": by_channel,
            "success_rate": round(100.0 * counts["sent"] / finished, 1) if finished else 0.0,
        }
