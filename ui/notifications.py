import pandas as pd
import streamlit as st

from sacco.presets import NOTIFICATION_CHANNELS, NOTIFICATION_PRIORITIES
from ui.components import metric_row, show_errors

# session_state key of the NotificationService
SERVICE_KEY = "notifications"


def _send_reminders(store, service):
    sent = 0
    for loan in store.loans:
        if loan.status != "disbursed":
            continue
        member = next((m for m in store.members if m.id == loan.member_id), None)
        if member is not None:
            sent += len(service.payment_reminder(loan, member))
    return sent


def _render_queue(service):
    if not service.queue:
        st.caption("No notifications sent in this session.")
        return
    rows = [
        {
            "Channel": NOTIFICATION_CHANNELS[n.type],
            "Recipient": n.recipient,
            "Subject": n.subject or "",
            "Priority": n.priority,
            "Status": n.status,
            "Retries": f"{n.retry_count}/{n.max_retries}",
            "Failure": n.failure_reason or "",
        }
        for n in reversed(service.queue)
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")
    for n in service.queue:
        if n.status != "failed":
            continue
        with st.container(border=True):
            st.caption(f"{NOTIFICATION_CHANNELS[n.type]} to {n.recipient}: {n.failure_reason}")
            c1, c2 = st.columns(2)
            if c1.button("Retry", key=f"notification_retry_{n.id}"):
                try:
                    service.retry(n.id)
                except ValueError as exc:
                    st.error(str(exc))
                else:
                    st.rerun()
            if c2.button("Cancel", key=f"notification_cancel_{n.id}"):
                service.cancel(n.id)
                st.rerun()


def _render_test_message(service):
    with st.form("notification_test_form"):
        c1, c2 = st.columns(2)
        channel = c1.selectbox(
            "Channel", list(NOTIFICATION_CHANNELS), format_func=NOTIFICATION_CHANNELS.get, key="notification_test_channel"
        )
        priority = c2.selectbox("Priority", NOTIFICATION_PRIORITIES, index=1, key="notification_test_priority")
        recipient = st.text_input("Recipient *", key="notification_test_recipient")
        subject = st.text_input("Subject", key="notification_test_subject")
        content = st.text_area("Message *", key="notification_test_content")
        submitted = st.form_submit_button("Send")
    if not submitted:
        return
    errors = {}
    if not recipient.strip():
        errors["recipient"] = "Recipient is required"
    if not content.strip():
        errors["content"] = "Message is required"
    if errors:
        show_errors(errors)
        return
    result = service.send(channel, recipient.strip(), content.strip(), subject=subject.strip() or None, priority=priority)
    if result.status == "sent":
        st.success(f"Sent to {result.recipient}.")
    else:
        st.error(result.failure_reason)


def render_notification_center(store, service):
    stats = service.stats()
    metric_row(
        {
            "Total": stats["total"],
            "Sent": stats["sent"],
            "Failed": stats["failed"],
            "Success Rate": f"{stats['success_rate']:.1f}%",
        }
    )
    st.caption(
        "Active channels: "
        + (", ".join(NOTIFICATION_CHANNELS[c] for c in service.enabled_channels()) or "none")
    )
    if st.button("Send Payment Reminders", key="notification_reminders"):
        st.success(f"Queued {_send_reminders(store, service)} reminders for disbursed loans.")
    tabs = st.tabs(["Queue", "Delivery Log", "Send Message"])
    with tabs[0]:
        _render_queue(service)
    with tabs[1]:
        if service.logs:
            st.dataframe(
                pd.DataFrame([log.model_dump(exclude={"response"}) for log in reversed(service.logs)]),
                hide_index=True,
                width="stretch",
            )
        else:
            st.caption("Nothing delivered yet.")
    with tabs[2]:
        _render_test_message(service)
