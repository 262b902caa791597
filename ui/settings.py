"""System settings screen.

One form per settings section; saving a form writes only that section
through :meth:`core.settings.SettingsStore.update`.
"""
import re

import streamlit as st

from core.utils import pretty_label
from sacco.presets import LOAN_TYPES, NOTIFICATION_CHANNELS, NOTIFICATION_TRIGGERS

# session_state key of the SettingsStore
SETTINGS_KEY = "settings"


def _trigger_label(trigger: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", " ", trigger).capitalize()


def _save(settings, section, actor, **changes):
    settings.update(section, actor=actor, **changes)
    st.success(f"{pretty_label(section)} settings saved.")


def _general(settings, actor):
    g = settings.current.general
    with st.form("settings_general_form"):
        c1, c2 = st.columns(2)
        values = {
            "sacco_name": c1.text_input("SACCO Name", value=g.sacco_name, key="settings_sacco_name"),
            "sacco_code": c2.text_input("SACCO Code", value=g.sacco_code, key="settings_sacco_code"),
            "registration_number": c1.text_input(
                "Registration Number", value=g.registration_number, key="settings_registration_number"
            ),
            "phone": c2.text_input("Phone", value=g.phone, key="settings_phone"),
            "email": c1.text_input("Email", value=g.email, key="settings_email"),
            "website": c2.text_input("Website", value=g.website, key="settings_website"),
            "address": st.text_input("Address", value=g.address, key="settings_address"),
            "timezone": c1.text_input("Timezone", value=g.timezone, key="settings_timezone"),
            "currency": c2.text_input("Currency", value=g.currency, key="settings_currency"),
        }
        submitted = st.form_submit_button("Save General Settings")
    if submitted:
        if not values["sacco_name"].strip():
            st.error("SACCO name is required")
            return
        _save(settings, "general", actor, **values)


def _notifications(settings, actor):
    n = settings.current.notifications
    with st.form("settings_notifications_form"):
        changes = {}
        for channel, label in NOTIFICATION_CHANNELS.items():
            cfg = n.channel(channel)
            st.markdown(f"**{label}**")
            enabled = st.checkbox(f"Enable {label}", value=cfg.enabled, key=f"settings_{channel}_enabled")
            on = st.multiselect(
                f"{label} triggers",
                NOTIFICATION_TRIGGERS,
                default=[t for t in NOTIFICATION_TRIGGERS if cfg.triggers.get(t)],
                format_func=_trigger_label,
                key=f"settings_{channel}_triggers",
            )
            changes[channel] = {"enabled": enabled, "triggers": {t: t in on for t in NOTIFICATION_TRIGGERS}}
        submitted = st.form_submit_button("Save Notification Settings")
    if submitted:
        _save(settings, "notifications", actor, **changes)


def _security(settings, actor):
    s = settings.current.security
    p = s.password_policy
    with st.form("settings_security_form"):
        c1, c2 = st.columns(2)
        policy = {
            "min_length": c1.number_input("Minimum Password Length", 6, 64, value=p.min_length, key="settings_pw_min"),
            "password_expiry_days": c2.number_input(
                "Password Expiry (days)", 0, 365, value=p.password_expiry_days, key="settings_pw_expiry"
            ),
            "require_uppercase": c1.checkbox("Require uppercase", value=p.require_uppercase, key="settings_pw_upper"),
            "require_numbers": c2.checkbox("Require numbers", value=p.require_numbers, key="settings_pw_numbers"),
            "require_special_chars": c1.checkbox(
                "Require special characters", value=p.require_special_chars, key="settings_pw_special"
            ),
        }
        values = {
            "session_timeout_minutes": c1.number_input(
                "Session Timeout (minutes)", 5, 1440, value=s.session_timeout_minutes, key="settings_session_timeout"
            ),
            "max_login_attempts": c2.number_input(
                "Max Login Attempts", 1, 20, value=s.max_login_attempts, key="settings_max_attempts"
            ),
            "two_factor_auth": c1.checkbox("Two-factor authentication", value=s.two_factor_auth, key="settings_2fa"),
            "audit_logging": c2.checkbox("Audit logging", value=s.audit_logging, key="settings_audit_logging"),
        }
        submitted = st.form_submit_button("Save Security Settings")
    if submitted:
        _save(settings, "security", actor, password_policy=policy, **values)


def _financial(settings, actor):
    f = settings.current.financial
    with st.form("settings_financial_form"):
        c1, c2 = st.columns(2)
        rates = {
            kind: c1.number_input(
                f"{LOAN_TYPES[kind]['label']} rate (%)", 0.0, 100.0, value=float(rate), step=0.5,
                key=f"settings_rate_{kind}",
            )
            for kind, rate in f.loan_rates.items()
            if kind in LOAN_TYPES
        }
        values = {
            "savings_rate": c2.number_input("Savings Rate (%)", 0.0, 100.0, value=float(f.savings_rate), key="settings_savings_rate"),
            "penalty_rate": c2.number_input("Penalty Rate (%)", 0.0, 100.0, value=float(f.penalty_rate), key="settings_penalty_rate"),
            "membership_fee": c2.number_input("Membership Fee", 0.0, value=float(f.membership_fee), key="settings_membership_fee"),
            "processing_fee": c2.number_input("Processing Fee", 0.0, value=float(f.processing_fee), key="settings_processing_fee"),
            "max_loan_amount": c2.number_input(
                "Maximum Loan Amount", 0.0, value=float(f.max_loan_amount), step=1_000_000.0, key="settings_max_loan"
            ),
            "daily_withdrawal_limit": c2.number_input(
                "Daily Withdrawal Limit", 0.0, value=float(f.daily_withdrawal_limit), step=100_000.0, key="settings_daily_limit"
            ),
        }
        submitted = st.form_submit_button("Save Financial Settings")
    if submitted:
        _save(settings, "financial", actor, loan_rates=rates, **values)


def _approval(settings, actor):
    a = settings.current.approval
    with st.form("settings_approval_form"):
        c1, c2 = st.columns(2)
        values = {
            "auto_approval_limit_loans": c1.number_input(
                "Auto-approval limit, loans", 0.0, value=float(a.auto_approval_limit_loans), step=100_000.0,
                key="settings_auto_loans",
            ),
            "auto_approval_limit_withdrawals": c2.number_input(
                "Auto-approval limit, withdrawals", 0.0, value=float(a.auto_approval_limit_withdrawals), step=100_000.0,
                key="settings_auto_withdrawals",
            ),
            "reminders_enabled": c1.checkbox("Send approval reminders", value=a.reminders_enabled, key="settings_reminders"),
            "first_reminder_hours": c2.number_input(
                "First reminder after (hours)", 1, 720, value=a.first_reminder_hours, key="settings_first_reminder"
            ),
        }
        submitted = st.form_submit_button("Save Approval Settings")
    if submitted:
        _save(settings, "approval", actor, **values)


def _reset(settings):
    settings.reset()
    for key in [k for k in st.session_state if str(k).startswith("settings_")]:
        del st.session_state[key]


def render_settings(settings, actor: str):
    current = settings.current
    if current.last_modified:
        st.caption(f"Last modified {current.last_modified:%d/%m/%Y %H:%M} by {current.modified_by}")
    tabs = st.tabs(["General", "Notifications", "Security", "Financial", "Approvals"])
    with tabs[0]:
        _general(settings, actor)
    with tabs[1]:
        _notifications(settings, actor)
    with tabs[2]:
        _security(settings, actor)
    with tabs[3]:
        _financial(settings, actor)
    with tabs[4]:
        _approval(settings, actor)
    st.button("Reset to Defaults", key="settings_reset", on_click=_reset, args=(settings,))
