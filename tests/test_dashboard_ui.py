from datetime import date, datetime, timezone

import pytest
from streamlit.testing.v1 import AppTest

from core import config
from core.data import DataStore
from core.notifications import NotificationService
from core.settings import SettingsStore
from core.state import SessionStore
from sacco.models import User
from ui.dashboard import dashboard_for, render_admin_dashboard, render_auditor_dashboard, render_member_dashboard
from ui.notifications import SERVICE_KEY
from ui.settings import SETTINGS_KEY


def dashboard_app():
    import streamlit as st
    from ui.dashboard import dashboard_for

    user = st.session_state["user"]
    dashboard_for(user.role)(st.session_state["store"], user)


def _user(role, email="john@example.com", name="John Doe"):
    return User(id="u1", email=email, name=name, role=role, created_at=datetime.now(timezone.utc))


@pytest.mark.parametrize(
    "role, view",
    [
        ("admin", render_admin_dashboard),
        ("approval_officer", render_admin_dashboard),
        ("member", render_member_dashboard),
        ("auditor", render_auditor_dashboard),
        ("treasurer", render_admin_dashboard),
    ],
)
def test_role_routing(role, view):
    assert dashboard_for(role) is view


def _at(role, store=None):
    at = AppTest.from_function(dashboard_app)
    at.session_state["user"] = _user(role)
    at.session_state["store"] = store or DataStore.from_mock()
    return at


def test_admin_dashboard_endorses_membership():
    store = DataStore.from_mock()
    at = _at("admin", store)
    at.run()
    assert not at.exception
    assert at.header[0].value == "Admin Dashboard"
    at.button(key="approve_1").click().run()
    store = at.session_state["store"]
    approval = store.approvals[0]
    assert approval.status == "pending" and approval.level == 2
    assert next(m for m in store.members if m.id == "2").status == "pending"
    at.button(key="approve_1").click().run()
    at.button(key="approve_1").click().run()
    store = at.session_state["store"]
    assert store.approvals[0].status == "approved"
    assert next(m for m in store.members if m.id == "2").status == "active"


def test_reject_uses_the_remark_typed_before_the_click():
    at = _at("admin")
    at.run()
    at.text_input(key="approval_remark_2").input("Missing payslip")
    at.button(key="reject_2").click().run()
    assert not at.exception
    approval = next(a for a in at.session_state["store"].approvals if a.id == "2")
    assert approval.status == "rejected"
    assert approval.rejection_remark == "Missing payslip"


def test_register_member_from_dashboard():
    at = _at("admin")
    at.run()
    for key, value in {
        "reg_first_name": "Esther",
        "reg_last_name": "Nakato",
        "reg_national_id": "CF90012345ABCD",
        "reg_email": "esther@example.com",
        "reg_phone": "+256-701-222333",
        "reg_address": "Plot 4 Kira Road",
        "reg_city": "Kampala",
        "reg_occupation": "Nurse",
        "reg_emergency_name": "Paul Nakato",
        "reg_emergency_phone": "+256-701-999000",
    }.items():
        at.text_input(key=key).input(value)
    at.date_input(key="reg_dob").set_value(date(1990, 5, 17))
    at.selectbox(key="reg_gender").set_value("female")
    at.number_input(key="reg_monthly_income").set_value(1_800_000.0)
    next(b for b in at.button if b.label == "Register Member").click().run()
    assert not at.exception
    store = at.session_state["store"]
    member = store.members[-1]
    assert member.name == "Esther Nakato" and member.status == "pending"
    assert store.approvals[-1].reference_id == member.id


def test_settings_and_notifications_tabs(tmp_path):
    settings = SettingsStore(SessionStore(str(tmp_path / "session.json"), key=config.SETTINGS_KEY))
    service = NotificationService(settings)
    at = _at("admin", DataStore.from_mock(notifier=service))
    at.session_state[SETTINGS_KEY] = settings
    at.session_state[SERVICE_KEY] = service
    at.run()
    assert not at.exception
    at.text_input(key="settings_sacco_name").input("Kira Teachers SACCO")
    next(b for b in at.button if b.label == "Save General Settings").click().run()
    assert not at.exception
    settings = at.session_state[SETTINGS_KEY]
    assert settings.current.general.sacco_name == "Kira Teachers SACCO"
    assert settings.current.modified_by == "John Doe"

    at.button(key="notification_reminders").click().run()
    assert not at.exception
    assert [n.type for n in at.session_state[SERVICE_KEY].queue] == ["in_app"]


def test_member_dashboard_opens_wizard():
    at = _at("member")
    at.run()
    assert not at.exception
    assert at.header[0].value == "Welcome, John Doe"
    at.button(key="open_loan_wizard").click().run()
    assert "loan_wizard" in at.session_state
    assert any(s.value == "Step 1 of 4: Loan Details" for s in at.subheader)


def test_auditor_dashboard_lists_audit_trail():
    store = DataStore.from_mock()
    store.actor = "Admin User"
    store.approve_item("2", "loan")
    at = _at("auditor", store)
    at.run()
    assert not at.exception
    assert at.header[0].value == "Auditor Dashboard"
    assert len(at.dataframe) >= 1
