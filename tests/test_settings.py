import json

import pytest
from pydantic import ValidationError

from core import config
from core.settings import SettingsStore
from core.state import SessionStore


def _store(tmp_path):
    return SettingsStore(SessionStore(str(tmp_path / "session.json"), key=config.SETTINGS_KEY))


def test_defaults_when_nothing_saved(tmp_path):
    settings = _store(tmp_path).current
    assert settings.general.sacco_name == "SACCO Manager"
    assert settings.notifications.in_app.enabled
    assert not settings.notifications.email.enabled
    assert settings.financial.loan_rates["personal"] == 12.0
    assert settings.modified_by == "System"


def test_update_persists_one_section(tmp_path):
    store = _store(tmp_path)
    store.update("general", actor="Admin User", sacco_name="Kira Teachers SACCO")
    data = json.loads((tmp_path / "session.json").read_text())
    assert data[config.SETTINGS_KEY]["general"]["sacco_name"] == "Kira Teachers SACCO"

    reloaded = _store(tmp_path).current
    assert reloaded.general.sacco_name == "Kira Teachers SACCO"
    assert reloaded.general.currency == "UGX"
    assert reloaded.modified_by == "Admin User"
    assert reloaded.last_modified is not None


def test_nested_update_merges(tmp_path):
    store = _store(tmp_path)
    store.update("notifications", email={"enabled": True, "triggers": {"systemMaintenance": True}})
    email = store.current.notifications.email
    assert email.enabled
    assert email.triggers["systemMaintenance"] and email.triggers["loanApproval"]
    assert email.smtp_port == 587


def test_settings_share_the_session_file(tmp_path):
    user_slot = SessionStore(str(tmp_path / "session.json"))
    user_slot.write_record({"marker": 1})
    store = _store(tmp_path)
    store.update("security", two_factor_auth=True)
    assert user_slot.read_record() == {"marker": 1}
    store.reset()
    assert user_slot.read_record() == {"marker": 1}
    assert SessionStore(str(tmp_path / "session.json"), key=config.SETTINGS_KEY).read_record() is None
    assert not store.current.security.two_factor_auth


def test_unknown_keys_and_bad_values(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(KeyError):
        store.update("branding", logo="x")
    with pytest.raises(KeyError):
        store.update("general", motto="Save together")
    with pytest.raises(ValidationError):
        store.update("security", session_timeout_minutes="soon")
    assert not (tmp_path / "session.json").exists()


def test_malformed_record_falls_back_to_defaults(tmp_path):
    (tmp_path / "session.json").write_text(json.dumps({config.SETTINGS_KEY: {"general": {"sacco_name": None}}}))
    assert _store(tmp_path).current.general.sacco_name == "SACCO Manager"
