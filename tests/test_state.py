import json

import pytest

from core import config
from core.auth import AuthSession, display_name_for
from core.state import SessionStore


def test_login_persists_user_under_fixed_key(tmp_path):
    file = tmp_path / "session.json"
    auth = AuthSession(SessionStore(str(file)))
    user = auth.login("admin@sacco.example", "secret", "admin")
    assert auth.is_authenticated
    assert user.name == "Admin User"
    assert user.role == "admin"
    data = json.loads(file.read_text())
    assert data[config.SESSION_KEY]["email"] == "admin@sacco.example"
    assert data[config.SESSION_KEY]["id"] == user.id


@pytest.mark.parametrize(
    "role, name",
    [("admin", "Admin User"), ("member", "John Doe"), ("auditor", "Jane Smith"), ("approval_officer", "Sarah Johnson")],
)
def test_display_names(role, name):
    assert display_name_for(role) == name


@pytest.mark.parametrize("email, password", [("", "x"), ("   ", "x"), ("a@b.c", "")])
def test_login_rejects_empty_credentials(tmp_path, email, password):
    file = tmp_path / "session.json"
    auth = AuthSession(SessionStore(str(file)))
    with pytest.raises(ValueError):
        auth.login(email, password, "member")
    assert not auth.is_authenticated
    assert not file.exists()


def test_init_restores_saved_session(tmp_path):
    path = str(tmp_path / "session.json")
    first = AuthSession(SessionStore(path))
    saved = first.login("john@example.com", "pw", "member")

    second = AuthSession(SessionStore(path))
    assert not second.is_authenticated
    restored = second.init()
    assert restored == saved
    assert second.user.name == "John Doe"


def test_logout_clears_only_the_session_key(tmp_path):
    file = tmp_path / "session.json"
    file.write_text(json.dumps({"theme": "dark"}))
    auth = AuthSession(SessionStore(str(file)))
    auth.login("jane@example.com", "pw", "auditor")
    auth.logout()
    assert not auth.is_authenticated
    assert json.loads(file.read_text()) == {"theme": "dark"}
    assert AuthSession(SessionStore(str(file))).init() is None


def test_unreadable_or_malformed_session_is_ignored(tmp_path):
    file = tmp_path / "session.json"
    file.write_text("{not json")
    assert SessionStore(str(file)).load() is None

    file.write_text(json.dumps({config.SESSION_KEY: {"email": "x@y.z"}}))
    assert SessionStore(str(file)).load() is None


def test_store_defaults_come_from_config(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "SESSION_FILE", str(tmp_path / "other.json"))
    store = SessionStore()
    assert store.path == str(tmp_path / "other.json")
    assert store.key == "sacco_user"


def test_configure_logging_sets_level():
    import logging

    config.configure_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    config.configure_logging("not-a-level")
    assert logging.getLogger().level == logging.INFO


def test_records_under_other_keys_are_independent(tmp_path):
    file = str(tmp_path / "session.json")
    users = SessionStore(file)
    prefs = SessionStore(file, key="prefs")
    assert prefs.read_record() is None
    prefs.write_record({"theme": "dark"})
    AuthSession(users).login("admin@sacco.example", "secret", "admin")
    assert prefs.read_record() == {"theme": "dark"}
    users.clear()
    assert prefs.read_record() == {"theme": "dark"}
    assert users.load() is None
