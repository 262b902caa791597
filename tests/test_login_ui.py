from streamlit.testing.v1 import AppTest

from core import config


def login_app():
    import streamlit as st
    from core.auth import AuthSession
    from core.state import SessionStore
    from ui.login import render_login

    if "auth" not in st.session_state:
        st.session_state["auth"] = AuthSession(SessionStore(st.session_state["session_file"]))
    auth = st.session_state["auth"]
    if auth.is_authenticated:
        st.write(f"Signed in as {auth.user.name}")
    else:
        render_login(auth)


def test_login_with_credentials(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOGIN_DELAY_SECONDS", 0)
    at = AppTest.from_function(login_app)
    at.session_state["session_file"] = str(tmp_path / "session.json")
    at.run()
    at.text_input(key="login_email").input("admin@sacco.example")
    at.text_input(key="login_password").input("secret")
    at.button[0].click().run()
    assert at.session_state["auth"].user.name == "Admin User"
    assert (tmp_path / "session.json").exists()


def test_login_without_password_shows_error(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOGIN_DELAY_SECONDS", 0)
    at = AppTest.from_function(login_app)
    at.session_state["session_file"] = str(tmp_path / "session.json")
    at.run()
    at.text_input(key="login_email").input("admin@sacco.example")
    at.button[0].click().run()
    assert at.error[0].value == "Please enter your email and password."
    assert not at.session_state["auth"].is_authenticated
