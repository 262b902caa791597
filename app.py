import streamlit as st

from core import config
from core.auth import AuthSession
from core.config import configure_logging
from core.data import DataStore
from core.notifications import NotificationService
from core.settings import SettingsStore
from core.state import SessionStore
from ui.dashboard import dashboard_for
from ui.login import render_login
from ui.notifications import SERVICE_KEY
from ui.settings import SETTINGS_KEY
from ui.topbar import render_topbar


def init_state():
    ss = st.session_state
    if "auth" not in ss:
        auth = AuthSession(SessionStore(ss.get("session_file")))
        auth.init()
        ss["auth"] = auth
    if SETTINGS_KEY not in ss:
        ss[SETTINGS_KEY] = SettingsStore(SessionStore(ss.get("session_file"), key=config.SETTINGS_KEY))
    if SERVICE_KEY not in ss:
        ss[SERVICE_KEY] = NotificationService(ss[SETTINGS_KEY])
    if "store" not in ss:
        ss["store"] = DataStore.from_mock(notifier=ss[SERVICE_KEY])


def main():
    configure_logging()
    st.set_page_config(page_title="SACCO Manager", layout="wide")
    init_state()
    auth = st.session_state["auth"]
    if not auth.is_authenticated:
        render_login(auth)
        return
    store = st.session_state["store"]
    store.actor = auth.user.name
    render_topbar(auth, st.session_state[SETTINGS_KEY].current.general.sacco_name)
    dashboard_for(auth.user.role)(store, auth.user)


if __name__ == "__main__":
    main()
