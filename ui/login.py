import time

import streamlit as st

from core import config
from core.auth import AuthSession
from sacco.presets import ROLES


def render_login(auth: AuthSession):
    """Sign-in form. Any non-empty email and password are accepted."""
    st.title("SACCO Manager")
    st.caption("Sign in to your account")
    with st.form("login_form"):
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        role = st.selectbox("Role", list(ROLES), format_func=lambda r: ROLES[r], key="login_role")
        submitted = st.form_submit_button("Sign In")
    if not submitted:
        return None
    with st.spinner("Signing in..."):
        time.sleep(config.LOGIN_DELAY_SECONDS)
        try:
            user = auth.login(email, password, role)
        except ValueError:
            st.error("Please enter your email and password.")
            return None
    st.rerun()
    return user
