import streamlit as st

from core.auth import AuthSession
from core.version import __version__
from sacco.presets import ROLES
from ui.loan_wizard import ERROR_KEY, FLASH_KEY, WIZARD_KEY


def _logout(auth: AuthSession):
    auth.logout()
    for key in (WIZARD_KEY, FLASH_KEY, ERROR_KEY):
        st.session_state.pop(key, None)


def render_topbar(auth: AuthSession, title: str = "SACCO Manager"):
    """App title, signed-in user and the logout button."""
    st.markdown(
        """
        <style>
        .sacco-topbar {position:sticky; top:0; background-color:white; z-index:100; padding:4px 8px; border-bottom:1px solid #ddd;}
        .sacco-topbar div[data-testid="stHorizontalBlock"] {align-items:center;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    user = auth.user
    with st.container():
        st.markdown('<div class="sacco-topbar">', unsafe_allow_html=True)
        left, center, right = st.columns([1, 2, 1])
        with left:
            st.markdown(f"**{title} v{__version__}**")
        with center:
            if user is not None:
                if user.avatar:
                    st.image(user.avatar, width=32)
                st.markdown(f"{user.name} · {ROLES.get(user.role, user.role.replace('_', ' ').title())}")
        with right:
            st.button("Logout", key="logout", on_click=_logout, args=(auth,))
        st.markdown("</div>", unsafe_allow_html=True)
