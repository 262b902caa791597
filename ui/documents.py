"""UI helpers for the loan documents checklist."""
from __future__ import annotations
import re
import streamlit as st
from core.checklist import build_document_checklist, missing_documents


def _slug(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")


def render_document_checklist(values: dict):
    """Tick off checklist documents that already have a file attached."""
    docs = build_document_checklist(values.get("repaymentSource"))
    with st.expander("Documentation Checklist", expanded=True):
        for label, field in docs:
            attached = values.get(field) is not None
            st.checkbox(label, value=attached, disabled=True, key=f"doc_{_slug(label)}_{int(attached)}")
        missing = missing_documents(values)
        if missing:
            st.caption("Not attached yet: " + ", ".join(missing))
    return [{"label": label, "checked": values.get(field) is not None} for label, field in docs]
