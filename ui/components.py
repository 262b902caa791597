from typing import Dict, Iterable, Mapping

import streamlit as st

from core.rules import RuleResult
from core.utils import format_currency


def field_error(errors: Mapping[str, str], name: str):
    """Inline message under a widget when ``name`` failed validation."""
    if name in errors:
        st.error(errors[name])


def show_errors(errors: Mapping[str, str]):
    for message in errors.values():
        st.error(message)


def render_rule_results(results: Iterable[RuleResult]):
    for r in results:
        if r.severity == "critical":
            st.error(f"[{r.code}] {r.message}")
        elif r.severity == "warn":
            st.warning(f"[{r.code}] {r.message}")
        else:
            st.info(f"[{r.code}] {r.message}")


def metric_row(metrics: Dict[str, object]):
    """One ``st.metric`` per entry; floats are shown as currency."""
    cols = st.columns(len(metrics))
    for col, (label, value) in zip(cols, metrics.items()):
        col.metric(label, format_currency(value) if isinstance(value, float) else value)
