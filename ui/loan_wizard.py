"""Streamlit rendering of the four-step loan application wizard.

The :class:`~core.wizard.LoanWizard` lives in ``st.session_state`` under
``WIZARD_KEY``.  Every widget writes through ``LoanWizard.set_field`` from
its ``on_change`` callback, so the wizard's form is the only copy of the
application that survives reruns and step changes.
"""
from __future__ import annotations

import logging

import streamlit as st
from pydantic import ValidationError

from core.rules import evaluate_loan_rules
from core.utils import format_currency
from core.wizard import (
    FIELDS_BY_NAME,
    LOAN_FIELDS,
    STEP_TITLES,
    TOTAL_STEPS,
    FieldKind,
    LoanWizard,
    SubmissionError,
)
from sacco.models import FileReference, LoanApplicationRequest
from sacco.presets import (
    ACCEPTED_DOCUMENT_TYPES,
    COLLATERAL_TYPES,
    LOAN_TYPES,
    RELATIONSHIPS,
    REPAYMENT_SOURCES,
    TERMS_AND_CONDITIONS,
    TERM_OPTIONS,
)
from ui.components import field_error, render_rule_results
from ui.documents import render_document_checklist

logger = logging.getLogger(__name__)

WIZARD_KEY = "loan_wizard"
FLASH_KEY = "loan_wizard_flash"
ERROR_KEY = "loan_wizard_error"
_WIDGET_PREFIX = "loan_field_"

_OPTION_LABELS = {
    "loanType": {k: f"{v['label']} ({v['rate_pct']:g}%, max {format_currency(v['max_amount'])})" for k, v in LOAN_TYPES.items()},
    "term": {t: f"{t} months" for t in TERM_OPTIONS},
    "repaymentMethod": {"monthly": "Monthly"},
    "repaymentSource": REPAYMENT_SOURCES,
    "collateralType": COLLATERAL_TYPES,
    "guarantor1Relationship": RELATIONSHIPS,
    "guarantor2Relationship": RELATIONSHIPS,
}

_GROUP_HEADINGS = {
    "guarantor1": "First Guarantor (Required)",
    "guarantor2": "Second Guarantor (Optional)",
}


def _widget_key(name: str) -> str:
    return f"{_WIDGET_PREFIX}{name}"


def _clear_widgets():
    for key in [k for k in st.session_state.keys() if str(k).startswith(_WIDGET_PREFIX)]:
        del st.session_state[key]


def application_handler(store, member):
    """Submission callback filing the wizard payload with ``store``."""

    def _submit(values):
        try:
            request = LoanApplicationRequest.from_form(values)
        except ValidationError as exc:
            raise SubmissionError(f"Application could not be filed: {exc.error_count()} invalid field(s)") from exc
        store.submit_loan_application(request, member)

    return _submit


def open_loan_wizard(store, member) -> LoanWizard:
    """Start a fresh application, dropping any stale widget values."""
    _clear_widgets()
    wizard = LoanWizard(on_submit=application_handler(store, member), on_cancel=_close)
    st.session_state[WIZARD_KEY] = wizard
    logger.info("Opened loan application for member %s", member.member_number)
    st.session_state.pop(FLASH_KEY, None)
    st.session_state.pop(ERROR_KEY, None)
    return wizard


def _close():
    st.session_state.pop(WIZARD_KEY, None)
    st.session_state.pop(ERROR_KEY, None)
    _clear_widgets()


def _sync(wizard: LoanWizard, name: str):
    wizard.set_field(name, st.session_state[_widget_key(name)])


def _sync_file(wizard: LoanWizard, name: str):
    upload = st.session_state[_widget_key(name)]
    ref = None
    if upload is not None:
        ref = FileReference(name=upload.name, mime_type=upload.type or "", size=upload.size)
    wizard.set_field(name, ref)


def _widget_value(spec, value):
    """Form value in the shape the widget accepts; blanks become ``None``."""
    if spec.kind is FieldKind.CHOICE:
        return value if value in spec.options else None
    if spec.kind is FieldKind.NUMBER:
        return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None
    if spec.kind is FieldKind.BOOLEAN:
        return value is True
    return "" if value is None else str(value)


def _render_field(wizard: LoanWizard, name: str):
    spec = FIELDS_BY_NAME[name]
    key = _widget_key(name)
    label = f"{spec.label} *" if spec.required else spec.label
    args = (wizard, name)
    if spec.kind is FieldKind.FILE:
        st.file_uploader(label, type=ACCEPTED_DOCUMENT_TYPES, key=key, on_change=_sync_file, args=args)
        current = wizard.form.get(name)
        if current is not None:
            st.caption(f"Attached: {current.name}")
        return
    st.session_state.setdefault(key, _widget_value(spec, wizard.form.get(name)))
    if spec.kind is FieldKind.CHOICE:
        labels = _OPTION_LABELS.get(name, {})
        st.selectbox(
            label,
            list(spec.options),
            index=None,
            format_func=lambda o: labels.get(o, str(o)),
            placeholder="Select...",
            key=key,
            on_change=_sync,
            args=args,
        )
    elif spec.kind is FieldKind.NUMBER:
        step = 0.5 if name == "preferredRate" else 1000.0
        st.number_input(label, min_value=0.0, value=None, step=step, key=key, on_change=_sync, args=args)
    elif spec.kind is FieldKind.BOOLEAN:
        st.checkbox(label, key=key, on_change=_sync, args=args)
    elif name == "additionalInfo" or name == "purpose":
        st.text_area(label, key=key, on_change=_sync, args=args)
    else:
        st.text_input(label, key=key, on_change=_sync, args=args)
    field_error(wizard.errors, name)


def _render_summary(wizard: LoanWizard):
    s = wizard.summary()
    st.markdown("**Loan Calculator**")
    if wizard.step == 1:
        st.caption(f"Interest Rate: {s.rate_pct:g}% per annum")
        st.caption(f"Monthly Payment: {format_currency(s.monthly_payment)}")
        st.caption(f"Total Repayment: {format_currency(s.total_repayment)}")
        st.caption(f"Total Interest: {format_currency(s.total_interest)}")
    else:
        st.caption(f"Net Monthly Income: {format_currency(s.net_income)}")
        st.caption(f"Debt-to-Income: {s.dti_pct}%")
        st.caption(f"Affordability: {s.affordability}")
    render_rule_results(evaluate_loan_rules(wizard.form.values))


def _on_next(wizard: LoanWizard):
    wizard.next()


def _on_submit(wizard: LoanWizard):
    result = wizard.submit()
    if result.ok:
        _close()
        st.session_state[FLASH_KEY] = "Loan application submitted. You will be notified once it is reviewed."
    elif result.status == "failed":
        st.session_state[ERROR_KEY] = result.message
    else:
        st.session_state.pop(ERROR_KEY, None)


def render_loan_wizard(wizard: LoanWizard):
    st.subheader(f"Step {wizard.step} of {TOTAL_STEPS}: {STEP_TITLES[wizard.step]}")
    st.progress(wizard.step / TOTAL_STEPS)

    heading = None
    for spec in LOAN_FIELDS:
        if spec.step != wizard.step:
            continue
        group = spec.name[:10] if spec.name.startswith("guarantor") else None
        if group and group != heading:
            st.markdown(f"**{_GROUP_HEADINGS[group]}**")
            heading = group
        if spec.name == "agreeToTerms":
            render_document_checklist(wizard.form.values)
            st.markdown("**Terms and Conditions**")
            for line in TERMS_AND_CONDITIONS:
                st.markdown(f"- {line}")
        _render_field(wizard, spec.name)

    if wizard.step <= 2:
        _render_summary(wizard)

    if wizard.is_last and st.session_state.get(ERROR_KEY):
        st.error(st.session_state[ERROR_KEY])

    c1, c2, c3 = st.columns(3)
    c1.button("Previous", key="wizard_nav_previous", disabled=wizard.is_first, on_click=wizard.previous)
    c2.button("Cancel", key="wizard_nav_cancel", on_click=wizard.cancel)
    if wizard.is_last:
        c3.button("Submit Application", key="wizard_nav_submit", type="primary", on_click=_on_submit, args=(wizard,))
    else:
        c3.button("Next", key="wizard_nav_next", type="primary", on_click=_on_next, args=(wizard,))
