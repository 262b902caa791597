from streamlit.testing.v1 import AppTest

from core.utils import format_currency
from core.wizard import LoanApplicationForm, LoanWizard
from sacco.calculators import monthly_payment


def wizard_app():
    import streamlit as st
    from ui.loan_wizard import WIZARD_KEY, render_loan_wizard

    render_loan_wizard(st.session_state[WIZARD_KEY])


def _at(wizard):
    at = AppTest.from_function(wizard_app)
    at.session_state["loan_wizard"] = wizard
    return at


def test_next_on_empty_step_shows_errors():
    wizard = LoanWizard(on_submit=lambda values: None)
    at = _at(wizard)
    at.run()
    assert at.subheader[0].value == "Step 1 of 4: Loan Details"
    at.button(key="wizard_nav_next").click().run()
    messages = {e.value for e in at.error}
    assert "Loan type is required" in messages
    assert "Loan amount is required" in messages
    assert at.session_state["loan_wizard"].step == 1


def test_calculator_caption_reflects_form():
    form = LoanApplicationForm({"loanType": "personal", "amount": 5_000_000.0, "purpose": "Shop", "term": 24})
    at = _at(LoanWizard(on_submit=lambda values: None, form=form))
    at.run()
    expected = format_currency(monthly_payment(5_000_000, 12, 24))
    caption = next(c.value for c in at.caption if c.value.startswith("Monthly Payment"))
    assert caption == f"Monthly Payment: {expected}"


def test_valid_step_advances_to_financial_info():
    form = LoanApplicationForm({"loanType": "business", "amount": 2_000_000.0, "purpose": "Stock", "term": 12})
    wizard = LoanWizard(on_submit=lambda values: None, form=form)
    at = _at(wizard)
    at.run()
    at.button(key="wizard_nav_next").click().run()
    assert at.session_state["loan_wizard"].step == 2
    assert at.subheader[0].value == "Step 2 of 4: Financial Information"
    assert not at.error


def test_oversized_amount_shows_info_hint():
    form = LoanApplicationForm({"loanType": "emergency", "amount": 9_000_000.0})
    at = _at(LoanWizard(on_submit=lambda values: None, form=form))
    at.run()
    assert any("AMOUNT_EXCEEDS_MAX" in i.value for i in at.info)
