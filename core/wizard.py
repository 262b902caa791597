"""Loan application wizard: form state, per-step validation and step control.

The wizard walks an applicant through four fixed steps::

    1 loan details -> 2 financial info -> 3 guarantors -> 4 documents/terms

Moving forward requires the current step to validate; moving back never does.
Derived figures (monthly payment, net income, debt-to-income ratio) are read
straight from the form values via :func:`sacco.calculators.summarize_loan` and
are never stored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sacco.calculators import LoanSummary, summarize_loan
from sacco.presets import COLLATERAL_TYPES, LOAN_TYPES, RELATIONSHIPS, REPAYMENT_SOURCES, TERM_OPTIONS

logger = logging.getLogger(__name__)

TOTAL_STEPS = 4

STEP_TITLES = {
    1: "Loan Details",
    2: "Financial Information",
    3: "Guarantor Information",
    4: "Documents & Terms",
}


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"
    CHOICE = "choice"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: FieldKind
    group: str
    step: int
    required: bool = False
    message: str = ""
    options: Tuple[Any, ...] = ()
    default: Any = ""


def _choice(name, label, group, step, options, **kw):
    return FieldSpec(name, label, FieldKind.CHOICE, group, step, options=tuple(options), **kw)


LOAN_FIELDS: Tuple[FieldSpec, ...] = (
    _choice("loanType", "Loan Type", "loan_details", 1, LOAN_TYPES, required=True,
            message="Loan type is required"),
    FieldSpec("amount", "Loan Amount (UGX)", FieldKind.NUMBER, "loan_details", 1, required=True,
              message="Loan amount is required"),
    FieldSpec("purpose", "Loan Purpose", FieldKind.TEXT, "loan_details", 1, required=True,
              message="Loan purpose is required"),
    _choice("term", "Loan Term (Months)", "loan_details", 1, TERM_OPTIONS, required=True,
            message="Loan term is required"),
    FieldSpec("preferredRate", "Preferred Rate %", FieldKind.NUMBER, "loan_details", 1),
    _choice("repaymentMethod", "Repayment Method", "financial_info", 2, ("monthly",), default="monthly"),
    _choice("repaymentSource", "Repayment Source", "financial_info", 2, REPAYMENT_SOURCES, required=True,
            message="Repayment source is required"),
    _choice("collateralType", "Collateral Type", "financial_info", 2, COLLATERAL_TYPES),
    FieldSpec("collateralValue", "Collateral Value (UGX)", FieldKind.NUMBER, "financial_info", 2),
    FieldSpec("monthlyIncome", "Monthly Income (UGX)", FieldKind.NUMBER, "financial_info", 2, required=True,
              message="Monthly income is required"),
    FieldSpec("monthlyExpenses", "Monthly Expenses (UGX)", FieldKind.NUMBER, "financial_info", 2, required=True,
              message="Monthly expenses is required"),
    FieldSpec("otherLoans", "Other Loans (UGX)", FieldKind.NUMBER, "financial_info", 2),
    FieldSpec("guarantor1Name", "Full Name", FieldKind.TEXT, "guarantor_info", 3, required=True,
              message="First guarantor name is required"),
    FieldSpec("guarantor1Phone", "Phone Number", FieldKind.TEXT, "guarantor_info", 3, required=True,
              message="First guarantor phone is required"),
    _choice("guarantor1Relationship", "Relationship", "guarantor_info", 3, RELATIONSHIPS),
    FieldSpec("guarantor1MemberNumber", "Member Number", FieldKind.TEXT, "guarantor_info", 3),
    FieldSpec("guarantor2Name", "Full Name", FieldKind.TEXT, "guarantor_info", 3),
    FieldSpec("guarantor2Phone", "Phone Number", FieldKind.TEXT, "guarantor_info", 3),
    _choice("guarantor2Relationship", "Relationship", "guarantor_info", 3, RELATIONSHIPS),
    FieldSpec("guarantor2MemberNumber", "Member Number", FieldKind.TEXT, "guarantor_info", 3),
    FieldSpec("bankStatement", "Bank Statement (3 months)", FieldKind.FILE, "documents", 4, default=None),
    FieldSpec("salarySlip", "Salary Slip (Latest)", FieldKind.FILE, "documents", 4, default=None),
    FieldSpec("businessLicense", "Business License (If applicable)", FieldKind.FILE, "documents", 4, default=None),
    FieldSpec("additionalInfo", "Additional Information", FieldKind.TEXT, "documents", 4),
    FieldSpec("agreeToTerms", "I agree to the terms and conditions", FieldKind.BOOLEAN, "documents", 4,
              required=True, message="You must agree to terms and conditions", default=False),
)

FIELDS_BY_NAME: Dict[str, FieldSpec] = {f.name: f for f in LOAN_FIELDS}


def blank_form() -> Dict[str, Any]:
    """Default values for a freshly opened application."""
    return {f.name: f.default for f in LOAN_FIELDS}


def is_value_present(spec: FieldSpec, value: Any) -> bool:
    """Whether ``value`` satisfies a required ``spec``."""

    if spec.kind is FieldKind.BOOLEAN:
        return value is True
    if spec.kind is FieldKind.FILE:
        return value is not None
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    # numbers and choice keys typed by a widget (e.g. ``term=12``)
    return True


def validate_step(step: int, state: Mapping[str, Any]) -> Dict[str, str]:
    """Return ``{field: message}`` for required fields of ``step`` that are empty.

    Only the requested step's fields are inspected.  An empty mapping means
    the step is complete.
    """

    if step < 1 or step > TOTAL_STEPS:
        raise ValueError(f"step must be between 1 and {TOTAL_STEPS}, got {step}")
    errors: Dict[str, str] = {}
    for spec in LOAN_FIELDS:
        if spec.step != step or not spec.required:
            continue
        if not is_value_present(spec, state.get(spec.name)):
            errors[spec.name] = spec.message
    return errors


class LoanApplicationForm:
    """Field values and inline errors for one wizard session."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self.values: Dict[str, Any] = blank_form()
        self.errors: Dict[str, str] = {}
        for name, value in (values or {}).items():
            self._check_name(name)
            self.values[name] = value

    @staticmethod
    def _check_name(name: str) -> None:
        if name not in FIELDS_BY_NAME:
            raise KeyError(f"unknown loan application field: {name!r}")

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def set_field(self, name: str, value: Any) -> None:
        """Replace one value and drop that field's recorded error, if any."""
        self._check_name(name)
        self.values[name] = value
        self.errors.pop(name, None)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.values)


class SubmissionError(Exception):
    """Raised by a submission handler when the application could not be filed."""


@dataclass
class SubmissionResult:
    status: str  # "invalid" | "submitted" | "failed"
    errors: Dict[str, str] = field(default_factory=dict)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "submitted"


SubmitHandler = Callable[[Dict[str, Any]], Any]


class LoanWizard:
    """Step controller around a :class:`LoanApplicationForm`.

    ``on_submit`` receives the complete field mapping once the last step
    validates.  It may raise :class:`SubmissionError` to report that filing
    failed; the wizard then stays open on the last step so the applicant can
    retry.  ``on_cancel`` is called without arguments when the applicant
    closes the wizard.
    """

    def __init__(
        self,
        on_submit: SubmitHandler,
        on_cancel: Optional[Callable[[], Any]] = None,
        form: Optional[LoanApplicationForm] = None,
    ) -> None:
        self.on_submit = on_submit
        self.on_cancel = on_cancel
        self.form = form or LoanApplicationForm()
        self.step = 1
        self.completed = False
        self.cancelled = False

    @property
    def errors(self) -> Dict[str, str]:
        return self.form.errors

    @property
    def is_first(self) -> bool:
        return self.step == 1

    @property
    def is_last(self) -> bool:
        return self.step == TOTAL_STEPS

    @property
    def is_open(self) -> bool:
        return not (self.completed or self.cancelled)

    def set_field(self, name: str, value: Any) -> None:
        self.form.set_field(name, value)

    def summary(self) -> LoanSummary:
        return summarize_loan(self.form.values)

    def _validate_current(self) -> Dict[str, str]:
        errors = validate_step(self.step, self.form.values)
        self.form.errors = dict(errors)
        return errors

    def next(self) -> Dict[str, str]:
        """Advance one step if the current one validates; return its errors."""

        errors = self._validate_current()
        if errors:
            logger.info("Loan wizard step %s incomplete: %s", self.step, sorted(errors))
            return errors
        self.step = min(self.step + 1, TOTAL_STEPS)
        logger.debug("Loan wizard advanced to step %s", self.step)
        return errors

    def previous(self) -> int:
        self.step = max(self.step - 1, 1)
        self.form.errors = {}
        return self.step

    def submit(self) -> SubmissionResult:
        if not self.is_open:
            raise RuntimeError("loan wizard is already closed")
        if not self.is_last:
            raise RuntimeError("applications can only be submitted from the final step")
        errors = self._validate_current()
        if errors:
            return SubmissionResult(status="invalid", errors=errors)
        payload = self.form.snapshot()
        try:
            self.on_submit(payload)
        except SubmissionError as exc:
            logger.warning("Loan application submission failed: %s", exc)
            return SubmissionResult(status="failed", message=str(exc))
        self.completed = True
        logger.info("Loan application submitted (%s)", payload.get("loanType"))
        return SubmissionResult(status="submitted")

    def cancel(self) -> None:
        if not self.is_open:
            return
        self.cancelled = True
        self.form = LoanApplicationForm()
        logger.info("Loan wizard cancelled at step %s", self.step)
        if self.on_cancel is not None:
            self.on_cancel()
