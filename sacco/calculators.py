from __future__ import annotations
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import pandas as pd
from pydantic import BaseModel

from sacco.presets import FREQUENCY_MONTHS, LOAN_TYPES, WITHDRAWAL_PROCESSING_FEE, WITHDRAWAL_TYPES

_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


def nz(x, default=0.0):
    """Return a finite float for ``x`` or a fallback value.

    Form inputs arrive as strings, numbers or ``None`` depending on the widget
    that produced them.  Anything that does not read as a finite number falls
    back to ``default`` so later math never has to deal with ``NaN`` or
    ``inf``.
    """

    if x is None or isinstance(x, bool):
        return default
    if isinstance(x, (int, float)):
        value = float(x)
    else:
        match = _FLOAT_PREFIX.match(str(x))
        if not match:
            return default
        value = float(match.group(0))
    if not math.isfinite(value):
        return default
    return value


def nz_int(x, default=0):
    """Read the leading integer of ``x`` (``"1500.75"`` reads as ``1500``)."""

    if x is None or isinstance(x, bool):
        return default
    if isinstance(x, (int, float)):
        return int(x) if math.isfinite(x) else default
    match = _INT_PREFIX.match(str(x))
    if not match:
        return default
    return int(match.group(0))


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def monthly_payment(principal, annual_rate_pct, term_months):
    """Calculate the fully amortizing monthly payment for a loan.

    ``principal`` is the loan amount, ``annual_rate_pct`` the nominal yearly
    rate (``12`` for 12%) and ``term_months`` the number of monthly
    installments.  Returns ``0.0`` unless all three are positive.
    """

    P = nz(principal)
    r = nz(annual_rate_pct) / 100 / 12
    n = nz_int(term_months)
    if P <= 0 or r <= 0 or n <= 0:
        return 0.0
    growth = (1 + r) ** n
    return (P * r * growth) / (growth - 1)


def loan_rate_pct(loan_type, preferred_rate=None):
    """Rate used for the payment estimate: the applicant's preferred rate when
    one was given, otherwise the catalog rate of the chosen loan type."""

    preferred = nz(preferred_rate)
    if preferred > 0:
        return preferred
    entry = LOAN_TYPES.get(str(loan_type or ""))
    return float(entry["rate_pct"]) if entry else 0.0


def net_income(monthly_income, monthly_expenses):
    return nz_int(monthly_income) - nz_int(monthly_expenses)


def debt_to_income(payment, monthly_income):
    """Monthly payment as a whole percentage of monthly income."""

    income = nz_int(monthly_income)
    if income <= 0:
        return 0
    return round_half_up(nz(payment) / income * 100)


def affordability(net):
    return "Good" if net > 0 else "Poor"


@dataclass(frozen=True)
class LoanSummary:
    rate_pct: float
    monthly_payment: float
    total_repayment: float
    total_interest: float
    net_income: int
    dti_pct: int
    affordability: str


def summarize_loan(values: Mapping[str, Any]) -> LoanSummary:
    """Derive the loan calculator figures shown next to the application form."""

    rate = loan_rate_pct(values.get("loanType"), values.get("preferredRate"))
    payment = monthly_payment(values.get("amount"), rate, values.get("term"))
    total = payment * nz_int(values.get("term")) if payment else 0.0
    interest = total - nz(values.get("amount")) if payment else 0.0
    net = net_income(values.get("monthlyIncome"), values.get("monthlyExpenses"))
    return LoanSummary(
        rate_pct=rate,
        monthly_payment=payment,
        total_repayment=total,
        total_interest=interest,
        net_income=net,
        dti_pct=debt_to_income(payment, values.get("monthlyIncome")),
        affordability=affordability(net),
    )


def withdrawal_charges(amount, withdrawal_type):
    """Penalty, fixed processing fee and net payout for a savings withdrawal."""

    value = nz(amount)
    rate = WITHDRAWAL_TYPES.get(withdrawal_type, {}).get("penalty_rate", 0.0)
    penalty = value * rate
    return {
        "penalty": penalty,
        "processing_fee": float(WITHDRAWAL_PROCESSING_FEE),
        "net_amount": value - penalty - WITHDRAWAL_PROCESSING_FEE,
    }


def monthly_amount(amount, frequency):
    """Normalize a recurring amount to its monthly equivalent.

    Unknown frequencies are treated as monthly; one-off amounts contribute
    nothing to a monthly figure.
    """

    months = FREQUENCY_MONTHS.get(frequency, 1)
    if months is None:
        return 0.0
    return nz(amount) / months


# ---------------------------------------------------------------------------
# Dashboard aggregates. Collections are small mock lists, so each render
# rebuilds a DataFrame and sums it.
# ---------------------------------------------------------------------------


def to_frame(items: Iterable[BaseModel], columns=None) -> pd.DataFrame:
    rows = [item.model_dump() for item in items]
    if not rows:
        return pd.DataFrame(columns=columns or [])
    return pd.DataFrame(rows)


def member_totals(members) -> dict:
    df = to_frame(members, ["status", "savings_balance", "total_loans"])
    return {
        "total_members": int(len(df)),
        "active_members": int((df["status"] == "active").sum()),
        "pending_members": int((df["status"] == "pending").sum()),
        "total_savings": float(pd.to_numeric(df["savings_balance"]).sum()),
    }


def loan_totals(loans) -> dict:
    df = to_frame(loans, ["status", "amount"])
    return {
        "total_loans": float(pd.to_numeric(df["amount"]).sum()),
        "active_loans": int((df["status"] == "disbursed").sum()),
        "pending_loans": int((df["status"] == "pending").sum()),
    }


def external_income_monthly(members) -> float:
    """Total monthly external income declared across all members."""

    total = 0.0
    for member in members:
        for income in member.external_incomes:
            total += monthly_amount(income.amount, income.frequency)
    return total


def other_income_summary(entries) -> dict:
    df = to_frame(entries, ["status", "amount", "frequency"])
    verified = df[df["status"] == "verified"]
    monthly = sum(
        monthly_amount(a, f) for a, f in zip(verified["amount"], verified["frequency"])
    )
    return {
        "verified_monthly": float(monthly),
        "verified_count": int(len(verified)),
        "pending_count": int((df["status"] == "pending").sum()),
    }


def expense_totals(expenses) -> pd.DataFrame:
    """Expense amounts summed by category, largest first."""

    df = to_frame(expenses, ["category", "amount"])
    if df.empty:
        return pd.DataFrame(columns=["category", "amount"])
    return (
        df.groupby("category", dropna=False)["amount"]
        .sum()
        .sort_values(ascending=False)
        .reset_index()
    )


def average_credibility(metrics) -> float:
    df = to_frame(metrics, ["score"])
    if df.empty:
        return 0.0
    return float(pd.to_numeric(df["score"]).mean())


def payroll_amounts(employee) -> dict:
    allowances = sum(monthly_amount(a.amount, a.frequency) for a in employee.allowances)
    deductions = sum(monthly_amount(d.amount, d.frequency) for d in employee.deductions)
    gross = nz(employee.basic_salary) + allowances
    return {
        "basic_salary": nz(employee.basic_salary),
        "total_allowances": allowances,
        "total_deductions": deductions,
        "gross_pay": gross,
        "net_pay": gross - deductions,
    }


def active_payroll_total(employees) -> float:
    return float(sum(e.basic_salary for e in employees if e.status == "active"))
