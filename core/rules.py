from __future__ import annotations
from typing import Literal, List, Dict, Any
from pydantic import BaseModel, Field

from sacco.calculators import net_income, nz
from sacco.presets import LOAN_TYPES


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def evaluate_loan_rules(values: dict) -> List[RuleResult]:
    """Hints shown beside the loan application. None of them block submission."""
    res: List[RuleResult] = []

    loan = LOAN_TYPES.get(str(values.get("loanType") or ""))
    amount = nz(values.get("amount"))
    if loan is not None and amount > loan["max_amount"]:
        res.append(
            RuleResult(
                code="AMOUNT_EXCEEDS_MAX",
                severity="info",
                message=f"Requested amount is above the {loan['label']} maximum.",
                context={"amount": amount, "max_amount": loan["max_amount"]},
            )
        )

    income = values.get("monthlyIncome")
    expenses = values.get("monthlyExpenses")
    if nz(income) > 0 or nz(expenses) > 0:
        net = net_income(income, expenses)
        if net <= 0:
            res.append(
                RuleResult(
                    code="POOR_AFFORDABILITY",
                    severity="warn",
                    message="Monthly expenses leave no income for repayments.",
                    context={"net_income": net},
                )
            )

    other = nz(values.get("otherLoans"))
    if other > 0:
        res.append(
            RuleResult(
                code="OTHER_LOANS_OUTSTANDING",
                severity="info",
                message="Applicant reports repayments on other loans.",
                context={"other_loans": other},
            )
        )

    return res


def has_blocking(res: List[RuleResult]) -> bool:
    return any(r.severity == "critical" for r in res)
