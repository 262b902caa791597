"""Validation for the single-step request forms and the registry forms.

Each ``validate_*`` function follows the wizard's contract: it receives the
raw field mapping and returns ``{field: message}`` for every failing field, an
empty mapping when the form may be submitted.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping

from pydantic import TypeAdapter, ValidationError

from sacco.calculators import nz

_DATE = TypeAdapter(date)


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _as_date(value: Any):
    if _blank(value):
        return None
    try:
        return _DATE.validate_python(value)
    except ValidationError:
        return None


def _payment_details(values: Mapping[str, Any], errors: Dict[str, str]) -> None:
    method = values.get("paymentMethod")
    if _blank(method):
        errors["paymentMethod"] = "Payment method is required"
    elif method == "mobile_money" and _blank(values.get("mobileMoneyNumber")):
        errors["mobileMoneyNumber"] = "Mobile money number is required"
    elif method == "bank_transfer" and _blank(values.get("bankAccount")):
        errors["bankAccount"] = "Bank account is required"


def validate_deposit(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values.get("amount")):
        errors["amount"] = "Deposit amount is required"
    elif nz(values.get("amount")) <= 0:
        errors["amount"] = "Amount must be greater than 0"
    if _blank(values.get("depositType")):
        errors["depositType"] = "Deposit type is required"
    _payment_details(values, errors)
    return errors


def validate_withdrawal(values: Mapping[str, Any], available_balance: float) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    amount = nz(values.get("amount"))
    if _blank(values.get("amount")):
        errors["amount"] = "Withdrawal amount is required"
    elif amount <= 0:
        errors["amount"] = "Amount must be greater than 0"
    elif amount > available_balance:
        errors["amount"] = "Amount exceeds available balance"
    if _blank(values.get("reason")):
        errors["reason"] = "Reason for withdrawal is required"
    _payment_details(values, errors)
    if values.get("understandPenalty") is not True:
        errors["understandPenalty"] = "You must acknowledge the penalty terms"
    if values.get("confirmDetails") is not True:
        errors["confirmDetails"] = "You must confirm the withdrawal details"
    return errors


def validate_statement(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values.get("statementType")):
        errors["statementType"] = "Statement type is required"
    if _blank(values.get("format")):
        errors["format"] = "Format is required"
    if values.get("dateRange") == "custom":
        start = _as_date(values.get("customStartDate"))
        end = _as_date(values.get("customEndDate"))
        if start is None:
            errors["customStartDate"] = "Start date is required for custom range"
        if end is None:
            errors["customEndDate"] = "End date is required for custom range"
        if start and end and start > end:
            errors["customEndDate"] = "End date must be after start date"
    if values.get("deliveryMethod") == "email" and _blank(values.get("email")):
        errors["email"] = "Email address is required for email delivery"
    return errors


def validate_expense(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values.get("category")):
        errors["category"] = "Expense category is required"
    if _blank(values.get("description")):
        errors["description"] = "Description is required"
    if _blank(values.get("amount")):
        errors["amount"] = "Amount is required"
    elif nz(values.get("amount")) <= 0:
        errors["amount"] = "Amount must be greater than 0"
    if _as_date(values.get("date")) is None:
        errors["date"] = "Date is required"
    if _blank(values.get("approvedBy")):
        errors["approvedBy"] = "Approver is required"
    return errors


def _required(values: Mapping[str, Any], errors: Dict[str, str], fields: Mapping[str, str]) -> None:
    for name, label in fields.items():
        if _blank(values.get(name)):
            errors[name] = f"{label} is required"


_MEMBER_REQUIRED = {
    "firstName": "First name",
    "lastName": "Last name",
    "gender": "Gender",
    "nationalId": "National ID",
    "email": "Email",
    "phone": "Phone number",
    "address": "Address",
    "city": "City",
    "occupation": "Occupation",
    "monthlyIncome": "Monthly income",
    "emergencyContactName": "Emergency contact name",
    "emergencyContactPhone": "Emergency contact phone",
}


def validate_member_registration(values: Mapping[str, Any]) -> Dict[str, str]:
    """Registration form errors.

    Income rows are checked pairwise: a source needs an amount and an amount
    needs a source.  Rows with neither are ignored.  Row errors are keyed
    ``income_<index>_<field>``.
    """
    errors: Dict[str, str] = {}
    _required(values, errors, _MEMBER_REQUIRED)
    if _as_date(values.get("dateOfBirth")) is None:
        errors["dateOfBirth"] = "Date of birth is required"
    email = values.get("email")
    if "email" not in errors and "@" not in str(email):
        errors["email"] = "Enter a valid email address"
    if "monthlyIncome" not in errors and nz(values.get("monthlyIncome")) < 0:
        errors["monthlyIncome"] = "Monthly income cannot be negative"
    for idx, row in enumerate(values.get("externalIncomes") or []):
        has_source = not _blank(row.get("source"))
        has_amount = not _blank(row.get("amount")) and nz(row.get("amount")) > 0
        if has_source and not has_amount:
            errors[f"income_{idx}_amount"] = "Amount is required when source is specified"
        if has_amount and not has_source:
            errors[f"income_{idx}_source"] = "Source is required when amount is specified"
    return errors


_EMPLOYEE_REQUIRED = {
    "firstName": "First name",
    "lastName": "Last name",
    "email": "Email",
    "phone": "Phone number",
    "nationalId": "National ID",
    "employeeNumber": "Employee number",
    "position": "Position",
    "department": "Department",
    "emergencyContactName": "Emergency contact name",
    "emergencyContactPhone": "Emergency contact phone",
}


def validate_employee(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    _required(values, errors, _EMPLOYEE_REQUIRED)
    start = _as_date(values.get("startDate"))
    if start is None:
        errors["startDate"] = "Start date is required"
    end = _as_date(values.get("endDate"))
    if start and end and end < start:
        errors["endDate"] = "End date must be after start date"
    payment_type = values.get("paymentType") or "fixed_salary"
    if payment_type == "fixed_salary" and nz(values.get("basicSalary")) <= 0:
        errors["basicSalary"] = "Basic salary is required for fixed salary employees"
    if payment_type == "daily_rate" and nz(values.get("dailyRate")) <= 0:
        errors["dailyRate"] = "Daily rate is required for daily rate employees"
    return errors


def validate_income(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values.get("memberId")):
        errors["memberId"] = "Member selection is required"
    if _blank(values.get("source")):
        errors["source"] = "Income source is required"
    if _blank(values.get("amount")):
        errors["amount"] = "Amount is required"
    elif nz(values.get("amount")) <= 0:
        errors["amount"] = "Amount must be greater than 0"
    if _blank(values.get("category")):
        errors["category"] = "Category is required"
    return errors


def validate_approval_config(values: Mapping[str, Any]) -> Dict[str, str]:
    """Approval workflow form; steps are keyed ``step_<index>_<field>``."""
    errors: Dict[str, str] = {}
    if _blank(values.get("name")):
        errors["name"] = "Configuration name is required"
    if _blank(values.get("description")):
        errors["description"] = "Description is required"
    steps = values.get("steps") or []
    if not steps:
        errors["steps"] = "At least one approval step is required"
    for idx, step in enumerate(steps):
        if _blank(step.get("title")):
            errors[f"step_{idx}_title"] = "Step title is required"
        if _blank(step.get("role")):
            errors[f"step_{idx}_role"] = "Step role is required"
        low, high = step.get("min_amount"), step.get("max_amount")
        if low is not None and high is not None and nz(low) > nz(high):
            errors[f"step_{idx}_max_amount"] = "Maximum amount must not be below the minimum"
    return errors
