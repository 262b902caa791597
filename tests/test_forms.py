from datetime import date

import pytest
from pydantic import ValidationError

from core.forms import (
    validate_approval_config,
    validate_deposit,
    validate_employee,
    validate_expense,
    validate_income,
    validate_member_registration,
    validate_statement,
    validate_withdrawal,
)
from sacco.models import (
    DepositRequest,
    EmployeeRequest,
    ExpenseRequest,
    IncomeRequest,
    LoanApplicationRequest,
    MemberRegistrationRequest,
    StatementRequest,
    WithdrawalRequest,
)


def _deposit(**overrides):
    values = {"amount": 250_000.0, "depositType": "voluntary_deposit", "paymentMethod": "cash"}
    values.update(overrides)
    return values


def _withdrawal(**overrides):
    values = {
        "amount": 500_000.0,
        "reason": "School fees",
        "paymentMethod": "mobile_money",
        "mobileMoneyNumber": "+256-700-123456",
        "understandPenalty": True,
        "confirmDetails": True,
    }
    values.update(overrides)
    return values


def test_deposit_valid():
    assert validate_deposit(_deposit()) == {}


def test_deposit_amount_rules():
    assert validate_deposit(_deposit(amount=None)) == {"amount": "Deposit amount is required"}
    assert validate_deposit(_deposit(amount=0)) == {"amount": "Amount must be greater than 0"}
    assert validate_deposit(_deposit(amount="-5")) == {"amount": "Amount must be greater than 0"}


def test_deposit_payment_details():
    errors = validate_deposit(_deposit(paymentMethod="mobile_money"))
    assert errors == {"mobileMoneyNumber": "Mobile money number is required"}
    errors = validate_deposit(_deposit(paymentMethod="bank_transfer", bankAccount=" "))
    assert errors == {"bankAccount": "Bank account is required"}
    errors = validate_deposit(_deposit(paymentMethod=None, depositType=""))
    assert set(errors) == {"paymentMethod", "depositType"}


def test_withdrawal_valid():
    assert validate_withdrawal(_withdrawal(), available_balance=2_500_000) == {}


def test_withdrawal_exceeds_balance():
    errors = validate_withdrawal(_withdrawal(amount=3_000_000), available_balance=2_500_000)
    assert errors == {"amount": "Amount exceeds available balance"}


def test_withdrawal_acknowledgements_required():
    errors = validate_withdrawal(_withdrawal(understandPenalty=False, confirmDetails=None), 2_500_000)
    assert set(errors) == {"understandPenalty", "confirmDetails"}


def test_withdrawal_reason_required():
    assert "reason" in validate_withdrawal(_withdrawal(reason=""), 2_500_000)


def test_statement_defaults_valid():
    values = {"statementType": "comprehensive", "format": "pdf", "dateRange": "last_6_months", "deliveryMethod": "download"}
    assert validate_statement(values) == {}


def test_statement_custom_range():
    base = {"statementType": "savings_only", "format": "csv", "dateRange": "custom"}
    errors = validate_statement(base)
    assert set(errors) == {"customStartDate", "customEndDate"}
    errors = validate_statement({**base, "customStartDate": "2024-03-01", "customEndDate": date(2024, 1, 1)})
    assert errors == {"customEndDate": "End date must be after start date"}
    assert validate_statement({**base, "customStartDate": date(2024, 1, 1), "customEndDate": "2024-03-01"}) == {}


def test_statement_email_delivery_needs_address():
    values = {"statementType": "loans_only", "format": "pdf", "deliveryMethod": "email", "email": ""}
    assert validate_statement(values) == {"email": "Email address is required for email delivery"}


def test_expense_validation():
    values = {
        "category": "utilities",
        "description": "Water bill",
        "amount": 120_000.0,
        "date": date(2024, 3, 1),
        "approvedBy": "treasurer",
    }
    assert validate_expense(values) == {}
    errors = validate_expense({**values, "amount": 0, "date": None, "approvedBy": ""})
    assert set(errors) == {"amount", "date", "approvedBy"}


def test_request_models_accept_form_keys():
    deposit = DepositRequest.model_validate(_deposit(description="", scheduledDate=""))
    assert deposit.deposit_type == "voluntary_deposit"
    assert deposit.description is None
    assert deposit.scheduled_date is None

    withdrawal = WithdrawalRequest.model_validate(_withdrawal(bankAccount=""))
    assert withdrawal.withdrawal_type == "partial"
    assert withdrawal.bank_account is None

    statement = StatementRequest.model_validate({"statementType": "loans_only", "format": "csv"})
    assert statement.date_range == "last_6_months"

    expense = ExpenseRequest.model_validate(
        {"category": "staff", "description": "Bonus", "amount": "1000", "date": "2024-03-01", "approvedBy": "chair"}
    )
    assert expense.amount == 1000.0
    assert expense.date == date(2024, 3, 1)


def test_loan_request_from_form():
    values = {
        "loanType": "business",
        "amount": 8_000_000.0,
        "purpose": "Equipment",
        "term": 36,
        "preferredRate": "",
        "repaymentMethod": "monthly",
        "repaymentSource": "business",
        "collateralType": "",
        "collateralValue": None,
        "monthlyIncome": 4_000_000.0,
        "monthlyExpenses": 1_500_000.0,
        "otherLoans": "",
        "guarantor1Name": "Peter Johnson",
        "guarantor1Phone": "+256-700-555123",
        "agreeToTerms": True,
    }
    request = LoanApplicationRequest.from_form(values)
    assert request.loan_type == "business"
    assert request.preferred_rate is None
    assert request.collateral_type is None
    assert request.bank_statement is None

    with pytest.raises(ValidationError):
        LoanApplicationRequest.from_form({**values, "amount": None})


def _registration(**overrides):
    values = {
        "firstName": "Esther",
        "lastName": "Nakato",
        "dateOfBirth": date(1990, 5, 17),
        "gender": "female",
        "nationalId": "CF90012345ABCD",
        "email": "esther@example.com",
        "phone": "+256-701-222333",
        "address": "Plot 4 Kira Road",
        "city": "Kampala",
        "occupation": "Nurse",
        "monthlyIncome": 1_800_000.0,
        "emergencyContactName": "Paul Nakato",
        "emergencyContactPhone": "+256-701-999000",
        "externalIncomes": [{"source": "", "amount": None}],
    }
    values.update(overrides)
    return values


def test_member_registration_valid():
    assert validate_member_registration(_registration()) == {}
    request = MemberRegistrationRequest.model_validate(_registration(middleName="", externalIncomes=[]))
    assert request.full_name == "Esther Nakato"
    assert request.country == "Uganda"


def test_member_registration_required_fields():
    errors = validate_member_registration(_registration(firstName=" ", dateOfBirth=None, city=""))
    assert errors == {
        "firstName": "First name is required",
        "dateOfBirth": "Date of birth is required",
        "city": "City is required",
    }
    assert validate_member_registration(_registration(email="esther.example.com")) == {
        "email": "Enter a valid email address"
    }


def test_member_registration_income_rows_pair_up():
    rows = [{"source": "Rent", "amount": None}, {"source": "", "amount": 50_000.0}]
    assert validate_member_registration(_registration(externalIncomes=rows)) == {
        "income_0_amount": "Amount is required when source is specified",
        "income_1_source": "Source is required when amount is specified",
    }


def _employee(**overrides):
    values = {
        "firstName": "Ann",
        "lastName": "Kato",
        "email": "ann@sacco.example",
        "phone": "+256-702-111222",
        "nationalId": "CM88001122EFGH",
        "employeeNumber": "EMP010",
        "position": "Clerk",
        "department": "Finance",
        "paymentType": "fixed_salary",
        "startDate": date(2024, 4, 1),
        "endDate": None,
        "basicSalary": 700_000.0,
        "emergencyContactName": "Joe Kato",
        "emergencyContactPhone": "+256-702-000111",
        "systemRole": "",
    }
    values.update(overrides)
    return values


def test_employee_valid_and_mapped_to_record_fields():
    assert validate_employee(_employee()) == {}
    fields = EmployeeRequest.model_validate(_employee()).employee_fields()
    assert fields["employee_number"] == "EMP010"
    assert fields["basic_salary"] == 700_000
    assert fields["middle_name"] == "" and fields["address"] == ""
    assert fields["system_role"] is None


def test_employee_pay_and_date_rules():
    assert validate_employee(_employee(basicSalary=None)) == {
        "basicSalary": "Basic salary is required for fixed salary employees"
    }
    assert validate_employee(_employee(paymentType="daily_rate", basicSalary=None)) == {
        "dailyRate": "Daily rate is required for daily rate employees"
    }
    assert validate_employee(_employee(endDate=date(2024, 3, 1))) == {"endDate": "End date must be after start date"}
    assert validate_employee(_employee(startDate=None))["startDate"] == "Start date is required"


def test_income_validation():
    values = {"memberId": "4", "source": "Tutoring", "amount": 300_000.0, "category": "freelance"}
    assert validate_income(values) == {}
    fields = IncomeRequest.model_validate(values).entry_fields("Mary Wilson")
    assert fields["member_name"] == "Mary Wilson" and fields["supporting_documents"] == []
    assert validate_income({**values, "amount": 0}) == {"amount": "Amount must be greater than 0"}
    assert validate_income({}) == {
        "memberId": "Member selection is required",
        "source": "Income source is required",
        "amount": "Amount is required",
        "category": "Category is required",
    }


def test_approval_config_validation():
    values = {
        "name": "Tiered",
        "description": "Large loans need the chair",
        "steps": [{"title": "Review", "role": "loan_officer", "min_amount": None, "max_amount": None}],
    }
    assert validate_approval_config(values) == {}
    assert validate_approval_config({**values, "steps": []}) == {"steps": "At least one approval step is required"}
    bad = {"title": "", "role": None, "min_amount": 5_000_000.0, "max_amount": 1_000_000.0}
    assert validate_approval_config({**values, "steps": [bad]}) == {
        "step_0_title": "Step title is required",
        "step_0_role": "Step role is required",
        "step_0_max_amount": "Maximum amount must not be below the minimum",
    }
