from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from core.data import DataStore
from sacco.models import (
    DepositRequest,
    ExpenseRequest,
    LoanApplicationRequest,
    MemberRegistrationRequest,
    User,
    WithdrawalRequest,
)


@pytest.fixture
def store():
    s = DataStore.from_mock()
    s.actor = "Admin User"
    return s


def _member(store, member_id):
    return next(m for m in store.members if m.id == member_id)


def _approve_all(store, approval_id, item_type):
    approval = store.approve_item(approval_id, item_type)
    while approval.status == "pending":
        approval = store.approve_item(approval_id, item_type)
    return approval


def test_from_mock_is_fresh_each_time():
    a = DataStore.from_mock()
    b = DataStore.from_mock()
    a.update_member("1", status="suspended")
    assert _member(b, "1").status == "active"
    assert len(a.members) == 5 and len(a.approvals) == 2
    assert {c.type for c in a.approval_configs} == {"membership", "loan", "withdrawal"}


def test_membership_passes_every_level(store):
    first = store.approve_item("1", "membership", "ID checked")
    assert first.status == "pending" and first.level == 2
    assert first.history[0].remark == "ID checked"
    assert _member(store, "2").status == "pending"
    assert store.current_step(first).role == "treasurer"

    second = store.approve_item("1", "membership")
    assert second.level == 3 and second.status == "pending"

    approval = store.approve_item("1", "membership")
    assert approval.status == "approved"
    assert approval.approved_by == "Admin User"
    assert approval.approved_date is not None
    assert [d.level for d in approval.history] == [1, 2, 3]
    assert _member(store, "2").status == "active"


def test_approve_loan_sets_timestamp(store):
    endorsed = store.approve_item("2", "loan")
    assert endorsed.level == 3
    assert next(l for l in store.loans if l.id == "2").status == "pending"
    store.approve_item("2", "loan")
    loan = next(l for l in store.loans if l.id == "2")
    assert loan.status == "approved"
    assert loan.approved_date is not None
    assert [a.status for a in store.approvals] == ["pending", "approved"]


def test_reject_loan_with_remark(store):
    approval = store.reject_item("2", "loan", "Insufficient collateral")
    assert approval.status == "rejected"
    assert approval.rejection_remark == "Insufficient collateral"
    assert approval.rejected_by == "Admin User"
    assert approval.history[-1].action == "rejected" and approval.history[-1].level == 2
    assert next(l for l in store.loans if l.id == "2").status == "rejected"


def test_decided_approval_cannot_change(store):
    store.reject_item("2", "loan")
    with pytest.raises(ValueError):
        store.approve_item("2", "loan")
    with pytest.raises(ValueError):
        store.reject_item("2", "loan")


def test_approval_type_mismatch_and_missing(store):
    with pytest.raises(ValueError):
        store.approve_item("1", "loan")
    with pytest.raises(KeyError):
        store.reject_item("99", "loan")
    assert store.audit.entries == []


def test_update_member_validates(store):
    member = store.update_member("3", savings_balance=5_000_000)
    assert member.savings_balance == 5_000_000
    with pytest.raises(ValidationError):
        store.update_member("3", status="retired")
    with pytest.raises(KeyError):
        store.update_member("3", nickname="PJ")


def test_add_expense_is_pending(store):
    request = ExpenseRequest.model_validate(
        {"category": "maintenance", "description": "Roof repair", "amount": 400_000, "date": "2024-03-02", "approvedBy": "treasurer"}
    )
    expense = store.add_expense(request)
    assert expense.status == "pending"
    assert store.expenses[-1] is expense
    assert expense.date == date(2024, 3, 2)


def test_other_income_lifecycle(store):
    entry = store.add_other_income(
        {"member_id": "4", "member_name": "Mary Wilson", "source": "Tutoring", "amount": 300_000, "category": "freelance"}
    )
    assert entry.status == "pending" and not entry.verified

    updated = store.update_other_income(entry.id, amount=350_000)
    assert updated.amount == 350_000

    verified = store.verify_other_income(entry.id)
    assert verified.verified and verified.status == "verified"
    assert verified.verified_by == "Admin User"
    assert verified.verification_date is not None

    rejected = store.reject_other_income("3", "No supporting documents")
    assert rejected.status == "rejected"
    assert rejected.rejection_reason == "No supporting documents"

    store.delete_other_income(entry.id)
    assert all(e.id != entry.id for e in store.other_incomes)
    with pytest.raises(KeyError):
        store.delete_other_income(entry.id)


def test_employee_crud(store):
    employee = store.add_employee(
        {"first_name": "Ann", "last_name": "Kato", "position": "Clerk", "start_date": "2024-04-01", "basic_salary": 700_000}
    )
    assert employee.employee_number == "EMP004"
    assert employee.full_name == "Ann Kato"
    changed = store.update_employee(employee.id, position="Senior Clerk")
    assert changed.position == "Senior Clerk"
    assert changed.updated_at >= employee.updated_at
    store.delete_employee(employee.id)
    assert len(store.employees) == 3


def test_generate_payroll_for_active_employees(store):
    records = store.generate_payroll("2024-03")
    assert {r.employee_name for r in records} == {"Grace Namusoke", "Samuel Okello"}
    assert all(r.status == "draft" and r.period == "2024-03" for r in records)
    grace = next(r for r in records if r.employee_name == "Grace Namusoke")
    assert grace.gross_pay == 2_000_000 and grace.net_pay == 1_910_000

    store.generate_payroll("2024-03")
    assert len(store.payroll) == 2

    current = store.generate_payroll()
    assert current[0].period == date.today().strftime("%Y-%m")


def test_submit_loan_application_creates_pending_loan_and_approval(store):
    member = _member(store, "1")
    request = LoanApplicationRequest.model_validate(
        {
            "loanType": "emergency",
            "amount": 1_000_000,
            "purpose": "Medical bills",
            "term": 12,
            "repaymentSource": "salary",
            "monthlyIncome": 3_000_000,
            "monthlyExpenses": 1_000_000,
            "guarantor1Name": "Peter Johnson",
            "guarantor1Phone": "+256-700-555123",
            "agreeToTerms": True,
        }
    )
    loan = store.submit_loan_application(request, member)
    assert loan.status == "pending"
    assert loan.interest_rate == 15.0
    assert loan.monthly_payment > 0
    approval = store.approvals[-1]
    assert approval.type == "loan" and approval.reference_id == loan.id
    assert approval.max_level == 3
    _approve_all(store, approval.id, "loan")
    assert store.loans[-1].status == "approved"


def test_deposit_and_withdrawal_requests(store):
    member = _member(store, "1")
    deposit = store.request_deposit(
        DepositRequest.model_validate({"amount": 100_000, "depositType": "share_capital", "paymentMethod": "cash"}),
        member,
    )
    assert deposit.type == "voluntary_deposit"
    assert deposit.description == "Share Capital"

    withdrawal = store.request_withdrawal(
        WithdrawalRequest.model_validate(
            {"amount": 200_000, "reason": "Rent", "paymentMethod": "cash", "understandPenalty": True, "confirmDetails": True}
        ),
        member,
    )
    assert withdrawal.type == "withdrawal" and withdrawal.status == "pending"
    approval = store.approvals[-1]
    assert approval.type == "withdrawal"
    assert approval.max_level == 2
    _approve_all(store, approval.id, "withdrawal")
    assert store.savings[-1].status == "approved"


def test_member_for_matches_email(store):
    user = User(id="u1", email="PETER@example.com", name="x", role="member", created_at=datetime.now(timezone.utc))
    assert store.member_for(user).id == "3"
    other = user.model_copy(update={"email": "nobody@example.com"})
    assert store.member_for(other).id == "1"


def test_every_mutation_is_audited(store):
    store.approve_item("1", "membership")
    store.verify_other_income("3")
    store.generate_payroll("2024-01")
    entries = store.audit.as_dict()
    assert [e["action"] for e in entries] == ["generate", "verify", "endorse"]
    assert all(e["user"] == "Admin User" for e in entries)
    assert entries[-1]["target"] == "membership:1"


REGISTRATION = {
    "firstName": "Esther",
    "middleName": "",
    "lastName": "Nakato",
    "dateOfBirth": "1990-05-17",
    "gender": "female",
    "nationalId": "CF90012345ABCD",
    "email": "esther@example.com",
    "phone": "+256-701-222333",
    "address": "Plot 4 Kira Road",
    "city": "Kampala",
    "district": "Wakiso",
    "occupation": "Nurse",
    "monthlyIncome": 1_800_000,
    "emergencyContactName": "Paul Nakato",
    "emergencyContactPhone": "+256-701-999000",
    "initialDeposit": 200_000,
    "externalIncomes": [{"source": "Night shifts", "amount": 300_000, "category": "salary"}],
}


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def member_registered(self, member):
        self.calls.append(("member_registered", member.id))

    def loan_approved(self, loan, member):
        self.calls.append(("loan_approved", loan.id, member.id))

    def loan_rejected(self, loan, member, remark=""):
        self.calls.append(("loan_rejected", loan.id, member.id, remark))


def test_register_member_opens_membership_approval(store):
    member = store.register_member(MemberRegistrationRequest.model_validate(REGISTRATION))
    assert member.member_number == "MEM006"
    assert member.name == "Esther Nakato"
    assert member.status == "pending"
    assert member.savings_balance == 200_000
    assert member.address == "Plot 4 Kira Road, Kampala, Wakiso"
    assert [i.source for i in member.external_incomes] == ["Night shifts"]
    assert member.external_incomes[0].member_id == member.id

    approval = store.approvals[-1]
    assert approval.type == "membership" and approval.reference_id == member.id
    assert approval.max_level == 3
    _approve_all(store, approval.id, "membership")
    assert store.member(member.id).status == "active"
    assert store.audit.entries[0].action == "register"


def test_notifier_hears_registrations_and_final_loan_decisions():
    notifier = RecordingNotifier()
    store = DataStore.from_mock(notifier=notifier)
    member = store.register_member(MemberRegistrationRequest.model_validate(REGISTRATION))
    store.approve_item("2", "loan")
    assert notifier.calls == [("member_registered", member.id)]
    store.approve_item("2", "loan")
    assert notifier.calls[-1] == ("loan_approved", "2", "2")


def test_notifier_hears_rejection_remark():
    notifier = RecordingNotifier()
    store = DataStore.from_mock(notifier=notifier)
    store.reject_item("2", "loan", "Missing payslip")
    assert notifier.calls == [("loan_rejected", "2", "2", "Missing payslip")]


def test_amount_limits_decide_the_levels(store):
    config = store.save_approval_config(
        {
            "type": "withdrawal",
            "name": "Tiered withdrawals",
            "description": "Large withdrawals need the chairperson",
            "steps": [
                {"title": "Balance Check", "role": "treasurer"},
                {"title": "Chair Sign-off", "role": "chairperson", "min_amount": 1_000_000},
            ],
        }
    )
    assert [s.level for s in config.steps] == [1, 2]
    assert store.approval_config("withdrawal").id == config.id
    assert not next(c for c in store.approval_configs if c.id == "default_withdrawal").is_active
    assert len(store.approval_steps("withdrawal", 200_000)) == 1
    assert len(store.approval_steps("withdrawal", 2_000_000)) == 2

    member = _member(store, "1")
    small = WithdrawalRequest.model_validate(
        {"amount": 200_000, "reason": "Rent", "paymentMethod": "cash", "understandPenalty": True, "confirmDetails": True}
    )
    store.request_withdrawal(small, member)
    approval = store.approvals[-1]
    assert approval.max_level == 1
    assert store.approve_item(approval.id, "withdrawal").status == "approved"
    assert store.audit.entries[0].action == "configure"


def test_replacing_a_workflow_keeps_its_identity(store):
    original = store.approval_config("loan")
    replaced = store.save_approval_config(
        {
            "id": original.id,
            "type": "loan",
            "name": "Fast loans",
            "description": "Single sign-off",
            "steps": [{"title": "Review", "role": "loan_officer"}],
        }
    )
    assert replaced.id == original.id
    assert replaced.created_date == original.created_date
    assert len(store.approval_configs) == 3
    # requests already under review keep their levels
    assert next(a for a in store.approvals if a.id == "2").max_level == 3


def test_duplicate_employee_number_is_refused(store):
    with pytest.raises(ValueError):
        store.add_employee(
            {"employee_number": "EMP001", "first_name": "Ann", "last_name": "Kato", "start_date": "2024-04-01"}
        )
