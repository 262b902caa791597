"""In-memory data source for the dashboards.

:class:`DataStore` owns the mock collections for one browser session and
exposes the mutations the dashboards trigger.  Nothing is written to disk;
a new store starts again from :mod:`sacco.mock_data`.

Approvals pass the levels of the active workflow for their type one sign-off
at a time.  When a ``notifier`` is attached, member registrations and final
loan decisions are handed to it.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from core.audit import AuditLog
from sacco import mock_data
from sacco.calculators import loan_rate_pct, monthly_payment, payroll_amounts
from sacco.models import (
    Approval,
    ApprovalConfiguration,
    ApprovalDecision,
    ApprovalStep,
    DepositRequest,
    Employee,
    Expense,
    ExpenseRequest,
    ExternalIncome,
    LoanApplicationRequest,
    Loan,
    Member,
    MemberRegistrationRequest,
    OtherIncomeEntry,
    PayrollRecord,
    Savings,
    User,
    WithdrawalRequest,
)
from sacco.presets import DEPOSIT_TYPES, LOAN_TYPES

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _updated(record, changes: Dict[str, Any]):
    """Return a validated copy of ``record`` with ``changes`` applied."""
    unknown = set(changes) - set(type(record).model_fields)
    if unknown:
        raise KeyError(f"unknown {type(record).__name__} fields: {sorted(unknown)}")
    return type(record).model_validate({**record.model_dump(), **changes})


class DataStore:
    def __init__(
        self,
        members: Optional[List[Member]] = None,
        loans: Optional[List[Loan]] = None,
        savings: Optional[List[Savings]] = None,
        approvals: Optional[List[Approval]] = None,
        expenses: Optional[List[Expense]] = None,
        other_incomes: Optional[List[OtherIncomeEntry]] = None,
        employees: Optional[List[Employee]] = None,
        payroll: Optional[List[PayrollRecord]] = None,
        credibility=None,
        cash_flow=None,
        approval_configs: Optional[List[ApprovalConfiguration]] = None,
        audit: Optional[AuditLog] = None,
        notifier=None,
    ) -> None:
        self.members = list(members or [])
        self.loans = list(loans or [])
        self.savings = list(savings or [])
        self.approvals = list(approvals or [])
        self.expenses = list(expenses or [])
        self.other_incomes = list(other_incomes or [])
        self.employees = list(employees or [])
        self.payroll = list(payroll or [])
        self.credibility = list(credibility or [])
        self.cash_flow = list(cash_flow or [])
        self.approval_configs = list(approval_configs or [])
        self.audit = audit or AuditLog()
        # object with member_registered / loan_approved / loan_rejected hooks
        self.notifier = notifier
        self.actor = "system"

    @classmethod
    def from_mock(cls, notifier=None) -> "DataStore":
        return cls(
            members=mock_data.members(),
            loans=mock_data.loans(),
            savings=mock_data.savings(),
            approvals=mock_data.approvals(),
            expenses=mock_data.expenses(),
            other_incomes=mock_data.other_incomes(),
            employees=mock_data.employees(),
            credibility=mock_data.credibility(),
            cash_flow=mock_data.cash_flow(),
            approval_configs=mock_data.approval_configs(),
            notifier=notifier,
        )

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _index(collection: list, item_id: str, kind: str) -> int:
        for idx, item in enumerate(collection):
            if item.id == item_id:
                return idx
        raise KeyError(f"{kind} {item_id!r} not found")

    def _log(self, action: str, target: str, details: str = "") -> None:
        self.audit.record(self.actor, action, target, details)
        logger.info("%s %s %s %s", self.actor, action, target, details)

    def _notify(self, event: str, record, *args) -> None:
        if self.notifier is None:
            return
        if isinstance(record, Loan):
            member = next((m for m in self.members if m.id == record.member_id), None)
            if member is None:
                logger.warning("No member %s for loan %s; %s not sent", record.member_id, record.id, event)
                return
            getattr(self.notifier, event)(record, member, *args)
        else:
            getattr(self.notifier, event)(record, *args)

    def member_for(self, user: User) -> Optional[Member]:
        """Member record shown on a member's dashboard."""
        for member in self.members:
            if member.email.lower() == user.email.lower():
                return member
        return self.members[0] if self.members else None

    # -- approvals --------------------------------------------------------

    def approval_config(self, item_type: str) -> Optional[ApprovalConfiguration]:
        """Active workflow for ``item_type``, if one is configured."""
        for config in self.approval_configs:
            if config.type == item_type and config.is_active:
                return config
        return None

    def approval_steps(self, item_type: str, amount: Optional[float] = None) -> List[ApprovalStep]:
        """Steps a request of ``amount`` passes, in level order."""
        config = self.approval_config(item_type)
        if config is None:
            return []
        steps = sorted(config.steps, key=lambda s: s.level)
        return [s for s in steps if s.applies_to(amount)]

    def current_step(self, approval: Approval) -> Optional[ApprovalStep]:
        steps = self.approval_steps(approval.type, approval.amount)
        if 1 <= approval.level <= len(steps):
            return steps[approval.level - 1]
        return None

    def _new_approval(self, item_type, member: Member, reference_id: str, description: str, amount=None) -> Approval:
        approval = Approval(
            id=_new_id(),
            type=item_type,
            applicant_id=member.id,
            applicant_name=member.name,
            reference_id=reference_id,
            amount=amount,
            submitted_date=date.today(),
            level=1,
            max_level=max(1, len(self.approval_steps(item_type, amount))),
            description=description,
        )
        self.approvals.append(approval)
        return approval

    def save_approval_config(self, data: Dict[str, Any]) -> ApprovalConfiguration:
        """Create or replace a workflow; an active workflow retires the other ones of its type.

        Requests already under review keep the number of levels they were
        created with.
        """
        now = _now()
        existing = next((c for c in self.approval_configs if c.id == data.get("id")), None)
        steps = [{**step, "level": level} for level, step in enumerate(data.get("steps") or [], start=1)]
        config = ApprovalConfiguration.model_validate(
            {
                **data,
                "id": existing.id if existing else _new_id(),
                "steps": steps,
                "created_by": existing.created_by if existing else self.actor,
                "created_date": existing.created_date if existing else now,
                "last_modified": now,
            }
        )
        if config.is_active:
            self.approval_configs = [
                _updated(c, {"is_active": False}) if c.type == config.type and c.id != config.id else c
                for c in self.approval_configs
            ]
        if existing:
            self.approval_configs[self._index(self.approval_configs, config.id, "approval configuration")] = config
        else:
            self.approval_configs.append(config)
        self._log("configure", f"approval_config:{config.id}", f"{config.type}, {len(config.steps)} steps")
        return config

    def _pending(self, approval_id: str, item_type: str):
        idx = self._index(self.approvals, approval_id, "approval")
        approval = self.approvals[idx]
        if approval.type != item_type:
            raise ValueError(f"approval {approval_id!r} is a {approval.type} request, not {item_type}")
        if approval.status != "pending":
            raise ValueError(f"approval {approval_id!r} is already {approval.status}")
        return idx, approval

    def approve_item(self, approval_id: str, item_type: str, remark: str = "") -> Approval:
        """Sign off the current level; the last level approves the request itself."""
        idx, approval = self._pending(approval_id, item_type)
        now = _now()
        history = approval.history + [
            ApprovalDecision(
                level=approval.level, action="approved", decided_by=self.actor, decided_at=now, remark=remark or None
            )
        ]
        if approval.level < approval.max_level:
            self.approvals[idx] = _updated(approval, {"level": approval.level + 1, "history": history})
            self._log("endorse", f"{item_type}:{approval_id}", f"level {approval.level} of {approval.max_level}")
            return self.approvals[idx]

        if item_type == "membership" and approval.reference_id:
            m = self._index(self.members, approval.reference_id, "member")
            self.members[m] = _updated(self.members[m], {"status": "active"})
        elif item_type == "loan" and approval.reference_id:
            n = self._index(self.loans, approval.reference_id, "loan")
            self.loans[n] = _updated(self.loans[n], {"status": "approved", "approved_date": now})
            self._notify("loan_approved", self.loans[n])
        elif item_type == "withdrawal" and approval.reference_id:
            s = self._index(self.savings, approval.reference_id, "savings")
            self.savings[s] = _updated(self.savings[s], {"status": "approved"})
        self.approvals[idx] = _updated(
            approval, {"status": "approved", "approved_by": self.actor, "approved_date": now, "history": history}
        )
        self._log("approve", f"{item_type}:{approval_id}", remark)
        return self.approvals[idx]

    def reject_item(self, approval_id: str, item_type: str, remark: str = "") -> Approval:
        """Reject the request at its current level."""
        idx, approval = self._pending(approval_id, item_type)
        now = _now()
        if item_type == "loan" and approval.reference_id:
            n = self._index(self.loans, approval.reference_id, "loan")
            self.loans[n] = _updated(self.loans[n], {"status": "rejected"})
            self._notify("loan_rejected", self.loans[n], remark)
        history = approval.history + [
            ApprovalDecision(
                level=approval.level, action="rejected", decided_by=self.actor, decided_at=now, remark=remark or None
            )
        ]
        self.approvals[idx] = _updated(
            approval,
            {
                "status": "rejected",
                "rejected_by": self.actor,
                "rejected_date": now,
                "rejection_remark": remark or None,
                "history": history,
            },
        )
        self._log("reject", f"{item_type}:{approval_id}", remark)
        return self.approvals[idx]

    # -- members, loans and savings ---------------------------------------

    def member(self, member_id: str) -> Member:
        return self.members[self._index(self.members, member_id, "member")]

    def _next_member_number(self) -> str:
        numbers = [int(m.member_number[3:]) for m in self.members if m.member_number[3:].isdigit()]
        return f"MEM{max(numbers, default=0) + 1:03d}"

    def register_member(self, request: MemberRegistrationRequest) -> Member:
        """Add a pending member and open its membership approval."""
        today = date.today()
        member_id = _new_id()
        address = ", ".join(p for p in (request.address, request.city, request.district) if p)
        member = Member(
            id=member_id,
            member_number=self._next_member_number(),
            name=request.full_name,
            email=request.email,
            phone=request.phone,
            address=address,
            join_date=today,
            savings_balance=request.initial_deposit or 0.0,
            organization_role=request.organization_role,
            occupation=request.occupation,
            employer=request.employer or "",
            monthly_income=request.monthly_income,
            national_id=request.national_id,
            date_of_birth=request.date_of_birth,
            gender=request.gender,
            membership_type=request.membership_type,
            emergency_contact_name=request.emergency_contact_name,
            emergency_contact_phone=request.emergency_contact_phone,
            external_incomes=[
                ExternalIncome(
                    id=_new_id(),
                    member_id=member_id,
                    source=row.source,
                    amount=row.amount,
                    frequency=row.frequency,
                    category=row.category,
                    date_added=today,
                    last_updated=today,
                    description=row.description or "",
                )
                for row in request.external_incomes
            ],
        )
        self.members.append(member)
        self._new_approval("membership", member, member.id, "New membership application")
        self._log("register", f"member:{member.id}", member.member_number)
        self._notify("member_registered", member)
        return member

    def update_member(self, member_id: str, **changes) -> Member:
        idx = self._index(self.members, member_id, "member")
        self.members[idx] = _updated(self.members[idx], changes)
        self._log("update", f"member:{member_id}", ", ".join(sorted(changes)))
        return self.members[idx]

    def submit_loan_application(self, request: LoanApplicationRequest, member: Member) -> Loan:
        """File a wizard submission as a pending loan with its approval request."""
        rate = loan_rate_pct(request.loan_type, request.preferred_rate)
        loan = Loan(
            id=_new_id(),
            member_id=member.id,
            member_name=member.name,
            amount=request.amount,
            interest_rate=rate,
            term=request.term,
            purpose=request.purpose,
            applied_date=date.today(),
            monthly_payment=monthly_payment(request.amount, rate, request.term),
            remaining_balance=request.amount,
        )
        self.loans.append(loan)
        label = LOAN_TYPES.get(request.loan_type, {}).get("label", request.loan_type)
        self._new_approval("loan", member, loan.id, f"{label}: {request.purpose}", request.amount)
        self._log("apply", f"loan:{loan.id}", f"{request.amount:,.0f}")
        return loan

    def request_deposit(self, request: DepositRequest, member: Member) -> Savings:
        deposit_type = "monthly_contribution" if request.deposit_type == "monthly_contribution" else "voluntary_deposit"
        record = Savings(
            id=_new_id(),
            member_id=member.id,
            member_name=member.name,
            type=deposit_type,
            amount=request.amount,
            date=request.scheduled_date or date.today(),
            description=request.description or DEPOSIT_TYPES.get(request.deposit_type, "Deposit"),
        )
        self.savings.append(record)
        self._log("deposit", f"savings:{record.id}", f"{request.amount:,.0f}")
        return record

    def request_withdrawal(self, request: WithdrawalRequest, member: Member) -> Savings:
        record = Savings(
            id=_new_id(),
            member_id=member.id,
            member_name=member.name,
            type="withdrawal",
            amount=request.amount,
            date=date.today(),
            description=request.reason,
        )
        self.savings.append(record)
        description = f"{request.withdrawal_type.title()} withdrawal: {request.reason}"
        self._new_approval("withdrawal", member, record.id, description, request.amount)
        self._log("withdraw", f"savings:{record.id}", f"{request.amount:,.0f}")
        return record

    # -- expenses ---------------------------------------------------------

    def add_expense(self, request: ExpenseRequest) -> Expense:
        expense = Expense(
            id=_new_id(),
            category=request.category,
            description=request.description,
            amount=request.amount,
            date=request.date,
            approved_by=request.approved_by,
            receipt_number=request.receipt_number,
            vendor=request.vendor,
        )
        self.expenses.append(expense)
        self._log("add", f"expense:{expense.id}", f"{expense.amount:,.0f}")
        return expense

    # -- other income -----------------------------------------------------

    def add_other_income(self, data: Dict[str, Any]) -> OtherIncomeEntry:
        today = date.today()
        entry = OtherIncomeEntry.model_validate(
            {
                **data,
                "id": _new_id(),
                "date_added": today,
                "last_updated": today,
                "verified": False,
                "status": "pending",
            }
        )
        self.other_incomes.append(entry)
        self._log("add", f"other_income:{entry.id}", entry.source)
        return entry

    def update_other_income(self, entry_id: str, **changes) -> OtherIncomeEntry:
        idx = self._index(self.other_incomes, entry_id, "other income")
        self.other_incomes[idx] = _updated(self.other_incomes[idx], {**changes, "last_updated": date.today()})
        self._log("update", f"other_income:{entry_id}", ", ".join(sorted(changes)))
        return self.other_incomes[idx]

    def delete_other_income(self, entry_id: str) -> None:
        idx = self._index(self.other_incomes, entry_id, "other income")
        del self.other_incomes[idx]
        self._log("delete", f"other_income:{entry_id}")

    def verify_other_income(self, entry_id: str) -> OtherIncomeEntry:
        idx = self._index(self.other_incomes, entry_id, "other income")
        self.other_incomes[idx] = _updated(
            self.other_incomes[idx],
            {
                "verified": True,
                "status": "verified",
                "verified_by": self.actor,
                "verification_date": _now(),
                "rejection_reason": None,
            },
        )
        self._log("verify", f"other_income:{entry_id}")
        return self.other_incomes[idx]

    def reject_other_income(self, entry_id: str, reason: str) -> OtherIncomeEntry:
        idx = self._index(self.other_incomes, entry_id, "other income")
        self.other_incomes[idx] = _updated(
            self.other_incomes[idx],
            {"verified": False, "status": "rejected", "rejection_reason": reason},
        )
        self._log("reject", f"other_income:{entry_id}", reason)
        return self.other_incomes[idx]

    # -- employees and payroll --------------------------------------------

    def add_employee(self, data: Dict[str, Any]) -> Employee:
        now = _now()
        fields = {
            "employee_number": f"EMP{len(self.employees) + 1:03d}",
            **data,
            "id": _new_id(),
            "created_at": now,
            "updated_at": now,
        }
        if any(e.employee_number == fields["employee_number"] for e in self.employees):
            raise ValueError(f"employee number {fields['employee_number']!r} is already in use")
        employee = Employee.model_validate(fields)
        self.employees.append(employee)
        self._log("add", f"employee:{employee.id}", employee.full_name)
        return employee

    def update_employee(self, employee_id: str, **changes) -> Employee:
        idx = self._index(self.employees, employee_id, "employee")
        self.employees[idx] = _updated(self.employees[idx], {**changes, "updated_at": _now()})
        self._log("update", f"employee:{employee_id}", ", ".join(sorted(changes)))
        return self.employees[idx]

    def delete_employee(self, employee_id: str) -> None:
        idx = self._index(self.employees, employee_id, "employee")
        del self.employees[idx]
        self._log("delete", f"employee:{employee_id}")

    def generate_payroll(self, period: str = "current") -> List[PayrollRecord]:
        """Create draft payroll records for every active employee.

        ``"current"`` resolves to this month (``YYYY-MM``).  Regenerating a
        period replaces its earlier records.
        """
        if period == "current":
            period = date.today().strftime("%Y-%m")
        now = _now()
        records = [
            PayrollRecord(
                id=_new_id(),
                employee_id=e.id,
                employee_name=e.full_name,
                period=period,
                generated_at=now,
                **payroll_amounts(e),
            )
            for e in self.employees
            if e.status == "active"
        ]
        self.payroll = [r for r in self.payroll if r.period != period] + records
        self._log("generate", f"payroll:{period}", f"{len(records)} records")
        return records
