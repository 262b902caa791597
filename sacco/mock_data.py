"""Demo collections backing the in-memory data store.

Every function returns freshly built models so separate sessions never share
mutable records.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List

from sacco.models import (
    Approval,
    ApprovalConfiguration,
    ApprovalDecision,
    ApprovalStep,
    CashFlowPoint,
    CredibilityMetrics,
    Employee,
    EmployeeAllowance,
    EmployeeDeduction,
    Expense,
    ExternalIncome,
    Loan,
    Member,
    MonthlySavingsFlow,
    OtherIncomeEntry,
    Savings,
)
from sacco.presets import APPROVAL_TYPES, DEFAULT_APPROVAL_STEPS


def _income(id, member_id, source, amount, frequency, category, verified, added, description):
    return ExternalIncome(
        id=id,
        member_id=member_id,
        source=source,
        amount=amount,
        frequency=frequency,
        category=category,
        verified=verified,
        date_added=added,
        last_updated=date(2024, 2, 1),
        description=description,
    )


def members() -> List[Member]:
    return [
        Member(
            id="1",
            member_number="MEM001",
            name="John Doe",
            email="john@example.com",
            phone="+256-700-123456",
            address="123 Main St, Kampala",
            join_date=date(2024, 1, 15),
            status="active",
            savings_balance=2_500_000,
            total_loans=1_500_000,
            organization_role="treasurer",
            credibility_score=85,
            occupation="Software Engineer",
            employer="Tech Solutions Ltd",
            monthly_income=3_000_000,
            external_incomes=[
                _income("1", "1", "ABC Company Ltd", 3_000_000, "monthly", "salary", True, date(2024, 1, 15), "Monthly salary"),
                _income("2", "1", "Rental Property", 800_000, "monthly", "rental", True, date(2024, 1, 20), "Apartment rental income"),
            ],
            monthly_savings_flow=[
                MonthlySavingsFlow(month="Jan 2024", deposits=500_000, net_savings=500_000, balance=2_000_000),
                MonthlySavingsFlow(month="Feb 2024", deposits=750_000, withdrawals=200_000, net_savings=550_000, balance=2_550_000),
            ],
        ),
        Member(
            id="2",
            member_number="MEM002",
            name="Jane Smith",
            email="jane@example.com",
            phone="+256-700-987654",
            address="456 Oak Ave, Entebbe",
            join_date=date(2024, 2, 20),
            status="pending",
            savings_balance=800_000,
            credibility_score=72,
            occupation="Graphic Designer",
            employer="Creative Agency",
            monthly_income=1_500_000,
            external_incomes=[
                _income("3", "2", "Freelance Design", 1_500_000, "monthly", "freelance", False, date(2024, 2, 20), "Graphic design services"),
            ],
            monthly_savings_flow=[
                MonthlySavingsFlow(month="Feb 2024", deposits=300_000, net_savings=300_000, balance=800_000),
            ],
        ),
        Member(
            id="3",
            member_number="MEM003",
            name="Peter Johnson",
            email="peter@example.com",
            phone="+256-700-555123",
            address="789 Pine St, Jinja",
            join_date=date(2023, 12, 10),
            status="active",
            savings_balance=4_200_000,
            total_loans=3_000_000,
            organization_role="committee_member",
            credibility_score=91,
            occupation="Business Owner",
            employer="Johnson Enterprises",
            monthly_income=5_000_000,
            external_incomes=[
                _income("4", "3", "Johnson Enterprises", 5_000_000, "monthly", "business", True, date(2023, 12, 10), "Business profits"),
            ],
        ),
        Member(
            id="4",
            member_number="MEM004",
            name="Mary Wilson",
            email="mary@example.com",
            phone="+256-700-444789",
            address="321 Cedar Ave, Mbarara",
            join_date=date(2024, 1, 5),
            status="active",
            savings_balance=1_800_000,
            total_loans=1_000_000,
            organization_role="secretary",
            credibility_score=78,
            occupation="Teacher",
            employer="Mbarara Primary School",
            monthly_income=2_200_000,
            external_incomes=[
                _income("5", "4", "Teaching Salary", 2_200_000, "monthly", "salary", True, date(2024, 1, 5), "Primary school teacher"),
            ],
        ),
        Member(
            id="5",
            member_number="MEM005",
            name="David Brown",
            email="david@example.com",
            phone="+256-700-333456",
            address="654 Elm St, Gulu",
            join_date=date(2023, 11, 20),
            status="active",
            savings_balance=3_100_000,
            total_loans=2_500_000,
            organization_role="loan_officer",
            credibility_score=88,
            occupation="Farmer",
            employer="Self Employed",
            monthly_income=1_800_000,
            external_incomes=[
                _income("6", "5", "Agricultural Sales", 1_800_000, "quarterly", "agriculture", True, date(2023, 11, 20), "Coffee and maize sales"),
            ],
        ),
    ]


def loans() -> List[Loan]:
    return [
        Loan(
            id="1",
            member_id="1",
            member_name="John Doe",
            amount=5_000_000,
            interest_rate=12,
            term=24,
            purpose="Business expansion",
            status="disbursed",
            applied_date=date(2024, 1, 20),
            approved_date=datetime(2024, 1, 25),
            disbursed_date=date(2024, 1, 30),
            monthly_payment=235_000,
            remaining_balance=3_500_000,
            next_payment_date=date(2024, 3, 1),
        ),
        Loan(
            id="2",
            member_id="2",
            member_name="Jane Smith",
            amount=2_000_000,
            interest_rate=10,
            term=12,
            purpose="Home improvement",
            status="pending",
            applied_date=date(2024, 2, 15),
            monthly_payment=175_000,
            remaining_balance=2_000_000,
        ),
    ]


def savings() -> List[Savings]:
    return [
        Savings(
            id="1",
            member_id="1",
            member_name="John Doe",
            type="monthly_contribution",
            amount=500_000,
            date=date(2024, 2, 1),
            description="Monthly savings contribution",
            status="completed",
        ),
        Savings(
            id="2",
            member_id="1",
            member_name="John Doe",
            type="voluntary_deposit",
            amount=1_000_000,
            date=date(2024, 2, 15),
            description="Extra savings deposit",
            status="completed",
        ),
    ]


def approvals() -> List[Approval]:
    return [
        Approval(
            id="1",
            type="membership",
            applicant_id="2",
            applicant_name="Jane Smith",
            reference_id="2",
            submitted_date=date(2024, 2, 20),
            level=1,
            description="New membership application",
        ),
        Approval(
            id="2",
            type="loan",
            applicant_id="2",
            applicant_name="Jane Smith",
            reference_id="2",
            amount=2_000_000,
            submitted_date=date(2024, 2, 15),
            level=2,
            description="Home improvement loan",
            history=[
                ApprovalDecision(level=1, action="approved", decided_by="Samuel Okello", decided_at=datetime(2024, 2, 16, 10, 30))
            ],
        ),
    ]


def expenses() -> List[Expense]:
    return [
        Expense(
            id="1",
            category="operational",
            description="Office rent for February 2024",
            amount=1_200_000,
            date=date(2024, 2, 1),
            approved_by="treasurer",
            status="paid",
            receipt_number="REC001",
            vendor="Property Management Ltd",
        ),
        Expense(
            id="2",
            category="utilities",
            description="Electricity and water bills",
            amount=350_000,
            date=date(2024, 2, 15),
            approved_by="admin",
            status="paid",
            receipt_number="REC002",
            vendor="UMEME & NWSC",
        ),
        Expense(
            id="3",
            category="staff",
            description="Staff salaries for February",
            amount=2_500_000,
            date=date(2024, 2, 28),
            approved_by="chairperson",
            status="paid",
            receipt_number="REC003",
        ),
    ]


def other_incomes() -> List[OtherIncomeEntry]:
    return [
        OtherIncomeEntry(
            id="1",
            member_id="1",
            member_name="John Doe",
            source="Rental Property",
            amount=800_000,
            category="rental",
            verified=True,
            status="verified",
            verified_by="Admin User",
            date_added=date(2024, 1, 20),
            last_updated=date(2024, 2, 1),
            description="Apartment rental income",
        ),
        OtherIncomeEntry(
            id="2",
            member_id="5",
            member_name="David Brown",
            source="Agricultural Sales",
            amount=1_800_000,
            frequency="quarterly",
            category="agriculture",
            verified=True,
            status="verified",
            verified_by="Admin User",
            date_added=date(2023, 11, 20),
            last_updated=date(2024, 2, 1),
            description="Coffee and maize sales",
        ),
        OtherIncomeEntry(
            id="3",
            member_id="2",
            member_name="Jane Smith",
            source="Family Remittance",
            amount=400_000,
            category="remittances",
            date_added=date(2024, 2, 20),
            last_updated=date(2024, 2, 20),
        ),
    ]


def employees() -> List[Employee]:
    created = datetime(2024, 1, 2, 9, 0)
    return [
        Employee(
            id="1",
            employee_number="EMP001",
            first_name="Grace",
            last_name="Namusoke",
            email="grace@sacco.example",
            phone="+256-701-111222",
            position="Accountant",
            department="Finance",
            start_date=date(2022, 6, 1),
            basic_salary=1_800_000,
            allowances=[EmployeeAllowance(type="transport", amount=200_000)],
            deductions=[EmployeeDeduction(type="NSSF", amount=90_000, mandatory=True)],
            created_at=created,
            updated_at=created,
        ),
        Employee(
            id="2",
            employee_number="EMP002",
            first_name="Samuel",
            last_name="Okello",
            email="samuel@sacco.example",
            phone="+256-702-333444",
            position="Loan Officer",
            department="Credit",
            start_date=date(2023, 3, 15),
            basic_salary=1_500_000,
            allowances=[EmployeeAllowance(type="airtime", amount=150_000, frequency="quarterly")],
            deductions=[EmployeeDeduction(type="NSSF", amount=75_000, mandatory=True)],
            created_at=created,
            updated_at=created,
        ),
        Employee(
            id="3",
            employee_number="EMP003",
            first_name="Ruth",
            last_name="Atim",
            position="Cashier",
            department="Operations",
            employment_type="contract",
            start_date=date(2021, 9, 1),
            status="inactive",
            basic_salary=900_000,
            created_at=created,
            updated_at=created,
        ),
    ]


def credibility() -> List[CredibilityMetrics]:
    return [
        CredibilityMetrics(member_id="3", member_name="Peter Johnson", score=91, trend="improving"),
        CredibilityMetrics(member_id="5", member_name="David Brown", score=88),
        CredibilityMetrics(member_id="1", member_name="John Doe", score=85, trend="improving"),
        CredibilityMetrics(member_id="4", member_name="Mary Wilson", score=78),
        CredibilityMetrics(member_id="2", member_name="Jane Smith", score=72, trend="improving"),
    ]


def cash_flow() -> List[CashFlowPoint]:
    return [
        CashFlowPoint(date=date(2024, 1, 1), inflow=15_000_000, outflow=8_000_000, net_flow=7_000_000),
        CashFlowPoint(date=date(2024, 1, 8), inflow=18_000_000, outflow=12_000_000, net_flow=6_000_000),
        CashFlowPoint(date=date(2024, 1, 15), inflow=22_000_000, outflow=15_000_000, net_flow=7_000_000),
        CashFlowPoint(date=date(2024, 1, 22), inflow=20_000_000, outflow=10_000_000, net_flow=10_000_000),
        CashFlowPoint(date=date(2024, 1, 29), inflow=25_000_000, outflow=18_000_000, net_flow=7_000_000),
    ]


def approval_configs() -> List[ApprovalConfiguration]:
    created = datetime(2024, 1, 1, 8, 0)
    return [
        ApprovalConfiguration(
            id=f"default_{kind}",
            type=kind,
            name=f"Standard {APPROVAL_TYPES[kind]} Approval",
            description=f"Default sign-off chain for {APPROVAL_TYPES[kind].lower()} requests",
            steps=[
                ApprovalStep(level=level, role=role, title=title)
                for level, (role, title) in enumerate(steps, start=1)
            ],
            created_date=created,
            last_modified=created,
        )
        for kind, steps in DEFAULT_APPROVAL_STEPS.items()
    ]
