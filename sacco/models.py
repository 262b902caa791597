from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from sacco.presets import DEFAULT_COUNTRY, NOTIFICATION_TRIGGERS

Role = Literal["admin", "member", "auditor", "approval_officer", "chairperson", "vice_chairperson", "treasurer"]
Frequency = Literal["monthly", "quarterly", "annually", "one-time"]
PaymentMethod = Literal["bank_transfer", "mobile_money", "cash", "check"]


class User(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    avatar: Optional[str] = None
    created_at: dt.datetime


class ExternalIncome(BaseModel):
    id: str
    member_id: str
    source: str = ""
    amount: float = 0.0
    frequency: Frequency = "monthly"
    category: str = "other"
    verified: bool = False
    date_added: dt.date
    last_updated: dt.date
    description: str = ""


class MonthlySavingsFlow(BaseModel):
    month: str
    deposits: float = 0.0
    withdrawals: float = 0.0
    net_savings: float = 0.0
    balance: float = 0.0


class Member(BaseModel):
    id: str
    member_number: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    join_date: dt.date
    status: Literal["pending", "active", "suspended", "inactive"] = "pending"
    savings_balance: float = 0.0
    total_loans: float = 0.0
    organization_role: str = "member"
    credibility_score: int = 0
    occupation: str = ""
    employer: str = ""
    monthly_income: float = 0.0
    national_id: str = ""
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None
    membership_type: str = "individual"
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    external_incomes: List[ExternalIncome] = Field(default_factory=list)
    monthly_savings_flow: List[MonthlySavingsFlow] = Field(default_factory=list)


class Loan(BaseModel):
    id: str
    member_id: str
    member_name: str
    amount: float
    interest_rate: float
    term: int
    purpose: str = ""
    status: Literal["pending", "approved", "disbursed", "rejected", "completed"] = "pending"
    applied_date: dt.date
    approved_date: Optional[dt.datetime] = None
    disbursed_date: Optional[dt.date] = None
    monthly_payment: float = 0.0
    remaining_balance: float = 0.0
    next_payment_date: Optional[dt.date] = None


class Savings(BaseModel):
    id: str
    member_id: str
    member_name: str
    type: Literal["monthly_contribution", "voluntary_deposit", "withdrawal"]
    amount: float
    date: dt.date
    description: str = ""
    status: Literal["pending", "approved", "completed"] = "pending"


ApprovalType = Literal["membership", "loan", "withdrawal"]


class ApprovalDecision(BaseModel):
    """One signed-off level of a multi-level approval."""

    level: int
    action: Literal["approved", "rejected"]
    decided_by: str
    decided_at: dt.datetime
    remark: Optional[str] = None


class Approval(BaseModel):
    id: str
    type: ApprovalType
    applicant_id: str
    applicant_name: str
    # id of the member, loan or savings record the request concerns
    reference_id: Optional[str] = None
    amount: Optional[float] = None
    status: Literal["pending", "approved", "rejected"] = "pending"
    submitted_date: dt.date
    approved_by: Optional[str] = None
    approved_date: Optional[dt.datetime] = None
    rejected_by: Optional[str] = None
    rejected_date: Optional[dt.datetime] = None
    rejection_remark: Optional[str] = None
    level: int = 1
    max_level: int = 3
    description: str = ""
    history: List[ApprovalDecision] = Field(default_factory=list)


class ApprovalStep(BaseModel):
    level: int
    role: str
    title: str
    required: bool = True
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    def applies_to(self, amount: Optional[float]) -> bool:
        """Whether a request of ``amount`` has to pass this step."""
        if not self.required:
            return False
        if amount is None:
            return True
        if self.min_amount is not None and amount < self.min_amount:
            return False
        if self.max_amount is not None and amount > self.max_amount:
            return False
        return True


class ApprovalConfiguration(BaseModel):
    id: str
    type: ApprovalType
    name: str
    description: str = ""
    steps: List[ApprovalStep]
    is_active: bool = True
    created_by: str = "system"
    created_date: dt.datetime
    last_modified: dt.datetime


class Expense(BaseModel):
    id: str
    category: Literal["operational", "administrative", "marketing", "maintenance", "utilities", "staff", "other"]
    description: str
    amount: float
    date: dt.date
    approved_by: str
    status: Literal["pending", "approved", "paid"] = "pending"
    receipt_number: Optional[str] = None
    vendor: Optional[str] = None


class OtherIncomeEntry(BaseModel):
    id: str
    member_id: str
    member_name: str
    source: str
    amount: float
    frequency: Frequency = "monthly"
    category: str = "other"
    verified: bool = False
    date_added: dt.date
    last_updated: dt.date
    description: str = ""
    supporting_documents: List[str] = Field(default_factory=list)
    verified_by: Optional[str] = None
    verification_date: Optional[dt.datetime] = None
    rejection_reason: Optional[str] = None
    status: Literal["pending", "verified", "rejected"] = "pending"


class EmployeeAllowance(BaseModel):
    type: str
    amount: float = 0.0
    frequency: Literal["monthly", "quarterly", "annually", "one_time"] = "monthly"
    taxable: bool = True


class EmployeeDeduction(BaseModel):
    type: str
    amount: float = 0.0
    frequency: Literal["monthly", "quarterly", "annually", "one_time"] = "monthly"
    mandatory: bool = False


class Employee(BaseModel):
    id: str
    employee_number: str
    first_name: str
    last_name: str
    middle_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    national_id: str = ""
    position: str = ""
    department: str = ""
    employment_type: Literal["full_time", "part_time", "contract", "intern"] = "full_time"
    payment_type: Literal["fixed_salary", "daily_rate"] = "fixed_salary"
    start_date: dt.date
    end_date: Optional[dt.date] = None
    status: Literal["active", "inactive", "suspended", "terminated"] = "active"
    basic_salary: float = 0.0
    daily_rate: Optional[float] = None
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    emergency_contact_relationship: str = ""
    system_role: Optional[str] = None
    allowances: List[EmployeeAllowance] = Field(default_factory=list)
    deductions: List[EmployeeDeduction] = Field(default_factory=list)
    payroll_frequency: Literal["monthly", "bi_weekly", "weekly"] = "monthly"
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PayrollRecord(BaseModel):
    id: str
    employee_id: str
    employee_name: str
    period: str
    basic_salary: float
    total_allowances: float
    total_deductions: float
    gross_pay: float
    net_pay: float
    status: Literal["draft", "approved", "paid"] = "draft"
    generated_at: dt.datetime


class CredibilityMetrics(BaseModel):
    member_id: str
    member_name: str
    score: int
    trend: Literal["improving", "stable", "declining"] = "stable"


class CashFlowPoint(BaseModel):
    date: dt.date
    inflow: float = 0.0
    outflow: float = 0.0
    net_flow: float = 0.0


class FileReference(BaseModel):
    """A document picked in the browser. Only metadata is kept."""

    name: str
    mime_type: str = ""
    size: int = 0


Channel = Literal["email", "whatsapp", "sms", "in_app"]


class QueuedNotification(BaseModel):
    id: str
    type: Channel
    recipient: str
    subject: Optional[str] = None
    content: str
    priority: Literal["low", "normal", "high", "urgent"] = "normal"
    status: Literal["pending", "sent", "failed", "cancelled"] = "pending"
    sent_at: Optional[dt.datetime] = None
    failure_reason: Optional[str] = None
    retry_count: int = 0
    max_retries: int = 3
    created_at: dt.datetime
    related_id: Optional[str] = None
    related_type: Optional[str] = None


class NotificationLog(BaseModel):
    id: str
    notification_id: str
    type: Channel
    recipient: str
    status: Literal["sent", "delivered", "read", "failed"]
    timestamp: dt.datetime
    response: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None


# -- system settings ----------------------------------------------------------


def _default_triggers(enabled: bool = True, **overrides: bool) -> Dict[str, bool]:
    return {name: overrides.get(name, enabled) for name in NOTIFICATION_TRIGGERS}


class GeneralSettings(BaseModel):
    sacco_name: str = "SACCO Manager"
    sacco_code: str = "SACCO001"
    registration_number: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    timezone: str = "Africa/Kampala"
    currency: str = "UGX"
    language: str = "en"
    date_format: str = "DD/MM/YYYY"
    fiscal_year_start: str = "01/01"


class EmailChannelSettings(BaseModel):
    enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    from_email: str = ""
    from_name: str = ""
    encryption: Literal["none", "tls", "ssl"] = "tls"
    triggers: Dict[str, bool] = Field(
        default_factory=lambda: _default_triggers(systemMaintenance=False, reportGeneration=False)
    )


class WhatsAppChannelSettings(BaseModel):
    enabled: bool = False
    phone_number_id: str = ""
    business_account_id: str = ""
    webhook_url: str = ""
    triggers: Dict[str, bool] = Field(
        default_factory=lambda: _default_triggers(systemMaintenance=False, reportGeneration=False)
    )


class SmsChannelSettings(BaseModel):
    enabled: bool = False
    provider: Literal["twilio", "africas_talking", "custom"] = "twilio"
    sender_id: str = ""
    triggers: Dict[str, bool] = Field(
        default_factory=lambda: _default_triggers(
            False,
            loanApproval=True,
            loanRejection=True,
            loanDisbursement=True,
            paymentReminder=True,
            withdrawalApproval=True,
            accountSuspension=True,
            passwordReset=True,
        )
    )


class InAppChannelSettings(BaseModel):
    enabled: bool = True
    retention_days: int = 30
    triggers: Dict[str, bool] = Field(default_factory=_default_triggers)


class NotificationSettings(BaseModel):
    email: EmailChannelSettings = Field(default_factory=EmailChannelSettings)
    whatsapp: WhatsAppChannelSettings = Field(default_factory=WhatsAppChannelSettings)
    sms: SmsChannelSettings = Field(default_factory=SmsChannelSettings)
    in_app: InAppChannelSettings = Field(default_factory=InAppChannelSettings)

    def channel(self, name: str):
        return getattr(self, name)


class PasswordPolicy(BaseModel):
    min_length: int = 8
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = False
    password_expiry_days: int = 90
    prevent_reuse: int = 5


class SecuritySettings(BaseModel):
    password_policy: PasswordPolicy = Field(default_factory=PasswordPolicy)
    session_timeout_minutes: int = 60
    max_login_attempts: int = 5
    lockout_duration_minutes: int = 15
    two_factor_auth: bool = False
    audit_logging: bool = True
    data_retention_days: int = 2555


class FinancialSettings(BaseModel):
    savings_rate: float = 5.0
    loan_rates: Dict[str, float] = Field(
        default_factory=lambda: {"personal": 12.0, "business": 10.0, "emergency": 15.0, "education": 8.0, "agriculture": 9.0}
    )
    penalty_rate: float = 2.0
    membership_fee: float = 50_000
    processing_fee: float = 25_000
    withdrawal_fee: float = 5_000
    statement_fee: float = 2_000
    late_payment_fee: float = 10_000
    min_savings_balance: float = 100_000
    max_loan_amount: float = 50_000_000
    max_loan_to_savings_ratio: float = 3
    daily_withdrawal_limit: float = 1_000_000
    monthly_withdrawal_limit: float = 5_000_000
    grace_period_days: int = 7
    late_payment_grace_days: int = 3


class ApprovalSettings(BaseModel):
    auto_approval_limit_loans: float = 1_000_000
    auto_approval_limit_withdrawals: float = 500_000
    reminders_enabled: bool = True
    first_reminder_hours: int = 24
    second_reminder_hours: int = 72
    final_reminder_hours: int = 168


class SystemSettings(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    financial: FinancialSettings = Field(default_factory=FinancialSettings)
    approval: ApprovalSettings = Field(default_factory=ApprovalSettings)
    last_modified: Optional[dt.datetime] = None
    modified_by: str = "System"


# ---------------------------------------------------------------------------
# Structured request payloads, one per form. Browser widgets report blank
# optional inputs as empty strings; those are normalized to ``None``.
# ---------------------------------------------------------------------------


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
OptionalAmount = Annotated[Optional[float], BeforeValidator(_blank_to_none)]
OptionalDate = Annotated[Optional[dt.date], BeforeValidator(_blank_to_none)]


class _FormRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoanApplicationRequest(_FormRequest):
    loan_type: str = Field(alias="loanType")
    amount: float
    purpose: str
    term: int
    preferred_rate: OptionalAmount = Field(default=None, alias="preferredRate")
    repayment_method: str = Field(default="monthly", alias="repaymentMethod")
    repayment_source: str = Field(alias="repaymentSource")
    collateral_type: OptionalText = Field(default=None, alias="collateralType")
    collateral_value: OptionalAmount = Field(default=None, alias="collateralValue")
    monthly_income: float = Field(alias="monthlyIncome")
    monthly_expenses: float = Field(alias="monthlyExpenses")
    other_loans: OptionalAmount = Field(default=None, alias="otherLoans")
    guarantor1_name: str = Field(alias="guarantor1Name")
    guarantor1_phone: str = Field(alias="guarantor1Phone")
    guarantor1_relationship: OptionalText = Field(default=None, alias="guarantor1Relationship")
    guarantor1_member_number: OptionalText = Field(default=None, alias="guarantor1MemberNumber")
    guarantor2_name: OptionalText = Field(default=None, alias="guarantor2Name")
    guarantor2_phone: OptionalText = Field(default=None, alias="guarantor2Phone")
    guarantor2_relationship: OptionalText = Field(default=None, alias="guarantor2Relationship")
    guarantor2_member_number: OptionalText = Field(default=None, alias="guarantor2MemberNumber")
    bank_statement: Optional[FileReference] = Field(default=None, alias="bankStatement")
    salary_slip: Optional[FileReference] = Field(default=None, alias="salarySlip")
    business_license: Optional[FileReference] = Field(default=None, alias="businessLicense")
    additional_info: OptionalText = Field(default=None, alias="additionalInfo")
    agree_to_terms: bool = Field(alias="agreeToTerms")

    @classmethod
    def from_form(cls, values: Dict[str, Any]) -> "LoanApplicationRequest":
        return cls.model_validate(values)


class DepositRequest(_FormRequest):
    amount: float
    deposit_type: str = Field(alias="depositType")
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    description: OptionalText = None
    scheduled_date: OptionalDate = Field(default=None, alias="scheduledDate")
    is_recurring: bool = Field(default=False, alias="isRecurring")
    recurring_frequency: str = Field(default="monthly", alias="recurringFrequency")
    bank_account: OptionalText = Field(default=None, alias="bankAccount")
    mobile_money_number: OptionalText = Field(default=None, alias="mobileMoneyNumber")
    reference_number: OptionalText = Field(default=None, alias="referenceNumber")


class WithdrawalRequest(_FormRequest):
    amount: float
    withdrawal_type: Literal["partial", "emergency", "full"] = Field(default="partial", alias="withdrawalType")
    reason: str
    urgency: Literal["normal", "urgent", "emergency"] = "normal"
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    bank_account: OptionalText = Field(default=None, alias="bankAccount")
    mobile_money_number: OptionalText = Field(default=None, alias="mobileMoneyNumber")
    supporting_document: Optional[FileReference] = Field(default=None, alias="supportingDocument")
    additional_info: OptionalText = Field(default=None, alias="additionalInfo")
    understand_penalty: bool = Field(alias="understandPenalty")
    confirm_details: bool = Field(alias="confirmDetails")


class StatementRequest(_FormRequest):
    statement_type: Literal["comprehensive", "savings_only", "loans_only", "transactions_only"] = Field(
        default="comprehensive", alias="statementType"
    )
    format: Literal["pdf", "excel", "word", "csv"] = "pdf"
    date_range: str = Field(default="last_6_months", alias="dateRange")
    custom_start_date: OptionalDate = Field(default=None, alias="customStartDate")
    custom_end_date: OptionalDate = Field(default=None, alias="customEndDate")
    include_transactions: bool = Field(default=True, alias="includeTransactions")
    include_loan_details: bool = Field(default=True, alias="includeLoanDetails")
    include_savings_history: bool = Field(default=True, alias="includeSavingsHistory")
    include_external_income: bool = Field(default=False, alias="includeExternalIncome")
    include_credibility_score: bool = Field(default=False, alias="includeCredibilityScore")
    language: str = "english"
    delivery_method: Literal["download", "email"] = Field(default="download", alias="deliveryMethod")
    email: OptionalText = None


class ExpenseRequest(_FormRequest):
    category: str
    description: str
    amount: float
    date: dt.date
    vendor: OptionalText = None
    receipt_number: OptionalText = Field(default=None, alias="receiptNumber")
    payment_method: str = Field(default="bank_transfer", alias="paymentMethod")
    approved_by: str = Field(alias="approvedBy")
    notes: OptionalText = None
    receipt: Optional[FileReference] = None


class ExternalIncomeInput(_FormRequest):
    source: str
    amount: float
    frequency: Frequency = "monthly"
    category: str = "salary"
    description: OptionalText = None


class MemberRegistrationRequest(_FormRequest):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    middle_name: OptionalText = Field(default=None, alias="middleName")
    date_of_birth: dt.date = Field(alias="dateOfBirth")
    gender: str
    marital_status: OptionalText = Field(default=None, alias="maritalStatus")
    national_id: str = Field(alias="nationalId")
    email: str
    phone: str
    alternate_phone: OptionalText = Field(default=None, alias="alternatePhone")
    address: str
    city: str
    district: OptionalText = None
    country: str = DEFAULT_COUNTRY
    occupation: str
    employer: OptionalText = None
    monthly_income: float = Field(alias="monthlyIncome")
    employment_status: OptionalText = Field(default=None, alias="employmentStatus")
    emergency_contact_name: str = Field(alias="emergencyContactName")
    emergency_contact_phone: str = Field(alias="emergencyContactPhone")
    emergency_contact_relationship: OptionalText = Field(default=None, alias="emergencyContactRelationship")
    membership_type: str = Field(default="individual", alias="membershipType")
    initial_deposit: OptionalAmount = Field(default=None, alias="initialDeposit")
    monthly_contribution: OptionalAmount = Field(default=None, alias="monthlyContribution")
    referred_by: OptionalText = Field(default=None, alias="referredBy")
    organization_role: str = Field(default="member", alias="organizationRole")
    external_incomes: List[ExternalIncomeInput] = Field(default_factory=list, alias="externalIncomes")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.middle_name, self.last_name) if p)


class EmployeeRequest(_FormRequest):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    middle_name: OptionalText = Field(default=None, alias="middleName")
    email: str
    phone: str
    address: OptionalText = None
    national_id: str = Field(alias="nationalId")
    employee_number: str = Field(alias="employeeNumber")
    position: str
    department: str
    employment_type: Literal["full_time", "part_time", "contract", "intern"] = Field(
        default="full_time", alias="employmentType"
    )
    payment_type: Literal["fixed_salary", "daily_rate"] = Field(default="fixed_salary", alias="paymentType")
    start_date: dt.date = Field(alias="startDate")
    end_date: OptionalDate = Field(default=None, alias="endDate")
    status: Literal["active", "inactive", "suspended", "terminated"] = "active"
    basic_salary: OptionalAmount = Field(default=None, alias="basicSalary")
    daily_rate: OptionalAmount = Field(default=None, alias="dailyRate")
    payroll_frequency: Literal["monthly", "bi_weekly", "weekly"] = Field(default="monthly", alias="payrollFrequency")
    emergency_contact_name: str = Field(alias="emergencyContactName")
    emergency_contact_phone: str = Field(alias="emergencyContactPhone")
    emergency_contact_relationship: OptionalText = Field(default=None, alias="emergencyContactRelationship")
    system_role: OptionalText = Field(default=None, alias="systemRole")

    def employee_fields(self) -> Dict[str, Any]:
        """Field mapping accepted by ``DataStore.add_employee`` / ``update_employee``."""
        data = self.model_dump(exclude={"basic_salary", "middle_name", "address", "emergency_contact_relationship"})
        data["basic_salary"] = self.basic_salary or 0.0
        data["middle_name"] = self.middle_name or ""
        data["address"] = self.address or ""
        data["emergency_contact_relationship"] = self.emergency_contact_relationship or ""
        return data


class IncomeRequest(_FormRequest):
    member_id: str = Field(alias="memberId")
    source: str
    amount: float
    frequency: Frequency = "monthly"
    category: str = "salary"
    description: OptionalText = None
    supporting_documents: List[FileReference] = Field(default_factory=list, alias="supportingDocuments")

    def entry_fields(self, member_name: str) -> Dict[str, Any]:
        """Field mapping accepted by ``DataStore.add_other_income``."""
        return {
            "member_id": self.member_id,
            "member_name": member_name,
            "source": self.source,
            "amount": self.amount,
            "frequency": self.frequency,
            "category": self.category,
            "description": self.description or "",
            "supporting_documents": [d.name for d in self.supporting_documents],
        }
