
DISCLAIMER = (
    "Figures shown are estimates computed from the information entered. "
    "Loan applications are subject to approval by the SACCO committee and "
    "final terms may differ from the calculator output."
)

CURRENCY = "UGX"

# Loan products offered to members. Rates are nominal annual percentages,
# maximum amounts are in UGX.
LOAN_TYPES = {
    "personal": {"label": "Personal Loan", "rate_pct": 12.0, "max_amount": 10_000_000},
    "business": {"label": "Business Loan", "rate_pct": 10.0, "max_amount": 50_000_000},
    "emergency": {"label": "Emergency Loan", "rate_pct": 15.0, "max_amount": 5_000_000},
    "education": {"label": "Education Loan", "rate_pct": 8.0, "max_amount": 20_000_000},
    "agriculture": {"label": "Agriculture Loan", "rate_pct": 9.0, "max_amount": 30_000_000},
}

TERM_OPTIONS = [6, 12, 18, 24, 36, 48, 60]

REPAYMENT_SOURCES = {
    "salary": "Salary",
    "business": "Business Income",
    "investments": "Investments",
    "other": "Other",
}
COLLATERAL_TYPES = {
    "property": "Property/Land",
    "vehicle": "Vehicle",
    "savings": "Savings Account",
    "shares": "Shares/Stocks",
    "other": "Other",
}
RELATIONSHIPS = {
    "spouse": "Spouse",
    "parent": "Parent",
    "sibling": "Sibling",
    "friend": "Friend",
    "colleague": "Colleague",
    "other": "Other",
}
ACCEPTED_DOCUMENT_TYPES = ["pdf", "jpg", "jpeg", "png"]

TERMS_AND_CONDITIONS = [
    "I understand that this loan application is subject to approval by the SACCO committee.",
    "I agree to the interest rates and terms as specified by the SACCO.",
    "I understand that failure to repay may result in penalties and affect my membership status.",
    "I authorize the SACCO to verify the information provided in this application.",
    "I understand that my guarantors will be contacted for verification.",
]

DEPOSIT_TYPES = {
    "monthly_contribution": "Monthly Contribution",
    "voluntary_deposit": "Voluntary Deposit",
    "special_savings": "Special Savings",
    "share_capital": "Share Capital",
}
PAYMENT_METHODS = {
    "bank_transfer": "Bank Transfer",
    "mobile_money": "Mobile Money",
    "cash": "Cash Deposit",
    "check": "Check",
}
RECURRING_FREQUENCIES = ["weekly", "monthly", "quarterly"]

# Penalty rate applied to the withdrawn amount, on top of the fixed fee.
WITHDRAWAL_TYPES = {
    "partial": {"label": "Partial Withdrawal", "penalty_rate": 0.02},
    "emergency": {"label": "Emergency Withdrawal", "penalty_rate": 0.05},
    "full": {"label": "Full Withdrawal", "penalty_rate": 0.10},
}
WITHDRAWAL_PROCESSING_FEE = 50_000
URGENCY_LEVELS = {
    "normal": "Normal (5-7 business days)",
    "urgent": "Urgent (2-3 business days)",
    "emergency": "Emergency (Same day)",
}

STATEMENT_TYPES = {
    "comprehensive": "Comprehensive Statement",
    "savings_only": "Savings Statement",
    "loans_only": "Loan Statement",
    "transactions_only": "Transaction History",
}
STATEMENT_FORMATS = {
    "pdf": "PDF Document",
    "excel": "Excel Spreadsheet",
    "word": "Word Document",
    "csv": "CSV File",
}
STATEMENT_DATE_RANGES = {
    "last_month": "Last Month",
    "last_3_months": "Last 3 Months",
    "last_6_months": "Last 6 Months",
    "last_year": "Last Year",
    "year_to_date": "Year to Date",
    "all_time": "All Time",
    "custom": "Custom Range",
}
DELIVERY_METHODS = {"download": "Download", "email": "Email"}

EXPENSE_CATEGORIES = {
    "operational": "Operational Expenses",
    "administrative": "Administrative",
    "marketing": "Marketing & Promotion",
    "maintenance": "Maintenance & Repairs",
    "utilities": "Utilities",
    "staff": "Staff Expenses",
    "other": "Other Expenses",
}

# Divisor converting an amount at the given frequency to a monthly figure.
# ``None`` marks amounts that do not recur.
FREQUENCY_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "annually": 12,
    "one-time": None,
    "one_time": None,
}

ROLE_DISPLAY_NAMES = {
    "admin": "Admin User",
    "member": "John Doe",
    "auditor": "Jane Smith",
}
DEFAULT_DISPLAY_NAME = "Sarah Johnson"
ROLES = {
    "admin": "Administrator",
    "member": "Member",
    "auditor": "Auditor",
    "approval_officer": "Approval Officer",
}

# Member registration
GENDERS = {"male": "Male", "female": "Female", "other": "Other"}
MARITAL_STATUSES = {
    "single": "Single",
    "married": "Married",
    "divorced": "Divorced",
    "widowed": "Widowed",
}
EMPLOYMENT_STATUSES = {
    "employed": "Employed",
    "self_employed": "Self Employed",
    "unemployed": "Unemployed",
    "retired": "Retired",
    "student": "Student",
}
MEMBERSHIP_TYPES = {"individual": "Individual", "joint": "Joint", "group": "Group", "corporate": "Corporate"}
ORGANIZATION_ROLES = {
    "chairperson": "Chairperson",
    "vice_chairperson": "Vice Chairperson",
    "secretary": "Secretary",
    "treasurer": "Treasurer",
    "committee_member": "Committee Member",
    "loan_officer": "Loan Officer",
    "marketing_officer": "Marketing Officer",
    "auditor": "Internal Auditor",
    "member": "General Member",
}
DEFAULT_COUNTRY = "Uganda"

INCOME_CATEGORIES = {
    "salary": "Salary/Wages",
    "business": "Business Income",
    "investment": "Investment Returns",
    "rental": "Rental Income",
    "pension": "Pension/Retirement",
    "freelance": "Freelance/Consulting",
    "agriculture": "Agricultural Income",
    "remittances": "Remittances",
    "grants": "Grants/Aid",
    "other": "Other Sources",
}
INCOME_FREQUENCIES = {
    "monthly": "Monthly",
    "quarterly": "Quarterly",
    "annually": "Annually",
    "one-time": "One-time",
}

# Staff records
EMPLOYMENT_TYPES = {
    "full_time": "Full Time",
    "part_time": "Part Time",
    "contract": "Contract",
    "intern": "Intern",
}
PAYMENT_TYPES = {"fixed_salary": "Fixed Salary", "daily_rate": "Daily Rate"}
EMPLOYEE_STATUSES = {
    "active": "Active",
    "inactive": "Inactive",
    "suspended": "Suspended",
    "terminated": "Terminated",
}
DEPARTMENTS = [
    "Management",
    "Finance",
    "Operations",
    "Marketing",
    "Human Resources",
    "IT",
    "Customer Service",
    "Audit",
    "Legal",
    "Credit",
    "Other",
]
SYSTEM_ROLES = {
    "": "No System Access",
    "admin": "System Administrator",
    "member": "Member Access",
    "auditor": "Auditor",
    "approval_officer": "Approval Officer",
    "chairperson": "Chairperson",
    "vice_chairperson": "Vice Chairperson",
    "treasurer": "Treasurer",
}

# Approval workflows. Each request type passes its steps in level order.
APPROVER_ROLES = {
    "loan_officer": "Loan Officer",
    "treasurer": "Treasurer",
    "secretary": "Secretary",
    "chairperson": "Chairperson",
    "vice_chairperson": "Vice Chairperson",
    "committee_member": "Committee Member",
    "admin": "Administrator",
    "auditor": "Auditor",
}
APPROVAL_TYPES = {"membership": "Membership", "loan": "Loan", "withdrawal": "Withdrawal"}
DEFAULT_APPROVAL_STEPS = {
    "membership": [
        ("secretary", "Application Review"),
        ("treasurer", "Initial Deposit Check"),
        ("chairperson", "Committee Approval"),
    ],
    "loan": [
        ("loan_officer", "Initial Review"),
        ("treasurer", "Liquidity Check"),
        ("chairperson", "Final Approval"),
    ],
    "withdrawal": [
        ("treasurer", "Balance Check"),
        ("chairperson", "Final Approval"),
    ],
}

# Outbound notifications
NOTIFICATION_CHANNELS = {"email": "Email", "whatsapp": "WhatsApp", "sms": "SMS", "in_app": "In-App"}
NOTIFICATION_PRIORITIES = ["low", "normal", "high", "urgent"]
NOTIFICATION_MAX_RETRIES = 3
NOTIFICATION_TRIGGERS = [
    "memberRegistration",
    "memberApproval",
    "loanApplication",
    "loanApproval",
    "loanRejection",
    "loanDisbursement",
    "paymentReminder",
    "paymentReceived",
    "savingsDeposit",
    "withdrawalRequest",
    "withdrawalApproval",
    "accountSuspension",
    "passwordReset",
    "systemMaintenance",
    "reportGeneration",
    "meetingNotification",
    "dividendDeclaration",
]
# Placeholders are written ``{{name}}``.
NOTIFICATION_TEMPLATES = {
    "memberRegistration": {
        "subject": "Welcome to {{saccoName}}",
        "email": "Welcome {{memberName}}! Your membership application has been received and is under review.",
        "whatsapp": "Welcome to {{saccoName}}! Your membership application ({{memberNumber}}) is under review. We will notify you once approved.",
    },
    "loanApproval": {
        "subject": "Loan Application Approved",
        "email": "Congratulations {{memberName}}! Your loan application for {{amount}} has been approved.",
        "whatsapp": "Hi {{memberName}}, your loan for {{amount}} has been approved! Visit our office to complete the disbursement process.",
    },
    "loanRejection": {
        "subject": "Loan Application Update",
        "email": "Dear {{memberName}}, your loan application for {{amount}} was not approved. {{remark}}",
        "whatsapp": "Hi {{memberName}}, your loan application for {{amount}} was not approved. Please contact our office.",
    },
    "paymentReminder": {
        "subject": "Payment Reminder - SACCO Loan",
        "email": "Dear {{memberName}}, this is a reminder that your loan payment of {{amount}} is due on {{dueDate}}.",
        "whatsapp": "Payment reminder: {{amount}} due on {{dueDate}}. Pay via mobile money or visit our office.",
    },
}
