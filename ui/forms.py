"""Single-step request forms and the registry forms.

Request forms cover deposits, withdrawals, statements and expenses.  The
registry forms add members, employees, other income and approval workflows.
Each form collects raw widget values, runs the matching ``core.forms``
validator and only then builds the typed request for the data store.
"""
from datetime import date

import streamlit as st

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
from core.utils import format_currency, pretty_label
from export.statement_export import export_statement
from sacco.calculators import withdrawal_charges
from sacco.models import (
    DepositRequest,
    EmployeeRequest,
    ExpenseRequest,
    FileReference,
    IncomeRequest,
    MemberRegistrationRequest,
    StatementRequest,
    WithdrawalRequest,
)
from sacco.presets import (
    APPROVAL_TYPES,
    APPROVER_ROLES,
    DEFAULT_COUNTRY,
    DELIVERY_METHODS,
    DEPARTMENTS,
    DEPOSIT_TYPES,
    EMPLOYEE_STATUSES,
    EMPLOYMENT_STATUSES,
    EMPLOYMENT_TYPES,
    EXPENSE_CATEGORIES,
    GENDERS,
    INCOME_CATEGORIES,
    INCOME_FREQUENCIES,
    MARITAL_STATUSES,
    MEMBERSHIP_TYPES,
    ORGANIZATION_ROLES,
    PAYMENT_METHODS,
    PAYMENT_TYPES,
    RECURRING_FREQUENCIES,
    STATEMENT_DATE_RANGES,
    STATEMENT_FORMATS,
    STATEMENT_TYPES,
    SYSTEM_ROLES,
    URGENCY_LEVELS,
    WITHDRAWAL_PROCESSING_FEE,
    WITHDRAWAL_TYPES,
)
from ui.components import show_errors


def _choice(label, options: dict, key, index=None):
    return st.selectbox(
        label,
        list(options),
        index=index,
        format_func=lambda k: options[k] if isinstance(options[k], str) else options[k]["label"],
        placeholder="Select...",
        key=key,
    )


def _payment_fields(prefix: str) -> dict:
    method = _choice("Payment Method *", PAYMENT_METHODS, f"{prefix}_payment_method")
    c1, c2 = st.columns(2)
    bank = c1.text_input("Bank Account (bank transfer)", key=f"{prefix}_bank_account")
    mobile = c2.text_input("Mobile Money Number (mobile money)", key=f"{prefix}_mobile_number")
    return {"paymentMethod": method, "bankAccount": bank, "mobileMoneyNumber": mobile}


def _file_ref(upload):
    if upload is None:
        return None
    return FileReference(name=upload.name, mime_type=upload.type or "", size=upload.size)


def render_deposit_form(store, member):
    st.subheader("Make a Deposit")
    with st.form("deposit_form"):
        values = {
            "amount": st.number_input("Amount (UGX) *", min_value=0.0, value=None, step=10000.0, key="deposit_amount"),
            "depositType": _choice("Deposit Type *", DEPOSIT_TYPES, "deposit_type"),
        }
        values.update(_payment_fields("deposit"))
        values["referenceNumber"] = st.text_input("Reference Number", key="deposit_reference")
        values["description"] = st.text_area("Description", key="deposit_description")
        values["scheduledDate"] = st.date_input("Scheduled Date", value=None, key="deposit_scheduled_date")
        values["isRecurring"] = st.checkbox("Make this a recurring deposit", key="deposit_recurring")
        values["recurringFrequency"] = st.selectbox(
            "Recurring Frequency", RECURRING_FREQUENCIES, index=1, key="deposit_frequency"
        )
        submitted = st.form_submit_button("Submit Deposit")
    if not submitted:
        return None
    errors = validate_deposit(values)
    if errors:
        show_errors(errors)
        return None
    record = store.request_deposit(DepositRequest.model_validate(values), member)
    st.success(f"Deposit of {format_currency(record.amount)} recorded and awaiting confirmation.")
    return record


def render_withdrawal_form(store, member):
    st.subheader("Request a Withdrawal")
    st.caption(f"Available balance: {format_currency(member.savings_balance)}")
    with st.form("withdrawal_form"):
        values = {
            "amount": st.number_input("Amount (UGX) *", min_value=0.0, value=None, step=10000.0, key="withdrawal_amount"),
            "withdrawalType": _choice("Withdrawal Type", WITHDRAWAL_TYPES, "withdrawal_type", index=0),
            "urgency": _choice("Urgency", URGENCY_LEVELS, "withdrawal_urgency", index=0),
            "reason": st.text_area("Reason for Withdrawal *", key="withdrawal_reason"),
        }
        values.update(_payment_fields("withdrawal"))
        upload = st.file_uploader("Supporting Document", type=["pdf", "jpg", "jpeg", "png"], key="withdrawal_document")
        values["additionalInfo"] = st.text_area("Additional Information", key="withdrawal_info")
        st.caption(
            f"Penalties: partial 2%, emergency 5%, full 10% of the amount, plus a "
            f"{format_currency(WITHDRAWAL_PROCESSING_FEE)} processing fee."
        )
        values["understandPenalty"] = st.checkbox("I understand the penalty and fees *", key="withdrawal_penalty_ack")
        values["confirmDetails"] = st.checkbox("I confirm the details above are correct *", key="withdrawal_confirm")
        submitted = st.form_submit_button("Submit Withdrawal Request")
    if not submitted:
        return None
    errors = validate_withdrawal(values, member.savings_balance)
    if errors:
        show_errors(errors)
        return None
    values["supportingDocument"] = _file_ref(upload)
    request = WithdrawalRequest.model_validate(values)
    charges = withdrawal_charges(request.amount, request.withdrawal_type)
    record = store.request_withdrawal(request, member)
    st.success(
        f"Withdrawal request submitted. Penalty {format_currency(charges['penalty'])}, "
        f"fee {format_currency(charges['processing_fee'])}, you receive {format_currency(charges['net_amount'])}."
    )
    return record


def render_statement_form(store, member):
    st.subheader("Download Statement")
    with st.form("statement_form"):
        values = {
            "statementType": _choice("Statement Type *", STATEMENT_TYPES, "statement_type", index=0),
            "format": _choice("Format *", STATEMENT_FORMATS, "statement_format", index=0),
            "dateRange": _choice("Date Range", STATEMENT_DATE_RANGES, "statement_range", index=2),
        }
        c1, c2 = st.columns(2)
        values["customStartDate"] = c1.date_input("Start Date (custom range)", value=None, key="statement_start")
        values["customEndDate"] = c2.date_input("End Date (custom range)", value=None, key="statement_end")
        st.markdown("**Include**")
        values["includeTransactions"] = st.checkbox("Transactions", value=True, key="statement_inc_tx")
        values["includeLoanDetails"] = st.checkbox("Loan details", value=True, key="statement_inc_loans")
        values["includeSavingsHistory"] = st.checkbox("Savings history", value=True, key="statement_inc_savings")
        values["includeExternalIncome"] = st.checkbox("External income", key="statement_inc_income")
        values["includeCredibilityScore"] = st.checkbox("Credibility score", key="statement_inc_score")
        values["deliveryMethod"] = _choice("Delivery", DELIVERY_METHODS, "statement_delivery", index=0)
        values["email"] = st.text_input("Email (email delivery)", key="statement_email")
        submitted = st.form_submit_button("Generate Statement")
    if not submitted:
        return None
    errors = validate_statement(values)
    if errors:
        show_errors(errors)
        return None
    request = StatementRequest.model_validate(values)
    if request.delivery_method == "email":
        st.success(f"Your statement will be emailed to {request.email}.")
        return request
    credibility = next((c for c in store.credibility if c.member_id == member.id), None)
    try:
        data, mime, name = export_statement(request, member, store.loans, store.savings, credibility)
    except ValueError as exc:
        st.error(str(exc))
        return None
    st.download_button("Download Statement", data=data, file_name=name, mime=mime, key="statement_download")
    return request


def render_expense_form(store, approver: str = ""):
    st.subheader("Record Expense")
    with st.form("expense_form"):
        c1, c2 = st.columns(2)
        values = {
            "category": c1.selectbox(
                "Category *", list(EXPENSE_CATEGORIES), index=None, format_func=EXPENSE_CATEGORIES.get,
                placeholder="Select...", key="expense_category",
            ),
            "amount": c2.number_input("Amount (UGX) *", min_value=0.0, value=None, step=10000.0, key="expense_amount"),
            "description": st.text_input("Description *", key="expense_description"),
            "date": c1.date_input("Date *", key="expense_date"),
            "vendor": c2.text_input("Vendor", key="expense_vendor"),
            "receiptNumber": c1.text_input("Receipt Number", key="expense_receipt_number"),
            "paymentMethod": c2.selectbox(
                "Payment Method", list(PAYMENT_METHODS), format_func=PAYMENT_METHODS.get, key="expense_payment_method"
            ),
            "approvedBy": st.text_input("Approved By *", value=approver, key="expense_approved_by"),
            "notes": st.text_area("Notes", key="expense_notes"),
        }
        upload = st.file_uploader("Receipt", type=["pdf", "jpg", "jpeg", "png"], key="expense_receipt")
        submitted = st.form_submit_button("Save Expense")
    if not submitted:
        return None
    errors = validate_expense(values)
    if errors:
        show_errors(errors)
        return None
    values["receipt"] = _file_ref(upload)
    expense = store.add_expense(ExpenseRequest.model_validate(values))
    st.success(f"Expense of {format_currency(expense.amount)} saved for approval.")
    return expense


# -- registry forms --------------------------------------------------------

INCOME_ROWS = 2
STEP_ROWS = 4
PAYROLL_FREQUENCIES = ["monthly", "bi_weekly", "weekly"]


def _index_of(options, value):
    keys = list(options)
    return keys.index(value) if value in keys else None


def render_member_registration_form(store):
    st.subheader("Register New Member")
    with st.form("member_registration_form"):
        st.markdown("**Personal Information**")
        c1, c2, c3 = st.columns(3)
        values = {
            "firstName": c1.text_input("First Name *", key="reg_first_name"),
            "middleName": c2.text_input("Middle Name", key="reg_middle_name"),
            "lastName": c3.text_input("Last Name *", key="reg_last_name"),
            "dateOfBirth": c1.date_input(
                "Date of Birth *", value=None, min_value=date(1900, 1, 1), max_value=date.today(), key="reg_dob"
            ),
            "gender": c2.selectbox(
                "Gender *", list(GENDERS), index=None, format_func=GENDERS.get, placeholder="Select...", key="reg_gender"
            ),
            "maritalStatus": c3.selectbox(
                "Marital Status", list(MARITAL_STATUSES), index=None, format_func=MARITAL_STATUSES.get,
                placeholder="Select...", key="reg_marital_status",
            ),
            "nationalId": c1.text_input("National ID *", key="reg_national_id"),
        }
        st.markdown("**Contact**")
        c1, c2 = st.columns(2)
        values.update(
            {
                "email": c1.text_input("Email *", key="reg_email"),
                "phone": c2.text_input("Phone Number *", key="reg_phone"),
                "alternatePhone": c1.text_input("Alternate Phone", key="reg_alt_phone"),
                "address": c2.text_input("Address *", key="reg_address"),
                "city": c1.text_input("City *", key="reg_city"),
                "district": c2.text_input("District", key="reg_district"),
                "country": c1.text_input("Country", value=DEFAULT_COUNTRY, key="reg_country"),
            }
        )
        st.markdown("**Employment**")
        c1, c2 = st.columns(2)
        values.update(
            {
                "occupation": c1.text_input("Occupation *", key="reg_occupation"),
                "employer": c2.text_input("Employer", key="reg_employer"),
                "monthlyIncome": c1.number_input(
                    "Monthly Income (UGX) *", min_value=0.0, value=None, step=10000.0, key="reg_monthly_income"
                ),
                "employmentStatus": c2.selectbox(
                    "Employment Status", list(EMPLOYMENT_STATUSES), index=None, format_func=EMPLOYMENT_STATUSES.get,
                    placeholder="Select...", key="reg_employment_status",
                ),
            }
        )
        st.markdown("**Emergency Contact**")
        c1, c2, c3 = st.columns(3)
        values.update(
            {
                "emergencyContactName": c1.text_input("Name *", key="reg_emergency_name"),
                "emergencyContactPhone": c2.text_input("Phone *", key="reg_emergency_phone"),
                "emergencyContactRelationship": c3.text_input("Relationship", key="reg_emergency_relationship"),
            }
        )
        st.markdown("**Membership**")
        c1, c2 = st.columns(2)
        values.update(
            {
                "membershipType": c1.selectbox(
                    "Membership Type", list(MEMBERSHIP_TYPES), format_func=MEMBERSHIP_TYPES.get, key="reg_membership_type"
                ),
                "organizationRole": c2.selectbox(
                    "Organization Role", list(ORGANIZATION_ROLES), index=_index_of(ORGANIZATION_ROLES, "member"),
                    format_func=ORGANIZATION_ROLES.get, key="reg_org_role",
                ),
                "initialDeposit": c1.number_input(
                    "Initial Deposit (UGX)", min_value=0.0, value=None, step=10000.0, key="reg_initial_deposit"
                ),
                "monthlyContribution": c2.number_input(
                    "Monthly Contribution (UGX)", min_value=0.0, value=None, step=10000.0, key="reg_monthly_contribution"
                ),
                "referredBy": c1.text_input("Referred By", key="reg_referred_by"),
            }
        )
        st.markdown("**Other Income Sources**")
        rows = []
        for i in range(INCOME_ROWS):
            c1, c2, c3, c4 = st.columns(4)
            rows.append(
                {
                    "source": c1.text_input(f"Source {i + 1}", key=f"reg_income_{i}_source"),
                    "amount": c2.number_input(
                        f"Amount {i + 1}", min_value=0.0, value=None, step=10000.0, key=f"reg_income_{i}_amount"
                    ),
                    "frequency": c3.selectbox(
                        f"Frequency {i + 1}", list(INCOME_FREQUENCIES), format_func=INCOME_FREQUENCIES.get,
                        key=f"reg_income_{i}_frequency",
                    ),
                    "category": c4.selectbox(
                        f"Category {i + 1}", list(INCOME_CATEGORIES), format_func=INCOME_CATEGORIES.get,
                        key=f"reg_income_{i}_category",
                    ),
                }
            )
        values["externalIncomes"] = rows
        submitted = st.form_submit_button("Register Member")
    if not submitted:
        return None
    errors = validate_member_registration(values)
    if errors:
        show_errors(errors)
        return None
    values["externalIncomes"] = [r for r in rows if r["source"].strip()]
    member = store.register_member(MemberRegistrationRequest.model_validate(values))
    st.success(f"{member.name} registered as {member.member_number} and sent for membership approval.")
    return member


def render_employee_form(store, employee=None):
    """Add an employee, or edit ``employee`` when one is given."""
    prefix = f"employee_{employee.id}" if employee else "employee_new"
    e = employee
    with st.form(f"{prefix}_form"):
        c1, c2, c3 = st.columns(3)
        values = {
            "firstName": c1.text_input("First Name *", value=e.first_name if e else "", key=f"{prefix}_first_name"),
            "middleName": c2.text_input("Middle Name", value=e.middle_name if e else "", key=f"{prefix}_middle_name"),
            "lastName": c3.text_input("Last Name *", value=e.last_name if e else "", key=f"{prefix}_last_name"),
            "email": c1.text_input("Email *", value=e.email if e else "", key=f"{prefix}_email"),
            "phone": c2.text_input("Phone *", value=e.phone if e else "", key=f"{prefix}_phone"),
            "nationalId": c3.text_input("National ID *", value=e.national_id if e else "", key=f"{prefix}_national_id"),
            "address": st.text_input("Address", value=e.address if e else "", key=f"{prefix}_address"),
        }
        c1, c2, c3 = st.columns(3)
        values.update(
            {
                "employeeNumber": c1.text_input(
                    "Employee Number *",
                    value=e.employee_number if e else f"EMP{len(store.employees) + 1:03d}",
                    key=f"{prefix}_number",
                ),
                "position": c2.text_input("Position *", value=e.position if e else "", key=f"{prefix}_position"),
                "department": c3.selectbox(
                    "Department *", DEPARTMENTS, index=DEPARTMENTS.index(e.department) if e and e.department in DEPARTMENTS else None,
                    placeholder="Select...", key=f"{prefix}_department",
                ),
                "employmentType": c1.selectbox(
                    "Employment Type", list(EMPLOYMENT_TYPES), index=_index_of(EMPLOYMENT_TYPES, e.employment_type if e else "full_time"),
                    format_func=EMPLOYMENT_TYPES.get, key=f"{prefix}_employment_type",
                ),
                "paymentType": c2.selectbox(
                    "Payment Type", list(PAYMENT_TYPES), index=_index_of(PAYMENT_TYPES, e.payment_type if e else "fixed_salary"),
                    format_func=PAYMENT_TYPES.get, key=f"{prefix}_payment_type",
                ),
                "status": c3.selectbox(
                    "Status", list(EMPLOYEE_STATUSES), index=_index_of(EMPLOYEE_STATUSES, e.status if e else "active"),
                    format_func=EMPLOYEE_STATUSES.get, key=f"{prefix}_status",
                ),
                "startDate": c1.date_input("Start Date *", value=e.start_date if e else None, key=f"{prefix}_start"),
                "endDate": c2.date_input("End Date", value=e.end_date if e else None, key=f"{prefix}_end"),
                "payrollFrequency": c3.selectbox(
                    "Payroll Frequency", PAYROLL_FREQUENCIES,
                    index=PAYROLL_FREQUENCIES.index(e.payroll_frequency) if e else 0,
                    format_func=pretty_label, key=f"{prefix}_payroll_frequency",
                ),
                "basicSalary": c1.number_input(
                    "Basic Salary (UGX)", min_value=0.0, value=e.basic_salary if e else None, step=10000.0,
                    key=f"{prefix}_basic_salary",
                ),
                "dailyRate": c2.number_input(
                    "Daily Rate (UGX)", min_value=0.0, value=e.daily_rate if e else None, step=1000.0,
                    key=f"{prefix}_daily_rate",
                ),
                "systemRole": c3.selectbox(
                    "System Access", list(SYSTEM_ROLES), index=_index_of(SYSTEM_ROLES, (e.system_role if e else None) or ""),
                    format_func=SYSTEM_ROLES.get, key=f"{prefix}_system_role",
                ),
            }
        )
        c1, c2, c3 = st.columns(3)
        values.update(
            {
                "emergencyContactName": c1.text_input(
                    "Emergency Contact *", value=e.emergency_contact_name if e else "", key=f"{prefix}_emergency_name"
                ),
                "emergencyContactPhone": c2.text_input(
                    "Emergency Phone *", value=e.emergency_contact_phone if e else "", key=f"{prefix}_emergency_phone"
                ),
                "emergencyContactRelationship": c3.text_input(
                    "Relationship", value=e.emergency_contact_relationship if e else "",
                    key=f"{prefix}_emergency_relationship",
                ),
            }
        )
        submitted = st.form_submit_button("Update Employee" if e else "Add Employee")
    if not submitted:
        return None
    errors = validate_employee(values)
    if errors:
        show_errors(errors)
        return None
    fields = EmployeeRequest.model_validate(values).employee_fields()
    if e:
        saved = store.update_employee(e.id, **fields)
        st.success(f"{saved.full_name} updated.")
        return saved
    try:
        saved = store.add_employee(fields)
    except ValueError as exc:
        st.error(str(exc))
        return None
    st.success(f"{saved.full_name} added as {saved.employee_number}.")
    return saved


def render_income_form(store, entry=None):
    """Record another income source for a member, or edit ``entry``."""
    prefix = f"income_{entry.id}" if entry else "income_new"
    members = {m.id: f"{m.name} ({m.member_number})" for m in store.members}
    with st.form(f"{prefix}_form"):
        c1, c2 = st.columns(2)
        values = {
            "memberId": c1.selectbox(
                "Member *", list(members), index=_index_of(members, entry.member_id if entry else None),
                format_func=members.get, placeholder="Select...", key=f"{prefix}_member",
            ),
            "source": c2.text_input("Income Source *", value=entry.source if entry else "", key=f"{prefix}_source"),
            "amount": c1.number_input(
                "Amount (UGX) *", min_value=0.0, value=entry.amount if entry else None, step=10000.0,
                key=f"{prefix}_amount",
            ),
            "frequency": c2.selectbox(
                "Frequency", list(INCOME_FREQUENCIES), index=_index_of(INCOME_FREQUENCIES, entry.frequency if entry else "monthly"),
                format_func=INCOME_FREQUENCIES.get, key=f"{prefix}_frequency",
            ),
            "category": c1.selectbox(
                "Category *", list(INCOME_CATEGORIES), index=_index_of(INCOME_CATEGORIES, entry.category if entry else None),
                format_func=INCOME_CATEGORIES.get, placeholder="Select...", key=f"{prefix}_category",
            ),
            "description": st.text_area("Description", value=entry.description if entry else "", key=f"{prefix}_description"),
        }
        uploads = st.file_uploader(
            "Supporting Documents", type=["pdf", "jpg", "jpeg", "png"], accept_multiple_files=True, key=f"{prefix}_documents"
        )
        submitted = st.form_submit_button("Update Income" if entry else "Add Income")
    if not submitted:
        return None
    errors = validate_income(values)
    if errors:
        show_errors(errors)
        return None
    values["supportingDocuments"] = [_file_ref(u) for u in uploads or []]
    request = IncomeRequest.model_validate(values)
    fields = request.entry_fields(store.member(request.member_id).name)
    if entry:
        if not fields["supporting_documents"]:
            fields["supporting_documents"] = entry.supporting_documents
        saved = store.update_other_income(entry.id, **fields)
        st.success(f"{saved.source} updated.")
    else:
        saved = store.add_other_income(fields)
        st.success(f"{saved.source} recorded for {saved.member_name} and awaiting verification.")
    return saved


def render_approval_config_form(store):
    """Edit the active approval workflow of one request type."""
    kind = st.selectbox(
        "Request Type", list(APPROVAL_TYPES), format_func=APPROVAL_TYPES.get, key="approval_config_type"
    )
    current = store.approval_config(kind)
    steps = sorted(current.steps, key=lambda s: s.level) if current else []
    prefix = f"approval_config_{kind}"
    with st.form(f"{prefix}_form"):
        values = {
            "type": kind,
            "name": st.text_input("Workflow Name *", value=current.name if current else "", key=f"{prefix}_name"),
            "description": st.text_area(
                "Description *", value=current.description if current else "", key=f"{prefix}_description"
            ),
            "is_active": st.checkbox("Active", value=True, key=f"{prefix}_active"),
        }
        st.caption("Leave a step's title and role empty to drop it. Amount limits are optional.")
        rows = []
        for i in range(STEP_ROWS):
            step = steps[i] if i < len(steps) else None
            c1, c2, c3, c4 = st.columns(4)
            rows.append(
                {
                    "title": c1.text_input(f"Step {i + 1} Title", value=step.title if step else "", key=f"{prefix}_step_{i}_title"),
                    "role": c2.selectbox(
                        f"Step {i + 1} Approver", list(APPROVER_ROLES), index=_index_of(APPROVER_ROLES, step.role if step else None),
                        format_func=APPROVER_ROLES.get, placeholder="Select...", key=f"{prefix}_step_{i}_role",
                    ),
                    "min_amount": c3.number_input(
                        "Min Amount", min_value=0.0, value=step.min_amount if step else None, step=100000.0,
                        key=f"{prefix}_step_{i}_min",
                    ),
                    "max_amount": c4.number_input(
                        "Max Amount", min_value=0.0, value=step.max_amount if step else None, step=100000.0,
                        key=f"{prefix}_step_{i}_max",
                    ),
                }
            )
        values["steps"] = [r for r in rows if r["title"].strip() or r["role"]]
        submitted = st.form_submit_button("Save Workflow")
    if not submitted:
        return None
    errors = validate_approval_config(values)
    if errors:
        show_errors(errors)
        return None
    if current:
        values["id"] = current.id
    config = store.save_approval_config(values)
    st.success(f"{config.name} saved with {len(config.steps)} steps.")
    return config
