import pandas as pd
import streamlit as st

from core.utils import format_currency, pretty_label
from sacco.calculators import (
    active_payroll_total,
    average_credibility,
    expense_totals,
    external_income_monthly,
    loan_totals,
    member_totals,
    other_income_summary,
    to_frame,
)
from sacco.presets import APPROVER_ROLES
from ui.components import metric_row
from ui.forms import (
    render_approval_config_form,
    render_deposit_form,
    render_employee_form,
    render_expense_form,
    render_income_form,
    render_member_registration_form,
    render_statement_form,
    render_withdrawal_form,
)
from ui.loan_wizard import FLASH_KEY, WIZARD_KEY, open_loan_wizard, render_loan_wizard
from ui.notifications import SERVICE_KEY, render_notification_center
from ui.settings import SETTINGS_KEY, render_settings


def _pending_approvals(store):
    return [a for a in store.approvals if a.status == "pending"]


def _cash_flow_chart(store):
    df = to_frame(store.cash_flow, ["date", "inflow", "outflow", "net_flow"])
    if not df.empty:
        st.line_chart(df.set_index("date")[["inflow", "outflow", "net_flow"]])


def render_overview(store):
    """Headline figures shared by the admin and auditor views."""
    members = member_totals(store.members)
    loans = loan_totals(store.loans)
    metric_row(
        {
            "Total Members": members["total_members"],
            "Total Savings": members["total_savings"],
            "Active Loans": loans["active_loans"],
            "Pending Approvals": len(_pending_approvals(store)),
        }
    )
    other = other_income_summary(store.other_incomes)
    metric_row(
        {
            "Total Loan Amount": loans["total_loans"],
            "External Income (monthly)": external_income_monthly(store.members),
            "Verified Other Income (monthly)": other["verified_monthly"],
            "Avg Credibility": f"{average_credibility(store.credibility):.1f}",
        }
    )


# -- admin -----------------------------------------------------------------


def _remark(approval) -> str:
    # read at click time so text typed just before the click is kept
    return st.session_state.get(f"approval_remark_{approval.id}", "").strip()


def _approve(store, approval):
    store.approve_item(approval.id, approval.type, _remark(approval))


def _reject(store, approval):
    store.reject_item(approval.id, approval.type, _remark(approval))


def _render_approvals(store):
    pending = _pending_approvals(store)
    if not pending:
        st.caption("No pending approvals.")
    for a in pending:
        with st.expander(f"{pretty_label(a.type)}: {a.applicant_name}"):
            st.write(a.description)
            if a.amount:
                st.caption(f"Amount: {format_currency(a.amount)}")
            step = store.current_step(a)
            stage = f"level {a.level} of {a.max_level}"
            if step is not None:
                stage += f": {step.title} ({APPROVER_ROLES.get(step.role, pretty_label(step.role))})"
            st.caption(f"Submitted {a.submitted_date.isoformat()} · {stage}")
            for d in a.history:
                note = f" ({d.remark})" if d.remark else ""
                st.caption(f"Level {d.level} {d.action} by {d.decided_by} on {d.decided_at:%d/%m/%Y}{note}")
            st.text_input("Remark", key=f"approval_remark_{a.id}")
            c1, c2 = st.columns(2)
            label = "Approve" if a.level >= a.max_level else "Endorse"
            c1.button(label, key=f"approve_{a.id}", on_click=_approve, args=(store, a))
            c2.button("Reject", key=f"reject_{a.id}", on_click=_reject, args=(store, a))


def _render_members(store):
    df = to_frame(store.members)
    if df.empty:
        st.caption("No members.")
    else:
        cols = ["member_number", "name", "email", "status", "savings_balance", "total_loans", "credibility_score"]
        st.dataframe(df[cols], hide_index=True, width="stretch")
    with st.expander("Register new member"):
        render_member_registration_form(store)
    if not store.members:
        return
    with st.expander("Update member status"):
        ids = [m.id for m in store.members]
        names = {m.id: f"{m.member_number} {m.name}" for m in store.members}
        member_id = st.selectbox("Member", ids, format_func=names.get, key="member_status_id")
        status = st.selectbox("Status", ["pending", "active", "suspended", "inactive"], key="member_status_value")
        if st.button("Save Status", key="member_status_save"):
            store.update_member(member_id, status=status)
            st.success(f"{names[member_id]} is now {status}.")


def _render_expenses(store, user):
    totals = expense_totals(store.expenses)
    if not totals.empty:
        st.bar_chart(totals.set_index("category"))
    df = to_frame(store.expenses)
    if not df.empty:
        st.dataframe(df.drop(columns=["id"]), hide_index=True, width="stretch")
    render_expense_form(store, approver=user.name)


def _render_other_income(store):
    summary = other_income_summary(store.other_incomes)
    metric_row(
        {
            "Verified (monthly)": summary["verified_monthly"],
            "Verified Entries": summary["verified_count"],
            "Pending Entries": summary["pending_count"],
        }
    )
    with st.expander("Add income source"):
        render_income_form(store)
    if store.other_incomes:
        with st.expander("Edit income source"):
            labels = {e.id: f"{e.member_name}: {e.source}" for e in store.other_incomes}
            entry_id = st.selectbox("Entry", list(labels), format_func=labels.get, key="other_income_edit_id")
            render_income_form(store, next(e for e in store.other_incomes if e.id == entry_id))
    for e in store.other_incomes:
        with st.expander(f"{e.member_name}: {e.source} ({pretty_label(e.status)})"):
            st.caption(f"{format_currency(e.amount)} {e.frequency} · {pretty_label(e.category)}")
            if e.description:
                st.write(e.description)
            if e.rejection_reason:
                st.caption(f"Rejected: {e.rejection_reason}")
            if e.status != "pending":
                continue
            reason = st.text_input("Rejection reason", key=f"other_income_reason_{e.id}")
            c1, c2, c3 = st.columns(3)
            c1.button("Verify", key=f"verify_income_{e.id}", on_click=store.verify_other_income, args=(e.id,))
            if c2.button("Reject", key=f"reject_income_{e.id}"):
                if reason.strip():
                    store.reject_other_income(e.id, reason.strip())
                    st.rerun()
                st.error("A reason is required to reject an income entry.")
            c3.button("Delete", key=f"delete_income_{e.id}", on_click=store.delete_other_income, args=(e.id,))


def _render_payroll(store):
    st.metric("Active Payroll (basic)", format_currency(active_payroll_total(store.employees)))
    rows = [
        {
            "Number": e.employee_number,
            "Name": e.full_name,
            "Position": e.position,
            "Department": e.department,
            "Status": e.status,
            "Basic Salary": e.basic_salary,
        }
        for e in store.employees
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")
    with st.expander("Add employee"):
        render_employee_form(store)
    if store.employees:
        with st.expander("Edit employee"):
            names = {e.id: f"{e.employee_number} {e.full_name}" for e in store.employees}
            employee_id = st.selectbox("Employee", list(names), format_func=names.get, key="employee_edit_id")
            render_employee_form(store, next(e for e in store.employees if e.id == employee_id))
    period = st.text_input("Payroll period (YYYY-MM or current)", value="current", key="payroll_period")
    if st.button("Generate Payroll", key="payroll_generate"):
        records = store.generate_payroll(period.strip() or "current")
        st.success(f"Generated {len(records)} draft payroll records.")
    if store.payroll:
        st.dataframe(to_frame(store.payroll).drop(columns=["id", "employee_id"]), hide_index=True, width="stretch")


def _render_workflows(store):
    for config in store.approval_configs:
        if not config.is_active:
            continue
        with st.container(border=True):
            st.markdown(f"**{config.name}** ({pretty_label(config.type)})")
            for s in sorted(config.steps, key=lambda s: s.level):
                limits = ""
                if s.min_amount is not None or s.max_amount is not None:
                    low = format_currency(s.min_amount) if s.min_amount is not None else "any"
                    high = format_currency(s.max_amount) if s.max_amount is not None else "any"
                    limits = f" · {low} to {high}"
                st.caption(f"{s.level}. {s.title}: {APPROVER_ROLES.get(s.role, pretty_label(s.role))}{limits}")
    render_approval_config_form(store)


def render_admin_dashboard(store, user):
    st.header("Admin Dashboard")
    render_overview(store)
    tabs = st.tabs(
        ["Approvals", "Members", "Expenses", "Other Income", "Payroll", "Workflows", "Notifications", "Settings", "Cash Flow"]
    )
    with tabs[0]:
        _render_approvals(store)
    with tabs[1]:
        _render_members(store)
    with tabs[2]:
        _render_expenses(store, user)
    with tabs[3]:
        _render_other_income(store)
    with tabs[4]:
        _render_payroll(store)
    with tabs[5]:
        _render_workflows(store)
    with tabs[6]:
        service = st.session_state.get(SERVICE_KEY)
        if service is None:
            st.caption("Notifications are not configured.")
        else:
            render_notification_center(store, service)
    with tabs[7]:
        settings = st.session_state.get(SETTINGS_KEY)
        if settings is None:
            st.caption("Settings are not available.")
        else:
            render_settings(settings, user.name)
    with tabs[8]:
        _cash_flow_chart(store)


# -- member ----------------------------------------------------------------


def render_member_dashboard(store, user):
    member = store.member_for(user)
    st.header(f"Welcome, {user.name}")
    if member is None:
        st.info("No member record is linked to this account yet.")
        return
    metric_row(
        {
            "Savings Balance": member.savings_balance,
            "Outstanding Loans": member.total_loans,
            "Credibility Score": member.credibility_score,
            "Member Since": member.join_date.isoformat(),
        }
    )
    flash = st.session_state.pop(FLASH_KEY, None)
    if flash:
        st.success(flash)
    wizard = st.session_state.get(WIZARD_KEY)
    if wizard is not None:
        with st.container(border=True):
            st.markdown("### Loan Application")
            render_loan_wizard(wizard)
    else:
        st.button("Apply for Loan", key="open_loan_wizard", on_click=open_loan_wizard, args=(store, member))

    tabs = st.tabs(["My Loans", "My Savings", "Deposit", "Withdraw", "Statement"])
    with tabs[0]:
        loans = [l for l in store.loans if l.member_id == member.id]
        if loans:
            st.dataframe(
                to_frame(loans)[["purpose", "amount", "interest_rate", "term", "monthly_payment", "remaining_balance", "status"]],
                hide_index=True,
                width="stretch",
            )
        else:
            st.caption("No loans yet.")
    with tabs[1]:
        savings = [s for s in store.savings if s.member_id == member.id]
        if savings:
            st.dataframe(to_frame(savings)[["date", "type", "amount", "description", "status"]], hide_index=True, width="stretch")
        if member.monthly_savings_flow:
            flow = to_frame(member.monthly_savings_flow).set_index("month")
            st.bar_chart(flow[["deposits", "withdrawals"]])
    with tabs[2]:
        render_deposit_form(store, member)
    with tabs[3]:
        render_withdrawal_form(store, member)
    with tabs[4]:
        render_statement_form(store, member)


# -- auditor ---------------------------------------------------------------


def render_auditor_dashboard(store, user):
    st.header("Auditor Dashboard")
    render_overview(store)
    total_expenses = float(expense_totals(store.expenses)["amount"].sum()) if store.expenses else 0.0
    st.metric("Total Expenses", format_currency(total_expenses))
    tabs = st.tabs(["Audit Trail", "Credibility", "Cash Flow"])
    with tabs[0]:
        entries = store.audit.as_dict()
        if entries:
            st.dataframe(pd.DataFrame(entries), hide_index=True, width="stretch")
        else:
            st.caption("No changes recorded in this session.")
    with tabs[1]:
        df = to_frame(store.credibility)
        if not df.empty:
            st.dataframe(df.sort_values("score", ascending=False), hide_index=True, width="stretch")
    with tabs[2]:
        _cash_flow_chart(store)


DASHBOARDS = {
    "admin": render_admin_dashboard,
    "approval_officer": render_admin_dashboard,
    "member": render_member_dashboard,
    "auditor": render_auditor_dashboard,
}


def dashboard_for(role: str):
    """View for ``role``; roles without their own dashboard get the admin one."""
    return DASHBOARDS.get(role, render_admin_dashboard)
