"""
Streamlit Expense Auditor Dashboard

Run:    streamlit run ui/streamlit_app.py

Three views share one expense list kept in st.session_state:
 - Employee Dashboard: submit an expense, follow validation progress, browse recent expenses
 - Manager Review: queue of flagged expenses, approve/reject with a rationale
 - Audit Log: filterable history with CSV and HTML export

Agents are reached through agents/agent_client.py. The mock provider is the
default; set AGENT_GATEWAY_PROVIDER=remote and AGENT_GATEWAY_URL to use a real
gateway (or run `uvicorn mock_agents.app:app --port 8100`).
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import streamlit as st

# Ensure project root on sys.path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from agents.agent_client import AgentGatewayClient
from expense_flow.config import load_settings
from expense_flow.filters import (
    audit_filter,
    filter_by_status,
    pending_expenses,
    render_audit_html,
    to_csv,
    to_dataframe,
)
from expense_flow.logger_config import DASHBOARD_LOGGER
from expense_flow.schemas import ExpenseForm
from expense_flow.state import VIEWS, init_session_state
from expense_flow.store import build_store
from expense_flow.work_flow import (
    STAGES_COMPLETE,
    VALIDATION_STAGES,
    can_decide,
    process_decision,
    submit_expense,
)
from ui.formatting import (
    MAX_RECEIPT_BYTES,
    RECEIPT_TYPES,
    as_percent,
    file_to_data_uri,
    format_currency,
    format_date,
    risk_badge,
    status_badge,
)

STATUS_FILTERS = ["all", "pending", "reviewing", "approved", "rejected"]
RECOMMENDATION_ICONS = {"AUTO_APPROVE": "✅", "MANAGER_REVIEW": "🕒"}

st.set_page_config(page_title="Expense Auditor", layout="wide")


@st.cache_resource
def get_settings():
    return load_settings()


@st.cache_resource
def get_client():
    s = get_settings()
    return AgentGatewayClient(s.gateway, s.agents)


settings = get_settings()
client = get_client()

init_session_state(st.session_state)
if "expense_store" not in st.session_state:
    st.session_state["expense_store"] = build_store(settings.store)
store = st.session_state["expense_store"]


# Helper utilities
def current_form() -> ExpenseForm:
    d = st.session_state.get("expense_date")
    return ExpenseForm(
        vendor=st.session_state.get("expense_vendor", ""),
        amount=st.session_state.get("expense_amount", ""),
        date=d.isoformat() if d else "",
        category=st.session_state.get("expense_category", settings.submission.categories[0]),
    )


def render_progress(placeholder, stage: int):
    with placeholder.container(border=True):
        st.markdown("**Validation Progress**")
        for idx, s in enumerate(VALIDATION_STAGES):
            if idx < stage:
                st.markdown(f":green[✔ {s.name}]")
            elif idx == stage:
                st.markdown(f":blue[⏳ **{s.name}**] {s.message}")
            else:
                st.markdown(f":gray[○ {s.name}]")
        st.progress(min(stage, STAGES_COMPLETE) / STAGES_COMPLETE)


def render_validation_result(result):
    summary = result.validation_summary
    icon = RECOMMENDATION_ICONS.get(result.final_recommendation, "❌")
    with st.container(border=True):
        st.subheader(f"{icon} Validation Complete")
        c1, c2 = st.columns(2)
        c1.markdown(f"Overall Status: {status_badge(summary.overall_status)}")
        c2.markdown(f"Risk Level: {risk_badge(summary.risk_level)}")
        st.markdown("**Confidence Score**")
        st.progress(max(0.0, min(summary.confidence_score, 1.0)), text=as_percent(summary.confidence_score))
        st.markdown("**Recommendation**")
        st.write(result.recommendation_reasoning or "No reasoning provided.")
        if result.required_actions:
            st.markdown("**Required Actions**")
            for action in result.required_actions:
                st.markdown(f"- ⚠️ {action}")


def render_expense_details(record):
    v = record.validation_result
    if v is None:
        st.caption("No validation details recorded.")
        return
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Fraud Analysis**")
        st.write(f"Score: {as_percent(v.fraud_analysis.fraud_score)}")
        st.write(f"Flags: {v.fraud_analysis.flags_count}")
    with c2:
        st.markdown("**Policy Compliance**")
        st.write(f"Status: {'Compliant' if v.policy_compliance.compliant else 'Non-Compliant'}")
        st.write(f"Violations: {v.policy_compliance.violations_count}")
    st.markdown("**Recommendation**")
    st.write(v.recommendation_reasoning or "-")


# Callbacks (run before the next script pass)
def start_submission():
    st.session_state["is_validating"] = True
    st.session_state["validation_error"] = None
    st.session_state["validation_result"] = None
    st.session_state["validation_stage"] = 0


def select_expense(expense_id: str):
    st.session_state["selected_expense_id"] = expense_id
    st.session_state["approval_result"] = None
    st.session_state["decision_error"] = None


def handle_decision(decision: str):
    record = store.get(st.session_state.get("selected_expense_id"))
    if record is None:
        return
    st.session_state["is_processing_approval"] = True
    st.session_state["approval_result"] = None
    st.session_state["decision_error"] = None
    try:
        outcome = process_decision(
            record,
            decision,
            st.session_state.get("manager_rationale", ""),
            client,
            store,
            settings.agents.manager_approval,
        )
    finally:
        st.session_state["is_processing_approval"] = False

    if outcome.clear_rationale:
        st.session_state["manager_rationale"] = ""
    if outcome.ok:
        st.session_state["approval_result"] = outcome.result
    else:
        st.session_state["decision_error"] = outcome.error


# Sidebar: navigation
with st.sidebar:
    st.header("Expense Auditor")
    st.caption("Automated validation platform")
    pending_count = len(pending_expenses(store.all()))
    view_labels = {
        "employee": "🏠 Employee Dashboard",
        "manager": f"🛡️ Manager Review ({pending_count})" if pending_count else "🛡️ Manager Review",
        "audit": "📋 Audit Log",
    }
    st.radio("View", VIEWS, key="current_view", format_func=view_labels.get)
    st.markdown("---")
    st.caption(f"Agent gateway: {client.provider}")


def render_employee_dashboard():
    left, right = st.columns(2)

    with left:
        with st.container(border=True):
            st.subheader("Submit New Expense")
            st.caption("Upload receipt and fill in expense details")

            uploaded = st.file_uploader("Receipt Document", type=RECEIPT_TYPES, key="receipt_file",
                                        help="PDF, PNG, JPG, GIF up to 10MB")
            if uploaded is not None:
                if uploaded.size > MAX_RECEIPT_BYTES:
                    st.error("Receipt exceeds the 10MB limit.")
                    st.session_state["receipt_preview"] = None
                else:
                    preview = file_to_data_uri(uploaded.getvalue(), uploaded.type)
                    st.session_state["receipt_preview"] = preview
                    if uploaded.type == "application/pdf":
                        st.info("📄 PDF Receipt Uploaded")
                    else:
                        st.image(uploaded.getvalue(), width=240)
                    st.caption("Receipt uploaded successfully")
            else:
                st.session_state["receipt_preview"] = None

            st.markdown("---")
            validating = st.session_state["is_validating"]
            st.text_input("Vendor Name", key="expense_vendor", placeholder="e.g., Starbucks Coffee", disabled=validating)
            st.text_input("Amount", key="expense_amount", placeholder="0.00", disabled=validating)
            st.date_input("Date", value=None, key="expense_date", disabled=validating)
            st.selectbox("Category", settings.submission.categories, key="expense_category", disabled=validating)

            form = current_form()
            st.button(
                "Validating..." if validating else "Submit Expense",
                key="submit_expense",
                type="primary",
                width="stretch",
                disabled=validating or not form.can_submit,
                on_click=start_submission,
            )

        progress_slot = st.empty()
        if st.session_state["is_validating"]:
            def on_stage(idx: int):
                st.session_state["validation_stage"] = idx
                if idx < STAGES_COMPLETE:
                    render_progress(progress_slot, idx)

            try:
                outcome = submit_expense(
                    form,
                    client,
                    store,
                    agent_id=settings.agents.expense_validation_coordinator,
                    employee=settings.submission.employee_name,
                    receipt_image=st.session_state.get("receipt_preview"),
                    on_stage=on_stage,
                    delay_scale=settings.submission.stage_delay_scale,
                )
                st.session_state["validation_result"] = outcome.result
                st.session_state["validation_error"] = outcome.error
            finally:
                st.session_state["is_validating"] = False
            st.rerun()

        if st.session_state["validation_result"] is not None:
            render_validation_result(st.session_state["validation_result"])

        if st.session_state["validation_error"]:
            st.error(f"**Validation Error**\n\n{st.session_state['validation_error']}")

    with right:
        with st.container(border=True):
            head, flt = st.columns([3, 2])
            head.subheader("Recent Expenses")
            flt.selectbox("Status", STATUS_FILTERS, key="status_filter",
                          format_func=str.capitalize, label_visibility="collapsed")
            records = filter_by_status(store.all(), st.session_state["status_filter"])
            if not records:
                st.info("No expenses yet. Submit your first expense to get started.")
            for r in records:
                label = f"{r.id} | {format_date(r.date)} | {r.vendor} | {format_currency(r.amount)}"
                with st.expander(label):
                    st.markdown(f"{r.category} · {status_badge(r.status)} · {risk_badge(r.risk_score)}")
                    render_expense_details(r)


def render_manager_review():
    left, right = st.columns([1, 2])
    queue = pending_expenses(store.all())

    with left:
        with st.container(border=True):
            st.subheader("Review Queue")
            st.caption(f"{len(queue)} items pending")
            if not queue:
                st.success("All caught up! No expenses pending review.")
            for r in queue:
                selected = r.id == st.session_state.get("selected_expense_id")
                st.button(
                    f"{r.employee} · {r.id}\n\n{r.vendor} · {format_currency(r.amount)} · {r.risk_score} risk",
                    key=f"select_{r.id}",
                    type="primary" if selected else "secondary",
                    width="stretch",
                    on_click=select_expense,
                    args=(r.id,),
                )

    with right:
        record = store.get(st.session_state.get("selected_expense_id") or "")
        if record is None:
            st.info("No Expense Selected. Select an expense from the queue to review.")
            return

        with st.container(border=True):
            st.subheader(f"Expense Review - {record.id}")
            st.caption(f"Submitted by {record.employee} · {status_badge(record.status)} · {risk_badge(record.risk_score)}")
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Vendor", record.vendor)
            c2.metric("Category", record.category)
            c3.metric("Amount", format_currency(record.amount))
            c4.metric("Date", format_date(record.date))

            if record.receipt_image and record.receipt_image.startswith("data:image"):
                with st.expander("Receipt image"):
                    st.image(record.receipt_image)

            v = record.validation_result
            if v is not None:
                t_receipt, t_fraud, t_policy, t_elig = st.tabs(["Receipt Data", "Fraud Analysis", "Policy Check", "Eligibility"])
                with t_receipt:
                    st.markdown(f"Extraction Status: {'✅ Success' if v.receipt_data.extracted_successfully else '❌ Failed'}")
                    r1, r2, r3 = st.columns(3)
                    r1.write(f"Vendor: {v.receipt_data.vendor or '-'}")
                    r2.write(f"Amount: {format_currency(v.receipt_data.amount)}")
                    r3.write(f"Date: {v.receipt_data.date or '-'}")
                with t_fraud:
                    st.markdown(f"Fraud Risk: {'🚨 Detected' if v.fraud_analysis.fraud_detected else '✅ Clear'}")
                    st.progress(max(0.0, min(v.fraud_analysis.fraud_score, 1.0)), text=f"Fraud Score {as_percent(v.fraud_analysis.fraud_score)}")
                    if v.fraud_analysis.flags_count > 0:
                        st.warning(f"{v.fraud_analysis.flags_count} fraud indicators detected")
                    else:
                        st.success("No fraud indicators detected")
                with t_policy:
                    st.markdown(f"Compliance Status: {'Compliant' if v.policy_compliance.compliant else 'Non-Compliant'}")
                    if v.policy_compliance.violations_count > 0:
                        critical = " (critical)" if v.policy_compliance.critical_violations else ""
                        st.warning(f"{v.policy_compliance.violations_count} policy violations found{critical}")
                    else:
                        st.success("No policy violations")
                with t_elig:
                    st.markdown(f"Eligibility Status: {'Eligible' if v.employee_eligibility.eligible else 'Not Eligible'}")
                    if v.employee_eligibility.restrictions > 0:
                        st.warning(f"{v.employee_eligibility.restrictions} eligibility restrictions")
                    else:
                        st.success("No eligibility restrictions")

            st.markdown("---")
            st.text_area("Decision Rationale", key="manager_rationale", height=100,
                         placeholder="Explain the reason for your decision...")
            allowed = can_decide(record, st.session_state.get("manager_rationale", ""),
                                 st.session_state["is_processing_approval"])
            a, b = st.columns(2)
            a.button("Approve", key="approve_expense", type="primary", width="stretch", disabled=not allowed,
                     on_click=handle_decision, args=("approve",))
            b.button("Reject", key="reject_expense", width="stretch", disabled=not allowed,
                     on_click=handle_decision, args=("reject",))

            approval = st.session_state.get("approval_result")
            if approval is not None:
                lines = [f"Expense {approval.expense_status}"]
                reimb = approval.reimbursement_details
                if reimb is not None:
                    lines.append(f"Reimbursement: {format_currency(reimb.amount)}")
                    lines.append(f"Reference: {reimb.reference_number}")
                    lines.append(f"Processing: {reimb.expected_processing_days} business days")
                st.success("  \n".join(lines))

            if settings.ui.surface_decision_errors and st.session_state.get("decision_error"):
                st.error(st.session_state["decision_error"])


def render_audit_log():
    with st.container(border=True):
        st.subheader("Audit Log")
        st.caption("Complete expense transaction history")
        f1, f2, f3, f4 = st.columns(4)
        f1.date_input("Date From", value=None, key="audit_date_from")
        f2.date_input("Date To", value=None, key="audit_date_to")
        f3.text_input("Employee", key="audit_employee", placeholder="Search employee...")
        f4.selectbox("Status", STATUS_FILTERS, key="audit_status",
                     format_func=lambda s: "All Statuses" if s == "all" else s.capitalize())

        rows = audit_filter(
            store.all(),
            date_from=st.session_state["audit_date_from"],
            date_to=st.session_state["audit_date_to"],
            employee=st.session_state["audit_employee"],
            status=st.session_state["audit_status"],
        )

        generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        e1, e2, _ = st.columns([1, 1, 3])
        e1.download_button("Export CSV", data=to_csv(rows), file_name="expense_audit.csv", mime="text/csv")
        e2.download_button("Export HTML", data=render_audit_html(rows, generated_at),
                           file_name="expense_audit.html", mime="text/html")

        if not rows:
            st.info("No audit records. Expense transactions will appear here.")
        else:
            st.dataframe(
                to_dataframe(rows),
                width="stretch",
                hide_index=True,
                column_config={
                    "Amount": st.column_config.NumberColumn(format="$%.2f"),
                    "Timestamp": st.column_config.DatetimeColumn(format="YYYY-MM-DD HH:mm"),
                },
            )


view = st.session_state["current_view"]
DASHBOARD_LOGGER.debug(f"UI: render | view={view} records={len(store)}")
if view == "manager":
    st.title("Manager Review Queue")
    render_manager_review()
elif view == "audit":
    st.title("Audit Log")
    render_audit_log()
else:
    st.title("Employee Dashboard")
    render_employee_dashboard()
