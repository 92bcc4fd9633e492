from typing import Any, Dict, Literal, MutableMapping, Optional, TypedDict

from expense_flow.schemas import ApprovalResult, ValidationResult

View = Literal["employee", "manager", "audit"]
VIEWS = ("employee", "manager", "audit")


# Define the structure of the view state kept between Streamlit reruns
class DashboardState(TypedDict):
    """
    Represents the dashboard's view state. Lives in st.session_state and is
    lost when the browser session ends.
    """
    # Navigation
    current_view: View

    # Employee dashboard
    receipt_preview: Optional[str]   # data URI of the uploaded receipt
    is_validating: bool
    validation_stage: int
    validation_result: Optional[ValidationResult]
    validation_error: Optional[str]
    status_filter: str

    # Manager review
    selected_expense_id: Optional[str]
    manager_rationale: str
    is_processing_approval: bool
    approval_result: Optional[ApprovalResult]
    decision_error: Optional[str]

    # Audit log
    audit_date_from: Any
    audit_date_to: Any
    audit_employee: str
    audit_status: str


def default_state() -> DashboardState:
    return DashboardState(
        current_view="employee",
        receipt_preview=None,
        is_validating=False,
        validation_stage=0,
        validation_result=None,
        validation_error=None,
        status_filter="all",
        selected_expense_id=None,
        manager_rationale="",
        is_processing_approval=False,
        approval_result=None,
        decision_error=None,
        audit_date_from=None,
        audit_date_to=None,
        audit_employee="",
        audit_status="all",
    )


def init_session_state(session: MutableMapping[str, Any]) -> None:
    """Fill in any missing keys without touching values already set."""
    defaults: Dict[str, Any] = dict(default_state())
    for key, value in defaults.items():
        if key not in session:
            session[key] = value
