# expense_flow/schemas.py

from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

ExpenseStatus = Literal["pending", "reviewing", "approved", "rejected"]
FinalRecommendation = Literal["AUTO_APPROVE", "MANAGER_REVIEW", "reject"]


class AgentPayload(BaseModel):
    """
    Agent payloads are kept verbatim and only read for display. A field
    that is null or of an unexpected type falls back to its default; only
    required fields can fail validation. Unknown keys survive.
    """
    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_bad_value(cls, value: Any, handler, info: ValidationInfo):
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise
            return field.get_default(call_default_factory=True)


# --- Expense Validation Coordinator response ---

class ValidationSummary(AgentPayload):
    overall_status: str = "unknown"
    confidence_score: float = 0.0
    risk_level: str = "unknown"


class ReceiptDataSummary(AgentPayload):
    vendor: Optional[str] = None
    amount: Optional[float] = None
    date: Optional[str] = None
    extracted_successfully: bool = False


class FraudAnalysisSummary(AgentPayload):
    fraud_detected: bool = False
    fraud_score: float = 0.0
    flags_count: int = 0


class PolicyComplianceSummary(AgentPayload):
    compliant: bool = False
    violations_count: int = 0
    critical_violations: bool = False


class EmployeeEligibilitySummary(AgentPayload):
    eligible: bool = False
    restrictions: int = 0


class ApprovalWorkflow(AgentPayload):
    requires_manager_approval: bool = False
    required_approval_level: Optional[str] = None
    auto_approvable: bool = False


class ValidationResult(AgentPayload):
    validation_summary: ValidationSummary = Field(default_factory=ValidationSummary)
    receipt_data: ReceiptDataSummary = Field(default_factory=ReceiptDataSummary)
    fraud_analysis: FraudAnalysisSummary = Field(default_factory=FraudAnalysisSummary)
    policy_compliance: PolicyComplianceSummary = Field(default_factory=PolicyComplianceSummary)
    employee_eligibility: EmployeeEligibilitySummary = Field(default_factory=EmployeeEligibilitySummary)
    final_recommendation: Optional[str] = None
    recommendation_reasoning: str = ""
    required_actions: List[str] = Field(default_factory=list)
    approval_workflow: ApprovalWorkflow = Field(default_factory=ApprovalWorkflow)


# --- Manager Approval response ---

class DecisionDetails(AgentPayload):
    manager_id: Optional[str] = None
    decision: Optional[str] = None
    rationale: Optional[str] = None
    decision_timestamp: Optional[str] = None


class WorkflowActions(AgentPayload):
    reimbursement_triggered: bool = False
    employee_notified: bool = False
    audit_record_created: bool = False
    finance_team_notified: bool = False


class ReimbursementDetails(AgentPayload):
    amount: float = 0.0
    currency: str = "USD"
    payment_method: Optional[str] = None
    expected_processing_days: Optional[int] = None
    reference_number: Optional[str] = None


class AuditTrail(AgentPayload):
    record_id: Optional[str] = None
    timestamp: Optional[str] = None
    action: Optional[str] = None


class ApprovalResult(AgentPayload):
    decision_processed: bool = False
    expense_status: ExpenseStatus
    decision_details: DecisionDetails = Field(default_factory=DecisionDetails)
    workflow_actions: WorkflowActions = Field(default_factory=WorkflowActions)
    reimbursement_details: Optional[ReimbursementDetails] = None
    next_steps: List[str] = Field(default_factory=list)
    audit_trail: AuditTrail = Field(default_factory=AuditTrail)


# --- Dashboard records ---

class ExpenseForm(BaseModel):
    vendor: str = ""
    amount: str = ""
    date: str = ""
    category: str = "Business Meal"

    @property
    def can_submit(self) -> bool:
        return bool(self.vendor.strip() and self.amount.strip() and self.date.strip())


class ExpenseRecord(BaseModel):
    id: str
    employee: str
    vendor: str
    amount: float
    date: str
    category: str
    status: ExpenseStatus = "pending"
    risk_score: str = "unknown"
    validation_result: Optional[ValidationResult] = None
    receipt_image: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
