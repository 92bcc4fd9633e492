# expense_flow/work_flow.py
"""
Submission and manager-decision flows.

Both flows are linear: a fixed run of cosmetic progress stages (submission
only), one agent call, then one change to the expense store. Neither flow
raises for gateway or payload problems; the outcome objects carry the
message the dashboard shows.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from agents.agent_client import AgentGatewayClient, AgentGatewayError
from agents.prompts import build_approval_message, build_validation_message
from agents.response_parser import InvalidResponseStructure, parse_result
from expense_flow.logger_config import DASHBOARD_LOGGER
from expense_flow.schemas import ApprovalResult, ExpenseForm, ExpenseRecord, ValidationResult
from expense_flow.store import ExpenseNotFoundError


@dataclass(frozen=True)
class ValidationStage:
    name: str
    message: str
    delay: float  # seconds


VALIDATION_STAGES: List[ValidationStage] = [
    ValidationStage("Receipt Extraction", "Extracting receipt data...", 0.8),
    ValidationStage("Fraud Detection", "Checking for fraud...", 1.0),
    ValidationStage("Policy Check", "Validating policy compliance...", 0.9),
    ValidationStage("Eligibility", "Verifying employee eligibility...", 0.7),
    ValidationStage("Final Review", "Generating final report...", 0.6),
]
STAGES_COMPLETE = len(VALIDATION_STAGES)

GENERIC_VALIDATION_ERROR = "Validation failed"
INVALID_STRUCTURE_ERROR = "Invalid response structure"
NETWORK_ERROR = "Network error occurred"
INVALID_AMOUNT_ERROR = "Amount must be a number"

RECOMMENDATION_STATUS = {
    "AUTO_APPROVE": "approved",
    "MANAGER_REVIEW": "reviewing",
}


@dataclass
class SubmissionOutcome:
    record: Optional[ExpenseRecord] = None
    result: Optional[ValidationResult] = None
    error: Optional[str] = None
    stage: int = STAGES_COMPLETE

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None


@dataclass
class DecisionOutcome:
    result: Optional[ApprovalResult] = None
    record: Optional[ExpenseRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def clear_rationale(self) -> bool:
        return self.ok


def status_from_recommendation(recommendation: Optional[str]) -> str:
    return RECOMMENDATION_STATUS.get(recommendation, "rejected")


def can_decide(record: Optional[ExpenseRecord], rationale: str, processing: bool = False) -> bool:
    return record is not None and bool((rationale or "").strip()) and not processing


def run_validation_stages(on_stage: Optional[Callable[[int], None]] = None,
                          sleep: Callable[[float], None] = time.sleep,
                          delay_scale: float = 1.0) -> None:
    for idx, stage in enumerate(VALIDATION_STAGES):
        if on_stage:
            on_stage(idx)
        DASHBOARD_LOGGER.debug(f"Flow: submit_expense | stage {idx} {stage.message}")
        sleep(stage.delay * delay_scale)


def submit_expense(form: ExpenseForm,
                   client: AgentGatewayClient,
                   store,
                   agent_id: str,
                   employee: str = "Current User",
                   receipt_image: Optional[str] = None,
                   on_stage: Optional[Callable[[int], None]] = None,
                   sleep: Callable[[float], None] = time.sleep,
                   delay_scale: float = 1.0) -> SubmissionOutcome:
    DASHBOARD_LOGGER.info(f"Flow: submit_expense | vendor={form.vendor!r} amount={form.amount!r} category={form.category!r}")
    try:
        amount = float(form.amount)
        if not math.isfinite(amount):
            raise ValueError(form.amount)
    except ValueError:
        return SubmissionOutcome(error=INVALID_AMOUNT_ERROR)

    try:
        run_validation_stages(on_stage, sleep, delay_scale)
        message = build_validation_message(form, employee)
        reply = client.call_agent(message, agent_id)

        if not (reply.success and reply.response):
            DASHBOARD_LOGGER.warning(f"Flow: submit_expense | coordinator failure: {reply.error}")
            return SubmissionOutcome(error=reply.error or GENERIC_VALIDATION_ERROR)

        validation = parse_result(reply.response, ValidationResult)
    except InvalidResponseStructure as e:
        DASHBOARD_LOGGER.error(f"Flow: submit_expense | {e}")
        return SubmissionOutcome(error=INVALID_STRUCTURE_ERROR)
    except AgentGatewayError as e:
        DASHBOARD_LOGGER.error(f"Flow: submit_expense | network error: {e}")
        return SubmissionOutcome(error=NETWORK_ERROR)
    finally:
        if on_stage:
            on_stage(STAGES_COMPLETE)

    record = ExpenseRecord(
        id=store.next_id(),
        employee=employee,
        vendor=form.vendor,
        amount=amount,
        date=form.date,
        category=form.category,
        status=status_from_recommendation(validation.final_recommendation),
        risk_score=validation.validation_summary.risk_level,
        validation_result=validation,
        receipt_image=receipt_image,
    )
    store.add(record)
    DASHBOARD_LOGGER.info(
        f"Flow: submit_expense | {record.id} recommendation={validation.final_recommendation} status={record.status}"
    )
    return SubmissionOutcome(record=record, result=validation)


def process_decision(record: ExpenseRecord,
                     decision: str,
                     rationale: str,
                     client: AgentGatewayClient,
                     store,
                     agent_id: str) -> DecisionOutcome:
    """
    Send the manager's approve/reject decision to the approval agent and
    apply the status the agent returns to the matching record.
    """
    DASHBOARD_LOGGER.info(f"Flow: process_decision | {record.id} decision={decision}")
    try:
        reply = client.call_agent(build_approval_message(record, decision, rationale), agent_id)
        if not (reply.success and reply.response):
            DASHBOARD_LOGGER.error(f"Flow: process_decision | approval agent failure: {reply.error}")
            return DecisionOutcome(error=reply.error or GENERIC_VALIDATION_ERROR)

        approval = parse_result(reply.response, ApprovalResult)
        updated = store.update_status(record.id, approval.expense_status)
    except InvalidResponseStructure as e:
        DASHBOARD_LOGGER.error(f"Approval processing error: {e}")
        return DecisionOutcome(error=INVALID_STRUCTURE_ERROR)
    except AgentGatewayError as e:
        DASHBOARD_LOGGER.error(f"Approval processing error: {e}")
        return DecisionOutcome(error=NETWORK_ERROR)
    except ExpenseNotFoundError as e:
        DASHBOARD_LOGGER.error(f"Approval processing error: unknown expense {e}")
        return DecisionOutcome(error=f"Expense {record.id} not found")

    DASHBOARD_LOGGER.info(f"Flow: process_decision | {record.id} -> {approval.expense_status}")
    return DecisionOutcome(result=approval, record=updated)
