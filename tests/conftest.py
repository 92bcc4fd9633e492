"""Shared fixtures for the expense dashboard tests."""

import os
import tempfile

os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "expense_dashboard_test.log"))

import json
from typing import List, Optional

import pytest

from agents.agent_client import AgentResponse
from expense_flow.config import Settings
from expense_flow.schemas import ExpenseForm, ExpenseRecord
from expense_flow.store import InMemoryExpenseStore


class FakeGatewayClient:
    """Returns scripted replies (or raises) and records every call."""

    provider = "fake"

    def __init__(self, replies: Optional[List] = None):
        self.replies = list(replies or [])
        self.calls = []

    def call_agent(self, message, agent_id):
        self.calls.append((message, agent_id))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def coordinator_result(recommendation="AUTO_APPROVE", risk="low", **extra):
    result = {
        "validation_summary": {"overall_status": "approved", "confidence_score": 0.9, "risk_level": risk},
        "receipt_data": {"vendor": "Starbucks Coffee", "amount": 12.5, "date": "2026-01-10", "extracted_successfully": True},
        "fraud_analysis": {"fraud_detected": False, "fraud_score": 0.05, "flags_count": 0},
        "policy_compliance": {"compliant": True, "violations_count": 0, "critical_violations": False},
        "employee_eligibility": {"eligible": True, "restrictions": 0},
        "final_recommendation": recommendation,
        "recommendation_reasoning": "Within policy.",
        "required_actions": [],
        "approval_workflow": {"requires_manager_approval": False, "required_approval_level": "none", "auto_approvable": True},
    }
    result.update(extra)
    return result


def string_envelope(result):
    return {"response": json.dumps({"status": "success", "result": result})}


def direct_envelope(result):
    return {"status": "success", "result": result}


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store() -> InMemoryExpenseStore:
    return InMemoryExpenseStore()


@pytest.fixture
def starbucks_form() -> ExpenseForm:
    return ExpenseForm(vendor="Starbucks Coffee", amount="12.50", date="2026-01-10", category="Business Meal")


@pytest.fixture
def make_record():
    def _make(expense_id="EXP-2026-001", status="reviewing", amount=250.0, date="2026-01-10",
              employee="Current User", vendor="Hilton"):
        return ExpenseRecord(id=expense_id, employee=employee, vendor=vendor, amount=amount,
                             date=date, category="Travel", status=status, risk_score="medium")
    return _make


@pytest.fixture
def ok_reply():
    def _reply(envelope):
        return AgentResponse(success=True, response=envelope)
    return _reply
