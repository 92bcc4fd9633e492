from unittest.mock import patch

import requests

from agents.agent_client import AgentGatewayClient, AgentGatewayError, AgentResponse
from agents.mock_responses import approval_verdict
from expense_flow.config import GatewaySettings
from expense_flow.store import InMemoryExpenseStore
from expense_flow.work_flow import can_decide, process_decision
from conftest import FakeGatewayClient, direct_envelope, string_envelope

APPROVAL = "approval-id"


def _store_with(make_record):
    return InMemoryExpenseStore([
        make_record("EXP-2026-003", status="reviewing", amount=250.0),
        make_record("EXP-2026-002", status="pending", amount=120.0, vendor="Uber"),
        make_record("EXP-2026-001", status="approved", amount=12.5, vendor="Starbucks"),
    ])


def test_can_decide_requires_selection_and_rationale(make_record):
    record = make_record()
    assert can_decide(record, "valid per policy")
    assert not can_decide(None, "valid per policy")
    assert not can_decide(record, "")
    assert not can_decide(record, "   ")
    assert not can_decide(record, "valid per policy", processing=True)


def test_approve_with_rationale_updates_only_that_record(make_record, ok_reply):
    store = _store_with(make_record)
    record = store.get("EXP-2026-003")
    before = {r.id: r.status for r in store.all()}
    result = approval_verdict(record.id, record.employee, record.amount, "approve", "valid per policy")
    client = FakeGatewayClient([ok_reply(direct_envelope(result))])

    outcome = process_decision(record, "approve", "valid per policy", client, store, APPROVAL)

    assert outcome.ok
    assert outcome.clear_rationale
    assert outcome.record.status == "approved"
    assert outcome.result.reimbursement_details.reference_number == "REIMB-EXP-2026-003"
    after = {r.id: r.status for r in store.all()}
    changed = [k for k in before if before[k] != after[k]]
    assert changed == ["EXP-2026-003"]
    assert [r.id for r in store.all()] == ["EXP-2026-003", "EXP-2026-002", "EXP-2026-001"]

    message, agent_id = client.calls[0]
    assert agent_id == APPROVAL
    assert message == ("Process approval decision: Expense ID: EXP-2026-003, Employee: Current User, "
                       "Amount: $250, Manager Decision: APPROVE, Rationale: valid per policy")


def test_reject_decision_uses_agent_status(make_record, ok_reply):
    store = _store_with(make_record)
    record = store.get("EXP-2026-002")
    result = approval_verdict(record.id, record.employee, record.amount, "reject", "no receipt")
    client = FakeGatewayClient([ok_reply(string_envelope(result))])

    outcome = process_decision(record, "reject", "no receipt", client, store, APPROVAL)

    assert store.get("EXP-2026-002").status == "rejected"
    assert outcome.result.reimbursement_details is None
    assert "Manager Decision: REJECT" in client.calls[0][0]


def test_failed_call_leaves_store_untouched(make_record):
    store = _store_with(make_record)
    record = store.get("EXP-2026-003")
    client = FakeGatewayClient([AgentResponse(success=False, error="Approval agent down")])

    outcome = process_decision(record, "approve", "valid per policy", client, store, APPROVAL)

    assert not outcome.ok
    assert not outcome.clear_rationale
    assert outcome.error == "Approval agent down"
    assert store.get("EXP-2026-003").status == "reviewing"


def test_network_error_is_caught(make_record):
    store = _store_with(make_record)
    client = FakeGatewayClient([AgentGatewayError("timed out")])
    outcome = process_decision(store.get("EXP-2026-003"), "approve", "ok", client, store, APPROVAL)
    assert outcome.error == "Network error occurred"
    assert store.get("EXP-2026-003").status == "reviewing"


def test_result_without_status_is_invalid(make_record, ok_reply):
    store = _store_with(make_record)
    client = FakeGatewayClient([ok_reply(direct_envelope({"decision_processed": True}))])
    outcome = process_decision(store.get("EXP-2026-003"), "approve", "ok", client, store, APPROVAL)
    assert outcome.error == "Invalid response structure"
    assert store.get("EXP-2026-003").status == "reviewing"


def test_unknown_record_is_reported(make_record, ok_reply):
    store = _store_with(make_record)
    ghost = make_record("EXP-2026-999")
    result = approval_verdict(ghost.id, ghost.employee, ghost.amount, "approve", "ok")
    client = FakeGatewayClient([ok_reply(direct_envelope(result))])

    outcome = process_decision(ghost, "approve", "ok", client, store, APPROVAL)

    assert outcome.error == "Expense EXP-2026-999 not found"
    assert len(store) == 3


def test_requests_error_in_decision_is_caught(make_record):
    store = _store_with(make_record)
    client = AgentGatewayClient(GatewaySettings(provider="remote", url="http://gateway.test/api/agent"))
    with patch("agents.agent_client.requests.post",
               side_effect=requests.exceptions.ChunkedEncodingError("broken")):
        outcome = process_decision(store.get("EXP-2026-003"), "approve", "ok", client, store, APPROVAL)
    assert outcome.error == "Network error occurred"
    assert not outcome.clear_rationale
    assert store.get("EXP-2026-003").status == "reviewing"
