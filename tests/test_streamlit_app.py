from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
import streamlit as st
from streamlit.testing.v1 import AppTest

from agents.mock_responses import approval_verdict
from expense_flow.store import InMemoryExpenseStore

APP = str(Path(__file__).resolve().parents[1] / "ui" / "streamlit_app.py")
RATIONALE = "valid per policy"


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("AGENT_GATEWAY_PROVIDER", raising=False)
    monkeypatch.delenv("DASHBOARD_CONFIG", raising=False)
    st.cache_resource.clear()
    yield
    st.cache_resource.clear()


@pytest.fixture
def remote_gateway(monkeypatch):
    monkeypatch.setenv("AGENT_GATEWAY_PROVIDER", "remote")
    monkeypatch.setenv("AGENT_GATEWAY_URL", "http://gateway.test/api/agent")


def _http_ok(body):
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = body
    return resp


def _manager_view(make_record):
    at = AppTest.from_file(APP, default_timeout=30)
    at.session_state["current_view"] = "manager"
    at.session_state["expense_store"] = InMemoryExpenseStore([make_record("EXP-2026-003")])
    at.session_state["selected_expense_id"] = "EXP-2026-003"
    at.session_state["manager_rationale"] = RATIONALE
    return at


def test_submit_disabled_until_vendor_amount_and_date_are_set():
    at = AppTest.from_file(APP, default_timeout=30).run()
    assert not at.exception
    assert at.button(key="submit_expense").disabled

    at.text_input(key="expense_vendor").input("Starbucks Coffee")
    at.text_input(key="expense_amount").input("12.50").run()
    assert at.button(key="submit_expense").disabled

    at.date_input(key="expense_date").set_value(date(2026, 1, 10)).run()
    assert not at.button(key="submit_expense").disabled

    at.text_input(key="expense_vendor").input("").run()
    assert at.button(key="submit_expense").disabled


def test_successful_approval_clears_rationale(remote_gateway, make_record):
    verdict = approval_verdict("EXP-2026-003", "Current User", 250.0, "APPROVE", RATIONALE)
    body = {"success": True, "response": {"status": "success", "result": verdict}, "error": None}

    with patch("agents.agent_client.requests.post", return_value=_http_ok(body)):
        at = _manager_view(make_record).run()
        assert not at.button(key="approve_expense").disabled
        at.button(key="approve_expense").click().run()

    assert not at.exception
    assert at.session_state["manager_rationale"] == ""
    assert at.session_state["approval_result"].expense_status == "approved"
    assert at.session_state["expense_store"].get("EXP-2026-003").status == "approved"


def test_failed_approval_keeps_rationale_and_shows_nothing(remote_gateway, make_record):
    with patch("agents.agent_client.requests.post",
               side_effect=requests.exceptions.ChunkedEncodingError("broken")):
        at = _manager_view(make_record).run()
        at.button(key="approve_expense").click().run()

    assert not at.exception
    assert at.session_state["manager_rationale"] == RATIONALE
    assert at.session_state["decision_error"] == "Network error occurred"
    assert at.session_state["expense_store"].get("EXP-2026-003").status == "reviewing"
    assert len(at.error) == 0


def test_approve_disabled_without_rationale(make_record):
    at = _manager_view(make_record)
    at.session_state["manager_rationale"] = "   "
    at.run()
    assert at.button(key="approve_expense").disabled
    assert at.button(key="reject_expense").disabled
