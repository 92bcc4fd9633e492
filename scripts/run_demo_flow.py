#!/usr/bin/env python3
"""
End-to-end demo runner for the expense submission and manager decision flows.

What it does (in order):
  1. Optionally starts the mock agent gateway (FastAPI) in a background subprocess.
  2. Submits a sample expense to the Expense Validation Coordinator.
  3. If the coordinator flags it for review, sends a manager decision to the approval agent.
  4. Prints the resulting expense list.
  5. Stops the gateway subprocess if it started it.

Usage:
  python scripts/run_demo_flow.py [--start-gateway] [--provider mock|remote]
                                  [--amount 12.50] [--decision approve|reject]

Notes:
  - With --provider mock (default) no network is used at all.
  - --start-gateway implies --provider remote against http://localhost:8100/api/agent.
"""

import argparse
import signal
import subprocess
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from agents.agent_client import AgentGatewayClient
from expense_flow.config import load_settings
from expense_flow.schemas import ExpenseForm
from expense_flow.store import InMemoryExpenseStore
from expense_flow.work_flow import VALIDATION_STAGES, STAGES_COMPLETE, process_decision, submit_expense

GATEWAY_PORT = 8100


def start_mock_gateway():
    """Start mock gateway via uvicorn in background subprocess. Returns subprocess handle."""
    print(f"[demo] Starting mock gateway (uvicorn mock_agents.app:app --port {GATEWAY_PORT})")
    proc = subprocess.Popen([sys.executable, "-m", "uvicorn", "mock_agents.app:app", "--port", str(GATEWAY_PORT)],
                            cwd=str(REPO_ROOT), stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    # give it a moment to start
    time.sleep(1.5)
    return proc


def stop_process(proc):
    if not proc:
        return
    proc.send_signal(signal.SIGINT)
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()


def print_stage(idx):
    if idx < STAGES_COMPLETE:
        print(f"[demo]   {idx + 1}/{STAGES_COMPLETE} {VALIDATION_STAGES[idx].message}")
    else:
        print("[demo]   validation stages complete")


def main(provider="mock", start_gateway=False, amount="12.50", decision="approve"):
    settings = load_settings()
    if start_gateway:
        provider = "remote"
        settings.gateway.url = f"http://localhost:{GATEWAY_PORT}/api/agent"
    settings.gateway.provider = provider

    proc = None
    try:
        if start_gateway:
            proc = start_mock_gateway()

        client = AgentGatewayClient(settings.gateway, settings.agents)
        store = InMemoryExpenseStore()

        form = ExpenseForm(vendor="Starbucks Coffee", amount=amount, date="2026-01-10", category="Business Meal")
        print(f"[demo] Submitting {form.vendor} ${form.amount} via {provider} gateway")
        outcome = submit_expense(
            form, client, store,
            agent_id=settings.agents.expense_validation_coordinator,
            employee=settings.submission.employee_name,
            on_stage=print_stage,
            delay_scale=0.0,
        )
        if not outcome.ok:
            print(f"[demo] Validation error: {outcome.error}")
            return 1

        record = outcome.record
        print(f"[demo] {record.id}: recommendation={outcome.result.final_recommendation} "
              f"status={record.status} risk={record.risk_score}")

        if record.status in ("reviewing", "pending"):
            print(f"[demo] Manager decision: {decision.upper()}")
            decided = process_decision(record, decision, "Demo decision", client, store,
                                       settings.agents.manager_approval)
            if decided.ok:
                print(f"[demo] {record.id} is now {decided.record.status}")
            else:
                print(f"[demo] Decision failed: {decided.error}")

        print("\n=== EXPENSES ===")
        for r in store.all():
            print(f"{r.id}  {r.date}  {r.vendor:<20} ${r.amount:>9.2f}  {r.status:<10} {r.risk_score}")
        return 0
    finally:
        if proc:
            print("[demo] Stopping mock gateway...")
            stop_process(proc)


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--start-gateway", action="store_true", help="Start the mock agent gateway (uvicorn) in the background.")
    ap.add_argument("--provider", choices=["mock", "remote"], default="mock")
    ap.add_argument("--amount", default="12.50", help="Expense amount to submit.")
    ap.add_argument("--decision", choices=["approve", "reject"], default="approve")
    args = ap.parse_args()
    sys.exit(main(provider=args.provider, start_gateway=args.start_gateway, amount=args.amount, decision=args.decision))
