from datetime import date

import pytest

from expense_flow.config import StoreSettings
from expense_flow.filters import (
    audit_filter,
    filter_by_status,
    pending_expenses,
    render_audit_html,
    to_csv,
    to_dataframe,
)
from expense_flow.store import (
    ExpenseNotFoundError,
    InMemoryExpenseStore,
    JsonFileExpenseStore,
    build_store,
)


@pytest.fixture
def records(make_record):
    return [
        make_record("EXP-2026-004", status="rejected", date="2026-02-03", employee="Dana Reyes", vendor="Apple"),
        make_record("EXP-2026-003", status="reviewing", date="2026-01-20", employee="Current User"),
        make_record("EXP-2026-002", status="pending", date="2026-01-15", employee="dana reyes", vendor="Uber"),
        make_record("EXP-2026-001", status="approved", date="2026-01-10", employee="Current User", vendor="Starbucks"),
    ]


def test_filter_by_status_keeps_order(records):
    assert filter_by_status(records, "all") == records
    assert [r.id for r in filter_by_status(records, "approved")] == ["EXP-2026-001"]
    assert filter_by_status(records, "reviewing")[0].id == "EXP-2026-003"
    assert filter_by_status([], "approved") == []


def test_pending_expenses_includes_reviewing_and_pending(records):
    assert [r.id for r in pending_expenses(records)] == ["EXP-2026-003", "EXP-2026-002"]


def test_audit_filter_date_range_is_inclusive(records):
    out = audit_filter(records, date_from="2026-01-15", date_to=date(2026, 1, 20))
    assert [r.id for r in out] == ["EXP-2026-003", "EXP-2026-002"]


def test_audit_filter_employee_is_case_insensitive(records):
    out = audit_filter(records, employee="DANA")
    assert [r.id for r in out] == ["EXP-2026-004", "EXP-2026-002"]


def test_audit_filter_combines_criteria(records):
    out = audit_filter(records, employee="current", status="approved")
    assert [r.id for r in out] == ["EXP-2026-001"]


def test_audit_filter_without_criteria_returns_everything(records):
    assert audit_filter(records) == records


def test_csv_export_has_labelled_columns(records):
    csv = to_csv(records[:1])
    header, row = csv.strip().splitlines()
    assert header.startswith("Timestamp,Expense ID,Employee,Vendor,Amount")
    assert "EXP-2026-004" in row and "rejected" in row


def test_dataframe_of_no_records_keeps_columns():
    df = to_dataframe([])
    assert df.empty
    assert "Risk Level" in df.columns


def test_html_export_escapes_values(make_record):
    html = render_audit_html([make_record(vendor="<script>x</script>")], "2026-01-10 09:00")
    assert "&lt;script&gt;" in html
    assert "<script>" not in html
    assert "Records: 1" in html


def test_html_export_for_empty_log():
    assert "No audit records" in render_audit_html([], "now")


def test_next_id_counts_existing_records(make_record):
    store = InMemoryExpenseStore()
    assert store.next_id(2026) == "EXP-2026-001"
    store.add(make_record("EXP-2026-001"))
    store.add(make_record("EXP-2026-002"))
    assert store.next_id(2026) == "EXP-2026-003"
    assert store.next_id().startswith(f"EXP-{date.today().year}-")


def test_add_prepends_and_get_finds(make_record):
    store = InMemoryExpenseStore()
    store.add(make_record("EXP-2026-001"))
    store.add(make_record("EXP-2026-002"))
    assert [r.id for r in store.all()] == ["EXP-2026-002", "EXP-2026-001"]
    assert store.get("EXP-2026-001").vendor == "Hilton"
    assert store.get("missing") is None


def test_update_status_unknown_id_raises(make_record):
    store = InMemoryExpenseStore([make_record()])
    with pytest.raises(ExpenseNotFoundError):
        store.update_status("EXP-2026-404", "approved")


def test_all_returns_a_copy(make_record):
    store = InMemoryExpenseStore([make_record()])
    store.all().clear()
    assert len(store) == 1


def test_json_store_survives_reload(tmp_path, make_record):
    path = tmp_path / "nested" / "expenses.json"
    store = JsonFileExpenseStore(path)
    store.add(make_record("EXP-2026-001", status="reviewing"))
    store.update_status("EXP-2026-001", "approved")

    reloaded = JsonFileExpenseStore(path)
    assert len(reloaded) == 1
    assert reloaded.get("EXP-2026-001").status == "approved"
    assert reloaded.next_id(2026) == "EXP-2026-002"


def test_build_store_picks_backend(tmp_path):
    assert type(build_store(StoreSettings())) is InMemoryExpenseStore
    json_store = build_store(StoreSettings(backend="json", path=str(tmp_path / "e.json")))
    assert isinstance(json_store, JsonFileExpenseStore)
