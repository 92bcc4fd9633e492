# expense_flow/filters.py
"""Client-side filters over the expense list and the audit exports."""

from datetime import date
from typing import Iterable, List, Optional, Union

import pandas as pd
from jinja2 import Template

from expense_flow.schemas import ExpenseRecord

PENDING_STATUSES = ("reviewing", "pending")

AUDIT_COLUMNS = {
    "submitted_at": "Timestamp",
    "id": "Expense ID",
    "employee": "Employee",
    "vendor": "Vendor",
    "amount": "Amount",
    "category": "Category",
    "date": "Date",
    "status": "Decision",
    "risk_score": "Risk Level",
}

AUDIT_TEMPLATE = '''
<html>
<head><title>Expense Audit Log</title></head>
<body>
<h1>Expense Audit Log</h1>
<p>Generated: {{ generated_at }} | Records: {{ rows|length }}</p>
<table border="1" cellpadding="4">
<tr>{% for label in columns %}<th>{{ label }}</th>{% endfor %}</tr>
{% for row in rows %}<tr>{% for value in row %}<td>{{ value }}</td>{% endfor %}</tr>
{% else %}<tr><td colspan="{{ columns|length }}">No audit records</td></tr>{% endfor %}
</table>
</body>
</html>
'''


def filter_by_status(records: Iterable[ExpenseRecord], status: str = "all") -> List[ExpenseRecord]:
    if status == "all":
        return list(records)
    return [r for r in records if r.status == status]


def pending_expenses(records: Iterable[ExpenseRecord]) -> List[ExpenseRecord]:
    return [r for r in records if r.status in PENDING_STATUSES]


def _as_date(value: Union[str, date, None]) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def audit_filter(records: Iterable[ExpenseRecord],
                 date_from: Union[str, date, None] = None,
                 date_to: Union[str, date, None] = None,
                 employee: str = "",
                 status: str = "all") -> List[ExpenseRecord]:
    """
    Apply the audit-log criteria. Empty criteria are ignored; the date
    range is inclusive and compares against the expense date.
    """
    lo, hi = _as_date(date_from), _as_date(date_to)
    needle = (employee or "").strip().lower()
    out = []
    for r in filter_by_status(records, status):
        if lo or hi:
            d = _as_date(r.date)
            if d is None or (lo and d < lo) or (hi and d > hi):
                continue
        if needle and needle not in r.employee.lower():
            continue
        out.append(r)
    return out


def to_dataframe(records: Iterable[ExpenseRecord]) -> pd.DataFrame:
    rows = [r.model_dump(include=set(AUDIT_COLUMNS)) for r in records]
    df = pd.DataFrame(rows, columns=list(AUDIT_COLUMNS))
    return df.rename(columns=AUDIT_COLUMNS)


def to_csv(records: Iterable[ExpenseRecord]) -> str:
    return to_dataframe(records).to_csv(index=False)


def render_audit_html(records: Iterable[ExpenseRecord], generated_at: str) -> str:
    df = to_dataframe(records)
    return Template(AUDIT_TEMPLATE, autoescape=True).render(
        columns=list(df.columns),
        rows=df.astype(str).values.tolist(),
        generated_at=generated_at,
    )
