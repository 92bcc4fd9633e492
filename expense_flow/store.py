# expense_flow/store.py
"""
Expense list behind a small repository interface.

Records are kept newest first. The in-memory store is the default and is
lost when the Streamlit session ends; the JSON store writes the same list
to disk after every change.
"""

import json
from datetime import date
from pathlib import Path
from typing import List, Optional

from expense_flow.logger_config import DASHBOARD_LOGGER
from expense_flow.schemas import ExpenseRecord, ExpenseStatus


class ExpenseNotFoundError(KeyError):
    pass


class InMemoryExpenseStore:
    def __init__(self, records: Optional[List[ExpenseRecord]] = None):
        self._records: List[ExpenseRecord] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> List[ExpenseRecord]:
        return list(self._records)

    def get(self, expense_id: str) -> Optional[ExpenseRecord]:
        return next((r for r in self._records if r.id == expense_id), None)

    def next_id(self, year: Optional[int] = None) -> str:
        year = year or date.today().year
        return f"EXP-{year}-{len(self._records) + 1:03d}"

    def add(self, record: ExpenseRecord) -> ExpenseRecord:
        self._records.insert(0, record)
        DASHBOARD_LOGGER.info(f"Store: add | {record.id} status={record.status} risk={record.risk_score}")
        self._persist()
        return record

    def update_status(self, expense_id: str, status: ExpenseStatus) -> ExpenseRecord:
        for idx, rec in enumerate(self._records):
            if rec.id == expense_id:
                updated = rec.model_copy(update={"status": status})
                self._records[idx] = updated
                DASHBOARD_LOGGER.info(f"Store: update_status | {expense_id} {rec.status} -> {status}")
                self._persist()
                return updated
        raise ExpenseNotFoundError(expense_id)

    def _persist(self) -> None:
        pass


class JsonFileExpenseStore(InMemoryExpenseStore):
    def __init__(self, path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> List[ExpenseRecord]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [ExpenseRecord.model_validate(r) for r in raw]

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in self._records]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)


def build_store(store_settings):
    if store_settings.backend == "json":
        return JsonFileExpenseStore(store_settings.path)
    return InMemoryExpenseStore()
