# agents/prompts.py
"""Natural-language messages sent to the coordinator and approval agents."""

from expense_flow.schemas import ExpenseForm, ExpenseRecord


def format_amount(amount: float) -> str:
    # 12.0 -> "12", 12.5 -> "12.5"
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def build_validation_message(form: ExpenseForm, employee: str) -> str:
    return (
        f"Validate expense: Vendor: {form.vendor}, Amount: ${form.amount}, "
        f"Date: {form.date}, Category: {form.category}, Employee: {employee}"
    )


def build_approval_message(record: ExpenseRecord, decision: str, rationale: str) -> str:
    return (
        f"Process approval decision: Expense ID: {record.id}, Employee: {record.employee}, "
        f"Amount: ${format_amount(record.amount)}, Manager Decision: {decision.upper()}, "
        f"Rationale: {rationale}"
    )
