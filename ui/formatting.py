# ui/formatting.py
import base64
from datetime import date, datetime
from typing import Optional

STATUS_COLORS = {
    "approved": "green",
    "rejected": "red",
    "pending": "orange",
    "reviewing": "blue",
}

RISK_COLORS = {
    "low": "green",
    "medium": "orange",
    "high": "red",
    "critical": "red",
}

MAX_RECEIPT_BYTES = 10 * 1024 * 1024
RECEIPT_TYPES = ["png", "jpg", "jpeg", "gif", "pdf"]


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "-"
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_date(value) -> str:
    """'2026-01-10' -> 'Jan 10, 2026'; anything unparseable comes back unchanged."""
    if isinstance(value, (date, datetime)):
        d = value
    else:
        try:
            d = datetime.fromisoformat(str(value))
        except ValueError:
            return str(value)
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, "gray")


def risk_color(risk: str) -> str:
    return RISK_COLORS.get(risk, "gray")


def status_badge(status: str) -> str:
    """Streamlit markdown badge for an expense status."""
    return f":{status_color(status)}-background[{status.capitalize()}]"


def risk_badge(risk: str) -> str:
    return f":{risk_color(risk)}[{risk.capitalize()} risk]"


def as_percent(score: Optional[float]) -> str:
    return f"{round((score or 0) * 100):.0f}%"


def file_to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
