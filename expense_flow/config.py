# expense_flow/config.py
"""
Dashboard settings.

Values come from configs/dashboard.yaml and are overridden by environment
variables:
 - AGENT_GATEWAY_PROVIDER (mock | remote)   default: mock
 - AGENT_GATEWAY_URL      (for remote)      e.g. http://localhost:8100/api/agent
 - AGENT_GATEWAY_API_KEY  (optional, sent as X-API-Key)
 - AGENT_GATEWAY_TIMEOUT  (seconds; unset means no timeout)
 - EXPENSE_EMPLOYEE_NAME, STAGE_DELAY_SCALE
 - EXPENSE_STORE (memory | json), EXPENSE_STORE_PATH
 - SURFACE_DECISION_ERRORS (true | false)
 - DASHBOARD_CONFIG       path to an alternative YAML file
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

CONFIG = Path(__file__).resolve().parents[1] / "configs" / "dashboard.yaml"

DEFAULT_CATEGORIES = [
    "Business Meal",
    "Client Entertainment",
    "Travel",
    "Office Supplies",
    "Home Office Equipment",
]


class GatewaySettings(BaseModel):
    provider: Literal["mock", "remote"] = "mock"
    url: str = "http://localhost:8100/api/agent"
    api_key: str = ""
    timeout_seconds: Optional[float] = None


class AgentIds(BaseModel):
    receipt_extraction: str = "696a2d3ea5272eccb326c62f"
    fraud_detection: str = "696a2d57a5272eccb326c639"
    policy_compliance: str = "696a2d6d9ea90559bbf3e8e7"
    employee_eligibility: str = "696a2d85a5272eccb326c648"
    expense_validation_coordinator: str = "696a2da7a5272eccb326c65d"
    manager_approval: str = "696a2dc7a5272eccb326c66b"


class SubmissionSettings(BaseModel):
    employee_name: str = "Current User"
    stage_delay_scale: float = Field(1.0, ge=0)
    categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))


class StoreSettings(BaseModel):
    backend: Literal["memory", "json"] = "memory"
    path: str = "data/expenses.json"


class UISettings(BaseModel):
    surface_decision_errors: bool = False


class Settings(BaseModel):
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    agents: AgentIds = Field(default_factory=AgentIds)
    submission: SubmissionSettings = Field(default_factory=SubmissionSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    ui: UISettings = Field(default_factory=UISettings)


# env var -> (section, key)
ENV_OVERRIDES = {
    "AGENT_GATEWAY_PROVIDER": ("gateway", "provider"),
    "AGENT_GATEWAY_URL": ("gateway", "url"),
    "AGENT_GATEWAY_API_KEY": ("gateway", "api_key"),
    "AGENT_GATEWAY_TIMEOUT": ("gateway", "timeout_seconds"),
    "EXPENSE_EMPLOYEE_NAME": ("submission", "employee_name"),
    "STAGE_DELAY_SCALE": ("submission", "stage_delay_scale"),
    "EXPENSE_STORE": ("store", "backend"),
    "EXPENSE_STORE_PATH": ("store", "path"),
    "SURFACE_DECISION_ERRORS": ("ui", "surface_decision_errors"),
}


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(raw: Dict[str, Any], environ=None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        raw.setdefault(section, {})
        raw[section][key] = value.lower() if key == "provider" or key == "backend" else value
    return raw


def load_settings(path: Optional[Path] = None, environ=None) -> Settings:
    """Read the YAML file, apply environment overrides and validate."""
    environ = os.environ if environ is None else environ
    path = Path(path or environ.get("DASHBOARD_CONFIG") or CONFIG)
    raw = load_yaml(path)
    raw = apply_env_overrides(raw, environ)
    return Settings.model_validate(raw)
