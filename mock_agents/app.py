# mock_agents/app.py
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional

from agents.mock_responses import build_gateway_reply
from expense_flow.config import load_settings
from expense_flow.logger_config import DASHBOARD_LOGGER

app = FastAPI(title="Mock Agent Gateway")

settings = load_settings()


class AgentRequest(BaseModel):
    message: str
    agent_id: str


class AgentReply(BaseModel):
    success: bool
    response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@app.get("/")
def root():
    return {"status": "ok", "message": "Mock agent gateway running. POST /api/agent"}


@app.get("/agents")
def list_agents():
    return settings.agents.model_dump()


@app.post("/api/agent", response_model=AgentReply)
def call_agent(req: AgentRequest):
    if not req.message or len(req.message.strip()) == 0:
        raise HTTPException(status_code=400, detail="Empty message")
    DASHBOARD_LOGGER.info(f"MockGateway: call_agent | agent={req.agent_id}")
    return build_gateway_reply(req.message, req.agent_id, settings.agents)
