"""
Agent gateway client.

Every agent (coordinator, manager approval, and the four sub-agents) is
reached through the same call: a free-text message plus an agent id.

Supported providers:
 - mock   : deterministic local verdicts from agents.mock_responses (default)
 - remote : REST gateway (AGENT_GATEWAY_URL) that accepts JSON {message, agent_id}

Usage:
  from agents.agent_client import AgentGatewayClient
  client = AgentGatewayClient(settings.gateway)
  result = client.call_agent("Validate expense: ...", agent_id)
  if result.success:
      envelope = result.response
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from agents import mock_responses
from expense_flow.config import AgentIds, GatewaySettings
from expense_flow.logger_config import DASHBOARD_LOGGER


class AgentGatewayError(RuntimeError):
    """The gateway could not be reached or did not answer."""


@dataclass
class AgentResponse:
    success: bool
    response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class AgentGatewayClient:
    def __init__(self, gateway: Optional[GatewaySettings] = None, agents: Optional[AgentIds] = None):
        """
        gateway: provider, url, api key and timeout (see expense_flow.config)
        agents: agent ids, used by the mock provider to pick a verdict
        """
        self.gateway = gateway or GatewaySettings()
        self.agents = agents or AgentIds()
        self.provider = self.gateway.provider
        if self.provider == "remote" and not self.gateway.url:
            raise RuntimeError("AGENT_GATEWAY_URL is not set for remote provider.")

    def call_agent(self, message: str, agent_id: str) -> AgentResponse:
        DASHBOARD_LOGGER.info(f"Gateway: call_agent | provider={self.provider} agent={agent_id}")
        if self.provider == "remote":
            return self._remote_call(message, agent_id)
        return self._mock_call(message, agent_id)

    def _mock_call(self, message: str, agent_id: str) -> AgentResponse:
        body = mock_responses.build_gateway_reply(message, agent_id, self.agents)
        return AgentResponse(success=body["success"], response=body.get("response"), error=body.get("error"))

    def _headers(self) -> Dict[str, str]:
        h = {"Content-Type": "application/json"}
        if self.gateway.api_key:
            h["X-API-Key"] = self.gateway.api_key
        return h

    def _remote_call(self, message: str, agent_id: str) -> AgentResponse:
        """
        POST JSON to the gateway. Expects a JSON body {success, response, error}.
        Non-2xx statuses are reported as failed calls, any requests error raises
        AgentGatewayError.
        """
        payload = {"message": message, "agent_id": agent_id}
        try:
            resp = requests.post(
                self.gateway.url,
                json=payload,
                headers=self._headers(),
                timeout=self.gateway.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            DASHBOARD_LOGGER.error(f"Gateway: call_agent | transport error: {e}")
            raise AgentGatewayError(str(e)) from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            detail = None
            if isinstance(data, dict):
                detail = data.get("detail") or data.get("error")
            DASHBOARD_LOGGER.warning(f"Gateway: call_agent | HTTP {resp.status_code} for agent {agent_id}")
            return AgentResponse(success=False, error=str(detail) if detail else f"HTTP {resp.status_code}")

        if not isinstance(data, dict):
            return AgentResponse(success=False, error="Gateway returned a non-JSON body")

        envelope = data.get("response")
        return AgentResponse(
            success=bool(data.get("success")),
            response=envelope if isinstance(envelope, dict) else None,
            error=data.get("error"),
        )
