"""Agent CRUD endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import ApiError
from ..schemas.agents import Agent, AgentCreated, AgentDeleted, AgentDetail, AgentList
from ..schemas.common import Err, Ok, parse_envelope
from ..transport import Transport

logger = logging.getLogger(__name__)

AGENT_NOT_FOUND = r"Agent.*not found"


class Agents:
    """Client for the ``agents`` endpoints."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def list(self) -> list[Agent]:
        response = await self._transport.request("agents")
        result = parse_envelope(response, AgentList)
        if isinstance(result, Ok):
            return result.data.agents
        raise ApiError.unknown("list agents")

    async def get(self, id: str) -> Agent:
        response = await self._transport.request(f"agents/{id}")
        result = parse_envelope(response, AgentDetail)
        if isinstance(result, Ok):
            return result.data.agent
        raise ApiError.unknown("get agent")

    async def create(
        self,
        name: str,
        *,
        prompt: Optional[str] = None,
        greeting: Optional[str] = None,
    ) -> str:
        body = {"name": name, "prompt": prompt, "greeting": greeting}
        response = await self._transport.request(
            "agents",
            method="POST",
            body={key: value for key, value in body.items() if value is not None},
        )
        result = parse_envelope(response, AgentCreated)
        if isinstance(result, Ok):
            logger.info("Created agent %r as %s", name, result.data.agent_id)
            return result.data.agent_id
        raise ApiError.unknown("create agent")

    async def delete(self, id: str) -> bool:
        """Delete an agent; returns False when it does not exist."""

        response = await self._transport.request(f"agents/{id}", method="DELETE")
        result = parse_envelope(response, AgentDeleted)
        if isinstance(result, Ok):
            return True
        if isinstance(result, Err) and result.matches(AGENT_NOT_FOUND):
            return False
        raise ApiError.unknown("delete agent")


__all__ = ["Agents"]
