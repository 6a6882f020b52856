"""Tests for the agents resource client."""

import json

import pytest

from neuphonic_sdk.errors import ApiError
from neuphonic_sdk.resources.agents import Agents

AGENT = {"name": "Helper", "agent_id": "a1", "prompt": "Be brief.", "greeting": "Hi!"}


@pytest.mark.asyncio
async def test_list_agents(fake_api) -> None:
    api = fake_api({("GET", "/agents"): (200, {"data": {"agents": [AGENT]}})})

    agents = await Agents(api.transport()).list()

    assert [agent.agent_id for agent in agents] == ["a1"]
    assert agents[0].greeting == "Hi!"


@pytest.mark.asyncio
async def test_get_agent(fake_api) -> None:
    api = fake_api({("GET", "/agents/a1"): (200, {"data": {"agent": AGENT}})})

    agent = await Agents(api.transport()).get("a1")

    assert agent.name == "Helper"


@pytest.mark.asyncio
async def test_get_missing_agent_raises_unknown_error(fake_api) -> None:
    api = fake_api({})

    with pytest.raises(ApiError, match="Unknown get agent error"):
        await Agents(api.transport()).get("nope")


@pytest.mark.asyncio
async def test_create_agent_posts_only_given_fields(fake_api) -> None:
    api = fake_api(
        {("POST", "/agents"): (200, {"data": {"message": "created", "agent_id": "a2"}})}
    )

    agent_id = await Agents(api.transport()).create("Helper", prompt="Be brief.")

    assert agent_id == "a2"
    assert json.loads(api.requests[0].content) == {"name": "Helper", "prompt": "Be brief."}


@pytest.mark.asyncio
async def test_delete_agent(fake_api) -> None:
    api = fake_api(
        {("DELETE", "/agents/a1"): (200, {"data": {"message": "deleted", "agent_id": "a1"}})}
    )

    assert await Agents(api.transport()).delete("a1") is True


@pytest.mark.asyncio
async def test_delete_missing_agent_returns_false(fake_api) -> None:
    api = fake_api({("DELETE", "/agents/a9"): (404, {"detail": "Agent a9 not found"})})

    assert await Agents(api.transport()).delete("a9") is False


@pytest.mark.asyncio
async def test_delete_validation_error_raises(fake_api) -> None:
    detail = [{"loc": ["path", "agent_id"], "msg": "field required", "type": "missing"}]
    api = fake_api({("DELETE", "/agents/a1"): (422, {"detail": detail})})

    with pytest.raises(ApiError, match="Unknown delete agent error"):
        await Agents(api.transport()).delete("a1")
