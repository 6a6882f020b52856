"""Top-level client wiring settings, transport and resource clients together."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .agent_session import AgentSession
from .config import Settings, build_settings
from .errors import ApiError
from .playback import PlaybackScheduler
from .resources import Agents, Restorations, Voices
from .schemas.agents import AgentConfig
from .schemas.common import Ok, parse_envelope
from .schemas.tts import JwtToken, TtsConfig
from .transport import Transport
from .tts import Tts

logger = logging.getLogger(__name__)


class Client:
    """Entry point for the REST resources and the speech/agent sessions."""

    def __init__(self, settings: Settings, transport: Transport):
        self.settings = settings
        self.transport = transport
        self.voices = Voices(transport)
        self.agents = Agents(transport)
        self.restorations = Restorations(transport)
        self.tts = Tts(transport)

    async def jwt(self) -> str:
        """Exchange the API key for a short-lived token usable by public clients."""

        response = await self.transport.request("sse/auth", method="POST")
        result = parse_envelope(response, JwtToken)
        if isinstance(result, Ok):
            return result.data.jwt_token
        raise ApiError.unknown("get jwt token")

    def create_agent(
        self,
        agent_config: AgentConfig,
        tts_config: Optional[TtsConfig] = None,
        playback: Optional[PlaybackScheduler] = None,
        **connect_options: Any,
    ) -> AgentSession:
        return AgentSession(
            self.transport, agent_config, tts_config, playback, **connect_options
        )

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_client(**overrides: Any) -> Client:
    """Build a client; explicit keyword values override the environment.

    Accepts the `Settings` field names (``base_url``, ``api_key``,
    ``jwt_token``, ``base_http``, ``request_timeout``). ``None`` values are
    ignored so callers can forward optional arguments unchanged.
    """

    settings = build_settings(**overrides)
    logger.debug("Creating client for %s", settings.base_url)
    return Client(settings, Transport(settings))


def create_public_client(
    base_url: Optional[str] = None,
    jwt_token: Optional[str] = None,
) -> Client:
    """Build a client that authenticates with a JWT only, never an API key."""

    settings = build_settings(base_url=base_url, jwt_token=jwt_token)
    settings = settings.model_copy(update={"api_key": None})
    return Client(settings, Transport(settings))


__all__ = ["Client", "create_client", "create_public_client"]
