"""HTTP host for the relay bot."""

import asyncio
from typing import AsyncIterator, Optional

import structlog
from fastapi import FastAPI, Request
from sse_starlette.sse import EventSourceResponse

from foundry_relay import __version__
from foundry_relay.agents.backend import FoundryAgentBackend
from foundry_relay.agents.descriptor_cache import AgentDescriptorCache
from foundry_relay.auth import UserAuthorization
from foundry_relay.bot import RelayBot
from foundry_relay.config import Config, load_config
from foundry_relay.hosting.adapter import TurnAdapter
from foundry_relay.hosting.protocol import Activity, ProtocolMessage
from foundry_relay.hosting.storage import MemoryStorage, Storage
from foundry_relay.relay import BackendFactory, RelayMessages, StreamingRelay
from foundry_relay.utils.logging import setup_logging


logger = structlog.get_logger("foundry_relay.api")


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def turn_events(
    adapter: TurnAdapter,
    activity: Activity,
    auth_token: Optional[str] = None,
) -> AsyncIterator[dict]:
    """Run one turn and yield its output as server-sent events.

    Closing the generator before the turn finishes, as happens when the client
    disconnects, cancels the turn.
    """
    outbound: "asyncio.Queue[ProtocolMessage | None]" = asyncio.Queue()
    turn = asyncio.create_task(adapter.process(activity, outbound, auth_token))
    try:
        while True:
            message = await outbound.get()
            if message is None:
                break
            yield {"event": message.type, "data": message.to_json()}
    finally:
        if not turn.done():
            logger.info("api.turn_cancelled", conversation_id=activity.conversation.id)
            turn.cancel()
        else:
            # surface unexpected adapter errors in the log
            exc = turn.exception() if not turn.cancelled() else None
            if exc is not None:
                logger.error("api.turn_failed", error=str(exc))


def create_app(
    config: Optional[Config] = None,
    backend_factory: Optional[BackendFactory] = None,
    storage: Optional[Storage] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Settings; loaded from the environment when omitted
        backend_factory: Backend client builder; Azure AI Foundry by default
        storage: Conversation storage; in-memory by default

    Raises:
        ConfigurationError: If a required setting is missing.
    """
    config = (config or load_config()).validate_required()
    setup_logging(config.log_level)

    if backend_factory is None:
        def backend_factory(credential):
            return FoundryAgentBackend(config.project_endpoint, credential)

    cache: AgentDescriptorCache = AgentDescriptorCache()
    authorization = UserAuthorization(config.auth_handler, config)
    relay = StreamingRelay(
        agent_id=config.agent_id,
        cache=cache,
        backend_factory=backend_factory,
        messages=RelayMessages.from_config(config),
    )
    bot = RelayBot(config, relay, cache, authorization)
    adapter = TurnAdapter(bot, storage or MemoryStorage())

    app = FastAPI(title="foundry-relay", description="Relay chat messages to an Azure AI Foundry agent")
    app.state.config = config
    app.state.cache = cache
    app.state.authorization = authorization
    app.state.adapter = adapter

    @app.get("/")
    async def read_root():
        return {"name": "foundry-relay", "version": __version__}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.post("/api/messages")
    async def messages(activity: Activity, request: Request):
        """Process one activity and stream its output as server-sent events."""
        logger.info(
            "api.activity_received",
            type=activity.type,
            conversation_id=activity.conversation.id,
        )

        return EventSourceResponse(turn_events(adapter, activity, _bearer_token(request)))

    return app

