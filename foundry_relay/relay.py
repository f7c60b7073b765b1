"""
Streaming relay between a chat conversation and a remote Foundry agent.

One call to `StreamingRelay.relay` handles one user message:

1. acknowledge the message with an informative update
2. resolve the agent descriptor (announcing the fetch on a cache miss)
3. resume or start the conversation's remote thread
4. forward the message and stream the reply chunk by chunk
5. store the updated thread on the conversation record

Failures never reach the channel transport: they are logged and replaced by a
single error chunk. The stream is always ended.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import structlog
from azure.core.credentials_async import AsyncTokenCredential

from foundry_relay.agents.backend import AgentBackendClient
from foundry_relay.agents.descriptor_cache import AgentDescriptorCache
from foundry_relay.agents.thread_binder import ConversationState, persist_thread, resolve_thread
from foundry_relay.config import Config


class ResponseChannel(Protocol):
    """Outbound side of a streamed reply."""

    async def queue_informative_update(self, text: str) -> None:
        ...

    def queue_text_chunk(self, text: str) -> None:
        ...

    async def end_stream(self) -> None:
        ...


BackendFactory = Callable[[AsyncTokenCredential], AgentBackendClient]
CredentialFactory = Callable[[], AsyncTokenCredential]


@dataclass
class RelayMessages:
    """Texts shown to the user while relaying."""

    processing: str = "Just a moment please.."
    fetching: str = "Arranging deck chairs."
    dispatching: str = "Flagging stock traders down.."
    error: str = "An error occurred while processing your request."

    @classmethod
    def from_config(cls, config: Config) -> "RelayMessages":
        return cls(
            processing=config.processing_message,
            fetching=config.fetching_message,
            dispatching=config.dispatching_message,
            error=config.error_message,
        )


class StreamingRelay:
    """Relays user messages to one remote agent."""

    def __init__(
        self,
        agent_id: str,
        cache: AgentDescriptorCache[Any],
        backend_factory: BackendFactory,
        messages: RelayMessages | None = None,
    ):
        """Initialize the relay.

        Args:
            agent_id: Identifier of the remote agent
            cache: Shared descriptor cache
            backend_factory: Builds a backend client for a caller credential
            messages: User-visible texts
        """
        self.agent_id = agent_id
        self.cache = cache
        self.backend_factory = backend_factory
        self.messages = messages or RelayMessages()
        self.logger = structlog.get_logger("foundry_relay.relay")

    async def relay(
        self,
        user_text: str,
        conversation: ConversationState,
        response: ResponseChannel,
        credential_factory: CredentialFactory,
    ) -> None:
        """Forward one user message and stream the reply to `response`.

        The caller's credential is built from `credential_factory` inside the
        failure boundary and closed when the turn ends.
        `conversation.thread_info` is only updated when the remote stream
        completes. On cancellation the stream is ended without persisting and
        the cancellation propagates.
        """
        self.logger.info("relay.message_received", agent_id=self.agent_id, length=len(user_text))
        self.logger.debug("relay.message_text", agent_id=self.agent_id, text=user_text)
        try:
            await response.queue_informative_update(self.messages.processing)

            credential = credential_factory()
            try:
                async with self.backend_factory(credential) as client:

                    async def announce_fetch() -> None:
                        await response.queue_informative_update(self.messages.fetching)

                    descriptor = await self.cache.get_or_fetch(
                        self.agent_id, client.get_agent_descriptor, on_miss=announce_fetch
                    )
                    agent = client.as_agent(descriptor)

                    thread = await resolve_thread(conversation, agent)

                    await response.queue_informative_update(self.messages.dispatching)

                    chunks = 0
                    async for text in agent.run_streaming(user_text, thread):
                        if text:
                            response.queue_text_chunk(text)
                            chunks += 1

                    await persist_thread(conversation, thread)
            finally:
                await credential.close()

            self.logger.info("relay.completed", agent_id=self.agent_id, chunks=chunks)
        except asyncio.CancelledError:
            self.logger.info("relay.cancelled", agent_id=self.agent_id)
            raise
        except Exception as e:
            self.logger.exception("relay.failed", agent_id=self.agent_id, error=str(e))
            response.queue_text_chunk(self.messages.error)
        finally:
            await response.end_stream()
