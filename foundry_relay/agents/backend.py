"""
Remote agent backend client.

The relay talks to the remote agent through three small protocols so that the
Azure AI Foundry implementation can be swapped for an in-memory one in tests:

- AgentBackendClient: fetches descriptors and turns them into agent handles
- AgentHandle: creates, restores and runs conversation threads
- ThreadHandle: serializes its own state
"""

from typing import Any, AsyncIterator, Optional, Protocol

import structlog
from agent_framework import ChatAgent, ChatMessage, Role, TextContent
from agent_framework.azure import AzureAIAgentClient
from azure.ai.agents.aio import AgentsClient
from azure.ai.agents.models import Agent
from azure.core.credentials_async import AsyncTokenCredential

from foundry_relay.agents.middleware import LoggingAgentMiddleware


class ThreadHandle(Protocol):
    """Opaque handle to a remote conversation thread."""

    async def serialize(self) -> Any:
        ...


class AgentHandle(Protocol):
    """Runnable view of a remote agent."""

    async def new_thread(self) -> ThreadHandle:
        ...

    async def deserialize_thread(self, serialized: Any) -> ThreadHandle:
        ...

    def run_streaming(self, text: str, thread: ThreadHandle) -> AsyncIterator[str]:
        ...


class AgentBackendClient(Protocol):
    """Per-turn client bound to one caller credential."""

    async def get_agent_descriptor(self, agent_id: str) -> Any:
        ...

    def as_agent(self, descriptor: Any) -> AgentHandle:
        ...

    async def __aenter__(self) -> "AgentBackendClient":
        ...

    async def __aexit__(self, *exc_info: Any) -> None:
        ...


class FoundryAgent:
    """AgentHandle backed by an agent_framework ChatAgent."""

    def __init__(self, agent: ChatAgent):
        self.agent = agent

    async def new_thread(self):
        return self.agent.get_new_thread()

    async def deserialize_thread(self, serialized: Any):
        return await self.agent.deserialize_thread(serialized)

    async def run_streaming(self, text: str, thread) -> AsyncIterator[str]:
        """Send one user message and yield the text of each partial update."""
        async for update in self.agent.run_stream(
            messages=[ChatMessage(role=Role.USER, contents=[TextContent(text=text)])],
            thread=thread,
        ):
            if update and update.text:
                yield str(update.text)


class FoundryAgentBackend:
    """AgentBackendClient for agents hosted in an Azure AI Foundry project.

    One instance is opened per turn with the caller's credential and closed
    when the turn ends:

        async with FoundryAgentBackend(endpoint, credential) as client:
            descriptor = await client.get_agent_descriptor(agent_id)
            agent = client.as_agent(descriptor)
    """

    def __init__(
        self,
        endpoint: str,
        credential: AsyncTokenCredential,
        agents_client: Optional[AgentsClient] = None,
    ):
        """Initialize the backend for one Foundry project endpoint."""
        self.endpoint = endpoint
        self.agents_client = agents_client or AgentsClient(endpoint=endpoint, credential=credential)
        self.logger = structlog.get_logger("foundry_relay.agents.backend")

    async def __aenter__(self) -> "FoundryAgentBackend":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the underlying HTTP pipeline."""
        await self.agents_client.close()

    async def get_agent_descriptor(self, agent_id: str) -> Agent:
        """Fetch the agent definition from the Foundry project."""
        self.logger.info("backend.fetch_agent", agent_id=agent_id, endpoint=self.endpoint)
        return await self.agents_client.get_agent(agent_id)

    def as_agent(self, descriptor: Agent) -> FoundryAgent:
        """Wrap a fetched descriptor in a runnable agent.

        The remote agent already carries its model and instructions, so only
        its identity is passed along. It is never deleted on cleanup.
        """
        chat_client = AzureAIAgentClient(
            agents_client=self.agents_client,
            agent_id=descriptor.id,
            should_cleanup_agent=False,
        )
        agent = ChatAgent(
            chat_client=chat_client,
            name=descriptor.name,
            description=descriptor.description,
            middleware=[LoggingAgentMiddleware()],
        )
        return FoundryAgent(agent)
