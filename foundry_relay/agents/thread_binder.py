"""Binds a chat conversation to a remote conversation thread."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from foundry_relay.agents.backend import AgentHandle, ThreadHandle
from foundry_relay.hosting.storage import Storage


THREAD_INFO_KEY = "conversation.threadInfo"


@dataclass
class ConversationState:
    """Per-conversation record persisted between turns.

    Only the serialized remote thread is kept. It is replaced wholesale at the
    end of each successful turn.
    """

    thread_info: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the storage representation."""
        if self.thread_info is None:
            return {}
        return {THREAD_INFO_KEY: self.thread_info}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConversationState":
        """Create from the storage representation."""
        data = data or {}
        return cls(thread_info=data.get(THREAD_INFO_KEY))

    @classmethod
    async def load(cls, storage: Storage, key: str) -> "ConversationState":
        """Read the record stored under `key`, or an empty one."""
        items = await storage.read([key])
        return cls.from_dict(items.get(key))

    async def save(self, storage: Storage, key: str) -> None:
        """Write the record under `key`, overwriting the previous value."""
        await storage.write({key: self.to_dict()})


async def resolve_thread(conversation: ConversationState, agent: AgentHandle) -> ThreadHandle:
    """Resume the conversation's remote thread, or start a new one.

    Args:
        conversation: Conversation record holding the serialized thread
        agent: Agent that owns the thread

    Returns:
        A new thread when nothing is stored, the deserialized one otherwise
    """
    if not conversation.thread_info:
        return await agent.new_thread()

    return await agent.deserialize_thread(json.loads(conversation.thread_info))


async def persist_thread(conversation: ConversationState, thread: ThreadHandle) -> None:
    """Store the latest thread state on the conversation record."""
    conversation.thread_info = json.dumps(await thread.serialize())
