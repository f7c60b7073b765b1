"""Turn context and turn processing."""

import asyncio
from typing import Optional, Protocol

import structlog

from foundry_relay.agents.thread_binder import ConversationState
from foundry_relay.hosting.protocol import Activity, ProtocolMessage
from foundry_relay.hosting.storage import Storage
from foundry_relay.hosting.streaming import StreamingResponse


class TurnContext:
    """Everything a bot handler needs for one inbound activity."""

    def __init__(
        self,
        activity: Activity,
        conversation: ConversationState,
        outbound: "asyncio.Queue[ProtocolMessage | None]",
        auth_token: Optional[str] = None,
    ):
        self.activity = activity
        self.conversation = conversation
        self.outbound = outbound
        # bearer token presented with this request only
        self.auth_token = auth_token
        self.streaming_response = StreamingResponse(outbound)

    async def send_activity(self, text: str) -> None:
        """Send a plain message to the channel."""
        await self.outbound.put(ProtocolMessage.create("message", {"text": text}))


class Bot(Protocol):
    async def on_turn(self, context: TurnContext) -> None:
        ...


def conversation_key(activity: Activity) -> str:
    """Storage key of the conversation an activity belongs to."""
    return f"{activity.channel_id}/conversations/{activity.conversation.id}"


class TurnAdapter:
    """
    Runs a bot for one activity at a time.

    Loads the conversation record, lets the bot handle the activity, saves the
    record and finally closes the outbound queue with a `None` sentinel.
    A cancelled turn does not save the record.
    """

    def __init__(self, bot: Bot, storage: Storage):
        self.bot = bot
        self.storage = storage
        self.logger = structlog.get_logger("foundry_relay.hosting.adapter")

    async def process(
        self,
        activity: Activity,
        outbound: "asyncio.Queue[ProtocolMessage | None]",
        auth_token: Optional[str] = None,
    ) -> None:
        """Handle one activity, writing everything it produces to `outbound`."""
        key = conversation_key(activity)
        try:
            conversation = await ConversationState.load(self.storage, key)
            context = TurnContext(activity, conversation, outbound, auth_token)

            await self.bot.on_turn(context)

            await conversation.save(self.storage, key)
            self.logger.debug("adapter.conversation_saved", key=key)
        finally:
            outbound.put_nowait(None)
