"""Inbound activity model and outbound protocol messages."""

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityTypes:
    """Activity types understood by the bot."""

    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"


class ChunkTypes:
    """Chunk types of a streamed response."""

    INFORMATIVE = "informative"
    TEXT = "text"
    END = "end"


class ChannelAccount(BaseModel):
    """A user or bot taking part in a conversation."""

    id: str
    name: Optional[str] = None


class ConversationAccount(BaseModel):
    """The conversation an activity belongs to."""

    id: str


class Activity(BaseModel):
    """Inbound event delivered by a channel."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = ActivityTypes.MESSAGE
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    channel_id: str = Field(default="webchat", alias="channelId")
    text: Optional[str] = None
    from_property: ChannelAccount = Field(alias="from")
    recipient: ChannelAccount = Field(default_factory=lambda: ChannelAccount(id="bot"))
    conversation: ConversationAccount
    members_added: List[ChannelAccount] = Field(default_factory=list, alias="membersAdded")


@dataclass
class ProtocolMessage:
    """Outbound message sent to a channel."""

    type: str
    id: str
    timestamp: str
    payload: dict[str, Any]

    @classmethod
    def create(
        cls, msg_type: str, payload: dict[str, Any] | None = None
    ) -> "ProtocolMessage":
        """Create a new protocol message with generated ID and timestamp."""
        return cls(
            type=msg_type,
            id=str(uuid.uuid4()),
            timestamp=datetime.now().isoformat(),
            payload=payload or {},
        )

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self))


@dataclass
class StreamChunk:
    """Streaming response chunk."""

    message_id: str
    chunk_type: str
    content: Any

    def to_message(self) -> ProtocolMessage:
        """Wrap the chunk in a `stream_chunk` protocol message."""
        return ProtocolMessage.create("stream_chunk", asdict(self))
