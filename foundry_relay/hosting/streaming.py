"""Streaming response channel."""

import asyncio
import uuid

import structlog

from foundry_relay.hosting.protocol import ChunkTypes, ProtocolMessage, StreamChunk


class StreamingResponse:
    """
    Writes the chunks of one streamed reply to a turn's outbound queue.

    Informative updates are transient status lines shown while the reply is
    pending; text chunks are the reply itself. Once `end_stream()` has been
    called nothing else can be queued.
    """

    def __init__(self, outbound: "asyncio.Queue[ProtocolMessage | None]"):
        """Initialize a stream with a fresh message id."""
        self.outbound = outbound
        self.message_id = str(uuid.uuid4())
        self.ended = False
        self.logger = structlog.get_logger("foundry_relay.hosting.streaming")

    async def queue_informative_update(self, text: str) -> None:
        """Queue a status update."""
        self._queue(ChunkTypes.INFORMATIVE, text)

    def queue_text_chunk(self, text: str) -> None:
        """Queue a piece of the reply."""
        self._queue(ChunkTypes.TEXT, text)

    async def end_stream(self) -> None:
        """Close the stream."""
        self._queue(ChunkTypes.END, None)
        self.ended = True

    def _queue(self, chunk_type: str, content: str | None) -> None:
        if self.ended:
            raise RuntimeError("The stream has already ended")

        self.logger.debug("stream.chunk", message_id=self.message_id, chunk_type=chunk_type)
        chunk = StreamChunk(message_id=self.message_id, chunk_type=chunk_type, content=content)
        self.outbound.put_nowait(chunk.to_message())
