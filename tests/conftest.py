"""Shared fakes for the remote agent backend and the response channel."""

import asyncio
from typing import Any, List, Optional

import pytest


class FakeThread:
    """Thread whose state is a plain dict."""

    def __init__(self, state: Optional[dict] = None):
        self.state = dict(state or {"thread_id": "thread-1", "turns": 0})

    async def serialize(self) -> dict:
        return dict(self.state)


class FakeAgent:
    """Agent replaying a fixed list of fragments, optionally failing afterwards."""

    def __init__(
        self,
        fragments: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        block: Optional[asyncio.Event] = None,
    ):
        self.fragments = fragments if fragments is not None else ["AAPL ", "is at ", "$190."]
        self.error = error
        self.block = block
        self.new_threads = 0
        self.deserialized: List[Any] = []
        self.sent: List[str] = []

    async def new_thread(self) -> FakeThread:
        self.new_threads += 1
        return FakeThread()

    async def deserialize_thread(self, serialized: Any) -> FakeThread:
        self.deserialized.append(serialized)
        return FakeThread(serialized)

    async def run_streaming(self, text: str, thread: FakeThread):
        self.sent.append(text)
        for fragment in self.fragments:
            yield fragment
        if self.block is not None:
            await self.block.wait()
        if self.error is not None:
            raise self.error
        thread.state["turns"] = thread.state.get("turns", 0) + 1


class FakeBackend:
    """Backend client handing out one FakeAgent."""

    def __init__(
        self,
        agent: Optional[FakeAgent] = None,
        fetch_error: Optional[Exception] = None,
        authenticate: bool = False,
    ):
        self.agent = agent or FakeAgent()
        self.fetch_error = fetch_error
        self.authenticate = authenticate
        self.tokens: List[str] = []
        self.fetches: List[str] = []
        self.credentials: List[Any] = []
        self.opened = 0
        self.closed = 0

    def __call__(self, credential: Any) -> "FakeBackend":
        self.credentials.append(credential)
        return self

    async def __aenter__(self) -> "FakeBackend":
        self.opened += 1
        if self.authenticate:
            token = await self.credentials[-1].get_token("https://ai.azure.com/.default")
            self.tokens.append(token.token)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed += 1

    async def get_agent_descriptor(self, agent_id: str) -> dict:
        self.fetches.append(agent_id)
        if self.fetch_error is not None:
            raise self.fetch_error
        return {"id": agent_id, "name": "Stocks"}

    def as_agent(self, descriptor: dict) -> FakeAgent:
        return self.agent


class FakeCredential:
    """Async credential counting how often it is closed."""

    def __init__(self):
        self.closed = 0

    async def close(self) -> None:
        self.closed += 1


class RecordingResponse:
    """Response channel recording every call in order."""

    def __init__(self):
        self.events: List[tuple] = []

    async def queue_informative_update(self, text: str) -> None:
        self.events.append(("informative", text))

    def queue_text_chunk(self, text: str) -> None:
        self.events.append(("text", text))

    async def end_stream(self) -> None:
        self.events.append(("end", None))

    def of_type(self, kind: str) -> List[str]:
        return [content for event, content in self.events if event == kind]


@pytest.fixture
def fake_agent():
    return FakeAgent()


@pytest.fixture
def fake_backend(fake_agent):
    return FakeBackend(fake_agent)


@pytest.fixture
def recording_response():
    return RecordingResponse()
