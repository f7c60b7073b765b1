"""
Command-line interface for foundry-relay.
"""

import asyncio
import uuid
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Prompt

from foundry_relay import __version__
from foundry_relay.agents.backend import FoundryAgentBackend
from foundry_relay.agents.descriptor_cache import AgentDescriptorCache
from foundry_relay.bot import RelayBot
from foundry_relay.config import Config, ConfigurationError, load_config
from foundry_relay.hosting.adapter import TurnAdapter
from foundry_relay.hosting.protocol import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ChunkTypes,
    ConversationAccount,
    ProtocolMessage,
)
from foundry_relay.hosting.storage import MemoryStorage
from foundry_relay.relay import RelayMessages, StreamingRelay
from foundry_relay.utils.logging import setup_logging


app = typer.Typer(
    name="foundry-relay",
    help="Relay chat messages to an Azure AI Foundry agent",
    add_completion=False,
)

console = Console()


def _load_config() -> Config:
    try:
        return load_config()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show the version."""
    console.print(f"foundry-relay {__version__}")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    port: Optional[int] = typer.Option(None, help="Port to bind the server to"),
) -> None:
    """Start the HTTP host."""
    config = _load_config()
    host = host or config.host
    port = port or config.port
    try:
        import uvicorn

        console.print(f"[green]Starting foundry-relay on http://{host}:{port}/api/messages[/green]")
        uvicorn.run("foundry_relay.api:create_app", host=host, port=port, factory=True)
    except Exception as e:
        console.print(f"[red]Error starting server: {e}[/red]")
        raise typer.Exit(1)


async def _render_turn(adapter: TurnAdapter, activity: Activity) -> None:
    """Run one turn and print its output as it arrives."""
    outbound: "asyncio.Queue[ProtocolMessage | None]" = asyncio.Queue()
    turn = asyncio.create_task(adapter.process(activity, outbound))

    while True:
        message = await outbound.get()
        if message is None:
            break
        if message.type == "message":
            console.print(f"[bold cyan]🤖[/bold cyan] {message.payload['text']}")
            continue

        chunk_type = message.payload["chunk_type"]
        if chunk_type == ChunkTypes.INFORMATIVE:
            console.print(f"[i dim]{message.payload['content']}[/i dim]")
        elif chunk_type == ChunkTypes.TEXT:
            console.print(message.payload["content"], end="", markup=False, highlight=False)
        elif chunk_type == ChunkTypes.END:
            console.print()

    await turn


async def _chat(config: Config) -> None:
    cache: AgentDescriptorCache = AgentDescriptorCache()
    relay = StreamingRelay(
        agent_id=config.agent_id,
        cache=cache,
        backend_factory=lambda credential: FoundryAgentBackend(config.project_endpoint, credential),
        messages=RelayMessages.from_config(config),
    )
    adapter = TurnAdapter(RelayBot(config, relay, cache), MemoryStorage())

    user = ChannelAccount(id="console-user", name="You")
    bot = ChannelAccount(id="foundry-relay", name="foundry-relay")
    conversation = ConversationAccount(id=str(uuid.uuid4()))

    await _render_turn(adapter, Activity(
        type=ActivityTypes.CONVERSATION_UPDATE,
        channel_id="console",
        from_property=user,
        recipient=bot,
        conversation=conversation,
        members_added=[user],
    ))

    while True:
        user_input = await asyncio.to_thread(Prompt.ask, "\n[bold green]👤 YOU[/bold green]")
        if user_input.lower() in ["exit", "quit"]:
            break
        await _render_turn(adapter, Activity(
            type=ActivityTypes.MESSAGE,
            channel_id="console",
            text=user_input,
            from_property=user,
            recipient=bot,
            conversation=conversation,
        ))


@app.command("chat")
def chat() -> None:
    """Chat with the agent from the console using the ambient Azure credential."""
    config = _load_config().model_copy(update={"playground": True})
    setup_logging(config.log_level)
    console.print("[i cyan]Type 'exit' to quit, '--clearcache' to refetch the agent.[/i cyan]")
    try:
        asyncio.run(_chat(config))
    except KeyboardInterrupt:
        console.print("\n[cyan]Bye.[/cyan]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
