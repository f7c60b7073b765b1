"""Middleware implementations for logging agent activities."""
from typing import Awaitable, Callable

import structlog
from agent_framework import AgentMiddleware, AgentRunContext


class LoggingAgentMiddleware(AgentMiddleware):
    """Agent middleware that logs execution."""

    async def process(
        self,
        context: AgentRunContext,
        next: Callable[[AgentRunContext], Awaitable[None]],
    ) -> None:
        logger = structlog.get_logger("foundry_relay.agents.middleware")

        logger.debug(
            "agent.run_started",
            agent=context.agent.name,
            messages=len(context.messages),
            streaming=context.is_streaming,
        )

        await next(context)

        logger.debug("agent.run_completed", agent=context.agent.name)
