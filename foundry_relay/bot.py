"""Turn dispatch for the relay bot."""

from typing import Optional

import structlog
from azure.core.credentials_async import AsyncTokenCredential

from foundry_relay.agents.descriptor_cache import AgentDescriptorCache
from foundry_relay.auth import UserAuthorization, playground_credential
from foundry_relay.config import Config
from foundry_relay.hosting.adapter import TurnContext
from foundry_relay.hosting.protocol import ActivityTypes
from foundry_relay.relay import StreamingRelay


SIGNOUT_COMMAND = "--signout"
CLEAR_CACHE_COMMAND = "--clearcache"


class RelayBot:
    """
    Routes activities to handlers.

    - members added to a conversation are welcomed
    - `--signout` signs the user out of the auth handler
    - `--clearcache` drops the cached agent descriptors
    - every other message is relayed to the remote agent
    """

    def __init__(
        self,
        config: Config,
        relay: StreamingRelay,
        cache: AgentDescriptorCache,
        authorization: Optional[UserAuthorization] = None,
    ):
        self.config = config
        self.relay = relay
        self.cache = cache
        self.authorization = authorization or UserAuthorization(config.auth_handler, config)
        self.logger = structlog.get_logger("foundry_relay.bot")

    async def on_turn(self, context: TurnContext) -> None:
        activity = context.activity
        if activity.type == ActivityTypes.CONVERSATION_UPDATE:
            await self.send_welcome_message(context)
        elif activity.type == ActivityTypes.MESSAGE:
            text = (activity.text or "").strip()
            if text == SIGNOUT_COMMAND:
                await self.handle_sign_out(context)
            elif text == CLEAR_CACHE_COMMAND:
                await self.handle_clear_cache(context)
            else:
                await self.send_message_to_agent(context)
        else:
            self.logger.debug("bot.activity_ignored", type=activity.type)

    async def send_welcome_message(self, context: TurnContext) -> None:
        """Greet every added member except the bot itself."""
        activity = context.activity
        for member in activity.members_added:
            if member.id != activity.recipient.id:
                await context.send_activity(self.config.welcome_message)

    async def handle_sign_out(self, context: TurnContext) -> None:
        await self.authorization.sign_out(context.activity.from_property.id, context.auth_token)
        await context.send_activity(self.config.signout_message)

    async def handle_clear_cache(self, context: TurnContext) -> None:
        self.cache.clear()
        await context.send_activity(self.config.cache_cleared_message)
        self.logger.info("bot.cache_cleared")

    async def send_message_to_agent(self, context: TurnContext) -> None:
        """Relay the user's text and stream the reply back."""
        await self.relay.relay(
            context.activity.text or "",
            context.conversation,
            context.streaming_response,
            lambda: self._credential_for(context),
        )

    def _credential_for(self, context: TurnContext) -> AsyncTokenCredential:
        if self.config.playground:
            return playground_credential()
        return self.authorization.credential_for(context.activity.from_property.id, context.auth_token)
