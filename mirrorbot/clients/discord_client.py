"""
Discord client manager using discord.py.
Owns the gateway session and turns raw gateway events into mirror events.
"""
from typing import Optional

import discord
import structlog

from mirrorbot.config import Settings
from mirrorbot.core.events import (
    AttachmentRef,
    AuthorSnapshot,
    BotReady,
    MessageCreated,
    MessageDeleted,
    MessageEdited,
    MessagesBulkDeleted,
)
from .platform import PlatformClient

logger = structlog.get_logger(__name__)


def build_intents() -> discord.Intents:
    """Guilds, guild and DM messages, and message content."""
    intents = discord.Intents.default()
    intents.guild_messages = True
    intents.dm_messages = True
    intents.message_content = True
    return intents


def message_created_from(message: discord.Message) -> MessageCreated:
    author = message.author
    avatar = getattr(author, "guild_avatar", None) or author.avatar
    return MessageCreated(
        message_id=message.id,
        channel_id=message.channel.id,
        author=AuthorSnapshot(id=author.id, name=author.display_name, avatar=avatar),
        content=message.content,
        webhook_id=message.webhook_id,
        attachments=tuple(
            AttachmentRef(
                filename=attachment.filename,
                url=attachment.url,
                height=attachment.height,
                handle=attachment,
            )
            for attachment in message.attachments
        ),
    )


def message_edited_from(payload: discord.RawMessageUpdateEvent) -> MessageEdited:
    data = payload.data or {}
    author = data.get("author") or {}
    author_id = author.get("id")
    return MessageEdited(
        message_id=payload.message_id,
        channel_id=payload.channel_id,
        content=data.get("content"),
        author_id=int(author_id) if author_id is not None else None,
    )


class DiscordClientManager:
    """Manages the discord.py client and forwards its events to the dispatcher."""

    def __init__(self, settings: Settings, client: Optional[discord.Client] = None):
        self.settings = settings
        self.client = client if client is not None else discord.Client(intents=build_intents())
        self.platform = PlatformClient(self.client)
        self.dispatcher = None
        self._is_running = False

    def attach(self, dispatcher) -> None:
        """Register gateway listeners that feed the dispatcher."""
        self.dispatcher = dispatcher
        for listener in (
            self.on_ready,
            self.on_message,
            self.on_raw_message_edit,
            self.on_raw_message_delete,
            self.on_raw_bulk_message_delete,
        ):
            self.client.event(listener)
        logger.info("Discord event listeners registered")

    async def on_ready(self) -> None:
        user = self.client.user
        await self.dispatcher.dispatch(BotReady(user_id=user.id, user_name=user.name))

    async def on_message(self, message: discord.Message) -> None:
        await self.dispatcher.dispatch(message_created_from(message))

    async def on_raw_message_edit(self, payload: discord.RawMessageUpdateEvent) -> None:
        await self.dispatcher.dispatch(message_edited_from(payload))

    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent) -> None:
        await self.dispatcher.dispatch(
            MessageDeleted(
                message_id=payload.message_id,
                channel_id=payload.channel_id,
                guild_id=payload.guild_id,
            )
        )

    async def on_raw_bulk_message_delete(self, payload: discord.RawBulkMessageDeleteEvent) -> None:
        await self.dispatcher.dispatch(
            MessagesBulkDeleted(
                message_ids=tuple(sorted(payload.message_ids)),
                channel_id=payload.channel_id,
                guild_id=payload.guild_id,
            )
        )

    async def start(self) -> None:
        """Log in and run the gateway session until the client is closed."""
        if self.dispatcher is None:
            raise RuntimeError("Dispatcher not attached")

        logger.info("Starting Discord client...")
        self._is_running = True
        try:
            await self.client.start(self.settings.discord_token.get_secret_value())
        finally:
            self._is_running = False

    async def stop(self) -> None:
        if not self.client.is_closed():
            logger.info("Stopping Discord client...")
            await self.client.close()
            logger.info("Discord client stopped")
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running
