"""
Thin facade over discord.py exposing only the operations the mirror consumes.
Every library error is translated into a PlatformError subclass.
"""
import asyncio
import logging
from contextlib import contextmanager
from typing import Any, List, Optional, Sequence, Tuple, Type

import aiohttp
import discord

from mirrorbot.core.events import AttachmentRef
from mirrorbot.core.exceptions import (
    ChannelResolutionError,
    EndpointCreationError,
    EndpointResolutionError,
    PlatformError,
)

logger = logging.getLogger(__name__)

# Discord rejects webhook names longer than this.
WEBHOOK_NAME_LIMIT = 80


@contextmanager
def platform_call(operation: str, error_cls: Type[PlatformError] = PlatformError):
    """Translate discord.py and transport failures raised inside the block."""
    try:
        yield
    except (discord.HTTPException, discord.InvalidData, discord.ClientException) as e:
        raise error_cls(operation, str(e)) from e
    except (OSError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        # discord.py re-raises connection drops and timeouts untranslated.
        raise error_cls(operation, f"{type(e).__name__}: {e}") from e


class PlatformClient:
    """Async operations against the Discord API for a single bot session."""

    def __init__(self, client: discord.Client):
        self.client = client

    @property
    def bot_user_id(self) -> Optional[int]:
        user = self.client.user
        return user.id if user else None

    async def _channel(self, channel_id: int, operation: str):
        channel = self.client.get_channel(channel_id)
        if channel is not None:
            return channel
        with platform_call(operation, ChannelResolutionError):
            return await self.client.fetch_channel(channel_id)

    async def fetch_channel(self, channel_id: int):
        """Fetch a channel that can host webhooks."""
        channel = await self._channel(channel_id, "fetch_channel")
        if not hasattr(channel, "create_webhook"):
            raise ChannelResolutionError(
                "fetch_channel", f"channel {channel_id} does not support webhooks"
            )
        return channel

    async def read_asset(self, asset) -> bytes:
        with platform_call("read_asset"):
            return await asset.read()

    async def create_webhook(self, channel, name: str, avatar: Optional[bytes] = None) -> discord.Webhook:
        name = name[:WEBHOOK_NAME_LIMIT]
        with platform_call("create_webhook", EndpointCreationError):
            if avatar is not None:
                webhook = await channel.create_webhook(name=name, avatar=avatar)
            else:
                webhook = await channel.create_webhook(name=name)
        logger.info(f"Created webhook {webhook.id} '{name}' in channel {channel.id}")
        return webhook

    async def fetch_webhook(self, webhook_id: int) -> discord.Webhook:
        with platform_call("fetch_webhook", EndpointResolutionError):
            return await self.client.fetch_webhook(webhook_id)

    async def _to_files(self, attachments: Sequence[AttachmentRef]) -> List[discord.File]:
        files = []
        for attachment in attachments:
            with platform_call("download_attachment"):
                files.append(await attachment.handle.to_file())
        return files

    async def execute_webhook(
        self,
        webhook: discord.Webhook,
        content: str,
        attachments: Sequence[AttachmentRef] = (),
    ) -> int:
        """Send through a webhook and return the id of the created message."""
        kwargs: dict = {'content': content or None, 'wait': True}
        if attachments:
            kwargs['files'] = await self._to_files(attachments)
        with platform_call("execute_webhook"):
            message = await webhook.send(**kwargs)
        return message.id

    async def edit_webhook_message(self, webhook: discord.Webhook, message_id: int, content: str) -> None:
        with platform_call("edit_webhook_message"):
            await webhook.edit_message(message_id, content=content)

    async def delete_webhook_message(self, webhook: discord.Webhook, message_id: int) -> None:
        with platform_call("delete_webhook_message"):
            await webhook.delete_message(message_id)

    async def fetch_message_author(self, channel_id: int, message_id: int) -> int:
        channel = await self._channel(channel_id, "fetch_message")
        with platform_call("fetch_message"):
            message = await channel.fetch_message(message_id)
        return message.author.id

    async def send_message(self, channel_id: int, content: str) -> Any:
        channel = await self._channel(channel_id, "send_message")
        with platform_call("send_message"):
            return await channel.send(content)

    async def list_guilds(self) -> List[Tuple[int, str]]:
        with platform_call("list_guilds"):
            return [(guild.id, guild.name) async for guild in self.client.fetch_guilds(limit=None)]
