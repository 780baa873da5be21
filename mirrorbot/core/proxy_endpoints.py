"""
Proxy endpoint manager.

Keeps one webhook per (target channel, source author) so mirrored messages
carry the author's name and avatar. Stale webhooks are detected lazily when a
cached id no longer resolves, and are then recreated.
"""
import logging
from typing import Any, Optional

from .caches import EndpointKey, ProxyEndpointCache
from .events import AuthorSnapshot
from .exceptions import PlatformError

logger = logging.getLogger(__name__)


class ProxyEndpointManager:
    """Creates, caches and resolves per-author webhooks."""

    def __init__(self, platform, cache: ProxyEndpointCache):
        self.platform = platform
        self.cache = cache

    async def get_or_create(self, target_channel, author: AuthorSnapshot) -> Any:
        """
        Return a live webhook for the author in the target channel.

        Raises:
            EndpointCreationError: the platform refused to create the webhook.
        """
        key: EndpointKey = (target_channel.id, author.id)
        webhook_id = await self.cache.get(key)

        if webhook_id is not None:
            try:
                return await self.platform.fetch_webhook(webhook_id)
            except PlatformError as e:
                logger.info(f"Cached webhook {webhook_id} for {key} is stale, recreating: {e}")

        return await self._create(target_channel, author, key)

    async def resolve(self, target_channel_id: int, author_id: int) -> Optional[Any]:
        """Resolve a cached webhook without ever creating one."""
        key: EndpointKey = (target_channel_id, author_id)
        webhook_id = await self.cache.get(key)
        if webhook_id is None:
            logger.debug(f"No webhook cached for {key}")
            return None

        try:
            return await self.platform.fetch_webhook(webhook_id)
        except PlatformError as e:
            logger.warning(f"Webhook {webhook_id} for {key} no longer resolves: {e}")
            return None

    async def _create(self, target_channel, author: AuthorSnapshot, key: EndpointKey) -> Any:
        avatar = await self._read_avatar(author)
        webhook = await self.platform.create_webhook(target_channel, author.name, avatar)
        await self.cache.set(key, webhook.id)
        logger.debug(f"Cached webhook {webhook.id} for {key}")
        return webhook

    async def _read_avatar(self, author: AuthorSnapshot) -> Optional[bytes]:
        if author.avatar is None:
            return None
        try:
            return await self.platform.read_asset(author.avatar)
        except PlatformError as e:
            logger.warning(f"Could not download avatar of {author.id}, creating webhook without it: {e}")
            return None
